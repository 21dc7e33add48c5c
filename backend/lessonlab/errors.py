"""
Typed error hierarchy.

Every error carries the HTTP status it maps to; `lessonlab.main` renders them
through a single exception handler. Pipeline-internal errors
(GenerationFailure, VerificationUnavailable, ContentParseError) are normally
caught before reaching a request handler.
"""

from fastapi import status


class LessonLabError(Exception):
    """Base exception for all application errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "An internal error occurred."

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    @property
    def headers(self) -> dict[str, str] | None:
        return None


# =============================================================================
# PIPELINE
# =============================================================================


class ContentParseError(LessonLabError):
    """AI output did not contain a JSON object matching the expected schema."""

    default_detail = "AI response could not be parsed."

    def __init__(self, detail: str | None = None, *, problems: list[str] | None = None):
        self.problems = problems or []
        super().__init__(detail)


class GenerationFailure(LessonLabError):
    """Stage 1 produced no usable lesson. Fatal to the pipeline run."""

    default_detail = "Processing failed."


class VerificationUnavailable(LessonLabError):
    """The verifier or repairer errored, timed out, or returned garbage."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Verification service unavailable."


# =============================================================================
# AUTH
# =============================================================================


class Unauthenticated(LessonLabError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Not authenticated"


class InvalidCredential(Unauthenticated):
    """Credential present but bad: wrong signature, expired, or malformed."""

    default_detail = "Could not validate credentials"


class Forbidden(LessonLabError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to access this resource"


class NotFound(LessonLabError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


# =============================================================================
# REQUESTS
# =============================================================================


class ValidationError(LessonLabError):
    """Malformed request shape. `errors` holds field-level detail."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"

    def __init__(self, detail: str | None = None, *, errors: list[dict] | None = None):
        self.errors = errors or []
        super().__init__(detail)


class QuotaExceeded(LessonLabError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Too many requests, try again later"

    def __init__(self, detail: str | None = None, *, retry_after: int = 0):
        self.retry_after = retry_after
        super().__init__(detail)

    @property
    def headers(self) -> dict[str, str] | None:
        return {"Retry-After": str(self.retry_after)}
