"""
Lesson generation pipeline: generate, verify, and repair at most once.

States:

    GENERATING -> VERIFYING -> DONE
                            -> REPAIRING -> RE_VERIFYING -> DONE

Only GENERATING can abort the run (GenerationFailure). Every later stage
degrades to "keep the best content so far", so DONE is always reached once a
draft exists. A run makes at most four capability calls:
generate, verify, repair, re-verify.

Stages run strictly in sequence. Each call has its own timeout; a timeout is
handled exactly like any other error from that stage.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from lessonlab.errors import ContentParseError, GenerationFailure, VerificationUnavailable
from lessonlab.schemas.lessons import GenerationRequest, LessonContent, VerificationVerdict
from lessonlab.services.json_extract import parse_model

logger = logging.getLogger(__name__)


# =============================================================================
# CAPABILITIES
# =============================================================================


class LessonGenerator(Protocol):
    async def generate(self, request: GenerationRequest) -> str: ...


class LessonVerifier(Protocol):
    async def verify(self, content: LessonContent) -> str: ...


class LessonRepairer(Protocol):
    async def repair(self, content: LessonContent, issues: list[str]) -> str: ...


@dataclass(frozen=True)
class PipelineConfig:
    """
    Everything a pipeline run needs, built once at process start.

    verification_fail_open: when the verifier is unavailable, treat the
    draft as passing (True) or as failing with an explanatory issue (False).
    Either way the run still delivers content.
    """

    generator: LessonGenerator
    verifier: LessonVerifier
    repairer: LessonRepairer
    generation_timeout: float = 120.0
    verification_timeout: float = 60.0
    repair_timeout: float = 120.0
    verification_fail_open: bool = True


# =============================================================================
# RESULT
# =============================================================================


class PipelineState(str, Enum):
    GENERATING = "generating"
    VERIFYING = "verifying"
    REPAIRING = "repairing"
    RE_VERIFYING = "re_verifying"
    DONE = "done"


@dataclass
class PipelineResult:
    content: LessonContent
    verdict: VerificationVerdict
    repaired: bool = False
    calls: int = 0
    states: list[PipelineState] = field(default_factory=list)

    @property
    def verified(self) -> bool:
        return self.verdict.passed


# =============================================================================
# PIPELINE
# =============================================================================


class ContentPipeline:
    """Runs one generation request through the stages. Holds no per-run state."""

    def __init__(self, config: PipelineConfig):
        self.config = config

    async def run(self, request: GenerationRequest) -> PipelineResult:
        """
        Turn page images into a lesson.

        Raises:
            GenerationFailure: stage 1 errored, timed out, or produced no
                valid lesson. Nothing else escapes.
        """
        trace = _RunTrace()

        trace.enter(PipelineState.GENERATING)
        content = await self._generate(request, trace)

        trace.enter(PipelineState.VERIFYING)
        verdict = await self._verify(content, trace)
        if verdict.passed:
            logger.info("Lesson verified on first pass")
            return trace.finish(content, verdict, repaired=False)

        logger.info("Lesson failed verification, repairing: %s", verdict.issues)
        trace.enter(PipelineState.REPAIRING)
        repaired = await self._repair(content, verdict.issues, trace)
        if repaired is not None:
            content = repaired

        trace.enter(PipelineState.RE_VERIFYING)
        recheck = await self._verify(content, trace)
        if not recheck.passed:
            logger.warning("Lesson still has issues after repair, delivering anyway: %s", recheck.issues)
        return trace.finish(content, recheck, repaired=repaired is not None)

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    async def _generate(self, request: GenerationRequest, trace: "_RunTrace") -> LessonContent:
        trace.calls += 1
        try:
            text = await asyncio.wait_for(
                self.config.generator.generate(request),
                timeout=self.config.generation_timeout,
            )
            content = parse_model(text, LessonContent)
        except ContentParseError as e:
            logger.error("Generated lesson unusable: %s %s", e.detail, e.problems)
            raise GenerationFailure(f"Generated lesson unusable: {e.detail}") from e
        except TimeoutError as e:
            logger.error("Lesson generation timed out after %.0fs", self.config.generation_timeout)
            raise GenerationFailure("Lesson generation timed out") from e
        except Exception as e:
            logger.exception("Lesson generation failed")
            raise GenerationFailure(f"Lesson generation failed: {e}") from e

        # Request metadata is authoritative over whatever the model echoed back
        return content.model_copy(update={"subject": request.subject.value, "grade": request.grade})

    async def _verify(self, content: LessonContent, trace: "_RunTrace") -> VerificationVerdict:
        trace.calls += 1
        try:
            return await self._call_verifier(content)
        except VerificationUnavailable as e:
            if self.config.verification_fail_open:
                logger.warning("%s - treating as PASS (fail-open)", e.detail)
                return VerificationVerdict(status="PASS", issues=[])
            logger.warning("%s - treating as FAIL (fail-closed)", e.detail)
            return VerificationVerdict(status="FAIL", issues=[e.detail])

    async def _call_verifier(self, content: LessonContent) -> VerificationVerdict:
        try:
            text = await asyncio.wait_for(
                self.config.verifier.verify(content),
                timeout=self.config.verification_timeout,
            )
            return parse_model(text, VerificationVerdict)
        except TimeoutError as e:
            raise VerificationUnavailable("Verification timed out") from e
        except ContentParseError as e:
            raise VerificationUnavailable(f"Verifier reply unusable: {e.detail}") from e
        except Exception as e:
            logger.debug("Verifier error", exc_info=True)
            raise VerificationUnavailable(f"Verifier error: {e}") from e

    async def _repair(
        self, content: LessonContent, issues: list[str], trace: "_RunTrace"
    ) -> LessonContent | None:
        """Return the repaired lesson, or None to keep the original."""
        trace.calls += 1
        try:
            text = await asyncio.wait_for(
                self.config.repairer.repair(content, issues),
                timeout=self.config.repair_timeout,
            )
            repaired = parse_model(text, LessonContent)
        except TimeoutError:
            logger.warning("Lesson repair timed out, keeping original")
            return None
        except ContentParseError as e:
            logger.warning("Repaired lesson unusable (%s), keeping original", e.detail)
            return None
        except Exception:
            logger.warning("Lesson repair failed, keeping original", exc_info=True)
            return None

        return repaired.model_copy(update={"subject": content.subject, "grade": content.grade})


class _RunTrace:
    """Call count and visited states for one run."""

    def __init__(self):
        self.calls = 0
        self.states: list[PipelineState] = []

    def enter(self, state: PipelineState) -> None:
        logger.debug("Pipeline state -> %s", state.value)
        self.states.append(state)

    def finish(self, content: LessonContent, verdict: VerificationVerdict, *, repaired: bool) -> PipelineResult:
        self.enter(PipelineState.DONE)
        return PipelineResult(
            content=content,
            verdict=verdict,
            repaired=repaired,
            calls=self.calls,
            states=list(self.states),
        )
