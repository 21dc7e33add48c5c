"""
Provider adapters for the three pipeline capabilities.

- generation: Gemini (google-genai), page images sent as inline parts
- verification: OpenAI chat completions in JSON mode
- repair: Anthropic messages

Each adapter returns the raw response text; JSON extraction and validation
happen in the pipeline. Clients are created once by build_pipeline_config()
at startup and passed in explicitly.
"""

import logging

from anthropic import AsyncAnthropic
from google import genai
from google.genai import types as genai_types
from openai import AsyncOpenAI

from lessonlab.config import Settings
from lessonlab.errors import ContentParseError
from lessonlab.schemas.lessons import GenerationRequest, LessonContent
from lessonlab.services import prompts
from lessonlab.services.pipeline import PipelineConfig

logger = logging.getLogger(__name__)


class ProviderNotConfigured(RuntimeError):
    """Raised at call time when a stage's API key is missing."""


class GeminiLessonGenerator:
    """Stage 1: images + metadata -> lesson JSON text."""

    def __init__(self, client: genai.Client | None, model: str, language: str):
        self.client = client
        self.model = model
        self.language = language

    async def generate(self, request: GenerationRequest) -> str:
        if self.client is None:
            raise ProviderNotConfigured("GEMINI_API_KEY is not set")

        parts = [
            genai_types.Part.from_text(
                text=prompts.generation_prompt(request.subject.value, request.grade, self.language)
            )
        ]
        parts.extend(
            genai_types.Part.from_bytes(data=image.data, mime_type=image.media_type)
            for image in request.images
        )
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=[genai_types.Content(role="user", parts=parts)],
            config=genai_types.GenerateContentConfig(response_mime_type="application/json"),
        )
        return response.text or ""


class OpenAILessonVerifier:
    """Stage 2: lesson -> verdict JSON text."""

    def __init__(self, client: AsyncOpenAI | None, model: str):
        self.client = client
        self.model = model

    async def verify(self, content: LessonContent) -> str:
        if self.client is None:
            raise ProviderNotConfigured("OPENAI_API_KEY is not set")

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": prompts.VERIFIER_SYSTEM_PROMPT},
                {"role": "user", "content": prompts.verification_prompt(content)},
            ],
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content or ""


class AnthropicLessonRepairer:
    """Stage 3: lesson + issues -> corrected lesson JSON text."""

    def __init__(self, client: AsyncAnthropic | None, model: str, max_tokens: int, language: str):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.language = language

    async def repair(self, content: LessonContent, issues: list[str]) -> str:
        if self.client is None:
            raise ProviderNotConfigured("ANTHROPIC_API_KEY is not set")

        message = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[
                {"role": "user", "content": prompts.repair_prompt(content, issues, self.language)},
            ],
        )
        text = next((block.text for block in message.content if block.type == "text"), None)
        if text is None:
            raise ContentParseError("No text content in repair response")
        return text


def build_pipeline_config(settings: Settings) -> PipelineConfig:
    """Create provider clients once and bundle them with the pipeline policy."""
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY not set - lesson generation will fail")
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY not set - lesson verification will be unavailable")
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY not set - lesson repair will be unavailable")

    gemini = genai.Client(api_key=settings.gemini_api_key) if settings.gemini_api_key else None
    openai = AsyncOpenAI(api_key=settings.openai_api_key) if settings.openai_api_key else None
    anthropic = AsyncAnthropic(api_key=settings.anthropic_api_key) if settings.anthropic_api_key else None

    return PipelineConfig(
        generator=GeminiLessonGenerator(gemini, settings.generation_model, settings.content_language),
        verifier=OpenAILessonVerifier(openai, settings.verification_model),
        repairer=AnthropicLessonRepairer(
            anthropic, settings.repair_model, settings.llm_max_tokens, settings.content_language
        ),
        generation_timeout=settings.generation_timeout_seconds,
        verification_timeout=settings.verification_timeout_seconds,
        repair_timeout=settings.repair_timeout_seconds,
        verification_fail_open=settings.verification_fail_open,
    )
