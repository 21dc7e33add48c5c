"""Pytest configuration and fixtures."""

import os

# Settings are read at import time, so these must be set before lessonlab loads
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("ENVIRONMENT", "development")

from collections.abc import AsyncGenerator
from dataclasses import dataclass

import pytest
from httpx import ASGITransport, AsyncClient

from lessonlab.api.deps import get_generation_limiter, get_login_limiter, get_pipeline
from lessonlab.config import get_settings
from lessonlab.db.storage import get_storage, get_storage_opener
from lessonlab.main import app
from lessonlab.services.pipeline import ContentPipeline, PipelineConfig
from lessonlab.services.quota import RollingWindowLimiter
from lessonlab.schemas.lessons import LessonContent

from tests.fakes import (
    PASS,
    FakeGenerator,
    FakeRepairer,
    FakeVerifier,
    InMemoryStorage,
    lesson_json,
    make_lesson,
)


@dataclass
class Capabilities:
    generator: FakeGenerator
    verifier: FakeVerifier
    repairer: FakeRepairer


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def capabilities() -> Capabilities:
    """Happy-path capabilities; tests replace the replies they care about."""
    return Capabilities(
        generator=FakeGenerator(lesson_json()),
        verifier=FakeVerifier(PASS),
        repairer=FakeRepairer(lesson_json("Repaired lesson")),
    )


@pytest.fixture
def pipeline(capabilities: Capabilities) -> ContentPipeline:
    return ContentPipeline(
        PipelineConfig(
            generator=capabilities.generator,
            verifier=capabilities.verifier,
            repairer=capabilities.repairer,
            generation_timeout=1.0,
            verification_timeout=1.0,
            repair_timeout=1.0,
        )
    )


@pytest.fixture
def generation_limiter() -> RollingWindowLimiter:
    return RollingWindowLimiter(3, 3600)


@pytest.fixture
def login_limiter() -> RollingWindowLimiter:
    return RollingWindowLimiter(5, 900)


@pytest.fixture
def overrides(storage, pipeline, generation_limiter, login_limiter):
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_storage_opener] = lambda: storage.opener
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_generation_limiter] = lambda: generation_limiter
    app.dependency_overrides[get_login_limiter] = lambda: login_limiter
    yield
    app.dependency_overrides.clear()


def _new_client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.fixture
async def client(overrides) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    async with _new_client() as ac:
        yield ac


@pytest.fixture
async def other_client(overrides) -> AsyncGenerator[AsyncClient, None]:
    """Second client with its own cookie jar, for a second family."""
    async with _new_client() as ac:
        yield ac


# =============================================================================
# SEED DATA
# =============================================================================


@dataclass
class Family:
    parent: object
    child: object
    sibling: object


@pytest.fixture
async def family(storage: InMemoryStorage) -> Family:
    parent = await storage.create_parent(email="amal@example.com", password_hash="x", full_name="Amal")
    child = await storage.create_child(parent_id=parent.id, name="Sara", age=8)
    sibling = await storage.create_child(parent_id=parent.id, name="Omar", age=10)
    return Family(parent=parent, child=child, sibling=sibling)


@pytest.fixture
async def other_family(storage: InMemoryStorage) -> Family:
    parent = await storage.create_parent(email="huda@example.com", password_hash="x", full_name="Huda")
    child = await storage.create_child(parent_id=parent.id, name="Lina", age=7)
    sibling = await storage.create_child(parent_id=parent.id, name="Yusuf", age=9)
    return Family(parent=parent, child=child, sibling=sibling)


@pytest.fixture
async def ready_chapter(storage: InMemoryStorage, family: Family):
    """A chapter for family.child whose lesson has every answer 'A'."""
    chapter = await storage.create_chapter(
        child_id=family.child.id,
        parent_id=family.parent.id,
        title="Fractions",
        subject="math",
        grade=3,
    )
    await storage.update_chapter_content(chapter.id, LessonContent.model_validate(make_lesson()))
    return chapter
