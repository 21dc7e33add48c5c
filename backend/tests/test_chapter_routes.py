"""Tests for chapter creation, polling and answer submission."""

import pytest

from lessonlab.db.models import ChapterStatus

from tests.helpers import login_child, login_parent, photo_data_url


def chapter_body(child_id, **overrides) -> dict:
    body = {
        "child_id": str(child_id),
        "title": "Fractions",
        "subject": "math",
        "grade": 3,
        "photos": [
            {"photo_data": photo_data_url(b"page two"), "page_number": 2},
            {"photo_data": photo_data_url(b"page one"), "page_number": 1},
        ],
    }
    body.update(overrides)
    return body


# =============================================================================
# CREATE + POLL
# =============================================================================


async def test_create_chapter_generates_lesson(client, family, capabilities, storage):
    login_parent(client, family.parent)
    response = await client.post("/chapters/", json=chapter_body(family.child.id))

    assert response.status_code == 201
    chapter = response.json()["chapter"]
    assert chapter["status"] == "processing"
    assert chapter["content"] is None
    assert chapter["parent_id"] == str(family.parent.id)

    # The background task has run by the time the client gets the response
    polled = await client.get(f"/chapters/{chapter['id']}")
    assert polled.status_code == 200
    assert polled.json()["status"] == "ready"
    assert polled.json()["content"]["subject"] == "math"
    assert len(polled.json()["content"]["test"]) == 10

    # Pages reach the generator in page order
    (request,) = capabilities.generator.inputs[0]
    assert [image.data for image in request.images] == [b"page one", b"page two"]
    assert len(storage.photos) == 2


async def test_generation_failure_marks_error(client, family, capabilities):
    capabilities.generator.replies = [RuntimeError("model unavailable")]
    login_parent(client, family.parent)
    response = await client.post("/chapters/", json=chapter_body(family.child.id))
    chapter_id = response.json()["chapter"]["id"]

    polled = await client.get(f"/chapters/{chapter_id}")
    assert polled.json()["status"] == "error"
    assert polled.json()["content"] is None


async def test_cannot_create_for_another_familys_child(client, family, other_family, capabilities):
    login_parent(client, family.parent)
    response = await client.post("/chapters/", json=chapter_body(other_family.child.id))
    assert response.status_code == 403
    assert capabilities.generator.calls == 0


async def test_child_cannot_create_chapters(client, family):
    login_child(client, family.parent, family.child)
    response = await client.post("/chapters/", json=chapter_body(family.child.id))
    assert response.status_code == 401


@pytest.mark.parametrize(
    "body_overrides",
    [
        {"photos": []},
        {"photos": [{"photo_data": photo_data_url(media_type="image/gif"), "page_number": 1}]},
        {"photos": [{"photo_data": "data:image/png;base64,@@@", "page_number": 1}]},
        {"photos": [{"photo_data": "https://example.com/page.png", "page_number": 1}]},
        {"photos": [{"photo_data": photo_data_url(), "page_number": i + 1} for i in range(21)]},
        {"grade": 7},
        {"subject": "astrology"},
    ],
)
async def test_invalid_uploads_rejected(client, family, capabilities, storage, body_overrides):
    login_parent(client, family.parent)
    response = await client.post("/chapters/", json=chapter_body(family.child.id, **body_overrides))
    assert response.status_code == 400
    assert capabilities.generator.calls == 0
    assert storage.chapters == {}


async def test_generation_quota(client, family, capabilities, generation_limiter):
    login_parent(client, family.parent)
    for _ in range(generation_limiter.max_requests):
        assert (await client.post("/chapters/", json=chapter_body(family.child.id))).status_code == 201

    response = await client.post("/chapters/", json=chapter_body(family.child.id))
    assert response.status_code == 429
    assert "Retry-After" in response.headers
    # The rejected request did no pipeline work
    assert capabilities.generator.calls == generation_limiter.max_requests


async def test_rejected_uploads_do_not_use_quota(client, family, other_family, generation_limiter):
    login_parent(client, family.parent)
    bad_body = chapter_body(family.child.id, photos=[])
    foreign_child = chapter_body(other_family.child.id)
    for _ in range(generation_limiter.max_requests + 1):
        assert (await client.post("/chapters/", json=bad_body)).status_code == 400
        assert (await client.post("/chapters/", json=foreign_child)).status_code == 403

    assert generation_limiter.remaining(family.parent.id) == generation_limiter.max_requests
    assert (await client.post("/chapters/", json=chapter_body(family.child.id))).status_code == 201
    assert generation_limiter.remaining(family.parent.id) == generation_limiter.max_requests - 1


async def test_list_chapters(client, family, other_family, storage, ready_chapter):
    await storage.create_chapter(
        child_id=other_family.child.id, parent_id=other_family.parent.id, title="Other", subject="math", grade=2
    )
    login_parent(client, family.parent)
    response = await client.get("/chapters/")
    assert [c["id"] for c in response.json()] == [str(ready_chapter.id)]

    by_child = await client.get(f"/children/{family.child.id}/chapters")
    assert [c["id"] for c in by_child.json()] == [str(ready_chapter.id)]
    assert (await client.get(f"/children/{family.sibling.id}/chapters")).json() == []


async def test_chapter_visibility(client, family, other_family, ready_chapter):
    login_child(client, family.parent, family.child)
    assert (await client.get(f"/chapters/{ready_chapter.id}")).status_code == 200

    client.cookies.clear()
    login_child(client, family.parent, family.sibling)
    assert (await client.get(f"/chapters/{ready_chapter.id}")).status_code == 403

    client.cookies.clear()
    login_parent(client, other_family.parent)
    assert (await client.get(f"/chapters/{ready_chapter.id}")).status_code == 403

    client.cookies.clear()
    login_parent(client, family.parent)
    assert (await client.get(f"/chapters/{ready_chapter.id}")).status_code == 200
    assert (await client.get("/chapters/00000000-0000-0000-0000-000000000000")).status_code == 404


# =============================================================================
# SUBMIT
# =============================================================================


def answers(practice_correct: int = 5, test_correct: int = 7) -> dict:
    return {
        "practice_answers": ["A"] * practice_correct + ["B"] * (5 - practice_correct),
        "test_answers": ["A"] * test_correct + ["C"] * (10 - test_correct),
    }


async def test_submit_scores_and_rewards(client, family, storage, ready_chapter):
    login_child(client, family.parent, family.child)
    response = await client.post(f"/chapters/{ready_chapter.id}/submit", json=answers())

    assert response.status_code == 200
    result = response.json()["result"]
    assert (result["practice_score"], result["test_score"], result["total_score"]) == (5, 7, 12)
    assert result["stars"] == 4
    assert result["time_spent_seconds"] is None

    assert storage.chapters[ready_chapter.id].status == ChapterStatus.COMPLETED.value
    assert storage.chapters[ready_chapter.id].completed_at is not None
    assert storage.children[family.child.id].total_stars == 4

    (notification,) = storage.notifications.values()
    assert notification.user_id == family.parent.id
    assert notification.type == "chapter_complete"
    assert notification.data == {"child_id": str(family.child.id), "chapter_id": str(ready_chapter.id)}

    fetched = await client.get(f"/chapters/{ready_chapter.id}/result")
    assert fetched.json()["id"] == result["id"]


async def test_submit_respects_notification_preference(client, family, storage, ready_chapter):
    login_parent(client, family.parent)
    response = await client.patch("/notifications/preferences", json={"chapter_complete": False})
    assert response.status_code == 200

    client.cookies.clear()
    login_child(client, family.parent, family.child)
    await client.post(f"/chapters/{ready_chapter.id}/submit", json=answers())
    assert storage.notifications == {}


async def test_parent_cannot_submit(client, family, ready_chapter):
    login_parent(client, family.parent)
    response = await client.post(f"/chapters/{ready_chapter.id}/submit", json=answers())
    assert response.status_code == 403


async def test_sibling_cannot_submit(client, family, ready_chapter):
    login_child(client, family.parent, family.sibling)
    response = await client.post(f"/chapters/{ready_chapter.id}/submit", json=answers())
    assert response.status_code == 403


async def test_submit_before_ready(client, family, storage):
    chapter = await storage.create_chapter(
        child_id=family.child.id, parent_id=family.parent.id, title="Soon", subject="science", grade=2
    )
    login_child(client, family.parent, family.child)
    response = await client.post(f"/chapters/{chapter.id}/submit", json=answers())
    assert response.status_code == 400


async def test_too_many_answers_rejected(client, family, ready_chapter):
    login_child(client, family.parent, family.child)
    body = {"practice_answers": ["A"] * 6, "test_answers": []}
    response = await client.post(f"/chapters/{ready_chapter.id}/submit", json=body)
    assert response.status_code == 400


async def test_result_missing_before_submit(client, family, ready_chapter):
    login_parent(client, family.parent)
    assert (await client.get(f"/chapters/{ready_chapter.id}/result")).status_code == 404
