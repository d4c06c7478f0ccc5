"""Route tests with service calls patched out (no Postgres, Redis or OpenAI)."""

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from quantum5ocial.schemas.feed import LikeToggleResponse, PersonalizedFeedResponse, PersonalizedMeta, PostItem
from quantum5ocial.schemas.messages import MessageOut
from quantum5ocial.services.badge import BadgeResult
from quantum5ocial.services.errors import ConflictError, ForbiddenError
from quantum5ocial.services.search_index import DocumentMatch, IndexStats
from quantum5ocial.settings import get_settings

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_badge_preview(client: AsyncClient):
    response = await client.get(
        "/v1/badges/preview",
        params={"involvement": 4, "contribution": 4, "impact": 4, "education": "PhD"},
    )
    assert response.status_code == 200
    assert response.json() == {
        "level": 5,
        "label": "Q5-Authority",
        "review_status": "pending",
        "rationale": "Authority is reviewed for verification.",
    }


@pytest.mark.asyncio
async def test_badge_preview_rejects_out_of_range(client: AsyncClient):
    response = await client.get("/v1/badges/preview", params={"involvement": 5, "contribution": 0, "impact": 0})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_badge_claim(client: AsyncClient, signed_in: str, monkeypatch: pytest.MonkeyPatch):
    from quantum5ocial.routes import badges as badge_routes

    async def fake_claim_badge(user_id, answers):
        assert answers.involvement == 2
        return BadgeResult(level=2, label="Q5-Practitioner", review_status="auto", rationale="r"), NOW

    monkeypatch.setattr(badge_routes, "claim_badge", fake_claim_badge)

    response = await client.post(
        "/v1/badges/claim",
        json={"involvement": 2, "contribution": 3, "impact": 1, "education": "Master", "role_context": "PhD student"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["user_id"] == signed_in
    assert data["result"]["label"] == "Q5-Practitioner"


@pytest.mark.asyncio
async def test_feed_passes_filters(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    from quantum5ocial.routes import feed as feed_routes

    seen: dict = {}

    async def fake_load_feed(*, viewer_id, limit, user_id, org_id, post_ids):
        seen.update(viewer_id=viewer_id, limit=limit, user_id=user_id, post_ids=post_ids)
        return [PostItem(id="p1", user_id="u2", body="Hello qubits", created_at=NOW, like_count=3)]

    monkeypatch.setattr(feed_routes, "load_feed", fake_load_feed)

    response = await client.get("/v1/feed", params={"limit": 5, "user_id": "u2", "ids": ["p1", "p2"]})
    assert response.status_code == 200
    assert response.json()["count"] == 1
    assert response.json()["items"][0]["like_count"] == 3
    assert seen == {"viewer_id": None, "limit": 5, "user_id": "u2", "post_ids": ["p1", "p2"]}


@pytest.mark.asyncio
async def test_personalized_feed(client: AsyncClient, signed_in: str, monkeypatch: pytest.MonkeyPatch):
    from quantum5ocial.routes import feed as feed_routes

    async def fake_personalized_feed(user_id):
        return PersonalizedFeedResponse(post_ids=["a", "b"], meta=PersonalizedMeta(social_count=1, semantic_count=1))

    monkeypatch.setattr(feed_routes, "personalized_feed", fake_personalized_feed)

    response = await client.get("/v1/feed/personalized")
    assert response.status_code == 200
    assert response.json() == {"post_ids": ["a", "b"], "meta": {"social_count": 1, "semantic_count": 1}}


@pytest.mark.asyncio
async def test_like_and_forbidden_delete(client: AsyncClient, signed_in: str, monkeypatch: pytest.MonkeyPatch):
    from quantum5ocial.routes import feed as feed_routes

    async def fake_toggle_like(user_id, post_id):
        return LikeToggleResponse(liked=True, like_count=1)

    async def fake_delete_post(user_id, post_id):
        raise ForbiddenError("Only the author can delete this post", code="NOT_OWNER")

    monkeypatch.setattr(feed_routes, "toggle_like", fake_toggle_like)
    monkeypatch.setattr(feed_routes, "delete_post", fake_delete_post)

    response = await client.post("/v1/feed/p1/like")
    assert response.json() == {"liked": True, "like_count": 1}

    response = await client.delete("/v1/feed/p1")
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "NOT_OWNER"


@pytest.mark.asyncio
async def test_send_message(client: AsyncClient, signed_in: str, monkeypatch: pytest.MonkeyPatch):
    from quantum5ocial.routes import messages as message_routes

    async def fake_send_message(thread_id, sender_id, body):
        return MessageOut(
            id="m1", thread_id=thread_id, sender_id=sender_id, recipient_id="u2", body=body, created_at=NOW
        )

    monkeypatch.setattr(message_routes, "send_message", fake_send_message)

    response = await client.post("/v1/messages/threads/t1/messages", json={"body": "hi"})
    assert response.status_code == 201
    assert response.json()["sender_id"] == signed_in
    assert response.json()["recipient_id"] == "u2"


@pytest.mark.asyncio
async def test_empty_message_rejected(client: AsyncClient, signed_in: str):
    response = await client.post("/v1/messages/threads/t1/messages", json={"body": ""})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_recommended_jobs(client: AsyncClient, signed_in: str, monkeypatch: pytest.MonkeyPatch):
    from quantum5ocial.routes import jobs as job_routes

    async def fake_recommend_jobs(user_id):
        return ["j1", "j2"]

    monkeypatch.setattr(job_routes, "recommend_jobs", fake_recommend_jobs)

    response = await client.get("/v1/jobs/recommended")
    assert response.status_code == 200
    assert response.json() == {"job_ids": ["j1", "j2"]}


@pytest.mark.asyncio
async def test_chat_returns_reply_and_sources(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    from quantum5ocial.routes import chat as chat_routes

    async def fake_chat(messages, user_profile=None):
        assert messages[-1] == {"role": "user", "content": "any cryostats?"}
        return "See [Fridge](/products/p1)", [
            DocumentMatch(doc_type="product", link="p1", title="Fridge", content="...", similarity=0.812345)
        ]

    monkeypatch.setattr(chat_routes, "chat", fake_chat)

    response = await client.post("/v1/chat", json={"messages": [{"role": "user", "content": "any cryostats?"}]})
    assert response.status_code == 200
    data = response.json()
    assert data["reply"].startswith("See")
    assert data["sources"] == [{"doc_type": "product", "link": "p1", "title": "Fridge", "similarity": 0.8123}]


@pytest.mark.asyncio
async def test_chat_unavailable_when_ai_disabled(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(get_settings(), "ai_enabled", False)

    response = await client.post("/v1/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert response.status_code == 503
    assert response.json()["error"]["code"] == "AI_UNAVAILABLE"


@pytest.mark.asyncio
async def test_admin_requires_token(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(get_settings(), "admin_token", "s3cret")

    response = await client.post("/v1/admin/search/index-all")
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "ADMIN_FORBIDDEN"


@pytest.mark.asyncio
async def test_admin_index_all(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    from quantum5ocial.routes import admin as admin_routes

    monkeypatch.setattr(get_settings(), "admin_token", "s3cret")

    async def fake_index_all():
        return IndexStats(inserted=3, skipped=2, errors=[{"id": "x", "type": "job", "error": "boom"}])

    monkeypatch.setattr(admin_routes, "index_all", fake_index_all)

    response = await client.post("/v1/admin/search/index-all", headers={"X-Admin-Token": "s3cret"})
    assert response.status_code == 200
    assert response.json() == {
        "message": "Indexing complete",
        "inserted_count": 3,
        "skipped_count": 2,
        "errors": [{"id": "x", "type": "job", "error": "boom"}],
    }


@pytest.mark.asyncio
async def test_admin_index_all_conflict(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    from quantum5ocial.routes import admin as admin_routes

    monkeypatch.setattr(get_settings(), "admin_token", "s3cret")

    async def fake_index_all():
        raise ConflictError("Reindex already running", code="REINDEX_RUNNING")

    monkeypatch.setattr(admin_routes, "index_all", fake_index_all)

    response = await client.post("/v1/admin/search/index-all", headers={"X-Admin-Token": "s3cret"})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "REINDEX_RUNNING"
