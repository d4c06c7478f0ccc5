"""Tests for search index documents, vector matching and reindexing."""

from contextlib import asynccontextmanager
from types import SimpleNamespace

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.dialects import postgresql

from quantum5ocial.services import search_index
from quantum5ocial.services.errors import ConflictError, ValidationFailedError
from quantum5ocial.services.search_index import (
    build_document,
    index_all,
    match_documents,
    sync_document,
    try_sync_document,
)


def test_job_document():
    doc = build_document(
        "job",
        {"id": "j1", "title": "Quantum Engineer", "company_name": "Qubit Labs", "location": None,
         "additional_description": "Cryogenics"},
    )
    assert doc.link == "j1"
    assert doc.title == "Quantum Engineer"
    assert doc.content == (
        "Type: Job\nTitle: Quantum Engineer\nCompany: Qubit Labs\nLocation: Remote\nDetails: Cryogenics"
    )


def test_product_document_falls_back_to_short_description():
    doc = build_document(
        "product",
        {"id": "p1", "name": "Dilution Fridge", "company_name": "ColdCo", "category": "Cryogenics",
         "short_description": "10 mK base temperature"},
    )
    assert "Description: 10 mK base temperature" in doc.content
    assert doc.content.startswith("Type: Product\nName: Dilution Fridge")


def test_organization_document_links_by_slug():
    doc = build_document(
        "organization",
        {"id": "o1", "slug": "qubit-labs", "name": "Qubit Labs", "industry": "Hardware",
         "focus_areas": "superconducting qubits", "description": None},
    )
    assert doc.link == "qubit-labs"
    assert "Focus: superconducting qubits" in doc.content


def test_profile_and_question_documents():
    profile = build_document("profile", {"id": "u1", "full_name": "Ada", "role": "Researcher", "skills": "QEC"})
    assert profile.content.startswith("Type: User Profile\nName: Ada")
    assert profile.content.endswith("Skills: QEC")

    question = build_document("question", {"id": "q1", "title": "Why QEC?", "body": "...", "tags": ["qec", "codes"]})
    assert question.content.endswith("Tags: qec, codes")


def test_post_document_title_is_truncated_body():
    body = "x" * 200
    doc = build_document("post", {"id": "p1", "body": body})
    assert doc.title == "x" * 80
    assert doc.content == f"Type: Post\nBody: {body}"


def test_invalid_type_rejected():
    with pytest.raises(ValidationFailedError) as e:
        build_document("tweet", {"id": "1"})
    assert e.value.code == "INVALID_DOC_TYPE"


def test_missing_link_rejected():
    with pytest.raises(ValidationFailedError) as e:
        build_document("organization", {"id": "o1", "name": "No Slug"})
    assert e.value.code == "MISSING_LINK"


@pytest.mark.asyncio
async def test_sync_document_rejects_unknown_type_for_delete():
    with pytest.raises(ValidationFailedError):
        await sync_document("tweet", {"id": "1"}, action="delete")


@pytest.mark.asyncio
async def test_try_sync_document_skips_upsert_when_ai_disabled(monkeypatch: pytest.MonkeyPatch):
    from quantum5ocial.settings import get_settings

    monkeypatch.setattr(get_settings(), "ai_enabled", False)
    assert await try_sync_document("post", {"id": "p1", "body": "hello"}) is False


class _CapturingSession:
    def __init__(self, rows):
        self.rows = rows
        self.statements = []

    async def execute(self, statement):
        self.statements.append(statement)
        return SimpleNamespace(all=lambda: self.rows)


def _patch_session(monkeypatch: pytest.MonkeyPatch, session: _CapturingSession) -> None:
    @asynccontextmanager
    async def fake_get_session():
        yield session

    monkeypatch.setattr(search_index, "get_session", fake_get_session)


@pytest.mark.asyncio
async def test_match_documents_orders_and_limits_in_sql(monkeypatch: pytest.MonkeyPatch):
    row = SimpleNamespace(doc_type="job", link="j1", title="Quantum Engineer", content="Type: Job", similarity=0.91)
    session = _CapturingSession([row])
    _patch_session(monkeypatch, session)

    matches = await match_documents([0.1, 0.2, 0.3], count=3, threshold=0.5, doc_type="job")

    assert [(m.link, m.similarity) for m in matches] == [("j1", 0.91)]
    compiled = session.statements[0].compile(dialect=postgresql.dialect())
    sql = str(compiled)
    assert "<=>" in sql
    assert "ORDER BY" in sql
    assert "LIMIT" in sql
    assert "search_documents.doc_type = " in sql
    assert 3 in compiled.params.values()
    assert "job" in compiled.params.values()


@pytest.mark.asyncio
async def test_match_documents_zero_count_skips_query(monkeypatch: pytest.MonkeyPatch):
    session = _CapturingSession([])
    _patch_session(monkeypatch, session)

    assert await match_documents([1.0], count=0) == []
    assert session.statements == []


@pytest.mark.asyncio
async def test_index_all_refuses_when_lock_is_held(monkeypatch: pytest.MonkeyPatch):
    released = []

    async def held(key, ttl=900):
        return False

    async def collect():
        raise AssertionError("must not index while another run holds the lock")

    async def release(key):
        released.append(key)

    monkeypatch.setattr(search_index, "acquire_lock", held)
    monkeypatch.setattr(search_index, "release_lock", release)
    monkeypatch.setattr(search_index, "_collect_entities", collect)

    with pytest.raises(ConflictError) as e:
        await index_all()
    assert e.value.code == "REINDEX_RUNNING"
    assert released == []


@pytest.mark.asyncio
async def test_index_all_runs_unguarded_when_redis_is_down(monkeypatch: pytest.MonkeyPatch):
    inserted = []

    async def unreachable(key, ttl=900):
        raise RedisConnectionError("Connection refused")

    async def existing():
        return {("post", "p1")}

    async def collect():
        return [("post", {"id": "p1", "body": "old"}), ("post", {"id": "p2", "body": "new"})]

    async def insert(doc):
        inserted.append(doc.link)

    monkeypatch.setattr(search_index, "acquire_lock", unreachable)
    monkeypatch.setattr(search_index, "_existing_links", existing)
    monkeypatch.setattr(search_index, "_collect_entities", collect)
    monkeypatch.setattr(search_index, "_insert_document", insert)

    stats = await index_all()

    assert (stats.inserted, stats.skipped, stats.errors) == (1, 1, [])
    assert inserted == ["p2"]
