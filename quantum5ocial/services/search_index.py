"""Search index over platform entities.

Every job, product, organization, profile, question and post can be stored as a
`search_documents` row: a short "Type: ...\\nTitle: ..." text plus its embedding.
The assistant, the personalized feed and job recommendations query it with
`match_documents`: a pgvector cosine-distance query, nearest first, above a
similarity threshold.

Sync rules:
- upsert = delete the existing row for (type, link), then insert a fresh one
- link is the entity id, except organizations which use their slug
- bulk indexing skips links that are already present to save embedding cost
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import delete, select

from quantum5ocial.models import Job, Organization, Post, Product, Profile, QnaQuestion, SearchDocument
from quantum5ocial.services.errors import ConflictError, ValidationFailedError
from quantum5ocial.services.llm import LlmError, embed_text
from quantum5ocial.settings import get_settings
from quantum5ocial.stores.postgres import get_session
from quantum5ocial.stores.redis import REDIS_ERRORS, acquire_lock, release_lock

logger = logging.getLogger("uvicorn.error")

DOC_TYPES = ("job", "product", "organization", "profile", "question", "post")

REINDEX_LOCK_KEY = "search:reindex"


@dataclass(frozen=True)
class IndexDocument:
    doc_type: str
    link: str
    title: str | None
    content: str


@dataclass(frozen=True)
class DocumentMatch:
    doc_type: str
    link: str
    title: str | None
    content: str
    similarity: float


@dataclass
class IndexStats:
    inserted: int = 0
    skipped: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)


def _s(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def build_document(doc_type: str, data: dict[str, Any]) -> IndexDocument:
    """Render the indexed text for an entity.

    Raises:
        ValidationFailedError: unknown type or missing id/slug.
    """
    if doc_type == "job":
        title = _s(data.get("title"))
        content = (
            f"Type: Job\nTitle: {title}\nCompany: {_s(data.get('company_name'))}\n"
            f"Location: {_s(data.get('location')) or 'Remote'}\n"
            f"Details: {_s(data.get('additional_description'))}"
        )
    elif doc_type == "product":
        title = _s(data.get("name"))
        description = data.get("description") or data.get("short_description")
        content = (
            f"Type: Product\nName: {title}\nCompany: {_s(data.get('company_name'))}\n"
            f"Category: {_s(data.get('category'))}\nDescription: {_s(description)}"
        )
    elif doc_type == "organization":
        title = _s(data.get("name"))
        content = (
            f"Type: Organization\nName: {title}\nIndustry: {_s(data.get('industry'))}\n"
            f"Focus: {_s(data.get('focus_areas'))}\nDescription: {_s(data.get('description'))}"
        )
    elif doc_type == "profile":
        title = _s(data.get("full_name"))
        content = (
            f"Type: User Profile\nName: {title}\nRole: {_s(data.get('role'))}\n"
            f"Affiliation: {_s(data.get('affiliation'))}\nBio: {_s(data.get('short_bio'))}\n"
            f"Skills: {_s(data.get('skills'))}"
        )
    elif doc_type == "question":
        title = _s(data.get("title"))
        content = (
            f"Type: Q&A Question\nTitle: {title}\nBody: {_s(data.get('body'))}\n"
            f"Tags: {_s(data.get('tags'))}"
        )
    elif doc_type == "post":
        body = _s(data.get("body"))
        title = body[:80]
        content = f"Type: Post\nBody: {body}"
    else:
        raise ValidationFailedError(f"Invalid type: {doc_type}", code="INVALID_DOC_TYPE")

    link = data.get("slug") if doc_type == "organization" else data.get("id")
    if not link:
        raise ValidationFailedError("Missing ID/Slug for search sync", code="MISSING_LINK")

    return IndexDocument(doc_type=doc_type, link=str(link), title=title or None, content=content)


async def _insert_document(doc: IndexDocument) -> None:
    embedding = await embed_text(doc.content)
    async with get_session() as session:
        await session.execute(
            delete(SearchDocument).where(
                SearchDocument.doc_type == doc.doc_type,
                SearchDocument.link == doc.link,
            )
        )
        session.add(
            SearchDocument(
                doc_type=doc.doc_type,
                link=doc.link,
                title=doc.title,
                content=doc.content,
                embedding=embedding,
            )
        )


async def delete_document(doc_type: str, link: str) -> int:
    """Remove an entity from the index. Returns the number of rows deleted."""
    async with get_session() as session:
        result = await session.execute(
            delete(SearchDocument).where(SearchDocument.doc_type == doc_type, SearchDocument.link == link)
        )
        return result.rowcount or 0


async def sync_document(doc_type: str, data: dict[str, Any], action: str = "upsert") -> None:
    """Upsert or delete the index row for an entity."""
    if doc_type not in DOC_TYPES:
        raise ValidationFailedError(f"Invalid type: {doc_type}", code="INVALID_DOC_TYPE")

    if action == "delete":
        link = data.get("slug") if doc_type == "organization" else data.get("id")
        if not link:
            raise ValidationFailedError("Missing ID/Slug for search sync", code="MISSING_LINK")
        await delete_document(doc_type, str(link))
        return

    doc = build_document(doc_type, data)
    await _insert_document(doc)


async def try_sync_document(doc_type: str, data: dict[str, Any], action: str = "upsert") -> bool:
    """Best-effort sync used after writes; the write itself never fails because of it."""
    if action != "delete" and not get_settings().ai_available:
        return False
    try:
        await sync_document(doc_type, data, action)
        return True
    except (LlmError, ValidationFailedError) as e:
        logger.warning(f"[search] sync skipped type={doc_type} action={action}: {e}")
        return False
    except Exception:
        logger.exception(f"[search] sync failed type={doc_type} action={action}")
        return False


async def match_documents(
    query_embedding: list[float],
    *,
    count: int = 10,
    threshold: float | None = None,
    doc_type: str | None = None,
) -> list[DocumentMatch]:
    """Nearest documents to an embedding.

    Similarity is `1 - cosine distance`; only rows strictly above `threshold`
    are returned, best first, at most `count` of them.
    """
    if threshold is None:
        threshold = get_settings().search_match_threshold
    if count <= 0:
        return []

    distance = SearchDocument.embedding.cosine_distance(query_embedding)
    query = select(
        SearchDocument.doc_type,
        SearchDocument.link,
        SearchDocument.title,
        SearchDocument.content,
        (1 - distance).label("similarity"),
    ).where(distance < 1 - threshold)
    if doc_type:
        query = query.where(SearchDocument.doc_type == doc_type)
    query = query.order_by(distance).limit(count)

    async with get_session() as session:
        rows = (await session.execute(query)).all()

    return [
        DocumentMatch(
            doc_type=row.doc_type,
            link=row.link,
            title=row.title,
            content=row.content,
            similarity=float(row.similarity),
        )
        for row in rows
    ]


async def search_text(text: str, **kwargs: Any) -> list[DocumentMatch]:
    """Embed `text` and return its nearest documents."""
    embedding = await embed_text(text)
    return await match_documents(embedding, **kwargs)


def _row_data(obj: Any, columns: list[str]) -> dict[str, Any]:
    return {c: getattr(obj, c) for c in columns}


async def _collect_entities() -> list[tuple[str, dict[str, Any]]]:
    async with get_session() as session:
        jobs = (await session.execute(select(Job).where(Job.is_published.is_(True)))).scalars().all()
        products = (await session.execute(select(Product))).scalars().all()
        orgs = (await session.execute(select(Organization).where(Organization.is_active.is_(True)))).scalars().all()
        profiles = (await session.execute(select(Profile).where(Profile.full_name.is_not(None)))).scalars().all()
        questions = (await session.execute(select(QnaQuestion))).scalars().all()
        posts = (await session.execute(select(Post).order_by(Post.created_at.desc()).limit(500))).scalars().all()

    entities: list[tuple[str, dict[str, Any]]] = []
    entities += [("job", _row_data(j, ["id", "title", "company_name", "location", "additional_description"])) for j in jobs]
    entities += [("product", _row_data(p, ["id", "name", "company_name", "category", "short_description"])) for p in products]
    entities += [("organization", _row_data(o, ["slug", "name", "industry", "focus_areas", "description"])) for o in orgs]
    entities += [
        ("profile", _row_data(p, ["id", "full_name", "role", "affiliation", "short_bio", "skills"]))
        for p in profiles
        if (p.full_name or "").strip()
    ]
    entities += [("question", _row_data(q, ["id", "title", "body", "tags"])) for q in questions]
    entities += [("post", _row_data(p, ["id", "body"])) for p in posts]
    return entities


async def _existing_links() -> set[tuple[str, str]]:
    async with get_session() as session:
        rows = (await session.execute(select(SearchDocument.doc_type, SearchDocument.link))).all()
    return {(r[0], r[1]) for r in rows}


async def index_all() -> IndexStats:
    """Index every entity that is not in the index yet.

    Raises:
        ConflictError: another reindex holds the lock.
    """
    try:
        locked = await acquire_lock(REINDEX_LOCK_KEY)
    except REDIS_ERRORS as e:
        logger.warning(f"[search] Redis unavailable, reindexing without lock: {e}")
        locked = None
    if locked is False:
        raise ConflictError("Reindex already running", code="REINDEX_RUNNING")

    stats = IndexStats()
    try:
        existing = await _existing_links()
        for doc_type, data in await _collect_entities():
            try:
                doc = build_document(doc_type, data)
                if (doc.doc_type, doc.link) in existing:
                    stats.skipped += 1
                    continue
                await _insert_document(doc)
                stats.inserted += 1
            except (LlmError, ValidationFailedError) as e:
                stats.errors.append({"id": str(data.get("id") or data.get("slug")), "type": doc_type, "error": str(e)})
        logger.info(f"[search] reindex done inserted={stats.inserted} skipped={stats.skipped} errors={len(stats.errors)}")
        return stats
    finally:
        if locked:
            try:
                await release_lock(REINDEX_LOCK_KEY)
            except REDIS_ERRORS as e:
                logger.warning(f"[search] could not release reindex lock: {e}")
