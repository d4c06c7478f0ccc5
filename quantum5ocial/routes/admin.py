"""Admin endpoints for search index management.

All endpoints require the `X-Admin-Token` header to match ADMIN_TOKEN.
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query

from quantum5ocial.schemas.chat import IndexAllResponse, SearchSyncRequest, SearchSyncResponse
from quantum5ocial.services.auth import require_admin
from quantum5ocial.services.search_index import DocumentMatch, index_all, search_text, sync_document

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/search/sync", response_model=SearchSyncResponse)
async def search_sync(request: SearchSyncRequest) -> SearchSyncResponse:
    """Upsert or delete one entity in the search index."""
    await sync_document(request.type, request.data, request.action)
    return SearchSyncResponse(success=True)


@router.post("/search/index-all", response_model=IndexAllResponse)
async def search_index_all() -> IndexAllResponse:
    """Index every entity not yet in the search index."""
    stats = await index_all()
    return IndexAllResponse(
        message="Indexing complete",
        inserted_count=stats.inserted,
        skipped_count=stats.skipped,
        errors=stats.errors,
    )


@router.get("/search/query")
async def search_query(
    q: str = Query(min_length=1, max_length=500),
    count: int = Query(default=10, ge=1, le=50),
    doc_type: str | None = Query(default=None, alias="type"),
) -> dict:
    """Inspect what the index returns for a query (debugging retrieval)."""
    matches: list[DocumentMatch] = await search_text(q, count=count, doc_type=doc_type)
    return {"count": len(matches), "matches": [asdict(m) for m in matches]}
