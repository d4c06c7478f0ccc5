"""Social feed endpoints."""

from fastapi import APIRouter, Depends, Query, Response

from quantum5ocial.schemas.feed import (
    CommentCreate,
    CommentOut,
    FeedResponse,
    LikeToggleResponse,
    PersonalizedFeedResponse,
    PostCreate,
    PostItem,
)
from quantum5ocial.services.auth import get_current_user_id, get_optional_user_id
from quantum5ocial.services.feed import (
    FEED_DEFAULT_LIMIT,
    FEED_MAX_LIMIT,
    add_comment,
    create_post,
    delete_post,
    list_comments,
    load_feed,
    personalized_feed,
    toggle_like,
)

router = APIRouter()


@router.get("", response_model=FeedResponse)
async def get_feed(
    limit: int = Query(default=FEED_DEFAULT_LIMIT, ge=1, le=FEED_MAX_LIMIT),
    user_id: str | None = Query(default=None, description="Only posts by this member"),
    org_id: str | None = Query(default=None, description="Only posts for this organization"),
    ids: list[str] | None = Query(default=None, description="Only these post ids"),
    viewer_id: str | None = Depends(get_optional_user_id),
) -> FeedResponse:
    """Newest posts first with author, organization and engagement counts."""
    items = await load_feed(viewer_id=viewer_id, limit=limit, user_id=user_id, org_id=org_id, post_ids=ids)
    return FeedResponse(count=len(items), items=items)


@router.get("/personalized", response_model=PersonalizedFeedResponse)
async def get_personalized(viewer_id: str | None = Depends(get_optional_user_id)) -> PersonalizedFeedResponse:
    """Post ids from entangled members, then posts matching the caller's interests."""
    return await personalized_feed(viewer_id)


@router.post("", response_model=PostItem, status_code=201)
async def post(data: PostCreate, user_id: str = Depends(get_current_user_id)) -> PostItem:
    return await create_post(user_id, data.body, image_url=data.image_url, org_id=data.org_id)


@router.delete("/{post_id}", status_code=204)
async def remove(post_id: str, user_id: str = Depends(get_current_user_id)) -> Response:
    await delete_post(user_id, post_id)
    return Response(status_code=204)


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
async def like(post_id: str, user_id: str = Depends(get_current_user_id)) -> LikeToggleResponse:
    return await toggle_like(user_id, post_id)


@router.get("/{post_id}/comments", response_model=list[CommentOut])
async def comments(post_id: str) -> list[CommentOut]:
    return await list_comments(post_id)


@router.post("/{post_id}/comments", response_model=CommentOut, status_code=201)
async def comment(post_id: str, data: CommentCreate, user_id: str = Depends(get_current_user_id)) -> CommentOut:
    return await add_comment(user_id, post_id, data.body)
