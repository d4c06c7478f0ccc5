"""Social feed: posts, likes, comments and the personalized ordering."""

import logging
from collections.abc import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quantum5ocial.models import Organization, Post, PostComment, PostLike
from quantum5ocial.schemas import OrgLite
from quantum5ocial.schemas.feed import CommentOut, LikeToggleResponse, PersonalizedFeedResponse, PersonalizedMeta, PostItem
from quantum5ocial.services.entanglements import entangled_user_ids
from quantum5ocial.services.errors import ForbiddenError, NotFoundError, ValidationFailedError
from quantum5ocial.services.formatting import load_profile_map, time_ago
from quantum5ocial.services.llm import LlmError
from quantum5ocial.services.members import ensure_profile_row
from quantum5ocial.services.orgs import is_member
from quantum5ocial.services.profiles import load_interest_text
from quantum5ocial.services.search_index import search_text, try_sync_document
from quantum5ocial.settings import get_settings
from quantum5ocial.stores.postgres import get_session

logger = logging.getLogger("uvicorn.error")

FEED_DEFAULT_LIMIT = 20
FEED_MAX_LIMIT = 100

SOCIAL_POST_LIMIT = 20
SEMANTIC_CANDIDATES = 40


def dedupe_preserving_order(*groups: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for group in groups:
        for item in group:
            if item not in seen:
                seen.add(item)
                out.append(item)
    return out


async def _count_by(session: AsyncSession, column, post_ids: list[str]) -> dict[str, int]:
    if not post_ids:
        return {}
    result = await session.execute(
        select(column, func.count()).where(column.in_(post_ids)).group_by(column)
    )
    return {row[0]: int(row[1]) for row in result.all()}


async def _build_items(session: AsyncSession, posts: list[Post], viewer_id: str | None) -> list[PostItem]:
    post_ids = [p.id for p in posts]
    likes = await _count_by(session, PostLike.post_id, post_ids)
    comments = await _count_by(session, PostComment.post_id, post_ids)
    authors = await load_profile_map(session, [p.user_id for p in posts])

    org_ids = {p.org_id for p in posts if p.org_id}
    orgs: dict[str, OrgLite] = {}
    if org_ids:
        result = await session.execute(select(Organization).where(Organization.id.in_(org_ids)))
        orgs = {o.id: OrgLite.model_validate(o) for o in result.scalars().all()}

    liked: set[str] = set()
    if viewer_id and post_ids:
        result = await session.execute(
            select(PostLike.post_id).where(PostLike.user_id == viewer_id, PostLike.post_id.in_(post_ids))
        )
        liked = set(result.scalars().all())

    return [
        PostItem(
            id=p.id,
            user_id=p.user_id,
            org_id=p.org_id,
            body=p.body,
            image_url=p.image_url,
            created_at=p.created_at,
            time_ago=time_ago(p.created_at),
            author=authors.get(p.user_id),
            org=orgs.get(p.org_id) if p.org_id else None,
            like_count=likes.get(p.id, 0),
            comment_count=comments.get(p.id, 0),
            liked_by_me=p.id in liked,
        )
        for p in posts
    ]


async def load_feed(
    *,
    viewer_id: str | None = None,
    limit: int = FEED_DEFAULT_LIMIT,
    user_id: str | None = None,
    org_id: str | None = None,
    post_ids: list[str] | None = None,
) -> list[PostItem]:
    """Newest posts first, optionally for one author, one organization or a given id set."""
    limit = max(1, min(limit, FEED_MAX_LIMIT))
    query = select(Post)
    if user_id:
        query = query.where(Post.user_id == user_id)
    if org_id:
        query = query.where(Post.org_id == org_id)
    if post_ids is not None:
        if not post_ids:
            return []
        query = query.where(Post.id.in_(post_ids))
    query = query.order_by(Post.created_at.desc()).limit(limit)

    async with get_session() as session:
        posts = list((await session.execute(query)).scalars().all())
        return await _build_items(session, posts, viewer_id)


async def create_post(user_id: str, body: str, image_url: str | None = None, org_id: str | None = None) -> PostItem:
    text = body.strip()
    if not text:
        raise ValidationFailedError("Post body cannot be empty", code="EMPTY_BODY")
    if org_id and not await is_member(org_id, user_id):
        raise ForbiddenError("Only members can post for this organization", code="ORG_FORBIDDEN")

    async with get_session() as session:
        await ensure_profile_row(session, user_id)
        post = Post(user_id=user_id, org_id=org_id, body=text, image_url=image_url)
        session.add(post)
        await session.flush()
        await session.refresh(post)
        item = (await _build_items(session, [post], user_id))[0]

    await try_sync_document("post", {"id": item.id, "body": item.body})
    return item


async def delete_post(user_id: str, post_id: str) -> None:
    async with get_session() as session:
        post = await session.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found", code="POST_NOT_FOUND")
        if post.user_id != user_id:
            raise ForbiddenError("You can only delete your own posts", code="NOT_OWNER")
        await session.delete(post)

    await try_sync_document("post", {"id": post_id}, action="delete")


async def _like_count(session: AsyncSession, post_id: str) -> int:
    result = await session.execute(select(func.count(PostLike.id)).where(PostLike.post_id == post_id))
    return int(result.scalar() or 0)


async def toggle_like(user_id: str, post_id: str) -> LikeToggleResponse:
    """Like or unlike; the returned count is never negative."""
    async with get_session() as session:
        if await session.get(Post, post_id) is None:
            raise NotFoundError("Post not found", code="POST_NOT_FOUND")
        await ensure_profile_row(session, user_id)

        result = await session.execute(
            delete(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user_id)
        )
        if result.rowcount:
            liked = False
        else:
            session.add(PostLike(post_id=post_id, user_id=user_id))
            liked = True
        await session.flush()
        count = await _like_count(session, post_id)

    return LikeToggleResponse(liked=liked, like_count=max(0, count))


async def list_comments(post_id: str) -> list[CommentOut]:
    async with get_session() as session:
        result = await session.execute(
            select(PostComment).where(PostComment.post_id == post_id).order_by(PostComment.created_at.asc())
        )
        rows = list(result.scalars().all())
        authors = await load_profile_map(session, [c.user_id for c in rows])

    return [
        CommentOut(
            id=c.id,
            post_id=c.post_id,
            user_id=c.user_id,
            body=c.body,
            created_at=c.created_at,
            time_ago=time_ago(c.created_at),
            author=authors.get(c.user_id),
        )
        for c in rows
    ]


async def add_comment(user_id: str, post_id: str, body: str) -> CommentOut:
    text = body.strip()
    if not text:
        raise ValidationFailedError("Comment cannot be empty", code="EMPTY_BODY")

    async with get_session() as session:
        if await session.get(Post, post_id) is None:
            raise NotFoundError("Post not found", code="POST_NOT_FOUND")
        await ensure_profile_row(session, user_id)
        comment = PostComment(post_id=post_id, user_id=user_id, body=text)
        session.add(comment)
        await session.flush()
        await session.refresh(comment)
        authors = await load_profile_map(session, [user_id])

    return CommentOut(
        id=comment.id,
        post_id=comment.post_id,
        user_id=comment.user_id,
        body=comment.body,
        created_at=comment.created_at,
        time_ago=time_ago(comment.created_at),
        author=authors.get(user_id),
    )


async def _social_post_ids(user_id: str) -> list[str]:
    connected = await entangled_user_ids(user_id)
    if not connected:
        return []
    async with get_session() as session:
        result = await session.execute(
            select(Post.id)
            .where(Post.user_id.in_(connected))
            .order_by(Post.created_at.desc())
            .limit(SOCIAL_POST_LIMIT)
        )
        return list(result.scalars().all())


async def _semantic_post_ids(user_id: str) -> list[str]:
    if not get_settings().ai_available:
        return []
    text = await load_interest_text(user_id)
    if not text:
        return []
    try:
        matches = await search_text(text, count=SEMANTIC_CANDIDATES)
    except LlmError as e:
        logger.warning(f"[feed] semantic match skipped: {e}")
        return []
    return [m.link for m in matches if m.doc_type == "post"]


async def personalized_feed(user_id: str | None) -> PersonalizedFeedResponse:
    """Posts from entangled members first, then posts matching the viewer's interests."""
    if not user_id:
        return PersonalizedFeedResponse(post_ids=[])

    social = await _social_post_ids(user_id)
    semantic = await _semantic_post_ids(user_id)

    return PersonalizedFeedResponse(
        post_ids=dedupe_preserving_order(social, semantic),
        meta=PersonalizedMeta(social_count=len(social), semantic_count=len(semantic)),
    )
