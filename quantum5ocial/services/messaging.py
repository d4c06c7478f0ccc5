"""Direct messaging between entangled members.

Threads are keyed by the ordered pair (user1 < user2). New messages are stored
in Postgres and published on the thread's Redis channel; WebSocket clients
subscribed to that channel merge them into their local list by id.
"""

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quantum5ocial.models import DmMessage, DmThread, Profile
from quantum5ocial.schemas.messages import InboxItem, MessageOut, ThreadDetail, ThreadOut
from quantum5ocial.services.entanglements import is_entangled
from quantum5ocial.services.errors import ForbiddenError, NotFoundError, ValidationFailedError
from quantum5ocial.services.formatting import load_profile_map
from quantum5ocial.stores.postgres import get_session
from quantum5ocial.stores.redis import REDIS_ERRORS, publish_dm_message

logger = logging.getLogger("uvicorn.error")

MESSAGE_PAGE_LIMIT = 500


def ordered_pair(a: str, b: str) -> tuple[str, str]:
    """(user1, user2) with user1 < user2."""
    return (a, b) if a < b else (b, a)


def merge_message(
    messages: Sequence[Mapping[str, Any]],
    row: Mapping[str, Any],
    participants: tuple[str, str],
) -> list[dict[str, Any]]:
    """Append a realtime message unless its id is already present or the sender is not in the thread."""
    current = [dict(m) for m in messages]
    if row.get("sender_id") not in participants:
        return current
    if any(m.get("id") == row.get("id") for m in current):
        return current
    current.append(dict(row))
    return current


async def _get_thread_for(session: AsyncSession, thread_id: str, user_id: str) -> DmThread:
    thread = await session.get(DmThread, thread_id)
    if thread is None:
        raise NotFoundError("Thread not found", code="THREAD_NOT_FOUND")
    if not thread.has_participant(user_id):
        raise ForbiddenError("Not a participant of this thread", code="NOT_PARTICIPANT")
    return thread


async def get_thread_participants(thread_id: str, user_id: str) -> tuple[str, str]:
    async with get_session() as session:
        thread = await _get_thread_for(session, thread_id, user_id)
        return thread.user1, thread.user2


async def open_or_create_thread(viewer_id: str, other_id: str) -> ThreadOut:
    """Return the existing thread for the pair, or start one if the members are entangled."""
    if viewer_id == other_id:
        raise ValidationFailedError("You cannot message yourself", code="SELF_MESSAGE")

    user1, user2 = ordered_pair(viewer_id, other_id)
    async with get_session() as session:
        result = await session.execute(
            select(DmThread).where(DmThread.user1 == user1, DmThread.user2 == user2)
        )
        thread = result.scalar_one_or_none()
        if thread is not None:
            return ThreadOut.model_validate(thread)

        if await session.get(Profile, other_id) is None:
            raise NotFoundError("Profile not found", code="PROFILE_NOT_FOUND", detail={"user_id": other_id})

    if not await is_entangled(viewer_id, other_id):
        raise ForbiddenError("You can only message members you are entangled with", code="NOT_ENTANGLED")

    async with get_session() as session:
        thread = DmThread(user1=user1, user2=user2)
        session.add(thread)
        await session.flush()
        await session.refresh(thread)
        logger.info(f"DM thread opened {thread.id}")
        return ThreadOut.model_validate(thread)


async def list_inbox(user_id: str) -> list[InboxItem]:
    """Viewer's threads, most recent activity first."""
    async with get_session() as session:
        result = await session.execute(
            select(DmThread)
            .where(or_(DmThread.user1 == user_id, DmThread.user2 == user_id))
            .order_by(func.coalesce(DmThread.last_message_at, DmThread.created_at).desc())
        )
        threads = list(result.scalars().all())
        if not threads:
            return []

        thread_ids = [t.id for t in threads]
        profiles = await load_profile_map(session, [t.other_id(user_id) for t in threads])

        latest = (
            select(DmMessage.thread_id, func.max(DmMessage.created_at).label("latest"))
            .where(DmMessage.thread_id.in_(thread_ids))
            .group_by(DmMessage.thread_id)
            .subquery()
        )
        last_rows = await session.execute(
            select(DmMessage).join(
                latest,
                and_(DmMessage.thread_id == latest.c.thread_id, DmMessage.created_at == latest.c.latest),
            )
        )
        last_messages: dict[str, DmMessage] = {}
        for m in last_rows.scalars().all():
            last_messages.setdefault(m.thread_id, m)

        unread_rows = await session.execute(
            select(DmMessage.thread_id, func.count())
            .where(
                DmMessage.thread_id.in_(thread_ids),
                DmMessage.recipient_id == user_id,
                DmMessage.read_at.is_(None),
            )
            .group_by(DmMessage.thread_id)
        )
        unread = {row[0]: int(row[1]) for row in unread_rows.all()}

    return [
        InboxItem(
            thread=ThreadOut.model_validate(t),
            other=profiles.get(t.other_id(user_id)),
            last_message=MessageOut.model_validate(last_messages[t.id]) if t.id in last_messages else None,
            unread_count=unread.get(t.id, 0),
        )
        for t in threads
    ]


async def load_thread(thread_id: str, user_id: str) -> ThreadDetail:
    """Thread messages oldest first; participants only."""
    async with get_session() as session:
        thread = await _get_thread_for(session, thread_id, user_id)
        result = await session.execute(
            select(DmMessage)
            .where(DmMessage.thread_id == thread_id)
            .order_by(DmMessage.created_at.asc())
            .limit(MESSAGE_PAGE_LIMIT)
        )
        messages = [MessageOut.model_validate(m) for m in result.scalars().all()]
        other_id = thread.other_id(user_id)
        profiles = await load_profile_map(session, [other_id])
        return ThreadDetail(thread=ThreadOut.model_validate(thread), other=profiles.get(other_id), messages=messages)


async def send_message(thread_id: str, sender_id: str, body: str) -> MessageOut:
    """Persist a message and publish it on the thread channel."""
    text = body.strip()
    if not text:
        raise ValidationFailedError("Message cannot be empty", code="EMPTY_BODY")

    async with get_session() as session:
        thread = await _get_thread_for(session, thread_id, sender_id)
        message = DmMessage(
            thread_id=thread.id,
            sender_id=sender_id,
            recipient_id=thread.other_id(sender_id),
            body=text,
        )
        session.add(message)
        await session.flush()
        await session.refresh(message)
        thread.last_message_at = message.created_at
        out = MessageOut.model_validate(message)

    try:
        await publish_dm_message(thread_id, out.model_dump(mode="json"))
    except REDIS_ERRORS:
        logger.warning(f"[dm] Redis unavailable, message {out.id} not broadcast")
    return out


async def mark_thread_read(thread_id: str, user_id: str) -> int:
    """Mark messages addressed to the viewer as read. Returns how many changed."""
    async with get_session() as session:
        await _get_thread_for(session, thread_id, user_id)
        result = await session.execute(
            update(DmMessage)
            .where(
                DmMessage.thread_id == thread_id,
                DmMessage.recipient_id == user_id,
                DmMessage.read_at.is_(None),
            )
            .values(read_at=datetime.now(timezone.utc))
        )
        return result.rowcount or 0


async def unread_total(user_id: str) -> int:
    async with get_session() as session:
        result = await session.execute(
            select(func.count(DmMessage.id)).where(
                DmMessage.recipient_id == user_id,
                DmMessage.read_at.is_(None),
            )
        )
        return int(result.scalar() or 0)
