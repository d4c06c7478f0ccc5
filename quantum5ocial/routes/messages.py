"""Direct message endpoints.

REST endpoints act for the bearer-token caller. The WebSocket endpoint
authenticates with `?token=<access token>` (browsers cannot set headers on
WebSocket requests) and streams every new message of the thread as JSON.
"""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from quantum5ocial.schemas.messages import (
    InboxResponse,
    MessageCreate,
    MessageOut,
    OpenThreadRequest,
    ThreadDetail,
    ThreadOut,
    UnreadResponse,
)
from quantum5ocial.services.auth import get_current_user_id, resolve_user_id
from quantum5ocial.services.errors import DomainError
from quantum5ocial.services.messaging import (
    get_thread_participants,
    list_inbox,
    load_thread,
    mark_thread_read,
    merge_message,
    open_or_create_thread,
    send_message,
    unread_total,
)
from quantum5ocial.stores.redis import REDIS_ERRORS, subscribe_dm_thread

router = APIRouter()
logger = logging.getLogger("uvicorn.error")

WS_CLOSE_UNAUTHORIZED = 4401
WS_CLOSE_FORBIDDEN = 4403
FORWARD_DEDUP_WINDOW = 200


@router.get("/threads", response_model=InboxResponse)
async def inbox(user_id: str = Depends(get_current_user_id)) -> InboxResponse:
    threads = await list_inbox(user_id)
    return InboxResponse(count=len(threads), threads=threads)


@router.post("/threads", response_model=ThreadOut)
async def open_thread(request: OpenThreadRequest, user_id: str = Depends(get_current_user_id)) -> ThreadOut:
    """Open the thread with another member (created on first use; entangled members only)."""
    return await open_or_create_thread(user_id, request.other_user_id)


@router.get("/unread", response_model=UnreadResponse)
async def unread(user_id: str = Depends(get_current_user_id)) -> UnreadResponse:
    return UnreadResponse(unread=await unread_total(user_id))


@router.get("/threads/{thread_id}", response_model=ThreadDetail)
async def thread(thread_id: str, user_id: str = Depends(get_current_user_id)) -> ThreadDetail:
    return await load_thread(thread_id, user_id)


@router.post("/threads/{thread_id}/messages", response_model=MessageOut, status_code=201)
async def send(
    thread_id: str,
    data: MessageCreate,
    user_id: str = Depends(get_current_user_id),
) -> MessageOut:
    return await send_message(thread_id, user_id, data.body)


@router.post("/threads/{thread_id}/read", response_model=UnreadResponse)
async def mark_read(thread_id: str, user_id: str = Depends(get_current_user_id)) -> UnreadResponse:
    """Mark the thread read and return the caller's remaining unread total."""
    await mark_thread_read(thread_id, user_id)
    return UnreadResponse(unread=await unread_total(user_id))


async def _forward_thread_events(websocket: WebSocket, thread_id: str, participants: tuple[str, str]) -> None:
    """Relay channel events, dropping foreign senders and ids already sent on this socket."""
    forwarded: list[dict[str, Any]] = []
    async for payload in subscribe_dm_thread(thread_id):
        merged = merge_message(forwarded, payload, participants)
        if len(merged) == len(forwarded):
            continue
        await websocket.send_json(payload)
        forwarded = merged[-FORWARD_DEDUP_WINDOW:]


@router.websocket("/threads/{thread_id}/ws")
async def thread_events(websocket: WebSocket, thread_id: str, token: str = Query(default="")) -> None:
    user_id = await resolve_user_id(token) if token else None
    if user_id is None:
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return

    try:
        participants = await get_thread_participants(thread_id, user_id)
    except DomainError:
        await websocket.close(code=WS_CLOSE_FORBIDDEN)
        return

    await websocket.accept()
    logger.info(f"DM WebSocket connected thread={thread_id}")
    forward = asyncio.create_task(_forward_thread_events(websocket, thread_id, participants))
    try:
        # Client frames are ignored; reading detects the disconnect.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        forward.cancel()
        try:
            await forward
        except asyncio.CancelledError:
            pass
        except REDIS_ERRORS as e:
            logger.warning(f"DM WebSocket forwarding stopped thread={thread_id}: {e}")
        logger.info(f"DM WebSocket disconnected thread={thread_id}")
