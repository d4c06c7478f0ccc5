"""Tests for direct messages: helpers, sending and realtime relay."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from quantum5ocial.models import Connection, DmMessage, DmThread, Profile
from quantum5ocial.routes import messages as message_routes
from quantum5ocial.services import messaging
from quantum5ocial.services.messaging import (
    merge_message,
    open_or_create_thread,
    ordered_pair,
    send_message,
    unread_total,
)
from quantum5ocial.stores.postgres import get_session

PARTICIPANTS = ("alice", "bob")


def test_ordered_pair():
    assert ordered_pair("bob", "alice") == ("alice", "bob")
    assert ordered_pair("alice", "bob") == ("alice", "bob")


def test_merge_appends_new_message():
    current = [{"id": "m1", "sender_id": "alice", "body": "hi"}]
    merged = merge_message(current, {"id": "m2", "sender_id": "bob", "body": "hey"}, PARTICIPANTS)
    assert [m["id"] for m in merged] == ["m1", "m2"]
    # input list is left untouched
    assert len(current) == 1


def test_merge_ignores_duplicate_id():
    current = [{"id": "m1", "sender_id": "alice", "body": "hi"}]
    merged = merge_message(current, {"id": "m1", "sender_id": "alice", "body": "hi"}, PARTICIPANTS)
    assert merged == current


def test_merge_ignores_outside_sender():
    merged = merge_message([], {"id": "m3", "sender_id": "mallory", "body": "psst"}, PARTICIPANTS)
    assert merged == []


async def _entangled_thread() -> str:
    async with get_session() as session:
        session.add_all([Profile(id="alice", full_name="Alice"), Profile(id="bob", full_name="Bob")])
        await session.flush()
        session.add(Connection(user_id="alice", target_user_id="bob", status="accepted"))
    thread = await open_or_create_thread("bob", "alice")
    return thread.id


@pytest.mark.asyncio
async def test_send_message_when_redis_was_never_connected(db):
    thread_id = await _entangled_thread()

    out = await send_message(thread_id, "alice", "  hi Bob  ")

    assert (out.body, out.sender_id, out.recipient_id) == ("hi Bob", "alice", "bob")
    assert await unread_total("bob") == 1


@pytest.mark.asyncio
async def test_send_message_when_redis_drops(db, monkeypatch: pytest.MonkeyPatch):
    thread_id = await _entangled_thread()

    async def unreachable(thread_id, payload):
        raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    monkeypatch.setattr(messaging, "publish_dm_message", unreachable)

    out = await send_message(thread_id, "bob", "still delivered")

    async with get_session() as session:
        stored = await session.get(DmMessage, out.id)
        thread = await session.get(DmThread, thread_id)
    assert stored.body == "still delivered"
    assert thread.last_message_at is not None


class _RecordingSocket:
    def __init__(self):
        self.sent: list[dict] = []

    async def send_json(self, payload: dict) -> None:
        self.sent.append(payload)


@pytest.mark.asyncio
async def test_relay_skips_repeats_and_outsiders(monkeypatch: pytest.MonkeyPatch):
    events = [
        {"id": "m1", "sender_id": "alice", "body": "hi"},
        {"id": "m1", "sender_id": "alice", "body": "hi"},
        {"id": "m2", "sender_id": "mallory", "body": "spam"},
        {"id": "m3", "sender_id": "bob", "body": "hey"},
    ]

    async def fake_subscribe(thread_id: str):
        for event in events:
            yield event

    monkeypatch.setattr(message_routes, "subscribe_dm_thread", fake_subscribe)
    socket = _RecordingSocket()

    await message_routes._forward_thread_events(socket, "t1", PARTICIPANTS)

    assert [m["id"] for m in socket.sent] == ["m1", "m3"]
