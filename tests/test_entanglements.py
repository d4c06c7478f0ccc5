"""Tests for viewer-relative connection status and the request flow."""

import pytest
from sqlalchemy import func, select

from quantum5ocial.models import Connection, Profile
from quantum5ocial.services.entanglements import (
    connection_status,
    decline,
    entangle,
    entangled_user_ids,
    get_status,
    is_entangled,
)
from quantum5ocial.services.errors import NotFoundError
from quantum5ocial.stores.postgres import get_session


def _row(status: str, requester: str = "alice", target: str = "bob") -> Connection:
    return Connection(user_id=requester, target_user_id=target, status=status)


def test_no_row_is_none():
    assert connection_status(None, "alice") == "none"


def test_accepted_is_symmetric():
    row = _row("accepted")
    assert connection_status(row, "alice") == "accepted"
    assert connection_status(row, "bob") == "accepted"


def test_pending_depends_on_viewer():
    row = _row("pending")
    assert connection_status(row, "alice") == "pending_outgoing"
    assert connection_status(row, "bob") == "pending_incoming"


def test_declined_only_visible_to_requester():
    row = _row("declined")
    assert connection_status(row, "alice") == "declined"
    assert connection_status(row, "bob") == "none"


def test_unknown_status_is_none():
    assert connection_status(_row("blocked"), "alice") == "none"


def test_other_id():
    row = _row("accepted")
    assert row.other_id("alice") == "bob"
    assert row.other_id("bob") == "alice"


async def _add_profiles(*user_ids: str) -> None:
    async with get_session() as session:
        for user_id in user_ids:
            session.add(Profile(id=user_id, full_name=user_id.title()))


async def _connection_count() -> int:
    async with get_session() as session:
        return (await session.execute(select(func.count()).select_from(Connection))).scalar_one()


@pytest.mark.asyncio
async def test_entangle_back_accepts_the_incoming_request(db):
    await _add_profiles("alice", "bob")

    status, _ = await entangle("alice", "bob")
    assert status == "pending_outgoing"
    assert await get_status("bob", "alice") == "pending_incoming"

    status, row = await entangle("bob", "alice")
    assert status == "accepted"
    assert (row.user_id, row.target_user_id) == ("alice", "bob")
    assert await is_entangled("alice", "bob")
    assert await entangled_user_ids("bob") == ["alice"]
    assert await _connection_count() == 1


@pytest.mark.asyncio
async def test_entangle_twice_keeps_the_pending_request(db):
    await _add_profiles("alice", "bob")

    _, first = await entangle("alice", "bob")
    status, second = await entangle("alice", "bob")

    assert status == "pending_outgoing"
    assert second.id == first.id
    assert await _connection_count() == 1


@pytest.mark.asyncio
async def test_decline_then_either_side_can_ask_again(db):
    await _add_profiles("alice", "bob")
    await entangle("alice", "bob")

    assert await decline("bob", "alice") == "none"
    assert await get_status("alice", "bob") == "declined"
    assert await get_status("bob", "alice") == "none"

    status, row = await entangle("bob", "alice")
    assert status == "pending_outgoing"
    assert (row.user_id, row.status) == ("bob", "pending")
    assert await get_status("alice", "bob") == "pending_incoming"
    assert await _connection_count() == 1


@pytest.mark.asyncio
async def test_decline_without_request(db):
    await _add_profiles("alice", "bob")

    with pytest.raises(NotFoundError) as e:
        await decline("bob", "alice")
    assert e.value.code == "REQUEST_NOT_FOUND"


@pytest.mark.asyncio
async def test_entangle_unknown_member(db):
    await _add_profiles("alice")

    with pytest.raises(NotFoundError) as e:
        await entangle("alice", "ghost")
    assert e.value.code == "PROFILE_NOT_FOUND"


@pytest.mark.asyncio
async def test_first_request_creates_the_requester_profile(db):
    await _add_profiles("bob")

    status, _ = await entangle("newcomer", "bob")

    assert status == "pending_outgoing"
    async with get_session() as session:
        assert await session.get(Profile, "newcomer") is not None
