"""Tests for posts, likes and comments against the database."""

import pytest

from quantum5ocial.models import Profile
from quantum5ocial.services.errors import NotFoundError
from quantum5ocial.services.feed import add_comment, create_post, list_comments, load_feed, toggle_like
from quantum5ocial.stores.postgres import get_session


@pytest.mark.asyncio
async def test_first_post_creates_the_author_profile(db):
    item = await create_post("newcomer", "  Hello, quantum world  ")

    assert item.body == "Hello, quantum world"
    assert item.user_id == "newcomer"
    assert item.time_ago is not None
    async with get_session() as session:
        assert await session.get(Profile, "newcomer") is not None


@pytest.mark.asyncio
async def test_like_toggle_counts(db):
    post = await create_post("alice", "Superconducting qubits are neat")

    first = await toggle_like("bob", post.id)
    assert (first.liked, first.like_count) == (True, 1)

    second = await toggle_like("carol", post.id)
    assert (second.liked, second.like_count) == (True, 2)

    undone = await toggle_like("bob", post.id)
    assert (undone.liked, undone.like_count) == (False, 1)

    again = await toggle_like("carol", post.id)
    assert (again.liked, again.like_count) == (False, 0)

    [item] = await load_feed(viewer_id="bob")
    assert (item.like_count, item.liked_by_me) == (0, False)


@pytest.mark.asyncio
async def test_like_missing_post(db):
    with pytest.raises(NotFoundError) as e:
        await toggle_like("bob", "no-such-post")
    assert e.value.code == "POST_NOT_FOUND"


@pytest.mark.asyncio
async def test_comments_are_counted_on_the_post(db):
    post = await create_post("alice", "Which dilution fridge do you use?")

    await add_comment("bob", post.id, "Bluefors")
    await add_comment("alice", post.id, " Thanks! ")

    comments = await list_comments(post.id)
    assert sorted(c.body for c in comments) == ["Bluefors", "Thanks!"]
    assert all(c.time_ago for c in comments)

    [item] = await load_feed()
    assert item.comment_count == 2
