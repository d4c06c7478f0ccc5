"""Tests for Q&A tags, answers and votes."""

import pytest

from quantum5ocial.services.qna import (
    add_answer,
    ask_question,
    count_tags,
    get_thread,
    normalize_tags,
    toggle_answer_vote,
    toggle_question_vote,
)


def test_normalize_tags_from_list():
    assert normalize_tags([" Qiskit", "qiskit", "", "  ", "Error-Correction"]) == ["qiskit", "error-correction"]


def test_normalize_tags_from_comma_string():
    assert normalize_tags("QEC, photonics ,,QEC") == ["qec", "photonics"]


def test_normalize_tags_none_and_keeps_every_tag():
    assert normalize_tags(None) == []
    many = [f"tag{i}" for i in range(12)]
    assert normalize_tags(many) == many


def test_count_tags_orders_by_count_then_name():
    counts = count_tags([["qec", "ions"], ["QEC", "photonics"], None, ["ions", "qec"]])
    assert [(c.tag, c.count) for c in counts] == [("qec", 3), ("ions", 2), ("photonics", 1)]


def test_count_tags_limit():
    counts = count_tags([["b"], ["a"], ["c"]], limit=2)
    assert [c.tag for c in counts] == ["a", "b"]


@pytest.mark.asyncio
async def test_question_vote_toggles(db):
    question = await ask_question("alice", "Surface code thresholds?", "What is the current best?", "QEC, codes")
    assert question.tags == ["qec", "codes"]

    voted = await toggle_question_vote("bob", question.id)
    assert (voted.voted, voted.vote_count) == (True, 1)

    unvoted = await toggle_question_vote("bob", question.id)
    assert (unvoted.voted, unvoted.vote_count) == (False, 0)


@pytest.mark.asyncio
async def test_answer_vote_toggles_and_thread_reflects_it(db):
    question = await ask_question("alice", "Best cryo-CMOS papers?", "Looking for reviews.")
    added = await add_answer("bob", question.id, "Start with the Nature Electronics review.")
    assert added.answer_count == 1

    voted = await toggle_answer_vote("carol", added.answer.id)
    assert (voted.voted, voted.vote_count) == (True, 1)

    thread = await get_thread(question.id, viewer_id="carol")
    assert thread.question.answer_count == 1
    [answer] = thread.answers
    assert (answer.vote_count, answer.voted_by_me) == (1, True)

    unvoted = await toggle_answer_vote("carol", added.answer.id)
    assert (unvoted.voted, unvoted.vote_count) == (False, 0)
