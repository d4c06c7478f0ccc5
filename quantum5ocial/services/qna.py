"""Q&A forum: questions, answers and upvotes.

One vote per member per question/answer is enforced by unique constraints;
toggling deletes the member's row if present, otherwise inserts it.
"""

import logging
from collections import Counter
from collections.abc import Iterable

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from quantum5ocial.models import QnaAnswer, QnaAnswerVote, QnaQuestion, QnaVote
from quantum5ocial.schemas.qna import (
    AddAnswerResponse,
    AnswerItem,
    QuestionItem,
    TagCount,
    ThreadResponse,
    VoteToggleResponse,
)
from quantum5ocial.services.errors import NotFoundError, ValidationFailedError
from quantum5ocial.services.formatting import load_profile_map, time_ago
from quantum5ocial.services.members import ensure_profile_row
from quantum5ocial.services.search_index import try_sync_document
from quantum5ocial.stores.postgres import LIKE_ESCAPE, contains_pattern, get_session

logger = logging.getLogger("uvicorn.error")

QUESTION_LIST_LIMIT = 100
POPULAR_TAGS_WINDOW = 200


def normalize_tags(tags: Iterable[str] | str | None) -> list[str]:
    """Trim, lowercase, drop empties and duplicates (first occurrence wins).

    Accepts a list or a comma-separated string.
    """
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    out: list[str] = []
    for tag in tags:
        t = str(tag).strip().lower()
        if t and t not in out:
            out.append(t)
    return out


def count_tags(tag_lists: Iterable[list[str] | None], limit: int = 18) -> list[TagCount]:
    """Tag frequency, most used first (ties alphabetical)."""
    counter: Counter[str] = Counter()
    for tags in tag_lists:
        counter.update(normalize_tags(tags or []))
    ranked = sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))
    return [TagCount(tag=tag, count=count) for tag, count in ranked[:limit]]


async def _counts(session: AsyncSession, column, ids: list[str]) -> dict[str, int]:
    if not ids:
        return {}
    result = await session.execute(select(column, func.count()).where(column.in_(ids)).group_by(column))
    return {row[0]: int(row[1]) for row in result.all()}


async def _voted(session: AsyncSession, model, column, ids: list[str], viewer_id: str | None) -> set[str]:
    if not viewer_id or not ids:
        return set()
    result = await session.execute(select(column).where(model.user_id == viewer_id, column.in_(ids)))
    return set(result.scalars().all())


async def _question_items(
    session: AsyncSession,
    questions: list[QnaQuestion],
    viewer_id: str | None,
) -> list[QuestionItem]:
    ids = [q.id for q in questions]
    answers = await _counts(session, QnaAnswer.question_id, ids)
    votes = await _counts(session, QnaVote.question_id, ids)
    voted = await _voted(session, QnaVote, QnaVote.question_id, ids, viewer_id)
    authors = await load_profile_map(session, [q.user_id for q in questions])

    return [
        QuestionItem(
            id=q.id,
            user_id=q.user_id,
            title=q.title,
            body=q.body,
            tags=q.tags or [],
            created_at=q.created_at,
            time_ago=time_ago(q.created_at),
            author=authors.get(q.user_id),
            answer_count=answers.get(q.id, 0),
            vote_count=votes.get(q.id, 0),
            voted_by_me=q.id in voted,
        )
        for q in questions
    ]


async def _answer_items(session: AsyncSession, answers: list[QnaAnswer], viewer_id: str | None) -> list[AnswerItem]:
    ids = [a.id for a in answers]
    votes = await _counts(session, QnaAnswerVote.answer_id, ids)
    voted = await _voted(session, QnaAnswerVote, QnaAnswerVote.answer_id, ids, viewer_id)
    authors = await load_profile_map(session, [a.user_id for a in answers])

    return [
        AnswerItem(
            id=a.id,
            question_id=a.question_id,
            user_id=a.user_id,
            body=a.body,
            created_at=a.created_at,
            time_ago=time_ago(a.created_at),
            author=authors.get(a.user_id),
            vote_count=votes.get(a.id, 0),
            voted_by_me=a.id in voted,
        )
        for a in answers
    ]


async def list_questions(
    *,
    viewer_id: str | None = None,
    search: str | None = None,
    tag: str | None = None,
    user_id: str | None = None,
) -> list[QuestionItem]:
    """Newest questions first (at most 100)."""
    query = select(QnaQuestion)
    term = (search or "").strip()
    if term:
        pattern = contains_pattern(term)
        query = query.where(
            or_(QnaQuestion.title.ilike(pattern, escape=LIKE_ESCAPE), QnaQuestion.body.ilike(pattern, escape=LIKE_ESCAPE))
        )
    active_tag = (tag or "").strip().lower()
    if active_tag:
        query = query.where(QnaQuestion.tags.contains([active_tag]))
    if user_id:
        query = query.where(QnaQuestion.user_id == user_id)
    query = query.order_by(QnaQuestion.created_at.desc()).limit(QUESTION_LIST_LIMIT)

    async with get_session() as session:
        questions = list((await session.execute(query)).scalars().all())
        return await _question_items(session, questions, viewer_id)


async def ask_question(user_id: str, title: str, body: str, tags: Iterable[str] | str | None = None) -> QuestionItem:
    title = title.strip()
    body = body.strip()
    if not title or not body:
        raise ValidationFailedError("Title and body are required", code="EMPTY_QUESTION")

    async with get_session() as session:
        await ensure_profile_row(session, user_id)
        question = QnaQuestion(user_id=user_id, title=title, body=body, tags=normalize_tags(tags))
        session.add(question)
        await session.flush()
        await session.refresh(question)
        item = (await _question_items(session, [question], user_id))[0]

    logger.info(f"[qna] question asked id={item.id} tags={len(item.tags)}")
    await try_sync_document("question", {"id": item.id, "title": item.title, "body": item.body, "tags": item.tags})
    return item


async def get_thread(question_id: str, viewer_id: str | None = None) -> ThreadResponse:
    """A question with its answers, oldest answer first."""
    async with get_session() as session:
        question = await session.get(QnaQuestion, question_id)
        if question is None:
            raise NotFoundError("Question not found", code="QUESTION_NOT_FOUND")
        result = await session.execute(
            select(QnaAnswer).where(QnaAnswer.question_id == question_id).order_by(QnaAnswer.created_at.asc())
        )
        answers = list(result.scalars().all())
        return ThreadResponse(
            question=(await _question_items(session, [question], viewer_id))[0],
            answers=await _answer_items(session, answers, viewer_id),
        )


async def add_answer(user_id: str, question_id: str, body: str) -> AddAnswerResponse:
    text = body.strip()
    if not text:
        raise ValidationFailedError("Answer cannot be empty", code="EMPTY_BODY")

    async with get_session() as session:
        if await session.get(QnaQuestion, question_id) is None:
            raise NotFoundError("Question not found", code="QUESTION_NOT_FOUND")
        await ensure_profile_row(session, user_id)
        answer = QnaAnswer(question_id=question_id, user_id=user_id, body=text)
        session.add(answer)
        await session.flush()
        await session.refresh(answer)
        item = (await _answer_items(session, [answer], user_id))[0]
        count = (await _counts(session, QnaAnswer.question_id, [question_id])).get(question_id, 0)

    return AddAnswerResponse(answer=item, answer_count=count)


async def toggle_question_vote(user_id: str, question_id: str) -> VoteToggleResponse:
    async with get_session() as session:
        if await session.get(QnaQuestion, question_id) is None:
            raise NotFoundError("Question not found", code="QUESTION_NOT_FOUND")
        await ensure_profile_row(session, user_id)
        result = await session.execute(
            delete(QnaVote).where(QnaVote.question_id == question_id, QnaVote.user_id == user_id)
        )
        voted = not result.rowcount
        if voted:
            session.add(QnaVote(question_id=question_id, user_id=user_id))
        await session.flush()
        count = (await _counts(session, QnaVote.question_id, [question_id])).get(question_id, 0)

    return VoteToggleResponse(voted=voted, vote_count=max(0, count))


async def toggle_answer_vote(user_id: str, answer_id: str) -> VoteToggleResponse:
    async with get_session() as session:
        if await session.get(QnaAnswer, answer_id) is None:
            raise NotFoundError("Answer not found", code="ANSWER_NOT_FOUND")
        await ensure_profile_row(session, user_id)
        result = await session.execute(
            delete(QnaAnswerVote).where(QnaAnswerVote.answer_id == answer_id, QnaAnswerVote.user_id == user_id)
        )
        voted = not result.rowcount
        if voted:
            session.add(QnaAnswerVote(answer_id=answer_id, user_id=user_id))
        await session.flush()
        count = (await _counts(session, QnaAnswerVote.answer_id, [answer_id])).get(answer_id, 0)

    return VoteToggleResponse(voted=voted, vote_count=max(0, count))


async def popular_tags(limit: int = 18) -> list[TagCount]:
    """Most used tags over the latest questions."""
    async with get_session() as session:
        result = await session.execute(
            select(QnaQuestion.tags).order_by(QnaQuestion.created_at.desc()).limit(POPULAR_TAGS_WINDOW)
        )
        tag_lists = list(result.scalars().all())
    return count_tags(tag_lists, limit=limit)
