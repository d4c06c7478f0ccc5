"""Q&A forum endpoints."""

from fastapi import APIRouter, Depends, Query

from quantum5ocial.schemas.qna import (
    AddAnswerResponse,
    AnswerCreate,
    QuestionCreate,
    QuestionItem,
    QuestionListResponse,
    TagCount,
    ThreadResponse,
    VoteToggleResponse,
)
from quantum5ocial.services.auth import get_current_user_id, get_optional_user_id
from quantum5ocial.services.qna import (
    add_answer,
    ask_question,
    get_thread,
    list_questions,
    popular_tags,
    toggle_answer_vote,
    toggle_question_vote,
)

router = APIRouter()


@router.get("/questions", response_model=QuestionListResponse)
async def questions(
    q: str | None = Query(default=None, max_length=200, description="Search in title and body"),
    tag: str | None = Query(default=None, max_length=50),
    user_id: str | None = Query(default=None, description="Only questions asked by this member"),
    viewer_id: str | None = Depends(get_optional_user_id),
) -> QuestionListResponse:
    items = await list_questions(viewer_id=viewer_id, search=q, tag=tag, user_id=user_id)
    return QuestionListResponse(count=len(items), questions=items)


@router.post("/questions", response_model=QuestionItem, status_code=201)
async def ask(data: QuestionCreate, user_id: str = Depends(get_current_user_id)) -> QuestionItem:
    return await ask_question(user_id, data.title, data.body, data.tags)


@router.get("/tags", response_model=list[TagCount])
async def tags(limit: int = Query(default=18, ge=1, le=50)) -> list[TagCount]:
    return await popular_tags(limit)


@router.get("/questions/{question_id}", response_model=ThreadResponse)
async def thread(question_id: str, viewer_id: str | None = Depends(get_optional_user_id)) -> ThreadResponse:
    return await get_thread(question_id, viewer_id)


@router.post("/questions/{question_id}/answers", response_model=AddAnswerResponse, status_code=201)
async def answer(
    question_id: str,
    data: AnswerCreate,
    user_id: str = Depends(get_current_user_id),
) -> AddAnswerResponse:
    return await add_answer(user_id, question_id, data.body)


@router.post("/questions/{question_id}/vote", response_model=VoteToggleResponse)
async def vote_question(question_id: str, user_id: str = Depends(get_current_user_id)) -> VoteToggleResponse:
    return await toggle_question_vote(user_id, question_id)


@router.post("/answers/{answer_id}/vote", response_model=VoteToggleResponse)
async def vote_answer(answer_id: str, user_id: str = Depends(get_current_user_id)) -> VoteToggleResponse:
    return await toggle_answer_vote(user_id, answer_id)
