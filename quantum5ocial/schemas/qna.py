"""Schemas for the Q&A forum."""

from datetime import datetime

from pydantic import BaseModel, Field

from quantum5ocial.schemas.common import ProfileLite


class QuestionCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    body: str = Field(min_length=1, max_length=10000)
    tags: list[str] = Field(default_factory=list, max_length=10)


class QuestionItem(BaseModel):
    id: str
    user_id: str
    title: str
    body: str
    tags: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    time_ago: str | None = None
    author: ProfileLite | None = None
    answer_count: int = 0
    vote_count: int = 0
    voted_by_me: bool = False


class QuestionListResponse(BaseModel):
    count: int
    questions: list[QuestionItem]


class AnswerCreate(BaseModel):
    body: str = Field(min_length=1, max_length=10000)


class AnswerItem(BaseModel):
    id: str
    question_id: str
    user_id: str
    body: str
    created_at: datetime | None = None
    time_ago: str | None = None
    author: ProfileLite | None = None
    vote_count: int = 0
    voted_by_me: bool = False


class ThreadResponse(BaseModel):
    """A question with its answers in ascending creation order."""

    question: QuestionItem
    answers: list[AnswerItem]


class AddAnswerResponse(BaseModel):
    answer: AnswerItem
    answer_count: int


class VoteToggleResponse(BaseModel):
    voted: bool
    vote_count: int = Field(ge=0)


class TagCount(BaseModel):
    tag: str
    count: int
