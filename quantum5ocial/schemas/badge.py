"""Schemas for Q5 badge preview and claim."""

from datetime import datetime

from pydantic import BaseModel, Field


class BadgeClaimRequest(BaseModel):
    """Self-reported survey answers."""

    involvement: int = Field(ge=0, le=4)
    contribution: int = Field(ge=0, le=4)
    role_context: str = Field(default="", max_length=200)
    education: str = Field(default="", max_length=100)
    impact: int = Field(ge=0, le=4)


class BadgeResultOut(BaseModel):
    level: int = Field(ge=0, le=5)
    label: str
    review_status: str
    rationale: str


class BadgeClaimResponse(BaseModel):
    user_id: str
    result: BadgeResultOut
    claimed_at: datetime
