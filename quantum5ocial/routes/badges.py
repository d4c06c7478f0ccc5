"""Q5 badge endpoints.

GET  /v1/badges/preview - compute a badge without saving it
POST /v1/badges/claim   - store the caller's answers and mirror the badge onto their profile
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query

from quantum5ocial.schemas.badge import BadgeClaimRequest, BadgeClaimResponse, BadgeResultOut
from quantum5ocial.services.auth import get_current_user_id
from quantum5ocial.services.badge import BadgeAnswers, claim_badge, compute_q5_badge

router = APIRouter()


@router.get("/preview", response_model=BadgeResultOut)
async def preview_badge(
    involvement: int = Query(ge=0, le=4),
    contribution: int = Query(ge=0, le=4),
    impact: int = Query(ge=0, le=4),
    education: str = Query(default="", max_length=100),
    role_context: str = Query(default="", max_length=200),
) -> BadgeResultOut:
    result = compute_q5_badge(
        BadgeAnswers(
            involvement=involvement,
            contribution=contribution,
            role_context=role_context,
            education=education,
            impact=impact,
        )
    )
    return BadgeResultOut(**asdict(result))


@router.post("/claim", response_model=BadgeClaimResponse)
async def claim(
    request: BadgeClaimRequest,
    user_id: str = Depends(get_current_user_id),
) -> BadgeClaimResponse:
    result, claimed_at = await claim_badge(user_id, BadgeAnswers(**request.model_dump()))
    return BadgeClaimResponse(
        user_id=user_id,
        result=BadgeResultOut(**asdict(result)),
        claimed_at=claimed_at,
    )
