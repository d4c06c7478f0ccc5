"""Organization endpoints (companies and research groups)."""

from typing import Literal

from fastapi import APIRouter, Depends, Query

from quantum5ocial.schemas.orgs import FollowResponse, OrgCreate, OrgMemberOut, OrgOut, OrgUpdate
from quantum5ocial.services.auth import get_current_user_id, get_optional_user_id
from quantum5ocial.services.orgs import (
    create_org,
    get_org,
    list_followed,
    list_members,
    list_orgs,
    toggle_follow,
    update_org,
)

router = APIRouter()


@router.get("", response_model=list[OrgOut])
async def list_all(
    q: str | None = Query(default=None, max_length=100),
    kind: Literal["company", "research_group"] | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
    viewer_id: str | None = Depends(get_optional_user_id),
) -> list[OrgOut]:
    return await list_orgs(viewer_id=viewer_id, search=q, kind=kind, limit=limit)


@router.post("", response_model=OrgOut, status_code=201)
async def create(data: OrgCreate, user_id: str = Depends(get_current_user_id)) -> OrgOut:
    return await create_org(user_id, data)


@router.get("/following", response_model=list[OrgOut])
async def following(user_id: str = Depends(get_current_user_id)) -> list[OrgOut]:
    return await list_followed(user_id)


@router.get("/{slug}", response_model=OrgOut)
async def get_one(slug: str, viewer_id: str | None = Depends(get_optional_user_id)) -> OrgOut:
    return await get_org(slug, viewer_id)


@router.patch("/{slug}", response_model=OrgOut)
async def update(slug: str, data: OrgUpdate, user_id: str = Depends(get_current_user_id)) -> OrgOut:
    return await update_org(slug, user_id, data)


@router.post("/{slug}/follow", response_model=FollowResponse)
async def follow(slug: str, user_id: str = Depends(get_current_user_id)) -> FollowResponse:
    """Follow, or unfollow when already following."""
    return await toggle_follow(slug, user_id)


@router.get("/{slug}/members", response_model=list[OrgMemberOut])
async def members(slug: str) -> list[OrgMemberOut]:
    return await list_members(slug)
