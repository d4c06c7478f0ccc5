"""Profile and community directory endpoints.

GET   /v1/profiles            - community directory (name search, viewer's entanglement status)
GET   /v1/profiles/me         - caller's profile (created on first visit)
PATCH /v1/profiles/me         - partial update
POST  /v1/profiles/me/avatar  - upload avatar
GET   /v1/profiles/me/private - caller's private contact details
PUT   /v1/profiles/me/private - replace them
GET   /v1/profiles/{user_id}  - public profile
"""

from fastapi import APIRouter, Depends, File, Query, UploadFile

from quantum5ocial.schemas.profiles import (
    DirectoryResponse,
    ProfileOut,
    ProfilePrivateOut,
    ProfilePrivateUpdate,
    ProfileUpdate,
)
from quantum5ocial.services.auth import get_current_user_id, get_optional_user_id
from quantum5ocial.services.profiles import (
    DIRECTORY_MAX_LIMIT,
    ensure_profile,
    get_private_contact,
    get_profile,
    list_directory,
    set_avatar,
    update_private_contact,
    update_profile,
)

router = APIRouter()


@router.get("", response_model=DirectoryResponse)
async def directory(
    q: str | None = Query(default=None, max_length=100, description="Name search"),
    limit: int = Query(default=50, ge=1, le=DIRECTORY_MAX_LIMIT),
    viewer_id: str | None = Depends(get_optional_user_id),
) -> DirectoryResponse:
    profiles = await list_directory(viewer_id=viewer_id, search=q, limit=limit)
    return DirectoryResponse(count=len(profiles), profiles=profiles)


@router.get("/me", response_model=ProfileOut)
async def get_me(user_id: str = Depends(get_current_user_id)) -> ProfileOut:
    return await ensure_profile(user_id)


@router.patch("/me", response_model=ProfileOut)
async def patch_me(update: ProfileUpdate, user_id: str = Depends(get_current_user_id)) -> ProfileOut:
    return await update_profile(user_id, update)


@router.post("/me/avatar", response_model=ProfileOut)
async def upload_avatar(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
) -> ProfileOut:
    data = await file.read()
    return await set_avatar(user_id, file.content_type or "", data)


@router.get("/me/private", response_model=ProfilePrivateOut)
async def get_my_private(user_id: str = Depends(get_current_user_id)) -> ProfilePrivateOut:
    """Visible to the owner only; there is no route to read another member's."""
    return await get_private_contact(user_id)


@router.put("/me/private", response_model=ProfilePrivateOut)
async def put_my_private(
    update: ProfilePrivateUpdate,
    user_id: str = Depends(get_current_user_id),
) -> ProfilePrivateOut:
    return await update_private_contact(user_id, update)


@router.get("/{user_id}", response_model=ProfileOut)
async def get_by_id(user_id: str) -> ProfileOut:
    return await get_profile(user_id)
