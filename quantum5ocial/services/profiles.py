"""Profiles and the community directory."""

import logging
from typing import Any

from sqlalchemy import select

from quantum5ocial.models import Profile, ProfilePrivate
from quantum5ocial.schemas.profiles import (
    DirectoryEntry,
    ProfileOut,
    ProfilePrivateOut,
    ProfilePrivateUpdate,
    ProfileUpdate,
)
from quantum5ocial.services.badge import badge_display_label
from quantum5ocial.services.entanglements import status_map
from quantum5ocial.services.errors import NotFoundError, ValidationFailedError
from quantum5ocial.services.members import ensure_profile_row
from quantum5ocial.services.search_index import try_sync_document
from quantum5ocial.stores.files import StorageError, delete_object, save_object
from quantum5ocial.stores.postgres import LIKE_ESCAPE, contains_pattern, get_session

logger = logging.getLogger("uvicorn.error")

DIRECTORY_MAX_LIMIT = 100


def profile_out(profile: Profile) -> ProfileOut:
    out = ProfileOut.model_validate(profile)
    out.badge_display = badge_display_label(profile.q5_badge_level, profile.q5_badge_label)
    return out


def profile_index_data(profile: Profile) -> dict[str, Any]:
    return {
        "id": profile.id,
        "full_name": profile.full_name,
        "role": profile.role,
        "affiliation": profile.affiliation,
        "short_bio": profile.short_bio,
        "skills": profile.skills,
    }


async def get_profile(user_id: str) -> ProfileOut:
    async with get_session() as session:
        profile = await session.get(Profile, user_id)
        if profile is None:
            raise NotFoundError("Profile not found", code="PROFILE_NOT_FOUND", detail={"user_id": user_id})
        return profile_out(profile)


async def ensure_profile(user_id: str) -> ProfileOut:
    """Return the caller's profile, creating an empty one on first visit."""
    async with get_session() as session:
        profile = await ensure_profile_row(session, user_id)
        await session.refresh(profile)
        return profile_out(profile)


async def update_profile(user_id: str, update: ProfileUpdate) -> ProfileOut:
    """Apply the fields present in the request; others stay untouched."""
    changes = update.model_dump(exclude_unset=True)
    for key in ("full_name", "role", "current_title", "affiliation"):
        if key in changes and isinstance(changes[key], str):
            changes[key] = changes[key].strip() or None

    async with get_session() as session:
        profile = await ensure_profile_row(session, user_id)
        for key, value in changes.items():
            setattr(profile, key, value)
        await session.flush()
        await session.refresh(profile)
        out = profile_out(profile)
        index_data = profile_index_data(profile)

    if (out.full_name or "").strip():
        await try_sync_document("profile", index_data)
    return out


async def set_avatar(user_id: str, content_type: str, data: bytes) -> ProfileOut:
    """Store a new avatar and point the profile at it; the previous file is removed."""
    try:
        url = save_object("avatars", user_id, content_type, data)
    except StorageError as e:
        raise ValidationFailedError(str(e), code="UPLOAD_REJECTED") from e

    async with get_session() as session:
        profile = await ensure_profile_row(session, user_id)
        previous = profile.avatar_url
        profile.avatar_url = url
        await session.flush()
        await session.refresh(profile)
        out = profile_out(profile)

    if previous and previous != url:
        delete_object("avatars", previous)
    return out


async def get_private_contact(user_id: str) -> ProfilePrivateOut:
    """The caller's own contact details (empty until first saved)."""
    async with get_session() as session:
        row = await session.get(ProfilePrivate, user_id)
        if row is None:
            return ProfilePrivateOut()
        return ProfilePrivateOut.model_validate(row)


async def update_private_contact(user_id: str, update: ProfilePrivateUpdate) -> ProfilePrivateOut:
    async with get_session() as session:
        await ensure_profile_row(session, user_id)
        row = await session.get(ProfilePrivate, user_id)
        if row is None:
            row = ProfilePrivate(user_id=user_id)
            session.add(row)
        row.phone = update.phone
        row.institutional_email = update.institutional_email
        await session.flush()
        await session.refresh(row)
        return ProfilePrivateOut.model_validate(row)


async def list_directory(
    *,
    viewer_id: str | None = None,
    search: str | None = None,
    limit: int = 50,
) -> list[DirectoryEntry]:
    """Community directory ordered by name, with the viewer's entanglement status."""
    limit = max(1, min(limit, DIRECTORY_MAX_LIMIT))
    query = select(Profile).where(Profile.full_name.is_not(None))
    if search and search.strip():
        query = query.where(Profile.full_name.ilike(contains_pattern(search.strip()), escape=LIKE_ESCAPE))
    if viewer_id:
        query = query.where(Profile.id != viewer_id)
    query = query.order_by(Profile.full_name.asc()).limit(limit)

    async with get_session() as session:
        profiles = list((await session.execute(query)).scalars().all())

    statuses: dict[str, str] = {}
    if viewer_id:
        statuses = await status_map(viewer_id, [p.id for p in profiles])

    return [
        DirectoryEntry(
            id=p.id,
            full_name=p.full_name,
            avatar_url=p.avatar_url,
            highest_education=p.highest_education,
            affiliation=p.affiliation,
            q5_badge_label=badge_display_label(p.q5_badge_level, p.q5_badge_label) or None,
            role=p.role,
            current_title=p.current_title,
            connection_status=statuses.get(p.id, "none"),
        )
        for p in profiles
    ]


def interest_text(profile: Profile) -> str:
    """Text embedded to find content matching a member's interests ("" when the profile is blank)."""
    fields = [
        ("Role", profile.role),
        ("Skills", profile.skills),
        ("Focus", profile.focus_areas),
        ("Bio", profile.short_bio),
    ]
    if not any((value or "").strip() for _, value in fields):
        return ""
    return "\n".join(f"{label}: {(value or '').strip()}" for label, value in fields)


async def load_interest_text(user_id: str) -> str | None:
    """Interest text for a member, or None when the profile does not exist."""
    async with get_session() as session:
        profile = await session.get(Profile, user_id)
        if profile is None:
            return None
        return interest_text(profile)
