"""Organizations: companies and research groups, their members and followers."""

import logging
import re
import unicodedata
from typing import Any

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from quantum5ocial.models import OrgFollow, OrgMember, Organization, Profile
from quantum5ocial.schemas.orgs import FollowResponse, OrgCreate, OrgMemberOut, OrgOut, OrgUpdate
from quantum5ocial.services.errors import ConflictError, ForbiddenError, NotFoundError, ValidationFailedError
from quantum5ocial.services.members import ensure_profile_row
from quantum5ocial.services.search_index import try_sync_document
from quantum5ocial.stores.postgres import LIKE_ESCAPE, contains_pattern, get_session

logger = logging.getLogger("uvicorn.error")

ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"

MANAGER_ROLES = {ROLE_OWNER, ROLE_ADMIN}

_SLUG_MAX = 120


def slugify(value: str) -> str:
    """Lowercase ASCII slug, e.g. 'IBM Quantum (Zürich)' -> 'ibm-quantum-zurich'."""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return slug[:_SLUG_MAX].rstrip("-")


def org_index_data(org: Organization) -> dict[str, Any]:
    return {
        "slug": org.slug,
        "name": org.name,
        "industry": org.industry,
        "focus_areas": org.focus_areas,
        "description": org.description,
    }


async def _follower_count(session: AsyncSession, org_id: str) -> int:
    result = await session.execute(select(func.count(OrgFollow.id)).where(OrgFollow.org_id == org_id))
    return int(result.scalar() or 0)


async def _member_role(session: AsyncSession, org_id: str, user_id: str | None) -> str | None:
    if not user_id:
        return None
    result = await session.execute(
        select(OrgMember.role).where(OrgMember.org_id == org_id, OrgMember.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def _org_out(session: AsyncSession, org: Organization, viewer_id: str | None) -> OrgOut:
    out = OrgOut.model_validate(org)
    out.follower_count = await _follower_count(session, org.id)
    out.my_role = await _member_role(session, org.id, viewer_id)
    if viewer_id:
        followed = await session.execute(
            select(OrgFollow.id).where(OrgFollow.org_id == org.id, OrgFollow.user_id == viewer_id)
        )
        out.followed_by_me = followed.scalar_one_or_none() is not None
    return out


async def _get_by_slug(session: AsyncSession, slug: str) -> Organization:
    result = await session.execute(select(Organization).where(Organization.slug == slug))
    org = result.scalar_one_or_none()
    if org is None:
        raise NotFoundError("Organization not found", code="ORG_NOT_FOUND", detail={"slug": slug})
    return org


async def create_org(user_id: str, data: OrgCreate) -> OrgOut:
    """Create an organization; the creator becomes its owner."""
    slug = slugify(data.slug or data.name)
    if not slug:
        raise ValidationFailedError("Organization name must contain letters or digits", code="INVALID_SLUG")

    async with get_session() as session:
        existing = await session.execute(select(Organization.id).where(Organization.slug == slug))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("Slug already taken", code="SLUG_TAKEN", detail={"slug": slug})

        await ensure_profile_row(session, user_id)

        org = Organization(
            slug=slug,
            name=data.name.strip(),
            kind=data.kind,
            industry=data.industry,
            description=data.description,
            focus_areas=data.focus_areas,
            website=data.website,
            logo_url=data.logo_url,
            country=data.country,
            city=data.city,
            created_by=user_id,
        )
        session.add(org)
        await session.flush()
        session.add(OrgMember(org_id=org.id, user_id=user_id, role=ROLE_OWNER))
        await session.flush()
        await session.refresh(org)
        out = await _org_out(session, org, user_id)
        index_data = org_index_data(org)

    logger.info(f"Organization created slug={slug} by={user_id}")
    await try_sync_document("organization", index_data)
    return out


async def get_org(slug: str, viewer_id: str | None = None) -> OrgOut:
    async with get_session() as session:
        org = await _get_by_slug(session, slug)
        return await _org_out(session, org, viewer_id)


async def list_orgs(
    *,
    viewer_id: str | None = None,
    search: str | None = None,
    kind: str | None = None,
    limit: int = 50,
) -> list[OrgOut]:
    limit = max(1, min(limit, 100))
    query = select(Organization).where(Organization.is_active.is_(True))
    if kind:
        query = query.where(Organization.kind == kind)
    if search and search.strip():
        pattern = contains_pattern(search.strip())
        query = query.where(
            or_(
                Organization.name.ilike(pattern, escape=LIKE_ESCAPE),
                Organization.industry.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )
    query = query.order_by(Organization.name.asc()).limit(limit)

    async with get_session() as session:
        orgs = list((await session.execute(query)).scalars().all())
        return [await _org_out(session, org, viewer_id) for org in orgs]


async def update_org(slug: str, user_id: str, update: OrgUpdate) -> OrgOut:
    """Partial update; only owners and admins may edit."""
    async with get_session() as session:
        org = await _get_by_slug(session, slug)
        role = await _member_role(session, org.id, user_id)
        if role not in MANAGER_ROLES:
            raise ForbiddenError("Only owners and admins can edit this organization", code="ORG_FORBIDDEN")

        for key, value in update.model_dump(exclude_unset=True).items():
            setattr(org, key, value)
        await session.flush()
        await session.refresh(org)
        out = await _org_out(session, org, user_id)
        index_data = org_index_data(org)

    action = "upsert" if out.is_active else "delete"
    await try_sync_document("organization", index_data, action)
    return out


async def toggle_follow(slug: str, user_id: str) -> FollowResponse:
    async with get_session() as session:
        org = await _get_by_slug(session, slug)
        await ensure_profile_row(session, user_id)
        result = await session.execute(
            select(OrgFollow).where(OrgFollow.org_id == org.id, OrgFollow.user_id == user_id)
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            await session.execute(delete(OrgFollow).where(OrgFollow.id == existing.id))
            following = False
        else:
            session.add(OrgFollow(org_id=org.id, user_id=user_id))
            following = True
        await session.flush()
        count = await _follower_count(session, org.id)

    return FollowResponse(following=following, follower_count=max(0, count))


async def list_followed(user_id: str) -> list[OrgOut]:
    async with get_session() as session:
        result = await session.execute(
            select(Organization)
            .join(OrgFollow, OrgFollow.org_id == Organization.id)
            .where(OrgFollow.user_id == user_id)
            .order_by(OrgFollow.created_at.desc())
        )
        orgs = list(result.scalars().all())
        return [await _org_out(session, org, user_id) for org in orgs]


async def list_members(slug: str) -> list[OrgMemberOut]:
    async with get_session() as session:
        org = await _get_by_slug(session, slug)
        result = await session.execute(
            select(OrgMember, Profile)
            .join(Profile, Profile.id == OrgMember.user_id)
            .where(OrgMember.org_id == org.id)
            .order_by(OrgMember.created_at.asc())
        )
        return [
            OrgMemberOut(
                user_id=member.user_id,
                role=member.role,
                full_name=profile.full_name,
                avatar_url=profile.avatar_url,
            )
            for member, profile in result.all()
        ]


async def is_member(org_id: str, user_id: str) -> bool:
    async with get_session() as session:
        return await _member_role(session, org_id, user_id) is not None
