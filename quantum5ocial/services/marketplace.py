"""Jobs and products marketplaces.

Listings are owned by the member who created them (optionally on behalf of an
organization they belong to). Members can save listings to personal lists.
Every write is mirrored to the search index on a best-effort basis.
"""

import logging
from typing import Any

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from quantum5ocial.models import Job, Product, SavedJob, SavedProduct
from quantum5ocial.schemas.marketplace import (
    JobCreate,
    JobOut,
    JobUpdate,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    SaveToggleResponse,
)
from quantum5ocial.services.errors import ForbiddenError, NotFoundError, ValidationFailedError
from quantum5ocial.services.llm import LlmError
from quantum5ocial.services.members import ensure_profile_row
from quantum5ocial.services.orgs import is_member
from quantum5ocial.services.profiles import load_interest_text
from quantum5ocial.services.search_index import search_text, try_sync_document
from quantum5ocial.stores.files import StorageError, delete_object, save_object
from quantum5ocial.stores.postgres import LIKE_ESCAPE, contains_pattern, get_session

logger = logging.getLogger("uvicorn.error")

LIST_MAX_LIMIT = 100
RECOMMEND_CANDIDATES = 50
RECOMMEND_TOP = 2


def job_index_data(job: Job) -> dict[str, Any]:
    return {
        "id": job.id,
        "title": job.title,
        "company_name": job.company_name,
        "location": job.location,
        "additional_description": job.additional_description,
    }


def product_index_data(product: Product) -> dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "company_name": product.company_name,
        "category": product.category,
        "short_description": product.short_description,
    }


async def _check_org(org_id: str | None, user_id: str) -> None:
    if org_id and not await is_member(org_id, user_id):
        raise ForbiddenError("Only members can list for this organization", code="ORG_FORBIDDEN")


async def _saved_ids(session: AsyncSession, column, owner_column, user_id: str | None, ids: list[str]) -> set[str]:
    if not user_id or not ids:
        return set()
    result = await session.execute(select(column).where(owner_column == user_id, column.in_(ids)))
    return set(result.scalars().all())


def _job_out(job: Job, saved: set[str]) -> JobOut:
    out = JobOut.model_validate(job)
    out.saved_by_me = job.id in saved
    return out


def _product_out(product: Product, saved: set[str]) -> ProductOut:
    out = ProductOut.model_validate(product)
    out.saved_by_me = product.id in saved
    return out


# ============================================================
# Jobs
# ============================================================


async def create_job(user_id: str, data: JobCreate) -> JobOut:
    await _check_org(data.org_id, user_id)
    async with get_session() as session:
        await ensure_profile_row(session, user_id)
        job = Job(owner_id=user_id, **data.model_dump())
        session.add(job)
        await session.flush()
        await session.refresh(job)
        out = _job_out(job, set())
        index_data = job_index_data(job)

    if out.is_published:
        await try_sync_document("job", index_data)
    return out


async def _owned_job(session: AsyncSession, job_id: str, user_id: str) -> Job:
    job = await session.get(Job, job_id)
    if job is None:
        raise NotFoundError("Job not found", code="JOB_NOT_FOUND")
    if job.owner_id != user_id:
        raise ForbiddenError("You can only edit your own listings", code="NOT_OWNER")
    return job


async def update_job(job_id: str, user_id: str, update: JobUpdate) -> JobOut:
    async with get_session() as session:
        job = await _owned_job(session, job_id, user_id)
        for key, value in update.model_dump(exclude_unset=True).items():
            setattr(job, key, value)
        await session.flush()
        await session.refresh(job)
        out = _job_out(job, set())
        index_data = job_index_data(job)

    await try_sync_document("job", index_data, "upsert" if out.is_published else "delete")
    return out


async def delete_job(job_id: str, user_id: str) -> None:
    async with get_session() as session:
        job = await _owned_job(session, job_id, user_id)
        await session.delete(job)
    await try_sync_document("job", {"id": job_id}, "delete")


async def get_job(job_id: str, viewer_id: str | None = None) -> JobOut:
    async with get_session() as session:
        job = await session.get(Job, job_id)
        if job is None or (not job.is_published and job.owner_id != viewer_id):
            raise NotFoundError("Job not found", code="JOB_NOT_FOUND")
        saved = await _saved_ids(session, SavedJob.job_id, SavedJob.user_id, viewer_id, [job.id])
        return _job_out(job, saved)


async def list_jobs(
    *,
    viewer_id: str | None = None,
    search: str | None = None,
    org_id: str | None = None,
    limit: int = 50,
) -> list[JobOut]:
    """Published jobs, newest first."""
    limit = max(1, min(limit, LIST_MAX_LIMIT))
    query = select(Job).where(Job.is_published.is_(True))
    if search and search.strip():
        pattern = contains_pattern(search.strip())
        query = query.where(
            or_(
                Job.title.ilike(pattern, escape=LIKE_ESCAPE),
                Job.company_name.ilike(pattern, escape=LIKE_ESCAPE),
                Job.location.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )
    if org_id:
        query = query.where(Job.org_id == org_id)
    query = query.order_by(Job.created_at.desc()).limit(limit)

    async with get_session() as session:
        jobs = list((await session.execute(query)).scalars().all())
        saved = await _saved_ids(session, SavedJob.job_id, SavedJob.user_id, viewer_id, [j.id for j in jobs])
        return [_job_out(j, saved) for j in jobs]


async def toggle_save_job(user_id: str, job_id: str) -> SaveToggleResponse:
    async with get_session() as session:
        if await session.get(Job, job_id) is None:
            raise NotFoundError("Job not found", code="JOB_NOT_FOUND")
        await ensure_profile_row(session, user_id)
        result = await session.execute(
            delete(SavedJob).where(SavedJob.user_id == user_id, SavedJob.job_id == job_id)
        )
        saved = not result.rowcount
        if saved:
            session.add(SavedJob(user_id=user_id, job_id=job_id))
    return SaveToggleResponse(saved=saved)


async def list_saved_jobs(user_id: str) -> list[JobOut]:
    async with get_session() as session:
        result = await session.execute(
            select(Job)
            .join(SavedJob, SavedJob.job_id == Job.id)
            .where(SavedJob.user_id == user_id)
            .order_by(SavedJob.created_at.desc())
        )
        jobs = list(result.scalars().all())
        return [_job_out(j, {j.id for j in jobs}) for j in jobs]


async def recommend_jobs(user_id: str) -> list[str]:
    """Top job ids for a member's interests (at most two)."""
    text = await load_interest_text(user_id)
    if text is None:
        raise NotFoundError("Profile not found", code="PROFILE_NOT_FOUND", detail={"user_id": user_id})
    if not text:
        return []

    try:
        matches = await search_text(text, count=RECOMMEND_CANDIDATES)
    except LlmError as e:
        logger.warning(f"[jobs] recommendation skipped: {e}")
        return []

    job_ids: list[str] = []
    for m in matches:
        if m.doc_type == "job" and m.link not in job_ids:
            job_ids.append(m.link)
    return job_ids[:RECOMMEND_TOP]


# ============================================================
# Products
# ============================================================


async def create_product(user_id: str, data: ProductCreate) -> ProductOut:
    await _check_org(data.org_id, user_id)
    async with get_session() as session:
        await ensure_profile_row(session, user_id)
        product = Product(owner_id=user_id, **data.model_dump())
        session.add(product)
        await session.flush()
        await session.refresh(product)
        out = _product_out(product, set())
        index_data = product_index_data(product)

    await try_sync_document("product", index_data)
    return out


async def _owned_product(session: AsyncSession, product_id: str, user_id: str) -> Product:
    product = await session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")
    if product.owner_id != user_id:
        raise ForbiddenError("You can only edit your own listings", code="NOT_OWNER")
    return product


async def update_product(product_id: str, user_id: str, update: ProductUpdate) -> ProductOut:
    async with get_session() as session:
        product = await _owned_product(session, product_id, user_id)
        for key, value in update.model_dump(exclude_unset=True).items():
            setattr(product, key, value)
        await session.flush()
        await session.refresh(product)
        out = _product_out(product, set())
        index_data = product_index_data(product)

    await try_sync_document("product", index_data)
    return out


async def delete_product(product_id: str, user_id: str) -> None:
    async with get_session() as session:
        product = await _owned_product(session, product_id, user_id)
        files = [("products", product.image_url), ("datasheets", product.datasheet_url)]
        await session.delete(product)

    for bucket, url in files:
        if url:
            delete_object(bucket, url)
    await try_sync_document("product", {"id": product_id}, "delete")


async def get_product(product_id: str, viewer_id: str | None = None) -> ProductOut:
    async with get_session() as session:
        product = await session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")
        saved = await _saved_ids(session, SavedProduct.product_id, SavedProduct.user_id, viewer_id, [product.id])
        return _product_out(product, saved)


async def list_products(
    *,
    viewer_id: str | None = None,
    search: str | None = None,
    category: str | None = None,
    org_id: str | None = None,
    limit: int = 50,
) -> list[ProductOut]:
    limit = max(1, min(limit, LIST_MAX_LIMIT))
    query = select(Product)
    if search and search.strip():
        pattern = contains_pattern(search.strip())
        query = query.where(
            or_(
                Product.name.ilike(pattern, escape=LIKE_ESCAPE),
                Product.company_name.ilike(pattern, escape=LIKE_ESCAPE),
                Product.short_description.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )
    if category:
        query = query.where(Product.category == category)
    if org_id:
        query = query.where(Product.org_id == org_id)
    query = query.order_by(Product.created_at.desc()).limit(limit)

    async with get_session() as session:
        products = list((await session.execute(query)).scalars().all())
        saved = await _saved_ids(
            session, SavedProduct.product_id, SavedProduct.user_id, viewer_id, [p.id for p in products]
        )
        return [_product_out(p, saved) for p in products]


async def toggle_save_product(user_id: str, product_id: str) -> SaveToggleResponse:
    async with get_session() as session:
        if await session.get(Product, product_id) is None:
            raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")
        await ensure_profile_row(session, user_id)
        result = await session.execute(
            delete(SavedProduct).where(SavedProduct.user_id == user_id, SavedProduct.product_id == product_id)
        )
        saved = not result.rowcount
        if saved:
            session.add(SavedProduct(user_id=user_id, product_id=product_id))
    return SaveToggleResponse(saved=saved)


async def list_saved_products(user_id: str) -> list[ProductOut]:
    async with get_session() as session:
        result = await session.execute(
            select(Product)
            .join(SavedProduct, SavedProduct.product_id == Product.id)
            .where(SavedProduct.user_id == user_id)
            .order_by(SavedProduct.created_at.desc())
        )
        products = list(result.scalars().all())
        return [_product_out(p, {p.id for p in products}) for p in products]


async def attach_product_file(
    product_id: str,
    user_id: str,
    kind: str,
    content_type: str,
    data: bytes,
) -> ProductOut:
    """Upload a product image (`kind="image"`) or datasheet (`kind="datasheet"`)."""
    bucket, attr = {"image": ("products", "image_url"), "datasheet": ("datasheets", "datasheet_url")}.get(
        kind, (None, None)
    )
    if bucket is None:
        raise ValidationFailedError(f"Unknown file kind: {kind}", code="INVALID_FILE_KIND")

    async with get_session() as session:
        await _owned_product(session, product_id, user_id)

    try:
        url = save_object(bucket, user_id, content_type, data)
    except StorageError as e:
        raise ValidationFailedError(str(e), code="UPLOAD_REJECTED") from e

    async with get_session() as session:
        product = await _owned_product(session, product_id, user_id)
        previous = getattr(product, attr)
        setattr(product, attr, url)
        await session.flush()
        await session.refresh(product)
        out = _product_out(product, set())

    if previous and previous != url:
        delete_object(bucket, previous)
    return out
