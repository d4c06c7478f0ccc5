"""Jobs marketplace endpoints."""

from fastapi import APIRouter, Depends, Query, Response

from quantum5ocial.schemas.marketplace import JobCreate, JobOut, JobRecommendResponse, JobUpdate, SaveToggleResponse
from quantum5ocial.services.auth import get_current_user_id, get_optional_user_id
from quantum5ocial.services.marketplace import (
    LIST_MAX_LIMIT,
    create_job,
    delete_job,
    get_job,
    list_jobs,
    list_saved_jobs,
    recommend_jobs,
    toggle_save_job,
    update_job,
)

router = APIRouter()


@router.get("", response_model=list[JobOut])
async def list_published(
    q: str | None = Query(default=None, max_length=200, description="Search in title, company, location"),
    org_id: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=LIST_MAX_LIMIT),
    viewer_id: str | None = Depends(get_optional_user_id),
) -> list[JobOut]:
    return await list_jobs(viewer_id=viewer_id, search=q, org_id=org_id, limit=limit)


@router.post("", response_model=JobOut, status_code=201)
async def create(data: JobCreate, user_id: str = Depends(get_current_user_id)) -> JobOut:
    return await create_job(user_id, data)


@router.get("/saved", response_model=list[JobOut])
async def saved(user_id: str = Depends(get_current_user_id)) -> list[JobOut]:
    return await list_saved_jobs(user_id)


@router.get("/recommended", response_model=JobRecommendResponse)
async def recommended(user_id: str = Depends(get_current_user_id)) -> JobRecommendResponse:
    """Up to two job ids that best match the caller's profile."""
    return JobRecommendResponse(job_ids=await recommend_jobs(user_id))


@router.get("/{job_id}", response_model=JobOut)
async def get_one(job_id: str, viewer_id: str | None = Depends(get_optional_user_id)) -> JobOut:
    return await get_job(job_id, viewer_id)


@router.patch("/{job_id}", response_model=JobOut)
async def update(job_id: str, data: JobUpdate, user_id: str = Depends(get_current_user_id)) -> JobOut:
    return await update_job(job_id, user_id, data)


@router.delete("/{job_id}", status_code=204)
async def remove(job_id: str, user_id: str = Depends(get_current_user_id)) -> Response:
    await delete_job(job_id, user_id)
    return Response(status_code=204)


@router.post("/{job_id}/save", response_model=SaveToggleResponse)
async def save(job_id: str, user_id: str = Depends(get_current_user_id)) -> SaveToggleResponse:
    return await toggle_save_job(user_id, job_id)
