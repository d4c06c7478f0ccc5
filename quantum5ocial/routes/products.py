"""Products marketplace endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile

from quantum5ocial.schemas.marketplace import ProductCreate, ProductOut, ProductUpdate, SaveToggleResponse
from quantum5ocial.services.auth import get_current_user_id, get_optional_user_id
from quantum5ocial.services.marketplace import (
    LIST_MAX_LIMIT,
    attach_product_file,
    create_product,
    delete_product,
    get_product,
    list_products,
    list_saved_products,
    toggle_save_product,
    update_product,
)

router = APIRouter()


@router.get("", response_model=list[ProductOut])
async def list_all(
    q: str | None = Query(default=None, max_length=200),
    category: str | None = Query(default=None, max_length=100),
    org_id: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=LIST_MAX_LIMIT),
    viewer_id: str | None = Depends(get_optional_user_id),
) -> list[ProductOut]:
    return await list_products(viewer_id=viewer_id, search=q, category=category, org_id=org_id, limit=limit)


@router.post("", response_model=ProductOut, status_code=201)
async def create(data: ProductCreate, user_id: str = Depends(get_current_user_id)) -> ProductOut:
    return await create_product(user_id, data)


@router.get("/saved", response_model=list[ProductOut])
async def saved(user_id: str = Depends(get_current_user_id)) -> list[ProductOut]:
    return await list_saved_products(user_id)


@router.get("/{product_id}", response_model=ProductOut)
async def get_one(product_id: str, viewer_id: str | None = Depends(get_optional_user_id)) -> ProductOut:
    return await get_product(product_id, viewer_id)


@router.patch("/{product_id}", response_model=ProductOut)
async def update(product_id: str, data: ProductUpdate, user_id: str = Depends(get_current_user_id)) -> ProductOut:
    return await update_product(product_id, user_id, data)


@router.delete("/{product_id}", status_code=204)
async def remove(product_id: str, user_id: str = Depends(get_current_user_id)) -> Response:
    await delete_product(product_id, user_id)
    return Response(status_code=204)


@router.post("/{product_id}/save", response_model=SaveToggleResponse)
async def save(product_id: str, user_id: str = Depends(get_current_user_id)) -> SaveToggleResponse:
    return await toggle_save_product(user_id, product_id)


@router.post("/{product_id}/files/{kind}", response_model=ProductOut)
async def upload_file(
    product_id: str,
    kind: Literal["image", "datasheet"],
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
) -> ProductOut:
    """Upload the product image (png/jpeg/webp) or datasheet (pdf)."""
    data = await file.read()
    return await attach_product_file(product_id, user_id, kind, file.content_type or "", data)
