"""Schemas for jobs and products."""

from datetime import datetime

from pydantic import BaseModel, Field


class JobCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    company_name: str = Field(min_length=1, max_length=200)
    org_id: str | None = None
    location: str | None = None
    employment_type: str | None = None
    remote_type: str | None = None
    salary_display: str | None = None
    apply_url: str | None = None
    additional_description: str | None = None
    is_published: bool = True


class JobUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    company_name: str | None = Field(default=None, min_length=1, max_length=200)
    location: str | None = None
    employment_type: str | None = None
    remote_type: str | None = None
    salary_display: str | None = None
    apply_url: str | None = None
    additional_description: str | None = None
    is_published: bool | None = None


class JobOut(BaseModel):
    id: str
    owner_id: str
    org_id: str | None = None
    title: str
    company_name: str
    location: str | None = None
    employment_type: str | None = None
    remote_type: str | None = None
    salary_display: str | None = None
    apply_url: str | None = None
    additional_description: str | None = None
    is_published: bool = True
    created_at: datetime | None = None
    saved_by_me: bool = False

    model_config = {"from_attributes": True}


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    company_name: str = Field(min_length=1, max_length=200)
    org_id: str | None = None
    category: str | None = None
    short_description: str | None = None
    specifications: str | None = None
    price_display: str | None = None
    product_url: str | None = None
    in_stock: bool = True


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    company_name: str | None = Field(default=None, min_length=1, max_length=200)
    category: str | None = None
    short_description: str | None = None
    specifications: str | None = None
    price_display: str | None = None
    product_url: str | None = None
    in_stock: bool | None = None


class ProductOut(BaseModel):
    id: str
    owner_id: str
    org_id: str | None = None
    name: str
    company_name: str
    category: str | None = None
    short_description: str | None = None
    specifications: str | None = None
    price_display: str | None = None
    product_url: str | None = None
    image_url: str | None = None
    datasheet_url: str | None = None
    in_stock: bool = True
    created_at: datetime | None = None
    saved_by_me: bool = False

    model_config = {"from_attributes": True}


class SaveToggleResponse(BaseModel):
    saved: bool


class JobRecommendResponse(BaseModel):
    job_ids: list[str]
