"""Pydantic schemas for API request/response validation."""

from quantum5ocial.schemas.common import ErrorDetail, ErrorResponse, OrgLite, ProfileLite

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "OrgLite",
    "ProfileLite",
]
