"""
Pydantic models for image metadata, listing and updates.
"""

from pydantic import Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime
from uuid import UUID

from models.common_models import CamelModel

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500


class Image(CamelModel):
    """Image metadata as persisted after a successful upload."""
    id: UUID
    title: str
    description: Optional[str] = None
    url: str
    public_id: str
    format: str
    size: int = Field(..., description="Size in bytes as reported by the asset host")
    width: int
    height: int
    user_id: UUID
    created_at: datetime
    updated_at: datetime


class ImageUpdate(CamelModel):
    """Body of PATCH /images/{id}. At least one field is required."""
    title: Optional[str] = None
    description: Optional[str] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        if len(value) > TITLE_MAX_LENGTH:
            raise ValueError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")
        return value

    @field_validator("description")
    @classmethod
    def check_description(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if len(value) > DESCRIPTION_MAX_LENGTH:
            raise ValueError(f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters")
        return value

    @model_validator(mode="after")
    def require_a_field(self):
        if self.title is None and self.description is None:
            raise ValueError("No fields to update")
        return self


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_images: int
    has_next_page: bool
    has_prev_page: bool


class ImageData(CamelModel):
    image: Image


class ImageListData(CamelModel):
    images: List[Image]
    pagination: Pagination


class DeleteData(CamelModel):
    asset_deleted: bool
