"""
Image upload and removal workflow.
Combines the asset host with the metadata store and applies the request limits.
"""

from fastapi import UploadFile
from math import ceil
from typing import List, Optional, Tuple
from uuid import UUID
import logging

from models.image_models import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    Image,
    Pagination,
)
from utils.asset_host import CloudinaryClient
from utils.errors import NotFoundError, UploadError, ValidationError, field_error
from utils.image_store import ImageStore

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 12
MAX_LIMIT = 100
# Keeps the OFFSET (page - 1) * limit inside a signed 64-bit integer
MAX_PAGE = (2 ** 63 - 1) // MAX_LIMIT


def _positive_int(raw, default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def parse_pagination(page: Optional[str], limit: Optional[str]) -> Tuple[int, int]:
    """
    Turn raw query values into (page, limit), falling back to 1 and 12.
    Pages past MAX_PAGE are clamped to it; such a page is simply empty.
    """
    return (
        min(_positive_int(page, DEFAULT_PAGE), MAX_PAGE),
        min(_positive_int(limit, DEFAULT_LIMIT), MAX_LIMIT),
    )


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(
        current_page=page,
        total_pages=ceil(total / limit),
        total_images=total,
        has_next_page=page * limit < total,
        has_prev_page=page > 1,
    )


def parse_image_id(raw: str) -> UUID:
    """Image ids that are not UUIDs cannot exist, so they are reported as not found."""
    try:
        return UUID(raw)
    except (TypeError, ValueError):
        raise NotFoundError("Image not found")


def validate_text_fields(title: Optional[str], description: Optional[str]) -> Tuple[Optional[str], Optional[str], List[dict]]:
    """
    Trim and check the title and description of an upload.

    Returns:
        Tuple of (title, description, field errors)
    """
    errors = []
    title = (title or "").strip()
    if not title:
        errors.append(field_error("title", "Title is required"))
    elif len(title) > TITLE_MAX_LENGTH:
        errors.append(field_error("title", f"Title cannot exceed {TITLE_MAX_LENGTH} characters"))

    description = (description or "").strip() or None
    if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
        errors.append(field_error("description", f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"))

    return title, description, errors


async def read_image_file(file: Optional[UploadFile]) -> Tuple[Optional[bytes], List[dict]]:
    """
    Check the uploaded file and read it into memory.
    Nothing is read unless the declared content type is an image, and at most
    one byte past the size ceiling is read.

    Returns:
        Tuple of (file content or None, field errors)
    """
    if file is None or not file.filename:
        return None, [field_error("image", "No image file provided")]

    content_type = (file.content_type or "").lower()
    if not content_type.startswith("image/"):
        return None, [field_error("image", "Only image files are allowed")]

    data = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        return None, [field_error("image", "Image cannot exceed 10 MB")]
    if not data:
        return None, [field_error("image", "Image file is empty")]
    return data, []


class ImageService:
    """Upload, listing and deletion of a user's images."""

    def __init__(self, images: ImageStore, asset_host: CloudinaryClient):
        self.images = images
        self.asset_host = asset_host

    async def upload_image(
        self,
        owner_id: UUID,
        file: Optional[UploadFile],
        title: Optional[str],
        description: Optional[str] = None,
    ) -> Image:
        """
        Validate the request, push the bytes to the asset host and record the result.
        The stored dimensions, format and size are the ones the host reports.

        Raises:
            ValidationError: Listing every problem with the file and text fields
            UploadError: If the asset host fails; nothing is stored in that case
        """
        data, errors = await read_image_file(file)
        title, description, text_errors = validate_text_fields(title, description)
        errors.extend(text_errors)
        if errors:
            raise ValidationError(errors=errors)

        descriptor = await self.asset_host.upload(
            data,
            filename=file.filename,
            content_type=file.content_type,
        )

        try:
            image = await self.images.create(owner_id, descriptor, title, description)
        except Exception:
            logger.error(f"Saving metadata for {descriptor.public_id} failed, removing the remote asset")
            try:
                await self.asset_host.delete_by_reference(descriptor.public_id)
            except UploadError:
                logger.warning(f"Remote asset {descriptor.public_id} is orphaned")
            raise

        logger.info(f"User {owner_id} uploaded image {image.id} ({image.format}, {image.size} bytes)")
        return image

    async def list_images(self, owner_id: UUID, page: int, limit: int) -> Tuple[List[Image], Pagination]:
        images, total = await self.images.list_by_owner(owner_id, page, limit)
        return images, build_pagination(page, limit, total)

    async def get_image(self, image_id: UUID, owner_id: UUID) -> Image:
        image = await self.images.get_owned(image_id, owner_id)
        if image is None:
            raise NotFoundError("Image not found")
        return image

    async def update_image(
        self,
        image_id: UUID,
        owner_id: UUID,
        title: Optional[str],
        description: Optional[str],
    ) -> Image:
        image = await self.images.update_owned(image_id, owner_id, title, description)
        if image is None:
            raise NotFoundError("Image not found")
        return image

    async def delete_image(self, image_id: UUID, owner_id: UUID) -> bool:
        """
        Remove an owned image.
        Remote deletion is best effort: a host failure is logged and the local
        record is removed anyway.

        Returns:
            Whether the remote asset was deleted

        Raises:
            NotFoundError: If the caller has no image with this id
        """
        image = await self.get_image(image_id, owner_id)

        try:
            asset_deleted = await self.asset_host.delete_by_reference(image.public_id)
        except UploadError as e:
            logger.warning(f"Remote asset {image.public_id} of image {image.id} was not deleted: {e}")
            asset_deleted = False

        if not await self.images.delete_owned(image_id, owner_id):
            raise NotFoundError("Image not found")

        logger.info(f"User {owner_id} deleted image {image_id}")
        return asset_deleted
