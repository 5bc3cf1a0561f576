"""
Image gallery routes.
All endpoints require authentication and only ever touch the caller's own images.
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from typing import Optional
import logging

from models.common_models import ApiResponse
from models.image_models import DeleteData, ImageData, ImageListData, ImageUpdate
from utils.auth import AuthContext, get_current_user
from utils.dependencies import get_image_service
from utils.image_service import ImageService, parse_image_id, parse_pagination

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload", response_model=ApiResponse[ImageData], status_code=status.HTTP_201_CREATED)
async def upload_image(
    image: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    auth: AuthContext = Depends(get_current_user),
    service: ImageService = Depends(get_image_service),
):
    """
    Upload a new image (multipart/form-data).

    - **image**: Image file, at most 10 MB
    - **title**: Required, up to 100 characters
    - **description**: Optional, up to 500 characters
    """
    record = await service.upload_image(auth.user.id, image, title, description)
    return ApiResponse(message="Image uploaded successfully", data=ImageData(image=record))


@router.get("", response_model=ApiResponse[ImageListData])
async def list_images(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    auth: AuthContext = Depends(get_current_user),
    service: ImageService = Depends(get_image_service),
):
    """
    Get the current user's images, newest first.

    Query Parameters:
    - page: Page number (default: 1)
    - limit: Images per page (default: 12, maximum: 100)
    """
    page_number, page_size = parse_pagination(page, limit)
    images, pagination = await service.list_images(auth.user.id, page_number, page_size)
    return ApiResponse(data=ImageListData(images=images, pagination=pagination))


@router.get("/{image_id}", response_model=ApiResponse[ImageData])
async def get_image(
    image_id: str,
    auth: AuthContext = Depends(get_current_user),
    service: ImageService = Depends(get_image_service),
):
    """Get a single image by ID."""
    record = await service.get_image(parse_image_id(image_id), auth.user.id)
    return ApiResponse(data=ImageData(image=record))


@router.patch("/{image_id}", response_model=ApiResponse[ImageData])
async def update_image(
    image_id: str,
    changes: ImageUpdate,
    auth: AuthContext = Depends(get_current_user),
    service: ImageService = Depends(get_image_service),
):
    """
    Update the title and/or description of an image.

    - **title**: New title (optional)
    - **description**: New description (optional)
    """
    record = await service.update_image(
        parse_image_id(image_id),
        auth.user.id,
        changes.title,
        changes.description,
    )
    return ApiResponse(message="Image updated successfully", data=ImageData(image=record))


@router.delete("/{image_id}", response_model=ApiResponse[DeleteData])
async def delete_image(
    image_id: str,
    auth: AuthContext = Depends(get_current_user),
    service: ImageService = Depends(get_image_service),
):
    """
    Delete an image and its remote asset.

    The record is removed even when the asset host fails to delete the file;
    data.assetDeleted tells whether the remote copy is gone.
    """
    asset_deleted = await service.delete_image(parse_image_id(image_id), auth.user.id)
    return ApiResponse(message="Image deleted successfully", data=DeleteData(asset_deleted=asset_deleted))
