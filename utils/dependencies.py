"""
FastAPI dependencies that hand out the components built at startup.
Everything lives on app.state, set up by main.create_app.
"""

from fastapi import Request

from utils.asset_host import CloudinaryClient
from utils.image_service import ImageService
from utils.image_store import ImageStore
from utils.security import TokenService
from utils.user_store import UserStore


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_image_store(request: Request) -> ImageStore:
    return request.app.state.image_store


def get_asset_host(request: Request) -> CloudinaryClient:
    return request.app.state.asset_host


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_image_service(request: Request) -> ImageService:
    return ImageService(request.app.state.image_store, request.app.state.asset_host)
