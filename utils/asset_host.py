"""
Client for the Cloudinary REST API.
Uploads image bytes with a fixed server-side transformation and deletes assets by public id.
Requests are signed with the API secret, see
https://cloudinary.com/documentation/authentication_signatures
"""

from dataclasses import dataclass
from typing import Dict, Optional
import hashlib
import logging
import time

import httpx

from utils.errors import UploadError

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.cloudinary.com/v1_1"

# Fit inside 800x600 without upscaling, then let the host pick the quality
UPLOAD_TRANSFORMATION = "c_limit,h_600,w_800/q_auto"

DESTROYED_RESULTS = ("ok", "not found")


@dataclass(frozen=True)
class UploadDescriptor:
    """What the asset host reports about a stored image."""
    secure_url: str
    public_id: str
    format: str
    bytes: int
    width: int
    height: int


def sign_params(params: Dict[str, object], api_secret: str) -> str:
    """
    Compute the request signature.

    Parameters are sorted by name, joined as name=value pairs with "&",
    the secret is appended and the result is hashed with SHA-1.
    """
    to_sign = "&".join(
        f"{key}={value}" for key, value in sorted(params.items()) if value not in (None, "")
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryClient:
    """Thin async wrapper over the upload, destroy and ping endpoints."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "gallery",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self._api_secret = api_secret
        self.folder = folder
        self._client = httpx.AsyncClient(
            base_url=f"{API_BASE_URL}/{cloud_name}",
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self):
        await self._client.aclose()

    def _signed(self, params: Dict[str, object]) -> Dict[str, str]:
        params = dict(params, timestamp=int(time.time()))
        signature = sign_params(params, self._api_secret)
        return {
            **{key: str(value) for key, value in params.items()},
            "api_key": self.api_key,
            "signature": signature,
        }

    async def upload(
        self,
        data: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> UploadDescriptor:
        """
        Upload image bytes into the configured folder.

        Args:
            data: Raw file content
            filename: Original file name, sent along with the content
            content_type: Declared media type of the content

        Returns:
            UploadDescriptor built from the host response

        Raises:
            UploadError: On transport failure, a non-2xx answer or an incomplete response
        """
        form = self._signed({
            "folder": self.folder,
            "transformation": UPLOAD_TRANSFORMATION,
        })
        files = {"file": (filename or "upload", data, content_type or "application/octet-stream")}

        try:
            response = await self._client.post("/image/upload", data=form, files=files)
        except httpx.HTTPError as e:
            logger.error(f"Connection error uploading to Cloudinary: {e}")
            raise UploadError("Failed to upload image")

        if response.is_error:
            logger.error(f"Cloudinary upload failed: {response.status_code} - {_error_message(response)}")
            raise UploadError("Failed to upload image")

        try:
            body = response.json()
            return UploadDescriptor(
                secure_url=body["secure_url"],
                public_id=body["public_id"],
                format=body["format"],
                bytes=int(body["bytes"]),
                width=int(body["width"]),
                height=int(body["height"]),
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Cloudinary upload returned an incomplete descriptor: {e}")
            raise UploadError("Failed to upload image")

    async def delete_by_reference(self, public_id: str) -> bool:
        """
        Delete an asset by its public id.

        Returns:
            True when the asset is gone, including when it was already missing

        Raises:
            UploadError: If the host could not be reached or refused the request
        """
        form = self._signed({"public_id": public_id})
        try:
            response = await self._client.post("/image/destroy", data=form)
        except httpx.HTTPError as e:
            logger.error(f"Connection error deleting {public_id} from Cloudinary: {e}")
            raise UploadError("Failed to delete remote image")

        if response.is_error:
            logger.error(f"Cloudinary destroy failed: {response.status_code} - {_error_message(response)}")
            raise UploadError("Failed to delete remote image")

        try:
            result = response.json().get("result")
        except (ValueError, AttributeError):
            result = None
        if result not in DESTROYED_RESULTS:
            logger.error(f"Cloudinary destroy for {public_id} answered {result!r}")
            raise UploadError("Failed to delete remote image")
        return True

    async def ping(self) -> bool:
        """Check that the host is reachable and accepts the credentials."""
        try:
            response = await self._client.get("/ping", auth=(self.api_key, self._api_secret))
        except httpx.HTTPError as e:
            logger.warning(f"Cloudinary ping failed: {e}")
            return False
        return response.status_code == 200


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.text[:200]
