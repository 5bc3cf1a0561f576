"""
ASGI middleware that bounds the size of upload requests.
Oversized bodies are refused before the multipart parser writes anything to a
temporary file: a declared Content-Length over the ceiling is answered at once,
and chunked bodies are counted while they stream and cut off at the ceiling.
"""

from fastapi import status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send
from typing import Optional
import logging

from utils.auth import extract_bearer_token
from utils.errors import error_body, field_error

logger = logging.getLogger(__name__)

# Room for the boundaries, part headers, title and description around the file
FORM_OVERHEAD_BYTES = 64 * 1024

TOO_LARGE_MESSAGE = "Image cannot exceed 10 MB"


class UploadTooLargeError(StarletteHTTPException):
    """
    The request body grew past the ceiling while it was being read.
    Raised from inside receive(), so FastAPI's body parsing lets it through
    untouched and the HTTP exception handler renders it.
    """

    def __init__(self):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail="Validation failed")
        self.errors = [field_error("image", TOO_LARGE_MESSAGE)]


def _header(scope: Scope, name: bytes) -> Optional[str]:
    for key, value in scope.get("headers", []):
        if key.lower() == name:
            return value.decode("latin-1")
    return None


class UploadLimitMiddleware:
    """
    Guard one upload endpoint.

    Args:
        app: Wrapped ASGI application
        path: Exact request path of the upload endpoint
        max_body_bytes: Largest request body accepted, form overhead included
    """

    def __init__(self, app: ASGIApp, path: str, max_body_bytes: int):
        self.app = app
        self.path = path
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] != "POST" or scope["path"] != self.path:
            await self.app(scope, receive, send)
            return

        if extract_bearer_token(_header(scope, b"authorization")) is None:
            response = JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content=error_body("Not authorized, no token"),
            )
            await response(scope, receive, send)
            return

        declared = _header(scope, b"content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_body_bytes:
            logger.warning(f"Refused upload of {declared} bytes on {self.path}")
            response = JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=error_body("Validation failed", [field_error("image", TOO_LARGE_MESSAGE)]),
            )
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    logger.warning(f"Upload on {self.path} passed {self.max_body_bytes} bytes, cutting it off")
                    raise UploadTooLargeError()
            return message

        await self.app(scope, limited_receive, send)
