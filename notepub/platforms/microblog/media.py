"""Micro.blog media upload with a hand-built multipart body."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from pathlib import PurePosixPath

from ...core.http_client import HttpRequest, RequestExecutor
from ...utils.logging import get_logger
from .api import bearer_headers

LOGGER = get_logger(__name__)

MEDIA_ENDPOINT = "https://micro.blog/micropub/media"

_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
}
_FALLBACK_MIME_TYPE = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class MultipartPayload:
    body: bytes
    boundary: str

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"


def mime_type_for(filename: str) -> str:
    extension = PurePosixPath(filename).suffix.lstrip(".").lower()
    return _MIME_TYPES.get(extension, _FALLBACK_MIME_TYPE)


def new_boundary() -> str:
    return "----WebKitFormBoundary" + uuid.uuid4().hex


def encode_multipart(
    content: bytes,
    filename: str,
    mime_type: str,
    *,
    field_name: str = "file",
    boundary: str | None = None,
) -> MultipartPayload:
    """Wrap ``content`` in a single-part multipart/form-data body.

    The bytes are copied verbatim between the part header and the closing
    boundary; the receiving side relies on exactly that order.
    """
    boundary = boundary or new_boundary()
    header = (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{field_name}"; filename="{filename}"\r\n'
        f"Content-Type: {mime_type}\r\n\r\n"
    ).encode("utf-8")
    trailer = f"\r\n--{boundary}--\r\n".encode("utf-8")
    return MultipartPayload(body=header + bytes(content) + trailer, boundary=boundary)


class MicroblogMediaUploader:
    """Posts images to the Micropub media endpoint."""

    def __init__(self, executor: RequestExecutor, *, endpoint: str = MEDIA_ENDPOINT) -> None:
        self._executor = executor
        self._endpoint = endpoint

    async def upload(self, filename: str, content: bytes, *, access_token: str) -> str | None:
        """Upload one image and return its hosted location, if the service sent one."""
        payload = encode_multipart(content, filename, mime_type_for(filename))
        request = HttpRequest(
            url=self._endpoint,
            method="POST",
            headers=bearer_headers(access_token, **{"Content-Type": payload.content_type}),
            data=payload.body,
        )
        LOGGER.info(
            "Uploading %s bytes=%d",
            filename,
            len(content),
            extra={"event": "media.upload"},
        )
        response = await self._executor.execute(request)
        location = response.header("Location")
        if not location:
            LOGGER.warning("No location returned for %s status=%s", filename, response.status)
        return location or None
