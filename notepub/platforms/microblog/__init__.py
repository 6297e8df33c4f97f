"""Micro.blog platform adapters."""

from __future__ import annotations

from .api import MicroblogApiError, PublishOutcome
from .media import (
    MicroblogMediaUploader,
    MultipartPayload,
    encode_multipart,
    mime_type_for,
)
from .posts import MicroblogPostClient

__all__ = [
    "MicroblogApiError",
    "MicroblogMediaUploader",
    "MicroblogPostClient",
    "MultipartPayload",
    "PublishOutcome",
    "encode_multipart",
    "mime_type_for",
]
