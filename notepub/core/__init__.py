"""Core primitives for talking to remote services."""

from .http_client import (
    HttpRequest,
    HttpRequestError,
    HttpResponse,
    RequestExecutor,
    RequestsExecutor,
)

__all__ = [
    "HttpRequest",
    "HttpRequestError",
    "HttpResponse",
    "RequestExecutor",
    "RequestsExecutor",
]
