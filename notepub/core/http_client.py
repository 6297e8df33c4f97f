"""Request executor abstraction and its ``requests``-backed implementation."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

import requests

_LOGGER = logging.getLogger(__name__)
_ERROR_BODY_LIMIT = 500


class HttpRequestError(RuntimeError):
    """Raised when a request fails on the network or returns a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        body: str = "",
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body
        self.details = dict(details or {})

    def __str__(self) -> str:
        base = super().__str__()
        details = dict(self.details)
        if self.status is not None:
            details["status"] = self.status
        if self.body:
            details["body"] = self.body[:200]
        if not details:
            return base
        try:
            detail_repr = json.dumps(details, ensure_ascii=False)
        except TypeError:
            detail_repr = str(details)
        return f"{base} | details: {detail_repr}"


@dataclass(slots=True)
class HttpRequest:
    url: str
    method: str = "GET"
    headers: Mapping[str, str] | None = None
    data: bytes | None = None
    timeout: float | None = None


@dataclass(slots=True)
class HttpResponse:
    url: str
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    text: str = ""
    elapsed: float = 0.0

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup; services disagree on casing."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    def json(self) -> Any:
        return json.loads(self.text)


class RequestExecutor(Protocol):
    """Performs a single HTTP exchange."""

    async def execute(self, request: HttpRequest) -> HttpResponse:
        """Send ``request``; raise :class:`HttpRequestError` on failure."""


class RequestsExecutor:
    """Executes requests on a ``requests.Session`` in a worker thread."""

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self._timeout = timeout
        self._session = session or requests.Session()

    async def execute(self, request: HttpRequest) -> HttpResponse:
        return await asyncio.to_thread(self._send, request)

    def close(self) -> None:
        self._session.close()

    def _send(self, request: HttpRequest) -> HttpResponse:
        method = request.method.upper()
        timeout = request.timeout if request.timeout is not None else self._timeout
        start = time.monotonic()
        _LOGGER.debug(
            "HTTP %s %s payload_bytes=%d timeout=%.1fs",
            method,
            request.url,
            len(request.data or b""),
            timeout,
        )
        try:
            response = self._session.request(
                method,
                request.url,
                headers=dict(request.headers or {}),
                data=request.data,
                timeout=timeout,
            )
        except requests.RequestException as exc:
            raise HttpRequestError(
                "HTTP request failed",
                details={"url": request.url, "method": method, "reason": str(exc)},
            ) from exc

        elapsed = time.monotonic() - start
        if not response.ok:
            _LOGGER.warning(
                "HTTP %s %s returned %s after %.2fs",
                method,
                request.url,
                response.status_code,
                elapsed,
            )
            raise HttpRequestError(
                "Unexpected HTTP status",
                status=response.status_code,
                body=response.text[:_ERROR_BODY_LIMIT],
                details={"url": request.url, "method": method},
            )

        return HttpResponse(
            url=response.url,
            status=response.status_code,
            headers=dict(response.headers.items()),
            body=response.content,
            text=response.text,
            elapsed=elapsed,
        )


__all__ = [
    "HttpRequest",
    "HttpRequestError",
    "HttpResponse",
    "RequestExecutor",
    "RequestsExecutor",
]
