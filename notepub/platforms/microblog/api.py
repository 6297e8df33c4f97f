"""Micro.blog API helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping


class MicroblogApiError(RuntimeError):
    """Raised when Micro.blog answers with something we cannot use."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = dict(details or {})

    def __str__(self) -> str:
        base = super().__str__()
        if not self.details:
            return base
        try:
            detail_repr = json.dumps(self.details, ensure_ascii=False)
        except TypeError:
            detail_repr = str(self.details)
        return f"{base} | details: {detail_repr}"


@dataclass(slots=True)
class PublishOutcome:
    """Parsed response of a successful publish request."""

    url: str
    preview: str
    renamed_to: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "PublishOutcome":
        if not isinstance(payload, dict):
            raise MicroblogApiError(
                "Publish response is not a JSON object", details={"response": payload}
            )
        url = payload.get("url")
        preview = payload.get("preview")
        if not isinstance(url, str) or not url or not isinstance(preview, str):
            raise MicroblogApiError(
                "Publish response is missing url or preview", details={"response": payload}
            )
        return cls(url=url, preview=preview)


def bearer_headers(access_token: str, **extra: str) -> dict[str, str]:
    headers = {"Authorization": f"Bearer {access_token}"}
    headers.update(extra)
    return headers
