"""Micropub post submission."""

from __future__ import annotations

import json
import urllib.parse
from typing import Sequence

from ...core.http_client import HttpRequest, RequestExecutor
from ...utils.logging import get_logger
from .api import MicroblogApiError, PublishOutcome, bearer_headers

LOGGER = get_logger(__name__)

MICROPUB_ENDPOINT = "https://micro.blog/micropub"
_DEFAULT_DESTINATION = "default"


class MicroblogPostClient:
    """Creates posts through the Micropub endpoint."""

    def __init__(self, executor: RequestExecutor, *, endpoint: str = MICROPUB_ENDPOINT) -> None:
        self._executor = executor
        self._endpoint = endpoint

    def build_request(
        self,
        *,
        access_token: str,
        title: str,
        content: str,
        tags: Sequence[str],
        visibility: str,
        destination: str,
        scheduled_date: str,
    ) -> HttpRequest:
        fields: list[tuple[str, str]] = [("h", "entry"), ("content", content)]
        if title:
            fields.append(("name", title))
        fields.extend(("category[]", tag) for tag in tags)
        fields.append(("post-status", visibility))
        if destination and destination != _DEFAULT_DESTINATION:
            fields.append(("mp-destination", destination))
        if scheduled_date:
            fields.append(("published", scheduled_date))
        return HttpRequest(
            url=self._endpoint,
            method="POST",
            headers=bearer_headers(
                access_token,
                **{"Content-Type": "application/x-www-form-urlencoded; charset=utf-8"},
            ),
            data=urllib.parse.urlencode(fields).encode("utf-8"),
        )

    async def publish(
        self,
        *,
        access_token: str,
        title: str,
        content: str,
        tags: Sequence[str],
        visibility: str,
        destination: str,
        scheduled_date: str,
    ) -> PublishOutcome:
        """Submit a post and return the hosted URL and preview link."""
        request = self.build_request(
            access_token=access_token,
            title=title,
            content=content,
            tags=tags,
            visibility=visibility,
            destination=destination,
            scheduled_date=scheduled_date,
        )
        response = await self._executor.execute(request)
        try:
            payload = response.json()
        except json.JSONDecodeError as exc:
            raise MicroblogApiError(
                "Failed to decode publish response",
                details={"status": response.status, "response": response.text[:200]},
            ) from exc
        outcome = PublishOutcome.from_payload(payload)
        LOGGER.info("Published %s", outcome.url, extra={"event": "post.published"})
        return outcome
