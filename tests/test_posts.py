from __future__ import annotations

import asyncio
import urllib.parse

import pytest

from notepub.core.http_client import HttpRequest, HttpResponse
from notepub.platforms.microblog.api import MicroblogApiError, PublishOutcome
from notepub.platforms.microblog.posts import MicroblogPostClient


class StubExecutor:
    def __init__(self, text: str) -> None:
        self._text = text

    async def execute(self, request: HttpRequest) -> HttpResponse:
        return HttpResponse(url=request.url, status=202, text=self._text)


def _client(text: str = "{}") -> MicroblogPostClient:
    return MicroblogPostClient(StubExecutor(text))


def test_build_request_fields() -> None:
    request = _client().build_request(
        access_token="T",
        title="",
        content="Hello & welcome",
        tags=["a", "b"],
        visibility="draft",
        destination="https://x.blog/",
        scheduled_date="2025-04-14T08:00:00.000Z",
    )

    assert request.url == "https://micro.blog/micropub"
    assert request.method == "POST"
    assert request.headers["Authorization"] == "Bearer T"
    assert request.headers["Content-Type"].startswith("application/x-www-form-urlencoded")
    form = urllib.parse.parse_qs(request.data.decode("utf-8"))
    assert "name" not in form
    assert form["content"] == ["Hello & welcome"]
    assert form["category[]"] == ["a", "b"]
    assert form["post-status"] == ["draft"]
    assert form["mp-destination"] == ["https://x.blog/"]
    assert form["published"] == ["2025-04-14T08:00:00.000Z"]


def test_publish_parses_outcome() -> None:
    client = _client('{"url": "https://x.blog/p.html", "preview": "https://x.blog/preview"}')

    outcome = asyncio.run(
        client.publish(
            access_token="T",
            title="t",
            content="c",
            tags=[],
            visibility="draft",
            destination="default",
            scheduled_date="",
        )
    )

    assert outcome == PublishOutcome(url="https://x.blog/p.html", preview="https://x.blog/preview")


@pytest.mark.parametrize("text", ["not json", "[]", '{"preview": "p"}', '{"url": "", "preview": "p"}'])
def test_publish_rejects_unusable_responses(text: str) -> None:
    with pytest.raises(MicroblogApiError):
        asyncio.run(
            _client(text).publish(
                access_token="T",
                title="t",
                content="c",
                tags=[],
                visibility="draft",
                destination="default",
                scheduled_date="",
            )
        )


def test_api_error_renders_details() -> None:
    error = MicroblogApiError("boom", details={"status": 500})
    assert str(error) == 'boom | details: {"status": 500}'
