"""Tests for the publish submission state machine."""

from __future__ import annotations

import asyncio
import json
import urllib.parse
from pathlib import Path

import pytest

from notepub.core.http_client import HttpRequest, HttpRequestError, HttpResponse
from notepub.platforms.base import FrontmatterStore, VaultFile
from notepub.platforms.local import NoteFrontmatter
from notepub.platforms.microblog.api import MicroblogApiError, PublishOutcome
from notepub.platforms.microblog.posts import MicroblogPostClient
from notepub.services.publish_controller import (
    PublishSubmissionController,
    SubmissionState,
    note_name_from_url,
)
from notepub.services.publish_draft import PublishDraft

POST_URL = "https://x.blog/2025/04/14/my-post.html"


class StubExecutor:
    def __init__(self, *responses: HttpResponse | Exception) -> None:
        self._responses = list(responses)
        self.requests: list[HttpRequest] = []

    async def execute(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _publish_response(url: str = POST_URL, preview: str = "https://x.blog/preview") -> HttpResponse:
    body = json.dumps({"url": url, "preview": preview})
    return HttpResponse(url="u", status=202, text=body, body=body.encode())


class RecordingObserver:
    def __init__(self, draft: PublishDraft) -> None:
        self._draft = draft
        self.events: list[str] = []
        self.outcome: PublishOutcome | None = None
        self.error: Exception | None = None
        self.submitting_at_validate: list[bool] = []

    def publish_did_validate_date(self) -> None:
        self.events.append("validate_date")
        self.submitting_at_validate.append(self._draft.is_submitting)

    def publish_did_succeed(self, outcome: PublishOutcome) -> None:
        self.events.append("succeed")
        self.outcome = outcome

    def publish_did_fail(self, error: Exception) -> None:
        self.events.append("fail")
        self.error = error

    def publish_did_clear_title(self) -> None:
        self.events.append("clear_title")

    def publish_did_clear_date(self) -> None:
        self.events.append("clear_date")

    def publish_did_select_tag(self) -> None:
        self.events.append("select_tag")


class MemoryFrontmatter:
    def __init__(self, error: Exception | None = None) -> None:
        self.values: dict[str, object] = {}
        self._error = error

    async def save(self, value: object, key: str) -> None:
        if self._error is not None:
            raise self._error
        self.values[key] = value


class StubEditor:
    def __init__(self, path: str | None) -> None:
        self._path = path

    def get_text(self) -> str:
        return ""

    def set_text(self, text: str) -> None:  # pragma: no cover
        pass

    def active_file(self) -> VaultFile | None:
        return VaultFile(self._path) if self._path else None


class RenamingStore:
    def __init__(self, fail: bool = False) -> None:
        self.renames: list[tuple[str, str]] = []
        self._fail = fail

    async def list_files(self) -> list[VaultFile]:  # pragma: no cover
        return []

    async def read_binary(self, file: VaultFile) -> bytes:  # pragma: no cover
        return b""

    async def delete(self, file: VaultFile) -> None:  # pragma: no cover
        pass

    async def rename(self, file: VaultFile, new_path: str) -> VaultFile:
        if self._fail:
            raise FileExistsError(new_path)
        self.renames.append((file.path, new_path))
        return VaultFile(new_path)


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


def _controller(
    draft: PublishDraft,
    executor: StubExecutor,
    *,
    frontmatter: FrontmatterStore | None = None,
    files: RenamingStore | None = None,
    editor: StubEditor | None = None,
    rename: bool = False,
    categories: dict[str, list[str]] | None = None,
) -> tuple[PublishSubmissionController, RecordingObserver, RecordingNotifier]:
    observer = RecordingObserver(draft)
    notifier = RecordingNotifier()
    controller = PublishSubmissionController(
        draft,
        MicroblogPostClient(executor, endpoint="https://micro.test/micropub"),
        frontmatter or MemoryFrontmatter(),
        access_token="TOKEN",
        files=files,
        editor=editor,
        rename_after_publish=rename,
        categories=categories,
        observer=observer,
        notifier=notifier,
    )
    return controller, observer, notifier


def _form(request: HttpRequest) -> dict[str, list[str]]:
    return urllib.parse.parse_qs(request.data.decode("utf-8"))


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        (POST_URL, "2025-04-14_my-post"),
        ("https://x.blog/2025/04/14/nested/slug.html", "2025-04-14_nested-slug"),
        ("https://x.blog/2025/04/14/", "2025-04-14_14"),
        ("https://x.blog/about/", "published-note"),
        ("https://x.blog/a/b/c/post.html", "published-note"),
        ("not a url", "published-note"),
    ],
)
def test_note_name_from_url(url: str, expected: str) -> None:
    assert note_name_from_url(url) == expected


def test_successful_submission() -> None:
    draft = PublishDraft(
        title="My post",
        content="Body",
        tags="swift, ios",
        visibility="published",
        destination="https://x.blog/",
        scheduled_date="2025-04-14 10:00",
    )
    executor = StubExecutor(_publish_response())
    frontmatter = MemoryFrontmatter()
    controller, observer, _ = _controller(draft, executor, frontmatter=frontmatter)

    outcome = asyncio.run(controller.submit())

    assert outcome is not None and outcome.url == POST_URL
    assert observer.events == ["validate_date", "succeed"]
    assert observer.submitting_at_validate == [True]
    assert draft.is_submitting is False
    assert controller.state is SubmissionState.IDLE

    request = executor.requests[0]
    assert request.headers["Authorization"] == "Bearer TOKEN"
    form = _form(request)
    assert form["h"] == ["entry"]
    assert form["name"] == ["My post"]
    assert form["content"] == ["Body"]
    assert form["category[]"] == ["swift", "ios"]
    assert form["post-status"] == ["published"]
    assert form["mp-destination"] == ["https://x.blog/"]
    assert form["published"][0].endswith("Z")

    assert frontmatter.values == {"title": "My post", "url": POST_URL, "tags": ["swift", "ios"]}


def test_invalid_date_rejects_without_network() -> None:
    draft = PublishDraft(title="t", scheduled_date="not-a-date")
    executor = StubExecutor()
    controller, observer, _ = _controller(draft, executor)

    assert asyncio.run(controller.submit()) is None

    assert executor.requests == []
    assert draft.is_valid_date is False
    assert draft.is_submitting is False
    assert controller.invalid_date_text == "Invalid date format"
    assert observer.events == ["validate_date"]
    assert observer.submitting_at_validate == [False]


def test_empty_date_is_accepted_and_omitted() -> None:
    draft = PublishDraft(title="t", content="c", scheduled_date="")
    executor = StubExecutor(_publish_response())
    controller, observer, _ = _controller(draft, executor)

    asyncio.run(controller.submit())

    form = _form(executor.requests[0])
    assert "published" not in form
    assert "mp-destination" not in form
    assert observer.events == ["validate_date", "succeed"]


def test_failure_is_reported_and_draft_stays_editable() -> None:
    draft = PublishDraft(title="t", content="c", tags="a")
    executor = StubExecutor(HttpRequestError("denied", status=401, body="bad token"))
    frontmatter = MemoryFrontmatter()
    controller, observer, _ = _controller(draft, executor, frontmatter=frontmatter)

    assert asyncio.run(controller.submit()) is None

    assert observer.events == ["validate_date", "fail"]
    assert isinstance(observer.error, HttpRequestError)
    assert observer.error.status == 401
    assert draft.is_submitting is False
    assert draft.title == "t"
    assert frontmatter.values == {}
    assert controller.state is SubmissionState.IDLE


def test_malformed_publish_response_is_a_failure() -> None:
    draft = PublishDraft(title="t", content="c")
    body = json.dumps({"preview": "p"})
    executor = StubExecutor(HttpResponse(url="u", status=202, text=body))
    controller, observer, _ = _controller(draft, executor)

    asyncio.run(controller.submit())

    assert isinstance(observer.error, MicroblogApiError)


def test_retry_after_failure_succeeds() -> None:
    draft = PublishDraft(title="t", content="c")
    executor = StubExecutor(HttpRequestError("offline"), _publish_response())
    controller, observer, _ = _controller(draft, executor)

    asyncio.run(controller.submit())
    asyncio.run(controller.submit())

    assert observer.events == ["validate_date", "fail", "validate_date", "succeed"]


def test_rename_after_publish_keeps_folder_and_extension() -> None:
    draft = PublishDraft(title="t", content="c")
    files = RenamingStore()
    controller, observer, notifier = _controller(
        draft,
        StubExecutor(_publish_response()),
        files=files,
        editor=StubEditor("posts/draft note.md"),
        rename=True,
    )

    outcome = asyncio.run(controller.submit())

    assert files.renames == [("posts/draft note.md", "posts/2025-04-14_my-post.md")]
    assert outcome is not None and outcome.renamed_to == "2025-04-14_my-post"
    assert "Note renamed to: 2025-04-14_my-post" in notifier.messages
    assert observer.events[-1] == "succeed"


def test_rename_disabled_does_not_touch_files() -> None:
    draft = PublishDraft(title="t", content="c")
    files = RenamingStore()
    controller, _, _ = _controller(
        draft,
        StubExecutor(_publish_response()),
        files=files,
        editor=StubEditor("note.md"),
        rename=False,
    )

    asyncio.run(controller.submit())

    assert files.renames == []


def test_rename_failure_is_a_notice_not_a_failure() -> None:
    draft = PublishDraft(title="t", content="c")
    controller, observer, notifier = _controller(
        draft,
        StubExecutor(_publish_response()),
        files=RenamingStore(fail=True),
        editor=StubEditor("note.md"),
        rename=True,
    )

    outcome = asyncio.run(controller.submit())

    assert outcome is not None and outcome.renamed_to is None
    assert observer.events == ["validate_date", "succeed"]
    assert any("could not be renamed" in message for message in notifier.messages)


@pytest.mark.parametrize(
    "error",
    [OSError("disk full"), RuntimeError("host store closed"), KeyError("title")],
)
def test_frontmatter_failure_is_a_notice(error: Exception) -> None:
    draft = PublishDraft(title="t", content="c")
    controller, observer, notifier = _controller(
        draft, StubExecutor(_publish_response()), frontmatter=MemoryFrontmatter(error=error)
    )

    outcome = asyncio.run(controller.submit())

    assert outcome is not None
    assert observer.events == ["validate_date", "succeed"]
    assert controller.state is SubmissionState.IDLE
    assert any("metadata was not updated" in message for message in notifier.messages)


def test_malformed_note_frontmatter_does_not_break_a_published_post(tmp_path: Path) -> None:
    note = tmp_path / "draft.md"
    original = "---\ntitle: [unclosed\n---\nBody\n"
    note.write_text(original, encoding="utf-8")
    draft = PublishDraft(title="t", content="Body")
    controller, observer, notifier = _controller(
        draft, StubExecutor(_publish_response()), frontmatter=NoteFrontmatter(note)
    )

    outcome = asyncio.run(controller.submit())

    assert outcome is not None and outcome.url == POST_URL
    assert observer.events == ["validate_date", "succeed"]
    assert controller.state is SubmissionState.IDLE
    assert draft.is_submitting is False
    assert note.read_text(encoding="utf-8") == original
    assert any("metadata was not updated" in message for message in notifier.messages)


def test_clear_title_and_date() -> None:
    draft = PublishDraft(title="Old", scheduled_date="bad")
    controller, observer, _ = _controller(draft, StubExecutor())
    asyncio.run(controller.submit())

    controller.clear_title()
    controller.clear_date()

    assert draft.title == ""
    assert draft.scheduled_date == ""
    assert draft.is_valid_date is True
    assert observer.events == ["validate_date", "clear_title", "clear_date"]


def test_select_tag_twice_keeps_single_entry() -> None:
    draft = PublishDraft(tags="ios")
    controller, observer, _ = _controller(draft, StubExecutor())

    controller.select_tag("swift")
    controller.select_tag("swift")

    assert draft.tag_list == ["ios", "swift"]
    assert draft.tag_list.count("swift") == 1
    assert observer.events == ["select_tag", "select_tag"]


def test_tag_suggestions_exclude_present_tags() -> None:
    draft = PublishDraft(tags="swift", destination="blog-1")
    controller, _, _ = _controller(
        draft,
        StubExecutor(),
        categories={"blog-1": ["swift", "ios", "travel"], "blog-2": ["food"]},
    )

    assert controller.tag_suggestions() == ["ios", "travel"]
    controller.select_tag("ios")
    assert controller.tag_suggestions() == ["travel"]
