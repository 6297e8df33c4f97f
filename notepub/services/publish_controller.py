"""State machine behind the "publish post" dialog."""

from __future__ import annotations

import urllib.parse
from enum import Enum
from typing import Any, Mapping, Protocol, Sequence

from ..platforms.base import ActiveEditor, FileStore, FrontmatterStore, Notifier
from ..platforms.microblog.api import PublishOutcome
from ..platforms.microblog.posts import MicroblogPostClient
from ..utils.logging import LoggingNotifier, get_logger
from .publish_draft import PublishDraft, ScheduledDateError

LOGGER = get_logger(__name__)

FALLBACK_NOTE_NAME = "published-note"


class RenameError(RuntimeError):
    """Raised when the note could not be renamed after a successful publish."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = dict(details or {})


class SubmissionState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PublishObserver(Protocol):
    """Receives every state change of a compose session."""

    def publish_did_validate_date(self) -> None: ...

    def publish_did_succeed(self, outcome: PublishOutcome) -> None: ...

    def publish_did_fail(self, error: Exception) -> None: ...

    def publish_did_clear_title(self) -> None: ...

    def publish_did_clear_date(self) -> None: ...

    def publish_did_select_tag(self) -> None: ...


def note_name_from_url(url: str) -> str:
    """Build ``YYYY-MM-DD_slug`` from a post URL such as ``/2025/04/14/my-post.html``."""
    parts = [part for part in urllib.parse.urlparse(url).path.split("/") if part]
    if len(parts) < 3 or not all(part.isdigit() for part in parts[:3]):
        return FALLBACK_NOTE_NAME
    year, month, day, *slug_parts = parts
    slug = "-".join(slug_parts) or parts[-1]
    slug = slug.removesuffix(".html") or "post"
    return f"{year}-{month}-{day}_{slug}"


class PublishSubmissionController:
    """Validates and submits a :class:`PublishDraft`, then updates the note.

    ``Idle -> Validating -> Submitting -> Succeeded | Failed -> Idle``. A
    malformed scheduled date stops at ``Validating`` without any request.
    Failures are reported to the observer, never raised.
    """

    def __init__(
        self,
        draft: PublishDraft,
        post_client: MicroblogPostClient,
        frontmatter: FrontmatterStore,
        *,
        access_token: str,
        files: FileStore | None = None,
        editor: ActiveEditor | None = None,
        rename_after_publish: bool = False,
        categories: Mapping[str, Sequence[str]] | None = None,
        observer: PublishObserver | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.draft = draft
        self.observer = observer
        self._post_client = post_client
        self._frontmatter = frontmatter
        self._access_token = access_token
        self._files = files
        self._editor = editor
        self._rename_after_publish = rename_after_publish
        self._categories = {key: list(values) for key, values in (categories or {}).items()}
        self._notifier = notifier or LoggingNotifier()
        self._state = SubmissionState.IDLE

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def show_publishing_button(self) -> bool:
        return self.draft.is_valid_date and self.draft.is_submitting

    @property
    def invalid_date_text(self) -> str:
        return "" if self.draft.is_valid_date else "Invalid date format"

    async def submit(self) -> PublishOutcome | None:
        self._transition(SubmissionState.VALIDATING)
        try:
            self.draft.scheduled_datetime()
        except ScheduledDateError as exc:
            LOGGER.info("Rejected scheduled date: %s", exc.details.get("scheduled_date"))
            self.draft.mark_date_invalid()
            self._transition(SubmissionState.IDLE)
            self._emit("publish_did_validate_date")
            return None

        self.draft.begin_submission()
        self._transition(SubmissionState.SUBMITTING)
        self._emit("publish_did_validate_date")

        tags = self.draft.tag_list
        try:
            outcome = await self._post_client.publish(
                access_token=self._access_token,
                title=self.draft.title,
                content=self.draft.content,
                tags=tags,
                visibility=self.draft.visibility.value,
                destination=self.draft.destination,
                scheduled_date=self.draft.formatted_scheduled_date(),
            )
        except Exception as exc:
            LOGGER.error("Publish failed: %s", exc, extra={"event": "publish.failed"})
            self.draft.end_submission()
            self._transition(SubmissionState.FAILED)
            self._emit("publish_did_fail", exc)
            self._transition(SubmissionState.IDLE)
            return None

        self.draft.end_submission()
        await self._persist_frontmatter(outcome, tags)
        outcome.renamed_to = await self._rename_note(outcome.url)

        self._transition(SubmissionState.SUCCEEDED)
        self._emit("publish_did_succeed", outcome)
        self._transition(SubmissionState.IDLE)
        return outcome

    def clear_title(self) -> None:
        self.draft.set_title("")
        self._emit("publish_did_clear_title")

    def clear_date(self) -> None:
        self.draft.clear_scheduled_date()
        self._emit("publish_did_clear_date")

    def select_tag(self, category: str) -> None:
        self.draft.add_tag(category)
        self._emit("publish_did_select_tag")

    def tag_suggestions(self) -> list[str]:
        """Categories of the selected destination not yet on the draft."""
        present = set(self.draft.tag_list)
        available = self._categories.get(self.draft.destination, [])
        return [category for category in available if category not in present]

    async def _persist_frontmatter(self, outcome: PublishOutcome, tags: list[str]) -> None:
        # Runs after the remote post exists; failures here are notices only.
        try:
            await self._frontmatter.save(self.draft.title, "title")
            await self._frontmatter.save(outcome.url, "url")
            await self._frontmatter.save(tags, "tags")
        except Exception as exc:
            LOGGER.warning("Could not update frontmatter: %s", exc)
            self._notifier.notify(f"Published, but the note metadata was not updated: {exc}")

    async def _rename_note(self, url: str) -> str | None:
        if not self._rename_after_publish or self._files is None or self._editor is None:
            return None
        active = self._editor.active_file()
        if active is None:
            return None

        new_name = note_name_from_url(url)
        filename = f"{new_name}{active.suffix}"
        new_path = f"{active.parent}/{filename}" if active.parent else filename
        try:
            await self._files.rename(active, new_path)
        except Exception as exc:
            error = RenameError(
                "Could not rename note", details={"from": active.path, "to": new_path}
            )
            LOGGER.warning("%s: %s", error, exc, extra={"event": "publish.rename_failed"})
            self._notifier.notify(f"Published, but the note could not be renamed: {exc}")
            return None

        self._notifier.notify(f"Note renamed to: {new_name}")
        return new_name

    def _transition(self, state: SubmissionState) -> None:
        LOGGER.debug("Submission state %s -> %s", self._state.value, state.value)
        self._state = state

    def _emit(self, event: str, *args: object) -> None:
        if self.observer is not None:
            getattr(self.observer, event)(*args)
