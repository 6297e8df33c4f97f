"""Compose-session state for a post that has not been submitted yet."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Iterable, Mapping


class ValidationError(ValueError):
    """Raised when draft input is rejected before anything is sent."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = dict(details or {})


class ScheduledDateError(ValidationError):
    """The scheduled date text is not a recognisable date."""


class Visibility(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


def normalize_tags(value: str | Iterable[object]) -> list[str]:
    """Split, trim and de-duplicate tags, keeping first-seen order."""
    items = value.split(",") if isinstance(value, str) else value
    seen: dict[str, None] = {}
    for item in items:
        tag = str(item).strip()
        if tag:
            seen.setdefault(tag, None)
    return list(seen)


def parse_scheduled_date(text: str) -> datetime | None:
    """Parse the scheduled date field; empty text means "publish now"."""
    candidate = text.strip()
    if not candidate:
        return None
    try:
        return datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ScheduledDateError(
            "Invalid date format", details={"scheduled_date": text}
        ) from exc


def format_scheduled_date(value: datetime | None) -> str:
    """Render as UTC ISO-8601 with milliseconds; naive values are local time."""
    if value is None:
        return ""
    aware = value if value.tzinfo is not None else value.astimezone()
    stamp = aware.astimezone(UTC).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


class PublishDraft:
    """Fields of the post being composed.

    Every write goes through a ``set_*`` method so the invariants hold at the
    boundary: tags are stored trimmed and de-duplicated, visibility is one of
    :class:`Visibility`, and ``is_valid_date`` is only ever False while the
    scheduled date field holds unparseable text.
    """

    def __init__(
        self,
        *,
        title: str = "",
        content: str = "",
        tags: str | Iterable[str] = "",
        visibility: Visibility | str = Visibility.DRAFT,
        destination: str = "default",
        scheduled_date: str = "",
    ) -> None:
        self._title = title
        self._content = content
        self._tags = ",".join(normalize_tags(tags))
        self._visibility = Visibility(visibility)
        self._destination = destination
        self._scheduled_date = scheduled_date
        self._is_valid_date = True
        self._is_submitting = False

    @property
    def title(self) -> str:
        return self._title

    @property
    def content(self) -> str:
        return self._content

    @property
    def tags(self) -> str:
        return self._tags

    @property
    def tag_list(self) -> list[str]:
        return normalize_tags(self._tags)

    @property
    def visibility(self) -> Visibility:
        return self._visibility

    @property
    def destination(self) -> str:
        return self._destination

    @property
    def scheduled_date(self) -> str:
        return self._scheduled_date

    @property
    def is_valid_date(self) -> bool:
        return self._is_valid_date

    @property
    def is_submitting(self) -> bool:
        return self._is_submitting

    def set_title(self, value: str) -> None:
        self._title = value

    def set_content(self, value: str) -> None:
        self._content = value

    def set_tags(self, value: str | Iterable[str]) -> None:
        self._tags = ",".join(normalize_tags(value))

    def add_tag(self, tag: str) -> bool:
        """Append ``tag`` unless already present; return whether it was added."""
        current = self.tag_list
        if tag.strip() in current or not tag.strip():
            return False
        self.set_tags([*current, tag])
        return True

    def set_visibility(self, value: Visibility | str) -> None:
        self._visibility = Visibility(value)

    def set_destination(self, value: str) -> None:
        self._destination = value

    def set_scheduled_date(self, value: str) -> None:
        self._scheduled_date = value
        try:
            parse_scheduled_date(value)
        except ScheduledDateError:
            return
        self._is_valid_date = True

    def clear_scheduled_date(self) -> None:
        self._scheduled_date = ""
        self._is_valid_date = True

    def scheduled_datetime(self) -> datetime | None:
        return parse_scheduled_date(self._scheduled_date)

    def formatted_scheduled_date(self) -> str:
        try:
            return format_scheduled_date(self.scheduled_datetime())
        except ScheduledDateError:
            return ""

    def mark_date_invalid(self) -> None:
        self._is_valid_date = False
        self._is_submitting = False

    def begin_submission(self) -> None:
        self._is_valid_date = True
        self._is_submitting = True

    def end_submission(self) -> None:
        self._is_submitting = False
