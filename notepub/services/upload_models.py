"""Data models for the image upload workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ErrorKind(str, Enum):
    """Why a single image could not be uploaded."""

    REFERENCE_NOT_FOUND = "ReferenceNotFound"
    UPLOAD_INCOMPLETE = "UploadIncomplete"
    UPLOAD_FAILED = "UploadFailed"


@dataclass(slots=True)
class UploadResult:
    """Outcome of processing one embedded image."""

    filename: str
    remote_location: str | None = None
    description: str = ""
    succeeded: bool = False
    error: ErrorKind | None = None
    message: str = ""

    @classmethod
    def failure(cls, filename: str, error: ErrorKind, message: str) -> "UploadResult":
        return cls(filename=filename, error=error, message=message)


@dataclass(slots=True)
class UploadReport:
    """Ordered per-image results together with the rewritten note text."""

    text: str
    results: list[UploadResult] = field(default_factory=list)
    original_text: str = ""

    @property
    def succeeded(self) -> list[UploadResult]:
        return [result for result in self.results if result.succeeded]

    @property
    def failed(self) -> list[UploadResult]:
        return [result for result in self.results if not result.succeeded]

    @property
    def changed(self) -> bool:
        return self.text != self.original_text

    def summary(self) -> str:
        if not self.results:
            return "No image links found to upload."
        if not self.failed:
            return "Image upload and replacement complete."
        failed_names = ", ".join(result.filename for result in self.failed)
        return (
            f"Image upload finished: {len(self.succeeded)} of {len(self.results)} uploaded; "
            f"failed: {failed_names}."
        )
