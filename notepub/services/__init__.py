"""Publishing services: image upload workflow and post submission."""

from .publish_controller import (
    PublishObserver,
    PublishSubmissionController,
    RenameError,
    SubmissionState,
    note_name_from_url,
)
from .publish_draft import PublishDraft, ScheduledDateError, ValidationError, Visibility
from .references import EmbeddedReference, extract_references, rewrite_reference
from .upload_models import ErrorKind, UploadReport, UploadResult
from .upload_workflow import ImageUploadWorkflow, upload_and_replace_images

__all__ = [
    "EmbeddedReference",
    "ErrorKind",
    "ImageUploadWorkflow",
    "PublishDraft",
    "PublishObserver",
    "PublishSubmissionController",
    "RenameError",
    "ScheduledDateError",
    "SubmissionState",
    "UploadReport",
    "UploadResult",
    "ValidationError",
    "Visibility",
    "extract_references",
    "note_name_from_url",
    "rewrite_reference",
    "upload_and_replace_images",
]
