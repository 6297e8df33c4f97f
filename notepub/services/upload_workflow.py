"""Upload embedded images and rewrite their references in the active note."""

from __future__ import annotations

from ..ai.describer import BaseDescriptionGenerator
from ..core.http_client import HttpRequestError, RequestExecutor
from ..platforms.base import ActiveEditor, FileStore, Notifier, VaultFile
from ..platforms.microblog.media import MicroblogMediaUploader
from ..utils.logging import LoggingNotifier, get_logger
from .references import embed_token, extract_references, rewrite_reference, unique_filenames
from .upload_models import ErrorKind, UploadReport, UploadResult

LOGGER = get_logger(__name__)


class ImageUploadWorkflow:
    """Coordinates lookup, upload, description and rewrite for each embedded image.

    Images are handled one at a time against a single working copy of the
    note text. A failing image is recorded and skipped; the batch always
    finishes and writes its text back.
    """

    def __init__(
        self,
        editor: ActiveEditor,
        files: FileStore,
        uploader: MicroblogMediaUploader,
        describer: BaseDescriptionGenerator,
        *,
        notifier: Notifier | None = None,
    ) -> None:
        self._editor = editor
        self._files = files
        self._uploader = uploader
        self._describer = describer
        self._notifier = notifier or LoggingNotifier()

    async def run(
        self,
        *,
        access_token: str,
        delete_after_upload: bool = False,
        use_description_service: bool = False,
        description_service_key: str | None = None,
    ) -> UploadReport:
        original = self._editor.get_text()
        filenames = unique_filenames(extract_references(original))
        report = UploadReport(text=original, original_text=original)

        if not filenames:
            LOGGER.info("No embedded images found", extra={"event": "upload.empty"})
            self._notifier.notify(report.summary())
            return report

        LOGGER.info(
            "Uploading %d embedded image(s)",
            len(filenames),
            extra={"event": "upload.start", "count": len(filenames)},
        )
        for filename in filenames:
            try:
                result = await self._process(
                    filename,
                    report,
                    access_token=access_token,
                    delete_after_upload=delete_after_upload,
                    use_description_service=use_description_service,
                    description_service_key=description_service_key,
                )
            except Exception as exc:
                LOGGER.exception("Unexpected error while processing %s", filename)
                result = UploadResult.failure(filename, ErrorKind.UPLOAD_FAILED, str(exc))
            report.results.append(result)

        self._editor.set_text(report.text)
        LOGGER.info(
            "Upload batch finished",
            extra={
                "event": "upload.done",
                "succeeded": len(report.succeeded),
                "failed": len(report.failed),
            },
        )
        self._notifier.notify(report.summary())
        return report

    async def _process(
        self,
        filename: str,
        report: UploadReport,
        *,
        access_token: str,
        delete_after_upload: bool,
        use_description_service: bool,
        description_service_key: str | None,
    ) -> UploadResult:
        file = await self._resolve(filename)
        if file is None:
            LOGGER.error("File not found or not a valid image: %s", filename)
            return UploadResult.failure(
                filename, ErrorKind.REFERENCE_NOT_FOUND, "file not found in the vault"
            )

        try:
            content = await self._files.read_binary(file)
            location = await self._uploader.upload(filename, content, access_token=access_token)
        except (HttpRequestError, OSError) as exc:
            LOGGER.error("Upload error for %s: %s", filename, exc)
            return UploadResult.failure(filename, ErrorKind.UPLOAD_FAILED, str(exc))

        if not location:
            return UploadResult.failure(
                filename, ErrorKind.UPLOAD_INCOMPLETE, "service returned no location"
            )

        description = await self._describer.describe(
            location,
            filename=filename,
            enabled=use_description_service,
            api_key=description_service_key,
        )
        report.text = rewrite_reference(report.text, embed_token(filename), location, description)

        if delete_after_upload:
            await self._delete(file)

        return UploadResult(
            filename=filename,
            remote_location=location,
            description=description,
            succeeded=True,
        )

    async def _resolve(self, filename: str) -> VaultFile | None:
        for file in await self._files.list_files():
            if file.name == filename or file.path == filename:
                return file
        return None

    async def _delete(self, file: VaultFile) -> None:
        try:
            await self._files.delete(file)
        except Exception as exc:
            LOGGER.warning("Uploaded but could not delete %s: %s", file.path, exc)


async def upload_and_replace_images(
    editor: ActiveEditor,
    files: FileStore,
    executor: RequestExecutor,
    describer: BaseDescriptionGenerator,
    *,
    access_token: str,
    delete_after_upload: bool = False,
    use_description_service: bool = False,
    description_service_key: str | None = None,
    media_endpoint: str | None = None,
    notifier: Notifier | None = None,
) -> UploadReport:
    """Upload every embedded image of the active note and link the hosted copies."""
    uploader = (
        MicroblogMediaUploader(executor, endpoint=media_endpoint)
        if media_endpoint
        else MicroblogMediaUploader(executor)
    )
    workflow = ImageUploadWorkflow(editor, files, uploader, describer, notifier=notifier)
    return await workflow.run(
        access_token=access_token,
        delete_after_upload=delete_after_upload,
        use_description_service=use_description_service,
        description_service_key=description_service_key,
    )
