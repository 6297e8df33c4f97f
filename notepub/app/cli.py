"""Command-line entry point for uploading note images and publishing posts."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Callable, Sequence

import yaml

from ..ai.describer import build_description_generator
from ..core.http_client import RequestsExecutor
from ..platforms.local import LocalVault, NoteEditor, NoteFrontmatter, split_frontmatter
from ..platforms.microblog.api import PublishOutcome
from ..platforms.microblog.posts import MicroblogPostClient
from ..services.publish_controller import PublishSubmissionController
from ..services.publish_draft import PublishDraft, Visibility
from ..services.upload_workflow import upload_and_replace_images
from ..settings import AppConfig, load_config
from ..utils.logging import LoggingNotifier, configure_logging


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(structured=not args.log_plain)

    handler: Callable[[argparse.Namespace], int] | None = getattr(args, "handler", None)
    if handler is None:
        parser.print_help(sys.stderr)
        return 1
    return handler(args)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="notepub", description="Publish notes to Micro.blog")
    parser.add_argument("--config", help="Path to configuration file", default=None)
    parser.add_argument(
        "--log-plain",
        action="store_true",
        help="Use plain-text logs instead of JSON",
    )

    subparsers = parser.add_subparsers(dest="command")
    _add_upload_command(subparsers)
    _add_publish_command(subparsers)
    return parser


def _add_upload_command(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    upload_parser = subparsers.add_parser(
        "upload", help="Upload embedded images and replace them with hosted links"
    )
    upload_parser.add_argument("note", type=Path, help="Markdown note to process")
    upload_parser.add_argument(
        "--vault",
        type=Path,
        default=None,
        help="Vault root used to find attachments (defaults to the note's folder)",
    )
    upload_parser.add_argument(
        "--delete",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Delete local images after a successful upload",
    )
    upload_parser.add_argument(
        "--describe",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Ask the description service for alt text",
    )
    upload_parser.set_defaults(handler=_handle_upload)


def _add_publish_command(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    publish_parser = subparsers.add_parser("publish", help="Publish a note as a post")
    publish_parser.add_argument("note", type=Path, help="Markdown note to publish")
    publish_parser.add_argument("--vault", type=Path, default=None, help="Vault root")
    publish_parser.add_argument("--title", default=None, help="Post title override")
    publish_parser.add_argument("--tags", default=None, help="Comma-separated categories")
    publish_parser.add_argument(
        "--visibility",
        choices=[item.value for item in Visibility],
        default=None,
        help="Post status",
    )
    publish_parser.add_argument("--blog", default=None, help="Destination blog identifier")
    publish_parser.add_argument(
        "--schedule",
        default="",
        help="Scheduled publish date, e.g. '2025-04-14 10:00'",
    )
    publish_parser.add_argument(
        "--rename",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Rename the note after publishing (YYYY-MM-DD_slug)",
    )
    publish_parser.set_defaults(handler=_handle_publish)


def _load(args: argparse.Namespace) -> AppConfig | None:
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return None
    if not config.microblog.app_token:
        print("No Micro.blog app token configured (set MICROBLOG_APP_TOKEN)", file=sys.stderr)
        return None
    return config


def _open_vault(args: argparse.Namespace) -> LocalVault | None:
    note: Path = args.note
    if not note.is_file():
        print(f"Note not found: {note}", file=sys.stderr)
        return None
    return LocalVault(args.vault or note.resolve().parent)


def _handle_upload(args: argparse.Namespace) -> int:
    config = _load(args)
    vault = _open_vault(args)
    if config is None or vault is None:
        return 2

    executor = RequestsExecutor(timeout=config.http.timeout)
    describer = build_description_generator(
        executor,
        provider=config.description.provider,
        model=config.description.model,
        endpoint=config.description.endpoint,
        max_tokens=config.description.max_tokens,
    )
    delete = config.upload.delete_after_upload if args.delete is None else args.delete
    describe = config.upload.use_description_service if args.describe is None else args.describe

    try:
        report = asyncio.run(
            upload_and_replace_images(
                NoteEditor(vault, args.note.resolve()),
                vault,
                executor,
                describer,
                access_token=config.microblog.app_token,
                delete_after_upload=delete,
                use_description_service=describe,
                description_service_key=config.description.api_key or None,
                media_endpoint=config.microblog.media_endpoint,
                notifier=LoggingNotifier(),
            )
        )
    finally:
        executor.close()

    for result in report.results:
        if result.succeeded:
            print(f"uploaded {result.filename} -> {result.remote_location}")
        else:
            kind = result.error.value if result.error else "Unknown"
            print(f"failed   {result.filename} [{kind}] {result.message}")
    print(report.summary())
    return 1 if report.failed else 0


def _known_destination(config: AppConfig, destination: str) -> bool:
    blogs = config.microblog.blogs
    return not blogs or destination == "default" or destination in blogs


def _frontmatter_tags(value: object) -> str | list[str]:
    """Accept ``tags`` as a YAML list or a comma-separated scalar."""
    if value is None:
        return ""
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    return str(value)


class _ConsoleObserver:
    """Collects controller events for the CLI exit status."""

    def __init__(self) -> None:
        self.outcome: PublishOutcome | None = None
        self.error: Exception | None = None
        self.events: list[str] = []

    def publish_did_validate_date(self) -> None:
        self.events.append("validate_date")

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


def _handle_publish(args: argparse.Namespace) -> int:
    config = _load(args)
    vault = _open_vault(args)
    if config is None or vault is None:
        return 2

    destination = args.blog or config.microblog.selected_blog_id
    if not _known_destination(config, destination):
        known = ", ".join(sorted(config.microblog.blogs))
        print(f"Unknown blog {destination!r}; configured blogs: {known}", file=sys.stderr)
        return 2

    note: Path = args.note.resolve()
    try:
        metadata, body = split_frontmatter(note.read_text(encoding="utf-8"))
    except (yaml.YAMLError, ValueError) as exc:
        print(f"Could not read note frontmatter: {exc}", file=sys.stderr)
        return 2
    if args.tags is not None:
        tags: str | list[str] = args.tags
    else:
        tags = _frontmatter_tags(metadata.get("tags")) or config.microblog.default_tags
    draft = PublishDraft(
        title=args.title if args.title is not None else str(metadata.get("title") or ""),
        content=body,
        tags=tags,
        visibility=args.visibility or config.microblog.post_visibility,
        destination=destination,
        scheduled_date=args.schedule,
    )

    executor = RequestsExecutor(timeout=config.http.timeout)
    observer = _ConsoleObserver()
    rename = config.publish.rename_note_after_publish if args.rename is None else args.rename
    controller = PublishSubmissionController(
        draft,
        MicroblogPostClient(executor, endpoint=config.microblog.micropub_endpoint),
        NoteFrontmatter(note),
        access_token=config.microblog.app_token,
        files=vault,
        editor=NoteEditor(vault, note),
        rename_after_publish=rename,
        categories=config.microblog.categories,
        observer=observer,
        notifier=LoggingNotifier(),
    )
    try:
        asyncio.run(controller.submit())
    finally:
        executor.close()

    if not draft.is_valid_date:
        print(f"{controller.invalid_date_text}: {draft.scheduled_date!r}", file=sys.stderr)
        return 2
    if observer.error is not None:
        print(f"Publish failed: {observer.error}", file=sys.stderr)
        return 1
    outcome = observer.outcome
    if outcome is None:
        print("Publish did not complete", file=sys.stderr)
        return 1
    print(f"Published: {outcome.url}")
    print(f"Preview:   {outcome.preview}")
    if outcome.renamed_to:
        print(f"Renamed note to {outcome.renamed_to}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
