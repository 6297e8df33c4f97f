"""Contracts for the host collaborators the publishing core depends on."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Protocol


@dataclass(frozen=True, slots=True)
class VaultFile:
    """A file inside the note store, addressed by its store-relative path."""

    path: str

    @property
    def name(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def parent(self) -> str:
        parent = str(PurePosixPath(self.path).parent)
        return "" if parent == "." else parent

    @property
    def suffix(self) -> str:
        return PurePosixPath(self.path).suffix


class FileStore(Protocol):
    """Document store holding notes and their attachments."""

    async def list_files(self) -> list[VaultFile]:
        """Return every file in the store."""

    async def read_binary(self, file: VaultFile) -> bytes:
        """Return the raw bytes of ``file``."""

    async def delete(self, file: VaultFile) -> None:
        """Remove ``file`` from the store."""

    async def rename(self, file: VaultFile, new_path: str) -> VaultFile:
        """Move ``file`` to ``new_path`` and return the renamed handle."""


class ActiveEditor(Protocol):
    """The editor currently showing the note being worked on."""

    def get_text(self) -> str:
        """Return the full raw text of the note."""

    def set_text(self, text: str) -> None:
        """Replace the full raw text of the note."""

    def active_file(self) -> VaultFile | None:
        """Return the file behind the editor, if any."""


class FrontmatterStore(Protocol):
    """Persists values into the note's structured metadata block."""

    async def save(self, value: Any, key: str) -> None:
        """Set ``key`` to ``value`` in the metadata block."""


class Notifier(Protocol):
    """Shows short, transient notices to the user."""

    def notify(self, message: str) -> None:
        """Display ``message``."""
