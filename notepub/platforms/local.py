"""Filesystem-backed implementations of the host collaborators."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import yaml

from ..utils.logging import get_logger
from .base import VaultFile

LOGGER = get_logger(__name__)

_FRONTMATTER_DELIMITER = "---"


class LocalVault:
    """File store rooted at a directory; hidden folders are skipped."""

    def __init__(self, root: Path) -> None:
        self._root = root.resolve()
        if not self._root.is_dir():
            raise FileNotFoundError(f"Vault directory not found: {self._root}")

    @property
    def root(self) -> Path:
        return self._root

    def file_for(self, path: Path) -> VaultFile:
        """Return the store handle for an absolute or vault-relative path."""
        resolved = path if path.is_absolute() else self._root / path
        return VaultFile(resolved.resolve().relative_to(self._root).as_posix())

    def absolute_path(self, file: VaultFile) -> Path:
        return self._root / file.path

    async def list_files(self) -> list[VaultFile]:
        return await asyncio.to_thread(self._scan)

    async def read_binary(self, file: VaultFile) -> bytes:
        return await asyncio.to_thread(self.absolute_path(file).read_bytes)

    async def delete(self, file: VaultFile) -> None:
        await asyncio.to_thread(self.absolute_path(file).unlink)
        LOGGER.info("Deleted %s", file.path, extra={"event": "vault.delete"})

    async def rename(self, file: VaultFile, new_path: str) -> VaultFile:
        source = self.absolute_path(file)
        target = self._root / new_path
        if target.exists():
            raise FileExistsError(f"Target already exists: {new_path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(source.rename, target)
        LOGGER.info("Renamed %s -> %s", file.path, new_path, extra={"event": "vault.rename"})
        return VaultFile(target.relative_to(self._root).as_posix())

    def _scan(self) -> list[VaultFile]:
        files: list[VaultFile] = []
        for path in sorted(self._root.rglob("*")):
            relative = path.relative_to(self._root)
            if any(part.startswith(".") for part in relative.parts):
                continue
            if path.is_file():
                files.append(VaultFile(relative.as_posix()))
        return files


class NoteEditor:
    """Editor over a single note file; ``set_text`` writes straight to disk."""

    def __init__(self, vault: LocalVault, note: Path) -> None:
        self._vault = vault
        self._file = vault.file_for(note)

    @property
    def path(self) -> Path:
        return self._vault.absolute_path(self._file)

    def get_text(self) -> str:
        return self.path.read_text(encoding="utf-8")

    def set_text(self, text: str) -> None:
        self.path.write_text(text, encoding="utf-8")

    def active_file(self) -> VaultFile | None:
        return self._file


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split a note into its YAML metadata and the body that follows it."""
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != _FRONTMATTER_DELIMITER:
        return {}, text
    for index, line in enumerate(lines[1:], start=1):
        if line.rstrip("\r\n") == _FRONTMATTER_DELIMITER:
            raw = "".join(lines[1:index])
            metadata = yaml.safe_load(raw) if raw.strip() else {}
            if not isinstance(metadata, dict):
                raise ValueError("Frontmatter must be a mapping")
            return metadata, "".join(lines[index + 1 :])
    return {}, text


def render_frontmatter(metadata: dict[str, Any], body: str) -> str:
    if not metadata:
        return body
    dumped = yaml.safe_dump(metadata, sort_keys=False, allow_unicode=True)
    return f"{_FRONTMATTER_DELIMITER}\n{dumped}{_FRONTMATTER_DELIMITER}\n{body}"


class NoteFrontmatter:
    """Frontmatter store writing into the YAML block at the top of a note."""

    def __init__(self, note: Path) -> None:
        self._note = note

    async def save(self, value: Any, key: str) -> None:
        await asyncio.to_thread(self._save, value, key)
        LOGGER.debug("Saved frontmatter key=%s note=%s", key, self._note)

    def _save(self, value: Any, key: str) -> None:
        text = self._note.read_text(encoding="utf-8")
        metadata, body = split_frontmatter(text)
        metadata[key] = value
        self._note.write_text(render_frontmatter(metadata, body), encoding="utf-8")


__all__ = [
    "LocalVault",
    "NoteEditor",
    "NoteFrontmatter",
    "render_frontmatter",
    "split_frontmatter",
]
