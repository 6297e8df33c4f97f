"""Host collaborator contracts and their local implementations."""

from __future__ import annotations

from .base import ActiveEditor, FileStore, FrontmatterStore, Notifier, VaultFile
from .local import LocalVault, NoteEditor, NoteFrontmatter, split_frontmatter

__all__ = [
    "ActiveEditor",
    "FileStore",
    "FrontmatterStore",
    "LocalVault",
    "NoteEditor",
    "NoteFrontmatter",
    "Notifier",
    "VaultFile",
    "split_frontmatter",
]
