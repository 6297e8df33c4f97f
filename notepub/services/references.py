"""Embedded image references: extraction and rewrite."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator

_EMBED_PATTERN = re.compile(r"!\[\[([^\]]+\.(?:png|jpe?g|gif|webp|bmp))\]\]", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class EmbeddedReference:
    raw_token: str
    filename: str


def extract_references(text: str) -> Iterator[EmbeddedReference]:
    """Yield every ``![[image]]`` embed in ``text``, in document order."""
    for match in _EMBED_PATTERN.finditer(text):
        yield EmbeddedReference(raw_token=match.group(0), filename=match.group(1))


def unique_filenames(references: Iterable[EmbeddedReference]) -> list[str]:
    seen: dict[str, None] = {}
    for reference in references:
        seen.setdefault(reference.filename, None)
    return list(seen)


def embed_token(filename: str) -> str:
    return f"![[{filename}]]"


def rewrite_reference(text: str, raw_token: str, location: str, description: str) -> str:
    """Replace every exact occurrence of ``raw_token`` with a Markdown image link."""
    return text.replace(raw_token, f"![{description}]({location})")


__all__ = [
    "EmbeddedReference",
    "embed_token",
    "extract_references",
    "rewrite_reference",
    "unique_filenames",
]
