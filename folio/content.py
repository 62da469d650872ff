"""Content loading for Folio.

This module discovers source files and turns content files into
ContentDocument objects.

Key classes:
- ContentDocument: One page or post, immutable after parsing.
- FileContentLoader: Walks the source directory for content and static files.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .frontmatter import parse_front_matter
from .utils import is_content, is_html, is_internal_path, titleize


@dataclass(frozen=True)
class ContentDocument:
    """A page or post parsed from a source file.

    Attributes:
        path: Source path relative to the source directory.
        front_matter: Read-only metadata from the front-matter block.
        body: Raw Markdown/HTML text after the front matter.
        source_type: "markdown" or "html".
    """

    path: Path
    front_matter: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    body: str = ""
    source_type: str = "markdown"

    @property
    def title(self) -> str:
        value = self.front_matter.get("title")
        return str(value) if value is not None else titleize(self.path.name)

    @property
    def date(self) -> date | None:
        return self.front_matter.get("date")

    @property
    def description(self) -> str:
        value = self.front_matter.get("description")
        return str(value) if value is not None else ""

    @property
    def listed(self) -> bool:
        return self.front_matter.get("listed", True) is not False


def parse_document(text: str, rel: Path) -> ContentDocument:
    """Build a ContentDocument from raw text.

    Args:
        text: Raw file content.
        rel: Source path relative to the source directory.

    Raises:
        MalformedFrontMatter: If the front matter cannot be parsed.
    """
    front_matter, body = parse_front_matter(text, rel)
    return ContentDocument(
        path=rel,
        front_matter=MappingProxyType(front_matter),
        body=body,
        source_type="html" if is_html(rel) else "markdown",
    )


def load_document(source_dir: Path, path: Path) -> ContentDocument:
    """Read and parse a content file.

    Args:
        source_dir: Source directory the document lives in.
        path: Absolute path to the content file.
    """
    rel = path.relative_to(source_dir)
    return parse_document(path.read_text(encoding="utf-8"), rel)


class FileContentLoader:
    """Discovers files in the source directory.

    Directories and files starting with ``_`` or ``.`` are internal and are
    skipped, except ``_``-prefixed content files which are drafts and are
    included on request.

    Attributes:
        source_dir: Directory containing site content.
        exclude: Directories whose files are never picked up, such as an
            output directory placed inside the source directory.
    """

    def __init__(self, source_dir: Path, exclude: Iterable[Path] = ()):
        self.source_dir = source_dir
        self.exclude = [path.resolve() for path in exclude]

    def _is_excluded(self, path: Path) -> bool:
        if not self.exclude:
            return False
        resolved = path.resolve()
        return any(resolved.is_relative_to(directory) for directory in self.exclude)

    def _iter_all(self) -> list[Path]:
        return sorted(
            path
            for path in self.source_dir.rglob("*")
            if path.is_file() and not self._is_excluded(path)
        )

    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        """Return content files, sorted by path.

        Args:
            include_drafts: Whether to include draft files.
        """
        files: list[Path] = []
        for path in self._iter_all():
            rel = path.relative_to(self.source_dir)
            if not is_content(path) or is_internal_path(rel.parent):
                continue
            if rel.name.startswith("."):
                continue
            if rel.name.startswith("_") and not include_drafts:
                continue
            files.append(path)
        return files

    def iter_static_files(self) -> list[Path]:
        """Return non-content files that are copied verbatim, sorted by path."""
        return [
            path
            for path in self._iter_all()
            if not is_content(path)
            and not is_internal_path(path.relative_to(self.source_dir))
        ]


@dataclass(frozen=True)
class RenderedPage:
    """Final HTML for a document after its layout chain is applied.

    Attributes:
        output_path: Path relative to the output directory.
        html: Rendered HTML.
        source: Source path of the document (or the listing page).
        url: Site URL of the output.
        date: Document date, if any.
    """

    output_path: Path
    html: str
    source: Path
    url: str
    date: date | None = None
