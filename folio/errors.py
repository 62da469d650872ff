"""Error and warning types for Folio.

Errors are split by how far they reach:
- Per-document errors (MalformedFrontMatter, UnknownLayout requested by a
  document) are wrapped in a BuildError and collected; the build carries on.
- Errors raised while loading layouts (LayoutLoadError, UnknownLayout for a
  missing parent, LayoutCycle) abort the whole build.
- ConfigError, like layout errors, aborts the build.
- MissingDate is a warning: the document still renders but is left out of
  date-ordered listings.
"""

from __future__ import annotations

from pathlib import Path


class FolioError(Exception):
    """Base class for all Folio errors."""


class ConfigError(FolioError):
    """Invalid project configuration (folio.yaml, data files, directories)."""


class MalformedFrontMatter(FolioError):
    """Front matter that is unterminated or cannot be parsed.

    Attributes:
        path: Source file containing the front matter.
        reason: Short description of what is wrong.
    """

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: malformed front matter: {reason}")


class LayoutError(FolioError):
    """Base class for layout loading and resolution errors."""


class UnknownLayout(LayoutError):
    """A layout name that does not match any loaded layout.

    Attributes:
        name: The layout name that was requested.
        referrer: The document or layout that asked for it, if known.
    """

    def __init__(self, name: str, referrer: Path | str | None = None):
        self.name = name
        self.referrer = referrer
        message = f"unknown layout '{name}'"
        if referrer is not None:
            message = f"{message} (requested by {referrer})"
        super().__init__(message)


class LayoutCycle(LayoutError):
    """A layout chain that revisits a layout.

    Attributes:
        chain: Layout names in the order they were visited, ending with the
            repeated name.
    """

    def __init__(self, chain: list[str]):
        self.chain = list(chain)
        super().__init__("layout cycle: " + " -> ".join(self.chain))


class LayoutLoadError(LayoutError):
    """A layout file that cannot be loaded."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class BuildError(FolioError):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")

    @property
    def kind(self) -> str:
        """Name of the underlying error class."""
        if self.original_error is None:
            return type(self).__name__
        return type(self.original_error).__name__


class MissingDate(UserWarning):
    """A document without a date, left out of date-ordered listings."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        super().__init__(f"{self.path}: no date; excluded from listing")
