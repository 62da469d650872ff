"""Utility functions for Folio.

Key functions:
    titleize: Convert filenames to human-readable titles.
    is_markdown / is_html / is_content: Classify source files.
    is_internal_path: Check for ``_``-prefixed or hidden path parts.
    output_path_for: Map a source path (or permalink) to its output path.
    url_for_output: Map an output path to a site URL.
    escape_html / join_root_url: HTML and URL string helpers.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path, PurePosixPath

MARKDOWN_SUFFIXES = (".md", ".markdown")
HTML_SUFFIXES = (".html", ".htm")


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Removes date prefixes (YYYY-MM-DD), replaces hyphens and underscores
    with spaces, and capitalizes each word.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'

        >>> titleize("about.md")
        'About'
    """
    base = Path(filename).stem
    if "-" in base:
        parts = base.split("-")
        if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
            base = "-".join(parts[3:])
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file (.md or .markdown)."""
    return path.suffix.lower() in MARKDOWN_SUFFIXES


def is_html(path: Path) -> bool:
    """Check if a path is an HTML file (.html or .htm)."""
    return path.suffix.lower() in HTML_SUFFIXES


def is_content(path: Path) -> bool:
    """Check if a path is a content document rather than a static file."""
    return is_markdown(path) or is_html(path)


def is_internal_path(path: Path) -> bool:
    """Check if a relative path is internal.

    Internal paths have a component starting with ``_`` (layouts, includes,
    drafts) or ``.`` (hidden files).
    """
    return any(part.startswith(("_", ".")) for part in path.parts)


def output_path_for(rel: Path, permalink: str | None = None) -> Path:
    """Compute the output path of a document.

    Without a permalink the source path is kept and its extension is
    rewritten to ``.html``. A permalink ending in ``/`` becomes a directory
    with an ``index.html``; a permalink without a suffix gets ``.html``.

    Args:
        rel: Source path relative to the source directory.
        permalink: Optional ``permalink`` front-matter value.

    Returns:
        Output path relative to the output directory.

    Raises:
        ValueError: If the permalink escapes the output directory.

    Examples:
        >>> output_path_for(Path("posts/hello.md"))
        PosixPath('posts/hello.html')

        >>> output_path_for(Path("about.md"), "/me/")
        PosixPath('me/index.html')
    """
    if permalink is None:
        return rel.with_suffix(".html")

    target = str(permalink).strip()
    if ".." in PurePosixPath(target).parts:
        raise ValueError(f"permalink escapes the output directory: {permalink!r}")
    is_dir = target.endswith("/")
    target = target.strip("/")
    if not target:
        return Path("index.html")
    if is_dir:
        return Path(target) / "index.html"
    path = Path(target)
    return path if path.suffix else path.with_name(path.name + ".html")


def url_for_output(output_path: Path) -> str:
    """Return the site URL for an output path.

    Examples:
        >>> url_for_output(Path("posts/hello.html"))
        '/posts/hello.html'

        >>> url_for_output(Path("me/index.html"))
        '/me/'
    """
    posix = output_path.as_posix()
    if output_path.name == "index.html":
        parent = output_path.parent.as_posix()
        return "/" if parent == "." else f"/{parent}/"
    return f"/{posix}"


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Examples:
        >>> escape_html('Tom & "Jerry"')
        'Tom &amp; &quot;Jerry&quot;'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Examples:
        >>> join_root_url('https://example.com/', 'about')
        'https://example.com/about'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.
    """
    if path.exists():
        shutil.rmtree(str(path), ignore_errors=True)
        if path.exists():
            # Fallback for stubborn directories
            for item in path.rglob("*"):
                if item.is_file():
                    item.unlink()
            for item in sorted(
                [p for p in path.rglob("*") if p.is_dir()], reverse=True
            ):
                item.rmdir()
            path.rmdir()
    path.mkdir(parents=True, exist_ok=True)
