"""Front-matter parsing for Folio.

A content file may start with a YAML block between ``---`` lines:

    ---
    title: Hello
    layout: post
    date: 2024-02-18
    ---
    # Hi

The block ends at the next ``---`` (or ``...``) line. Files that do not start
with ``---`` have no front matter and their whole text is the body.
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from .errors import MalformedFrontMatter

OPENING = "---"
CLOSINGS = ("---", "...")


def parse_front_matter(text: str, path: Path | str) -> tuple[dict[str, Any], str]:
    """Split raw file text into (metadata, body).

    Args:
        text: Raw file content.
        path: Source path, used in error messages.

    Returns:
        Tuple of (front matter dict, remaining body text).

    Raises:
        MalformedFrontMatter: If the block is unterminated, is not valid YAML,
            is not a mapping, or carries a date that cannot be parsed.
    """
    text = text.lstrip("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != OPENING:
        return {}, text

    for index, line in enumerate(lines[1:], start=1):
        if line.rstrip() in CLOSINGS:
            block = "".join(lines[1:index])
            body = "".join(lines[index + 1 :])
            break
    else:
        raise MalformedFrontMatter(path, "missing closing '---' delimiter")

    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise MalformedFrontMatter(path, f"invalid YAML ({exc})") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedFrontMatter(path, "front matter must be a mapping of keys to values")

    metadata = {str(key): value for key, value in data.items()}
    if metadata.get("date") is not None:
        metadata["date"] = parse_date(metadata["date"], path)
    return metadata, body


def parse_date(value: Any, path: Path | str) -> date:
    """Normalize a front-matter ``date`` value to a calendar date.

    Accepts YAML dates and timestamps as well as ISO 8601 strings. The time
    of day, if any, is dropped.

    Raises:
        MalformedFrontMatter: If the value is not a recognizable date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        candidate = value.strip()
        try:
            return date.fromisoformat(candidate)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(candidate.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise MalformedFrontMatter(path, f"invalid date {value!r}")
