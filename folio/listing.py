"""Date-ordered listings of site documents.

Every document with a ``date`` becomes a ListingEntry; the listing is sorted
newest first. Documents without a date are flagged with a MissingDate
warning instead of being dropped silently, unless they opt out with
``listed: false``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from jinja2 import Environment

from .content import ContentDocument
from .errors import MissingDate

LISTING_TEMPLATE = """\
<ul class="post-list">
{%- for entry in entries %}
  <li>
    <time datetime="{{ entry.date.isoformat() }}">{{ entry.date | date_format }}</time>
    <a href="{{ entry.url }}">{{ entry.title }}</a>
    {%- if entry.description %}
    <p>{{ entry.description }}</p>
    {%- endif %}
  </li>
{%- endfor %}
</ul>
"""


@dataclass(frozen=True)
class ListingEntry:
    """One dated document in a listing."""

    title: str
    date: date
    url: str
    description: str
    source: Path


class Listing(Sequence[ListingEntry]):
    """Entries sorted by date, newest first, with helpers for templates."""

    def __init__(self, entries: Iterable[ListingEntry]):
        self._entries = sorted(
            entries,
            key=lambda e: (-e.date.toordinal(), e.title.lower(), e.source.as_posix()),
        )

    def __iter__(self) -> Iterator[ListingEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, item):
        return self._entries[item]

    def latest(self, count: int = 5) -> list[ListingEntry]:
        return self._entries[:count]

    def by_year(self) -> list[tuple[int, list[ListingEntry]]]:
        """Group entries by year, newest year first."""
        years: dict[int, list[ListingEntry]] = {}
        for entry in self._entries:
            years.setdefault(entry.date.year, []).append(entry)
        return list(years.items())

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"Listing({len(self._entries)} entries)"


def build_listing(
    documents: Iterable[tuple[ContentDocument, str]],
) -> tuple[Listing, list[MissingDate]]:
    """Aggregate front matter into a date-sorted listing.

    Args:
        documents: Pairs of (document, site URL of its output).

    Returns:
        Tuple of (listing, MissingDate warnings for undated documents).
    """
    entries: list[ListingEntry] = []
    warnings: list[MissingDate] = []
    for document, url in documents:
        if not document.listed:
            continue
        if document.date is None:
            warnings.append(MissingDate(document.path))
            continue
        entries.append(
            ListingEntry(
                title=document.title,
                date=document.date,
                url=url,
                description=document.description,
                source=document.path,
            )
        )
    return Listing(entries), warnings


def render_listing(listing: Listing, env: Environment) -> str:
    """Render the listing as an HTML list, ready to wrap in a layout."""
    return env.from_string(LISTING_TEMPLATE).render(entries=listing)
