"""Feed generation for Folio.

This module writes sitemap.xml and an RSS feed of the listing. Both need
an absolute site URL (``url`` in folio.yaml) and are skipped without one.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml files.
    RSSGenerator: Generates the RSS feed of dated documents.
    FeedRegistry: Registry for managing feed generators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Collection, Mapping, Sequence
from datetime import datetime, time, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Any

from .content import RenderedPage
from .listing import Listing
from .utils import escape_html, join_root_url


def _rfc822(day) -> str:
    # format_datetime uses English day and month names whatever the locale.
    return format_datetime(datetime.combine(day, time(0, 0), tzinfo=timezone.utc))


class FeedGenerator(ABC):
    """Base class for feed generators."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename for this feed."""
        ...

    @abstractmethod
    def generate(
        self,
        pages: Sequence[RenderedPage],
        listing: Listing,
        site: Mapping[str, Any],
    ) -> str | None:
        """Generate feed content.

        Args:
            pages: Every page written by the build.
            listing: Date-sorted listing of documents.
            site: Site configuration, including 'url'.

        Returns:
            Feed content, or None if the feed cannot be generated.
        """
        ...

    def write(
        self,
        output_dir: Path,
        pages: Sequence[RenderedPage],
        listing: Listing,
        site: Mapping[str, Any],
    ) -> bool:
        """Generate and write the feed; return True if it was written."""
        content = self.generate(pages, listing, site)
        if content is None:
            return False
        output_path = output_dir / self.filename
        output_path.write_text(content, encoding="utf-8")
        return True


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml listing every page."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(self, pages, listing, site) -> str | None:
        base_url = str(site.get("url") or "")
        if not base_url:
            return None

        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        for page in sorted(pages, key=lambda p: p.url):
            loc = escape_html(join_root_url(base_url, page.url))
            if page.date is not None:
                lastmod = page.date.strftime("%Y-%m-%d")
                lines.append(f"  <url><loc>{loc}</loc><lastmod>{lastmod}</lastmod></url>")
            else:
                lines.append(f"  <url><loc>{loc}</loc></url>")
        lines.append("</urlset>")
        return "\n".join(lines) + "\n"


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of the listing, newest first.

    The build date is the newest entry's date so repeated builds of the same
    content produce the same file.
    """

    @property
    def filename(self) -> str:
        return "feed.xml"

    def generate(self, pages, listing, site) -> str | None:
        base_url = str(site.get("url") or "")
        if not base_url:
            return None
        title = escape_html(str(site.get("title") or "Feed"))

        items = []
        for entry in listing:
            link = escape_html(join_root_url(base_url, entry.url))
            description = escape_html(entry.description or entry.title)
            items.append(
                f"<item><title>{escape_html(entry.title)}</title><link>{link}</link>"
                f"<guid>{link}</guid><description>{description}</description>"
                f"<pubDate>{_rfc822(entry.date)}</pubDate></item>"
            )

        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{title}</title>",
            f"<link>{escape_html(base_url)}</link>",
            f"<description>{escape_html(str(site.get('description') or ''))}</description>",
        ]
        if len(listing):
            rss.append(f"<lastBuildDate>{_rfc822(listing[0].date)}</lastBuildDate>")
        rss.extend(items)
        rss.append("</channel></rss>")
        return "\n".join(rss) + "\n"


class FeedRegistry:
    """Registry for managing feed generators."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(
        self,
        output_dir: Path,
        pages: Sequence[RenderedPage],
        listing: Listing,
        site: Mapping[str, Any],
        skip: Collection[str] = (),
    ) -> list[str]:
        """Write all registered feeds.

        Feeds whose filename is in ``skip`` (already written by the build)
        are left alone.

        Returns:
            Filenames that were generated.
        """
        generated = []
        for generator in self._generators:
            if generator.filename in skip:
                continue
            if generator.write(output_dir, pages, listing, site):
                generated.append(generator.filename)
        return generated


def create_default_feed_registry() -> FeedRegistry:
    """Create a registry with the sitemap and RSS generators."""
    registry = FeedRegistry()
    registry.register(SitemapGenerator())
    registry.register(RSSGenerator())
    return registry
