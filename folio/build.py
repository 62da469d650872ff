"""Site building for Folio.

This module turns a source directory into an HTML tree:

1. Load configuration (folio.yaml) and site data (data/*.yaml).
2. Load and validate every layout. Any failure here aborts the build.
3. Parse each content document and pick its layout and output path.
4. Build the date-sorted listing.
5. Render each document (Markdown to HTML, then the layout chain) and write it.
6. Write the listing page, copy static files and write the feeds.

Documents are independent of each other: a document that fails is recorded
in the BuildResult and the rest of the build carries on.

Key functions:
- build_site: Main function to build the entire site.
- render_document: Render one document against a loaded layout set.
- load_config: Loads site configuration from folio.yaml.
- load_data: Loads site data from YAML files in the data directory.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

import yaml
from jinja2 import Environment, TemplateSyntaxError

from .content import ContentDocument, FileContentLoader, RenderedPage, load_document
from .errors import (
    BuildError,
    ConfigError,
    FolioError,
    MalformedFrontMatter,
    MissingDate,
)
from .feeds import create_default_feed_registry
from .layouts import LayoutSet, create_environment, layout_name, load_layouts
from .listing import Listing, build_listing, render_listing
from .renderers import RendererRegistry, default_renderer_registry
from .utils import ensure_clean_dir, output_path_for, url_for_output

T = TypeVar("T")
R = TypeVar("R")

CONFIG_FILENAME = "folio.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "source_dir": "site",
    "output_dir": "output",
    "layouts_dir": "_layouts",
    "includes_dir": "_includes",
    "default_layout": "default",
    "title": "",
    "description": "",
    "author": "",
    "url": "",
    "listing": {"path": "archive.html", "layout": None, "title": "Archive"},
    "jobs": 1,
}

SITE_KEYS = ("title", "description", "author", "url")


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        pages: Pages rendered (and written, unless it was a dry run).
        failures: Per-document errors, in source order.
        warnings: MissingDate warnings for undated documents.
        listing: Date-sorted listing of documents.
        output_dir: Directory where the site was built.
        data: Global site data dictionary.
    """

    pages: list[RenderedPage]
    output_dir: Path
    failures: list[BuildError] = field(default_factory=list)
    warnings: list[MissingDate] = field(default_factory=list)
    listing: Listing = field(default_factory=lambda: Listing([]))
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass(frozen=True)
class PreparedDocument:
    """A parsed document with its layout and output location decided."""

    document: ContentDocument
    layout: str | None
    output_path: Path
    url: str


def load_config(project_root: Path) -> dict[str, Any]:
    """Load site configuration from folio.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        ConfigError: If the file is not valid YAML or holds invalid values.
    """
    config_path = project_root / CONFIG_FILENAME
    config = {**DEFAULT_CONFIG, "listing": dict(DEFAULT_CONFIG["listing"])}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"{config_path}: invalid YAML ({exc})") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_path}: expected a mapping at the top level")
        listing = loaded.pop("listing", config["listing"])
        config.update(loaded)
        if isinstance(listing, dict):
            config["listing"] = {**config["listing"], **listing}
        elif listing is None or listing is False:
            config["listing"] = None
        else:
            raise ConfigError(f"{config_path}: 'listing' must be a mapping or null")

    jobs = config.get("jobs")
    if not isinstance(jobs, int) or isinstance(jobs, bool) or jobs < 1:
        raise ConfigError(f"'jobs' must be a positive integer, got {jobs!r}")
    return config


def load_data(project_root: Path) -> dict[str, Any]:
    """Load site data from YAML files in the data directory.

    ``data/site.yaml`` is merged at the top level; every other file is
    stored under its stem.

    Raises:
        ConfigError: If a data file is not valid YAML.
    """
    data_dir = project_root / "data"
    data: dict[str, Any] = {}
    if not data_dir.exists():
        return data
    for path in sorted(data_dir.glob("*.yaml")):
        with open(path, encoding="utf-8") as f:
            try:
                payload = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"{path}: invalid YAML ({exc})") from exc
        if path.name == "site.yaml":
            if isinstance(payload, dict):
                data.update(payload)
            continue
        data[path.stem] = payload
    return data


def site_context(
    config: Mapping[str, Any], data: Mapping[str, Any], listing: Listing
) -> dict[str, Any]:
    """Build the ``site`` variable available to every layout."""
    site: dict[str, Any] = {key: config.get(key) or "" for key in SITE_KEYS}
    site.update(data)
    site["data"] = dict(data)
    site["posts"] = listing
    return site


def page_context(document: ContentDocument, url: str) -> dict[str, Any]:
    """Build the ``page`` variable: front-matter fields plus url and path."""
    page = dict(document.front_matter)
    page["url"] = url
    page["path"] = document.path.as_posix()
    return page


def choose_layout(
    document: ContentDocument, layouts: LayoutSet, default_layout: str | None
) -> str | None:
    """Pick the layout for a document.

    An explicit ``layout`` must exist. Without one the default layout is
    used when it is loaded, and the body is written bare otherwise.

    Raises:
        UnknownLayout: If the requested layout is not loaded.
    """
    if "layout" in document.front_matter:
        name = layout_name(document.front_matter["layout"])
        if name is not None:
            layouts.chain(name, referrer=document.path)
        return name
    if default_layout and default_layout in layouts:
        return default_layout
    return None


def render_document(
    document: ContentDocument,
    layouts: LayoutSet,
    site: Mapping[str, Any],
    layout: str | None,
    url: str = "",
    renderer_registry: RendererRegistry | None = None,
) -> str:
    """Render one document to its final HTML.

    A pure function of its arguments: the same document and layouts always
    give the same output.
    """
    registry = renderer_registry or default_renderer_registry
    renderer = registry.get_renderer(document.path)
    body_html = renderer.render(document.body) if renderer else document.body
    return layouts.apply(
        layout, body_html, page_context(document, url), site, referrer=document.path
    )


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    if isinstance(exc, MalformedFrontMatter):
        return f"malformed front matter: {exc.reason}"
    if isinstance(exc, FolioError):
        return str(exc)
    if isinstance(exc, TemplateSyntaxError):
        return f"Template syntax error on line {exc.lineno}: {exc.message}"

    error_type = type(exc).__name__
    error_msg = str(exc)
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    return f"{error_type}: {error_msg}"


def _failure(source: Path, exc: Exception) -> BuildError:
    return BuildError(source, _format_error_message(exc), exc)


def _run_all(fn: Callable[[T], R], items: Iterable[T], jobs: int) -> list[R]:
    """Apply fn to every item, on a thread pool when jobs > 1, keeping order."""
    items = list(items)
    if jobs <= 1 or len(items) <= 1:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=jobs) as pool:
        return list(pool.map(fn, items))


def _write(output_dir: Path, output_path: Path, html: str) -> None:
    target = output_dir / output_path
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8", newline="") as f:
        f.write(html)


def build_site(
    project_root: Path,
    include_drafts: bool = False,
    clean_output: bool = True,
    output_dir_override: Path | None = None,
    source_dir_override: Path | None = None,
    jobs: int | None = None,
    write: bool = True,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        include_drafts: Whether to include draft documents (starting with _).
        clean_output: Whether to wipe the output directory before building.
        output_dir_override: Write the build output here instead of config output_dir.
        source_dir_override: Read content from here instead of config source_dir.
        jobs: Number of render workers; overrides config ``jobs``.
        write: When False, render everything but write nothing.

    Returns:
        BuildResult with rendered pages, per-document failures and warnings.

    Raises:
        ConfigError: If the configuration is invalid or the source directory
            does not exist, or the output directory contains the source
            directory.
        LayoutError: If any layout fails to load; nothing is rendered.
    """
    config = load_config(project_root)
    source_dir = source_dir_override or (project_root / config["source_dir"])
    if not source_dir.is_dir():
        raise ConfigError(f"Expected source directory at {source_dir}")
    output_dir = output_dir_override or (project_root / config["output_dir"])
    if source_dir.resolve().is_relative_to(output_dir.resolve()):
        raise ConfigError(
            f"Output directory {output_dir} must not contain the source directory"
        )
    workers = jobs or config["jobs"]

    env = create_environment(source_dir / config["includes_dir"])
    layouts = load_layouts(source_dir / config["layouts_dir"], env)
    data = load_data(project_root)

    loader = FileContentLoader(source_dir, exclude=[output_dir])
    failures: list[BuildError] = []
    prepared: list[PreparedDocument] = []
    claimed: dict[Path, Path] = {}
    stale: list[Path] = []
    for path in loader.iter_files(include_drafts):
        rel = path.relative_to(source_dir)
        output_path = output_path_for(rel)
        try:
            document = load_document(source_dir, path)
            permalink = document.front_matter.get("permalink")
            output_path = output_path_for(
                rel, str(permalink) if permalink is not None else None
            )
            layout = choose_layout(document, layouts, config["default_layout"])
        except Exception as exc:
            failures.append(_failure(rel, exc))
            stale.append(output_path)
            continue
        if output_path in claimed:
            failures.append(
                BuildError(
                    rel,
                    f"output path {output_path.as_posix()} is already "
                    f"produced by {claimed[output_path].as_posix()}",
                )
            )
            continue
        claimed[output_path] = rel
        prepared.append(
            PreparedDocument(document, layout, output_path, url_for_output(output_path))
        )

    listing, warnings = build_listing((p.document, p.url) for p in prepared)
    site = site_context(config, data, listing)

    if write:
        if clean_output:
            ensure_clean_dir(output_dir)
        else:
            output_dir.mkdir(parents=True, exist_ok=True)

    def render_one(item: PreparedDocument) -> RenderedPage | BuildError:
        try:
            html = render_document(item.document, layouts, site, item.layout, item.url)
            if write:
                _write(output_dir, item.output_path, html)
        except Exception as exc:
            if write:
                (output_dir / item.output_path).unlink(missing_ok=True)
            return _failure(item.document.path, exc)
        return RenderedPage(
            output_path=item.output_path,
            html=html,
            source=item.document.path,
            url=item.url,
            date=item.document.date,
        )

    pages: list[RenderedPage] = []
    rendered: list[PreparedDocument] = []
    for item, outcome in zip(prepared, _run_all(render_one, prepared, workers)):
        if isinstance(outcome, BuildError):
            failures.append(outcome)
        else:
            pages.append(outcome)
            rendered.append(item)

    # The listing page and feeds only link to pages that were written.
    if len(rendered) < len(prepared):
        listing, _ = build_listing((p.document, p.url) for p in rendered)
        site["posts"] = listing

    listing_page = _render_listing_page(config, layouts, site, listing, env, claimed)
    if isinstance(listing_page, BuildError):
        failures.append(listing_page)
    elif listing_page is not None:
        claimed[listing_page.output_path] = listing_page.source
        pages.append(listing_page)
        if write:
            _write(output_dir, listing_page.output_path, listing_page.html)

    if write:
        for output_path in stale:
            if output_path not in claimed:
                (output_dir / output_path).unlink(missing_ok=True)
        written = set(claimed)
        written.update(_copy_static_files(loader, source_dir, output_dir, claimed))
        create_default_feed_registry().generate_all(
            output_dir, pages, listing, site, skip={p.as_posix() for p in written}
        )

    return BuildResult(
        pages=pages,
        output_dir=output_dir,
        failures=failures,
        warnings=warnings,
        listing=listing,
        data=data,
    )


def _render_listing_page(
    config: Mapping[str, Any],
    layouts: LayoutSet,
    site: Mapping[str, Any],
    listing: Listing,
    env: Environment,
    claimed: Mapping[Path, Path],
) -> RenderedPage | BuildError | None:
    """Render the configured listing page, if any."""
    settings = config.get("listing")
    if not settings or not settings.get("path"):
        return None
    source = Path(CONFIG_FILENAME)
    try:
        output_path = output_path_for(Path("listing"), str(settings["path"]))
    except ValueError as exc:
        return _failure(source, exc)
    if output_path in claimed:
        return BuildError(
            source,
            f"listing path {output_path.as_posix()} is already produced by "
            f"{claimed[output_path].as_posix()}",
        )
    url = url_for_output(output_path)
    page = {"title": settings.get("title") or "", "url": url, "path": output_path.as_posix()}
    layout = layout_name(settings.get("layout"))
    if layout is None and config.get("default_layout") in layouts:
        layout = config["default_layout"]
    try:
        html = layouts.apply(
            layout,
            render_listing(listing, env),
            page,
            site,
            referrer=source,
        )
    except Exception as exc:
        return _failure(source, exc)
    return RenderedPage(output_path=output_path, html=html, source=source, url=url)


def _copy_static_files(
    loader: FileContentLoader,
    source_dir: Path,
    output_dir: Path,
    claimed: Mapping[Path, Path],
) -> list[Path]:
    """Copy non-content files verbatim; rendered pages take precedence."""
    copied: list[Path] = []
    for path in loader.iter_static_files():
        rel = path.relative_to(source_dir)
        if rel in claimed:
            continue
        dest = output_dir / rel
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, dest)
        copied.append(rel)
    return copied
