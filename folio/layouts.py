"""Layouts and layout chains for Folio.

A layout is a Jinja2 template in the layouts directory with exactly one
``{{ content }}`` insertion point. Its own front matter may name a parent
layout, so layouts chain outward:

    _layouts/post.html          _layouts/page.html
    ---                         <html><body>
    layout: page                {{ content }}
    ---                         </body></html>
    <article>{{ content }}</article>

Rendering a document with ``post`` substitutes the body into ``post``, then
substitutes that result into ``page``.

Key classes:
- Layout: One loaded, compiled layout.
- LayoutSet: Immutable, pre-validated mapping from name to Layout.

Key functions:
- load_layouts: Load and validate every layout in a directory.
- create_environment: Jinja2 environment shared by layouts and listings.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from types import MappingProxyType
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    Template,
    TemplateSyntaxError,
    Undefined,
    select_autoescape,
)
from markupsafe import Markup

from .errors import LayoutCycle, LayoutLoadError, MalformedFrontMatter, UnknownLayout
from .frontmatter import parse_front_matter

LAYOUT_SUFFIXES = (".html", ".htm", ".xml")
CONTENT_MARKER_RE = re.compile(r"\{\{-?\s*content\s*(?:\|\s*safe\s*)?-?\}\}")
NO_LAYOUT = ("none", "null", "")


def date_format(value: Any, fmt: str = "%B %d, %Y") -> str:
    """Jinja filter: format a date, rendering absent values as ''."""
    if value is None or isinstance(value, Undefined) or value == "":
        return ""
    if isinstance(value, date):
        return value.strftime(fmt)
    return str(value)


def create_environment(includes_dir: Path | None = None) -> Environment:
    """Create the Jinja2 environment layouts are compiled in.

    Args:
        includes_dir: Optional directory for ``{% include %}`` lookups.
    """
    loader = None
    if includes_dir is not None and includes_dir.is_dir():
        loader = FileSystemLoader(str(includes_dir))
    env = Environment(
        loader=loader,
        autoescape=select_autoescape(["html", "htm", "xml"]),
        keep_trailing_newline=True,
    )
    env.filters["date_format"] = date_format
    return env


def layout_name(value: Any) -> str | None:
    """Normalize a ``layout`` front-matter value; None means no layout."""
    if value is None or value is False:
        return None
    name = str(value).strip()
    if name.lower() in NO_LAYOUT:
        return None
    return name


@dataclass(frozen=True)
class Layout:
    """A named template with one insertion point and an optional parent.

    Attributes:
        name: Layout name (file stem).
        template_body: Template source after the layout's front matter.
        parent_name: Name of the parent layout, if any.
        path: Source file of the layout.
        front_matter: The layout's own front matter.
        template: Compiled Jinja2 template; compiled on demand when absent.
    """

    name: str
    template_body: str
    parent_name: str | None = None
    path: Path | None = None
    front_matter: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), repr=False
    )
    template: Template | None = field(default=None, repr=False, compare=False)

    def render(self, content: str, page: Mapping[str, Any], site: Mapping[str, Any]) -> str:
        """Substitute content and front-matter fields into this layout."""
        template = self.template or create_environment().from_string(self.template_body)
        return template.render(
            content=Markup(content),
            page=page,
            site=site,
            layout=self.front_matter,
        )


class LayoutSet(Mapping[str, Layout]):
    """Immutable mapping of layout name to Layout.

    Build it through ``load_layouts`` (or call ``validate``) so every chain
    is known to resolve before rendering starts.
    """

    def __init__(self, layouts: Mapping[str, Layout] | None = None):
        self._layouts = MappingProxyType(dict(layouts or {}))

    def __getitem__(self, name: str) -> Layout:
        return self._layouts[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._layouts)

    def __len__(self) -> int:
        return len(self._layouts)

    def chain(self, name: str, referrer: Path | str | None = None) -> tuple[Layout, ...]:
        """Return the layout chain for a name, innermost first.

        Args:
            name: Layout to start from.
            referrer: Document asking for the layout, for error messages.

        Raises:
            UnknownLayout: If a layout in the chain is not loaded.
            LayoutCycle: If the chain revisits a layout.
        """
        if name not in self._layouts:
            raise UnknownLayout(name, referrer)
        chain: list[Layout] = []
        seen: list[str] = []
        current: str | None = name
        while current is not None:
            if current in seen:
                raise LayoutCycle(seen + [current])
            layout = self._layouts.get(current)
            if layout is None:
                raise UnknownLayout(current, chain[-1].path if chain else referrer)
            seen.append(current)
            chain.append(layout)
            current = layout.parent_name
        return tuple(chain)

    def validate(self) -> None:
        """Check that every layout's chain resolves.

        Raises:
            UnknownLayout: If a parent layout is missing.
            LayoutCycle: If any chain is cyclic.
        """
        for name in sorted(self._layouts):
            self.chain(name)

    def apply(
        self,
        name: str | None,
        content: str,
        page: Mapping[str, Any],
        site: Mapping[str, Any],
        referrer: Path | str | None = None,
    ) -> str:
        """Wrap rendered content in a layout and all of its ancestors.

        The content is substituted into the named layout first, then each
        result into the next parent, ending with the outermost layout.
        A name of None returns the content unchanged.
        """
        if name is None:
            return content
        html = content
        for layout in self.chain(name, referrer):
            html = layout.render(html, page, site)
        return html


def load_layout(path: Path, env: Environment) -> Layout:
    """Load, check and compile a single layout file.

    Raises:
        LayoutLoadError: If the file cannot be read, its front matter is
            malformed, it does not have exactly one insertion point, or the
            template does not compile.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise LayoutLoadError(path, f"cannot read layout ({exc})") from exc

    try:
        front_matter, body = parse_front_matter(text, path)
    except MalformedFrontMatter as exc:
        raise LayoutLoadError(path, exc.reason) from exc

    markers = len(CONTENT_MARKER_RE.findall(body))
    if markers != 1:
        raise LayoutLoadError(
            path, f"expected exactly one {{{{ content }}}} marker, found {markers}"
        )

    try:
        template = env.from_string(body)
    except TemplateSyntaxError as exc:
        raise LayoutLoadError(
            path, f"template syntax error on line {exc.lineno}: {exc.message}"
        ) from exc

    return Layout(
        name=path.stem,
        template_body=body,
        parent_name=layout_name(front_matter.get("layout")),
        path=path,
        front_matter=MappingProxyType(front_matter),
        template=template,
    )


def load_layouts(layouts_dir: Path, env: Environment | None = None) -> LayoutSet:
    """Load every layout in a directory into a validated LayoutSet.

    A missing directory yields an empty set.

    Raises:
        LayoutLoadError: If any layout file cannot be loaded or two files
            share a name.
        UnknownLayout: If a layout names a parent that does not exist.
        LayoutCycle: If the parent references form a cycle.
    """
    env = env or create_environment()
    layouts: dict[str, Layout] = {}
    if layouts_dir.is_dir():
        for path in sorted(layouts_dir.iterdir()):
            if not path.is_file() or path.suffix.lower() not in LAYOUT_SUFFIXES:
                continue
            layout = load_layout(path, env)
            if layout.name in layouts:
                raise LayoutLoadError(
                    path, f"duplicate layout name '{layout.name}' (also {layouts[layout.name].path})"
                )
            layouts[layout.name] = layout
    layout_set = LayoutSet(layouts)
    layout_set.validate()
    return layout_set
