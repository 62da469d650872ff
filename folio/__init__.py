"""Folio static site builder.

Folio renders a personal website from Markdown and HTML documents with YAML
front matter. Documents are wrapped in Jinja2 layouts that can chain to a
parent layout, and dated documents are gathered into a listing page and an
RSS feed.

The main entry point is the CLI module, which provides the ``build`` and
``check`` commands.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
