"""Command-line interface for Folio.

Commands:
- build: Build the site into the output directory.
- check: Run the whole pipeline without writing anything.

Both commands run from the project root (the directory holding folio.yaml)
and exit with status 1 when the build aborts or any document fails.
"""

from __future__ import annotations

from pathlib import Path

import click

from . import __version__
from .errors import FolioError

DIRECTORY = click.Path(file_okay=False, path_type=Path)


@click.group()
@click.version_option(version=__version__, prog_name="folio")
def cli():
    """Folio static site builder."""


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--source", type=DIRECTORY, help="Source directory (overrides folio.yaml)")
@click.option("--output", type=DIRECTORY, help="Output directory (overrides folio.yaml)")
@click.option(
    "--jobs",
    "-j",
    type=click.IntRange(min=1),
    help="Number of documents to render in parallel",
)
@click.option(
    "--clean/--no-clean",
    default=True,
    show_default=True,
    help="Empty the output directory first",
)
def build(
    drafts: bool,
    source: Path | None,
    output: Path | None,
    jobs: int | None,
    clean: bool,
):
    """Build the site into the output directory."""
    result = _run(
        include_drafts=drafts,
        source_dir_override=source,
        output_dir_override=output,
        jobs=jobs,
        clean_output=clean,
    )
    click.echo(f"Built {len(result.pages)} pages into {result.output_dir}")


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--source", type=DIRECTORY, help="Source directory (overrides folio.yaml)")
@click.option(
    "--jobs",
    "-j",
    type=click.IntRange(min=1),
    help="Number of documents to render in parallel",
)
def check(drafts: bool, source: Path | None, jobs: int | None):
    """Render every document without writing any files."""
    result = _run(
        include_drafts=drafts, source_dir_override=source, jobs=jobs, write=False
    )
    click.echo(f"Checked {len(result.pages)} pages")


def _run(**options):
    """Run one build pass and report problems; exit 1 on any failure."""
    project_root = Path.cwd()
    from .build import build_site

    try:
        result = build_site(project_root, **options)
    except FolioError as exc:
        click.echo(click.style("Build aborted:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  {type(exc).__name__}: {exc}", fg="white"), err=True)
        raise SystemExit(1) from None

    for warning in result.warnings:
        click.echo(
            click.style(
                f"warning: {warning.path.as_posix()}: no date; left out of the listing",
                fg="yellow",
            ),
            err=True,
        )

    if result.failures:
        count = len(result.failures)
        noun = "document" if count == 1 else "documents"
        click.echo(
            click.style(f"Build failed for {count} {noun}:", fg="red", bold=True),
            err=True,
        )
        for failure in result.failures:
            click.echo(
                click.style(f"  File: {failure.source_path.as_posix()}", fg="yellow"),
                err=True,
            )
            click.echo(
                click.style(f"  Error: {failure.kind}: {failure.message}", fg="white"),
                err=True,
            )
        raise SystemExit(1)
    return result


def main():
    """Entry point for the CLI application."""
    cli()
