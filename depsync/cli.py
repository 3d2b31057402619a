"""CLI entry point: depsync.

Subcommands:
    depsync sync [PATH]             # discover, resolve, reconcile, write the manifest
    depsync sync . --dry-run        # report only, never write
    depsync sync . --update         # also overwrite declared versions that differ
    depsync scan [PATH]             # list imported packages (no registry access)
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from depsync.core.config import ECOSYSTEMS, MATCH_STRATEGIES, Settings
from depsync.core.logging import setup_logging
from depsync.ecosystems import get_ecosystem
from depsync.engines.source_scanner.scanner import discover_packages, iter_module_references
from depsync.exceptions import ConfigError, ScanError
from depsync.manifest import discover_manifest, infer_ecosystem
from depsync.presenter import Presenter, PresenterStyle
from depsync.service import sync_project

_EXIT_INTERRUPTED = 130


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.version_option(package_name="depsync")
def main(verbose: bool) -> None:
    """depsync: keep declared dependencies in line with what the code imports."""
    setup_logging("DEBUG" if verbose else None)


@main.command("sync")
@click.argument("path", type=click.Path(file_okay=False, path_type=Path), default=".")
@click.option(
    "--manifest",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Manifest to reconcile (default: discovered in PATH)",
)
@click.option("--ecosystem", type=click.Choice(ECOSYSTEMS), default=None, help="Package ecosystem")
@click.option("--update", "update_existing", is_flag=True, help="Overwrite declared versions that differ")
@click.option("--dry-run", is_flag=True, help="Report only; never write the manifest")
@click.option("--concurrency", type=int, default=None, help="Parallel registry lookups")
@click.option("--prerelease", "allow_prerelease", is_flag=True, help="Allow pre-release versions")
@click.option("--match", type=click.Choice(MATCH_STRATEGIES), default=None, help="Declared-version comparison")
@click.option("--exclude", "exclude_dirs", multiple=True, help="Extra directory name to skip")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--summary", is_flag=True, help="Print pipeline phase timings")
@click.option("--no-color", is_flag=True, help="Disable colored output")
def sync(
    path: Path,
    manifest: Path | None,
    ecosystem: str | None,
    update_existing: bool,
    dry_run: bool,
    concurrency: int | None,
    allow_prerelease: bool,
    match: str | None,
    exclude_dirs: tuple[str, ...],
    as_json: bool,
    summary: bool,
    no_color: bool,
) -> None:
    """Reconcile the manifest in PATH with the packages its code imports."""
    try:
        settings = Settings.from_env(
            ecosystem=ecosystem,
            manifest=manifest,
            update_existing=update_existing,
            persist=not dry_run,
            concurrency=concurrency,
            allow_prerelease=allow_prerelease or None,
            match=match,
            exclude_dirs=exclude_dirs or None,
        )
    except ConfigError as e:
        _fail(str(e))
        return

    presenter = Presenter(PresenterStyle(color=not no_color, as_json=as_json))
    try:
        report = asyncio.run(sync_project(path, settings))
    except ScanError as e:
        _fail(str(e))
        return
    except KeyboardInterrupt:
        click.echo("Interrupted; manifest left untouched.", err=True)
        sys.exit(_EXIT_INTERRUPTED)

    presenter.show_report(report, update_existing=settings.update_existing)
    if summary and not as_json:
        presenter.show_summary(report.summary)


@main.command("scan")
@click.argument("path", type=click.Path(file_okay=False, path_type=Path), default=".")
@click.option("--ecosystem", type=click.Choice(ECOSYSTEMS), default=None, help="Package ecosystem")
@click.option("--raw", is_flag=True, help="List module references as written, unfiltered")
@click.option("--exclude", "exclude_dirs", multiple=True, help="Extra directory name to skip")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scan(
    path: Path,
    ecosystem: str | None,
    raw: bool,
    exclude_dirs: tuple[str, ...],
    as_json: bool,
) -> None:
    """List the packages imported by the code in PATH (no registry access)."""
    name = ecosystem or infer_ecosystem(path, discover_manifest(path))
    extractor = get_ecosystem(name).extractor
    presenter = Presenter(PresenterStyle(as_json=as_json))
    try:
        if raw:
            names = sorted(iter_module_references(path, extractor, exclude_dirs))
        else:
            names = discover_packages(path, extractor, exclude_dirs)
    except ScanError as e:
        _fail(str(e))
        return
    presenter.show_packages(names)


if __name__ == "__main__":
    main()
