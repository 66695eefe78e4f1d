#!/usr/bin/env python3
"""
smartui_migrator.cli.cli

Typer-based CLI for migrating Percy, Applitools and Sauce Labs Visual suites
to LambdaTest SmartUI.

Examples
--------
Inspect a project without touching it:

    smartui-migrate scan ./my-project --json

Preview every change, then apply it:

    smartui-migrate migrate ./my-project --dry-run
    smartui-migrate migrate ./my-project
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from pathlib import Path

import typer

from smartui_migrator.errors import MigrationError

app = typer.Typer(
    name="smartui-migrate",
    help="Migrate Percy / Applitools / Sauce Labs Visual test suites to LambdaTest SmartUI.",
    no_args_is_help=True,
)

PROJECT_HELP = "Project root directory to inspect."
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

DOCTOR_DISTRIBUTIONS = [
    "smartui-migration-tool",
    "pydantic",
    "PyYAML",
    "tree-sitter",
    "tree-sitter-java",
    "tree-sitter-javascript",
    "tree-sitter-python",
    "tree-sitter-typescript",
    "typer",
]


def _print_migration_error(exc: Exception, debug: bool) -> int:
    """Print a user-friendly migration error.

    Parameters
    ----------
    exc : Exception
        Exception raised during detection or migration.
    debug : bool
        Whether to include traceback details.

    Returns
    -------
    int
        Process exit code.
    """
    typer.secho(f"✗ {type(exc).__name__}: {exc}", fg=typer.colors.RED, err=True)
    if debug:
        typer.echo("\nTraceback:", err=True)
        typer.echo("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), err=True)
    code = getattr(exc, "exit_code", None)
    if isinstance(code, int) and code > 0:
        return code
    return 1


@app.callback()
def _main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Show full tracebacks on error."),
    verbose: bool = typer.Option(False, "--verbose", help="Enable DEBUG logging."),
) -> None:
    """Initialize shared CLI state.

    Parameters
    ----------
    ctx : typer.Context
        Typer context object used to store shared state.
    debug : bool, default=False
        Whether to enable debug error output.
    verbose : bool, default=False
        Whether to log at DEBUG level instead of WARNING.
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)
    ctx.obj = {"debug": debug}


# -----------------------------
# Commands
# -----------------------------
@app.command("scan")
def scan_cmd(
    ctx: typer.Context,
    project: Path = typer.Argument(..., help=PROJECT_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print the detection result as JSON."),
) -> None:
    """Detect the visual testing platform, framework and language of a project."""
    debug: bool = bool(ctx.obj.get("debug", False))
    try:
        from smartui_migrator.api import detect_project

        result = detect_project(project)
    except (MigrationError, OSError) as exc:
        raise typer.Exit(code=_print_migration_error(exc, debug))

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return
    typer.echo(f"Platform:  {result.platform}")
    typer.echo(f"Framework: {result.framework}")
    typer.echo(f"Language:  {result.language}")
    typer.echo(f"Test type: {result.test_type}")
    for label, files in (
        ("Config files", result.files.config),
        ("Source files", result.files.source),
        ("CI files", result.files.ci),
        ("Package files", result.files.package_manager),
    ):
        typer.echo(f"{label} ({len(files)}):")
        for name in files:
            typer.echo(f"  {name}")


@app.command("migrate")
def migrate_cmd(
    ctx: typer.Context,
    project: Path = typer.Argument(..., help="Project root directory to migrate."),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Report every change without writing files."
    ),
    config_name: str = typer.Option(
        ".smartui.json", "--config-name", help="File name of the generated SmartUI config."
    ),
    sources: bool = typer.Option(
        True, "--sources/--no-sources", help="Rewrite test source files."
    ),
    manifests: bool = typer.Option(
        True, "--manifests/--no-manifests", help="Rewrite package.json and pom.xml."
    ),
) -> None:
    """Convert configuration, dependencies and test code to SmartUI."""
    debug: bool = bool(ctx.obj.get("debug", False))
    try:
        from smartui_migrator.application.options import MigrationOptions
        from smartui_migrator.application.use_cases import migrate_project

        report = migrate_project(
            project_root=project,
            options=MigrationOptions(
                dry_run=dry_run,
                config_filename=config_name,
                transform_sources=sources,
                transform_manifests=manifests,
            ),
        )
    except (MigrationError, OSError) as exc:
        raise typer.Exit(code=_print_migration_error(exc, debug))

    detection = report.detection
    typer.echo(f"Detected {detection.platform} / {detection.framework} / {detection.language}")
    verb = "Would update" if report.dry_run else "Updated"
    for outcome in report.files:
        if outcome.skipped:
            typer.secho(f"- {outcome.path}: skipped ({outcome.skipped})", fg=typer.colors.YELLOW)
        elif outcome.changed:
            suffix = f" ({outcome.snapshot_count} snapshot(s))" if outcome.snapshot_count else ""
            typer.secho(f"✓ {verb} {outcome.path}{suffix}", fg=typer.colors.GREEN)
        else:
            typer.echo(f"- {outcome.path}: unchanged")
        for warning in outcome.warnings:
            details = f" ({warning.details})" if warning.details else ""
            typer.secho(f"    ! {warning.message}{details}", fg=typer.colors.YELLOW)
    typer.echo(f"Snapshots migrated: {report.snapshot_count}")
    if report.dry_run:
        typer.echo("Dry run: no files were written.")


@app.command("doctor")
def doctor_cmd() -> None:
    """Print installed toolchain versions and registered code transformers."""
    import importlib.metadata as metadata

    typer.echo(f"Python: {sys.version.split()[0]}")
    for distribution in DOCTOR_DISTRIBUTIONS:
        try:
            version = metadata.version(distribution)
            typer.echo(f"{distribution}: {version}")
        except metadata.PackageNotFoundError:
            typer.echo(f"{distribution}: <not installed>")

    try:
        from smartui_migrator.transformers.registry import create_default_registry

        registry = create_default_registry()
        typer.echo(f"transformers: {', '.join(registry.names())}")
    except ImportError:
        typer.echo("transformers: <unavailable>")


if __name__ == "__main__":
    app()
