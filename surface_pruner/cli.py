#!/usr/bin/env python3
"""CLI for pruning an API description before client generation."""

import sys
from typing import Optional, Tuple

import click

from .config import Settings, load_settings
from .document import load_document_file, render_document
from .exceptions import SurfacePrunerError
from .observability import get_logger, setup_logging
from .pruning import SurfacePruner, count_references, group_by_client

logger = get_logger(__name__)


def _fail(error: SurfacePrunerError) -> None:
    click.echo(f"Error: {error}", err=True)
    sys.exit(error.exit_status)


def _command_settings(ctx: click.Context, **overrides) -> Settings:
    """Re-validate the group settings with command-line overrides applied."""
    base: Settings = ctx.obj["settings"]
    values = base.model_dump()
    values.update({key: value for key, value in overrides.items() if value is not None})
    return load_settings(**values)


@click.group()
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--json-logs/--plain-logs", default=None, help="Emit logs as JSON lines")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], json_logs: Optional[bool]) -> None:
    """Surface pruner.

    Trim an OpenAPI description down to the paths and definitions a
    generated client should expose.
    """
    ctx.ensure_object(dict)
    try:
        settings = load_settings(log_level=log_level, json_logs=json_logs)
    except SurfacePrunerError as e:
        _fail(e)

    setup_logging(log_level=settings.log_level, json_format=settings.json_logs)
    ctx.obj["settings"] = settings


@cli.command()
@click.argument("spec_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--exclude-prefix",
    "exclude_prefixes",
    multiple=True,
    help="Remove paths starting with this prefix (repeatable)",
)
@click.option(
    "--strip-param",
    "path_parameters",
    multiple=True,
    help="Strip this path parameter from every operation (repeatable)",
)
@click.option("--no-exclude", is_flag=True, help="Keep every path, ignoring configured prefixes")
@click.option("--no-strip", is_flag=True, help="Keep every parameter, ignoring configured names")
@click.option("--output-format", type=click.Choice(["json", "yaml"]), default=None)
@click.option("--summary-only", is_flag=True, help="Print only the prune summary")
@click.pass_context
def prune(
    ctx: click.Context,
    spec_file: str,
    exclude_prefixes: Tuple[str, ...],
    path_parameters: Tuple[str, ...],
    no_exclude: bool,
    no_strip: bool,
    output_format: Optional[str],
    summary_only: bool,
) -> None:
    """Prune SPEC_FILE and print the result to stdout."""
    if no_exclude and exclude_prefixes:
        raise click.UsageError("--exclude-prefix cannot be combined with --no-exclude")
    if no_strip and path_parameters:
        raise click.UsageError("--strip-param cannot be combined with --no-strip")

    try:
        settings = _command_settings(
            ctx,
            exclude_prefixes=[] if no_exclude else list(exclude_prefixes) or None,
            path_parameters=[] if no_strip else list(path_parameters) or None,
            output_format=output_format,
        )
        document = load_document_file(spec_file)
        report = SurfacePruner.from_settings(settings).prune(document)
    except SurfacePrunerError as e:
        logger.error(f"Pruning {spec_file} failed: {e}")
        _fail(e)

    click.echo(report.get_summary_text(), err=True)

    if not summary_only:
        click.echo(render_document(document, settings.output_format))


@cli.command()
@click.argument("spec_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def inspect(ctx: click.Context, spec_file: str) -> None:
    """Show reference counts per definition and operations per client."""
    try:
        document = load_document_file(spec_file)
        counts = count_references(document)
    except SurfacePrunerError as e:
        _fail(e)

    click.echo(f"\n{document.title} ({document.version or 'unversioned'})")
    click.echo(f"\n{'DEFINITION':<48} {'REFS':>6}")
    click.echo("-" * 55)
    for name in sorted(counts):
        count = counts[name]
        marker = "" if count else "  unreachable"
        click.echo(f"{name:<48} {count:>6}{marker}")

    click.echo(f"\n{'CLIENT':<48} {'OPS':>6}")
    click.echo("-" * 55)
    for client, operations in sorted(group_by_client(document).items()):
        click.echo(f"{client:<48} {len(operations):>6}")


def main() -> None:
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
