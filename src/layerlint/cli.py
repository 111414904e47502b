"""layerlint CLI entry point."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from layerlint import __version__
from layerlint.config import ProjectConfig, find_config, load_config


def _load_project_config(project_root: Path, config_path: Path | None) -> ProjectConfig:
    """Load configuration or exit with code 2 on schema errors."""
    path = config_path or find_config(project_root)
    if path is None:
        return ProjectConfig()
    try:
        return load_config(path)
    except ValueError as exc:
        click.echo(f"Error: Invalid configuration: {exc}", err=True)
        sys.exit(2)


_CONFIG_OPTION = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: .layerlint.yml in the project root).",
)


@click.group()
@click.version_option(version=__version__, prog_name="layerlint")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """layerlint - enforce app / features / shared layer boundaries."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich on a TTY, porcelain otherwise).",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Exit 1 if error-level violations are found.",
)
@click.option("--jobs", "-j", default=1, type=click.IntRange(min=1), help="Worker threads.")
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@_CONFIG_OPTION
def lint(
    *,
    fmt: str | None,
    strict: bool,
    jobs: int,
    project: Path | None,
    config_path: Path | None,
) -> None:
    """Check every import under the source root against the layer rules.

    Exit codes: 0 = clean or violations without --strict,
    1 = error-level violations with --strict, 2 = configuration error.
    """
    from layerlint.linter import LintError
    from layerlint.linter import format_json as _format_json
    from layerlint.linter import format_porcelain as _format_porcelain
    from layerlint.linter import format_rich as _format_rich
    from layerlint.linter import lint as run_lint

    project_root = project or Path.cwd()

    # Resolve output format: explicit flag > TTY detection.
    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    try:
        result = run_lint(project_root, config_path=config_path, jobs=jobs)
    except LintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    formatters = {
        "rich": _format_rich,
        "json": _format_json,
        "porcelain": _format_porcelain,
    }
    output = formatters[fmt](result)
    if output:
        click.echo(output)

    if strict and result.error_count:
        sys.exit(1)


@main.command()
@click.argument("paths", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="JSON output.")
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@_CONFIG_OPTION
def classify(
    paths: tuple[str, ...],
    *,
    as_json: bool,
    project: Path | None,
    config_path: Path | None,
) -> None:
    """Show the layer, feature and index status of PATHS."""
    from layerlint.classifier import classify as classify_path

    config = _load_project_config(project or Path.cwd(), config_path)
    results = [classify_path(p, config) for p in paths]

    if as_json:
        payload = [
            {
                "path": c.raw_path,
                "normalized_path": c.normalized_path,
                "layer": c.layer.value,
                "feature": c.feature_name,
                "is_index_entry": c.is_index_entry,
            }
            for c in results
        ]
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    from rich.console import Console
    from rich.table import Table

    table = Table(title="Classification")
    table.add_column("Path")
    table.add_column("Layer", style="cyan")
    table.add_column("Feature")
    table.add_column("Index", justify="center")
    for c in results:
        table.add_row(
            c.normalized_path or "[dim](empty)[/]",
            c.layer.value,
            c.feature_name or "",
            "✓" if c.is_index_entry else "",
        )
    Console().print(table)


@main.command()
@click.argument("specifier")
@click.option("--from", "from_file", default=None, help="Importing file (for relative specifiers).")
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@_CONFIG_OPTION
def resolve(
    specifier: str,
    *,
    from_file: str | None,
    project: Path | None,
    config_path: Path | None,
) -> None:
    """Print the project path SPECIFIER resolves to, or 'external'."""
    from layerlint.resolver import resolve_specifier

    config = _load_project_config(project or Path.cwd(), config_path)
    resolved = resolve_specifier(specifier, from_file, config)
    click.echo(resolved if resolved is not None else "external")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="JSON output.")
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@_CONFIG_OPTION
def rules(*, as_json: bool, project: Path | None, config_path: Path | None) -> None:
    """Print the active dependency-direction rule table."""
    from layerlint.rule_engine import rule_to_dict

    config = _load_project_config(project or Path.cwd(), config_path)
    rows = []
    for rule in config.rule_table:
        row = rule_to_dict(rule)
        row["severity"] = config.severity_for(rule)
        rows.append(row)

    if as_json:
        click.echo(json.dumps(rows, ensure_ascii=False, indent=2))
        return

    from rich.console import Console
    from rich.table import Table

    table = Table(title="Boundary rules")
    for column in ("Rule", "From", "To", "Condition", "Verdict", "Severity"):
        table.add_column(column)
    for row in rows:
        condition = ", ".join(
            f"{key}={row[key]}"
            for key in ("feature", "target_index", "from_paths", "to_paths")
            if row[key] is not None
        )
        table.add_row(
            str(row["rule_id"]),
            ", ".join(row["from"]),  # type: ignore[arg-type]
            ", ".join(row["to"]),  # type: ignore[arg-type]
            condition or "any",
            str(row["verdict"]),
            str(row["severity"]),
        )
    Console().print(table)
