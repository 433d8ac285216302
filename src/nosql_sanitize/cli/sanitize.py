"""Sanitize command for nosql-sanitize CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

import typer

from nosql_sanitize.cli.options import build_config


def sanitize(
    input_file: Annotated[
        Path,
        typer.Argument(help="JSON file to sanitize"),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output filename (default: input.sanitized.json)"),
    ] = None,
    options_file: Annotated[
        Path | None,
        typer.Option("--options", "-O", help="Sanitizer options JSON file"),
    ] = None,
    patterns: Annotated[
        Path | None,
        typer.Option("--patterns", "-p", help="Marker patterns JSON file (replaces the defaults)"),
    ] = None,
    replace_with: Annotated[
        str | None,
        typer.Option("--replace-with", "-r", help="Replacement for each marker (default: remove)"),
    ] = None,
    remove_matches: Annotated[
        bool,
        typer.Option("--remove-matches", help="Drop keys and values that contain markers"),
    ] = False,
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", help="Maximum nesting depth to descend into"),
    ] = None,
    indent: Annotated[
        int,
        typer.Option("--indent", help="Output indentation (0 = compact)"),
    ] = 2,
) -> None:
    """Remove injection markers from a JSON document.

    Strips query operator prefixes and control characters from keys and
    string values. Email addresses are left untouched.

    Args:
        input_file: JSON file to sanitize
        output: Output filename (default: input.sanitized.json)
        options_file: Sanitizer options JSON file
        patterns: Marker patterns JSON file
        replace_with: Replacement for each marker
        remove_matches: Drop keys and values that contain markers
        max_depth: Maximum nesting depth to descend into
        indent: Output indentation (0 = compact)

    Example:
        nosql-sanitize sanitize payload.json
        nosql-sanitize sanitize payload.json --output clean.json --replace-with _
        nosql-sanitize sanitize payload.json --options sanitize.json
    """
    from nosql_sanitize.sanitization import sanitize_json_file

    if not input_file.exists():
        typer.echo(f"Error: File not found: {input_file}", err=True)
        raise typer.Exit(1)

    if indent < 0:
        typer.echo(f"Error: indent must be >= 0, got {indent}", err=True)
        raise typer.Exit(1)

    overrides: dict[str, Any] = {}
    if replace_with is not None:
        overrides["replace_with"] = replace_with
    if remove_matches:
        overrides["remove_matches"] = True
    if max_depth is not None:
        overrides["max_depth"] = max_depth

    config = build_config(options_file, patterns, overrides)

    typer.echo(f"Sanitizing {input_file}...")

    try:
        result_path = sanitize_json_file(
            input_file,
            str(output) if output else None,
            config=config,
            indent=indent or None,
        )
    except json.JSONDecodeError as e:
        typer.echo(f"Error: Invalid JSON: {e.msg} at line {e.lineno}", err=True)
        raise typer.Exit(1) from None
    except PermissionError as e:
        typer.echo(f"Error: Permission denied: {e.filename}", err=True)
        raise typer.Exit(1) from None
    except OSError as e:
        typer.echo(f"Error: I/O error: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(f"  Sanitized: {result_path}")
