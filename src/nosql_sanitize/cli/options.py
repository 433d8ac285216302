"""Shared option handling for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer

from nosql_sanitize.patterns import PatternLoadError, load_marker_patterns, load_options_file
from nosql_sanitize.sanitization import ConfigurationError, ResolvedConfiguration, resolve_options


def build_config(
    options_file: Path | None,
    patterns: Path | None,
    overrides: dict[str, Any],
) -> ResolvedConfiguration:
    """Resolve options from an options file, a patterns file and flags.

    Flags override the options file; a patterns file replaces its patterns.

    Raises:
        typer.Exit: With code 1 if anything fails to load or validate
    """
    try:
        options: Any = load_options_file(options_file) if options_file else {}
    except PatternLoadError as e:
        typer.echo(f"Error: Failed to load options: {e}", err=True)
        raise typer.Exit(1) from None
    if not isinstance(options, dict):
        typer.echo(f"Error: Options file must contain a JSON object: {options_file}", err=True)
        raise typer.Exit(1)
    options = {**options, **overrides}

    try:
        if patterns:
            options["patterns"] = list(load_marker_patterns(patterns))
        return resolve_options(options)
    except PatternLoadError as e:
        typer.echo(f"Error: Failed to load patterns: {e}", err=True)
        raise typer.Exit(1) from None
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
