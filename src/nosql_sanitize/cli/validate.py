"""Validate command for nosql-sanitize CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer

from nosql_sanitize.cli.options import build_config


def validate(
    input_file: Annotated[
        Path | None,
        typer.Argument(help="JSON file to validate"),
    ] = None,
    directory: Annotated[
        Path | None,
        typer.Option("--dir", "-d", help="Directory to scan for JSON files"),
    ] = None,
    recursive: Annotated[
        bool,
        typer.Option("--recursive", "-r", help="Scan directory recursively"),
    ] = False,
    options_file: Annotated[
        Path | None,
        typer.Option("--options", "-O", help="Sanitizer options JSON file"),
    ] = None,
    patterns: Annotated[
        Path | None,
        typer.Option("--patterns", "-p", help="Marker patterns JSON file (replaces the defaults)"),
    ] = None,
) -> None:
    """Check JSON files for injection markers.

    Reports every key and string value that sanitization would change.
    Exits with code 1 if any marker is found.

    Args:
        input_file: Single JSON file to validate
        directory: Directory containing JSON files to scan
        recursive: Scan directory recursively
        options_file: Sanitizer options JSON file
        patterns: Marker patterns JSON file

    Example:
        nosql-sanitize validate payload.json
        nosql-sanitize validate --dir ./fixtures --recursive
    """
    from nosql_sanitize.validation import validate_json_file

    json_files: list[Path] = []

    if directory:
        if not directory.exists():
            typer.echo(f"Error: Directory not found: {directory}", err=True)
            raise typer.Exit(1)
        json_files.extend(sorted(directory.rglob("*.json") if recursive else directory.glob("*.json")))
    elif input_file:
        if not input_file.exists():
            typer.echo(f"Error: File not found: {input_file}", err=True)
            raise typer.Exit(1)
        json_files.append(input_file)
    else:
        typer.echo("Error: Provide either a JSON file or --dir option", err=True)
        raise typer.Exit(1)

    if not json_files:
        typer.echo("No JSON files found")
        raise typer.Exit(0)

    config = build_config(options_file, patterns, {})

    total_findings = 0
    total_errors = 0

    for file_path in json_files:
        try:
            findings = validate_json_file(file_path, config)
        except json.JSONDecodeError as e:
            typer.echo(f"[ERROR] {file_path}: Invalid JSON: {e.msg} at line {e.lineno}", err=True)
            total_errors += 1
            continue

        if findings:
            typer.echo(f"\n{file_path}:")
            for finding in findings:
                markers = ", ".join(repr(m) for m in finding.markers)
                typer.echo(f"  [MARKER] [{finding.location}]")
                typer.echo(f"     {finding.kind}: {finding.value}")
                typer.echo(f"     Markers: {markers}")
            total_findings += len(findings)
        else:
            typer.echo(f"[OK] {file_path}: Clean")

    typer.echo(f"\nSummary: {total_findings} markers, {total_errors} unreadable files")

    if total_findings or total_errors:
        raise typer.Exit(1)
