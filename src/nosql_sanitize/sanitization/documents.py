"""Sanitization of JSON documents on disk."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from nosql_sanitize.sanitization.options import ResolvedConfiguration, resolve_options
from nosql_sanitize.sanitization.values import sanitize_value

_LOGGER = logging.getLogger(__name__)


def default_output_path(input_path: str | Path) -> str:
    """Derive the output filename for a sanitized document.

    Example:
        >>> default_output_path("payload.json")
        'payload.sanitized.json'
        >>> default_output_path("payload.txt")
        'payload.txt.sanitized.json'
    """
    input_str = str(input_path)
    if input_str.endswith(".json"):
        return input_str[:-5] + ".sanitized.json"
    return input_str + ".sanitized.json"


def sanitize_json_file(
    input_path: str | Path,
    output_path: str | Path | None = None,
    *,
    config: ResolvedConfiguration | None = None,
    indent: int | None = 2,
) -> str:
    """Sanitize a JSON document and write it to a new file.

    Args:
        input_path: Path to the input JSON file
        output_path: Path to the output file (default: input with .sanitized.json suffix)
        config: Resolved configuration (defaults when None)
        indent: JSON indentation for the output (None for compact)

    Returns:
        Path to the sanitized file

    Raises:
        FileNotFoundError: If input file doesn't exist
        json.JSONDecodeError: If file is not valid JSON

    Example:
        >>> # sanitize_json_file("payload.json")  # Creates payload.sanitized.json
        >>> # sanitize_json_file("payload.json", "clean.json")
    """
    if config is None:
        config = resolve_options()

    output_str = str(output_path) if output_path is not None else default_output_path(input_path)

    with open(input_path, encoding="utf-8") as f:
        data = json.load(f)

    sanitized = sanitize_value(data, config)

    with open(output_str, "w", encoding="utf-8") as f:
        json.dump(sanitized, f, indent=indent, ensure_ascii=False)

    _LOGGER.info("Sanitized document written to: %s", output_str)
    return output_str
