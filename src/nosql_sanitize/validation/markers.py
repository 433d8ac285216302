"""Scan structured data for injection markers without modifying it.

Reports every mapping key and string value that the sanitizer would
change, using the same marker patterns, email exemption and depth limit.
Useful for auditing stored documents or fixtures.

This module has ZERO external dependencies (stdlib only).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from nosql_sanitize.sanitization import (
    ResolvedConfiguration,
    ValueKind,
    is_email,
    resolve_options,
    value_kind,
)

ROOT_LOCATION = "$"


@dataclass
class MarkerFinding:
    """An injection marker found in the data.

    Attributes:
        location: Dotted path to the offending item ('$' is the root)
        kind: 'key' or 'value'
        value: The offending key or value (truncated for display)
        markers: The distinct marker substrings found
    """

    location: str
    kind: str
    value: str
    markers: list[str]


def truncate(value: str, max_len: int = 40) -> str:
    """Truncate a value for display.

    Args:
        value: Value to truncate
        max_len: Maximum length

    Returns:
        Truncated value
    """
    if len(value) <= max_len:
        return value
    return value[: max_len - 3] + "..."


def _matches(text: str, config: ResolvedConfiguration) -> list[str]:
    if is_email(text):
        return []
    found: list[str] = []
    for match in config.combined_pattern.finditer(text):
        if match.group(0) not in found:
            found.append(match.group(0))
    return found


def _scan(
    data: Any,
    config: ResolvedConfiguration,
    location: str,
    depth: int,
    findings: list[MarkerFinding],
) -> None:
    kind = value_kind(data)

    if kind is ValueKind.STRING:
        markers = _matches(data, config)
        if markers:
            findings.append(MarkerFinding(location, "value", truncate(data), markers))
        return

    if kind not in (ValueKind.ARRAY, ValueKind.MAPPING):
        return
    if config.max_depth is not None and depth >= config.max_depth:
        return

    if kind is ValueKind.ARRAY:
        for index, item in enumerate(data):
            _scan(item, config, f"{location}[{index}]", depth + 1, findings)
        return

    for key, value in data.items():
        child = f"{location}.{key}"
        if isinstance(key, str):
            markers = _matches(key, config)
            if markers:
                findings.append(MarkerFinding(child, "key", truncate(key), markers))
        _scan(value, config, child, depth + 1, findings)


def find_markers(data: Any, config: ResolvedConfiguration | None = None) -> list[MarkerFinding]:
    """Find injection markers in a value.

    Args:
        data: Value to scan
        config: Resolved configuration (defaults when None)

    Returns:
        Findings in traversal order (empty if clean)

    Example:
        >>> [(f.location, f.kind) for f in find_markers({"user": {"$ne": "x"}})]
        [('$.user.$ne', 'key')]
    """
    if config is None:
        config = resolve_options()
    findings: list[MarkerFinding] = []
    _scan(data, config, ROOT_LOCATION, 0, findings)
    return findings


def validate_json_file(
    path: str | Path,
    config: ResolvedConfiguration | None = None,
) -> list[MarkerFinding]:
    """Scan a JSON file for injection markers.

    Args:
        path: Path to the JSON file
        config: Resolved configuration (defaults when None)

    Returns:
        Findings (empty if clean)

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file is not valid JSON
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return find_markers(data, config)
