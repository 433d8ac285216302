"""Marker validation utilities.

This module scans data for injection markers without changing it.
Useful for CI checks over fixtures or exported documents.

Exports:
    - find_markers: Scan a value for markers
    - validate_json_file: Scan a JSON file for markers
    - MarkerFinding: Dataclass for findings
"""

from __future__ import annotations

from nosql_sanitize.validation.markers import (
    ROOT_LOCATION,
    MarkerFinding,
    find_markers,
    truncate,
    validate_json_file,
)

__all__ = [
    "ROOT_LOCATION",
    "MarkerFinding",
    "find_markers",
    "truncate",
    "validate_json_file",
]
