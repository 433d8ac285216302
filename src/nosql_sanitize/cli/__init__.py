"""CLI for nosql-sanitize.

This module provides a Typer-based CLI for sanitizing JSON documents and
checking them for injection markers.

Requires the 'cli' optional dependency: pip install nosql-sanitize[cli]
"""

from __future__ import annotations
