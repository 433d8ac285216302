"""Pattern loading utilities for sanitization.

This module provides:
- Loading of injection marker patterns from JSON
- Loading of sanitizer option files for the CLI
- Compilation of JSON pattern definitions
"""

from __future__ import annotations

from nosql_sanitize.patterns.loader import (
    PatternLoadError,
    clear_pattern_cache,
    compile_pattern,
    load_json_file,
    load_marker_patterns,
    load_options_file,
)

__all__ = [
    "load_marker_patterns",
    "load_options_file",
    "load_json_file",
    "clear_pattern_cache",
    "compile_pattern",
    "PatternLoadError",
]
