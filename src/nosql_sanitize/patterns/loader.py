"""Pattern loading utilities.

This module loads marker pattern definitions and option files from JSON.
A pattern definition is either a bare regex string or an object with a
``regex`` key and an optional list of ``flags`` (``re`` flag names).
"""

from __future__ import annotations

import json
import logging
import re
from collections import OrderedDict
from pathlib import Path
from typing import Any

_LOGGER = logging.getLogger(__name__)

# Maximum number of cache entries to prevent unbounded growth
_MAX_CACHE_SIZE = 20

# LRU cache for loaded patterns (OrderedDict for LRU behavior)
_pattern_cache: OrderedDict[str, Any] = OrderedDict()


def _cache_get(key: str) -> Any | None:
    """Get value from cache, moving it to end (most recently used)."""
    if key in _pattern_cache:
        _pattern_cache.move_to_end(key)
        return _pattern_cache[key]
    return None


def _cache_set(key: str, value: Any) -> None:
    """Set value in cache with LRU eviction."""
    if key in _pattern_cache:
        _pattern_cache.move_to_end(key)
    _pattern_cache[key] = value
    while len(_pattern_cache) > _MAX_CACHE_SIZE:
        evicted_key = next(iter(_pattern_cache))
        _pattern_cache.pop(evicted_key)
        _LOGGER.debug("Pattern cache evicted: %s", evicted_key)


class PatternLoadError(Exception):
    """Raised when pattern or option files cannot be loaded."""


def _get_builtin_path(filename: str) -> Path:
    """Get path to a built-in pattern file.

    Args:
        filename: Name of the pattern file (e.g., "markers.json")

    Returns:
        Path to the built-in pattern file
    """
    return Path(__file__).parent / filename


def _normalize_path(path: Path | str | None) -> str | None:
    if path is None:
        return None
    return str(Path(path).resolve())


def load_json_file(path: Path | str) -> Any:
    """Load a JSON file with error handling.

    Args:
        path: Path to the JSON file

    Returns:
        Parsed JSON data

    Raises:
        PatternLoadError: If file cannot be read or parsed
    """
    path_str = str(path)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise PatternLoadError(f"JSON file not found: {path_str}") from e
    except PermissionError as e:
        raise PatternLoadError(f"Permission denied reading JSON file: {path_str}") from e
    except json.JSONDecodeError as e:
        raise PatternLoadError(f"Invalid JSON in file {path_str}: {e}") from e


def compile_pattern(pattern_def: str | dict[str, Any]) -> re.Pattern[str]:
    """Compile a pattern definition into a regex.

    Args:
        pattern_def: Regex string, or dict with 'regex' and optional 'flags'

    Returns:
        Compiled regex pattern

    Raises:
        PatternLoadError: If the definition is malformed or the regex is invalid
    """
    if isinstance(pattern_def, str):
        pattern_def = {"regex": pattern_def}
    if not isinstance(pattern_def, dict) or not isinstance(pattern_def.get("regex"), str):
        raise PatternLoadError(f"Invalid pattern definition: {pattern_def!r}")

    regex = pattern_def["regex"]
    flags = 0

    for flag_name in pattern_def.get("flags", []):
        flag = getattr(re, flag_name, None)
        if flag is not None and isinstance(flag, re.RegexFlag):
            flags |= flag
        else:
            _LOGGER.warning("Unknown regex flag: %s", flag_name)

    try:
        return re.compile(regex, flags)
    except re.error as e:
        raise PatternLoadError(f"Invalid regex {regex!r}: {e}") from e


def load_marker_patterns(custom_path: Path | str | None = None) -> tuple[re.Pattern[str], ...]:
    """Load injection marker patterns.

    A custom file replaces the built-in list entirely rather than extending it.

    Args:
        custom_path: Optional path to a JSON file with a 'patterns' list

    Returns:
        Compiled marker patterns, in file order

    Raises:
        PatternLoadError: If the file cannot be loaded or is malformed
    """
    normalized = _normalize_path(custom_path)
    cache_key = f"markers:{normalized}"
    cached = _cache_get(cache_key)
    if cached is not None:
        result: tuple[re.Pattern[str], ...] = cached
        return result

    path = custom_path if custom_path else _get_builtin_path("markers.json")
    data = load_json_file(path)
    if not isinstance(data, dict) or not isinstance(data.get("patterns"), list):
        raise PatternLoadError(f"Pattern file must contain a 'patterns' list: {path}")

    compiled = tuple(compile_pattern(p) for p in data["patterns"])
    _cache_set(cache_key, compiled)
    return compiled


def load_options_file(path: Path | str) -> Any:
    """Load sanitizer options from a JSON file.

    Pattern-valued entries are compiled: every item of 'patterns', and every
    object item of 'skip_routes' (plain strings stay exact routes).

    Args:
        path: Path to the JSON options file

    Returns:
        Options ready for resolve_options (validation happens there)

    Raises:
        PatternLoadError: If the file cannot be loaded or a pattern is invalid
    """
    data = load_json_file(path)
    if not isinstance(data, dict):
        return data

    options = dict(data)
    if isinstance(options.get("patterns"), list):
        options["patterns"] = [compile_pattern(p) for p in options["patterns"]]
    if isinstance(options.get("skip_routes"), list):
        options["skip_routes"] = [
            compile_pattern(route) if isinstance(route, dict) else route for route in options["skip_routes"]
        ]
    return options


def clear_pattern_cache() -> None:
    """Clear the pattern cache.

    Useful for testing or when patterns have been modified.
    """
    _pattern_cache.clear()
