"""Option resolution and validation.

User options are validated against a declarative schema, merged over the
defaults and turned into an immutable ResolvedConfiguration that every
sanitize call reads. Changing options means resolving again.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Hashable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable

from nosql_sanitize.patterns import load_marker_patterns
from nosql_sanitize.sanitization.debug import LOG_LEVELS, DebugOptions
from nosql_sanitize.sanitization.errors import ConfigurationError
from nosql_sanitize.sanitization.routes import SkipRoutes, build_skip_routes

_LOGGER = logging.getLogger(__name__)

# Default marker patterns: query operator prefix and control characters
PATTERNS: tuple[re.Pattern[str], ...] = load_marker_patterns()


class SanitizeMode(str, Enum):
    """When request sanitization runs."""

    AUTO = "auto"
    MANUAL = "manual"


DEFAULT_OPTIONS: Mapping[str, Any] = MappingProxyType(
    {
        "replace_with": "",
        "remove_matches": False,
        "sanitize_objects": ("body", "query"),
        "content_types": ("application/json", "application/x-www-form-urlencoded"),
        "mode": SanitizeMode.AUTO,
        "skip_routes": (),
        "custom_sanitizer": None,
        "on_sanitize": None,
        "recursive": True,
        "remove_empty": False,
        "max_depth": None,
        "patterns": PATTERNS,
        "allowed_keys": (),
        "denied_keys": (),
        "string_options": MappingProxyType({"trim": False, "lowercase": False, "max_length": None}),
        "array_options": MappingProxyType({"filter_null": False, "distinct": False}),
        "debug": MappingProxyType(
            {
                "enabled": False,
                "level": "info",
                "log_pattern_matches": False,
                "log_sanitized_values": False,
                "log_skipped_routes": False,
            }
        ),
    }
)

_GROUPS = ("string_options", "array_options", "debug")


# =============================================================================
# Validation schema
# =============================================================================


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_collection(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def _is_string_sequence(value: Any) -> bool:
    return _is_sequence(value) and all(isinstance(item, str) for item in value)


def _is_pattern_sequence(value: Any) -> bool:
    return _is_sequence(value) and all(
        isinstance(item, str) or (isinstance(item, re.Pattern) and isinstance(item.pattern, str)) for item in value
    )


def _optional(check: Callable[[Any], bool]) -> Callable[[Any], bool]:
    return lambda value: value is None or check(value)


def _is_key_collection(value: Any) -> bool:
    return _is_collection(value) and all(isinstance(key, Hashable) for key in value)


def _is_content_types(value: Any) -> bool:
    return _is_collection(value) and all(isinstance(item, str) for item in value)


def _is_mode(value: Any) -> bool:
    return isinstance(value, str) and value in tuple(mode.value for mode in SanitizeMode)


def _is_max_depth(value: Any) -> bool:
    return _is_number(value) and value > 0


def _is_max_length(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


# Checked in order; the first failing entry names the error
OPTION_SCHEMA: Mapping[str, Callable[[Any], bool]] = MappingProxyType(
    {
        "replace_with": lambda v: isinstance(v, str),
        "remove_matches": _is_bool,
        "sanitize_objects": _is_string_sequence,
        "mode": _is_mode,
        "skip_routes": _is_sequence,
        "content_types": _optional(_is_content_types),
        "custom_sanitizer": _optional(callable),
        "on_sanitize": _optional(callable),
        "recursive": _is_bool,
        "remove_empty": _is_bool,
        "max_depth": _optional(_is_max_depth),
        "patterns": _is_pattern_sequence,
        "allowed_keys": _optional(_is_key_collection),
        "denied_keys": _optional(_is_key_collection),
        "string_options": lambda v: isinstance(v, dict),
        "array_options": lambda v: isinstance(v, dict),
        "debug": lambda v: isinstance(v, dict),
    }
)

GROUP_SCHEMAS: Mapping[str, Mapping[str, Callable[[Any], bool]]] = MappingProxyType(
    {
        "string_options": MappingProxyType(
            {
                "trim": _is_bool,
                "lowercase": _is_bool,
                "max_length": _optional(_is_max_length),
            }
        ),
        "array_options": MappingProxyType(
            {
                "filter_null": _is_bool,
                "distinct": _is_bool,
            }
        ),
        "debug": MappingProxyType(
            {
                "enabled": _is_bool,
                "level": lambda v: isinstance(v, str) and v in LOG_LEVELS,
                "log_pattern_matches": _is_bool,
                "log_sanitized_values": _is_bool,
                "log_skipped_routes": _is_bool,
            }
        ),
    }
)


def _invalid(key: str) -> ConfigurationError:
    return ConfigurationError(f'Invalid configuration: "{key}"', key)


def validate_options(options: Mapping[str, Any]) -> None:
    """Validate user options against the schema.

    Nested groups are checked on their own before the top level, so a bad
    group is reported instead of silently replacing the defaults.

    Args:
        options: User-supplied options

    Raises:
        ConfigurationError: On the first violation found
    """
    for group in _GROUPS:
        if group not in options:
            continue
        value = options[group]
        if not isinstance(value, dict):
            raise _invalid(group)
        for key, check in GROUP_SCHEMAS[group].items():
            if key in value and not check(value[key]):
                raise _invalid(f"{group}.{key}")
        for key in value:
            if key not in GROUP_SCHEMAS[group]:
                _LOGGER.warning("Ignoring unknown option: %s.%s", group, key)

    for key, check in OPTION_SCHEMA.items():
        if key in options and not check(options[key]):
            raise _invalid(key)

    for key in options:
        if key not in OPTION_SCHEMA:
            _LOGGER.warning("Ignoring unknown option: %s", key)


# =============================================================================
# Resolved configuration
# =============================================================================


@dataclass(frozen=True)
class StringOptions:
    """Transformations applied to sanitized strings."""

    trim: bool = False
    lowercase: bool = False
    max_length: int | None = None


@dataclass(frozen=True)
class ArrayOptions:
    """Transformations applied to sanitized arrays."""

    filter_null: bool = False
    distinct: bool = False


@dataclass(frozen=True)
class ResolvedConfiguration:
    """Validated, immutable sanitizer configuration.

    Produced by resolve_options and shared read-only by every sanitize call.

    Attributes:
        replace_with: Replacement text for every marker match
        remove_matches: Drop keys and string values that contain markers
        sanitize_objects: Request fields to sanitize, in order
        content_types: Lower-cased MIME types allowed for the body, or None to
            sanitize every body
        mode: Whether requests are sanitized automatically or on demand
        skip_routes: Routes exempted from sanitization
        custom_sanitizer: Replaces the built-in sanitizer for request fields
        on_sanitize: Called with a SanitizeEvent when a string value changes
        recursive: Descend into nested arrays and mappings
        remove_empty: Drop pairs whose sanitized key or value is falsy
        max_depth: Maximum container depth to descend into (None = unlimited)
        patterns: Active marker patterns
        combined_pattern: Single matcher unioning all patterns
        allowed_keys: If non-empty, only these keys are kept
        denied_keys: Keys always dropped unless their value is an email
        string_options: String transformations
        array_options: Array transformations
        debug: Debug logging options
    """

    replace_with: str
    remove_matches: bool
    sanitize_objects: tuple[str, ...]
    content_types: frozenset[str] | None
    mode: SanitizeMode
    skip_routes: SkipRoutes
    custom_sanitizer: Callable[[Any, ResolvedConfiguration], Any] | None
    on_sanitize: Callable[[Any], None] | None
    recursive: bool
    remove_empty: bool
    max_depth: int | float | None
    patterns: tuple[re.Pattern[str], ...]
    combined_pattern: re.Pattern[str]
    allowed_keys: frozenset[Any]
    denied_keys: frozenset[Any]
    string_options: StringOptions
    array_options: ArrayOptions
    debug: DebugOptions


# Flags that can be scoped to a single alternative of the combined pattern
_SCOPED_FLAGS = (
    (re.IGNORECASE, "i"),
    (re.MULTILINE, "m"),
    (re.DOTALL, "s"),
    (re.VERBOSE, "x"),
    (re.ASCII, "a"),
)

# Matches nothing; used when the pattern list is empty
_NEVER_MATCHES = re.compile(r"(?!)")

# Leading global flag group such as "(?i)"; its flags are already in Pattern.flags
_GLOBAL_FLAGS = re.compile(r"^\(\?[aiLmsux]+\)")


def combine_patterns(patterns: tuple[re.Pattern[str], ...]) -> re.Pattern[str]:
    """Build a single matcher from several patterns.

    Each pattern becomes a non-capturing alternative that keeps its own
    case, multiline, dotall, verbose and ASCII flags.

    Args:
        patterns: Compiled patterns

    Returns:
        Combined pattern

    Example:
        >>> combine_patterns((re.compile("abc"), re.compile("def", re.I))).pattern
        '(?:abc)|(?i:def)'
    """
    if not patterns:
        return _NEVER_MATCHES

    parts = []
    for pattern in patterns:
        inline = "".join(letter for flag, letter in _SCOPED_FLAGS if pattern.flags & flag)
        source = _GLOBAL_FLAGS.sub("", pattern.pattern, count=1)
        if pattern.flags & re.VERBOSE:
            # a trailing "# comment" would otherwise swallow the closing paren
            source += "\n"
        parts.append(f"(?{inline}:{source})")
    return re.compile("|".join(parts))


def _compile_patterns(raw: Any) -> tuple[re.Pattern[str], ...]:
    compiled = []
    for item in raw:
        if isinstance(item, re.Pattern):
            compiled.append(item)
            continue
        try:
            compiled.append(re.compile(item))
        except re.error as e:
            raise _invalid("patterns") from e
    return tuple(compiled)


def resolve_options(options: Mapping[str, Any] | None = None) -> ResolvedConfiguration:
    """Validate user options and merge them over the defaults.

    Top-level options replace the defaults; the nested string_options,
    array_options and debug groups merge field by field. A patterns list
    replaces the default patterns rather than extending them.

    Args:
        options: User options (None for all defaults)

    Returns:
        Immutable resolved configuration

    Raises:
        ConfigurationError: If options is not a dict or any option is invalid

    Example:
        >>> config = resolve_options({"replace_with": "_", "string_options": {"trim": True}})
        >>> config.replace_with, config.string_options.trim, config.string_options.lowercase
        ('_', True, False)
    """
    if options is None:
        options = {}
    if not isinstance(options, dict):
        raise ConfigurationError("Options must be a dict")

    validate_options(options)

    merged: dict[str, Any] = {**DEFAULT_OPTIONS, **options}
    for group in _GROUPS:
        overrides = options.get(group, {})
        merged[group] = {key: overrides.get(key, default) for key, default in DEFAULT_OPTIONS[group].items()}

    patterns = _compile_patterns(merged["patterns"])
    try:
        combined = combine_patterns(patterns)
    except re.error as e:
        raise _invalid("patterns") from e

    content_types = merged["content_types"]

    return ResolvedConfiguration(
        replace_with=merged["replace_with"],
        remove_matches=merged["remove_matches"],
        sanitize_objects=tuple(merged["sanitize_objects"]),
        content_types=None if content_types is None else frozenset(ct.lower() for ct in content_types),
        mode=SanitizeMode(merged["mode"]),
        skip_routes=build_skip_routes(merged["skip_routes"]),
        custom_sanitizer=merged["custom_sanitizer"],
        on_sanitize=merged["on_sanitize"],
        recursive=merged["recursive"],
        remove_empty=merged["remove_empty"],
        max_depth=merged["max_depth"],
        patterns=patterns,
        combined_pattern=combined,
        allowed_keys=frozenset(merged["allowed_keys"] or ()),
        denied_keys=frozenset(merged["denied_keys"] or ()),
        string_options=StringOptions(**merged["string_options"]),
        array_options=ArrayOptions(**merged["array_options"]),
        debug=DebugOptions(**merged["debug"]),
    )
