"""Recursive value sanitization.

Values are dispatched by kind: strings have every marker match replaced,
arrays and mappings are rebuilt with sanitized contents, and everything else
passes through untouched. Container recursion is bounded by ``max_depth``;
strings are sanitized at any depth.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from nosql_sanitize.sanitization.debug import log
from nosql_sanitize.sanitization.errors import TypeMismatchError

if TYPE_CHECKING:
    from nosql_sanitize.sanitization.options import ResolvedConfiguration

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}", re.IGNORECASE)


class ValueKind(Enum):
    """Kinds of values the sanitizer distinguishes."""

    PRIMITIVE = "primitive"
    STRING = "string"
    ARRAY = "array"
    MAPPING = "mapping"
    OTHER = "other"


@dataclass(frozen=True)
class SanitizeEvent:
    """Reported to ``on_sanitize`` when a string value changes.

    Attributes:
        key: Original key of the pair
        original_value: Value before sanitization
        sanitized_value: Value after sanitization
        path: Location of the value (the key)
    """

    key: Any
    original_value: str
    sanitized_value: Any
    path: str


def value_kind(value: Any) -> ValueKind:
    """Classify a value for sanitization.

    Args:
        value: Any value

    Returns:
        The value's kind

    Example:
        >>> value_kind({"a": 1}), value_kind([1]), value_kind(None)
        (<ValueKind.MAPPING: 'mapping'>, <ValueKind.ARRAY: 'array'>, <ValueKind.PRIMITIVE: 'primitive'>)
    """
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    if value is None or isinstance(value, (bool, int, float, complex, bytes)):
        return ValueKind.PRIMITIVE
    # dates, decimals and other scalars fall through to OTHER and are returned as-is
    return ValueKind.OTHER


def is_container(value: Any) -> bool:
    """Check whether a value is an array or a mapping."""
    return isinstance(value, (list, tuple, Mapping))


def is_email(value: Any) -> bool:
    """Check whether a value looks like an email address.

    Email-shaped strings are never altered by sanitization.

    Args:
        value: Value to check

    Returns:
        True for email-shaped strings

    Example:
        >>> is_email("user.name+tag@domain.co.uk")
        True
        >>> is_email("$admin@")
        False
    """
    return isinstance(value, str) and len(value) > 5 and value.find("@") > 0 and EMAIL_RE.fullmatch(value) is not None


def is_falsy(value: Any) -> bool:
    """Check whether a value counts as empty for remove_empty and filter_null.

    None, False, numeric zero, NaN and the empty string are falsy. Empty
    containers are not.
    """
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0 or (isinstance(value, float) and math.isnan(value))
    return False


def _distinct(items: list[Any]) -> list[Any]:
    """Deduplicate items by type and value, keeping first occurrences."""
    seen: set[tuple[type, Any]] = set()
    unhashable: list[Any] = []
    result = []
    for item in items:
        marker = (type(item), item)
        try:
            if marker in seen:
                continue
            seen.add(marker)
        except TypeError:
            if any(type(other) is type(item) and other == item for other in unhashable):
                continue
            unhashable.append(item)
        result.append(item)
    return result


def sanitize_string(value: Any, config: ResolvedConfiguration, is_value: bool = False) -> Any:
    """Sanitize a single string.

    Every marker match is replaced with ``replace_with``, then the optional
    trim, lowercase and max_length transforms run. Truncation only applies
    to values, never to keys.

    Args:
        value: String to sanitize (anything else is returned unchanged)
        config: Resolved configuration
        is_value: True for values, False for mapping keys

    Returns:
        Sanitized string

    Example:
        >>> from nosql_sanitize.sanitization.options import resolve_options
        >>> sanitize_string("$where", resolve_options())
        'where'
    """
    if not isinstance(value, str) or is_email(value):
        return value

    replacement = config.replace_with
    result = config.combined_pattern.sub(lambda _match: replacement, value)

    string_options = config.string_options
    if string_options.trim:
        result = result.strip()
    if string_options.lowercase:
        result = result.lower()
    if string_options.max_length and is_value:
        result = result[: string_options.max_length]

    if result != value and config.debug.log_sanitized_values:
        log(config.debug, "debug", "STRING", "Sanitized", {"original": value, "result": result})

    return result


def sanitize_array(value: Any, config: ResolvedConfiguration, depth: int = 0) -> list[Any]:
    """Sanitize every element of an array.

    Args:
        value: List or tuple to sanitize
        config: Resolved configuration
        depth: Depth of this array (already counted by the caller)

    Returns:
        New list of sanitized elements

    Raises:
        TypeMismatchError: If value is not a list or tuple
    """
    if not isinstance(value, (list, tuple)):
        raise TypeMismatchError("Input must be an array")

    result = [
        item if not config.recursive and is_container(item) else sanitize_value(item, config, True, depth)
        for item in value
    ]

    array_options = config.array_options
    if array_options.filter_null:
        result = [item for item in result if not is_falsy(item)]
    if array_options.distinct:
        result = _distinct(result)
    return result


def sanitize_object(value: Any, config: ResolvedConfiguration, depth: int = 0) -> dict[Any, Any]:
    """Sanitize the keys and values of a mapping.

    Keys are filtered and sanitized in this order: denied keys, allowed
    keys, key substitution, remove_matches on the original key, remove_empty
    on the sanitized key, remove_matches on the original string value, value
    sanitization, remove_empty on the sanitized value.

    Args:
        value: Mapping to sanitize
        config: Resolved configuration
        depth: Depth of this mapping (already counted by the caller)

    Returns:
        New dict of sanitized pairs

    Raises:
        TypeMismatchError: If value is not a mapping

    Example:
        >>> from nosql_sanitize.sanitization.options import resolve_options
        >>> sanitize_object({"$ne": ""}, resolve_options())
        {'ne': ''}
    """
    if not isinstance(value, Mapping):
        raise TypeMismatchError("Input must be an object")

    debug = config.debug
    combined = config.combined_pattern
    result: dict[Any, Any] = {}

    for key, val in value.items():
        if config.denied_keys and key in config.denied_keys:
            if is_email(val):
                result[sanitize_string(key, config)] = val
            else:
                log(debug, "debug", "OBJECT", f"Key '{key}' denied")
            continue

        if config.allowed_keys and key not in config.allowed_keys:
            log(debug, "debug", "OBJECT", f"Key '{key}' not in allowed_keys")
            continue

        sanitized_key = sanitize_string(key, config)

        if config.remove_matches and isinstance(key, str) and combined.search(key):
            if debug.log_pattern_matches:
                log(debug, "debug", "PATTERN", f"Key '{key}' removed (pattern match)")
            continue

        if config.remove_empty and isinstance(sanitized_key, str) and not sanitized_key:
            continue

        if config.remove_matches and isinstance(val, str) and combined.search(val):
            if debug.log_pattern_matches:
                log(debug, "debug", "PATTERN", f"Value of '{key}' removed (pattern match)")
            continue

        if not config.recursive and is_container(val):
            sanitized_value = val
        else:
            sanitized_value = sanitize_value(val, config, True, depth)

        if config.remove_empty and is_falsy(sanitized_value):
            continue

        if config.on_sanitize is not None and isinstance(val, str) and val != sanitized_value:
            config.on_sanitize(
                SanitizeEvent(key=key, original_value=val, sanitized_value=sanitized_value, path=str(key))
            )

        result[sanitized_key] = sanitized_value

    return result


def sanitize_value(
    value: Any,
    config: ResolvedConfiguration,
    is_value: bool = False,
    depth: int = 0,
) -> Any:
    """Sanitize any value.

    Args:
        value: Value to sanitize
        config: Resolved configuration
        is_value: True if a bare string should be treated as a value
            (enables max_length truncation)
        depth: Number of containers already entered

    Returns:
        Sanitized value; containers are always new objects

    Example:
        >>> from nosql_sanitize.sanitization.options import resolve_options
        >>> sanitize_value({"user": {"$gt": ["$a", 1]}}, resolve_options())
        {'user': {'gt': ['a', 1]}}
    """
    kind = value_kind(value)

    if kind is ValueKind.STRING:
        return sanitize_string(value, config, is_value)

    if kind in (ValueKind.ARRAY, ValueKind.MAPPING):
        if config.max_depth is not None and depth >= config.max_depth:
            return value
        if kind is ValueKind.ARRAY:
            return sanitize_array(value, config, depth + 1)
        return sanitize_object(value, config, depth + 1)

    return value
