"""Injection marker sanitization for untrusted structured input.

This library provides tools for:
- Stripping query operator prefixes and control characters from request data
- Sanitizing request fields in place from any web framework's request hook
- Scanning JSON documents for injection markers

Core sanitization has ZERO dependencies (only stdlib).
Optional features require: typer (cli).

Example usage:
    from nosql_sanitize import resolve_options, sanitize_value

    config = resolve_options({"replace_with": "_"})
    clean = sanitize_value({"$where": "sleep(1000)"}, config)

    # Sanitize a request from a framework hook
    from nosql_sanitize import RequestSanitizer
    sanitizer = RequestSanitizer({"skip_routes": ["/health"]})
    sanitizer(request)
"""

from __future__ import annotations

__version__ = "0.1.0"

# Re-export public API for convenience
from nosql_sanitize.middleware import RequestSanitizer, param_sanitizer
from nosql_sanitize.sanitization import (
    ConfigurationError,
    NoSQLSanitizeError,
    ResolvedConfiguration,
    SanitizeEvent,
    TypeMismatchError,
    clean_path,
    handle_request,
    resolve_options,
    sanitize_value,
    should_skip_route,
)
from nosql_sanitize.validation import find_markers

__all__ = [
    "__version__",
    "ConfigurationError",
    "NoSQLSanitizeError",
    "RequestSanitizer",
    "ResolvedConfiguration",
    "SanitizeEvent",
    "TypeMismatchError",
    "clean_path",
    "find_markers",
    "handle_request",
    "param_sanitizer",
    "resolve_options",
    "sanitize_value",
    "should_skip_route",
]
