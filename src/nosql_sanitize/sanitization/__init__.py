"""Sanitization engine for untrusted structured input.

This module strips injection markers (query operator prefixes, control
characters) from request data with ZERO external dependencies (stdlib only).

Exports:
    - resolve_options: Validate options into a ResolvedConfiguration
    - sanitize_value: Sanitize any value
    - handle_request: Sanitize the configured fields of a request in place
    - should_skip_route: Check a request path against the skip routes
"""

from __future__ import annotations

from nosql_sanitize.sanitization.debug import LOG_LEVELS, DebugOptions
from nosql_sanitize.sanitization.documents import default_output_path, sanitize_json_file
from nosql_sanitize.sanitization.errors import (
    ConfigurationError,
    NoSQLSanitizeError,
    TypeMismatchError,
)
from nosql_sanitize.sanitization.options import (
    DEFAULT_OPTIONS,
    PATTERNS,
    ArrayOptions,
    ResolvedConfiguration,
    SanitizeMode,
    StringOptions,
    combine_patterns,
    resolve_options,
    validate_options,
)
from nosql_sanitize.sanitization.request import (
    AttributeFieldAccess,
    FieldAccess,
    MappingFieldAccess,
    extract_mime_type,
    field_access_for,
    handle_request,
    should_sanitize_content_type,
)
from nosql_sanitize.sanitization.routes import (
    SkipRoutes,
    build_skip_routes,
    clean_path,
    should_skip_route,
)
from nosql_sanitize.sanitization.values import (
    SanitizeEvent,
    ValueKind,
    is_email,
    is_falsy,
    sanitize_array,
    sanitize_object,
    sanitize_string,
    sanitize_value,
    value_kind,
)

__all__ = [
    # Options
    "resolve_options",
    "validate_options",
    "combine_patterns",
    "ResolvedConfiguration",
    "StringOptions",
    "ArrayOptions",
    "DebugOptions",
    "SanitizeMode",
    "DEFAULT_OPTIONS",
    "PATTERNS",
    "LOG_LEVELS",
    # Values
    "sanitize_value",
    "sanitize_string",
    "sanitize_array",
    "sanitize_object",
    "value_kind",
    "ValueKind",
    "SanitizeEvent",
    "is_email",
    "is_falsy",
    # Documents
    "sanitize_json_file",
    "default_output_path",
    # Requests
    "handle_request",
    "should_sanitize_content_type",
    "extract_mime_type",
    "field_access_for",
    "FieldAccess",
    "AttributeFieldAccess",
    "MappingFieldAccess",
    # Routes
    "should_skip_route",
    "clean_path",
    "build_skip_routes",
    "SkipRoutes",
    # Errors
    "NoSQLSanitizeError",
    "ConfigurationError",
    "TypeMismatchError",
]
