"""Request field sanitization.

Applies the value sanitizer to named fields of a request-like object
(``body``, ``query``, ``params``...). The request is reached through a
FieldAccess object so both attribute-style request classes and plain
dict requests are supported, including classes that expose a field as a
read-only property.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from typing import TYPE_CHECKING, Any, Protocol

from nosql_sanitize.sanitization.debug import log, start_timing
from nosql_sanitize.sanitization.values import sanitize_value

if TYPE_CHECKING:
    from nosql_sanitize.sanitization.options import ResolvedConfiguration

_LOGGER = logging.getLogger(__name__)

BODY_FIELD = "body"


class FieldAccess(Protocol):
    """Reads and writes named fields of a request."""

    def get(self, request: Any, name: str) -> Any: ...

    def is_writable(self, request: Any, name: str) -> bool: ...

    def set(self, request: Any, name: str, value: Any) -> None: ...

    def replace(self, request: Any, name: str, value: Any) -> None: ...


class MappingFieldAccess:
    """Field access for dict-like requests."""

    def get(self, request: Mapping[str, Any], name: str) -> Any:
        return request.get(name)

    def is_writable(self, request: Any, name: str) -> bool:
        return isinstance(request, MutableMapping)

    def set(self, request: MutableMapping[str, Any], name: str, value: Any) -> None:
        request[name] = value

    def replace(self, request: Any, name: str, value: Any) -> None:
        raise TypeError(f"Cannot replace field {name!r} on read-only mapping {type(request).__name__}")


# (class, field name) -> subclass that shadows the read-only descriptor
_SHADOW_CLASSES: dict[tuple[type, str], type] = {}


class AttributeFieldAccess:
    """Field access for attribute-style requests.

    Writability comes from the nearest class attribute in the MRO: a
    property is writable only if it has a setter, anything else accepts
    assignment. A field with no class attribute is writable.
    """

    def get(self, request: Any, name: str) -> Any:
        return getattr(request, name, None)

    def is_writable(self, request: Any, name: str) -> bool:
        for cls in type(request).__mro__:
            if name not in cls.__dict__:
                continue
            attr = cls.__dict__[name]
            if isinstance(attr, property):
                return attr.fset is not None
            # other data descriptors accept assignment; plain values are shadowed by the instance
            return True
        return True

    def set(self, request: Any, name: str, value: Any) -> None:
        setattr(request, name, value)

    def replace(self, request: Any, name: str, value: Any) -> None:
        """Turn a read-only field into a plain instance attribute holding value.

        The request is moved onto a cached subclass of its class in which
        ``name`` is an ordinary class attribute, so the instance ``__dict__``
        entry takes precedence on lookup.
        """
        cls = type(request)
        shadow = _SHADOW_CLASSES.get((cls, name))
        if shadow is None:
            shadow = type(cls.__name__, (cls,), {name: None, "__module__": cls.__module__})
            _SHADOW_CLASSES[(cls, name)] = shadow
        request.__class__ = shadow
        vars(request)[name] = value


def field_access_for(request: Any) -> FieldAccess:
    """Pick the default field access for a request."""
    if isinstance(request, Mapping):
        return MappingFieldAccess()
    return AttributeFieldAccess()


def extract_mime_type(content_type: Any) -> str | None:
    """Extract the MIME type from a content-type header value.

    Args:
        content_type: Header value

    Returns:
        Lower-cased MIME type, or None if absent

    Example:
        >>> extract_mime_type("Application/JSON; charset=utf-8")
        'application/json'
    """
    if not isinstance(content_type, str):
        return None
    mime = content_type.split(";", 1)[0].strip().lower()
    return mime or None


def get_content_type(request: Any, field_access: FieldAccess | None = None) -> str | None:
    """Read the content-type header of a request.

    Looks in the request's ``headers`` mapping (exact ``content-type`` key,
    then a case-insensitive scan), then falls back to a ``get_header``
    method.

    Args:
        request: Request-like object
        field_access: Field access used to read ``headers``

    Returns:
        Header value, or None if not present
    """
    access = field_access or field_access_for(request)
    headers = access.get(request, "headers")

    if headers is not None and callable(getattr(headers, "get", None)):
        value = headers.get("content-type")
        if value:
            return value
        if isinstance(headers, Mapping):
            for name, value in headers.items():
                if isinstance(name, str) and name.lower() == "content-type" and value:
                    return value

    get_header = getattr(request, "get_header", None)
    if callable(get_header):
        return get_header("content-type") or None
    return None


def should_sanitize_content_type(
    request: Any,
    content_types: frozenset[str] | None,
    field_access: FieldAccess | None = None,
) -> bool:
    """Decide whether the request body may be sanitized.

    Args:
        request: Request-like object
        content_types: Allowed MIME types, or None to allow everything
        field_access: Field access used to read headers

    Returns:
        True if there is no gate, no content-type header, or the header's
        MIME type is allowed
    """
    if content_types is None:
        return True

    header = get_content_type(request, field_access)
    if not header:
        return True

    mime = extract_mime_type(header)
    return mime in content_types if mime else True


def _shallow_copy(data: Any) -> Any:
    if isinstance(data, (list, tuple)):
        return list(data)
    if isinstance(data, Mapping):
        return dict(data)
    return data


def handle_request(
    request: Any,
    config: ResolvedConfiguration,
    *,
    field_access: FieldAccess | None = None,
) -> None:
    """Sanitize the configured fields of a request in place.

    Each field in ``config.sanitize_objects`` is read, shallow-copied, run
    through the custom sanitizer (if any) or sanitize_value, and written
    back. The body is skipped when its content type is not allowed; missing
    fields and empty mappings are skipped.

    Args:
        request: Request-like object
        config: Resolved configuration
        field_access: How to read and write request fields (default picked
            from the request type)

    Example:
        >>> from nosql_sanitize.sanitization.options import resolve_options
        >>> request = {"body": {"username": {"$ne": None}}, "query": {}}
        >>> handle_request(request, resolve_options())
        >>> request["body"]
        {'username': {'ne': None}}
    """
    access = field_access or field_access_for(request)
    debug = config.debug
    end_timing = start_timing(debug, "Request Sanitization")

    log(debug, "info", "REQUEST", "Sanitizing request")

    sanitize_body = should_sanitize_content_type(request, config.content_types, access)

    for field in config.sanitize_objects:
        if field == BODY_FIELD and not sanitize_body:
            log(debug, "debug", "REQUEST", "Skipping body, content-type not in allowed list")
            continue

        data = access.get(request, field)
        if data is None:
            continue
        if isinstance(data, Mapping) and not data:
            continue

        log(debug, "debug", "REQUEST", f"Sanitizing '{field}'")

        original = _shallow_copy(data)
        if config.custom_sanitizer is not None:
            sanitized = config.custom_sanitizer(original, config)
        else:
            sanitized = sanitize_value(original, config)

        if access.is_writable(request, field):
            access.set(request, field, sanitized)
        else:
            _LOGGER.debug("Field %r is read-only, replacing it", field)
            access.replace(request, field, sanitized)

    end_timing()
