"""Route skipping.

Request paths are normalized before matching so that ``/health``,
``/health/`` and ``/health?ping=1`` all resolve to the same route.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from nosql_sanitize.sanitization.debug import DebugOptions, log


@dataclass(frozen=True)
class SkipRoutes:
    """Routes exempted from automatic sanitization.

    Attributes:
        exact: Normalized paths matched by equality
        regex: Patterns tried in order against the normalized path
    """

    exact: frozenset[str] = field(default_factory=frozenset)
    regex: tuple[re.Pattern[str], ...] = ()

    def __bool__(self) -> bool:
        return bool(self.exact or self.regex)


def clean_path(url: Any) -> str | None:
    """Normalize a request path.

    Strips the query string or fragment and any leading or trailing slashes,
    then re-adds a single leading slash.

    Args:
        url: Raw request path or URL

    Returns:
        Normalized path, or None for non-string or empty input

    Example:
        >>> clean_path("///api/users/?page=2")
        '/api/users'
        >>> clean_path("/") is None
        True
    """
    if not isinstance(url, str) or not url:
        return None

    end = len(url)
    for marker in ("?", "#"):
        idx = url.find(marker)
        if idx != -1 and idx < end:
            end = idx

    trimmed = url[:end].strip("/")
    if not trimmed:
        return None
    return "/" + trimmed


def build_skip_routes(routes: Iterable[Any]) -> SkipRoutes:
    """Partition configured skip routes into exact paths and patterns.

    Strings are normalized with clean_path; compiled patterns keep their
    order. Anything else, or a string that normalizes to nothing, is dropped.

    Args:
        routes: Raw skip route entries

    Returns:
        SkipRoutes ready for should_skip_route
    """
    exact: set[str] = set()
    regex: list[re.Pattern[str]] = []

    for route in routes:
        if isinstance(route, re.Pattern):
            regex.append(route)
        elif isinstance(route, str):
            cleaned = clean_path(route)
            if cleaned:
                exact.add(cleaned)

    return SkipRoutes(exact=frozenset(exact), regex=tuple(regex))


def should_skip_route(
    request_path: Any,
    skip_routes: SkipRoutes,
    debug: DebugOptions | None = None,
) -> bool:
    """Decide whether a request path is exempt from sanitization.

    Args:
        request_path: Raw request path
        skip_routes: Resolved skip routes
        debug: Optional debug options for skip logging

    Returns:
        True if the route should be skipped

    Example:
        >>> routes = build_skip_routes(["/health", re.compile(r"^/docs/")])
        >>> should_skip_route("/health/?ping=1", routes)
        True
        >>> should_skip_route("/api/users", routes)
        False
    """
    if not skip_routes.exact and not skip_routes.regex:
        return False

    cleaned = clean_path(request_path)
    if cleaned is None:
        return False

    log_skips = debug is not None and debug.log_skipped_routes

    if cleaned in skip_routes.exact:
        if log_skips:
            log(debug, "info", "SKIP", f"Route skipped (exact): {request_path}")
        return True

    # re.Pattern.search keeps no position between calls, so each test starts at 0
    for pattern in skip_routes.regex:
        if pattern.search(cleaned):
            if log_skips:
                log(debug, "info", "SKIP", f"Route skipped (regex {pattern.pattern}): {request_path}")
            return True

    return False
