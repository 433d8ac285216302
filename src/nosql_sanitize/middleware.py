"""Framework-agnostic request hooks.

RequestSanitizer is meant to be called from a framework's pre-dispatch hook
(a middleware, a before-request handler, a dependency) with the request
object. In auto mode it sanitizes the request right away; in manual mode
it attaches a ``sanitize()`` method that the handler calls when ready.

Fields are named by ``sanitize_objects`` and must match the attributes the
framework uses for input. Flask keeps query parameters in ``args`` and form
data in ``form``, both read-only mappings; they are replaced with sanitized
plain dicts.

Example:
    sanitizer = RequestSanitizer({"sanitize_objects": ["args", "form"], "skip_routes": ["/health"]})

    @app.before_request
    def _sanitize():
        sanitizer(request)
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any, Callable

from nosql_sanitize.sanitization import (
    FieldAccess,
    ResolvedConfiguration,
    SanitizeMode,
    field_access_for,
    handle_request,
    resolve_options,
    sanitize_string,
    should_skip_route,
)
from nosql_sanitize.sanitization.debug import log


def request_path(request: Any, field_access: FieldAccess | None = None) -> Any:
    """Read the path of a request (``path``, falling back to ``url``)."""
    access = field_access or field_access_for(request)
    path = access.get(request, "path")
    if path:
        return path
    url = access.get(request, "url")
    # URL objects (e.g. starlette's) expose the path as an attribute
    return getattr(url, "path", url)


class RequestSanitizer:
    """Sanitize requests according to a fixed set of options.

    Args:
        options: Sanitizer options (see resolve_options)
        field_access: How to read and write request fields (default picked
            per request)

    Raises:
        ConfigurationError: If the options are invalid
    """

    def __init__(
        self,
        options: dict[str, Any] | None = None,
        *,
        field_access: FieldAccess | None = None,
    ) -> None:
        self.config: ResolvedConfiguration = resolve_options(options)
        self.options: dict[str, Any] = dict(options or {})
        self.field_access = field_access
        log(
            self.config.debug,
            "info",
            "PLUGIN",
            "Initialized request sanitizer",
            {"mode": self.config.mode.value, "sanitize_objects": list(self.config.sanitize_objects)},
        )

    def __call__(self, request: Any) -> bool:
        """Process a request.

        Args:
            request: Request-like object

        Returns:
            False if the route is skipped, True otherwise
        """
        access = self.field_access or field_access_for(request)

        if should_skip_route(request_path(request, access), self.config.skip_routes, self.config.debug):
            return False

        if self.config.mode is SanitizeMode.AUTO:
            handle_request(request, self.config, field_access=access)
        else:
            access.set(request, "sanitize", self._bind(request, access))
        return True

    def resolve(self, custom_options: Mapping[str, Any] | None = None) -> ResolvedConfiguration:
        """Return the configuration for a call, with optional overrides.

        Overrides are merged over the original options and resolved anew;
        without overrides the shared configuration is returned.
        """
        if not custom_options:
            return self.config
        return resolve_options({**self.options, **custom_options})

    def _bind(self, request: Any, access: FieldAccess) -> Callable[..., None]:
        def sanitize(custom_options: Mapping[str, Any] | None = None) -> None:
            handle_request(request, self.resolve(custom_options), field_access=access)

        return sanitize


def param_sanitizer(
    options: dict[str, Any] | None = None,
) -> Callable[[Any, Any, str], None]:
    """Build a handler that sanitizes a single route parameter.

    Args:
        options: Sanitizer options (see resolve_options)

    Returns:
        Handler called as ``handler(request, value, name)``; it stores the
        sanitized string in the request's ``params`` mapping

    Example:
        >>> handler = param_sanitizer({"replace_with": "_"})
        >>> request = {"params": {"user_id": "$admin"}}
        >>> handler(request, "$admin", "user_id")
        >>> request["params"]["user_id"]
        '_admin'
    """
    config = resolve_options(options)

    def handler(request: Any, value: Any, name: str) -> None:
        params = field_access_for(request).get(request, "params")
        if name and isinstance(params, MutableMapping) and isinstance(value, str):
            params[name] = sanitize_string(value, config, is_value=True)

    return handler
