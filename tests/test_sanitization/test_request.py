"""Tests for request field sanitization."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any

import pytest

from nosql_sanitize.sanitization import (
    AttributeFieldAccess,
    MappingFieldAccess,
    ResolvedConfiguration,
    extract_mime_type,
    field_access_for,
    handle_request,
    resolve_options,
    should_sanitize_content_type,
)

# fmt: off
MIME_CASES = [
    ("application/json",                        "application/json",                     "plain"),
    ("application/json; charset=utf-8",         "application/json",                     "with_charset"),
    ("Application/JSON",                        "application/json",                     "mixed_case"),
    ("  text/plain ;q=1",                       "text/plain",                           "whitespace"),
    ("application/x-www-form-urlencoded",       "application/x-www-form-urlencoded",    "form"),
    ("",                                        None,                                   "empty"),
    ("; charset=utf-8",                         None,                                   "params_only"),
    (None,                                      None,                                   "none"),
    (42,                                        None,                                   "not_a_string"),
]
# fmt: on


def resolve(**options: Any) -> ResolvedConfiguration:
    return resolve_options(options)


class ReadOnlyQueryRequest:
    """Request whose query is a getter-only property, like some frameworks expose it."""

    def __init__(self, query: Any, body: Any = None) -> None:
        self._query = query
        self.body = body
        self.headers: dict[str, str] = {"content-type": "application/json"}

    @property
    def query(self) -> Any:
        return self._query


class WritableQueryRequest(ReadOnlyQueryRequest):
    """Request whose query property has a setter."""

    @property
    def query(self) -> Any:
        return self._query

    @query.setter
    def query(self, value: Any) -> None:
        self._query = value


class HeaderMethodRequest:
    """Request exposing headers only through a method."""

    def __init__(self, content_type: str | None, body: Any) -> None:
        self._content_type = content_type
        self.body = body

    def get_header(self, name: str) -> str | None:
        return self._content_type if name == "content-type" else None


class TestExtractMimeType:
    """Tests for MIME type extraction."""

    @pytest.mark.parametrize(
        ("header", "expected", "desc"),
        MIME_CASES,
        ids=[c[2] for c in MIME_CASES],
    )
    def test_extract_mime_type(self, header, expected: str | None, desc: str) -> None:
        """Test MIME type extraction."""
        assert extract_mime_type(header) == expected


class TestContentTypeGate:
    """Tests for the body content-type check."""

    ALLOWED = frozenset({"application/json"})

    def test_allowed_type(self, fake_request) -> None:
        """Test an allowed MIME type passes."""
        request = fake_request(headers={"content-type": "application/json; charset=utf-8"})
        assert should_sanitize_content_type(request, self.ALLOWED) is True

    def test_disallowed_type(self, fake_request) -> None:
        """Test a MIME type outside the list is rejected."""
        request = fake_request(headers={"content-type": "text/plain"})
        assert should_sanitize_content_type(request, self.ALLOWED) is False

    def test_missing_header(self, fake_request) -> None:
        """Test requests without a content type are sanitized."""
        assert should_sanitize_content_type(fake_request(), self.ALLOWED) is True

    def test_no_gate(self, fake_request) -> None:
        """Test None content types allow everything."""
        request = fake_request(headers={"content-type": "text/plain"})
        assert should_sanitize_content_type(request, None) is True

    def test_header_name_case_insensitive(self, fake_request) -> None:
        """Test header names are matched regardless of case."""
        request = fake_request(headers={"Content-Type": "text/html"})
        assert should_sanitize_content_type(request, self.ALLOWED) is False

    def test_get_header_fallback(self) -> None:
        """Test the header can come from a get_header method."""
        assert should_sanitize_content_type(HeaderMethodRequest("text/xml", None), self.ALLOWED) is False
        assert should_sanitize_content_type(HeaderMethodRequest("application/json", None), self.ALLOWED) is True
        assert should_sanitize_content_type(HeaderMethodRequest(None, None), self.ALLOWED) is True

    def test_dict_request(self) -> None:
        """Test dict requests carry headers under 'headers'."""
        request = {"headers": {"content-type": "text/plain"}, "body": {}}
        assert should_sanitize_content_type(request, self.ALLOWED) is False


class TestFieldAccess:
    """Tests for request field access."""

    def test_default_access(self, fake_request) -> None:
        """Test the access type follows the request type."""
        assert isinstance(field_access_for({}), MappingFieldAccess)
        assert isinstance(field_access_for(MappingProxyType({})), MappingFieldAccess)
        assert isinstance(field_access_for(fake_request()), AttributeFieldAccess)

    def test_attribute_writability(self) -> None:
        """Test property setters decide writability."""
        access = AttributeFieldAccess()
        assert access.is_writable(ReadOnlyQueryRequest({}), "query") is False
        assert access.is_writable(WritableQueryRequest({}), "query") is True
        assert access.is_writable(ReadOnlyQueryRequest({}), "body") is True
        assert access.is_writable(ReadOnlyQueryRequest({}), "missing") is True

    def test_mapping_writability(self) -> None:
        """Test only mutable mappings are writable."""
        access = MappingFieldAccess()
        assert access.is_writable({"body": 1}, "body") is True
        assert access.is_writable(MappingProxyType({"body": 1}), "body") is False

    def test_mapping_replace_raises(self) -> None:
        """Test read-only mappings cannot be replaced."""
        with pytest.raises(TypeError, match="read-only"):
            MappingFieldAccess().replace(MappingProxyType({}), "body", {})

    def test_replace_shadows_property(self) -> None:
        """Test replace turns a read-only property into a plain attribute."""
        request = ReadOnlyQueryRequest({"a": 1})
        AttributeFieldAccess().replace(request, "query", {"b": 2})
        assert request.query == {"b": 2}
        assert isinstance(request, ReadOnlyQueryRequest)
        assert AttributeFieldAccess().is_writable(request, "query") is True

    def test_replace_reuses_shadow_class(self) -> None:
        """Test one shadow class is made per class and field."""
        first, second = ReadOnlyQueryRequest({}), ReadOnlyQueryRequest({})
        AttributeFieldAccess().replace(first, "query", {})
        AttributeFieldAccess().replace(second, "query", {})
        assert type(first) is type(second)
        assert type(ReadOnlyQueryRequest({})) is ReadOnlyQueryRequest


class TestHandleRequest:
    """Tests for request sanitization."""

    def test_sanitizes_body_and_query(self, fake_request) -> None:
        """Test the default fields are sanitized."""
        request = fake_request(
            body={"username": {"$ne": None}, "password": "$secret"},
            query={"$where": "1"},
            params={"$id": "$x"},
        )
        handle_request(request, resolve())
        assert request.body == {"username": {"ne": None}, "password": "secret"}
        assert request.query == {"where": "1"}
        assert request.params == {"$id": "$x"}

    def test_sanitize_objects_selects_fields(self, fake_request) -> None:
        """Test only the configured fields are sanitized."""
        request = fake_request(body={"$a": 1}, params={"$id": "$x"})
        handle_request(request, resolve(sanitize_objects=["params"]))
        assert request.body == {"$a": 1}
        assert request.params == {"id": "x"}

    def test_original_payload_not_mutated(self, fake_request) -> None:
        """Test the caller's original body is replaced, not changed."""
        body = {"$a": {"$b": 1}}
        request = fake_request(body=body)
        handle_request(request, resolve())
        assert body == {"$a": {"$b": 1}}
        assert request.body == {"a": {"b": 1}}

    def test_disallowed_content_type_skips_body(self, fake_request) -> None:
        """Test the body is left alone for other content types."""
        request = fake_request(
            headers={"content-type": "text/plain"},
            body={"$a": 1},
            query={"$b": 2},
        )
        handle_request(request, resolve())
        assert request.body == {"$a": 1}
        assert request.query == {"b": 2}

    def test_content_types_none_sanitizes_any_body(self, fake_request) -> None:
        """Test disabling the gate sanitizes every body."""
        request = fake_request(headers={"content-type": "text/plain"}, body={"$a": 1})
        handle_request(request, resolve(content_types=None))
        assert request.body == {"a": 1}

    def test_missing_and_empty_fields_skipped(self, fake_request) -> None:
        """Test absent, None and empty dict fields are untouched."""
        empty: dict = {}
        request = fake_request(body=None, query=empty)
        handle_request(request, resolve())
        assert request.body is None
        assert request.query is empty
        assert not hasattr(request, "params")

    def test_array_body(self, fake_request) -> None:
        """Test an array body is sanitized into a list."""
        request = fake_request(body=["$a", {"$b": "$c"}])
        handle_request(request, resolve())
        assert request.body == ["a", {"b": "c"}]

    def test_string_body(self, fake_request) -> None:
        """Test a bare string field is sanitized."""
        request = fake_request(body="$where")
        handle_request(request, resolve())
        assert request.body == "where"

    def test_dict_request(self) -> None:
        """Test plain dict requests are sanitized in place."""
        request = {"headers": {"content-type": "application/json"}, "body": {"$gt": ""}, "query": {"q": "$x"}}
        handle_request(request, resolve())
        assert request["body"] == {"gt": ""}
        assert request["query"] == {"q": "x"}

    def test_read_only_property_replaced(self) -> None:
        """Test a getter-only field is still replaced with the sanitized value."""
        request = ReadOnlyQueryRequest({"$ne": "x"}, body={"$a": 1})
        handle_request(request, resolve())
        assert request.query == {"ne": "x"}
        assert request.body == {"a": 1}

    def test_read_only_mapping_field_sanitized(self) -> None:
        """Test a getter-only query holding a non-dict mapping is replaced with a clean dict."""
        request = ReadOnlyQueryRequest(MappingProxyType({"user": "$admin", "$where": "1"}))
        handle_request(request, resolve())
        assert request.query == {"user": "admin", "where": "1"}
        assert type(request.query) is dict

    def test_empty_read_only_mapping_skipped(self) -> None:
        """Test an empty non-dict mapping field is left alone."""
        empty = MappingProxyType({})
        request = ReadOnlyQueryRequest(empty)
        handle_request(request, resolve())
        assert request.query is empty

    def test_writable_property_uses_setter(self) -> None:
        """Test a property with a setter is assigned normally."""
        request = WritableQueryRequest({"$ne": "x"})
        handle_request(request, resolve())
        assert type(request) is WritableQueryRequest
        assert request._query == {"ne": "x"}

    def test_custom_sanitizer(self, fake_request) -> None:
        """Test a custom sanitizer replaces the built-in one."""
        calls: list[Any] = []

        def custom(data: Any, config: Any) -> Any:
            calls.append((data, config.replace_with))
            return {"custom": True}

        request = fake_request(body={"$a": 1}, query={"$b": 2})
        handle_request(request, resolve(custom_sanitizer=custom, replace_with="_"))
        assert request.body == {"custom": True}
        assert request.query == {"custom": True}
        assert calls == [({"$a": 1}, "_"), ({"$b": 2}, "_")]

    def test_custom_sanitizer_gets_copy(self, fake_request) -> None:
        """Test the custom sanitizer receives a shallow copy."""
        body = {"a": 1}

        def custom(data: Any, config: Any) -> Any:
            data["added"] = True
            return data

        request = fake_request(body=body)
        handle_request(request, resolve(custom_sanitizer=custom))
        assert body == {"a": 1}
        assert request.body == {"a": 1, "added": True}

    def test_custom_field_access(self) -> None:
        """Test a supplied field access is used for every field."""

        class RecordingAccess(MappingFieldAccess):
            def __init__(self) -> None:
                self.writes: list[str] = []

            def set(self, request: Any, name: str, value: Any) -> None:
                self.writes.append(name)
                super().set(request, name, value)

        access = RecordingAccess()
        request = {"body": {"$a": 1}, "query": {"$b": 1}}
        handle_request(request, resolve(), field_access=access)
        assert access.writes == ["body", "query"]

    def test_debug_logging(self, fake_request, caplog: pytest.LogCaptureFixture) -> None:
        """Test request sanitization is logged when debug is enabled."""
        request = fake_request(body={"$a": 1})
        config = resolve(debug={"enabled": True, "level": "debug"})
        with caplog.at_level(logging.DEBUG, logger="nosql_sanitize"):
            handle_request(request, config)
        assert "[REQUEST] Sanitizing request" in caplog.text
        assert "[REQUEST] Sanitizing 'body'" in caplog.text

    def test_silent_without_debug(self, fake_request, caplog: pytest.LogCaptureFixture) -> None:
        """Test nothing is logged by default."""
        with caplog.at_level(logging.DEBUG, logger="nosql_sanitize.sanitization.debug"):
            handle_request(fake_request(body={"$a": 1}), resolve())
        assert caplog.text == ""
