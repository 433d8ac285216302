"""Pytest configuration and fixtures for nosql-sanitize tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from nosql_sanitize.sanitization import ResolvedConfiguration, resolve_options


@pytest.fixture
def make_config():
    """Resolve options from keyword overrides."""

    def _make(**options: Any) -> ResolvedConfiguration:
        return resolve_options(options)

    return _make


@pytest.fixture
def json_file(tmp_path: Path):
    """Write a JSON document to a temporary file."""

    def _write(data: Any, name: str = "payload.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


class FakeRequest:
    """Attribute-style request, like most framework request objects."""

    def __init__(self, **fields: Any) -> None:
        self.headers: dict[str, str] = {}
        self.path = "/"
        for name, value in fields.items():
            setattr(self, name, value)


@pytest.fixture
def fake_request():
    """Create an attribute-style request."""
    return FakeRequest
