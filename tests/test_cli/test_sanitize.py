"""Tests for CLI sanitize command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from nosql_sanitize.cli.main import app

runner = CliRunner()


# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def payload(tmp_path: Path) -> Path:
    """Create a JSON payload with injection markers."""
    data = {
        "username": {"$ne": None},
        "password": "$secret\x00",
        "contact": "user@example.com",
        "filters": [{"$where": "sleep(100)"}, "plain"],
    }
    path = tmp_path / "payload.json"
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def invalid_json_file(tmp_path: Path) -> Path:
    """Create an invalid JSON file."""
    invalid_file = tmp_path / "invalid.json"
    invalid_file.write_text("{not valid json")
    return invalid_file


def _read(path: Path) -> object:
    return json.loads(path.read_text(encoding="utf-8"))


# =============================================================================
# Test Classes
# =============================================================================


class TestSanitizeBasic:
    """Basic sanitize command tests."""

    def test_sanitize_payload(self, payload: Path) -> None:
        """Test sanitizing a payload with default options."""
        result = runner.invoke(app, ["sanitize", str(payload)])
        assert result.exit_code == 0
        assert "Sanitized:" in result.stdout

        assert _read(payload.parent / "payload.sanitized.json") == {
            "username": {"ne": None},
            "password": "secret",
            "contact": "user@example.com",
            "filters": [{"where": "sleep(100)"}, "plain"],
        }

    def test_sanitize_with_output(self, payload: Path, tmp_path: Path) -> None:
        """Test sanitizing with explicit output path."""
        output = tmp_path / "clean.json"
        result = runner.invoke(app, ["sanitize", str(payload), "-o", str(output)])
        assert result.exit_code == 0
        assert output.exists()
        assert f"Sanitized: {output}" in result.stdout

    def test_sanitize_file_not_found(self, tmp_path: Path) -> None:
        """Test error when file doesn't exist."""
        result = runner.invoke(app, ["sanitize", str(tmp_path / "nonexistent.json")])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_sanitize_invalid_json(self, invalid_json_file: Path) -> None:
        """Test error on invalid JSON."""
        result = runner.invoke(app, ["sanitize", str(invalid_json_file)])
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_negative_indent(self, payload: Path) -> None:
        """Test error on negative indent."""
        result = runner.invoke(app, ["sanitize", str(payload), "--indent", "-1"])
        assert result.exit_code == 1
        assert "indent must be >= 0" in result.output

    def test_compact_output(self, payload: Path, tmp_path: Path) -> None:
        """Test --indent 0 writes compact JSON."""
        output = tmp_path / "compact.json"
        result = runner.invoke(app, ["sanitize", str(payload), "-o", str(output), "--indent", "0"])
        assert result.exit_code == 0
        assert "\n" not in output.read_text(encoding="utf-8")


class TestSanitizeFlags:
    """Tests for option flags."""

    def test_replace_with(self, payload: Path, tmp_path: Path) -> None:
        """Test --replace-with sets the replacement."""
        output = tmp_path / "out.json"
        result = runner.invoke(app, ["sanitize", str(payload), "-o", str(output), "--replace-with", "_"])
        assert result.exit_code == 0
        assert _read(output)["username"] == {"_ne": None}

    def test_remove_matches(self, payload: Path, tmp_path: Path) -> None:
        """Test --remove-matches drops marked pairs."""
        output = tmp_path / "out.json"
        result = runner.invoke(app, ["sanitize", str(payload), "-o", str(output), "--remove-matches"])
        assert result.exit_code == 0
        assert _read(output) == {
            "username": {},
            "contact": "user@example.com",
            "filters": [{}, "plain"],
        }

    def test_max_depth(self, payload: Path, tmp_path: Path) -> None:
        """Test --max-depth stops descending."""
        output = tmp_path / "out.json"
        result = runner.invoke(app, ["sanitize", str(payload), "-o", str(output), "--max-depth", "1"])
        assert result.exit_code == 0
        data = _read(output)
        assert data["password"] == "secret"
        assert data["username"] == {"$ne": None}

    def test_invalid_max_depth(self, payload: Path) -> None:
        """Test an invalid depth is reported as a configuration error."""
        result = runner.invoke(app, ["sanitize", str(payload), "--max-depth", "0"])
        assert result.exit_code == 1
        assert 'Invalid configuration: "max_depth"' in result.output


class TestSanitizeOptionFiles:
    """Tests for --options and --patterns."""

    def test_options_file(self, payload: Path, tmp_path: Path) -> None:
        """Test options are read from a JSON file."""
        options = tmp_path / "options.json"
        options.write_text(json.dumps({"replace_with": "-", "denied_keys": ["password"]}))
        output = tmp_path / "out.json"

        result = runner.invoke(app, ["sanitize", str(payload), "-o", str(output), "--options", str(options)])

        assert result.exit_code == 0
        data = _read(output)
        assert "password" not in data
        assert data["username"] == {"-ne": None}

    def test_flags_override_options_file(self, payload: Path, tmp_path: Path) -> None:
        """Test command-line flags win over the options file."""
        options = tmp_path / "options.json"
        options.write_text(json.dumps({"replace_with": "-"}))
        output = tmp_path / "out.json"

        result = runner.invoke(
            app,
            ["sanitize", str(payload), "-o", str(output), "-O", str(options), "-r", "+"],
        )

        assert result.exit_code == 0
        assert _read(output)["username"] == {"+ne": None}

    def test_invalid_options_file(self, payload: Path, tmp_path: Path) -> None:
        """Test an options file with bad values is rejected."""
        options = tmp_path / "options.json"
        options.write_text(json.dumps({"recursive": "yes"}))
        result = runner.invoke(app, ["sanitize", str(payload), "--options", str(options)])
        assert result.exit_code == 1
        assert 'Invalid configuration: "recursive"' in result.output

    def test_missing_options_file(self, payload: Path, tmp_path: Path) -> None:
        """Test a missing options file is reported as an options error."""
        result = runner.invoke(app, ["sanitize", str(payload), "--options", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "Failed to load options: JSON file not found" in result.output

    def test_options_file_not_object(self, payload: Path, tmp_path: Path) -> None:
        """Test an options file must hold a JSON object."""
        options = tmp_path / "options.json"
        options.write_text("[]")
        result = runner.invoke(app, ["sanitize", str(payload), "--options", str(options)])
        assert result.exit_code == 1
        assert "must contain a JSON object" in result.output

    def test_custom_patterns(self, payload: Path, tmp_path: Path) -> None:
        """Test --patterns replaces the marker patterns."""
        patterns = tmp_path / "markers.json"
        patterns.write_text(json.dumps({"patterns": [{"regex": "SLEEP", "flags": ["IGNORECASE"]}]}))
        output = tmp_path / "out.json"

        result = runner.invoke(app, ["sanitize", str(payload), "-o", str(output), "--patterns", str(patterns)])

        assert result.exit_code == 0
        data = _read(output)
        assert data["filters"] == [{"$where": "(100)"}, "plain"]
        assert data["username"] == {"$ne": None}

    def test_invalid_patterns_file(self, payload: Path) -> None:
        """Test error on a missing patterns file."""
        result = runner.invoke(app, ["sanitize", str(payload), "--patterns", "/nonexistent/patterns.json"])
        assert result.exit_code == 1
        assert "Failed to load patterns" in result.output
