"""Tests for config.py limits and the errors.py hierarchy."""

from __future__ import annotations

import importlib

import pytest

from kodo import config
from kodo.errors import (
    KodoError,
    NestingDepthError,
    ValidationError,
    get_error_code,
)


@pytest.fixture
def reload_config(monkeypatch: pytest.MonkeyPatch):
    """Reload kodo.config after env changes, restoring defaults afterwards."""
    yield lambda: importlib.reload(config)
    monkeypatch.undo()
    importlib.reload(config)


class TestContentLimits:
    """Test environment overrides and minimums."""

    def test_defaults(self) -> None:
        limits = config.ContentLimits()

        assert limits.MAX_NESTING_DEPTH == 32
        assert limits.PREVIEW_LENGTH == 120
        assert limits.TABLE_MIN_COLUMN_WIDTH == 3

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch, reload_config) -> None:
        monkeypatch.setenv("KODO_MAX_NESTING_DEPTH", "10")

        module = reload_config()

        assert module.LIMITS.MAX_NESTING_DEPTH == 10

    def test_minimum_enforced(self, monkeypatch: pytest.MonkeyPatch, reload_config) -> None:
        monkeypatch.setenv("KODO_MAX_NESTING_DEPTH", "1")
        monkeypatch.setenv("KODO_PREVIEW_LENGTH", "5")

        module = reload_config()

        assert module.LIMITS.MAX_NESTING_DEPTH == 4
        assert module.LIMITS.PREVIEW_LENGTH == 20

    def test_limits_are_frozen(self) -> None:
        with pytest.raises(AttributeError):
            config.LIMITS.MAX_NESTING_DEPTH = 1000  # type: ignore[misc]


class TestErrors:
    """Test structured error output and code mapping."""

    def test_validation_error_to_dict(self) -> None:
        error = ValidationError("Bad target", field="target", value="x" * 200, constraint="index")

        data = error.to_dict()

        assert data["type"] == "validation"
        assert data["message"] == "Bad target"
        assert data["recoverable"] is False
        assert data["field"] == "target"
        assert data["constraint"] == "index"
        assert data["value"].endswith("...")
        assert len(data["value"]) == 103

    def test_none_context_values_omitted(self) -> None:
        data = NestingDepthError().to_dict()

        assert data == {
            "type": "nestingdepth",
            "message": "Nesting depth limit exceeded",
            "recoverable": False,
        }

    def test_error_codes(self) -> None:
        assert get_error_code(ValidationError("x")) == -32602
        assert get_error_code(NestingDepthError()) == -32000
        assert get_error_code(KodoError("x")) == -32603
