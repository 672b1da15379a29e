from __future__ import annotations

import pytest

from catalogsync.config import (
    MissingConfigurationError,
    optional_env_var,
    require_env_vars,
)


def test_require_env_vars_returns_stripped_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", " value ")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result == {"EXAMPLE_VAR": "value"}


def test_require_env_vars_treats_blank_as_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError, match="EXAMPLE_VAR"):
        require_env_vars(["EXAMPLE_VAR"])


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.delenv("MISSING_A", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_optional_env_var_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BLANK_VAR", "")
    monkeypatch.delenv("UNSET_VAR", raising=False)
    monkeypatch.setenv("SET_VAR", "2025-01")

    assert optional_env_var("BLANK_VAR", "fallback") == "fallback"
    assert optional_env_var("UNSET_VAR", "fallback") == "fallback"
    assert optional_env_var("SET_VAR", "fallback") == "2025-01"
