"""Shared fixtures."""

from __future__ import annotations

import pytest

from agent_secrets.secrets.activation import clear_secrets_runtime_snapshot


@pytest.fixture(autouse=True)
def _clear_active_snapshot():
    clear_secrets_runtime_snapshot()
    yield
    clear_secrets_runtime_snapshot()


@pytest.fixture
def state_dir(tmp_path, monkeypatch):
    """An isolated state directory exported via AGENT_SECRETS_STATE_DIR."""
    path = tmp_path / "state"
    path.mkdir()
    monkeypatch.setenv("AGENT_SECRETS_STATE_DIR", str(path))
    monkeypatch.delenv("AGENT_SECRETS_CONFIG", raising=False)
    return path
