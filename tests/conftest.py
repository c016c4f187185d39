"""Shared fixtures for branded tests."""

import pytest

from branded.config import CONFIG_ENV_VAR, reset_settings


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    """Every test starts from default settings, whatever the environment says."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    reset_settings()
    yield
    reset_settings()
