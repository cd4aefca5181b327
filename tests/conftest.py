"""Shared fixtures for capture engine tests."""

import pytest

from src.config import Settings


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "smoke: mark test as smoke test (fast, critical path - included in CI)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


@pytest.fixture
def mock_env_vars(monkeypatch, tmp_path):
    """Isolate settings from the developer's environment and .env file."""
    for name in (
        "CORRELATION_WINDOW_MS",
        "EMAIL_VERIFICATION_TTL_MS",
        "PROFILE_WEAK_MIN_ENTRIES",
        "EXCLUDED_RESOURCE_TYPES",
        "MAIN_REQUEST_TYPES",
        "STRIPPED_HEADER_PREFIXES",
        "TEXT_SNIPPET_LENGTH",
        "HTML_SNIPPET_LENGTH",
        "LOG_LEVEL",
        "LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def settings(mock_env_vars):
    """Default settings."""
    return Settings()
