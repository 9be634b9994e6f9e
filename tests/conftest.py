"""
Pytest configuration and fixtures for the Drip client tests.

This file provides test isolation and shared fixtures.
"""
import os
import pytest


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """
    Remove DRIP_* variables and reset the config singleton around each test.

    Keeps a developer's real credentials from leaking into tests.
    """
    for key in list(os.environ):
        if key.upper().startswith("DRIP_"):
            monkeypatch.delenv(key, raising=False)

    import config as cfg
    cfg._config = None

    yield

    cfg._config = None

    from utils.logging import clear_context
    clear_context()


@pytest.fixture
def mock_config():
    """Configuration with test credentials and default timeouts."""
    from config import DripConfig
    return DripConfig(api_key="test-key", account_id="9999999")
