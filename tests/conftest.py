"""Pytest configuration and shared fixtures."""

import logfire
import pytest

from worklink.core.config import settings


@pytest.fixture(scope="session", autouse=True)
def _configure_logfire_for_tests():
    """Keep spans local: nothing is exported and nothing is printed."""
    logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture(autouse=True)
def _no_openrouter_key(monkeypatch):
    """Never reach a real model from tests unless a test opts in."""
    monkeypatch.setattr(settings, "openrouter_api_key", None)
