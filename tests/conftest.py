"""Shared pytest configuration and fixtures."""

import pytest

from pdf_qa.config import settings


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


@pytest.fixture(autouse=True)
def _fast_external_calls(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep retry backoff out of the unit tests."""
    monkeypatch.setattr(settings, "external_backoff_seconds", 0.0)
    monkeypatch.setattr(settings, "external_timeout_seconds", 5.0)
