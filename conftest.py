"""Pytest configuration for InkSlate."""

import os

import pytest

from inkslate import config as slate_config


def pytest_configure(config):
    """Configure pytest with custom settings."""
    # Add custom markers
    config.addinivalue_line("markers", "sweep: mark test as a trash sweep test")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep SLATE_* variables from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("SLATE_"):
            monkeypatch.delenv(name)

    monkeypatch.setattr(slate_config, "_config", None)
