"""Pytest configuration for ShadowSpec."""
import os

import pytest

from shadowspec.config import set_config


def pytest_configure():
    # Verbose inference logs when a test fails.
    os.environ.setdefault("SHADOWSPEC_DEBUG", "true")


@pytest.fixture(autouse=True)
def _fresh_config():
    """Every test reads configuration from its own environment."""
    set_config(None)
    yield
    set_config(None)
