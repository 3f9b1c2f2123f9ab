"""Pytest configuration for all tests."""

import pytest
import structlog

from ruleval.core.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Make every test load settings from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def data_source():
    """A representative environment of nested records."""
    return {
        "str": "abc123",
        "it": 123432423,
        "ft": 1.2345,
        "it2": 2,
        "bl": True,
        "arrary": ["0a", "1b"],
        "mp": {
            "ma": -12232,
            "mb": -0.121231,
            "mc": "xxx",
            "md": [1, 2, 3],
            "ms": "12abc789_==+and m",
        },
    }


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo logging configuration done by a test."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
