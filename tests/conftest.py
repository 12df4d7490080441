"""Pytest configuration shared across the suite."""

from typing import Iterator

import pytest

from healthvault.core.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    """Drop cached settings so environment changes in one test do not leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
