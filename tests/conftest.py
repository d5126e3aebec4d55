# tests/conftest.py
import os

import pytest

from celine.datamodel.core.config import get_settings


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    """Every test starts from built-in settings; DATAMODEL_* overrides are per test."""
    for key in list(os.environ):
        if key.startswith("DATAMODEL_"):
            monkeypatch.delenv(key)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
