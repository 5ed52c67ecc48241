"""Pytest configuration for shared package tests."""

import pytest

from voicecanvas_shared.config import refresh_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings so each test sees its own environment."""
    refresh_settings()
    yield
    refresh_settings()
