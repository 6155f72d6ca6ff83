"""Shared fixtures for citycheck tests."""

from __future__ import annotations

import pytest
from helpers import SQUARE_A, SQUARE_B, TRIANGLE_C
from sqlalchemy import create_engine

from citycheck.config import get_settings
from citycheck.database import Base
from citycheck.registry import RegionRegistry
from citycheck.sinks import MemorySink


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; start every test from the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def registry() -> RegionRegistry:
    """Registry with regions A (1), B (2) and C (3)."""
    return RegionRegistry.build(
        [
            (1, "Alpha", SQUARE_A),
            (2, "Beta", SQUARE_B),
            (3, "Gamma", TRIANGLE_C),
        ]
    )


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def engine():
    """In-memory SQLite database with the bot tables created."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()
