"""Shared fixtures for the poolsuite-cli test suite."""

import pytest
from loguru import logger

from helpers import make_track
from poolsuite_cli.domain.catalogue.models import Track


@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep loguru output out of test runs."""
    logger.remove()
    yield


@pytest.fixture
def tracks() -> list[Track]:
    """Two tracks: A (180s) and B (200s)."""
    return [make_track(1, "A", 180_000), make_track(2, "B", 200_000)]
