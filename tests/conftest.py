"""Shared fixtures for the signal room tests."""

import pytest
from backend import RoomRegistry
from helpers import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> RoomRegistry:
    # Short grace period so timer tests finish quickly
    return RoomRegistry(grace_period=0.05, clock=clock)
