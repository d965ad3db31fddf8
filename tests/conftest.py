"""Fixtures for the delivery engine tests."""

import pytest

from fakes import FakeClock, ManualTimer


@pytest.fixture
def manual_timer():
    return ManualTimer()


@pytest.fixture
def fake_clock():
    return FakeClock()
