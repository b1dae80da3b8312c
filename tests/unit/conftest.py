"""Unit test conftest.

This conftest is loaded by pytest for every test under tests/unit/. It
overrides fixtures from the root conftest.py to provide a mock browser
instead of a real one, enabling isolated unit testing of step definition
functions and harness modules without a browser, application or database.
"""

import pytest

from tests.unit.mocks import MockBrowserSession
from webharness.world import World


# -- Mock Fixtures --
# These fixtures override the real fixtures in the root conftest.py


@pytest.fixture
def browser() -> MockBrowserSession:
    """Mock browser session fixture."""
    return MockBrowserSession()


@pytest.fixture
def world() -> World:
    """Fresh World for each unit test."""
    return World()


# -- Override and Disable Root Autouse Fixtures --
# Unit tests never touch the application database, so the per-scenario
# reset is replaced with an empty implementation.


@pytest.fixture(scope="function", autouse=True)
def reset_fixture_store_before_scenario():
    """Override and disable the fixture store reset for unit tests."""
    yield
