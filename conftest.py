"""Root conftest.py - Register step definitions and harness fixtures for pytest-bdd.

Browser scenarios (feature files tagged @browser) drive a real browser
against an already running Rustodon instance and reset its database before
every scenario. They only run with --run-browser; otherwise they are skipped
at collection time.
"""

from pathlib import Path
from typing import Iterator

import pytest
from selenium.webdriver.remote.webdriver import WebDriver

from webharness.browser import BrowserSession, create_driver
from webharness.config import BROWSER_DRIVERS, HarnessConfig
from webharness.errors import EnvironmentFault
from webharness.fixture_store import ResetFixtureStore, build_fixture_store
from webharness.world import World

STEP_DEFS_DIR = Path(__file__).parent / "tests" / "step_defs"

# Load every step definition module as a plugin so pytest-bdd can discover
# its steps from any test module
pytest_plugins = [
    f"tests.step_defs.{step_file.stem}"
    for step_file in sorted(STEP_DEFS_DIR.glob("*_steps.py"))
]


def pytest_addoption(parser):
    group = parser.getgroup("webharness", "Rustodon feature tests")
    group.addoption(
        "--run-browser",
        action="store_true",
        default=False,
        help="Run @browser scenarios against a live application",
    )
    group.addoption(
        "--app-url",
        default=None,
        help="Base URL of the application under test (overrides BASE_URL)",
    )
    group.addoption(
        "--browser-driver",
        default=None,
        choices=BROWSER_DRIVERS,
        help="Browser driver to use (overrides BROWSER_DRIVER)",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-browser"):
        return
    skip_browser = pytest.mark.skip(reason="browser scenarios need --run-browser")
    for item in items:
        if "browser" in item.keywords:
            item.add_marker(skip_browser)


@pytest.fixture(scope="session")
def harness_config(pytestconfig) -> HarnessConfig:
    """Configuration for the whole run, built once.

    Invalid settings stop the run with exit status 1 instead of erroring
    every scenario in turn.
    """
    try:
        return HarnessConfig.from_env().with_overrides(
            base_url=pytestconfig.getoption("--app-url"),
            browser_driver=pytestconfig.getoption("--browser-driver"),
        )
    except ValueError as e:
        pytest.exit(f"Invalid harness configuration: {e}", returncode=1)


@pytest.fixture(scope="session")
def fixture_store(harness_config: HarnessConfig) -> ResetFixtureStore:
    try:
        return build_fixture_store(harness_config)
    except ValueError as e:
        pytest.exit(f"Invalid fixture store configuration: {e}", returncode=1)


@pytest.fixture(scope="session")
def driver(harness_config: HarnessConfig) -> Iterator[WebDriver]:
    """Headless browser shared by every scenario in the run."""
    web_driver = create_driver(harness_config)
    yield web_driver
    web_driver.quit()


@pytest.fixture
def browser(driver: WebDriver, harness_config: HarnessConfig) -> Iterator[BrowserSession]:
    """Browser session for one scenario; signed out again afterwards."""
    session = BrowserSession(driver, harness_config)
    yield session
    session.reset()


@pytest.fixture
def world() -> World:
    """Fresh assertion context for each scenario."""
    return World()


@pytest.fixture(scope="function", autouse=True)
def reset_fixture_store_before_scenario(fixture_store: ResetFixtureStore):
    """Reset the application database before every scenario.

    A failed reset leaves the environment in an unknown state, so the whole
    run is stopped with exit status 1 rather than failing one scenario.
    """
    try:
        fixture_store.reset()
    except EnvironmentFault as e:
        pytest.exit(f"Fixture store reset failed: {e}", returncode=1)
    yield
