"""Harness configuration.

A HarnessConfig is built once per test run, from environment variables and
pytest command-line options, and handed to every fixture that needs it.
It is frozen: nothing reassigns it mid-run.

Environment variables:
    BASE_URL                Application under test (must already be running)
    DATABASE_URL            Connection string used by the fixture store reset
    FIXTURE_STORE           "postgres" or "migrate"
    MIGRATION_COMMAND       Schema reset command (default "diesel database reset")
    BROWSER_DRIVER          "headless_chrome" or "headless_firefox"
    WAIT_TIMEOUT            Seconds to wait for elements to appear
    IGNORE_HIDDEN_ELEMENTS  "1"/"true" to exclude hidden elements from queries
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional
from urllib.parse import urlparse

DEFAULT_BASE_URL = "http://localhost:8000/"
DEFAULT_DATABASE_URL = "postgres://rustodon@localhost/rustodon"
DEFAULT_MIGRATION_COMMAND = "diesel database reset"

BROWSER_DRIVERS = ("headless_chrome", "headless_firefox")
FIXTURE_STORES = ("postgres", "migrate")

# Engines that keep connections open and refuse to drop a database in use
_EVICTING_SCHEMES = ("postgres", "postgresql")


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def fixture_store_for_url(database_url: str) -> str:
    """Return the fixture store kind suited to a database URL."""
    scheme = urlparse(database_url).scheme
    return "postgres" if scheme in _EVICTING_SCHEMES else "migrate"


@dataclass(frozen=True)
class HarnessConfig:
    """Process-wide settings for browser scenarios."""

    base_url: str = DEFAULT_BASE_URL
    database_url: str = DEFAULT_DATABASE_URL
    fixture_store: str = "postgres"
    migration_command: tuple[str, ...] = field(
        default_factory=lambda: tuple(shlex.split(DEFAULT_MIGRATION_COMMAND))
    )
    browser_driver: str = "headless_chrome"
    wait_timeout: float = 2.0
    ignore_hidden_elements: bool = False

    def __post_init__(self):
        if self.browser_driver not in BROWSER_DRIVERS:
            raise ValueError(
                f"Unknown browser driver '{self.browser_driver}' "
                f"(expected one of {', '.join(BROWSER_DRIVERS)})"
            )
        if self.fixture_store not in FIXTURE_STORES:
            raise ValueError(
                f"Unknown fixture store '{self.fixture_store}' "
                f"(expected one of {', '.join(FIXTURE_STORES)})"
            )
        if not self.migration_command:
            raise ValueError("Migration command must not be empty")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HarnessConfig":
        """Build the configuration from environment variables.

        When FIXTURE_STORE is not set, the store kind is derived from the
        DATABASE_URL scheme here, once, so the reset itself never has to
        inspect the connection string to decide what to run.
        """
        env = os.environ if environ is None else environ
        database_url = env.get("DATABASE_URL", DEFAULT_DATABASE_URL)
        return cls(
            base_url=env.get("BASE_URL", DEFAULT_BASE_URL),
            database_url=database_url,
            fixture_store=env.get("FIXTURE_STORE") or fixture_store_for_url(database_url),
            migration_command=tuple(
                shlex.split(env.get("MIGRATION_COMMAND", DEFAULT_MIGRATION_COMMAND))
            ),
            browser_driver=env.get("BROWSER_DRIVER", "headless_chrome"),
            wait_timeout=float(env.get("WAIT_TIMEOUT", "2")),
            ignore_hidden_elements=_as_bool(env.get("IGNORE_HIDDEN_ELEMENTS", "")),
        )

    def with_overrides(self, **overrides) -> "HarnessConfig":
        """Return a copy with the given non-None values replaced."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self

    def url_for(self, path: str) -> str:
        """Join a site-relative path onto the base URL."""
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")
