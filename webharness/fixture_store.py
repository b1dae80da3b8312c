"""Per-scenario database reset.

Before every browser scenario the application database is returned to an
empty, freshly migrated state so no scenario can observe records left behind
by an earlier one.

Two stores are provided:

    MigrationFixtureStore   runs the schema-migration reset command only
    PostgresFixtureStore    first terminates every other connection to the
                            target database (Postgres refuses to drop a
                            database that is in use), then migrates

The store is chosen once from HarnessConfig.fixture_store by
build_fixture_store(). Both commands run synchronously with their output
suppressed; a non-zero exit raises EnvironmentFault.
"""

from __future__ import annotations

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence
from urllib.parse import unquote, urlparse

from webharness.config import HarnessConfig
from webharness.errors import EnvironmentFault

logger = logging.getLogger(__name__)

MAINTENANCE_DATABASE = "postgres"

TERMINATE_CONNECTIONS_SQL = (
    "SELECT pg_terminate_backend(pg_stat_activity.pid) "
    "FROM pg_stat_activity "
    "WHERE pg_stat_activity.datname = '{database}' "
    "AND pid <> pg_backend_pid();"
)


@dataclass(frozen=True)
class DatabaseUrl:
    """The parts of a database connection string the reset needs."""

    scheme: str
    host: str
    port: Optional[int]
    user: Optional[str]
    password: Optional[str]
    name: str

    @classmethod
    def parse(cls, url: str) -> "DatabaseUrl":
        """Parse a connection string such as postgres://user:pw@host:5432/db.

        Raises:
            ValueError: If the scheme or database name is missing, or the
                port is not a number.
        """
        parsed = urlparse(url)
        if not parsed.scheme:
            raise ValueError(f"Database URL has no scheme: {url!r}")
        name = unquote(parsed.path.lstrip("/"))
        if not name:
            raise ValueError(f"Database URL has no database name: {url!r}")
        # .port raises ValueError itself for non-numeric ports
        port = parsed.port
        return cls(
            scheme=parsed.scheme,
            host=parsed.hostname or "localhost",
            port=port,
            user=unquote(parsed.username) if parsed.username else None,
            password=unquote(parsed.password) if parsed.password else None,
            name=name,
        )


def run_quietly(command: Sequence[str], env: Optional[dict] = None) -> None:
    """Run an external command to completion, discarding its output.

    Raises:
        EnvironmentFault: If the command exits non-zero.
    """
    logger.debug("Running %s", " ".join(command))
    result = subprocess.run(
        list(command),
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        env=env,
        check=False,
    )
    if result.returncode != 0:
        logger.error("'%s' exited with status %d", command[0], result.returncode)
        raise EnvironmentFault(" ".join(command), result.returncode)


class ResetFixtureStore(ABC):
    """Returns the application database to an empty, migrated baseline."""

    def __init__(self, config: HarnessConfig):
        self.config = config

    @abstractmethod
    def reset(self) -> None:
        """Reset the database. Blocks until done."""

    def _migrate(self) -> None:
        env = dict(os.environ, DATABASE_URL=self.config.database_url)
        run_quietly(self.config.migration_command, env=env)


class MigrationFixtureStore(ResetFixtureStore):
    """Resets by dropping and recreating the schema with the migration tool."""

    def reset(self) -> None:
        logger.info("Resetting database schema")
        self._migrate()


class PostgresFixtureStore(ResetFixtureStore):
    """Evicts open Postgres connections, then resets with the migration tool."""

    def __init__(self, config: HarnessConfig):
        super().__init__(config)
        self.database = DatabaseUrl.parse(config.database_url)

    def eviction_command(self) -> list[str]:
        """psql invocation terminating every other connection to the database."""
        command = ["psql", "-h", self.database.host]
        if self.database.port:
            command += ["-p", str(self.database.port)]
        if self.database.user:
            command += ["-U", self.database.user]
        command += [
            "-d",
            MAINTENANCE_DATABASE,
            "-c",
            TERMINATE_CONNECTIONS_SQL.format(database=self.database.name),
        ]
        return command

    def evict_connections(self) -> None:
        env = dict(os.environ)
        if self.database.password:
            env["PGPASSWORD"] = self.database.password
        logger.info("Terminating open connections to '%s'", self.database.name)
        run_quietly(self.eviction_command(), env=env)

    def reset(self) -> None:
        self.evict_connections()
        logger.info("Resetting database '%s'", self.database.name)
        self._migrate()


_STORES = {
    "postgres": PostgresFixtureStore,
    "migrate": MigrationFixtureStore,
}


def build_fixture_store(config: HarnessConfig) -> ResetFixtureStore:
    """Instantiate the fixture store named by config.fixture_store."""
    try:
        store_cls = _STORES[config.fixture_store]
    except KeyError:
        raise ValueError(f"Unknown fixture store '{config.fixture_store}'") from None
    return store_cls(config)
