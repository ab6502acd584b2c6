"""MySQL metric source.

This module collects the MySQL server metrics used by the ``mysql``
probe: connection usage, slow query count, detected deadlocks, sleeping
processes and the longest running statement.  Connections go through
SQLAlchemy with the PyMySQL driver.  Credentials are carried as
structured URL fields; when they are not given explicitly the driver
reads the ``[client]`` section of the MySQL defaults file instead.

Every round trip is bounded by the configured timeout.  A failure while
pinging the server is a :class:`~vigil.exceptions.ConnectivityError`;
a failure while fetching one metric is a
:class:`~vigil.exceptions.MetricFetchError` and only affects that check.
"""

from __future__ import annotations

import os
from typing import Any, Callable, Dict, Iterable, List, Optional

import sqlalchemy as sa
import structlog
from pydantic import BaseModel, SecretStr
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from ..config import (
    DEFAULT_MYSQL_DEFAULTS_FILE,
    DEFAULT_MYSQL_HOST,
    DEFAULT_MYSQL_PORT,
    DEFAULT_TIMEOUT_SECONDS,
)
from ..db.session import get_engine
from ..exceptions import ConnectivityError, InvalidObservation, MetricFetchError
from ..health.models import Observation
from ..health.rules import MYSQL_CHECKS, parse_observation
from .base import MetricSource

log = structlog.get_logger(__name__)

DEADLOCK_MARKER = "LATEST DETECTED DEADLOCK"
SLEEP_COMMAND = "Sleep"
# Process list commands that never denote a running statement: idle
# client connections, the event scheduler and replication dump threads.
# Their Time column grows with connection or server uptime.
IDLE_COMMANDS = frozenset({SLEEP_COMMAND, "Daemon", "Binlog Dump", "Binlog Dump GTID"})


class MySQLConnectionConfig(BaseModel):
    """Connection parameters for the monitored MySQL server.

    Attributes:
        host: Server host name.
        port: Server TCP port.
        user: Login user.  Only used together with ``password``.
        password: Login password.
        defaults_file: MySQL option file read for credentials when
            ``user`` and ``password`` are not both given.
        timeout: Seconds allowed for connecting and for each read/write.
    """

    host: str = DEFAULT_MYSQL_HOST
    port: int = DEFAULT_MYSQL_PORT
    user: Optional[str] = None
    password: Optional[SecretStr] = None
    defaults_file: Optional[str] = DEFAULT_MYSQL_DEFAULTS_FILE
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    class Config:
        frozen = True

    @property
    def explicit_credentials(self) -> bool:
        return bool(self.user and self.password and self.password.get_secret_value())

    def url(self) -> URL:
        """Return the structured SQLAlchemy URL for this server."""
        if self.explicit_credentials:
            return URL.create(
                "mysql+pymysql",
                username=self.user,
                password=self.password.get_secret_value(),
                host=self.host,
                port=self.port,
            )
        return URL.create("mysql+pymysql", host=self.host, port=self.port)

    def connect_args(self) -> Dict[str, Any]:
        """Return driver keyword arguments (timeouts and defaults file)."""
        args: Dict[str, Any] = {
            "connect_timeout": self.timeout,
            "read_timeout": self.timeout,
            "write_timeout": self.timeout,
        }
        if not self.explicit_credentials and self.defaults_file:
            args["read_default_file"] = os.path.expanduser(self.defaults_file)
        return args


def _describe(exc: SQLAlchemyError) -> str:
    """Return the driver-level message of a SQLAlchemy error."""
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


def _normalise(rows: Iterable[Any]) -> List[Dict[str, Any]]:
    return [{str(key).lower(): value for key, value in row._mapping.items()} for row in rows]


def status_value(rows: Iterable[Dict[str, Any]], name: str) -> str:
    """Return the value of ``name`` from SHOW STATUS/VARIABLES rows."""
    for row in rows:
        if str(row.get("variable_name", "")).lower() == name.lower():
            value = row.get("value")
            if value is None:
                break
            return str(value)
    raise InvalidObservation(f"{name} not reported")


def connection_usage(current: Any, maximum: Any) -> str:
    """Return connection usage as a percentage with two decimals.

    Raises:
        InvalidObservation: if either value is not numeric or the
            maximum is zero.
    """
    current_value = parse_observation(current)
    maximum_value = parse_observation(maximum)
    if maximum_value == 0:
        raise InvalidObservation("max_connections is zero")
    return f"{current_value / maximum_value * 100:.2f}"


def count_deadlocks(status_text: Optional[str]) -> int:
    """Count deadlock sections in the InnoDB monitor output."""
    if status_text is None:
        raise InvalidObservation("InnoDB status not reported")
    return sum(1 for line in str(status_text).splitlines() if DEADLOCK_MARKER in line)


def count_sleeping(processes: Iterable[Dict[str, Any]]) -> int:
    """Count process list rows whose command is Sleep."""
    return sum(1 for row in processes if row.get("command") == SLEEP_COMMAND)


def longest_running(processes: List[Dict[str, Any]]) -> int:
    """Return the largest Time among process list rows running a statement.

    Sleeping connections, the event scheduler and binlog dump threads
    are skipped.

    An empty process list cannot happen on a live server (the query
    itself is listed) and is treated as invalid.
    """
    if not processes:
        raise InvalidObservation("process list is empty")
    times = [
        int(parse_observation(row.get("time")))
        for row in processes
        if row.get("command") not in IDLE_COMMANDS
    ]
    return max(times, default=0)


class MySQLMetricSource(MetricSource):
    """Fetch MySQL server metrics over a single connection."""

    checks = tuple(MYSQL_CHECKS)

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._conn: Optional[Connection] = None
        self._fetchers: Dict[str, Callable[[], Observation]] = {
            "connections": self._fetch_connections,
            "slow_queries": self._fetch_slow_queries,
            "deadlocks": self._fetch_deadlocks,
            "sleeping_processes": self._fetch_sleeping_processes,
            "execution_time": self._fetch_execution_time,
        }

    @classmethod
    def from_config(cls, config: MySQLConnectionConfig) -> "MySQLMetricSource":
        engine = get_engine(config.url(), connect_args=config.connect_args())
        return cls(engine)

    def _connection(self) -> Connection:
        if self._conn is None:
            self._conn = self.engine.connect()
        return self._conn

    def _discard_connection(self) -> None:
        if self._conn is not None:
            try:
                self._conn.invalidate()
                self._conn.close()
            except SQLAlchemyError:
                log.debug("mysql_close_failed", exc_info=True)
            self._conn = None

    def ping(self) -> None:
        """Run ``SELECT 1``; raise ConnectivityError if it fails."""
        try:
            result = self._connection().execute(sa.text("SELECT 1")).scalar()
        except SQLAlchemyError as exc:
            self._discard_connection()
            log.warning("mysql_unreachable", error=_describe(exc))
            raise ConnectivityError(_describe(exc)) from exc
        if result != 1:
            raise ConnectivityError(f"unexpected ping result {result!r}")

    def query(self, statement: str) -> List[Dict[str, Any]]:
        """Execute ``statement`` and return rows as lower-cased dicts."""
        try:
            rows = self._connection().execute(sa.text(statement))
            return _normalise(rows)
        except SQLAlchemyError as exc:
            self._discard_connection()
            raise MetricFetchError(_describe(exc)) from exc

    def fetch(self, name: str) -> Observation:
        fetcher = self._fetchers.get(name)
        if fetcher is None:
            raise MetricFetchError(f"unsupported check: {name}")
        return fetcher()

    def _fetch_connections(self) -> Observation:
        maximum = status_value(self.query("SHOW VARIABLES LIKE 'max_connections'"), "max_connections")
        current = status_value(
            self.query("SHOW GLOBAL STATUS LIKE 'Threads_connected'"), "Threads_connected"
        )
        return Observation(
            value=connection_usage(current, maximum),
            details={"current": current, "maximum": maximum},
        )

    def _fetch_slow_queries(self) -> Observation:
        rows = self.query("SHOW GLOBAL STATUS LIKE 'Slow_queries'")
        return Observation(value=status_value(rows, "Slow_queries"))

    def _fetch_deadlocks(self) -> Observation:
        rows = self.query("SHOW ENGINE INNODB STATUS")
        if not rows:
            raise InvalidObservation("InnoDB status not reported")
        return Observation(value=str(count_deadlocks(rows[0].get("status"))))

    def _fetch_sleeping_processes(self) -> Observation:
        return Observation(value=str(count_sleeping(self.query("SHOW PROCESSLIST"))))

    def _fetch_execution_time(self) -> Observation:
        return Observation(value=str(longest_running(self.query("SHOW PROCESSLIST"))))

    def close(self) -> None:
        try:
            if self._conn is not None:
                self._conn.close()
            self.engine.dispose()
        except SQLAlchemyError as exc:
            log.warning("mysql_close_failed", error=_describe(exc))
        finally:
            self._conn = None
