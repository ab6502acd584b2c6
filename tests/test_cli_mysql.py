"""Tests for the mysql probe command."""

from __future__ import annotations

from typing import Dict, List

import pytest
from click.testing import CliRunner

from vigil.cli import cli, mysql
from vigil.exceptions import ConnectivityError, MetricFetchError
from vigil.health.models import Observation
from vigil.sources.base import MetricSource


class FakeMySQL(MetricSource):
    """Stand-in for the MySQL source that records how it was used."""

    def __init__(self, values: Dict[str, object], reachable: bool = True) -> None:
        self.values = values
        self.reachable = reachable
        self.fetched: List[str] = []
        self.closed = False

    def ping(self) -> None:
        if not self.reachable:
            raise ConnectivityError("(2003, \"Can't connect to MySQL server on 'db1'\")")

    def fetch(self, name: str) -> Observation:
        self.fetched.append(name)
        value = self.values[name]
        if isinstance(value, Exception):
            raise value
        return Observation(value=str(value))

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def quiet(monkeypatch: pytest.MonkeyPatch) -> None:
    """Silence stderr diagnostics so output holds only the verdict."""
    monkeypatch.setenv("VIGIL_LOG_LEVEL", "CRITICAL")


def _install(monkeypatch: pytest.MonkeyPatch, source: FakeMySQL) -> list:
    configs: list = []

    def build(config):
        configs.append(config)
        return source

    monkeypatch.setattr("vigil.cli._build_mysql_source", build)
    return configs


def test_connections_warning(monkeypatch, quiet) -> None:
    """Connection usage above the threshold exits 1 with the expected line."""
    source = FakeMySQL({"connections": "80.00"})
    _install(monkeypatch, source)
    result = CliRunner().invoke(cli, ["mysql", "--check-connections", "--connections-threshold", "75"])
    assert result.exit_code == 1, result.output
    assert result.output == "WARNING: CONNECTIONS:80.00:WARNING\n"
    assert source.closed


def test_deadlocks_critical(monkeypatch, quiet) -> None:
    """A detected deadlock exits 2 even with a zero threshold elsewhere."""
    _install(monkeypatch, FakeMySQL({"deadlocks": 1, "slow_queries": 0}))
    result = CliRunner().invoke(
        cli, ["mysql", "--check-slow-queries", "--check-deadlocks", "--slow-queries-threshold", "0"]
    )
    assert result.exit_code == 2, result.output
    assert result.output.strip() == "CRITICAL: SLOW_QUERIES:0:OK, DEADLOCKS:1:CRITICAL"


def test_no_checks_selected(monkeypatch, quiet) -> None:
    """With no checks enabled the probe prints the bare OK line."""
    source = FakeMySQL({})
    _install(monkeypatch, source)
    result = CliRunner().invoke(cli, ["mysql"])
    assert result.exit_code == 0, result.output
    assert result.output == "OK: \n"
    assert source.fetched == []


def test_unreachable_server_fast_fails(monkeypatch, quiet) -> None:
    """An unreachable server is CRITICAL and no check is run."""
    source = FakeMySQL({"connections": "1.00"}, reachable=False)
    _install(monkeypatch, source)
    result = CliRunner().invoke(cli, ["mysql", "--check-connections"])
    assert result.exit_code == 2, result.output
    assert result.output == "CRITICAL: Cannot connect to MySQL.\n"
    assert source.fetched == []
    assert source.closed


def test_fetch_failure_is_unknown(monkeypatch, quiet) -> None:
    """A check that cannot be fetched makes the run UNKNOWN."""
    _install(
        monkeypatch,
        FakeMySQL({"slow_queries": 500, "execution_time": MetricFetchError("timed out")}),
    )
    result = CliRunner().invoke(cli, ["mysql", "--check-execution-time", "--check-slow-queries"])
    assert result.exit_code == 3, result.output
    assert result.output.strip() == "UNKNOWN: SLOW_QUERIES:500:WARNING, EXECUTION_TIME:UNKNOWN:timed out"


def test_bad_threshold_is_usage_error(monkeypatch, quiet) -> None:
    """A non-numeric threshold exits 3 before connecting."""
    configs = _install(monkeypatch, FakeMySQL({}))
    result = CliRunner().invoke(cli, ["mysql", "--check-slow-queries", "--slow-queries-threshold", "many"])
    assert result.exit_code == 3, result.output
    assert result.output.startswith("UNKNOWN: invalid slow-queries threshold")
    assert configs == []


def test_unknown_option_is_usage_error(monkeypatch, quiet) -> None:
    """Unknown flags exit 3 with a single UNKNOWN line, not click's exit 2."""
    _install(monkeypatch, FakeMySQL({}))
    result = CliRunner().invoke(cli, ["mysql", "--check-everything"])
    assert result.exit_code == 3
    assert result.output.startswith("UNKNOWN: ")
    assert len(result.output.strip().splitlines()) == 1


def test_connection_settings_from_flags(monkeypatch, quiet) -> None:
    """Host, port, credentials and timeout flow into the connection config."""
    configs = _install(monkeypatch, FakeMySQL({}))
    result = CliRunner().invoke(
        cli,
        [
            "mysql",
            "--host",
            "db1",
            "--port",
            "3307",
            "--user",
            "nagios",
            "--password",
            "pw",
            "--timeout",
            "3",
        ],
    )
    assert result.exit_code == 0, result.output
    config = configs[0]
    assert (config.host, config.port, config.user, config.timeout) == ("db1", 3307, "nagios", 3.0)
    assert config.password.get_secret_value() == "pw"
    assert config.explicit_credentials


def test_connection_settings_from_environment(monkeypatch, quiet) -> None:
    """Environment variables fill in settings not given as flags."""
    monkeypatch.setenv("MYSQL_HOST", "db2")
    monkeypatch.setenv("MYSQL_PORT", "3310")
    monkeypatch.setenv("MYSQL_PWD", "envpw")
    monkeypatch.delenv("MYSQL_USER", raising=False)
    configs = _install(monkeypatch, FakeMySQL({}))
    result = CliRunner().invoke(cli, ["mysql"])
    assert result.exit_code == 0, result.output
    config = configs[0]
    assert (config.host, config.port) == ("db2", 3310)
    assert not config.explicit_credentials


@pytest.mark.parametrize("args", [["--port", "mysql"], ["--timeout", "0"], ["--timeout", "soon"]])
def test_bad_connection_settings(monkeypatch, quiet, args) -> None:
    """Malformed port or timeout values are configuration errors."""
    _install(monkeypatch, FakeMySQL({}))
    result = CliRunner().invoke(cli, ["mysql", *args])
    assert result.exit_code == 3, result.output
    assert result.output.startswith("UNKNOWN: invalid")


def test_standalone_entry_point(monkeypatch, quiet) -> None:
    """The check_mysql entry point behaves like the subcommand."""
    _install(monkeypatch, FakeMySQL({"sleeping_processes": 11}))
    result = CliRunner().invoke(mysql, ["--check-sleeping-processes"])
    assert result.exit_code == 1, result.output
    assert result.output == "WARNING: SLEEPING_PROCESSES:11:WARNING\n"


def test_missing_subcommand(quiet) -> None:
    """Invoking the group without a probe is a usage error."""
    result = CliRunner().invoke(cli, [])
    assert result.exit_code == 3
    assert result.output.startswith("UNKNOWN: ")


def test_verdict_survives_close_failure(monkeypatch, quiet) -> None:
    """A connection that fails to close does not replace the computed verdict."""
    import sqlalchemy as sa

    from vigil.sources.mysql import MySQLMetricSource

    source = MySQLMetricSource(sa.create_engine("sqlite:///:memory:"))
    monkeypatch.setattr(source, "fetch", lambda name: Observation(value="1"))

    def broken_dispose() -> None:
        raise sa.exc.OperationalError("dispose", {}, Exception("gone away"))

    monkeypatch.setattr(source.engine, "dispose", broken_dispose)
    monkeypatch.setattr("vigil.cli._build_mysql_source", lambda config: source)
    result = CliRunner().invoke(cli, ["mysql", "--check-deadlocks"])
    assert result.exit_code == 2, result.output
    assert result.output == "CRITICAL: DEADLOCKS:1:CRITICAL\n"
