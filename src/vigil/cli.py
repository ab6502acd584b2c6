"""Command-line interface for vigil.

This module uses the :mod:`click` library to expose the probes as
Nagios-compatible plugins.  Each probe prints exactly one verdict line
on standard output and exits with the plugin status code (0 OK,
1 WARNING, 2 CRITICAL, 3 UNKNOWN).

Two probes are provided:

* ``mysql`` samples connection usage, slow queries, deadlocks, sleeping
  processes and statement execution time from a MySQL server;
* ``memory`` compares host memory usage against warning and critical
  percentages.

Both are reachable as subcommands of the ``vigil`` group and as the
standalone ``check_mysql`` and ``check_memory`` entry points.
"""

from __future__ import annotations

import os
import sys
from typing import Optional

import click
import structlog

from . import __version__
from .config import (
    DEFAULT_MEMORY_CRITICAL,
    DEFAULT_MEMORY_UNIT,
    DEFAULT_MEMORY_WARNING,
    DEFAULT_MYSQL_DEFAULTS_FILE,
    DEFAULT_MYSQL_HOST,
    DEFAULT_MYSQL_PORT,
    DEFAULT_TIMEOUT_SECONDS,
    MEMINFO_PATH,
    PROJECT_NAME,
)
from .exceptions import ConfigurationError, ConnectivityError
from .health.report import render, render_connectivity_failure, render_usage_error
from .health.rules import memory_check_spec, mysql_check_specs, parse_threshold
from .health.runner import run_checks
from .log import setup_logging
from .sources.meminfo import MemoryMetricSource
from .sources.mysql import MySQLConnectionConfig, MySQLMetricSource

log = structlog.get_logger(__name__)


class _PluginMain:
    """Run a click command under Nagios plugin conventions.

    Usage and configuration errors print a single ``UNKNOWN:`` line and
    exit 3 instead of click's multi-line usage dump and exit 2, which a
    monitoring system would read as CRITICAL.
    """

    def main(self, args=None, prog_name=None, complete_var=None, standalone_mode=True, **extra):
        try:
            rv = super().main(
                args=args,
                prog_name=prog_name,
                complete_var=complete_var,
                standalone_mode=False,
                **extra,
            )
        except (click.ClickException, ConfigurationError) as exc:
            message = exc.format_message() if isinstance(exc, click.ClickException) else str(exc)
            line, rv = render_usage_error(message)
            click.echo(line)
        except click.Abort:
            line, rv = render_usage_error("aborted")
            click.echo(line)
        except Exception as exc:
            log.debug("unhandled_error", exc_info=True)
            line, rv = render_usage_error(f"internal error: {exc}")
            click.echo(line)
        if not standalone_mode:
            return rv
        sys.exit(rv or 0)


class PluginCommand(_PluginMain, click.Command):
    pass


class PluginGroup(_PluginMain, click.Group):
    command_class = PluginCommand


def _parse_int(name: str, raw: Optional[str], default: int) -> int:
    if raw is None or not str(raw).strip():
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        raise ConfigurationError(f"invalid {name}: {raw!r}") from None


def _parse_timeout(raw: Optional[str]) -> float:
    timeout = parse_threshold("timeout", raw, DEFAULT_TIMEOUT_SECONDS)
    if timeout <= 0:
        raise ConfigurationError(f"invalid timeout: {raw!r}")
    return timeout


def _build_mysql_source(config: MySQLConnectionConfig) -> MySQLMetricSource:
    """Construct the MySQL metric source for the CLI.

    Factored out so tests can monkeypatch it easily.
    """
    return MySQLMetricSource.from_config(config)


def _build_memory_source(path: str, unit: str) -> MemoryMetricSource:
    """Construct the memory metric source for the CLI."""
    return MemoryMetricSource(path, unit=unit)


@click.group(cls=PluginGroup, no_args_is_help=False)
@click.version_option(__version__, prog_name=PROJECT_NAME)
def cli() -> None:
    """vigil monitoring probes."""
    pass


@cli.command(name="mysql")
@click.option("--host", type=str, default=None, help=f"MySQL host (default: env MYSQL_HOST or {DEFAULT_MYSQL_HOST})")
@click.option("--port", type=str, default=None, help=f"MySQL port (default: env MYSQL_PORT or {DEFAULT_MYSQL_PORT})")
@click.option("--user", type=str, default=None, help="MySQL user (optional if using the defaults file)")
@click.option("--password", type=str, default=None, help="MySQL password (default: env MYSQL_PWD)")
@click.option(
    "--defaults-file",
    type=str,
    default=None,
    help=f"MySQL option file used when credentials are not given (default: {DEFAULT_MYSQL_DEFAULTS_FILE})",
)
@click.option(
    "--timeout",
    type=str,
    default=None,
    help=f"Seconds allowed per connection and query (default: env VIGIL_TIMEOUT or {DEFAULT_TIMEOUT_SECONDS:g})",
)
@click.option("--check-connections", is_flag=True, default=False, help="Enable checking of MySQL connections")
@click.option("--check-slow-queries", is_flag=True, default=False, help="Enable checking of slow queries")
@click.option("--check-deadlocks", is_flag=True, default=False, help="Enable checking for deadlocks")
@click.option(
    "--check-sleeping-processes", is_flag=True, default=False, help="Enable checking of sleeping processes"
)
@click.option("--check-execution-time", is_flag=True, default=False, help="Enable checking of execution time")
@click.option("--connections-threshold", type=str, default=None, help="Threshold for connections usage in percent (default: 75)")
@click.option("--slow-queries-threshold", type=str, default=None, help="Threshold for slow queries (default: 100)")
@click.option(
    "--sleeping-processes-threshold", type=str, default=None, help="Threshold for sleeping processes (default: 10)"
)
@click.option(
    "--execution-time-threshold", type=str, default=None, help="Threshold for execution time in seconds (default: 300)"
)
@click.option("--log-level", type=str, default=None, help="Log level for stderr diagnostics (default: WARNING)")
def mysql(
    host: Optional[str],
    port: Optional[str],
    user: Optional[str],
    password: Optional[str],
    defaults_file: Optional[str],
    timeout: Optional[str],
    check_connections: bool,
    check_slow_queries: bool,
    check_deadlocks: bool,
    check_sleeping_processes: bool,
    check_execution_time: bool,
    connections_threshold: Optional[str],
    slow_queries_threshold: Optional[str],
    sleeping_processes_threshold: Optional[str],
    execution_time_threshold: Optional[str],
    log_level: Optional[str],
) -> None:
    """Check the health of a MySQL server.

    The server is pinged first; if it cannot be reached the probe reports
    CRITICAL without running any check.  Otherwise every enabled check
    runs in a fixed order and the worst result decides the exit code.
    A check whose metric cannot be fetched is reported as UNKNOWN.
    """
    setup_logging(log_level)
    specs = mysql_check_specs(
        {
            "connections": check_connections,
            "slow_queries": check_slow_queries,
            "deadlocks": check_deadlocks,
            "sleeping_processes": check_sleeping_processes,
            "execution_time": check_execution_time,
        },
        {
            "connections": connections_threshold,
            "slow_queries": slow_queries_threshold,
            "sleeping_processes": sleeping_processes_threshold,
            "execution_time": execution_time_threshold,
        },
    )
    config = MySQLConnectionConfig(
        host=host or os.getenv("MYSQL_HOST") or DEFAULT_MYSQL_HOST,
        port=_parse_int("port", port or os.getenv("MYSQL_PORT"), DEFAULT_MYSQL_PORT),
        user=user or os.getenv("MYSQL_USER") or None,
        password=password or os.getenv("MYSQL_PWD") or None,
        defaults_file=defaults_file or os.getenv("MYSQL_DEFAULTS_FILE") or DEFAULT_MYSQL_DEFAULTS_FILE,
        timeout=_parse_timeout(timeout or os.getenv("VIGIL_TIMEOUT")),
    )
    source = _build_mysql_source(config)
    try:
        try:
            source.ping()
        except ConnectivityError:
            line, exit_code = render_connectivity_failure()
        else:
            line, exit_code = render(run_checks(specs, source))
    finally:
        source.close()
    click.echo(line)
    ctx = click.get_current_context()
    ctx.exit(exit_code)


@cli.command(name="memory")
@click.option("-w", "--warning", type=str, default=None, help="Warning threshold as a percentage of used memory (default: 80)")
@click.option("-c", "--critical", type=str, default=None, help="Critical threshold as a percentage of used memory (default: 90)")
@click.option(
    "-u",
    "--unit",
    type=str,
    default=DEFAULT_MEMORY_UNIT,
    help=f"Unit to use for output (b, K, M, G). Default: {DEFAULT_MEMORY_UNIT}",
)
@click.option(
    "--meminfo",
    "meminfo_path",
    type=str,
    default=None,
    help=f"Memory information file (default: env VIGIL_MEMINFO or {MEMINFO_PATH})",
)
@click.option("--log-level", type=str, default=None, help="Log level for stderr diagnostics (default: WARNING)")
def memory(
    warning: Optional[str],
    critical: Optional[str],
    unit: str,
    meminfo_path: Optional[str],
    log_level: Optional[str],
) -> None:
    """Check host memory usage against warning and critical thresholds.

    Usage at or above the critical percentage is CRITICAL, at or above
    the warning percentage is WARNING, anything lower is OK.
    """
    setup_logging(log_level)
    spec = memory_check_spec(
        parse_threshold("warning", warning, DEFAULT_MEMORY_WARNING),
        parse_threshold("critical", critical, DEFAULT_MEMORY_CRITICAL),
        unit,
    )
    source = _build_memory_source(meminfo_path or os.getenv("VIGIL_MEMINFO") or MEMINFO_PATH, unit)
    try:
        line, exit_code = render(run_checks([spec], source))
    finally:
        source.close()
    click.echo(line)
    ctx = click.get_current_context()
    ctx.exit(exit_code)
