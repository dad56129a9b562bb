"""Fixtures for end-to-end CLI tests.

Provides a CliRunner, an isolated filesystem, a clean backend environment,
and a test-only `log-demo` command that exercises the logging setup of the
top-level group without touching a backend.
"""

import logging

import click
import pytest
from click.testing import CliRunner

from podharness.entrypoints.cli.main import podharness

# pylint: disable=redefined-outer-name


@click.command()
def log_demo():
    """Emit one message per level on a podharness logger and a foreign one."""
    logger = logging.getLogger("podharness.demo")
    logger.debug("demo debug message")
    logger.info("demo info message")
    logger.warning("demo warning message")
    logger.error("demo error message")
    foreign = logging.getLogger("docker.api")
    foreign.debug("foreign debug message")
    foreign.info("foreign info message")
    logger.debug("demo final debug message")


def _remove_command_everywhere(group, name: str) -> None:
    """Remove a command from a Click group and its internal sections."""
    group.commands.pop(name, None)
    if hasattr(group, "_default_section"):
        group._default_section.commands.pop(name, None)  # pylint: disable=protected-access
    for sec in getattr(group, "_sections", []):
        getattr(sec, "commands", {}).pop(name, None)


@pytest.fixture
def registered_log_demo():
    """Register the 'log-demo' command for the duration of a test."""
    podharness.add_command(log_demo, name="log-demo")
    try:
        yield
    finally:
        _remove_command_everywhere(podharness, "log-demo")


@pytest.fixture
def runner():
    """Return a Click CliRunner for invoking CLI commands in tests."""
    return CliRunner()


@pytest.fixture
def fs(runner):
    """Run the test inside an isolated filesystem."""
    with runner.isolated_filesystem():
        yield


@pytest.fixture
def no_backend_env(monkeypatch):
    """Clear every variable that could name a backend or tweak the run."""
    for var in (
        "PODHARNESS_BACKEND_URL",
        "DOCKER_HOST",
        "PODHARNESS_HEALTH_TIMEOUT",
        "PODHARNESS_HEALTH_INTERVAL",
        "PODHARNESS_CLEANUP_POLICY",
        "PODHARNESS_LOG_ALL",
    ):
        monkeypatch.delenv(var, raising=False)
