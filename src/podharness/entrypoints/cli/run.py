"""``podharness run``: execute a test plan against a container backend.

Behavior
- TARGET is ``package.module:attribute`` naming a `TestPlan` (or a callable
  returning one).
- The backend URL comes from ``--backend-url``, then
  ``PODHARNESS_BACKEND_URL``, then ``DOCKER_HOST``. ``memory://`` runs the
  plan against the in-memory backend (a dry run, nothing is started and
  health checks are skipped).
- The report is printed on **stdout**; status lines and logs go to
  **stderr**.

Failure modes
- Missing backend URL, unresolvable target, inconsistent plan or invalid
  settings → ``ClickException`` (exit status 1) before anything is
  provisioned.
- Any failing test or aborted suite → exit status 1.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging

import click

from podharness import config
from podharness.bootstrap import build_engine
from podharness.domain.errors import ConfigurationError
from podharness.service_layer.engine import Engine

from .helpers import error, load_plan, success
from .helpers.targets import InvalidTargetError

logger = logging.getLogger(__name__)

MISSING_BACKEND_URL_MSG = (
    "No container backend configured.\n\n"
    "Pass --backend-url or set one of the variables, e.g.:\n"
    "  export PODHARNESS_BACKEND_URL='unix:///var/run/docker.sock'\n"
    "  export PODHARNESS_BACKEND_URL='unix:///run/user/1000/podman/podman.sock'"
)


async def _run_engine(engine: Engine) -> bool:
    try:
        return await engine.run()
    finally:
        await engine.aclose()


def _settings(
    log_all: bool | None, cleanup: str | None, health_timeout: float | None
) -> config.Settings:
    try:
        settings = config.Settings.from_env()
        overrides: dict[str, object] = {}
        if log_all is not None:
            overrides["log_all"] = log_all
        if cleanup is not None:
            overrides["cleanup_policy"] = config.parse_cleanup_policy(cleanup)
        if health_timeout is not None:
            overrides["health_timeout"] = health_timeout
    except config.InvalidSettingError as e:
        raise click.ClickException(str(e)) from e
    return dataclasses.replace(settings, **overrides)


@click.command()
@click.argument("target")
@click.option(
    "--backend-url",
    help=(
        "Container backend socket URL (defaults to PODHARNESS_BACKEND_URL, then "
        "DOCKER_HOST). memory:// is a dry run that skips health checks."
    ),
)
@click.option(
    "--log-all/--no-log-all",
    default=None,
    help="Also print the captured logs of passing tests in the final report.",
)
@click.option(
    "--cleanup",
    type=click.Choice(["per-suite", "per-test"], case_sensitive=False),
    default=None,
    help="Roll resources back once per suite (default) or after every test.",
)
@click.option(
    "--health-timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds a service may take to pass its health check.",
)
@click.pass_context
def run(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    ctx: click.Context,
    target: str,
    backend_url: str | None,
    log_all: bool | None,
    cleanup: str | None,
    health_timeout: float | None,
) -> None:
    """Run the test plan TARGET (MODULE:ATTRIBUTE)."""
    settings = _settings(log_all, cleanup, health_timeout)

    if not backend_url:
        try:
            backend_url = config.get_backend_url()
        except config.BackendUrlNotSetError as e:
            raise click.ClickException(MISSING_BACKEND_URL_MSG) from e

    try:
        plan = load_plan(target)
        engine = build_engine(
            backend_url, plan.applications, plan.declarations, settings=settings
        )
    except (InvalidTargetError, ConfigurationError) as e:
        raise click.ClickException(str(e)) from e

    logger.info("Running %s against %s", target, backend_url)
    if asyncio.run(_run_engine(engine)):
        success("All suites passed.")
    else:
        error("Some tests failed.")
        ctx.exit(1)
