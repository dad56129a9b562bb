"""Wire a backend, a provisioner and a reporter into an `Engine`."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from podharness.adapters.backend import DockerBackend, MemoryBackend
from podharness.adapters.naming import ULIDNameGenerator
from podharness.config import Settings
from podharness.service_layer.engine import Engine
from podharness.service_layer.provisioner import EnvironmentProvisioner
from podharness.service_layer.registry import build_suites
from podharness.service_layer.reporter import Reporter

if TYPE_CHECKING:
    from rich.console import Console

    from podharness.domain.model import ApplicationConfig, TestDeclaration
    from podharness.interfaces.backend import ContainerBackend

MEMORY_SCHEME = "memory://"


def build_backend(url: str) -> ContainerBackend:
    """Pick the backend for `url`: ``memory://`` is the in-memory dry-run backend."""
    if url.startswith(MEMORY_SCHEME):
        return MemoryBackend()
    return DockerBackend(url)


def build_provisioner(
    backend: ContainerBackend, settings: Settings | None = None
) -> EnvironmentProvisioner:
    """Build a provisioner using ULID network names and `settings`' health tunables.

    Health checks are skipped on the in-memory backend, whose addresses
    nothing listens on.
    """
    settings = settings or Settings()
    return EnvironmentProvisioner(
        backend,
        ULIDNameGenerator(),
        health_timeout=settings.health_timeout,
        health_interval=settings.health_interval,
        check_health=not isinstance(backend, MemoryBackend),
    )


def build_engine(  # pylint: disable=too-many-arguments
    backend_url: str,
    applications: Iterable[ApplicationConfig],
    declarations: Iterable[TestDeclaration],
    *,
    settings: Settings | None = None,
    backend: ContainerBackend | None = None,
    console: Console | None = None,
) -> Engine:
    """Build an engine for the backend listening at `backend_url`.

    Declarations are validated against the applications before the backend
    is built, so a misconfiguration never reaches the daemon.

    Args:
        backend_url: Docker or Podman socket URL, or ``memory://``.
        applications: Application topologies.
        declarations: Tests to run.
        settings: Run settings; defaults when omitted.
        backend: Use this backend instead of the one `backend_url` selects.
        console: Console the reporter prints to.

    Raises:
        ConfigurationError: If a declaration targets an unknown application.
    """
    settings = settings or Settings()
    applications = tuple(applications)
    declarations = tuple(declarations)
    # Engine repeats this; called here so it raises before any backend exists
    build_suites(applications, declarations)

    backend = backend or build_backend(backend_url)
    return Engine(
        applications,
        declarations,
        build_provisioner(backend, settings),
        reporter=Reporter(console, log_all=settings.log_all),
        cleanup_policy=settings.cleanup_policy,
    )
