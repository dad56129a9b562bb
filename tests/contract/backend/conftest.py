"""Pytest fixtures for ContainerBackend contract tests.

Provided fixtures
-----------------
- **backend**: Parametrized over every `ContainerBackend` implementation.
  ``memory`` always runs; ``docker`` talks to the daemon named by
  ``DOCKER_HOST`` and is skipped when none is reachable.
- **network**: A fresh, uniquely named network on `backend`, removed (with
  anything still attached) after the test.
- **image**: An image whose containers keep running until removed.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from podharness.adapters.backend import DockerBackend, MemoryBackend
from podharness.adapters.naming import ULIDNameGenerator
from podharness.interfaces.backend import BackendError, ContainerBackend

# pylint: disable=redefined-outer-name

NAMES = ULIDNameGenerator(prefix="podharness-contract")


@pytest.fixture(params=["memory", "docker"])
async def backend(request: pytest.FixtureRequest) -> AsyncIterator[ContainerBackend]:
    """Return a fresh backend of the requested kind."""
    match request.param:
        case "memory":
            instance: ContainerBackend = MemoryBackend()
        case "docker":
            instance = DockerBackend(request.getfixturevalue("docker_url"))
        case _:
            raise ValueError(f"unknown backend type: {request.param}")
    try:
        yield instance
    finally:
        await instance.close()


@pytest.fixture
def image() -> str:
    """Long-running image used for containers."""
    return "redis:7-alpine"


@pytest.fixture
async def network(backend: ContainerBackend) -> AsyncIterator[str]:
    """Create a uniquely named network and remove it after the test."""
    name = NAMES.new_name()
    await backend.create_network(name)
    try:
        yield name
    finally:
        try:
            await backend.remove_network(name)
        except BackendError as exc:
            if exc.status_code != 404:
                raise
