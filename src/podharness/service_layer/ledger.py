"""Suite-scoped ledger of provisioned resources.

Every network and container created while a suite runs is registered here
the moment it exists, so that whatever happens afterwards (a failing start, a
health check timing out, a crashing test) it is still rolled back.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


class ResourceReleaser(Protocol):
    """Anything able to tear resources down (the environment provisioner)."""

    async def teardown_network(self, network: NetworkResource) -> None:
        """Remove a network."""

    async def teardown_service(self, service: ServiceResource) -> None:
        """Remove a service's container."""


@dataclass(frozen=True)
class NetworkResource:
    """An isolated network with name resolution enabled."""

    name: str

    async def teardown(self, releaser: ResourceReleaser) -> None:
        """Remove this network through `releaser`."""
        await releaser.teardown_network(self)

    def __str__(self) -> str:
        return f"network {self.name}"


@dataclass(frozen=True)
class ServiceResource:
    """A live container attached to `network` under the alias `name`."""

    name: str
    network: NetworkResource
    container_id: str

    async def teardown(self, releaser: ResourceReleaser) -> None:
        """Remove this service's container through `releaser`."""
        await releaser.teardown_service(self)

    def __str__(self) -> str:
        return f"service {self.name} ({self.container_id[:12]})"


Resource = NetworkResource | ServiceResource


@dataclass(frozen=True)
class CleanupFailure:
    """A resource whose teardown raised, with the error it raised."""

    resource: Resource
    error: Exception


class ResourceLedger:
    """Ordered record of resources awaiting teardown.

    The ledger has a single owner, the suite currently running. Entries are
    kept in registration order; `cleanup()` drains them in reverse.
    """

    def __init__(self) -> None:
        self._resources: list[Resource] = []

    def register(self, resource: Resource) -> None:
        """Record a freshly created resource.

        Call this as soon as the backend confirms creation and before any other
        fallible step.

        Raises:
            ValueError: If a service is registered before its network.
        """
        if (
            isinstance(resource, ServiceResource)
            and resource.network not in self._resources
        ):
            raise ValueError(
                f"{resource} registered before its {resource.network}"
            )
        logger.debug("Registered %s", resource)
        self._resources.append(resource)

    async def cleanup(self, releaser: ResourceReleaser) -> list[CleanupFailure]:
        """Tear every registered resource down, newest first.

        A failing teardown is logged and collected but never stops the
        remaining ones. Nothing is retried. The ledger is empty afterwards,
        so each resource is released at most once.

        Returns:
            list[CleanupFailure]: The teardowns that raised, in attempt order.
        """
        resources, self._resources = self._resources, []
        failures: list[CleanupFailure] = []
        for resource in reversed(resources):
            try:
                await resource.teardown(releaser)
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Error freeing %s: %s", resource, exc)
                failures.append(CleanupFailure(resource, exc))
            else:
                logger.debug("Freed %s", resource)
        return failures

    @property
    def resources(self) -> tuple[Resource, ...]:
        """Snapshot of the pending resources in registration order."""
        return tuple(self._resources)

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self) -> Iterator[Resource]:
        return iter(tuple(self._resources))
