"""Handles given to test functions on a provisioned environment."""

from __future__ import annotations

import ipaddress
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .ledger import NetworkResource, ServiceResource
    from .provisioner import EnvironmentProvisioner

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


class Service:
    """A running service of the environment under test."""

    def __init__(
        self, resource: ServiceResource, provisioner: EnvironmentProvisioner
    ) -> None:
        self.resource = resource
        self._provisioner = provisioner

    @property
    def name(self) -> str:
        """Service name, also its DNS alias on the test network."""
        return self.resource.name

    @property
    def container_id(self) -> str:
        """Backend identifier of the service's container."""
        return self.resource.container_id

    async def ip(self) -> IPAddress:
        """Retrieve the IP address of this service on the test network."""
        return await self._provisioner.get_address(self.resource)

    async def disconnect(self) -> None:
        """Disconnect this service from the network."""
        await self._provisioner.set_connected(self.resource, False)

    async def connect(self) -> None:
        """Connect this service back to its network."""
        await self._provisioner.set_connected(self.resource, True)

    async def pause(self) -> None:
        """Pause the service."""
        await self._provisioner.set_paused(self.resource, True)

    async def unpause(self) -> None:
        """Unpause the service."""
        await self._provisioner.set_paused(self.resource, False)

    def __repr__(self) -> str:
        return f"Service(name={self.name!r}, container_id={self.container_id[:12]!r})"


class Environment(Mapping[str, Service]):
    """A fully started application: one network and every declared service.

    Behaves as a read-only mapping from service name to `Service`.
    """

    def __init__(
        self, app: str, network: NetworkResource, services: Mapping[str, Service]
    ) -> None:
        self.app = app
        self.network = network
        self._services = dict(services)

    def service(self, name: str) -> Service | None:
        """Look a service up by name, ``None`` if the application has no such service."""
        return self._services.get(name)

    def __getitem__(self, name: str) -> Service:
        return self._services[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._services)

    def __len__(self) -> int:
        return len(self._services)

    def __repr__(self) -> str:
        return f"Environment(app={self.app!r}, services={list(self._services)!r})"
