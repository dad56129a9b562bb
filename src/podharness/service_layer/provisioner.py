"""Environment provisioning on top of a `ContainerBackend`.

The provisioner turns application blueprints into live networks and
containers, registering each resource into the caller's ledger the moment it
exists. It also implements the runtime controls exposed to tests (address
lookup, network partitions, pausing) and the per-service log streams.
"""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import ipaddress
import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

import httpx

from podharness.domain.errors import UnhealthyServiceError
from podharness.domain.model import LogLine
from podharness.interfaces.backend import BackendError

from .environment import Environment, IPAddress, Service
from .ledger import NetworkResource, ServiceResource

if TYPE_CHECKING:
    from podharness.domain.model import ApplicationConfig, HealthCheck, ServiceConfig
    from podharness.interfaces.backend import ContainerBackend
    from podharness.interfaces.naming import NameGenerator

    from .ledger import ResourceLedger

logger = logging.getLogger(__name__)

DEFAULT_HEALTH_TIMEOUT = 30.0
DEFAULT_HEALTH_INTERVAL = 0.5
HEALTH_REQUEST_TIMEOUT = 5.0


class EnvironmentProvisioner:
    """Creates, controls and destroys test environments.

    Args:
        backend: Container backend every call is issued against.
        names: Generator of unique network names.
        health_timeout: Seconds a service may take to answer its health check.
        health_interval: Seconds between two health check attempts.
        http_transport: Optional `httpx` transport used for health checks.
        check_health: When false, configured health checks are skipped; used
            with backends whose containers never run a real process.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        backend: ContainerBackend,
        names: NameGenerator,
        *,
        health_timeout: float = DEFAULT_HEALTH_TIMEOUT,
        health_interval: float = DEFAULT_HEALTH_INTERVAL,
        http_transport: httpx.AsyncBaseTransport | None = None,
        check_health: bool = True,
    ) -> None:
        self.backend = backend
        self._names = names
        self._health_timeout = health_timeout
        self._health_interval = health_interval
        self._http_transport = http_transport
        self._check_health = check_health

    # --- Provisioning ---

    async def create_network(self, ledger: ResourceLedger) -> NetworkResource:
        """Create an isolated network with a fresh name and register it."""
        name = self._names.new_name()
        await self.backend.create_network(name, dns_enabled=True)
        network = NetworkResource(name)
        ledger.register(network)
        logger.debug("Created %s", network)
        return network

    async def create_service(
        self, config: ServiceConfig, network: NetworkResource, ledger: ResourceLedger
    ) -> ServiceResource:
        """Create and start the container for `config` on `network`.

        The container is registered right after creation, so a failing start
        or health check still leaves it in the ledger for rollback.
        """
        container_id = await self.backend.create_container(
            config.image, env=config.env, network=network.name, aliases=[config.name]
        )
        service = ServiceResource(config.name, network, container_id)
        ledger.register(service)
        await self.backend.start_container(container_id)
        logger.debug("Started %s from image %s", service, config.image)
        if config.health is not None:
            if self._check_health:
                await self.wait_healthy(service, config.health)
            else:
                logger.debug("Skipping health check of %s", service)
        return service

    async def instantiate(
        self, app: ApplicationConfig, ledger: ResourceLedger
    ) -> Environment:
        """Bring up a complete environment for `app`.

        The network comes first, then every service in declared order. The
        environment is only returned once all of them are started (and
        healthy, where a health check is configured).
        """
        network = await self.create_network(ledger)
        services: dict[str, Service] = {}
        for config in app.services:
            resource = await self.create_service(config, network, ledger)
            services[config.name] = Service(resource, self)
        logger.info(
            "Provisioned %s on %s with %d service(s)", app.name, network, len(services)
        )
        return Environment(app.name, network, services)

    async def wait_healthy(self, service: ServiceResource, check: HealthCheck) -> None:
        """Poll the service's health route until it answers with a 2xx status.

        Transport errors are retried until the deadline; any other failure
        of the request aborts the wait at once.

        Raises:
            UnhealthyServiceError: If no successful answer arrives in time, or
                the request cannot be issued at all.
        """
        url = check.url(str(await self.get_address(service)))
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._health_timeout
        async with httpx.AsyncClient(
            transport=self._http_transport, timeout=HEALTH_REQUEST_TIMEOUT
        ) as client:
            while True:
                try:
                    response = await client.get(url)
                except httpx.HTTPError as exc:
                    logger.debug("Health check %s not ready: %s", url, exc)
                except Exception as exc:  # pylint: disable=broad-except
                    raise UnhealthyServiceError(
                        service.name, url, self._health_timeout, reason=repr(exc)
                    ) from exc
                else:
                    if response.is_success:
                        logger.debug("Service %s healthy at %s", service.name, url)
                        return
                    logger.debug(
                        "Health check %s answered %s", url, response.status_code
                    )
                if loop.time() >= deadline:
                    raise UnhealthyServiceError(service.name, url, self._health_timeout)
                await asyncio.sleep(self._health_interval)

    # --- Teardown ---

    async def teardown_network(self, network: NetworkResource) -> None:
        """Remove a network; the backend also removes containers still attached."""
        await self.backend.remove_network(network.name)

    async def teardown_service(self, service: ServiceResource) -> None:
        """Force-remove a service's container without waiting for a clean stop."""
        await self.backend.remove_container(service.container_id, force=True, timeout=0)

    # --- Runtime controls ---

    async def get_address(self, service: ServiceResource) -> IPAddress:
        """Return the service's address on its network.

        Raises:
            BackendError: If the container metadata has no usable address for
                the network.
        """
        meta = await self.backend.inspect_container(service.container_id)
        try:
            raw = meta["NetworkSettings"]["Networks"][service.network.name]["IPAddress"]
            return ipaddress.ip_address(raw)
        except (KeyError, TypeError, ValueError) as exc:
            raise BackendError(
                f"invalid network metadata for {service} on {service.network}"
            ) from exc

    async def set_connected(self, service: ServiceResource, connected: bool) -> None:
        """Attach or detach a running service from its network."""
        if connected:
            await self.backend.connect_container(
                service.container_id, service.network.name, aliases=[service.name]
            )
        else:
            await self.backend.disconnect_container(
                service.container_id, service.network.name, force=True
            )
        logger.debug("%s %s", "Connected" if connected else "Disconnected", service)

    async def set_paused(self, service: ServiceResource, paused: bool) -> None:
        """Suspend or resume a service's processes."""
        if paused:
            await self.backend.pause_container(service.container_id)
        else:
            await self.backend.unpause_container(service.container_id)
        logger.debug("%s %s", "Paused" if paused else "Unpaused", service)

    # --- Logs ---

    async def stream_logs(self, service: ServiceResource) -> AsyncIterator[LogLine]:
        """Follow the service's output line by line, tagged with its name.

        Chunks are decoded as UTF-8 (invalid bytes replaced) and split on line
        boundaries. A line or a multi-byte character spanning two chunks is
        held back until it is complete; whatever is still unterminated is
        yielded when the backend closes the stream. The iterator cannot be
        restarted.
        """
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pending = ""
        async with contextlib.aclosing(
            self.backend.stream_logs(service.container_id)
        ) as chunks:
            async for chunk in chunks:
                lines = (pending + decoder.decode(chunk)).splitlines(keepends=True)
                pending = lines.pop() if lines and not lines[-1].endswith("\n") else ""
                for line in lines:
                    yield LogLine(service.name, line)
        pending += decoder.decode(b"", final=True)
        if pending:
            yield LogLine(service.name, pending)
