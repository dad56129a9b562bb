"""Docker Engine API backend.

Drives a Docker daemon (or Podman's Docker-compatible socket) through the
low-level `docker.APIClient`. The SDK is blocking, so every call runs in a
worker thread via `asyncio.to_thread`; following log streams are pumped by a
daemon thread into an `asyncio.Queue`.

The API client is created lazily on the first call so that constructing the
backend never touches the daemon.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from typing import Any, TypeVar

import docker
import requests
from docker.errors import APIError, DockerException

from podharness.interfaces.backend import BackendError, ContainerBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")

MANAGED_LABEL = "io.podharness.managed"
_END_OF_STREAM = object()


class DockerBackend(ContainerBackend):
    """`ContainerBackend` backed by the Docker Engine API.

    Args:
        base_url: Daemon address, e.g. ``unix:///var/run/docker.sock`` or
            ``unix:///run/user/1000/podman/podman.sock``.
        api_version: Engine API version, ``"auto"`` to negotiate.
        timeout: Per-request timeout in seconds (log streams are not bound by it).
    """

    def __init__(
        self, base_url: str, *, api_version: str = "auto", timeout: int = 60
    ) -> None:
        self.base_url = base_url
        self._api_version = api_version
        self._timeout = timeout
        self._client: docker.APIClient | None = None
        self._client_lock = threading.Lock()

    @property
    def client(self) -> docker.APIClient:
        """The underlying API client, created on first access."""
        with self._client_lock:
            if self._client is None:
                logger.debug("Connecting to container engine at %s", self.base_url)
                self._client = docker.APIClient(
                    base_url=self.base_url,
                    version=self._api_version,
                    timeout=self._timeout,
                )
            return self._client

    async def _run(self, operation: str, call: Callable[[docker.APIClient], T]) -> T:
        """Run a blocking SDK call in a worker thread, translating its errors."""
        logger.debug("Backend call: %s", operation)
        try:
            return await asyncio.to_thread(lambda: call(self.client))
        except APIError as exc:
            raise BackendError(
                f"{operation} failed: {exc.explanation or exc}",
                status_code=exc.status_code,
            ) from exc
        except (DockerException, requests.RequestException) as exc:
            raise BackendError(f"{operation} failed: {exc}") from exc

    # --- Networks ---

    async def create_network(self, name: str, *, dns_enabled: bool = True) -> None:
        if not dns_enabled:
            # user-defined bridge networks always run the embedded DNS server
            logger.debug("dns_enabled=False has no effect on Docker networks")
        await self._run(
            "create network",
            lambda c: c.create_network(
                name, driver="bridge", labels={MANAGED_LABEL: "true"}
            ),
        )

    async def remove_network(self, name: str) -> None:
        def remove(c: docker.APIClient) -> None:
            # the engine refuses to remove a network with active endpoints
            attached = c.inspect_network(name).get("Containers") or {}
            for container_id in attached:
                c.remove_container(container_id, force=True)
            c.remove_network(name)

        await self._run("remove network", remove)

    # --- Containers ---

    async def create_container(
        self,
        image: str,
        *,
        env: Sequence[tuple[str, str]],
        network: str,
        aliases: Sequence[str],
    ) -> str:
        def create(c: docker.APIClient) -> str:
            response = c.create_container(
                image,
                environment=[f"{key}={value}" for key, value in env],
                labels={MANAGED_LABEL: "true"},
                host_config=c.create_host_config(network_mode=network),
                networking_config=c.create_networking_config(
                    {network: c.create_endpoint_config(aliases=list(aliases))}
                ),
            )
            return response["Id"]

        return await self._run("create container", create)

    async def start_container(self, container_id: str) -> None:
        await self._run("start container", lambda c: c.start(container_id))

    async def remove_container(
        self, container_id: str, *, force: bool = True, timeout: int = 0
    ) -> None:
        def remove(c: docker.APIClient) -> None:
            if not force:
                c.stop(container_id, timeout=timeout)
            c.remove_container(container_id, force=force)

        await self._run("remove container", remove)

    async def inspect_container(self, container_id: str) -> Mapping[str, Any]:
        return await self._run(
            "inspect container", lambda c: c.inspect_container(container_id)
        )

    async def connect_container(
        self, container_id: str, network: str, *, aliases: Sequence[str] = ()
    ) -> None:
        await self._run(
            "connect container",
            lambda c: c.connect_container_to_network(
                container_id, network, aliases=list(aliases)
            ),
        )

    async def disconnect_container(
        self, container_id: str, network: str, *, force: bool = True
    ) -> None:
        await self._run(
            "disconnect container",
            lambda c: c.disconnect_container_from_network(
                container_id, network, force=force
            ),
        )

    async def pause_container(self, container_id: str) -> None:
        await self._run("pause container", lambda c: c.pause(container_id))

    async def unpause_container(self, container_id: str) -> None:
        await self._run("unpause container", lambda c: c.unpause(container_id))

    async def stream_logs(self, container_id: str) -> AsyncIterator[bytes]:
        stream = await self._run(
            "fetch logs",
            lambda c: c.logs(
                container_id, stdout=True, stderr=True, stream=True, follow=True
            ),
        )
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[Any] = asyncio.Queue()
        closed = threading.Event()

        def post(item: Any) -> None:
            # the loop may already be gone when the daemon ends the stream late
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(queue.put_nowait, item)

        def pump() -> None:
            try:
                for chunk in stream:
                    post(chunk)
            except Exception as exc:  # pylint: disable=broad-except
                if not closed.is_set():
                    post(exc)
            finally:
                post(_END_OF_STREAM)

        threading.Thread(
            target=pump, name=f"logs-{container_id[:12]}", daemon=True
        ).start()
        try:
            while (item := await queue.get()) is not _END_OF_STREAM:
                if isinstance(item, Exception):
                    raise BackendError(f"log stream failed: {item}") from item
                yield item
        finally:
            closed.set()
            stream.close()

    # --- Housekeeping ---

    async def version(self) -> Mapping[str, Any]:
        return await self._run("version", lambda c: c.version())

    async def close(self) -> None:
        with self._client_lock:
            client, self._client = self._client, None
        if client is not None:
            client.close()
