"""In-memory container backend.

This module provides a dependency-free `ContainerBackend` meant for **tests**,
examples and dry runs. Nothing is executed: networks and containers are
records in dictionaries, addresses are handed out from ``10.89.0.0/16`` and
log output is whatever the caller feeds in.

Key behaviors
-------------
- **Engine-like errors**: unknown networks/containers raise `BackendError`
  with status 404, duplicates raise 409.
- **Cascade**: removing a network removes every container still attached.
- **Logs**: each `stream_logs()` call is an independent follower that first
  replays the container's history, then waits for `emit_log()` until
  `end_logs()` (or removal) closes the stream. `image_logs` lets a container
  emit canned output as soon as it starts.
- **Fault injection**: `fail_on(operation, target)` makes the next matching
  calls raise `BackendError`.
- **Call journal**: every call is appended to `calls` as
  ``(operation, target)``.

Typical usage
-------------
    backend = MemoryBackend(image_logs={"api:latest": [b"listening\\n"]})
    backend.fail_on("start_container", times=1)
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import AsyncIterator, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from podharness.interfaces.backend import BackendError, ContainerBackend

__all__ = ["MemoryBackend"]

_END_OF_STREAM = object()


@dataclass
class _Network:
    name: str
    index: int
    dns_enabled: bool
    hosts: itertools.count = field(default_factory=lambda: itertools.count(2))


@dataclass
class _Container:  # pylint: disable=too-many-instance-attributes
    id: str
    image: str
    env: tuple[tuple[str, str], ...]
    endpoints: dict[str, dict[str, Any]] = field(default_factory=dict)
    running: bool = False
    paused: bool = False
    history: list[bytes] = field(default_factory=list)
    followers: list[asyncio.Queue] = field(default_factory=list)
    logs_closed: bool = False


@dataclass
class _Fault:
    operation: str
    target: str | None
    remaining: int | None
    error: BackendError


class MemoryBackend(ContainerBackend):  # pylint: disable=too-many-public-methods
    """Non-executing `ContainerBackend` that keeps all state in RAM.

    Args:
        image_logs: Canned log chunks per image, emitted when a container of
            that image starts.
    """

    def __init__(
        self, image_logs: Mapping[str, Iterable[bytes | str]] | None = None
    ) -> None:
        self.networks: dict[str, _Network] = {}
        self.containers: dict[str, _Container] = {}
        self.calls: list[tuple[str, str]] = []
        self._image_logs = {
            image: [_to_bytes(chunk) for chunk in chunks]
            for image, chunks in (image_logs or {}).items()
        }
        self._faults: list[_Fault] = []
        self._network_ids = itertools.count(1)
        self._container_ids = itertools.count(1)

    # --- Test helpers ---

    def fail_on(
        self,
        operation: str,
        target: str | None = None,
        *,
        times: int | None = None,
        message: str = "injected failure",
        status_code: int | None = 500,
    ) -> None:
        """Make calls to `operation` raise `BackendError`.

        Args:
            operation: Method name, e.g. ``"create_container"``.
            target: Only fail when the call's target (network name, container
                id or image) equals this value; any target when ``None``.
            times: Number of calls to fail; forever when ``None``.
            message: Error message.
            status_code: Status attached to the error.
        """
        error = BackendError(f"{operation} failed: {message}", status_code=status_code)
        self._faults.append(_Fault(operation, target, times, error))

    def emit_log(self, container_id: str, data: bytes | str) -> None:
        """Append a chunk to a container's output and wake its followers."""
        container = self._container(container_id)
        chunk = _to_bytes(data)
        container.history.append(chunk)
        for follower in container.followers:
            follower.put_nowait(chunk)

    def end_logs(self, container_id: str) -> None:
        """Close every follower of the container's log stream."""
        self._close_logs(self._container(container_id))

    def operations(self, operation: str) -> list[str]:
        """Targets of every recorded call to `operation`, in call order."""
        return [target for op, target in self.calls if op == operation]

    # --- Internals ---

    async def _enter(self, operation: str, target: str) -> None:
        self.calls.append((operation, target))
        await asyncio.sleep(0)  # every backend call is a suspension point
        for fault in self._faults:
            if fault.operation != operation or fault.target not in (None, target):
                continue
            if fault.remaining is not None:
                if fault.remaining <= 0:
                    continue
                fault.remaining -= 1
            raise fault.error

    def _container(self, container_id: str) -> _Container:
        try:
            return self.containers[container_id]
        except KeyError:
            raise BackendError(
                f"no such container: {container_id}", status_code=404
            ) from None

    def _network(self, name: str) -> _Network:
        try:
            return self.networks[name]
        except KeyError:
            raise BackendError(f"no such network: {name}", status_code=404) from None

    def _close_logs(self, container: _Container) -> None:
        container.logs_closed = True
        for follower in container.followers:
            follower.put_nowait(_END_OF_STREAM)

    def _attach(self, container: _Container, network: _Network, aliases: Sequence[str]) -> None:
        host = next(network.hosts)
        container.endpoints[network.name] = {
            "IPAddress": f"10.89.{network.index}.{host}",
            "Aliases": list(aliases),
        }

    # --- Networks ---

    async def create_network(self, name: str, *, dns_enabled: bool = True) -> None:
        await self._enter("create_network", name)
        if name in self.networks:
            raise BackendError(f"network {name} already exists", status_code=409)
        self.networks[name] = _Network(name, next(self._network_ids), dns_enabled)

    async def remove_network(self, name: str) -> None:
        await self._enter("remove_network", name)
        self._network(name)
        for container in list(self.containers.values()):
            if name in container.endpoints:
                self._close_logs(container)
                del self.containers[container.id]
        del self.networks[name]

    # --- Containers ---

    async def create_container(
        self,
        image: str,
        *,
        env: Sequence[tuple[str, str]],
        network: str,
        aliases: Sequence[str],
    ) -> str:
        await self._enter("create_container", image)
        net = self._network(network)
        container = _Container(
            id=f"{next(self._container_ids):064x}", image=image, env=tuple(env)
        )
        self._attach(container, net, aliases)
        self.containers[container.id] = container
        return container.id

    async def start_container(self, container_id: str) -> None:
        await self._enter("start_container", container_id)
        container = self._container(container_id)
        container.running = True
        for chunk in self._image_logs.get(container.image, ()):
            self.emit_log(container_id, chunk)

    async def remove_container(
        self, container_id: str, *, force: bool = True, timeout: int = 0
    ) -> None:
        await self._enter("remove_container", container_id)
        container = self._container(container_id)
        if container.paused and not force:
            raise BackendError("cannot stop a paused container", status_code=409)
        self._close_logs(container)
        del self.containers[container_id]

    async def inspect_container(self, container_id: str) -> Mapping[str, Any]:
        await self._enter("inspect_container", container_id)
        container = self._container(container_id)
        return {
            "Id": container.id,
            "Config": {
                "Image": container.image,
                "Env": [f"{k}={v}" for k, v in container.env],
            },
            "State": {"Running": container.running, "Paused": container.paused},
            "NetworkSettings": {
                "Networks": {
                    name: dict(endpoint)
                    for name, endpoint in container.endpoints.items()
                }
            },
        }

    async def connect_container(
        self, container_id: str, network: str, *, aliases: Sequence[str] = ()
    ) -> None:
        await self._enter("connect_container", container_id)
        container = self._container(container_id)
        if network in container.endpoints:
            raise BackendError(
                f"container {container_id} already on network {network}",
                status_code=409,
            )
        self._attach(container, self._network(network), aliases)

    async def disconnect_container(
        self, container_id: str, network: str, *, force: bool = True
    ) -> None:
        await self._enter("disconnect_container", container_id)
        container = self._container(container_id)
        self._network(network)
        if container.endpoints.pop(network, None) is None:
            raise BackendError(
                f"container {container_id} is not connected to {network}",
                status_code=404,
            )

    async def pause_container(self, container_id: str) -> None:
        await self._enter("pause_container", container_id)
        container = self._container(container_id)
        if not container.running or container.paused:
            raise BackendError(
                f"container {container_id} is not running", status_code=409
            )
        container.paused = True

    async def unpause_container(self, container_id: str) -> None:
        await self._enter("unpause_container", container_id)
        container = self._container(container_id)
        if not container.paused:
            raise BackendError(f"container {container_id} is not paused", status_code=409)
        container.paused = False

    async def stream_logs(self, container_id: str) -> AsyncIterator[bytes]:
        await self._enter("stream_logs", container_id)
        container = self._container(container_id)
        follower: asyncio.Queue[Any] = asyncio.Queue()
        for chunk in container.history:
            follower.put_nowait(chunk)
        if container.logs_closed:
            follower.put_nowait(_END_OF_STREAM)
        container.followers.append(follower)
        try:
            while (chunk := await follower.get()) is not _END_OF_STREAM:
                yield chunk
        finally:
            container.followers.remove(follower)

    # --- Housekeeping ---

    async def version(self) -> Mapping[str, Any]:
        return {"Version": "memory", "ApiVersion": "1.41"}


def _to_bytes(chunk: bytes | str) -> bytes:
    return chunk.encode("utf-8") if isinstance(chunk, str) else chunk
