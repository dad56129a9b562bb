"""Container backend interface definitions.

The engine drives containers and networks exclusively through this contract.
Concrete implementations live in `podharness.adapters.backend`.
"""

from __future__ import annotations

import abc
from collections.abc import AsyncIterator, Mapping, Sequence
from typing import Any


class BackendError(Exception):
    """Raised when a backend call fails.

    Wraps transport failures (unreachable socket, broken stream) as well as
    error statuses returned by the container engine.

    Attributes:
        status_code: HTTP status reported by the engine, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ContainerBackend(abc.ABC):
    """Abstract base class for container/network orchestration backends.

    Every operation is a coroutine; callers suspend until the backend answers.
    Implementations must be safe for concurrent use by several in-flight
    operations (for instance one log stream per service).
    """

    # --- Networks ---

    @abc.abstractmethod
    async def create_network(self, name: str, *, dns_enabled: bool = True) -> None:
        """Create an isolated network called `name`.

        Args:
            name: Unique network name.
            dns_enabled: Whether containers can resolve each other by alias.

        Raises:
            BackendError: If the network cannot be created.
        """

    @abc.abstractmethod
    async def remove_network(self, name: str) -> None:
        """Remove the network `name` and any container still attached to it.

        Raises:
            BackendError: If the network cannot be removed.
        """

    # --- Containers ---

    @abc.abstractmethod
    async def create_container(
        self,
        image: str,
        *,
        env: Sequence[tuple[str, str]],
        network: str,
        aliases: Sequence[str],
    ) -> str:
        """Create (but do not start) a container attached to `network`.

        Args:
            image: Image reference to create the container from.
            env: Environment variables as ``(key, value)`` pairs.
            network: Name of the network to attach the container to.
            aliases: DNS aliases of the container on `network`.

        Returns:
            str: The backend-assigned container identifier.

        Raises:
            BackendError: If the container cannot be created.
        """

    @abc.abstractmethod
    async def start_container(self, container_id: str) -> None:
        """Start a created container."""

    @abc.abstractmethod
    async def remove_container(
        self, container_id: str, *, force: bool = True, timeout: int = 0
    ) -> None:
        """Stop and delete a container.

        Args:
            container_id: Identifier returned by `create_container`.
            force: Kill the container instead of waiting for it to stop.
            timeout: Seconds to wait for a graceful stop when not forcing.
        """

    @abc.abstractmethod
    async def inspect_container(self, container_id: str) -> Mapping[str, Any]:
        """Return the container's metadata.

        The mapping follows the Engine API shape; in particular the address on
        each network is found under
        ``NetworkSettings -> Networks -> <network> -> IPAddress``.
        """

    @abc.abstractmethod
    async def connect_container(
        self, container_id: str, network: str, *, aliases: Sequence[str] = ()
    ) -> None:
        """Attach a running container to `network` under `aliases`."""

    @abc.abstractmethod
    async def disconnect_container(
        self, container_id: str, network: str, *, force: bool = True
    ) -> None:
        """Detach a running container from `network`."""

    @abc.abstractmethod
    async def pause_container(self, container_id: str) -> None:
        """Suspend every process of the container."""

    @abc.abstractmethod
    async def unpause_container(self, container_id: str) -> None:
        """Resume a paused container."""

    @abc.abstractmethod
    def stream_logs(self, container_id: str) -> AsyncIterator[bytes]:
        """Follow the container's stdout and stderr.

        Returns an async iterator of raw chunks that ends when the backend
        closes the stream. Closing the iterator (``aclose()``) releases the
        underlying transport.
        """

    # --- Housekeeping ---

    @abc.abstractmethod
    async def version(self) -> Mapping[str, Any]:
        """Return version information reported by the backend."""

    async def close(self) -> None:
        """Release client resources. The default implementation does nothing."""
