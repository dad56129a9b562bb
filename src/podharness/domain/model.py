"""Value objects describing applications, tests and their outcomes."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

from .errors import ConfigurationError, DuplicateServiceError

if TYPE_CHECKING:
    from podharness.service_layer.environment import Environment

TestFunction = Callable[["Environment"], Awaitable[Any]]

# pylint: disable=too-few-public-methods


@dataclass(frozen=True)
class HealthCheck:
    """HTTP route polled until the service answers with a 2xx status."""

    uri: str
    port: int

    def __post_init__(self) -> None:
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ConfigurationError(
                f"health check port must be an integer: {self.port!r}"
            )
        if not 1 <= self.port <= 65535:
            raise ConfigurationError(f"health check port out of range: {self.port}")

    def url(self, host: str) -> str:
        """Build the URL to poll for a service reachable at `host`."""
        path = self.uri if self.uri.startswith("/") else f"/{self.uri}"
        if ":" in host:  # IPv6 literal
            host = f"[{host}]"
        return f"http://{host}:{self.port}{path}"


@dataclass(frozen=True)
class ServiceConfig:
    """Blueprint for one container-backed service of an application.

    Attributes:
        name: Service name; also the DNS alias of the container on the test network.
        image: Image reference the container is created from.
        env: Environment variables as ordered ``(key, value)`` pairs.
        health: Optional HTTP health check awaited before tests start.
    """

    name: str
    image: str
    env: tuple[tuple[str, str], ...] = ()
    health: HealthCheck | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "env", tuple((str(k), str(v)) for k, v in self.env))

    def with_env(
        self, env: Mapping[str, str] | Iterable[tuple[str, str]]
    ) -> ServiceConfig:
        """Return a copy with the given environment variables appended."""
        pairs = env.items() if isinstance(env, Mapping) else env
        return replace(self, env=self.env + tuple(pairs))

    def with_health(self, uri: str, port: int) -> ServiceConfig:
        """Return a copy that waits for `uri` on `port` to answer before tests run."""
        return replace(self, health=HealthCheck(uri, port))


@dataclass(frozen=True)
class ApplicationConfig:
    """A named topology of services under test."""

    name: str
    services: tuple[ServiceConfig, ...] = ()

    def __post_init__(self) -> None:
        services = tuple(self.services)
        seen: set[str] = set()
        for service in services:
            if service.name in seen:
                raise DuplicateServiceError(self.name, service.name)
            seen.add(service.name)
        object.__setattr__(self, "services", services)

    def with_service(self, config: ServiceConfig) -> ApplicationConfig:
        """Return a copy of this application with `config` appended."""
        return replace(self, services=self.services + (config,))

    def service(self, name: str) -> ServiceConfig | None:
        """Look up a service configuration by name."""
        return next((s for s in self.services if s.name == name), None)


@dataclass(frozen=True)
class TestDeclaration:
    """A test function bound to the application it runs against."""

    __test__ = False  # not a pytest test class

    name: str
    app: str
    func: TestFunction = field(compare=False)
    ignore: bool = False


@dataclass
class TestSuite:
    """An application paired with the tests declared against it."""

    __test__ = False

    app: ApplicationConfig
    tests: list[TestDeclaration] = field(default_factory=list)

    @property
    def name(self) -> str:
        """Name of the application this suite exercises."""
        return self.app.name


@dataclass(frozen=True)
class LogLine:
    """One chunk of output emitted by a service."""

    service: str
    text: str


class OutcomeStatus(Enum):
    """Enumeration of test outcomes"""

    PASS = "pass"
    FAIL = "fail"
    IGNORED = "ignored"


@dataclass(frozen=True)
class TestResult:
    """The recorded outcome of one test.

    `logs` is ``None`` when log capture was disabled (or the test never ran)
    and a possibly empty tuple otherwise.
    """

    __test__ = False

    name: str
    status: OutcomeStatus
    message: str | None = None
    logs: tuple[LogLine, ...] | None = None

    @classmethod
    def passed(cls, name: str, logs: Iterable[LogLine] | None = None) -> TestResult:
        """Build a passing result."""
        return cls(name, OutcomeStatus.PASS, logs=_freeze(logs))

    @classmethod
    def failed(
        cls, name: str, message: str, logs: Iterable[LogLine] | None = None
    ) -> TestResult:
        """Build a failing result carrying `message`."""
        return cls(name, OutcomeStatus.FAIL, message=message, logs=_freeze(logs))

    @classmethod
    def ignored(cls, name: str) -> TestResult:
        """Build the result of a test that was skipped on purpose."""
        return cls(name, OutcomeStatus.IGNORED)


def _freeze(logs: Iterable[LogLine] | None) -> tuple[LogLine, ...] | None:
    return None if logs is None else tuple(logs)


class CleanupPolicy(Enum):
    """When the resources of a suite are rolled back."""

    PER_SUITE = "per-suite"
    PER_TEST = "per-test"
