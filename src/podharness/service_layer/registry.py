"""Test registration and suite assembly.

Tests are collected into an explicit `TestTable` rather than a process-wide
registry; `build_suites` then groups them by application and rejects any
declaration that targets an unknown application before a single backend call
is made.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from podharness.domain.errors import (
    ConfigurationError,
    DuplicateApplicationError,
    UnknownApplicationError,
)
from podharness.domain.model import (
    ApplicationConfig,
    TestDeclaration,
    TestFunction,
    TestSuite,
)

logger = logging.getLogger(__name__)


def build_suites(
    applications: Iterable[ApplicationConfig],
    declarations: Iterable[TestDeclaration],
) -> dict[str, TestSuite]:
    """Group declarations into one suite per application.

    Suites follow the order of `applications`; tests inside a suite keep the
    order of `declarations`. Applications without tests yield empty suites.

    Raises:
        DuplicateApplicationError: If two applications share a name.
        UnknownApplicationError: If a declaration names an unregistered
            application.
    """
    suites: dict[str, TestSuite] = {}
    for app in applications:
        if app.name in suites:
            raise DuplicateApplicationError(app.name)
        suites[app.name] = TestSuite(app)

    for decl in declarations:
        if (suite := suites.get(decl.app)) is None:
            raise UnknownApplicationError(decl.name, decl.app)
        suite.tests.append(decl)

    logger.debug(
        "Assembled suites: %s",
        {name: len(suite.tests) for name, suite in suites.items()},
    )
    return suites


class TestTable:
    """Explicit, ordered table of test declarations.

    Example:
        tests = TestTable()

        @tests.test(app="web")
        async def db_is_reachable(env): ...
    """

    __test__ = False

    def __init__(self, declarations: Iterable[TestDeclaration] = ()) -> None:
        self._declarations = list(declarations)

    def add(
        self,
        func: TestFunction,
        *,
        app: str,
        ignore: bool = False,
        name: str | None = None,
    ) -> TestDeclaration:
        """Declare `func` as a test against `app`.

        Raises:
            ConfigurationError: If `func` is not a coroutine function.
        """
        if not inspect.iscoroutinefunction(func):
            raise ConfigurationError(
                f"test {getattr(func, '__qualname__', func)!r} must be an async function"
            )
        decl = TestDeclaration(
            name=name or f"{func.__module__}.{func.__qualname__}",
            app=app,
            func=func,
            ignore=ignore,
        )
        self._declarations.append(decl)
        return decl

    def test(
        self, *, app: str, ignore: bool = False, name: str | None = None
    ) -> Callable[[TestFunction], TestFunction]:
        """Decorator form of `add`; returns the function unchanged."""

        def register(func: TestFunction) -> TestFunction:
            self.add(func, app=app, ignore=ignore, name=name)
            return func

        return register

    @property
    def declarations(self) -> tuple[TestDeclaration, ...]:
        """The declarations in registration order."""
        return tuple(self._declarations)

    def __len__(self) -> int:
        return len(self._declarations)


@dataclass(frozen=True)
class TestPlan:
    """Everything an entry point needs: the applications and their tests."""

    __test__ = False

    applications: tuple[ApplicationConfig, ...]
    declarations: tuple[TestDeclaration, ...] = field(default=())

    @classmethod
    def from_table(
        cls, applications: Iterable[ApplicationConfig], table: TestTable
    ) -> TestPlan:
        """Build a plan from applications and a populated `TestTable`."""
        return cls(tuple(applications), table.declarations)
