"""Suite runner: provision, run, drain and report, one test at a time.

For every declaration of a suite the runner walks through

    IDLE -> PROVISIONING -> RUNNING -> DRAINING -> REPORTING -> (next test | DONE)

Ignored tests skip straight to REPORTING. The test coroutine runs as its own
`asyncio.Task`, so an exception inside it becomes a failing result instead of
unwinding the runner. While it runs, the merged logs of the environment are
drained continuously; whichever of "next log line" and "test finished" is
ready first is handled first.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from podharness.domain.model import CleanupPolicy, LogLine, OutcomeStatus, TestResult

from .logs import LogFanIn

if TYPE_CHECKING:
    from podharness.domain.model import ApplicationConfig, TestDeclaration, TestSuite

    from .environment import Environment
    from .ledger import ResourceLedger
    from .provisioner import EnvironmentProvisioner
    from .reporter import Reporter

logger = logging.getLogger(__name__)

FALLBACK_FAILURE_MESSAGE = "test terminated abnormally with no message"


class RunnerState(Enum):
    """Where the runner is in the life cycle of the current test."""

    IDLE = "idle"
    PROVISIONING = "provisioning"
    RUNNING = "running"
    DRAINING = "draining"
    REPORTING = "reporting"
    DONE = "done"


def failure_message(exc: BaseException | None) -> str:
    """Message recorded for a test that raised `exc`.

    The exception's own text when it has one, a fixed fallback otherwise
    (bare ``assert``, cancellation, exceptions raised without arguments).
    """
    if exc is None or isinstance(exc, asyncio.CancelledError):
        return FALLBACK_FAILURE_MESSAGE
    return str(exc) or FALLBACK_FAILURE_MESSAGE


async def _invoke(test: TestDeclaration, env: Environment) -> Any:
    return await test.func(env)


class SuiteRunner:
    """Runs the tests of one suite against freshly provisioned environments.

    Args:
        provisioner: Creates the environments and streams their logs.
        reporter: Receives every result as soon as it is known.
        capture_logs: Attach the drained log lines to each result.
        cleanup_policy: With `CleanupPolicy.PER_TEST` the ledger is rolled
            back after every test; with `PER_SUITE` the caller rolls it back
            once the suite is over.
    """

    def __init__(
        self,
        provisioner: EnvironmentProvisioner,
        reporter: Reporter,
        *,
        capture_logs: bool = True,
        cleanup_policy: CleanupPolicy = CleanupPolicy.PER_SUITE,
    ) -> None:
        self.provisioner = provisioner
        self.reporter = reporter
        self.capture_logs = capture_logs
        self.cleanup_policy = cleanup_policy
        self.state = RunnerState.IDLE

    def _transition(self, state: RunnerState) -> None:
        logger.debug("Runner %s -> %s", self.state.value, state.value)
        self.state = state

    async def run(self, suite: TestSuite, ledger: ResourceLedger) -> bool:
        """Run every test of `suite`, registering resources into `ledger`.

        Provisioning errors propagate and abort the remaining tests; the
        caller still owns the ledger and must roll it back.

        Returns:
            bool: True if every non-ignored test passed.
        """
        success = True
        logger.info("Running %d test(s) against %s", len(suite.tests), suite.name)
        for test in suite.tests:
            self._transition(RunnerState.IDLE)
            result = await self.run_test(suite.app, test, ledger)
            if result.status is OutcomeStatus.FAIL:
                success = False
            if self.cleanup_policy is CleanupPolicy.PER_TEST and len(ledger):
                await ledger.cleanup(self.provisioner)
        self._transition(RunnerState.DONE)
        return success

    async def run_test(
        self, app: ApplicationConfig, test: TestDeclaration, ledger: ResourceLedger
    ) -> TestResult:
        """Run a single test and hand its result to the reporter."""
        if test.ignore:
            result = TestResult.ignored(test.name)
        else:
            self._transition(RunnerState.PROVISIONING)
            env = await self.provisioner.instantiate(app, ledger)
            self._transition(RunnerState.RUNNING)
            result = await self._execute(test, env)
        self._transition(RunnerState.REPORTING)
        self.reporter.record(result)
        return result

    async def _execute(self, test: TestDeclaration, env: Environment) -> TestResult:
        logs: list[LogLine] = []
        task = asyncio.create_task(_invoke(test, env), name=test.name)
        streams = [self.provisioner.stream_logs(s.resource) for s in env.values()]
        try:
            async with LogFanIn(streams) as fan_in:
                while True:
                    next_line = asyncio.ensure_future(fan_in.get())
                    done, _ = await asyncio.wait(
                        {task, next_line}, return_when=asyncio.FIRST_COMPLETED
                    )
                    if next_line in done:
                        logs.append(next_line.result())
                    else:
                        next_line.cancel()
                    if task in done:
                        break
                self._transition(RunnerState.DRAINING)
        finally:
            if not task.done():
                task.cancel()
                # the test's own cleanup must finish before the ledger rolls back
                with contextlib.suppress(asyncio.CancelledError):
                    await task

        captured = logs if self.capture_logs else None
        if task.cancelled() or task.exception() is not None:
            exc = None if task.cancelled() else task.exception()
            logger.debug("Test %s failed", test.name, exc_info=exc)
            return TestResult.failed(test.name, failure_message(exc), captured)
        return TestResult.passed(test.name, captured)
