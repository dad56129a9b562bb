"""The engine: suites in, one aggregated verdict out."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from podharness.domain.errors import ProvisioningError
from podharness.domain.model import CleanupPolicy
from podharness.interfaces.backend import BackendError

from .ledger import ResourceLedger
from .registry import build_suites
from .reporter import Reporter
from .runner import SuiteRunner

if TYPE_CHECKING:
    from podharness.domain.model import ApplicationConfig, TestDeclaration, TestSuite

    from .provisioner import EnvironmentProvisioner

logger = logging.getLogger(__name__)


class Engine:
    """Drives every suite sequentially against one backend.

    Suites are assembled eagerly: an unknown application in a declaration
    raises here, before anything is provisioned. The engine owns the ledger
    of the running suite and the reporter.

    Args:
        applications: Application topologies (names must be unique).
        declarations: Test declarations, read once.
        provisioner: Provisioner bound to the backend.
        reporter: Reporter to use; a stdout `Reporter` by default.
        log_all: Retain passing results for the final report too.
        capture_logs: Attach drained service logs to results.
        cleanup_policy: Roll resources back once per suite (default) or
            after every test.

    Raises:
        ConfigurationError: If applications or declarations are inconsistent.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        applications: Iterable[ApplicationConfig],
        declarations: Iterable[TestDeclaration],
        provisioner: EnvironmentProvisioner,
        *,
        reporter: Reporter | None = None,
        log_all: bool = False,
        capture_logs: bool = True,
        cleanup_policy: CleanupPolicy = CleanupPolicy.PER_SUITE,
    ) -> None:
        self.suites: list[TestSuite] = list(
            build_suites(applications, declarations).values()
        )
        self.provisioner = provisioner
        self.reporter = reporter or Reporter(log_all=log_all)
        self.runner = SuiteRunner(
            provisioner,
            self.reporter,
            capture_logs=capture_logs,
            cleanup_policy=cleanup_policy,
        )

    async def run(self) -> bool:
        """Run every suite, then print the final report.

        Returns:
            bool: True if every suite ran to completion and all of their
            non-ignored tests passed.
        """
        success = True
        for suite in self.suites:
            if not await self.run_suite(suite):
                success = False
        return self.reporter.finish() and success

    async def run_suite(self, suite: TestSuite) -> bool:
        """Run one suite with a fresh ledger and roll the ledger back afterwards."""
        ledger = ResourceLedger()
        try:
            return await self.runner.run(suite, ledger)
        except (ProvisioningError, BackendError) as exc:
            logger.error("Error running test suite %s: %s", suite.name, exc)
            self.reporter.report_error(suite.name, exc)
            return False
        finally:
            failures = await ledger.cleanup(self.provisioner)
            if failures:
                logger.warning(
                    "%d resource(s) of suite %s could not be freed",
                    len(failures),
                    suite.name,
                )

    async def aclose(self) -> None:
        """Release the backend client."""
        await self.provisioner.backend.close()
