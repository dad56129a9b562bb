"""Service layer for PODHARNESS.

Implements the orchestration use-cases: suite assembly, environment
provisioning, the resource ledger, the run-and-drain suite runner and
reporting. Talks to containers only through `podharness.interfaces`.

Dependency rule: may import `podharness.domain` and `podharness.interfaces`,
but not `podharness.adapters` or `podharness.entrypoints`.
"""

from .engine import Engine
from .environment import Environment, Service
from .ledger import (
    CleanupFailure,
    NetworkResource,
    Resource,
    ResourceLedger,
    ServiceResource,
)
from .logs import LogFanIn
from .provisioner import EnvironmentProvisioner
from .registry import TestPlan, TestTable, build_suites
from .reporter import Reporter
from .runner import FALLBACK_FAILURE_MESSAGE, RunnerState, SuiteRunner

__all__ = [
    "CleanupFailure",
    "Engine",
    "Environment",
    "EnvironmentProvisioner",
    "FALLBACK_FAILURE_MESSAGE",
    "LogFanIn",
    "NetworkResource",
    "Reporter",
    "Resource",
    "ResourceLedger",
    "RunnerState",
    "Service",
    "ServiceResource",
    "SuiteRunner",
    "TestPlan",
    "TestTable",
    "build_suites",
]
