"""Domain layer for PODHARNESS.

Plain value objects (applications, services, test declarations, outcomes)
and the errors raised when they are inconsistent. Nothing here talks to a
container backend.
"""

from .errors import (
    ConfigurationError,
    DuplicateApplicationError,
    DuplicateServiceError,
    PodharnessError,
    ProvisioningError,
    UnhealthyServiceError,
    UnknownApplicationError,
)
from .model import (
    ApplicationConfig,
    CleanupPolicy,
    HealthCheck,
    LogLine,
    OutcomeStatus,
    ServiceConfig,
    TestDeclaration,
    TestFunction,
    TestResult,
    TestSuite,
)

__all__ = [
    "ApplicationConfig",
    "CleanupPolicy",
    "ConfigurationError",
    "DuplicateApplicationError",
    "DuplicateServiceError",
    "HealthCheck",
    "LogLine",
    "OutcomeStatus",
    "PodharnessError",
    "ProvisioningError",
    "ServiceConfig",
    "TestDeclaration",
    "TestFunction",
    "TestResult",
    "TestSuite",
    "UnhealthyServiceError",
    "UnknownApplicationError",
]
