"""Domain-layer error definitions."""

# ============================================================================
#                           General errors
# ============================================================================


class PodharnessError(Exception):
    """Base class for podharness errors."""


# ============================================================================
#                   Configuration errors (fatal at construction)
# ============================================================================


class ConfigurationError(PodharnessError):
    """Raised when applications or test declarations are inconsistent."""


class UnknownApplicationError(ConfigurationError):
    """Raised when a test declaration targets an application that is not registered."""

    def __init__(self, test: str, app: str) -> None:
        super().__init__(f"unknown app '{app}' in test '{test}'")
        self.test = test
        self.app = app


class DuplicateApplicationError(ConfigurationError):
    """Raised when two applications share the same name."""

    def __init__(self, app: str) -> None:
        super().__init__(f"application '{app}' is registered more than once")
        self.app = app


class DuplicateServiceError(ConfigurationError):
    """Raised when an application declares two services with the same name."""

    def __init__(self, app: str, service: str) -> None:
        super().__init__(f"service '{service}' is declared twice in application '{app}'")
        self.app = app
        self.service = service


# ============================================================================
#                   Provisioning errors (abort the current suite)
# ============================================================================


class ProvisioningError(PodharnessError):
    """Raised when a test environment cannot be brought up."""


class UnhealthyServiceError(ProvisioningError):
    """Raised when a service does not report healthy before the deadline."""

    def __init__(
        self, service: str, url: str, timeout: float, reason: str | None = None
    ) -> None:
        if reason is None:
            message = f"service '{service}' not healthy at {url} after {timeout:g}s"
        else:
            message = f"health check of service '{service}' at {url} failed: {reason}"
        super().__init__(message)
        self.service = service
        self.url = url
        self.timeout = timeout
        self.reason = reason
