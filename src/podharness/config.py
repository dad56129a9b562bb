"""Configuration utilities for PODHARNESS.

Settings come from environment variables; the CLI exposes the same knobs as
options that take precedence over the environment.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from podharness.domain.model import CleanupPolicy

BACKEND_URL_ENV = "PODHARNESS_BACKEND_URL"  # pragma: no mutate
DOCKER_HOST_ENV = "DOCKER_HOST"  # pragma: no mutate
HEALTH_TIMEOUT_ENV = "PODHARNESS_HEALTH_TIMEOUT"  # pragma: no mutate
HEALTH_INTERVAL_ENV = "PODHARNESS_HEALTH_INTERVAL"  # pragma: no mutate
CLEANUP_POLICY_ENV = "PODHARNESS_CLEANUP_POLICY"  # pragma: no mutate
LOG_ALL_ENV = "PODHARNESS_LOG_ALL"  # pragma: no mutate

_TRUTHY = {"1", "true", "yes", "on"}


class BackendUrlNotSetError(Exception):
    """Raised when neither PODHARNESS_BACKEND_URL nor DOCKER_HOST is set."""


class InvalidSettingError(ValueError):
    """Raised when an environment variable holds an unusable value."""

    def __init__(self, variable: str, value: str, expected: str) -> None:
        super().__init__(f"{variable}={value!r} is invalid: expected {expected}")
        self.variable = variable
        self.value = value


def get_backend_url(environ: Mapping[str, str] | None = None) -> str:
    """Get the container backend URL from the environment.

    `PODHARNESS_BACKEND_URL` wins over `DOCKER_HOST`.

    Raises:
        BackendUrlNotSetError: If neither variable is set.
    """
    environ = os.environ if environ is None else environ
    if not (url := environ.get(BACKEND_URL_ENV) or environ.get(DOCKER_HOST_ENV)):
        raise BackendUrlNotSetError
    return url


def _float(environ: Mapping[str, str], variable: str, default: float) -> float:
    if (raw := environ.get(variable)) is None:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise InvalidSettingError(variable, raw, "a number of seconds") from e
    if value <= 0:
        raise InvalidSettingError(variable, raw, "a positive number of seconds")
    return value


def parse_cleanup_policy(raw: str) -> CleanupPolicy:
    """Parse ``per-suite`` / ``per-test`` (case-insensitive, ``_`` accepted)."""
    try:
        return CleanupPolicy(raw.strip().lower().replace("_", "-"))
    except ValueError as e:
        choices = ", ".join(p.value for p in CleanupPolicy)
        raise InvalidSettingError(CLEANUP_POLICY_ENV, raw, f"one of {choices}") from e


@dataclass(frozen=True)
class Settings:
    """Tunables of a run.

    Attributes:
        health_timeout: Seconds a service may take to pass its health check.
        health_interval: Seconds between two health check attempts.
        cleanup_policy: When provisioned resources are rolled back.
        log_all: Keep passing results (and their logs) for the final report.
    """

    health_timeout: float = 30.0
    health_interval: float = 0.5
    cleanup_policy: CleanupPolicy = CleanupPolicy.PER_SUITE
    log_all: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Read settings from the environment, falling back to defaults.

        Raises:
            InvalidSettingError: If a variable is set to an unusable value.
        """
        environ = os.environ if environ is None else environ
        defaults = cls()
        policy = environ.get(CLEANUP_POLICY_ENV)
        return cls(
            health_timeout=_float(environ, HEALTH_TIMEOUT_ENV, defaults.health_timeout),
            health_interval=_float(
                environ, HEALTH_INTERVAL_ENV, defaults.health_interval
            ),
            cleanup_policy=(
                parse_cleanup_policy(policy) if policy else defaults.cleanup_policy
            ),
            log_all=environ.get(LOG_ALL_ENV, "").strip().lower() in _TRUTHY,
        )
