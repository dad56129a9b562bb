"""Unit tests for podharness.config."""

import pytest

from podharness import config
from podharness.domain.model import CleanupPolicy

# pylint: disable=magic-value-comparison


def test_backend_url_prefers_podharness_variable():
    """PODHARNESS_BACKEND_URL wins over DOCKER_HOST."""
    environ = {
        "PODHARNESS_BACKEND_URL": "unix:///run/podman.sock",
        "DOCKER_HOST": "unix:///var/run/docker.sock",
    }
    assert config.get_backend_url(environ) == "unix:///run/podman.sock"


def test_backend_url_falls_back_to_docker_host():
    """DOCKER_HOST is used when PODHARNESS_BACKEND_URL is unset or empty."""
    environ = {"PODHARNESS_BACKEND_URL": "", "DOCKER_HOST": "tcp://127.0.0.1:2375"}
    assert config.get_backend_url(environ) == "tcp://127.0.0.1:2375"


def test_backend_url_missing():
    """Neither variable set raises BackendUrlNotSetError."""
    with pytest.raises(config.BackendUrlNotSetError):
        config.get_backend_url({})


def test_backend_url_reads_process_environment(monkeypatch):
    """Without an explicit mapping the process environment is used."""
    monkeypatch.delenv("PODHARNESS_BACKEND_URL", raising=False)
    monkeypatch.setenv("DOCKER_HOST", "unix:///tmp/docker.sock")
    assert config.get_backend_url() == "unix:///tmp/docker.sock"


def test_settings_defaults():
    """An empty environment yields the default settings."""
    assert config.Settings.from_env({}) == config.Settings()
    assert config.Settings().cleanup_policy is CleanupPolicy.PER_SUITE


def test_settings_from_env():
    """Every variable is parsed into its setting."""
    settings = config.Settings.from_env(
        {
            "PODHARNESS_HEALTH_TIMEOUT": "12.5",
            "PODHARNESS_HEALTH_INTERVAL": "0.25",
            "PODHARNESS_CLEANUP_POLICY": "PER_TEST",
            "PODHARNESS_LOG_ALL": "yes",
        }
    )
    assert settings == config.Settings(
        health_timeout=12.5,
        health_interval=0.25,
        cleanup_policy=CleanupPolicy.PER_TEST,
        log_all=True,
    )


@pytest.mark.parametrize("raw", ["0", "1", "true", "no", ""])
def test_log_all_flag(raw):
    """Only truthy spellings enable log_all."""
    expected = raw in {"1", "true"}
    assert config.Settings.from_env({"PODHARNESS_LOG_ALL": raw}).log_all is expected


@pytest.mark.parametrize("raw", ["soon", "-1", "0"])
def test_invalid_timeout(raw):
    """Non-numeric or non-positive timeouts are rejected with the variable name."""
    with pytest.raises(config.InvalidSettingError, match="PODHARNESS_HEALTH_TIMEOUT"):
        config.Settings.from_env({"PODHARNESS_HEALTH_TIMEOUT": raw})


def test_invalid_cleanup_policy():
    """Unknown cleanup policies list the accepted values."""
    with pytest.raises(config.InvalidSettingError, match="per-suite, per-test"):
        config.parse_cleanup_policy("sometimes")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("per-suite", CleanupPolicy.PER_SUITE),
        (" Per-Test ", CleanupPolicy.PER_TEST),
        ("per_test", CleanupPolicy.PER_TEST),
    ],
)
def test_parse_cleanup_policy(raw, expected):
    """Policies are case-insensitive and accept underscores."""
    assert config.parse_cleanup_policy(raw) is expected
