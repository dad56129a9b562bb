"""PODHARNESS

An integration-test orchestration engine for multi-service containerized
applications. Each test gets its own ephemeral network and containers, runs
while its services' logs are drained, and every provisioned resource is
rolled back when the suite ends.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
