"""Adapters (infrastructure) for PODHARNESS.

Concrete implementations of the ports defined in `podharness.interfaces`:
container backends (Docker Engine API, in-memory) and network name
generators.

Dependency rule: may import `podharness.interfaces` and `podharness.domain`;
neither of those may import this package.
"""
