"""Interfaces (application boundary) for PODHARNESS.

Framework-free contracts shared by the service layer and the adapters: the
container backend port and the resource name generator.

Dependency rule: this package is independent and must not import from other
`podharness.*` modules. It may be imported by `podharness.service_layer`,
`podharness.adapters` and `podharness.bootstrap`.
"""

from .backend import BackendError, ContainerBackend
from .naming import NameGenerator

__all__ = ["BackendError", "ContainerBackend", "NameGenerator"]
