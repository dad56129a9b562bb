"""Bootstrap (composition root) for PODHARNESS.

Assembles a ready-to-run `Engine`: picks the concrete backend for a URL,
the network name generator and the reporter, and applies `Settings`.

Import rules:
- Entry points import *this* package (not adapters/service_layer directly).
- This package may import `podharness.adapters`, `podharness.service_layer`,
  `podharness.interfaces`, `podharness.domain` and `podharness.config`.
- Inner layers must not import `podharness.bootstrap`.
"""

from .bootstrap import build_backend, build_engine, build_provisioner

__all__ = ["build_backend", "build_engine", "build_provisioner"]
