"""Entrypoints (inbound adapters) for PODHARNESS.

Expose the engine to the outside world. Parse and validate inputs, build an
engine through `podharness.bootstrap`, run it and present the verdict.

Dependency rule: may import `podharness.bootstrap` and
`podharness.service_layer`; avoid importing `podharness.adapters` directly.
"""
