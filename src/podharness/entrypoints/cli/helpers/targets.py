"""Resolve ``module:attribute`` targets into a `TestPlan`."""

from __future__ import annotations

import importlib

from podharness.service_layer.registry import TestPlan


class InvalidTargetError(ValueError):
    """Raised when a target cannot be resolved to a `TestPlan`."""


def load_plan(target: str) -> TestPlan:
    """Import ``package.module:attribute`` and return the `TestPlan` it names.

    The attribute may also be a zero-argument callable returning the plan.

    Raises:
        InvalidTargetError: If the target is malformed, cannot be imported, or
            does not resolve to a `TestPlan`.
    """
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise InvalidTargetError(f"expected MODULE:ATTRIBUTE, got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise InvalidTargetError(f"cannot import {module_name!r}: {e}") from e

    obj: object = module
    for part in attribute.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise InvalidTargetError(
                f"{module_name!r} has no attribute {attribute!r}"
            ) from e

    if callable(obj) and not isinstance(obj, TestPlan):
        obj = obj()
    if not isinstance(obj, TestPlan):
        raise InvalidTargetError(
            f"{target!r} is a {type(obj).__name__}, not a TestPlan"
        )
    return obj
