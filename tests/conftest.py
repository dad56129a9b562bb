"""Global pytest configuration for PODHARNESS."""

from __future__ import annotations

from pathlib import Path

import pytest

pytest_plugins = [
    "tests.fixtures.environments",
    "tests.fixtures.docker",
]

TESTS_ROOT = Path(__file__).parent.resolve()

# top-level test directory -> default marker
DIRECTORY_MARKERS = {
    "unit": "unit",
    "contract": "contract",
    "integration": "integration",
    "e2e": "e2e",
}


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(
    config: pytest.Config,  # pylint: disable=unused-argument
    items: list[pytest.Item],
) -> None:
    """Mark every item with the name of the test directory it lives in."""
    for item in items:
        try:
            relative = item.path.resolve().relative_to(TESTS_ROOT)
        except ValueError:
            continue
        marker = DIRECTORY_MARKERS.get(relative.parts[0])
        if marker and not any(m.name == marker for m in item.iter_markers()):
            item.add_marker(getattr(pytest.mark, marker))
