"""Network name generators for podharness."""

import itertools
import threading
import uuid

from ulid import monotonic

from podharness.interfaces.naming import NameGenerator

# pylint: disable=too-few-public-methods

DEFAULT_PREFIX = "podharness"


class ULIDNameGenerator(NameGenerator):
    """Thread-safe generator of ``<prefix>-<ulid>`` names.

    ULIDs sort by creation time, so networks left behind by a crashed run
    list in the order they were created. Backed by the `ulid-py` library.
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX) -> None:
        self._prefix = prefix
        self._lock = threading.Lock()

    def new_name(self) -> str:
        with self._lock:
            value = str(monotonic.new()).lower()
        return f"{self._prefix}-{value}"


class UUIDNameGenerator(NameGenerator):
    """Generator of ``<prefix>-<uuid4>`` names (random, unordered)."""

    def __init__(self, prefix: str = DEFAULT_PREFIX) -> None:
        self._prefix = prefix

    def new_name(self) -> str:
        return f"{self._prefix}-{uuid.uuid4()}"


class SequentialNameGenerator(NameGenerator):
    """Predictable ``<prefix>-<n>`` names.

    Note:
        Only unique within one process; meant for tests and demos.
    """

    def __init__(self, prefix: str = "net") -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def new_name(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"
