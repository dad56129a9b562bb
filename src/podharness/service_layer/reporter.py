"""Terminal reporting of test outcomes.

Each result is printed as soon as it is recorded. When the run finishes, the
retained outcomes are printed again in detail, with the captured output of
every service prefixed by the service name in a colour derived from that
name, followed by aggregate counts.
"""

from __future__ import annotations

import hashlib
import time
from collections.abc import Callable

from rich.color import Color
from rich.console import Console
from rich.style import Style
from rich.text import Text

from podharness.domain.model import OutcomeStatus, TestResult

NAME_WIDTH = 60
SERVICE_WIDTH = 12

STATUS_STYLES = {
    OutcomeStatus.PASS: ("pass", "bold green"),
    OutcomeStatus.FAIL: ("FAIL", "bold red"),
    OutcomeStatus.IGNORED: ("ignored", "bold yellow"),
}


def service_color(name: str) -> Color:
    """Deterministic colour for a service name.

    Derived from the SHA-256 digest of the name, so it is the same in every
    process (unlike the salted built-in `hash()`). Channels are kept in the
    upper range to stay readable on dark terminals.
    """
    digest = hashlib.sha256(name.encode("utf-8")).digest()
    red, green, blue = (64 + b % 192 for b in digest[:3])
    return Color.from_rgb(red, green, blue)


def service_prefix(name: str, width: int = SERVICE_WIDTH) -> Text:
    """Fixed-width, coloured prefix for the log lines of service `name`."""
    label = name[:width].ljust(width)
    return Text(label, style=Style(color=service_color(name), bold=True))


class Reporter:  # pylint: disable=too-many-instance-attributes
    """Accumulates results and renders them with Rich.

    Args:
        console: Console to print to; a stdout console by default.
        log_all: Retain passing results for the final detail section too
            (by default only failing and ignored results are retained).
        clock: Monotonic clock used for the elapsed time.
    """

    def __init__(
        self,
        console: Console | None = None,
        *,
        log_all: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.console = console or Console(highlight=False)
        self.log_all = log_all
        self.passed = 0
        self.failed = 0
        self.ignored = 0
        self.retained: list[TestResult] = []
        self.suite_errors: list[tuple[str, Exception]] = []
        self._clock = clock
        self._started = clock()

    def record(self, result: TestResult) -> None:
        """Print the one-line status of `result` and tally it."""
        word, style = STATUS_STYLES[result.status]
        self.console.print(Text.assemble(result.name.ljust(NAME_WIDTH), " ", (word, style)))
        match result.status:
            case OutcomeStatus.PASS:
                self.passed += 1
                keep = self.log_all
            case OutcomeStatus.FAIL:
                self.failed += 1
                keep = True
            case OutcomeStatus.IGNORED:
                self.ignored += 1
                keep = True
        if keep:
            self.retained.append(result)

    def report_error(self, suite: str, error: Exception) -> None:
        """Print an error that aborted a whole suite."""
        self.suite_errors.append((suite, error))
        self.console.print(
            Text.assemble(
                ("error", "bold red"), f" running test suite '{suite}': {error}"
            )
        )

    def _print_detail(self, result: TestResult) -> None:
        word, style = STATUS_STYLES[result.status]
        self.console.print()
        self.console.print(
            Text.assemble("=== ", (word, style), f": {result.name} ===")
        )
        if result.message:
            self.console.print(Text(result.message))
        for line in result.logs or ():
            for text in line.text.splitlines() or [""]:
                self.console.print(
                    Text.assemble(service_prefix(line.service), " | ", text)
                )

    @property
    def elapsed(self) -> float:
        """Seconds since the reporter was created."""
        return self._clock() - self._started

    def finish(self) -> bool:
        """Print retained details and the summary line.

        Returns:
            bool: True when no test failed and no suite errored.
        """
        for result in self.retained:
            self._print_detail(result)

        ok = self.failed == 0 and not self.suite_errors
        self.console.print()
        self.console.print(
            Text.assemble(
                "test result: ",
                ("ok", "bold green") if ok else ("FAILED", "bold red"),
                f". {self.passed} passed; {self.ignored} ignored; "
                f"{self.failed} failed; finished in {self.elapsed:.2f}s",
            )
        )
        return ok
