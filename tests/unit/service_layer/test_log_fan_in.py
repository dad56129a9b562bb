"""Unit tests for LogFanIn."""

from __future__ import annotations

import asyncio
import logging

from podharness.domain.model import LogLine
from podharness.interfaces.backend import BackendError
from podharness.service_layer.logs import LogFanIn

# pylint: disable=magic-value-comparison


async def _lines(service, *texts, error=None):
    for text in texts:
        yield LogLine(service, text)
    if error is not None:
        raise error


async def _endless(service, closed: asyncio.Event):
    try:
        while True:
            await asyncio.sleep(3600)
            yield LogLine(service, "never")
    finally:
        closed.set()


async def test_merges_all_sources():
    """Test that every line of every source comes out, in per-source order."""
    async with LogFanIn([_lines("a", "1", "2"), _lines("b", "x")]) as logs:
        received = [await logs.get() for _ in range(3)]

    assert sorted(received, key=lambda l: l.service) == [
        LogLine("a", "1"),
        LogLine("a", "2"),
        LogLine("b", "x"),
    ]
    assert [l.text for l in received if l.service == "a"] == ["1", "2"]


async def test_backend_error_ends_one_source(caplog):
    """Test that a failing stream is logged while the others keep flowing."""
    broken = _lines("a", "before", error=BackendError("socket closed"))

    with caplog.at_level(logging.WARNING, logger="podharness.service_layer.logs"):
        async with LogFanIn([broken, _lines("b", "fine")]) as logs:
            received = {await logs.get() for _ in range(2)}
            await asyncio.sleep(0)

    assert received == {LogLine("a", "before"), LogLine("b", "fine")}
    assert "socket closed" in caplog.text


async def test_close_cancels_pending_sources():
    """Test that leaving the context closes sources that never end."""
    closed = asyncio.Event()

    async with LogFanIn([_endless("a", closed)]):
        await asyncio.sleep(0)

    assert closed.is_set()


async def test_no_sources():
    """Test that a fan-in over nothing opens and closes cleanly."""
    async with LogFanIn([]) as logs:
        assert logs is not None
