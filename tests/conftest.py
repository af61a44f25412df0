"""Shared fixtures: an in-memory process source and a controllable clock."""

import threading

import pytest

from proctrack.models import Enumeration, ProcessRecord
from proctrack.sources import ProcessSource

TOTAL_MEMORY = 1000 * 1024


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSource(ProcessSource):
    """
    Process source fed from a script of process tables.

    Each queued item is either a ``{pid: (cpu_time, resident_memory)}``
    mapping or an exception to raise from ``enumerate``. The last table is
    repeated once the script runs out.
    """

    def __init__(self, *script, total_memory: int = TOTAL_MEMORY, core_count: int = 4) -> None:
        self.script = list(script)
        self.total_memory = total_memory
        self.core_count = core_count
        self.calls = 0
        self.terminated: list[tuple[int, bool]] = []
        self.terminate_error: Exception | None = None
        # Set these to hold enumerate() open from a test
        self.entered = threading.Event()
        self.release: threading.Event | None = None
        self._last: dict[int, tuple[float, int]] = {}

    def push(self, item) -> None:
        self.script.append(item)

    def enumerate(self, now: float) -> Enumeration:
        self.calls += 1
        self.entered.set()
        if self.release is not None:
            self.release.wait(timeout=5.0)

        item = self.script.pop(0) if self.script else self._last
        if isinstance(item, Exception):
            raise item
        self._last = item
        records = [
            ProcessRecord(
                pid=pid,
                name=f"proc{pid}",
                owner="tester",
                resident_memory=rss,
                cpu_time=cpu_time,
                sampled_at=now,
            )
            for pid, (cpu_time, rss) in item.items()
        ]
        return Enumeration(records=records, total_memory=self.total_memory, core_count=self.core_count)

    def terminate(self, pid: int, force: bool = True) -> None:
        if self.terminate_error is not None:
            raise self.terminate_error
        self.terminated.append((pid, force))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()
