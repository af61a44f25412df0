"""Process sampling engine for proctrack."""

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from proctrack.calculator import build_snapshot
from proctrack.errors import EnumerationError, InvalidIntervalError, ProcessNotFoundError
from proctrack.models import ProcessSnapshot, SampleGeneration
from proctrack.sources import ProcessSource, default_source
from proctrack.store import SampleStore

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 2.0
STOP_TIMEOUT = 5.0


class SchedulerState(Enum):
    """Phases of the refresh loop."""

    IDLE = "idle"
    SAMPLING = "sampling"
    PUBLISHING = "publishing"
    STOPPED = "stopped"


@dataclass(slots=True)
class EngineState:
    """Mutable engine state. Every field is guarded by the engine lock."""

    snapshot: tuple[ProcessSnapshot, ...]
    interval: float
    running: bool = False
    generation: int = 0
    last_error: Exception | None = None


def _validate_interval(seconds: float) -> float:
    try:
        interval = float(seconds)
    except (TypeError, ValueError) as exc:
        raise InvalidIntervalError(f"Interval must be a number of seconds, got {seconds!r}") from exc
    if not (interval > 0 and math.isfinite(interval)):
        raise InvalidIntervalError(f"Interval must be positive and finite, got {seconds!r}")
    return interval


class ProcessEngine:
    """
    Periodically samples the process table and publishes a snapshot.

    A daemon thread runs the refresh loop. Readers call ``snapshot()`` from
    any thread and get the last published tuple without waiting for a
    refresh in progress. One lock guards the published state and the sample
    store; it is never held while the process table is being read or while a
    process is being terminated.
    """

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL,
        source: ProcessSource | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the ProcessEngine.

        Args:
            interval: Seconds to wait between refresh cycles. Default 2.0s.
            source: Process table enumerator. Defaults to the platform's.
            clock: Monotonic clock used to timestamp samples.

        Raises:
            InvalidIntervalError: ``interval`` is not positive and finite.
        """
        self._lock = threading.Lock()
        self._state = EngineState(snapshot=(), interval=_validate_interval(interval))
        self._store = SampleStore(self._lock)
        self._source = source if source is not None else default_source()
        self._clock = clock

        self._phase = SchedulerState.IDLE
        self._cycle_lock = threading.Lock()
        self._wake = threading.Event()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        """Seconds between refresh cycles."""
        with self._lock:
            return self._state.interval

    @property
    def is_running(self) -> bool:
        """Check if the refresh thread is running."""
        with self._lock:
            return self._state.running

    @property
    def state(self) -> SchedulerState:
        """Current phase of the refresh loop."""
        with self._lock:
            return self._phase

    @property
    def generation(self) -> int:
        """Number of snapshots published so far."""
        with self._lock:
            return self._state.generation

    @property
    def last_error(self) -> Exception | None:
        """Failure of the most recent cycle, or None if it published."""
        with self._lock:
            return self._state.last_error

    def start(self) -> None:
        """Start the refresh thread. The first cycle runs immediately."""
        if self.is_running:
            return

        self._stop_event.clear()
        with self._lock:
            self._state.running = True
            self._phase = SchedulerState.IDLE
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name="ProcessEngine",
        )
        self._thread.start()
        logger.info("Process engine started (interval: %.1fs)", self.interval)

    def stop(self, timeout: float | None = STOP_TIMEOUT) -> None:
        """
        Stop the refresh thread and release the sample store.

        A cycle already in flight is allowed to finish.

        Args:
            timeout: How long to wait for the thread to stop (seconds).
        """
        self._stop_event.set()
        self._wake.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("Process engine thread did not stop within %.1fs", timeout)
                return
            self._thread = None
            logger.info("Process engine stopped")

        with self._lock:
            self._state.running = False
            self._phase = SchedulerState.STOPPED
        self._store.clear()

    def snapshot(self) -> tuple[ProcessSnapshot, ...]:
        """Latest published snapshot, ordered by pid."""
        with self._lock:
            return self._state.snapshot

    def set_interval(self, seconds: float) -> None:
        """
        Change the refresh interval, effective from the next wait.

        Raises:
            InvalidIntervalError: ``seconds`` is not positive and finite.
        """
        interval = _validate_interval(seconds)
        with self._lock:
            self._state.interval = interval
        logger.debug("Refresh interval set to %.1fs", interval)

    def request_refresh(self) -> None:
        """Start a cycle now, unless one is already sampling or publishing."""
        with self._lock:
            if self._phase in (SchedulerState.SAMPLING, SchedulerState.PUBLISHING):
                return
            self._wake.set()

    def terminate(self, pid: int, force: bool = True) -> None:
        """
        Terminate a process listed in the latest enumeration.

        Does not refresh the snapshot; callers request that themselves.

        Raises:
            ProcessNotFoundError: The pid was not in the latest enumeration,
                or it has exited since.
            ProcessPermissionError: The OS refused to terminate it.
            PlatformError: Any other OS failure.
        """
        current = self._store.current
        if pid <= 0 or current is None or pid not in current.records:
            raise ProcessNotFoundError(pid)

        self._source.terminate(pid, force=force)
        logger.info("Sent %s to process %d", "kill" if force else "terminate", pid)

    def run_cycle(self) -> bool:
        """
        Run one sample-and-publish cycle in the calling thread.

        Returns:
            True if a new snapshot was published, False if enumeration failed
            and the previous snapshot was kept, or the engine was stopped.
        """
        with self._cycle_lock:
            with self._lock:
                if self._phase is SchedulerState.STOPPED:
                    return False
                # Refresh requests from here on coalesce into this cycle
                self._wake.clear()
                self._phase = SchedulerState.SAMPLING
            try:
                return self._sample_and_publish()
            finally:
                with self._lock:
                    if self._phase is not SchedulerState.STOPPED:
                        self._phase = SchedulerState.IDLE

    def _set_phase(self, phase: SchedulerState) -> None:
        with self._lock:
            if self._phase is not SchedulerState.STOPPED:
                self._phase = phase

    def _sample_and_publish(self) -> bool:
        started = time.perf_counter()
        now = self._clock()
        try:
            enumeration = self._source.enumerate(now)
        except EnumerationError as exc:
            logger.warning("Enumeration failed, keeping previous snapshot: %s", exc)
            with self._lock:
                self._state.last_error = exc
            return False

        self._set_phase(SchedulerState.PUBLISHING)
        current, previous = self._store.commit(SampleGeneration.from_enumeration(now, enumeration))
        snapshot = build_snapshot(current, previous)

        with self._lock:
            self._state.snapshot = snapshot
            self._state.generation += 1
            self._state.last_error = None

        logger.debug(
            "Published %d processes in %.1fms",
            len(snapshot),
            (time.perf_counter() - started) * 1000,
        )
        return True

    def _run(self) -> None:
        """Main refresh loop running in the background thread."""
        while not self._stop_event.is_set():
            try:
                self.run_cycle()
            except Exception as exc:
                logger.exception("Refresh cycle failed, keeping previous snapshot")
                with self._lock:
                    self._state.last_error = exc

            # Re-read so a new interval applies from this wait on
            if not self._stop_event.is_set():
                self._wake.wait(timeout=self.interval)

        with self._lock:
            self._phase = SchedulerState.STOPPED


def start(interval: float = DEFAULT_INTERVAL, source: ProcessSource | None = None) -> ProcessEngine:
    """Create a ProcessEngine and start its refresh thread."""
    engine = ProcessEngine(interval=interval, source=source)
    engine.start()
    return engine


def stop(engine: ProcessEngine) -> None:
    """Stop a running ProcessEngine."""
    engine.stop()
