"""Two-generation sample store."""

import threading

from proctrack.models import SampleGeneration


class SampleStore:
    """
    Holds the current and previous process-table generations.

    Only one step of history is retained: committing a generation demotes
    the current one to previous and drops whatever was previous before.
    The lock may be shared with the owner so that store and published state
    are guarded by the same exclusion primitive.
    """

    def __init__(self, lock: "threading.Lock | None" = None) -> None:
        self._lock = lock if lock is not None else threading.Lock()
        self._current: SampleGeneration | None = None
        self._previous: SampleGeneration | None = None

    @property
    def current(self) -> SampleGeneration | None:
        """The most recently committed generation."""
        with self._lock:
            return self._current

    @property
    def previous(self) -> SampleGeneration | None:
        """The generation committed before ``current``, if any."""
        with self._lock:
            return self._previous

    def commit(
        self, generation: SampleGeneration
    ) -> tuple[SampleGeneration, SampleGeneration | None]:
        """
        Make ``generation`` current and return the ``(current, previous)`` pair.

        The pair is taken under the same lock acquisition as the swap, so the
        caller always diffs against the generation it actually replaced.
        """
        with self._lock:
            self._previous = self._current
            self._current = generation
            return self._current, self._previous

    def clear(self) -> None:
        """Drop both generations."""
        with self._lock:
            self._current = None
            self._previous = None
