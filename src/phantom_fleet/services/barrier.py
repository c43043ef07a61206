from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from threading import Lock

from phantom_fleet.domain.fleet import FleetState


class BarrierPhase(str, Enum):
    COLLECTING = "collecting"
    COMPLETE = "complete"


class CompletionBarrier:
    """Counts finished bots and fires ``on_fleet_complete`` exactly once.

    The transition to COMPLETE is decided inside the lock; the callback runs
    outside it, in the thread that delivered the last completion. Duplicate
    signals for an index are ignored. With ``total == 0`` the barrier can
    never complete.
    """

    def __init__(self, total: int, on_fleet_complete: Callable[[], None] | None = None) -> None:
        if total < 0:
            raise ValueError("barrier total must be >= 0")
        self._total = total
        self._callback = on_fleet_complete
        self._launched: set[int] = set()
        self._finished: set[int] = set()
        self._phase = BarrierPhase.COLLECTING
        self._fired = False
        self._lock = Lock()

    @property
    def total(self) -> int:
        return self._total

    @property
    def phase(self) -> BarrierPhase:
        with self._lock:
            return self._phase

    def on_fleet_complete(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if self._callback is not None:
                raise RuntimeError("fleet-complete callback already registered")
            self._callback = callback
            fire = self._phase is BarrierPhase.COMPLETE and not self._fired
            if fire:
                self._fired = True
        if fire:
            callback()

    def mark_launched(self, index: int) -> None:
        self._check_index(index)
        with self._lock:
            self._launched.add(index)

    def bot_finished(self, index: int) -> bool:
        # Returns True only for the call that completed the fleet.
        self._check_index(index)
        with self._lock:
            if self._phase is BarrierPhase.COMPLETE or index in self._finished:
                return False
            self._finished.add(index)
            if len(self._finished) < self._total:
                return False
            self._phase = BarrierPhase.COMPLETE
            callback = self._callback
            if callback is not None:
                self._fired = True
        if callback is not None:
            callback()
        return True

    def snapshot(self) -> FleetState:
        with self._lock:
            return FleetState(
                launched=frozenset(self._launched),
                completed_count=len(self._finished),
                total=self._total,
            )

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= self._total:
            raise ValueError(f"bot index {index} out of range for fleet of {self._total}")
