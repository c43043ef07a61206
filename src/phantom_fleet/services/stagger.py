from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol

from phantom_fleet.observability.sinks import emit_log


class TimerLike(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerLike]
LaunchFn = Callable[[int], object]
ErrorFn = Callable[[int, Exception], None]


def thread_timer(delay_seconds: float, fn: Callable[[], None]) -> TimerLike:
    timer = threading.Timer(delay_seconds, fn)
    timer.name = f"phantom-fleet-stagger-{delay_seconds:g}s"
    return timer


def launch_delay_ms(index: int, interval_ms: int | None) -> int:
    # Bot 0 is never delayed; no (or zero) interval launches everything at once.
    if index <= 0 or not interval_ms:
        return 0
    return interval_ms * index


class StaggerScheduler:
    """Issues one launch per bot index, each on its own timer.

    Bot 0 (and every bot when no interval is configured) launches
    synchronously in index order; bot i > 0 launches ``interval_ms * i`` ms
    after ``schedule_all`` was called. A failing launch is reported through
    ``on_error`` and never affects the other indices.
    """

    def __init__(self, *, timer_factory: TimerFactory | None = None, log_sink: object | None = None) -> None:
        self._timer_factory = timer_factory or thread_timer
        self._log_sink = log_sink

    def schedule_all(
        self,
        size: int,
        interval_ms: int | None,
        launch_fn: LaunchFn,
        *,
        on_error: ErrorFn | None = None,
    ) -> list[int]:
        delays: list[int] = []
        for index in range(size):
            delay_ms = launch_delay_ms(index, interval_ms)
            delays.append(delay_ms)
            if delay_ms == 0:
                self._run_one(index, launch_fn, on_error)
                continue
            timer = self._timer_factory(
                delay_ms / 1000.0,
                lambda index=index: self._run_one(index, launch_fn, on_error),
            )
            timer.start()
        return delays

    def _run_one(self, index: int, launch_fn: LaunchFn, on_error: ErrorFn | None) -> None:
        try:
            launch_fn(index)
        except Exception as exc:  # noqa: BLE001 - isolate each scheduled launch.
            emit_log(
                self._log_sink,
                level="error",
                message="fleet.launch_failed",
                fields={"index": index, "error_type": type(exc).__name__},
                text=f"launching phantom #{index + 1} failed: {exc}",
            )
            if on_error is not None:
                on_error(index, exc)
