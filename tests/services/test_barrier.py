from __future__ import annotations

import itertools
import threading

import pytest

from phantom_fleet.services.barrier import BarrierPhase, CompletionBarrier


@pytest.mark.parametrize("total", [1, 2, 3, 4])
def test_fires_exactly_once_for_every_completion_order(total: int) -> None:
    # Any permutation of N signals completes the fleet exactly once, on the N-th signal.
    for order in itertools.permutations(range(total)):
        fired: list[int] = []
        barrier = CompletionBarrier(total, lambda: fired.append(1))
        results = [barrier.bot_finished(index) for index in order]
        assert results == [False] * (total - 1) + [True]
        assert fired == [1]
        assert barrier.phase is BarrierPhase.COMPLETE
        assert barrier.snapshot().completed_count == total


def test_duplicate_and_spurious_signals_do_not_refire() -> None:
    fired: list[int] = []
    barrier = CompletionBarrier(2, lambda: fired.append(1))
    barrier.bot_finished(0)
    assert barrier.bot_finished(0) is False
    assert barrier.snapshot().completed_count == 1
    barrier.bot_finished(1)
    assert barrier.bot_finished(1) is False
    assert barrier.bot_finished(0) is False
    assert fired == [1]


def test_completion_before_later_launches_is_tolerated() -> None:
    # Bot 3 may finish before bot 1 has even been launched.
    fired: list[int] = []
    barrier = CompletionBarrier(4, lambda: fired.append(1))
    barrier.mark_launched(0)
    barrier.mark_launched(3)
    barrier.bot_finished(3)
    barrier.bot_finished(0)
    assert not fired
    barrier.mark_launched(1)
    barrier.mark_launched(2)
    barrier.bot_finished(2)
    assert not fired
    barrier.bot_finished(1)
    assert fired == [1]
    assert barrier.snapshot().launched == frozenset({0, 1, 2, 3})


def test_zero_total_never_completes() -> None:
    fired: list[int] = []
    barrier = CompletionBarrier(0, lambda: fired.append(1))
    assert barrier.phase is BarrierPhase.COLLECTING
    with pytest.raises(ValueError):
        barrier.bot_finished(0)
    assert not fired


def test_callback_registered_after_completion_fires_once() -> None:
    barrier = CompletionBarrier(1)
    barrier.bot_finished(0)
    fired: list[int] = []
    barrier.on_fleet_complete(lambda: fired.append(1))
    barrier.bot_finished(0)
    assert fired == [1]


def test_callback_can_only_be_registered_once() -> None:
    barrier = CompletionBarrier(1, lambda: None)
    with pytest.raises(RuntimeError):
        barrier.on_fleet_complete(lambda: None)


def test_out_of_range_index_is_rejected() -> None:
    barrier = CompletionBarrier(2)
    with pytest.raises(ValueError):
        barrier.bot_finished(2)
    with pytest.raises(ValueError):
        barrier.mark_launched(-1)


def test_concurrent_signals_fire_once() -> None:
    # Signals delivered from many threads at once still complete exactly once.
    total = 64
    fired: list[int] = []
    barrier = CompletionBarrier(total, lambda: fired.append(1))
    start = threading.Barrier(total)

    def _signal(index: int) -> None:
        start.wait()
        barrier.bot_finished(index)
        barrier.bot_finished(index)

    threads = [threading.Thread(target=_signal, args=(index,)) for index in range(total)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    assert fired == [1]
    assert barrier.snapshot().completed_count == total
