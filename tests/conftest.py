from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from phantom_fleet.domain.bot import BotHandle
from phantom_fleet.ports.channel import Channel, ConnectConfig


class FakeChannel(Channel):
    # In-memory channel: bots "run" until the test finishes them.
    def __init__(self, name: str = "ultimatum", *, auth_enabled: bool = True, directory: Path | None = None) -> None:
        self.name = name
        self.auth_enabled = auth_enabled
        self._directory = directory or Path("/games") / name
        self.connects: list[ConnectConfig] = []
        self.handles: dict[int, BotHandle] = {}
        self.fail_indices: set[int] = set()

    def game_dir(self) -> Path:
        return self._directory

    def connect(self, config: ConnectConfig) -> BotHandle:
        self.connects.append(config)
        if config.index in self.fail_indices:
            raise OSError(f"cannot spawn bot {config.index}")
        handle = BotHandle(config.index, config.credential, pid=1000 + config.index)
        self.handles[config.index] = handle
        return handle

    def finish(self, index: int, exit_code: int = 0) -> None:
        self.handles[index].finish(exit_code)

    def finish_all(self, exit_code: int = 0) -> None:
        for index in sorted(self.handles):
            self.handles[index].finish(exit_code)


class ManualTimer:
    def __init__(self, delay: float, fn: Callable[[], None]) -> None:
        self.delay = delay
        self.fn = fn
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.fired = True
        self.fn()


class ManualTimers:
    # Timer factory that lets tests decide when each staggered launch happens.
    def __init__(self) -> None:
        self.timers: list[ManualTimer] = []

    def __call__(self, delay: float, fn: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(delay, fn)
        self.timers.append(timer)
        return timer

    def delays_ms(self) -> list[int]:
        return [round(timer.delay * 1000) for timer in self.timers]

    def fire_all(self) -> None:
        for timer in self.timers:
            if not timer.fired:
                timer.fire()


class RecordingTerminator:
    # HostTerminator stand-in: records the request instead of exiting.
    def __init__(self, events: list[str] | None = None) -> None:
        self.exit_codes: list[int] = []
        self.events = events if events is not None else []

    def terminate(self, exit_code: int = 0) -> None:
        self.exit_codes.append(exit_code)
        self.events.append("kill_host")


class StaticLocator:
    def __init__(self, runner: Path | None) -> None:
        self.runner = runner
        self.calls: list[Path] = []

    def locate(self, game_dir: Path) -> Path | None:
        self.calls.append(game_dir)
        return self.runner


def inline_thread(target: Callable[[], None]):
    # Thread factory running post-fleet actions synchronously.
    class _Inline:
        def start(self) -> None:
            target()

    return _Inline()


@pytest.fixture()
def fake_channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture()
def channel_factory() -> Callable[..., FakeChannel]:
    return FakeChannel


@pytest.fixture()
def manual_timers() -> ManualTimers:
    return ManualTimers()


@pytest.fixture()
def terminator() -> RecordingTerminator:
    return RecordingTerminator()


@pytest.fixture()
def locator_factory() -> Callable[[Path | None], StaticLocator]:
    return StaticLocator


@pytest.fixture()
def inline_threads() -> Callable[[Callable[[], None]], object]:
    return inline_thread
