from __future__ import annotations

from collections.abc import Callable
from threading import Event, Lock

from phantom_fleet.domain.credentials import Credential, NoCredential

ExitCallback = Callable[["BotHandle"], None]


class BotHandle:
    """One running bot.

    The completion signal fires at most once, when the underlying process
    exits (normally or abnormally) or when the launch itself failed.
    Callbacks registered after completion are invoked immediately.
    """

    def __init__(self, index: int, credential: Credential | None = None, *, pid: int | None = None) -> None:
        self.index = index
        self.credential = credential if credential is not None else NoCredential()
        self.pid = pid
        self.exit_code: int | None = None
        self.error: BaseException | None = None
        self._callbacks: list[ExitCallback] = []
        self._finished = Event()
        self._lock = Lock()

    @property
    def finished(self) -> bool:
        return self._finished.is_set()

    @property
    def abnormal(self) -> bool:
        return self.error is not None or (self.exit_code is not None and self.exit_code != 0)

    def on_exit(self, callback: ExitCallback) -> None:
        with self._lock:
            if not self._finished.is_set():
                self._callbacks.append(callback)
                return
        callback(self)

    def finish(self, exit_code: int | None = None, *, error: BaseException | None = None) -> bool:
        # Returns False when the signal already fired.
        with self._lock:
            if self._finished.is_set():
                return False
            self.exit_code = exit_code
            self.error = error
            self._finished.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for callback in callbacks:
            callback(self)
        return True

    def wait(self, timeout: float | None = None) -> bool:
        return self._finished.wait(timeout)

    def __repr__(self) -> str:
        return f"BotHandle(index={self.index}, pid={self.pid}, exit_code={self.exit_code}, finished={self.finished})"


def failed_handle(index: int, credential: Credential, error: BaseException) -> BotHandle:
    # Launch failures still count as completions for barrier progression.
    handle = BotHandle(index, credential)
    handle.finish(None, error=error)
    return handle
