from __future__ import annotations

import json
import sys
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from threading import Lock
from typing import Protocol, TextIO, runtime_checkable

from phantom_fleet.observability.messages import LogMessage, level_rank


@runtime_checkable
class LogSink(Protocol):
    def emit(self, message: LogMessage) -> None:
        """Deliver one log message to the operator channel."""
        raise NotImplementedError("LogSink is a port; use a concrete sink.")


class StdoutLogSink:
    # One compact JSON object per line on stdout.
    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self._lock = Lock()

    def emit(self, message: LogMessage) -> None:
        line = json.dumps(_log_to_dict(message), separators=(",", ":"), ensure_ascii=False, default=str)
        with self._lock:
            print(line, file=self._stream or sys.stdout, flush=True)


class ConsoleLogSink:
    # Human-readable operator output; errors follow the "Check the input parameters." layout.
    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self._lock = Lock()

    def emit(self, message: LogMessage) -> None:
        lines = _render_text(message)
        stream = self._stream or sys.stdout
        with self._lock:
            for line in lines:
                print(line, file=stream)
            stream.flush()


class JsonlLogSink:
    # File-backed structured log sink for fleet lifecycle diagnostics.
    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self._path.open("a", encoding="utf-8")
        self._lock = Lock()

    def emit(self, message: LogMessage) -> None:
        payload = json.dumps(_log_to_dict(message), separators=(",", ":"), ensure_ascii=False, default=str)
        with self._lock:
            self._file.write(payload + "\n")
            self._file.flush()

    def close(self) -> None:
        with self._lock:
            if not self._file.closed:
                self._file.close()


class FanoutLogSink:
    def __init__(self, sinks: Iterable[object]) -> None:
        self._sinks = list(sinks)

    def emit(self, message: LogMessage) -> None:
        for sink in self._sinks:
            _emit(sink, message)

    def close(self) -> None:
        for sink in self._sinks:
            close_log_sink(sink)


class LevelFilterLogSink:
    # Drops messages below the configured minimum level.
    def __init__(self, sink: object, level: str = "info") -> None:
        self._sink = sink
        self._threshold = level_rank(level)

    def emit(self, message: LogMessage) -> None:
        if level_rank(message.level) >= self._threshold:
            _emit(self._sink, message)

    def close(self) -> None:
        close_log_sink(self._sink)


class MemoryLogSink:
    # Collects messages in memory; used by tests and dry runs.
    def __init__(self) -> None:
        self.messages: list[LogMessage] = []
        self._lock = Lock()

    def emit(self, message: LogMessage) -> None:
        with self._lock:
            self.messages.append(message)

    def names(self) -> list[str]:
        with self._lock:
            return [message.message for message in self.messages]

    def find(self, name: str) -> list[LogMessage]:
        with self._lock:
            return [message for message in self.messages if message.message == name]


def emit_log(
    sink: object | None,
    *,
    level: str,
    message: str,
    fields: dict[str, object] | None = None,
    text: str | None = None,
) -> None:
    # Logging must never break fleet state; sink failures are dropped.
    emit = getattr(sink, "emit", None)
    if not callable(emit):
        return
    payload = dict(fields or {})
    if text is not None:
        payload["text"] = text
    try:
        emit(LogMessage(level=level, message=message, timestamp=datetime.now(tz=UTC), fields=payload))
    except Exception:
        return


def close_log_sink(sink: object | None) -> None:
    close = getattr(sink, "close", None)
    if callable(close):
        close()


def _emit(sink: object, message: LogMessage) -> None:
    emit = getattr(sink, "emit", None)
    if callable(emit):
        emit(message)


def _render_text(message: LogMessage) -> list[str]:
    text = message.text
    if text is None:
        details = " ".join(f"{key}={value}" for key, value in message.fields.items())
        text = f"{message.message} {details}".rstrip()
    if message.level == "error":
        return ["    Check the input parameters.", f"    Error: {text}"]
    if message.level == "warn":
        return [f"    {text}"]
    return [text]


def _log_to_dict(message: LogMessage) -> dict[str, object]:
    return {
        "level": message.level,
        "message": message.message,
        "timestamp": message.timestamp.isoformat().replace("+00:00", "Z"),
        "fields": message.fields,
    }
