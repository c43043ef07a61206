from .messages import LOG_LEVELS, LogMessage, level_rank
from .sinks import (
    ConsoleLogSink,
    FanoutLogSink,
    JsonlLogSink,
    LevelFilterLogSink,
    LogSink,
    MemoryLogSink,
    StdoutLogSink,
    close_log_sink,
    emit_log,
)

__all__ = [
    "LOG_LEVELS",
    "ConsoleLogSink",
    "FanoutLogSink",
    "JsonlLogSink",
    "LevelFilterLogSink",
    "LogMessage",
    "LogSink",
    "MemoryLogSink",
    "StdoutLogSink",
    "close_log_sink",
    "emit_log",
    "level_rank",
]
