from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

LOG_LEVELS = ("debug", "info", "warn", "error")


@dataclass(frozen=True, slots=True)
class LogMessage:
    # Structured log payload for the operator channel.
    level: str
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    fields: dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.level or not self.message:
            raise ValueError("LogMessage requires non-empty level/message")
        if self.level not in LOG_LEVELS:
            raise ValueError(f"LogMessage.level must be one of: {list(LOG_LEVELS)}")

    @property
    def text(self) -> str | None:
        # Optional human-readable rendering attached by the emitter.
        value = self.fields.get("text")
        return value if isinstance(value, str) else None


def level_rank(level: str) -> int:
    try:
        return LOG_LEVELS.index(level)
    except ValueError:
        raise ValueError(f"unknown log level: {level!r}; expected one of {list(LOG_LEVELS)}") from None
