from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from phantom_fleet.domain.errors import FleetSpecError

DEFAULT_FLEET_SIZE = 4
DEFAULT_CLIENT_KIND = "autoplay"
DEFAULT_STAGGER_MS = 1000


@dataclass(frozen=True, slots=True)
class FleetSpec:
    # Immutable description of the fleet to launch; size 0 means no fleet.
    size: int = DEFAULT_FLEET_SIZE
    client_kind: str = DEFAULT_CLIENT_KIND
    query_parameters: str | None = None
    stagger_interval_ms: int | None = None

    def __post_init__(self) -> None:
        if isinstance(self.size, bool) or not isinstance(self.size, int) or self.size < 0:
            raise FleetSpecError(f"fleet size must be a non-negative integer, got {self.size!r}")
        interval = self.stagger_interval_ms
        if interval is not None and (isinstance(interval, bool) or not isinstance(interval, int) or interval < 0):
            raise FleetSpecError(
                f"stagger interval must be a positive number or undefined. Found: {interval!r}"
            )
        if self.query_parameters is None and self.client_kind:
            object.__setattr__(self, "query_parameters", f"?clientType={self.client_kind}")


class PostFleetAction(str, Enum):
    # Declaration order is execution order.
    RUN_TESTS = "run_tests"
    KILL_HOST = "kill_host"


@dataclass(frozen=True, slots=True)
class PostFleetActions:
    enabled: frozenset[PostFleetAction] = field(default_factory=frozenset)

    @classmethod
    def from_flags(cls, *, run_tests: bool = False, kill_host: bool = False) -> PostFleetActions:
        enabled: set[PostFleetAction] = set()
        if run_tests:
            enabled.add(PostFleetAction.RUN_TESTS)
        if kill_host:
            enabled.add(PostFleetAction.KILL_HOST)
        return cls(enabled=frozenset(enabled))

    @classmethod
    def of(cls, *actions: PostFleetAction) -> PostFleetActions:
        return cls(enabled=frozenset(actions))

    def ordered(self) -> list[PostFleetAction]:
        # Canonical order regardless of the order options were supplied in.
        return [action for action in PostFleetAction if action in self.enabled]

    def __bool__(self) -> bool:
        return bool(self.enabled)

    def __contains__(self, action: object) -> bool:
        return action in self.enabled


@dataclass(frozen=True, slots=True)
class FleetState:
    # Point-in-time snapshot of barrier-owned fleet state.
    launched: frozenset[int]
    completed_count: int
    total: int

    @property
    def complete(self) -> bool:
        return self.total > 0 and self.completed_count == self.total
