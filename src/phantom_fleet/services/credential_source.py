from __future__ import annotations

from dataclasses import dataclass

from phantom_fleet.domain.credentials import Credential, CredentialPlan


@dataclass(frozen=True, slots=True)
class CredentialSource:
    # Pure index -> credential mapping over a bound plan; short tables fail at construction.
    plan: CredentialPlan
    size: int

    def __post_init__(self) -> None:
        self.plan.check_covers(self.size)

    def resolve(self, index: int) -> Credential:
        if index < 0 or index >= self.size:
            raise IndexError(f"bot index {index} out of range for fleet of {self.size}")
        if self.plan.table is not None:
            return self.plan.table[index]
        return self.plan.uniform
