from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal, Union

from phantom_fleet.domain.errors import CredentialTableError

CREATE_NEW = "createNew"
NEXT_AVAILABLE = "nextAvailable"

CredentialPolicy = Literal["createNew", "nextAvailable"]


@dataclass(frozen=True, slots=True)
class NoCredential:
    # Bot connects without authentication.
    def summary(self) -> str:
        return ""


@dataclass(frozen=True, slots=True)
class PolicyCredential:
    # The service turns a repeated policy request into distinct identities.
    policy: CredentialPolicy

    def __post_init__(self) -> None:
        if self.policy not in (CREATE_NEW, NEXT_AVAILABLE):
            raise ValueError(f"unknown credential policy: {self.policy!r}")

    def summary(self) -> str:
        return f" {self.policy}"


@dataclass(frozen=True, slots=True)
class IdPasswordCredential:
    id: str
    password: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("IdPasswordCredential requires a non-empty id")

    def summary(self) -> str:
        text = f" id: {self.id}"
        if self.password:
            text += f" pwd: {self.password}"
        return text


@dataclass(frozen=True, slots=True)
class OpaqueCredential:
    # Implementation-defined auth value passed through to the bot untouched.
    value: str | int

    def summary(self) -> str:
        return f" {self.value}"


Credential = Union[NoCredential, PolicyCredential, IdPasswordCredential, OpaqueCredential]


def credential_payload(credential: Credential) -> object:
    """Return the JSON-serializable auth payload a bot presents to the service."""
    if isinstance(credential, PolicyCredential):
        return credential.policy
    if isinstance(credential, IdPasswordCredential):
        payload: dict[str, str] = {"id": credential.id}
        if credential.password is not None:
            payload["pwd"] = credential.password
        return payload
    if isinstance(credential, OpaqueCredential):
        return credential.value
    return None


@dataclass(frozen=True, slots=True)
class CredentialPlan:
    """Per-index credential assignment for one fleet.

    Either ``uniform`` (the same credential for every bot) or ``table`` (one
    record per bot index) is set. ``table`` wins when both are supplied.
    """

    uniform: Credential = NoCredential()
    table: tuple[Credential, ...] | None = None

    @classmethod
    def none(cls) -> CredentialPlan:
        return cls()

    @classmethod
    def shared(cls, credential: Credential) -> CredentialPlan:
        return cls(uniform=credential)

    @classmethod
    def from_table(cls, records: Sequence[Credential]) -> CredentialPlan:
        if not records:
            raise CredentialTableError("no auth codes found in credential table")
        return cls(table=tuple(records))

    @property
    def requires_auth(self) -> bool:
        if self.table is not None:
            return any(not isinstance(item, NoCredential) for item in self.table)
        return not isinstance(self.uniform, NoCredential)

    def check_covers(self, size: int) -> None:
        # A table shorter than the fleet leaves indices without a credential.
        if self.table is not None and len(self.table) < size:
            raise CredentialTableError(
                f"credential table has {len(self.table)} records, fleet needs {size}"
            )
