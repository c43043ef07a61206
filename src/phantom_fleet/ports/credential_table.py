from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from phantom_fleet.domain.credentials import Credential


@runtime_checkable
class CredentialTableLoader(Protocol):
    def load(self, path: Path) -> list[Credential]:
        """Return the ordered credential records; raise CredentialTableError when none are found."""
        # Port contract has no implementation; calling it directly is a wiring error.
        raise NotImplementedError("CredentialTableLoader is a port; use a concrete adapter.")
