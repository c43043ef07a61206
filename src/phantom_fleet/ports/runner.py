from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class RunnerLocator(Protocol):
    def locate(self, game_dir: Path) -> Path | None:
        """Return the test-runner executable for game_dir, or None when it is missing."""
        # Port contract has no implementation; calling it directly is a wiring error.
        raise NotImplementedError("RunnerLocator is a port; use a concrete adapter.")
