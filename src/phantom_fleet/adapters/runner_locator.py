from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from phantom_fleet.ports.runner import RunnerLocator

DEFAULT_RUNNER = ".venv/bin/pytest"


@dataclass(frozen=True, slots=True)
class GameDirRunnerLocator(RunnerLocator):
    # Runner path is resolved relative to the channel's game directory.
    runner: str = DEFAULT_RUNNER

    def locate(self, game_dir: Path) -> Path | None:
        candidate = (game_dir / self.runner).resolve()
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return candidate
        return None
