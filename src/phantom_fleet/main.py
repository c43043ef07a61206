from __future__ import annotations

import sys
from collections.abc import Sequence

from phantom_fleet.app import run


def main(argv: Sequence[str] | None = None) -> int:
    # Single-line entrypoint delegating to the CLI runtime.
    return run(list(argv) if argv is not None else None)


if __name__ == "__main__":
    sys.exit(main())
