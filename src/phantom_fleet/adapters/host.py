from __future__ import annotations

import os
import sys

from phantom_fleet.ports.host import HostTerminator


class ProcessExitTerminator(HostTerminator):
    # Exits the whole interpreter from any thread; sys.exit would only end the caller's thread.
    def terminate(self, exit_code: int = 0) -> None:
        for stream in (sys.stdout, sys.stderr):
            try:
                stream.flush()
            except (OSError, ValueError):
                pass
        os._exit(exit_code)
