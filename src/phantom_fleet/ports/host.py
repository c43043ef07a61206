from __future__ import annotations

from typing import Protocol, runtime_checkable


# Host termination is one-way: a real adapter never returns.
@runtime_checkable
class HostTerminator(Protocol):
    def terminate(self, exit_code: int = 0) -> None:
        """Terminate the hosting process with exit_code."""
        # Port contract has no implementation; calling it directly is a wiring error.
        raise NotImplementedError("HostTerminator is a port; use a concrete adapter.")
