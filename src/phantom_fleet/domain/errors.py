from __future__ import annotations


class FleetError(Exception):
    # Base error for fleet launch/supervision failures.
    pass


class FleetPreconditionError(FleetError):
    # Raised before any bot is launched; the fleet is not started (no partial fleets).
    pass


class FleetSpecError(FleetPreconditionError, ValueError):
    # Malformed fleet size or stagger interval.
    pass


class ChannelNotFoundError(FleetPreconditionError):
    def __init__(self, name: str | None) -> None:
        super().__init__(f"channel {name} was not found.")
        self.name = name


class AuthNotSupportedError(FleetPreconditionError):
    def __init__(self, name: str) -> None:
        super().__init__(f"auth option enabled, but channel {name} does not support it.")
        self.name = name


class CredentialTableError(FleetPreconditionError, ValueError):
    # Empty or too short credential table.
    pass
