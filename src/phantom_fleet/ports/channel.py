from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from phantom_fleet.domain.bot import BotHandle
from phantom_fleet.domain.credentials import Credential, NoCredential


@dataclass(frozen=True, slots=True)
class ConnectConfig:
    # Per-bot connection request handed to a channel.
    index: int
    query_parameters: str | None = None
    credential: Credential = NoCredential()


# Channel port is the hosted service unit bots connect to.
@runtime_checkable
class Channel(Protocol):
    name: str
    auth_enabled: bool

    def game_dir(self) -> Path:
        """Return the directory holding the channel's game (and its test/ folder)."""
        # Port contract has no implementation; calling it directly is a wiring error.
        raise NotImplementedError("Channel is a port; use a concrete adapter.")

    def connect(self, config: ConnectConfig) -> BotHandle:
        """Start one bot and return immediately with its handle."""
        # Port contract has no implementation; calling it directly is a wiring error.
        raise NotImplementedError("Channel is a port; use a concrete adapter.")


@runtime_checkable
class ChannelRegistry(Protocol):
    def resolve(self, name: str) -> Channel | None:
        """Return the channel registered under name, or None when it does not exist."""
        # Port contract has no implementation; calling it directly is a wiring error.
        raise NotImplementedError("ChannelRegistry is a port; use a concrete adapter.")
