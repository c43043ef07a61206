from __future__ import annotations

import json
import os
import subprocess
import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from phantom_fleet.domain.bot import BotHandle
from phantom_fleet.domain.credentials import credential_payload
from phantom_fleet.ports.channel import Channel, ChannelRegistry, ConnectConfig


@dataclass
class SubprocessChannel(Channel):
    """Channel whose bots are headless client processes.

    ``command`` tokens may contain ``{url}``, ``{index}`` and ``{channel}``
    placeholders. The credential reaches the bot as JSON in ``PHANTOM_AUTH``.
    """

    name: str
    directory: Path
    command: Sequence[str]
    server_url: str = "http://localhost:8080"
    auth_enabled: bool = False
    env: Mapping[str, str] = field(default_factory=dict)
    popen: Callable[..., subprocess.Popen] = subprocess.Popen

    def __post_init__(self) -> None:
        if not self.command:
            raise ValueError(f"channel {self.name} has an empty client command")

    def game_dir(self) -> Path:
        return self.directory

    def url(self, query_parameters: str | None = None) -> str:
        return f"{self.server_url.rstrip('/')}/{self.name}/{query_parameters or ''}"

    def connect(self, config: ConnectConfig) -> BotHandle:
        url = self.url(config.query_parameters)
        command = [_expand(token, url=url, index=config.index, channel=self.name) for token in self.command]
        env = dict(os.environ)
        env.update(self.env)
        env["PHANTOM_CHANNEL"] = self.name
        env["PHANTOM_INDEX"] = str(config.index)
        env["PHANTOM_URL"] = url
        auth = credential_payload(config.credential)
        if auth is not None:
            env["PHANTOM_AUTH"] = json.dumps(auth)
        else:
            env.pop("PHANTOM_AUTH", None)

        process = self.popen(command, env=env, cwd=str(self.directory))
        handle = BotHandle(config.index, config.credential, pid=process.pid)
        waiter = threading.Thread(
            target=_wait_for_exit,
            args=(process, handle),
            name=f"phantom-{self.name}-{config.index}",
            daemon=True,
        )
        waiter.start()
        return handle


class ConfiguredChannelRegistry(ChannelRegistry):
    # Channels known to this host, keyed by name.
    def __init__(self, channels: Mapping[str, Channel] | None = None) -> None:
        self._channels: dict[str, Channel] = dict(channels or {})

    def register(self, channel: Channel) -> None:
        if channel.name in self._channels:
            raise ValueError(f"channel {channel.name} already registered")
        self._channels[channel.name] = channel

    def resolve(self, name: str) -> Channel | None:
        return self._channels.get(name)


def _wait_for_exit(process: subprocess.Popen, handle: BotHandle) -> None:
    try:
        exit_code = process.wait()
    except Exception as exc:  # noqa: BLE001 - the handle must still signal completion.
        handle.finish(None, error=exc)
        return
    handle.finish(exit_code)


def _expand(token: str, *, url: str, index: int, channel: str) -> str:
    return token.replace("{url}", url).replace("{index}", str(index)).replace("{channel}", channel)
