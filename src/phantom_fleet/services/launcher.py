from __future__ import annotations

from phantom_fleet.domain.bot import BotHandle, failed_handle
from phantom_fleet.domain.credentials import Credential
from phantom_fleet.observability.sinks import emit_log
from phantom_fleet.ports.channel import Channel, ConnectConfig


class BotLauncher:
    """Starts single bots on a channel and reports their lifecycle.

    ``launch`` never raises for a failed connect: the failure is recorded on a
    handle that is already finished, so the fleet still reaches completion.
    """

    def __init__(self, *, total: int, log_sink: object | None = None) -> None:
        self._total = total
        self._log_sink = log_sink

    def launch(
        self,
        channel: Channel,
        index: int,
        credential: Credential,
        query_parameters: str | None,
    ) -> BotHandle:
        emit_log(
            self._log_sink,
            level="info",
            message="fleet.bot_connecting",
            fields={"channel": channel.name, "index": index, "total": self._total},
            text=f"Connecting phantom #{index + 1}/{self._total}{credential.summary()}",
        )
        try:
            handle = channel.connect(
                ConnectConfig(index=index, query_parameters=query_parameters, credential=credential)
            )
        except Exception as exc:  # noqa: BLE001 - per-bot failures must not leak into other bots.
            emit_log(
                self._log_sink,
                level="error",
                message="fleet.bot_launch_failed",
                fields={"channel": channel.name, "index": index, "error_type": type(exc).__name__},
                text=f"phantom #{index + 1} failed to start: {exc}",
            )
            return failed_handle(index, credential, exc)
        handle.on_exit(self._report_exit)
        return handle

    def _report_exit(self, handle: BotHandle) -> None:
        fields: dict[str, object] = {"index": handle.index, "exit_code": handle.exit_code}
        if handle.error is not None:
            fields["error_type"] = type(handle.error).__name__
        emit_log(
            self._log_sink,
            level="warn" if handle.abnormal else "debug",
            message="fleet.bot_exited",
            fields=fields,
            text=f"phantom #{handle.index + 1} exited with code {handle.exit_code}",
        )
