from __future__ import annotations

from pathlib import Path

from phantom_fleet.adapters.channel import ConfiguredChannelRegistry, SubprocessChannel
from phantom_fleet.adapters.host import ProcessExitTerminator
from phantom_fleet.adapters.runner_locator import GameDirRunnerLocator
from phantom_fleet.config.models import AppConfig, FleetConfig, LoggingConfig
from phantom_fleet.domain.fleet import FleetSpec, PostFleetActions
from phantom_fleet.observability.sinks import (
    ConsoleLogSink,
    FanoutLogSink,
    JsonlLogSink,
    LevelFilterLogSink,
    StdoutLogSink,
)
from phantom_fleet.ports.host import HostTerminator
from phantom_fleet.services.post_fleet import PostFleetActionRunner, RunnerSettings
from phantom_fleet.services.supervisor import FleetSupervisor

# Composition root: turns a validated AppConfig into wired collaborators.


def build_log_sink(config: LoggingConfig) -> LevelFilterLogSink:
    sinks: list[object] = []
    for exporter in config.exporters:
        if exporter.kind == "console":
            sinks.append(ConsoleLogSink())
        elif exporter.kind == "stdout":
            sinks.append(StdoutLogSink())
        else:
            assert exporter.path is not None
            sinks.append(JsonlLogSink(Path(exporter.path)))
    return LevelFilterLogSink(FanoutLogSink(sinks), level=config.level)


def build_channel_registry(config: AppConfig) -> ConfiguredChannelRegistry:
    games_dir = Path(config.server.games_dir)
    registry = ConfiguredChannelRegistry()
    for name, channel in config.channels.items():
        directory = Path(channel.game_dir) if channel.game_dir else Path(name)
        if not directory.is_absolute():
            directory = games_dir / directory
        registry.register(
            SubprocessChannel(
                name=name,
                directory=directory.resolve(),
                command=list(channel.client.command),
                server_url=config.server.url,
                auth_enabled=channel.auth_enabled,
                env=dict(channel.client.env),
            )
        )
    return registry


def build_fleet_spec(config: FleetConfig) -> FleetSpec:
    # Only meaningful when a channel was requested; otherwise the fleet is empty.
    size = config.size if config.channel else 0
    return FleetSpec(
        size=size,
        client_kind=config.client_type,
        stagger_interval_ms=config.wait_ms if isinstance(config.wait_ms, int) else None,
    )


def build_post_fleet_actions(config: FleetConfig) -> PostFleetActions:
    return PostFleetActions.from_flags(run_tests=config.run_tests, kill_host=config.kill_server)


def build_supervisor(
    config: AppConfig,
    *,
    log_sink: object | None = None,
    terminator: HostTerminator | None = None,
) -> FleetSupervisor:
    runner = PostFleetActionRunner(
        locator=GameDirRunnerLocator(config.tests.runner),
        terminator=terminator or ProcessExitTerminator(),
        settings=RunnerSettings(
            test_dir=config.tests.test_dir,
            settings_file=config.tests.settings_file,
            args=tuple(config.tests.args),
        ),
        log_sink=log_sink,
    )
    return FleetSupervisor(runner=runner, log_sink=log_sink)
