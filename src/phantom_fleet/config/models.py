from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from phantom_fleet.adapters.runner_locator import DEFAULT_RUNNER
from phantom_fleet.domain.fleet import DEFAULT_CLIENT_KIND, DEFAULT_FLEET_SIZE, DEFAULT_STAGGER_MS
from phantom_fleet.services.post_fleet import DEFAULT_RUNNER_ARGS, DEFAULT_SETTINGS_FILE, DEFAULT_TEST_DIR

# Config models map YAML sections to typed structures.


class ServerConfig(BaseModel):
    # Where the hosting service listens and where channel game directories live.
    model_config = ConfigDict(extra="forbid")
    url: str = "http://localhost:8080"
    games_dir: str = "./games"


class ClientConfig(BaseModel):
    # Headless client command; tokens may use {url}, {index} and {channel}.
    model_config = ConfigDict(extra="forbid")
    command: list[str] = Field(min_length=1)
    env: dict[str, str] = Field(default_factory=dict)


class ChannelConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    # Relative paths resolve against server.games_dir; defaults to the channel name.
    game_dir: str | None = None
    auth_enabled: bool = False
    client: ClientConfig


class FleetConfig(BaseModel):
    # Phantom fleet request; channel=None means no fleet is launched.
    model_config = ConfigDict(extra="forbid")
    channel: str | None = None
    size: int = Field(default=DEFAULT_FLEET_SIZE, ge=0)
    client_type: str = DEFAULT_CLIENT_KIND
    wait_ms: bool | int | None = None
    auth: bool | int | str | dict[str, str | int] | None = None
    auth_file: str | None = None
    run_tests: bool = False
    kill_server: bool = False

    @field_validator("wait_ms")
    @classmethod
    def _normalize_wait(cls, value: bool | int | None) -> int | None:
        # A bare wait flag means the default interval.
        if value is True:
            return DEFAULT_STAGGER_MS
        if value is False or value is None:
            return None
        if value < 0:
            raise ValueError(f"wait_ms must be a positive number or undefined. Found: {value}")
        return value


class RunnerConfig(BaseModel):
    # Test-runner settings used by the run_tests post-fleet action.
    model_config = ConfigDict(extra="forbid")
    runner: str = DEFAULT_RUNNER
    test_dir: str = DEFAULT_TEST_DIR
    settings_file: str = DEFAULT_SETTINGS_FILE
    args: list[str] = Field(default_factory=lambda: list(DEFAULT_RUNNER_ARGS))


class LogExporterConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["console", "stdout", "jsonl"]
    path: str | None = None

    @model_validator(mode="after")
    def _require_path(self) -> LogExporterConfig:
        # For jsonl kind, a path is required to avoid silent defaults.
        if self.kind == "jsonl" and not self.path:
            raise ValueError("logging.exporters[].path is required when kind is 'jsonl'")
        return self


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["debug", "info", "warn", "error"] = "info"
    exporters: list[LogExporterConfig] = Field(
        default_factory=lambda: [LogExporterConfig(kind="console")]
    )


class AppConfig(BaseModel):
    # AppConfig is the top-level typed view of configuration.
    model_config = ConfigDict(extra="forbid")
    version: int = 1
    server: ServerConfig = Field(default_factory=ServerConfig)
    channels: dict[str, ChannelConfig] = Field(default_factory=dict)
    fleet: FleetConfig = Field(default_factory=FleetConfig)
    tests: RunnerConfig = Field(default_factory=RunnerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
