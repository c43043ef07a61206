from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path

from phantom_fleet.adapters.credential_table import FileCredentialTableLoader
from phantom_fleet.app.wiring import (
    build_channel_registry,
    build_fleet_spec,
    build_log_sink,
    build_post_fleet_actions,
    build_supervisor,
)
from phantom_fleet.config.auth import build_credential_plan
from phantom_fleet.config.loader import ConfigError, load_config
from phantom_fleet.config.models import AppConfig
from phantom_fleet.domain.errors import ChannelNotFoundError, FleetPreconditionError
from phantom_fleet.domain.fleet import DEFAULT_STAGGER_MS
from phantom_fleet.observability.sinks import ConsoleLogSink, close_log_sink, emit_log
from phantom_fleet.ports.host import HostTerminator

# NOTE: This CLI module is a thin wrapper around composition root wiring;
# fleet semantics live in phantom_fleet.services.

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="phantom-fleet", description="Launch and supervise a phantom fleet")
    parser.add_argument("-C", "--config", help="Path to YAML config")
    parser.add_argument("-g", "--games-dir", help="Override server.games_dir")
    parser.add_argument(
        "-L",
        "--log-level",
        choices=["debug", "info", "warn", "error"],
        help="Override logging.level",
    )
    parser.add_argument("-p", "--phantoms", metavar="CHANNEL", help="Connect phantoms to the specified channel")
    parser.add_argument("-n", "--n-clients", help="Number of phantoms to connect (default: 4)")
    parser.add_argument("-t", "--client-type", help="Client type of connecting phantoms (default: autoplay)")
    parser.add_argument(
        "-T",
        "--run-tests",
        action="store_true",
        default=None,
        help="Run tests after all phantoms are game-over (overwrites the settings file in test/)",
    )
    parser.add_argument(
        "-k",
        "--kill-server",
        action="store_true",
        default=None,
        help="Kill the host after all phantoms are game-over",
    )
    parser.add_argument(
        "-a",
        "--auth",
        nargs="?",
        const="new",
        help="Phantoms auth: new(default)|createNew|nextAvailable|next|<code>|id:<id>&pwd:<pwd>|file:<path>",
    )
    parser.add_argument(
        "-w",
        "--wait",
        nargs="?",
        const=str(DEFAULT_STAGGER_MS),
        metavar="MILLISECONDS",
        help=f"Wait before connecting the next phantom (default: {DEFAULT_STAGGER_MS})",
    )
    return parser


def parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    # Parse CLI arguments; caller passes argv for testability.
    return build_parser().parse_args(argv)


def apply_cli_overrides(config: AppConfig, args: argparse.Namespace) -> list[str]:
    """Apply CLI flags on top of config and return the fleet flags that were ignored.

    Fleet flags only make sense together with a channel (``--phantoms`` or
    ``fleet.channel``); without one they are reported back as ignored.
    """
    if args.games_dir is not None:
        config.server.games_dir = args.games_dir
    if args.log_level is not None:
        config.logging.level = args.log_level

    fleet = config.fleet
    if args.phantoms is not None:
        fleet.channel = args.phantoms
    has_channel = bool(fleet.channel)

    fleet_flags = (
        ("--n-clients", args.n_clients),
        ("--client-type", args.client_type),
        ("--run-tests", args.run_tests),
        ("--kill-server", args.kill_server),
        ("--auth", args.auth),
        ("--wait", args.wait),
    )
    if not has_channel:
        return [flag for flag, value in fleet_flags if value is not None]

    if args.n_clients is not None:
        fleet.size = _parse_non_negative("--n-clients", args.n_clients)
    if args.client_type is not None:
        fleet.client_type = args.client_type
    if args.run_tests:
        fleet.run_tests = True
    if args.kill_server:
        fleet.kill_server = True
    if args.auth is not None:
        fleet.auth = args.auth
    if args.wait is not None:
        fleet.wait_ms = _parse_non_negative("--wait", args.wait)
    return []


def run(argv: Sequence[str] | None = None, *, terminator: HostTerminator | None = None) -> int:
    # CLI run flow: load config, apply overrides, launch the fleet and wait for post-fleet actions.
    args = parse_args(argv)
    try:
        config = load_config(Path(args.config)) if args.config else AppConfig()
        ignored = apply_cli_overrides(config, args)
    except ConfigError as exc:
        emit_log(ConsoleLogSink(), level="error", message="config.invalid", text=str(exc))
        return EXIT_CONFIG

    log_sink = build_log_sink(config.logging)
    try:
        return _run_fleet(config, ignored, log_sink=log_sink, terminator=terminator)
    finally:
        close_log_sink(log_sink)


def _run_fleet(
    config: AppConfig,
    ignored: list[str],
    *,
    log_sink: object,
    terminator: HostTerminator | None,
) -> int:
    if ignored:
        emit_log(
            log_sink,
            level="warn",
            message="cli.ignored_options",
            fields={"options": ignored},
            text=f"ignored options: {', '.join(ignored)}",
        )
    fleet = config.fleet
    if not fleet.channel:
        emit_log(log_sink, level="info", message="fleet.not_requested", text="No phantoms requested.")
        return EXIT_OK

    try:
        plan = build_credential_plan(
            fleet.auth,
            fleet.auth_file,
            table_loader=FileCredentialTableLoader(),
            log_sink=log_sink,
        )
        spec = build_fleet_spec(fleet)
    except (ConfigError, FleetPreconditionError) as exc:
        emit_log(log_sink, level="error", message="config.invalid", text=str(exc))
        return EXIT_CONFIG

    registry = build_channel_registry(config)
    supervisor = build_supervisor(config, log_sink=log_sink, terminator=terminator)
    try:
        fleet_run = supervisor.launch_fleet(
            registry.resolve(fleet.channel),
            spec,
            plan,
            build_post_fleet_actions(fleet),
            channel_name=fleet.channel,
        )
    except ChannelNotFoundError:
        return EXIT_FAILED
    except FleetPreconditionError:
        # Already reported by the supervisor; no bot was started.
        return EXIT_CONFIG

    fleet_run.wait()
    if any(not outcome.ok for outcome in fleet_run.outcomes):
        return EXIT_FAILED
    return EXIT_OK


def _parse_non_negative(flag: str, value: str) -> int:
    try:
        parsed = int(value, 10)
    except ValueError:
        raise ConfigError(f"{flag} {value} is invalid.") from None
    if parsed < 0:
        raise ConfigError(f"{flag} must be a positive number or undefined. Found: {value}")
    return parsed
