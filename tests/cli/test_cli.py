from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
import yaml

from phantom_fleet.app.cli import EXIT_CONFIG, EXIT_FAILED, EXIT_OK, apply_cli_overrides, parse_args, run
from phantom_fleet.config.loader import ConfigError
from phantom_fleet.config.models import AppConfig


def _write_config(tmp_path: Path, *, auth_enabled: bool = False, fleet: dict[str, object] | None = None) -> Path:
    (tmp_path / "games" / "ultimatum").mkdir(parents=True)
    raw = {
        "server": {"games_dir": str(tmp_path / "games")},
        "channels": {
            "ultimatum": {
                "auth_enabled": auth_enabled,
                "client": {"command": [sys.executable, "-c", "import sys; sys.exit(0)"]},
            }
        },
        "fleet": fleet or {},
        "logging": {
            "level": "debug",
            "exporters": [{"kind": "jsonl", "path": str(tmp_path / "fleet.jsonl")}],
        },
    }
    path = tmp_path / "config.yml"
    path.write_text(yaml.safe_dump(raw), encoding="utf-8")
    return path


def _log_names(tmp_path: Path) -> list[str]:
    path = tmp_path / "fleet.jsonl"
    return [json.loads(line)["message"] for line in path.read_text(encoding="utf-8").splitlines()]


def test_flags_override_config() -> None:
    config = AppConfig()
    args = parse_args(["-p", "ultimatum", "-n", "2", "-t", "human", "-T", "-k", "-a", "-w"])
    assert apply_cli_overrides(config, args) == []
    fleet = config.fleet
    assert fleet.channel == "ultimatum"
    assert fleet.size == 2
    assert fleet.client_type == "human"
    assert fleet.run_tests and fleet.kill_server
    assert fleet.auth == "new"
    assert fleet.wait_ms == 1000


def test_explicit_values_for_optional_flags() -> None:
    config = AppConfig()
    apply_cli_overrides(config, parse_args(["--phantoms", "x", "--auth", "id:1&pwd:2", "--wait", "250"]))
    assert config.fleet.auth == "id:1&pwd:2"
    assert config.fleet.wait_ms == 250


def test_fleet_flags_without_channel_are_ignored() -> None:
    config = AppConfig()
    ignored = apply_cli_overrides(config, parse_args(["-n", "3", "-k", "-w"]))
    assert ignored == ["--n-clients", "--kill-server", "--wait"]
    assert config.fleet.size == 4
    assert not config.fleet.kill_server


@pytest.mark.parametrize("argv", [["-p", "x", "-n", "abc"], ["-p", "x", "-n", "-1"], ["-p", "x", "-w", "-10"]])
def test_invalid_numbers(argv: list[str]) -> None:
    with pytest.raises(ConfigError):
        apply_cli_overrides(AppConfig(), parse_args(argv))


def test_no_channel_is_a_no_op(capsys: pytest.CaptureFixture[str], terminator) -> None:
    assert run([], terminator=terminator) == EXIT_OK
    assert "No phantoms requested." in capsys.readouterr().out
    assert terminator.exit_codes == []


def test_ignored_options_are_reported(capsys: pytest.CaptureFixture[str]) -> None:
    assert run(["-n", "3"]) == EXIT_OK
    assert "    ignored options: --n-clients" in capsys.readouterr().out


def test_bad_number_is_a_config_error(capsys: pytest.CaptureFixture[str]) -> None:
    assert run(["-p", "ultimatum", "-n", "many"]) == EXIT_CONFIG
    out = capsys.readouterr().out
    assert "    Check the input parameters." in out
    assert "    Error: --n-clients many is invalid." in out


def test_missing_config_file(tmp_path: Path) -> None:
    assert run(["-C", str(tmp_path / "missing.yml")]) == EXIT_CONFIG


def test_unknown_channel_fails(tmp_path: Path, terminator) -> None:
    config = _write_config(tmp_path)
    assert run(["-C", str(config), "-p", "nowhere", "-k"], terminator=terminator) == EXIT_FAILED
    assert "fleet.precondition_failed" in _log_names(tmp_path)
    assert terminator.exit_codes == []


def test_auth_on_channel_without_auth(tmp_path: Path, terminator) -> None:
    config = _write_config(tmp_path, auth_enabled=False)
    assert run(["-C", str(config), "-p", "ultimatum", "-a"], terminator=terminator) == EXIT_CONFIG
    assert "fleet.bot_connecting" not in _log_names(tmp_path)


def test_malformed_auth_is_a_config_error(tmp_path: Path) -> None:
    config = _write_config(tmp_path, auth_enabled=True)
    assert run(["-C", str(config), "-p", "ultimatum", "-a", "id:7"]) == EXIT_CONFIG


def test_fleet_runs_to_completion_and_kills_host(tmp_path: Path, terminator) -> None:
    config = _write_config(tmp_path, auth_enabled=True, fleet={"channel": "ultimatum", "size": 3, "auth": "next"})
    assert run(["-C", str(config), "-w", "10", "-k"], terminator=terminator) == EXIT_OK
    names = _log_names(tmp_path)
    assert names.count("fleet.bot_connecting") == 3
    assert names.count("fleet.complete") == 1
    assert names.index("fleet.complete") < names.index("post_fleet.kill_host")
    assert terminator.exit_codes == [0]


def test_run_tests_without_runner_reports_failure(tmp_path: Path, terminator) -> None:
    config = _write_config(tmp_path, fleet={"channel": "ultimatum", "size": 1})
    assert run(["-C", str(config), "-T", "-k"], terminator=terminator) == EXIT_FAILED
    assert "post_fleet.runner_not_found" in _log_names(tmp_path)
    assert terminator.exit_codes == [0]


def test_unreadable_credential_table_is_a_config_error(tmp_path: Path) -> None:
    config = _write_config(tmp_path, auth_enabled=True)
    table = tmp_path / "codes.json"
    table.write_bytes(b"\xff\xfe binary")
    assert run(["-C", str(config), "-p", "ultimatum", "-a", f"file:{table}"]) == EXIT_CONFIG
    assert "config.invalid" in _log_names(tmp_path)
    assert "fleet.bot_connecting" not in _log_names(tmp_path)
