from __future__ import annotations

import json
import stat
import sys
from pathlib import Path

import yaml

from phantom_fleet.app.cli import EXIT_OK, run

# Each bot records what it was given into <game_dir>/seen/<index>.json.
_BOT = (
    "import json, os, pathlib, sys; "
    "out = pathlib.Path('seen'); out.mkdir(exist_ok=True); "
    "(out / (sys.argv[1] + '.json')).write_text(json.dumps({"
    "'url': os.environ['PHANTOM_URL'], 'auth': json.loads(os.environ['PHANTOM_AUTH'])}))"
)

_RUNNER = """\
import json, pathlib, sys
settings = json.loads((pathlib.Path(sys.argv[1]) / "settings.json").read_text())
print("players", settings["numPlayers"])
"""


def _game(tmp_path: Path) -> Path:
    game_dir = tmp_path / "games" / "ultimatum"
    runner = game_dir / ".venv" / "bin" / "pytest"
    runner.parent.mkdir(parents=True)
    runner.write_text(f"#!{sys.executable}\n{_RUNNER}", encoding="utf-8")
    runner.chmod(runner.stat().st_mode | stat.S_IXUSR)
    return game_dir


def test_fleet_with_credential_table_runs_tests_then_kills_host(tmp_path: Path, terminator) -> None:
    game_dir = _game(tmp_path)
    codes = tmp_path / "codes.json"
    codes.write_text(json.dumps([{"id": "p1", "pwd": "s1"}, {"id": "p2", "pwd": "s2"}, "TOKEN-3"]), encoding="utf-8")
    config = tmp_path / "config.yml"
    config.write_text(
        yaml.safe_dump(
            {
                "server": {"url": "http://localhost:9999", "games_dir": str(tmp_path / "games")},
                "channels": {
                    "ultimatum": {
                        "auth_enabled": True,
                        "client": {"command": [sys.executable, "-c", _BOT, "{index}"]},
                    }
                },
                "fleet": {"channel": "ultimatum", "size": 3, "wait_ms": 20, "auth_file": str(codes)},
                "logging": {"exporters": [{"kind": "jsonl", "path": str(tmp_path / "fleet.jsonl")}]},
            }
        ),
        encoding="utf-8",
    )

    assert run(["-C", str(config), "-T", "-k", "-t", "human"], terminator=terminator) == EXIT_OK

    seen = [json.loads((game_dir / "seen" / f"{index}.json").read_text(encoding="utf-8")) for index in range(3)]
    assert [entry["auth"] for entry in seen] == [{"id": "p1", "pwd": "s1"}, {"id": "p2", "pwd": "s2"}, "TOKEN-3"]
    assert {entry["url"] for entry in seen} == {"http://localhost:9999/ultimatum/?clientType=human"}
    assert json.loads((game_dir / "test" / "settings.json").read_text(encoding="utf-8")) == {"numPlayers": 3}

    logs = [json.loads(line) for line in (tmp_path / "fleet.jsonl").read_text(encoding="utf-8").splitlines()]
    output = [entry["fields"]["text"] for entry in logs if entry["message"] == "post_fleet.test_output"]
    assert output == ["players 3"]
    assert terminator.exit_codes == [0]
