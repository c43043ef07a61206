from __future__ import annotations

import json
import shutil
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from phantom_fleet.domain.fleet import PostFleetAction, PostFleetActions
from phantom_fleet.observability.sinks import emit_log
from phantom_fleet.ports.host import HostTerminator
from phantom_fleet.ports.runner import RunnerLocator

DEFAULT_TEST_DIR = "test"
DEFAULT_SETTINGS_FILE = "settings.json"
DEFAULT_RUNNER_ARGS = ("--color=yes",)


@dataclass(frozen=True, slots=True)
class FleetContext:
    # What the post-fleet actions know about the finished fleet.
    channel_name: str
    game_dir: Path
    fleet_size: int


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    action: PostFleetAction
    ok: bool
    detail: str = ""
    exit_code: int | None = None


@dataclass(frozen=True, slots=True)
class RunnerSettings:
    test_dir: str = DEFAULT_TEST_DIR
    settings_file: str = DEFAULT_SETTINGS_FILE
    args: tuple[str, ...] = field(default=DEFAULT_RUNNER_ARGS)


def write_settings_file(test_dir: Path, fleet_size: int, settings_file: str = DEFAULT_SETTINGS_FILE) -> Path:
    # An existing settings file is preserved as <name>.bak before being overwritten.
    path = test_dir / settings_file
    test_dir.mkdir(parents=True, exist_ok=True)
    if path.exists():
        shutil.copyfile(path, path.with_name(path.name + ".bak"))
    path.write_text(json.dumps({"numPlayers": fleet_size}) + "\n", encoding="utf-8")
    return path


class PostFleetActionRunner:
    """Runs the enabled post-fleet actions once the fleet has completed.

    RUN_TESTS always precedes KILL_HOST. Each step yields an ``ActionOutcome``;
    a failed RUN_TESTS step is reported and KILL_HOST still runs. KILL_HOST is
    only reached after the test child process has exited.
    """

    def __init__(
        self,
        *,
        locator: RunnerLocator,
        terminator: HostTerminator,
        settings: RunnerSettings | None = None,
        log_sink: object | None = None,
        popen: Callable[..., subprocess.Popen] | None = None,
    ) -> None:
        self._locator = locator
        self._terminator = terminator
        self._settings = settings or RunnerSettings()
        self._log_sink = log_sink
        self._popen = popen or subprocess.Popen

    def run(self, actions: PostFleetActions, context: FleetContext) -> list[ActionOutcome]:
        outcomes: list[ActionOutcome] = []
        for action in actions.ordered():
            try:
                if action is PostFleetAction.RUN_TESTS:
                    outcomes.append(self._run_tests(context))
                elif action is PostFleetAction.KILL_HOST:
                    outcomes.append(self._kill_host(outcomes))
            except Exception as exc:  # noqa: BLE001 - a failed step must not skip the next one.
                emit_log(
                    self._log_sink,
                    level="error",
                    message="post_fleet.action_failed",
                    fields={"action": action.value, "error_type": type(exc).__name__},
                    text=f"{action.value} failed: {exc}",
                )
                outcomes.append(ActionOutcome(action, ok=False, detail=f"failed: {exc}"))
        return outcomes

    def _run_tests(self, context: FleetContext) -> ActionOutcome:
        runner = self._locator.locate(context.game_dir)
        if runner is None:
            emit_log(
                self._log_sink,
                level="error",
                message="post_fleet.runner_not_found",
                fields={"channel": context.channel_name, "game_dir": str(context.game_dir)},
                text=f"Cannot run tests, test runner not found in: {context.game_dir}",
            )
            return ActionOutcome(PostFleetAction.RUN_TESTS, ok=False, detail="runner not found")

        test_dir = context.game_dir / self._settings.test_dir
        try:
            settings_path = write_settings_file(test_dir, context.fleet_size, self._settings.settings_file)
        except OSError as exc:
            emit_log(
                self._log_sink,
                level="error",
                message="post_fleet.settings_write_failed",
                fields={"path": str(test_dir), "error_type": type(exc).__name__},
                text=f"Cannot write test settings in {test_dir}: {exc}",
            )
            return ActionOutcome(PostFleetAction.RUN_TESTS, ok=False, detail=f"settings write failed: {exc}")

        command = [str(runner), str(test_dir), *self._settings.args]
        emit_log(
            self._log_sink,
            level="info",
            message="post_fleet.tests_started",
            fields={"command": command, "settings": str(settings_path)},
            text=" ".join(command),
        )
        try:
            process = self._popen(
                command,
                cwd=str(context.game_dir),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            emit_log(
                self._log_sink,
                level="error",
                message="post_fleet.tests_spawn_failed",
                fields={"command": command, "error_type": type(exc).__name__},
                text=f"Cannot run tests: {exc}",
            )
            return ActionOutcome(PostFleetAction.RUN_TESTS, ok=False, detail=f"spawn failed: {exc}")

        stream_error: Exception | None = None
        try:
            self._stream_output(process)
        except Exception as exc:  # noqa: BLE001 - the child is reaped either way.
            stream_error = exc
            emit_log(
                self._log_sink,
                level="error",
                message="post_fleet.test_output_failed",
                fields={"error_type": type(exc).__name__},
                text=f"Cannot read test output: {exc}",
            )
        exit_code = process.wait()
        ok = exit_code == 0 and stream_error is None
        emit_log(
            self._log_sink,
            level="info" if ok else "warn",
            message="post_fleet.tests_finished",
            fields={"exit_code": exit_code},
            text=f"tests finished with exit code {exit_code}",
        )
        return ActionOutcome(
            PostFleetAction.RUN_TESTS,
            ok=ok,
            detail="tests passed" if ok else "tests failed",
            exit_code=exit_code,
        )

    def _stream_output(self, process: subprocess.Popen) -> None:
        stream = process.stdout
        if stream is None:
            return
        with stream:
            for line in stream:
                emit_log(
                    self._log_sink,
                    level="info",
                    message="post_fleet.test_output",
                    text=line.rstrip("\n"),
                )

    def _kill_host(self, previous: Sequence[ActionOutcome]) -> ActionOutcome:
        exit_code = 0
        for outcome in previous:
            if outcome.action is PostFleetAction.RUN_TESTS and outcome.exit_code:
                exit_code = host_exit_code(outcome.exit_code)
        emit_log(
            self._log_sink,
            level="info",
            message="post_fleet.kill_host",
            fields={"exit_code": exit_code},
            text="Stopping server.",
        )
        outcome = ActionOutcome(PostFleetAction.KILL_HOST, ok=True, exit_code=exit_code)
        self._terminator.terminate(exit_code)
        return outcome


def host_exit_code(child_exit_code: int) -> int:
    # Popen reports death by signal N as -N; shells report it as 128 + N.
    if child_exit_code < 0:
        return 128 - child_exit_code
    return child_exit_code
