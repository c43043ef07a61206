from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass

from phantom_fleet.domain.bot import BotHandle, failed_handle
from phantom_fleet.domain.credentials import CredentialPlan
from phantom_fleet.domain.errors import AuthNotSupportedError, ChannelNotFoundError
from phantom_fleet.domain.fleet import FleetSpec, FleetState, PostFleetActions
from phantom_fleet.observability.sinks import emit_log
from phantom_fleet.ports.channel import Channel
from phantom_fleet.services.barrier import CompletionBarrier
from phantom_fleet.services.credential_source import CredentialSource
from phantom_fleet.services.launcher import BotLauncher
from phantom_fleet.services.post_fleet import ActionOutcome, FleetContext, PostFleetActionRunner
from phantom_fleet.services.stagger import StaggerScheduler, TimerFactory

ThreadFactory = Callable[[Callable[[], None]], threading.Thread]


def post_fleet_thread(target: Callable[[], None]) -> threading.Thread:
    return threading.Thread(target=target, name="phantom-fleet-post-actions")


class FleetRun:
    """State of one fleet launch, from first bot to the last post-fleet action."""

    def __init__(self, *, spec: FleetSpec, channel_name: str | None, barrier: CompletionBarrier | None) -> None:
        self.spec = spec
        self.channel_name = channel_name
        self._barrier = barrier
        self._handles: dict[int, BotHandle] = {}
        self._outcomes: list[ActionOutcome] = []
        self._done = threading.Event()
        self._lock = threading.Lock()

    @classmethod
    def idle(cls, spec: FleetSpec, channel_name: str | None = None) -> FleetRun:
        # Nothing to launch; no fleet-complete event will ever fire.
        run = cls(spec=spec, channel_name=channel_name, barrier=None)
        run._done.set()
        return run

    @property
    def started(self) -> bool:
        return self._barrier is not None

    @property
    def state(self) -> FleetState:
        if self._barrier is None:
            return FleetState(launched=frozenset(), completed_count=0, total=0)
        return self._barrier.snapshot()

    @property
    def complete(self) -> bool:
        return self.state.complete

    @property
    def handles(self) -> list[BotHandle]:
        with self._lock:
            return [self._handles[index] for index in sorted(self._handles)]

    @property
    def outcomes(self) -> list[ActionOutcome]:
        with self._lock:
            return list(self._outcomes)

    def wait(self, timeout: float | None = None) -> bool:
        # True once the fleet completed and every post-fleet action returned.
        return self._done.wait(timeout)

    def _add_handle(self, handle: BotHandle) -> None:
        with self._lock:
            self._handles[handle.index] = handle

    def _finish(self, outcomes: list[ActionOutcome]) -> None:
        with self._lock:
            self._outcomes = list(outcomes)
        self._done.set()


@dataclass(frozen=True, slots=True)
class _LaunchPlan:
    channel: Channel
    spec: FleetSpec
    credentials: CredentialSource
    actions: PostFleetActions
    context: FleetContext


class FleetSupervisor:
    """Launches a staggered fleet of bots and runs post-fleet actions once all have exited.

    ``launch_fleet`` validates every precondition synchronously and raises
    before the first bot starts. Everything after that happens on timer,
    waiter and post-action threads; the caller gets a ``FleetRun`` back
    immediately.
    """

    def __init__(
        self,
        *,
        runner: PostFleetActionRunner,
        log_sink: object | None = None,
        timer_factory: TimerFactory | None = None,
        thread_factory: ThreadFactory | None = None,
    ) -> None:
        self._runner = runner
        self._log_sink = log_sink
        self._timer_factory = timer_factory
        self._thread_factory = thread_factory or post_fleet_thread

    def launch_fleet(
        self,
        channel: Channel | None,
        fleet_spec: FleetSpec,
        credential_plan: CredentialPlan | None = None,
        post_fleet_actions: PostFleetActions | None = None,
        *,
        channel_name: str | None = None,
    ) -> FleetRun:
        name = channel.name if channel is not None else channel_name
        if fleet_spec.size == 0:
            emit_log(self._log_sink, level="debug", message="fleet.skipped", fields={"channel": name})
            return FleetRun.idle(fleet_spec, name)

        plan = self._validate(
            channel,
            fleet_spec,
            credential_plan or CredentialPlan.none(),
            post_fleet_actions or PostFleetActions(),
            channel_name=name,
        )
        barrier = CompletionBarrier(fleet_spec.size)
        run = FleetRun(spec=fleet_spec, channel_name=plan.channel.name, barrier=barrier)
        barrier.on_fleet_complete(lambda: self._fleet_complete(run, plan))
        launcher = BotLauncher(total=fleet_spec.size, log_sink=self._log_sink)

        def _bot_exited(handle: BotHandle) -> None:
            barrier.bot_finished(handle.index)

        def _launch(index: int) -> None:
            barrier.mark_launched(index)
            handle = launcher.launch(
                plan.channel,
                index,
                plan.credentials.resolve(index),
                fleet_spec.query_parameters,
            )
            run._add_handle(handle)
            handle.on_exit(_bot_exited)

        def _launch_error(index: int, exc: Exception) -> None:
            handle = failed_handle(index, plan.credentials.resolve(index), exc)
            run._add_handle(handle)
            barrier.bot_finished(index)

        emit_log(
            self._log_sink,
            level="info",
            message="fleet.started",
            fields={
                "channel": plan.channel.name,
                "size": fleet_spec.size,
                "client_kind": fleet_spec.client_kind,
                "stagger_interval_ms": fleet_spec.stagger_interval_ms,
                "actions": [action.value for action in plan.actions.ordered()],
            },
        )
        scheduler = StaggerScheduler(timer_factory=self._timer_factory, log_sink=self._log_sink)
        scheduler.schedule_all(fleet_spec.size, fleet_spec.stagger_interval_ms, _launch, on_error=_launch_error)
        return run

    def _validate(
        self,
        channel: Channel | None,
        spec: FleetSpec,
        credential_plan: CredentialPlan,
        actions: PostFleetActions,
        *,
        channel_name: str | None,
    ) -> _LaunchPlan:
        # Precondition failures are reported and raised before any bot starts.
        try:
            if channel is None:
                raise ChannelNotFoundError(channel_name)
            credentials = CredentialSource(credential_plan, spec.size)
            if credential_plan.requires_auth and not channel.auth_enabled:
                raise AuthNotSupportedError(channel.name)
        except Exception as exc:
            emit_log(
                self._log_sink,
                level="error",
                message="fleet.precondition_failed",
                fields={"channel": channel_name, "error_type": type(exc).__name__},
                text=str(exc),
            )
            raise
        context = FleetContext(channel_name=channel.name, game_dir=channel.game_dir(), fleet_size=spec.size)
        return _LaunchPlan(channel=channel, spec=spec, credentials=credentials, actions=actions, context=context)

    def _fleet_complete(self, run: FleetRun, plan: _LaunchPlan) -> None:
        state = run.state
        emit_log(
            self._log_sink,
            level="info",
            message="fleet.complete",
            fields={
                "channel": plan.channel.name,
                "total": state.total,
                "abnormal": [handle.index for handle in run.handles if handle.abnormal],
            },
            text=f"{plan.channel.name} game has run successfully.",
        )
        if not plan.actions:
            run._finish([])
            return

        def _run_actions() -> None:
            outcomes: list[ActionOutcome] = []
            try:
                outcomes = self._runner.run(plan.actions, plan.context)
            except Exception as exc:  # noqa: BLE001 - a crash must not read as "no actions".
                emit_log(
                    self._log_sink,
                    level="error",
                    message="post_fleet.crashed",
                    fields={"channel": plan.channel.name, "error_type": type(exc).__name__},
                    text=f"post-fleet actions crashed: {exc}",
                )
                outcomes = [
                    ActionOutcome(action, ok=False, detail=f"crashed: {exc}") for action in plan.actions.ordered()
                ]
            finally:
                run._finish(outcomes)

        self._thread_factory(_run_actions).start()
