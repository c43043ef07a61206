from .barrier import BarrierPhase, CompletionBarrier
from .credential_source import CredentialSource
from .launcher import BotLauncher
from .post_fleet import (
    ActionOutcome,
    FleetContext,
    PostFleetActionRunner,
    RunnerSettings,
    write_settings_file,
)
from .stagger import StaggerScheduler, launch_delay_ms, thread_timer
from .supervisor import FleetRun, FleetSupervisor

__all__ = [
    "ActionOutcome",
    "BarrierPhase",
    "BotLauncher",
    "CompletionBarrier",
    "CredentialSource",
    "FleetContext",
    "FleetRun",
    "FleetSupervisor",
    "PostFleetActionRunner",
    "RunnerSettings",
    "StaggerScheduler",
    "launch_delay_ms",
    "thread_timer",
    "write_settings_file",
]
