from .channel import ConfiguredChannelRegistry, SubprocessChannel
from .credential_table import FileCredentialTableLoader
from .host import ProcessExitTerminator
from .runner_locator import DEFAULT_RUNNER, GameDirRunnerLocator

# Public adapter exports are optional but make wiring simpler.
__all__ = [
    "ConfiguredChannelRegistry",
    "DEFAULT_RUNNER",
    "FileCredentialTableLoader",
    "GameDirRunnerLocator",
    "ProcessExitTerminator",
    "SubprocessChannel",
]
