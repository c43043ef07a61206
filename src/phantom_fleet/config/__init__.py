from .auth import build_credential_plan, parse_auth_option
from .loader import ConfigError, config_from_mapping, load_config
from .models import AppConfig, ChannelConfig, FleetConfig, LoggingConfig, RunnerConfig

# Config exports are intentionally small.
__all__ = [
    "AppConfig",
    "ChannelConfig",
    "ConfigError",
    "FleetConfig",
    "LoggingConfig",
    "RunnerConfig",
    "build_credential_plan",
    "config_from_mapping",
    "load_config",
    "parse_auth_option",
]
