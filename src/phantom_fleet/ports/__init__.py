from .channel import Channel, ChannelRegistry, ConnectConfig
from .credential_table import CredentialTableLoader
from .host import HostTerminator
from .runner import RunnerLocator

# Public port exports keep wiring explicit at composition time.
__all__ = [
    "Channel",
    "ChannelRegistry",
    "ConnectConfig",
    "CredentialTableLoader",
    "HostTerminator",
    "RunnerLocator",
]
