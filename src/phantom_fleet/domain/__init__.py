from .bot import BotHandle, failed_handle
from .credentials import (
    CREATE_NEW,
    NEXT_AVAILABLE,
    Credential,
    CredentialPlan,
    IdPasswordCredential,
    NoCredential,
    OpaqueCredential,
    PolicyCredential,
    credential_payload,
)
from .errors import (
    AuthNotSupportedError,
    ChannelNotFoundError,
    CredentialTableError,
    FleetError,
    FleetPreconditionError,
    FleetSpecError,
)
from .fleet import FleetSpec, FleetState, PostFleetAction, PostFleetActions

# Public domain exports keep imports explicit across layers.
__all__ = [
    "AuthNotSupportedError",
    "BotHandle",
    "CREATE_NEW",
    "ChannelNotFoundError",
    "Credential",
    "CredentialPlan",
    "CredentialTableError",
    "FleetError",
    "FleetPreconditionError",
    "FleetSpec",
    "FleetSpecError",
    "FleetState",
    "IdPasswordCredential",
    "NEXT_AVAILABLE",
    "NoCredential",
    "OpaqueCredential",
    "PolicyCredential",
    "PostFleetAction",
    "PostFleetActions",
    "credential_payload",
    "failed_handle",
]
