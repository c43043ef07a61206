from __future__ import annotations

from pathlib import Path

from phantom_fleet.config.loader import ConfigError
from phantom_fleet.domain.credentials import (
    CREATE_NEW,
    NEXT_AVAILABLE,
    CredentialPlan,
    IdPasswordCredential,
    OpaqueCredential,
    PolicyCredential,
)
from phantom_fleet.observability.sinks import emit_log
from phantom_fleet.ports.credential_table import CredentialTableLoader

_POLICY_ALIASES = {
    "new": CREATE_NEW,
    CREATE_NEW: CREATE_NEW,
    "next": NEXT_AVAILABLE,
    NEXT_AVAILABLE: NEXT_AVAILABLE,
}
_ID_PREFIX = "id:"
_PWD_MARKER = "&pwd:"
_FILE_PREFIX = "file:"


def parse_auth_option(
    value: object,
    *,
    table_loader: CredentialTableLoader | None = None,
) -> CredentialPlan:
    """Turn an ``--auth`` value into a credential plan.

    Accepted forms: ``new``/``createNew``, ``next``/``nextAvailable``,
    ``id:<id>&pwd:<pwd>``, ``file:<path>`` (credential table), ``True``
    (same as ``new``), a mapping with ``id``/``pwd``, or any other string or
    integer, passed to the bots as an opaque code.
    """
    if value is None or value is False:
        return CredentialPlan.none()
    if value is True:
        return CredentialPlan.shared(PolicyCredential(CREATE_NEW))
    if isinstance(value, int):
        return CredentialPlan.shared(OpaqueCredential(value))
    if isinstance(value, dict):
        return CredentialPlan.shared(_mapping_credential(value))
    if not isinstance(value, str) or not value:
        raise ConfigError(f"--auth value is not supported: {value!r}")

    if value.startswith(_ID_PREFIX):
        marker = value.find(_PWD_MARKER)
        if marker == -1:
            raise ConfigError('--auth must be a client id or id and pwd in the form "id:123&pwd:456"')
        ident = value[len(_ID_PREFIX):marker]
        if not ident:
            raise ConfigError('--auth must be a client id or id and pwd in the form "id:123&pwd:456"')
        return CredentialPlan.shared(
            IdPasswordCredential(id=ident, password=value[marker + len(_PWD_MARKER):])
        )
    policy = _POLICY_ALIASES.get(value)
    if policy is not None:
        return CredentialPlan.shared(PolicyCredential(policy))
    if value.startswith(_FILE_PREFIX):
        return load_credential_table(Path(value[len(_FILE_PREFIX):]), table_loader=table_loader)
    return CredentialPlan.shared(OpaqueCredential(value))


def load_credential_table(path: Path, *, table_loader: CredentialTableLoader | None) -> CredentialPlan:
    if table_loader is None:
        raise ConfigError("credential table requested but no table loader is configured")
    return CredentialPlan.from_table(table_loader.load(path))


def build_credential_plan(
    auth: object,
    auth_file: str | None,
    *,
    table_loader: CredentialTableLoader | None = None,
    log_sink: object | None = None,
) -> CredentialPlan:
    # A credential table takes precedence over any auth policy configured alongside it.
    if auth_file:
        if auth not in (None, False):
            emit_log(
                log_sink,
                level="warn",
                message="config.auth_overridden",
                fields={"auth": str(auth), "auth_file": auth_file},
                text=f"auth option {auth!r} ignored: credential table {auth_file} takes precedence",
            )
        return load_credential_table(Path(auth_file), table_loader=table_loader)
    return parse_auth_option(auth, table_loader=table_loader)


def _mapping_credential(value: dict[object, object]) -> IdPasswordCredential:
    ident = value.get("id")
    if ident is None or ident == "":
        raise ConfigError("--auth mapping must contain an id")
    password = value.get("pwd", value.get("password"))
    return IdPasswordCredential(id=str(ident), password=None if password is None else str(password))
