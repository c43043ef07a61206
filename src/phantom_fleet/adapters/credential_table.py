from __future__ import annotations

import json
from pathlib import Path

import yaml

from phantom_fleet.domain.credentials import Credential, IdPasswordCredential, OpaqueCredential
from phantom_fleet.domain.errors import CredentialTableError
from phantom_fleet.ports.credential_table import CredentialTableLoader

_JSON_LINES = {".jsonl", ".ndjson"}
_YAML = {".yml", ".yaml"}


class FileCredentialTableLoader(CredentialTableLoader):
    """Loads auth codes from a JSON, JSON-lines or YAML file.

    Records are either mappings with an ``id`` (and optional ``pwd`` or
    ``password``) or plain strings/integers passed through as opaque codes.
    """

    def load(self, path: Path) -> list[Credential]:
        if not path.is_file():
            raise CredentialTableError(f"credential table not found: {path}")
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise CredentialTableError(f"credential table {path} cannot be read: {exc}") from exc
        suffix = path.suffix.lower()
        try:
            if suffix in _JSON_LINES:
                raw: object = [json.loads(line) for line in text.splitlines() if line.strip()]
            elif suffix in _YAML:
                raw = yaml.safe_load(text)
            else:
                raw = json.loads(text) if text.strip() else []
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise CredentialTableError(f"credential table {path} is malformed: {exc}") from exc

        if raw is None:
            raw = []
        if not isinstance(raw, list):
            raise CredentialTableError(f"credential table {path} must contain a list of records")
        records = [_to_credential(item, position, path) for position, item in enumerate(raw)]
        if not records:
            raise CredentialTableError(f"no auth codes found: {path}")
        return records


def _to_credential(item: object, position: int, path: Path) -> Credential:
    if isinstance(item, dict):
        ident = item.get("id")
        if ident is None or ident == "":
            raise CredentialTableError(f"{path} record #{position} has no id")
        password = item.get("pwd", item.get("password"))
        return IdPasswordCredential(id=str(ident), password=None if password is None else str(password))
    if isinstance(item, bool):
        raise CredentialTableError(f"{path} record #{position} is not a valid auth code")
    if isinstance(item, (str, int)):
        return OpaqueCredential(item)
    raise CredentialTableError(f"{path} record #{position} is not a valid auth code")
