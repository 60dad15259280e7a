# Token Store: persisted OAuth credential for the Spotify client.
# Created: 2026-10-19
#
# One JSON record holding the app registration and the current token pair.
# Writes are atomic (temp file + rename) and the file is chmod 0600.

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Protocol

from tailspotify.errors import StoreError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    """OAuth 2.0 credential set for the single configured account."""

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""
    access_token: str = ""
    refresh_token: str = ""
    expires_at: int = 0  # Unix timestamp, 0 = never issued

    @property
    def is_authorized(self) -> bool:
        return bool(self.access_token and self.refresh_token)

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def missing_registration(self) -> list[str]:
        """Names of the app registration fields that are still blank."""
        return [
            name
            for name in ("client_id", "client_secret", "redirect_uri")
            if not getattr(self, name)
        ]


_FIELD_NAMES = tuple(f.name for f in fields(Credential))
_TEXT_FIELDS = tuple(name for name in _FIELD_NAMES if name != "expires_at")


class CredentialStore(Protocol):
    """Load/save interface the lifecycle manager depends on."""

    def load(self) -> Credential: ...

    def save(self, credential: Credential) -> None: ...


class JsonCredentialStore:
    """File-backed credential store.

    A missing file loads as an empty :class:`Credential`; anything else that
    can't be read is a :class:`StoreError`.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> Credential:
        if not self.path.exists():
            logger.debug("No credential record at %s, starting empty", self.path)
            return Credential()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StoreError(f"Could not read {self.path}: {e}", phase="load") from e

        if not isinstance(data, dict):
            raise StoreError(f"{self.path} does not contain a JSON object", phase="load")

        values = {name: data[name] for name in _FIELD_NAMES if name in data}
        try:
            expires_at = int(values.get("expires_at", 0) or 0)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Invalid expires_at in {self.path}", phase="load") from e

        for name in _TEXT_FIELDS:
            value = values.get(name, "")
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise StoreError(f"Invalid {name} in {self.path}", phase="load")
            values[name] = value
        values["expires_at"] = expires_at

        return Credential(**values)

    def save(self, credential: Credential) -> None:
        directory = self.path.parent
        payload = json.dumps(asdict(credential), indent=2) + "\n"

        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=directory, prefix=f".{self.path.name}.", suffix=".tmp")
        except OSError as e:
            raise StoreError(f"Could not write {self.path}: {e}", phase="save") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.chmod(tmp, stat.S_IRUSR | stat.S_IWUSR)
            os.replace(tmp, self.path)
        except OSError as e:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise StoreError(f"Could not write {self.path}: {e}", phase="save") from e

        logger.info("Saved credentials to %s", self.path)


class MemoryCredentialStore:
    """In-process store; keeps the last saved credential and a save count."""

    def __init__(self, credential: Credential | None = None):
        self.credential = credential or Credential()
        self.saves = 0

    def load(self) -> Credential:
        return self.credential

    def save(self, credential: Credential) -> None:
        self.credential = credential
        self.saves += 1


class RegistrationDefaultsStore:
    """Wraps a store, filling blank app registration fields on load.

    Values already present in the wrapped store always win.
    """

    def __init__(
        self,
        store: CredentialStore,
        *,
        client_id: str | None = None,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
    ):
        self.store = store
        self.defaults = {
            "client_id": client_id or "",
            "client_secret": client_secret or "",
            "redirect_uri": redirect_uri or "",
        }

    def load(self) -> Credential:
        credential = self.store.load()
        fill = {
            name: value
            for name, value in self.defaults.items()
            if value and not getattr(credential, name)
        }
        if fill:
            logger.debug("Using %s from settings", ", ".join(sorted(fill)))
            credential = replace(credential, **fill)
        return credential

    def save(self, credential: Credential) -> None:
        self.store.save(credential)
