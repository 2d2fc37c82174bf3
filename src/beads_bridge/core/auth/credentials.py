"""
Credential storage interface and process-scoped credential cache.

Encryption at rest is the job of the concrete store. This module only
defines the contract, two simple stores (in-memory and environment-backed)
and the CredentialCache that services share by reference.

Secrets are held as ``pydantic.SecretStr`` so that dumping a record (for
logging or persistence) never emits the plaintext token.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field, SecretStr

from beads_bridge.core.errors import AuthError, NotSupportedError

logger = logging.getLogger(__name__)


class CredentialRecord(BaseModel):
    """Credentials for one backend."""

    token: SecretStr
    scopes: list[str] = Field(default_factory=list)
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check whether the credential has passed its expiry time."""
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return now >= expires


@runtime_checkable
class CredentialStore(Protocol):
    """
    Secret storage keyed by backend name.

    Implementations must never persist plaintext secrets.
    """

    def load(self) -> dict[str, CredentialRecord]:
        """Return all stored credentials keyed by backend name."""
        ...

    def save(self, credentials: Mapping[str, CredentialRecord]) -> None:
        """Replace stored credentials."""
        ...

    def clear(self) -> None:
        """Remove all stored credentials."""
        ...


class MemoryCredentialStore:
    """Credential store that lives only for the process. Used in tests."""

    def __init__(self, credentials: Mapping[str, CredentialRecord] | None = None) -> None:
        self._credentials: dict[str, CredentialRecord] = dict(credentials or {})

    def load(self) -> dict[str, CredentialRecord]:
        return dict(self._credentials)

    def save(self, credentials: Mapping[str, CredentialRecord]) -> None:
        self._credentials = dict(credentials)

    def clear(self) -> None:
        self._credentials.clear()


class EnvCredentialStore:
    """
    Read-only store backed by environment variables.

    Reads ``GH_TOKEN``/``GITHUB_TOKEN`` for GitHub and ``SHORTCUT_API_TOKEN``
    for Shortcut. Nothing is ever written, so there is nothing to encrypt.
    """

    ENV_VARS: dict[str, tuple[str, ...]] = {
        "github": ("GH_TOKEN", "GITHUB_TOKEN"),
        "shortcut": ("SHORTCUT_API_TOKEN",),
    }

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def load(self) -> dict[str, CredentialRecord]:
        records: dict[str, CredentialRecord] = {}
        for backend, names in self.ENV_VARS.items():
            for name in names:
                if value := self._environ.get(name):
                    records[backend] = CredentialRecord(token=SecretStr(value))
                    break
        return records

    def save(self, credentials: Mapping[str, CredentialRecord]) -> None:
        raise NotSupportedError("save")

    def clear(self) -> None:
        raise NotSupportedError("clear")


class CredentialCache:
    """
    Read-mostly, process-scoped view over a CredentialStore.

    The store is loaded lazily on first access. Pass one instance by
    reference to every service that needs credentials; ``clear()`` empties
    both the cache and the underlying store.

    Example:
        >>> cache = CredentialCache(EnvCredentialStore())
        >>> token = cache.require("github").token.get_secret_value()
    """

    def __init__(self, store: CredentialStore) -> None:
        self.store = store
        self._records: dict[str, CredentialRecord] | None = None
        self._lock = threading.Lock()

    def _ensure_loaded(self) -> dict[str, CredentialRecord]:
        with self._lock:
            if self._records is None:
                self._records = self.store.load()
                logger.debug("Loaded credentials for: %s", ", ".join(self._records) or "(none)")
            return self._records

    def get(self, backend: str) -> CredentialRecord | None:
        """Return credentials for ``backend`` or None."""
        return self._ensure_loaded().get(backend)

    def require(self, backend: str) -> CredentialRecord:
        """
        Return valid credentials for ``backend``.

        Raises:
            AuthError: If none are stored or the stored ones have expired
        """
        record = self.get(backend)
        if record is None:
            raise AuthError(f"No credentials configured for {backend}")
        if record.is_expired():
            raise AuthError(f"Credentials for {backend} have expired")
        return record

    def put(self, backend: str, record: CredentialRecord) -> None:
        """Store credentials for ``backend`` and persist through the store."""
        records = self._ensure_loaded()
        with self._lock:
            records[backend] = record
            self.store.save(records)

    def clear(self) -> None:
        """Drop cached credentials and clear the backing store."""
        with self._lock:
            self._records = None
            self.store.clear()
