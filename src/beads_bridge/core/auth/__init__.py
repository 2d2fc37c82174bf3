"""
Credential storage and the shared credential cache.
"""

from .credentials import (
    CredentialCache,
    CredentialRecord,
    CredentialStore,
    EnvCredentialStore,
    MemoryCredentialStore,
)

__all__ = [
    "CredentialCache",
    "CredentialRecord",
    "CredentialStore",
    "EnvCredentialStore",
    "MemoryCredentialStore",
]
