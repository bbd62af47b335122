"""Credential storage."""

from ticktick_oauth.auth.storage.credential_store import (
    CredentialBackend,
    CredentialStore,
    JsonFileBackend,
    KeyringBackend,
    MemoryBackend,
    default_storage_dir,
    get_default_backend,
)

__all__ = [
    "CredentialBackend",
    "CredentialStore",
    "JsonFileBackend",
    "KeyringBackend",
    "MemoryBackend",
    "default_storage_dir",
    "get_default_backend",
]
