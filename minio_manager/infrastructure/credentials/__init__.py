"""
Credential persistence for the storage connection.

One obfuscated blob under a fixed key, kept in a local key-value file.
"""

from .obfuscation import DeobfuscationError, deobfuscate, obfuscate
from .store import (
    STORAGE_KEY,
    CredentialStore,
    CredentialStoreError,
    DeserializationError,
    FileKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStore,
)

__all__ = [
    "STORAGE_KEY",
    "CredentialStore",
    "CredentialStoreError",
    "DeobfuscationError",
    "DeserializationError",
    "FileKeyValueStore",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "deobfuscate",
    "obfuscate",
]
