"""
Persistent storage for the active storage connection.

The configuration lives as one obfuscated string under a single
well-known key, mirroring how the browser version used localStorage.
There are no profiles and no versioning: saving overwrites, clearing
removes the only slot.

Backends implement the small KeyValueStore protocol:
- FileKeyValueStore: JSON object file on disk (the default)
- InMemoryKeyValueStore: dict-backed, for tests and mock mode
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol, Union

from ...core.storage.models import StorageConfig
from .obfuscation import DeobfuscationError, deobfuscate, obfuscate

logger = logging.getLogger(__name__)

STORAGE_KEY = "minio_config_encrypted"


class CredentialStoreError(Exception):
    """Raised when the backing key-value file cannot be read or written."""
    pass


class DeserializationError(ValueError):
    """Raised when a stored value does not decode to a StorageConfig."""
    pass


class KeyValueStore(Protocol):
    """Durable string-to-string storage, shaped like browser localStorage."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class InMemoryKeyValueStore:
    """Dict-backed key-value store. Contents vanish with the process."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileKeyValueStore:
    """
    Key-value store backed by a JSON object file.

    A missing file reads as empty. Writes go to a temporary file in the
    same directory and are moved into place with os.replace, so readers
    never observe a half-written file.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise CredentialStoreError(f"Cannot read {self._path}: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CredentialStoreError(f"Corrupt key-value file {self._path}: {e}") from e

        if not isinstance(data, dict):
            raise CredentialStoreError(f"Corrupt key-value file {self._path}: not an object")

        return data

    def _write_all(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self._path.parent, prefix=".kv-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle)
                os.replace(tmp_path, self._path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CredentialStoreError(f"Cannot write {self._path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


def encode_config(config: StorageConfig) -> str:
    """Serialize and obfuscate a config into its persisted form."""
    serialized = json.dumps(config.to_dict(), separators=(",", ":"), ensure_ascii=False)
    return obfuscate(serialized)


def decode_config(blob: str) -> StorageConfig:
    """
    Reverse `encode_config`.

    Raises:
        DeserializationError: If the blob is not reversible or does not
            hold a valid config record
    """
    try:
        return StorageConfig.from_dict(json.loads(deobfuscate(blob)))
    except (DeobfuscationError, ValueError) as e:
        raise DeserializationError(str(e)) from e


class CredentialStore:
    """
    Saves and restores the StorageConfig in a single key-value slot.

    Values are obfuscated, not encrypted; see `obfuscation` for what that
    does and does not protect against.
    """

    def __init__(self, backend: KeyValueStore, key: str = STORAGE_KEY) -> None:
        self._backend = backend
        self._key = key

    def save_config(self, config: StorageConfig) -> None:
        """Persist the config, replacing whatever was stored before."""
        self._backend.set_item(self._key, encode_config(config))

        logger.info(
            "Saved storage configuration",
            extra={"endpoint": config.host, "bucket": config.bucket},
        )

    def load_config(self) -> Optional[StorageConfig]:
        """
        Return the stored config, or None if there is no usable one.

        A corrupted or tampered value is reported as None rather than an
        error so the caller simply asks for the settings again.
        """
        blob = self._backend.get_item(self._key)
        if blob is None:
            return None

        try:
            return decode_config(blob)
        except DeserializationError as e:
            logger.warning(
                "Discarding unreadable stored configuration",
                extra={"error": str(e)},
            )
            return None

    def clear_config(self) -> None:
        self._backend.remove_item(self._key)
        logger.info("Cleared storage configuration")

    def has_stored_config(self) -> bool:
        """True if a value exists under the key. The value is not validated."""
        return self._backend.get_item(self._key) is not None
