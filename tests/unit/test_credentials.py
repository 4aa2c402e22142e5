"""
Unit tests for the credential store and its obfuscation transform.

Uses the in-memory backend for behavior and the file backend (under
pytest's tmp_path) for persistence across store instances.
"""

import base64
import json

import pytest

from minio_manager.core.storage.models import StorageConfig
from minio_manager.infrastructure.credentials import (
    STORAGE_KEY,
    CredentialStore,
    CredentialStoreError,
    DeobfuscationError,
    FileKeyValueStore,
    InMemoryKeyValueStore,
    deobfuscate,
    obfuscate,
)


@pytest.fixture
def config() -> StorageConfig:
    return StorageConfig(
        endpoint="minio.example.com:9000",
        access_key="minioadmin",
        secret_key="s3cr3t/with+symbols=",
        bucket="files",
        use_ssl=False,
    )


@pytest.fixture
def backend() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(backend) -> CredentialStore:
    return CredentialStore(backend)


# ---------------------------------------------------------------------------
# Obfuscation
# ---------------------------------------------------------------------------

class TestObfuscation:
    """Tests for the reversible (non-cryptographic) transform."""

    def test_matches_browser_encoding(self):
        """base64(xor(base64("a"), key)) as produced by the browser version."""
        assert obfuscate("a") == "NDhTVA=="

    def test_reverses(self):
        text = '{"endpoint":"minio.local","secretKey":"ünïcode & spaces"}'
        assert deobfuscate(obfuscate(text)) == text

    def test_output_hides_plain_text(self):
        value = obfuscate("supersecret")
        assert "supersecret" not in value
        assert "supersecret" not in base64.b64decode(value).decode("latin-1")

    def test_rejects_invalid_base64(self):
        with pytest.raises(DeobfuscationError):
            deobfuscate("not base64!!")

    def test_rejects_non_ascii_input(self):
        with pytest.raises(DeobfuscationError):
            deobfuscate("ÿÿÿÿ")


# ---------------------------------------------------------------------------
# Credential Store
# ---------------------------------------------------------------------------

class TestCredentialStore:
    """Tests for save/load/clear/exists on a single slot."""

    def test_round_trip(self, store, config):
        store.save_config(config)

        assert store.load_config() == config

    def test_load_without_value_returns_none(self, store):
        assert store.load_config() is None
        assert not store.has_stored_config()

    def test_save_overwrites(self, store, config):
        store.save_config(config)
        replacement = StorageConfig(
            endpoint="https://other.example.com",
            access_key="key",
            secret_key="secret",
            bucket="backups",
        )

        store.save_config(replacement)

        assert store.load_config() == replacement

    def test_clear_removes_value(self, store, config):
        store.save_config(config)

        store.clear_config()

        assert store.load_config() is None
        assert not store.has_stored_config()

    def test_clear_is_idempotent(self, store):
        store.clear_config()
        store.clear_config()

        assert not store.has_stored_config()

    def test_stored_value_is_not_plain_json(self, store, backend, config):
        store.save_config(config)

        raw = backend.get_item(STORAGE_KEY)
        assert raw is not None
        assert config.secret_key not in raw
        assert "secretKey" not in raw

    def test_uses_browser_field_names(self, store, backend, config):
        store.save_config(config)

        record = json.loads(deobfuscate(backend.get_item(STORAGE_KEY)))
        assert record == {
            "endpoint": "minio.example.com:9000",
            "accessKey": "minioadmin",
            "secretKey": "s3cr3t/with+symbols=",
            "bucket": "files",
            "useSSL": False,
        }

    def test_corrupted_value_loads_as_none(self, store, backend):
        backend.set_item(STORAGE_KEY, "%%% definitely not ours %%%")

        assert store.load_config() is None
        # presence is reported without validating content
        assert store.has_stored_config()

    def test_reversible_but_not_json_loads_as_none(self, store, backend):
        backend.set_item(STORAGE_KEY, obfuscate("not json at all"))

        assert store.load_config() is None

    def test_json_with_missing_fields_loads_as_none(self, store, backend):
        backend.set_item(STORAGE_KEY, obfuscate('{"endpoint":"minio.local"}'))

        assert store.load_config() is None

    def test_json_with_wrong_types_loads_as_none(self, store, backend):
        record = {
            "endpoint": "minio.local",
            "accessKey": "key",
            "secretKey": "secret",
            "bucket": "files",
            "useSSL": "yes",
        }
        backend.set_item(STORAGE_KEY, obfuscate(json.dumps(record)))

        assert store.load_config() is None


class TestFileKeyValueStore:
    """Tests for the on-disk backend."""

    def test_persists_across_instances(self, tmp_path, config):
        path = tmp_path / "nested" / "storage.json"

        CredentialStore(FileKeyValueStore(path)).save_config(config)
        reloaded = CredentialStore(FileKeyValueStore(path)).load_config()

        assert reloaded == config
        assert path.exists()

    def test_missing_file_reads_as_empty(self, tmp_path):
        kv = FileKeyValueStore(tmp_path / "absent.json")

        assert kv.get_item("anything") is None

    def test_remove_keeps_other_keys(self, tmp_path):
        kv = FileKeyValueStore(tmp_path / "storage.json")
        kv.set_item("a", "1")
        kv.set_item("b", "2")

        kv.remove_item("a")

        assert kv.get_item("a") is None
        assert kv.get_item("b") == "2"

    def test_no_temporary_files_left_behind(self, tmp_path):
        kv = FileKeyValueStore(tmp_path / "storage.json")
        kv.set_item("a", "1")

        assert [p.name for p in tmp_path.iterdir()] == ["storage.json"]

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(CredentialStoreError):
            FileKeyValueStore(path).get_item(STORAGE_KEY)
