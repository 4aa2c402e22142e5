"""
Tests for the local shell endpoints.

The credential store and storage client dependencies are replaced with
in-memory implementations, so the routes run end to end without disk
or network access.
"""

from typing import Optional

import pytest
from fastapi.testclient import TestClient

from minio_manager.api.dependencies import get_credential_store, get_storage_client
from minio_manager.core.storage.models import StorageConfig
from minio_manager.infrastructure.credentials.store import (
    STORAGE_KEY,
    CredentialStore,
    InMemoryKeyValueStore,
)
from minio_manager.infrastructure.storage.client import MockStorageClient, TransportError
from minio_manager.main import create_app

CONFIG_PAYLOAD = {
    "endpoint": "https://minio.example.com:9000",
    "access_key": "minioadmin",
    "secret_key": "minioadmin-secret",
    "bucket": "files",
    "use_ssl": True,
}


class FailingUploadStorage(MockStorageClient):
    """Mock storage that rejects uploads of one particular name."""

    def __init__(self, failing_name: str) -> None:
        super().__init__()
        self.failing_name = failing_name
        self.attempted: list[str] = []

    async def upload_file(
        self,
        config: StorageConfig,
        name: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> None:
        self.attempted.append(name)
        if name == self.failing_name:
            raise TransportError(
                "Failed to upload file: Forbidden", status_code=403, reason="Forbidden"
            )
        await super().upload_file(config, name, data, content_type)


@pytest.fixture
def backend() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(backend) -> CredentialStore:
    return CredentialStore(backend)


@pytest.fixture
def storage() -> MockStorageClient:
    return MockStorageClient()


def build_client(store: CredentialStore, storage: MockStorageClient) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_credential_store] = lambda: store
    app.dependency_overrides[get_storage_client] = lambda: storage
    return TestClient(app)


@pytest.fixture
def client(store, storage) -> TestClient:
    return build_client(store, storage)


@pytest.fixture
def configured_client(client) -> TestClient:
    response = client.put("/api/v1/config", json=CONFIG_PAYLOAD)
    assert response.status_code == 200
    return client


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class TestHealth:

    def test_reports_configuration_state(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["details"]["configured"] is False


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class TestConfigEndpoints:
    """Tests for saving, showing and clearing connection settings."""

    def test_unconfigured(self, client):
        assert client.get("/api/v1/config").json()["configured"] is False

    def test_save_and_show_without_secret(self, client, store):
        response = client.put("/api/v1/config", json=CONFIG_PAYLOAD)

        body = response.json()
        assert response.status_code == 200
        assert body["configured"] is True
        assert body["endpoint"] == "minio.example.com:9000"
        assert body["access_key_hint"] == "mini…"
        assert "secret_key" not in body

        saved = store.load_config()
        assert saved is not None
        assert saved.secret_key == "minioadmin-secret"
        assert "minioadmin-secret" not in client.get("/api/v1/config").text

    def test_rejects_empty_fields(self, client):
        response = client.put("/api/v1/config", json={**CONFIG_PAYLOAD, "bucket": ""})

        assert response.status_code == 422

    def test_clear(self, configured_client, store):
        response = configured_client.delete("/api/v1/config")

        assert response.status_code == 204
        assert not store.has_stored_config()
        assert configured_client.get("/api/v1/config").json()["configured"] is False

    def test_corrupted_slot_reads_as_unconfigured(self, client, backend):
        backend.set_item(STORAGE_KEY, "garbage")

        assert client.get("/api/v1/config").json()["configured"] is False


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

class TestFileEndpoints:
    """Tests for list, upload, download and delete."""

    def test_requires_configuration(self, client):
        response = client.get("/api/v1/files")

        assert response.status_code == 409

    def test_upload_then_list(self, configured_client):
        response = configured_client.post(
            "/api/v1/files",
            files=[
                ("files", ("a.txt", b"a" * 1536, "text/plain")),
                ("files", ("b.bin", b"bb", "application/octet-stream")),
            ],
        )

        assert response.status_code == 201
        assert response.json()["uploaded"] == ["a.txt", "b.bin"]
        assert response.json()["message"] == "Successfully uploaded 2 files"

        listing = configured_client.get("/api/v1/files").json()
        assert listing["bucket"] == "files"
        assert [f["name"] for f in listing["files"]] == ["a.txt", "b.bin"]
        assert listing["files"][0]["size_formatted"] == "1.5 KB"

    def test_upload_stops_at_first_failure(self, store):
        storage = FailingUploadStorage(failing_name="b.txt")
        client = build_client(store, storage)
        client.put("/api/v1/config", json=CONFIG_PAYLOAD)

        response = client.post(
            "/api/v1/files",
            files=[
                ("files", ("a.txt", b"a", "text/plain")),
                ("files", ("b.txt", b"b", "text/plain")),
                ("files", ("c.txt", b"c", "text/plain")),
            ],
        )

        assert response.status_code == 502
        assert "Forbidden" in response.json()["detail"]
        assert "already uploaded: a.txt" in response.json()["detail"]
        assert storage.attempted == ["a.txt", "b.txt"]

        names = [f["name"] for f in client.get("/api/v1/files").json()["files"]]
        assert names == ["a.txt"]

    def test_download(self, configured_client):
        configured_client.post(
            "/api/v1/files", files=[("files", ("notes.txt", b"hello", "text/plain"))]
        )

        response = configured_client.get("/api/v1/files/notes.txt")

        assert response.status_code == 200
        assert response.content == b"hello"
        assert "notes.txt" in response.headers["content-disposition"]

    def test_download_missing_is_not_found(self, configured_client):
        response = configured_client.get("/api/v1/files/missing.txt")

        assert response.status_code == 404
        assert response.json()["detail"] == "Failed to download file: Not Found"

    def test_delete(self, configured_client):
        configured_client.post(
            "/api/v1/files", files=[("files", ("a.txt", b"a", "text/plain"))]
        )

        response = configured_client.delete("/api/v1/files/a.txt")

        assert response.status_code == 200
        assert response.json()["message"] == "Successfully deleted a.txt"
        assert configured_client.get("/api/v1/files").json()["count"] == 0
