"""
Shared fixtures for the archive API tests.

Each test gets its own SQLite file under tmp_path and an in-memory storage
double, so nothing touches R2.
"""

import pytest
from fastapi.testclient import TestClient

from javidan.config import Settings
from javidan.database import Database
from javidan.errors import StorageError
from javidan.main import create_app
from javidan.services.storage import ObjectStorage, generate_key, media_type_for


class FakeStorage(ObjectStorage):
    """Records uploads in a dict instead of calling S3"""

    def __init__(self):
        super().__init__(client=None, bucket="test-bucket", public_base_url="https://media.example.com")
        self.objects = {}
        self.fail = False

    def upload(self, data, key, content_type):
        if self.fail:
            raise StorageError("Failed to upload file")
        self.objects[key] = (data, content_type)
        return self.public_url(key)

    def presign(self, file_name, content_type):
        key = generate_key(file_name, media_type_for(content_type))
        return {
            "presignedUrl": f"https://upload.example.com/{key}?signature=test",
            "publicUrl": self.public_url(key),
            "key": key,
        }


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "environment": "development",
        "database_path": str(tmp_path / "archive.db"),
        "admin_secret": "test-secret",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(settings, storage):
    with TestClient(create_app(settings, storage=storage)) as test_client:
        yield test_client


@pytest.fixture
def production_client(tmp_path, storage):
    app = create_app(make_settings(tmp_path, environment="production"), storage=storage)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(client, settings):
    """Direct connection to the database the client writes to"""
    with Database(settings.database_path).session() as conn:
        yield conn


@pytest.fixture
def submit_victim(client):
    """Factory submitting a victim record with defaults, returning its id"""

    def _submit(**fields):
        data = {"fullName": "Ali Rezaei", "location": "Tehran"}
        data.update(fields)
        response = client.post("/submissions/victim", data=data)
        assert response.status_code == 200, response.text
        return response.json()["id"]

    return _submit
