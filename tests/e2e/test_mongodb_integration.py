"""
End-to-End Integration Tests against a real MongoDB server.

Set MONGODB_TEST_URI (e.g. mongodb://localhost:27017) to run them; each test
works in its own throwaway collection.
"""

import os
import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from files_api.database.mongo_adapter import MongoFileStore
from files_api.database.schemas import StoredObject
from files_api.errors import Conflict
from files_api.main import create_app
from tests.consts import TEST_DATABASE
from tests.fixtures.db_client import make_settings

MONGODB_TEST_URI = os.getenv("MONGODB_TEST_URI")

pytestmark = pytest.mark.skipif(not MONGODB_TEST_URI, reason="MONGODB_TEST_URI not set")


@pytest.fixture
def collection_name():
    return f"files_{uuid.uuid4().hex[:12]}"


@pytest.fixture
def make_store(collection_name):
    stores = []

    def _make_store(unique_names: bool = True) -> MongoFileStore:
        store = MongoFileStore(
            connection_string=MONGODB_TEST_URI,
            database_name=TEST_DATABASE,
            collection_name=collection_name,
            unique_names=unique_names,
            timeout_ms=3000,
        )
        stores.append(store)
        return store

    yield _make_store

    if stores:
        stores[0].db.drop_collection(collection_name)
    for store in stores:
        store.close()


class TestUploadWorkflow:
    """Test upload and retrieval through the HTTP API"""

    def test_upload_and_retrieve(self, make_store, collection_name):
        store = make_store()
        settings = make_settings(mongodb_uri=MONGODB_TEST_URI, mongodb_collection=collection_name)

        with TestClient(create_app(settings, file_store=store)) as client:
            response = client.post("/upload", files={"sampleFile": ("a.txt", b"hello", "text/plain")})
            assert response.status_code == status.HTTP_201_CREATED
            file_id = response.json()["file_id"]

            response = client.get("/retrieve", params={"id": file_id})
            assert response.status_code == status.HTTP_200_OK
            assert response.headers["Content-Length"] == "5"
            assert response.headers["Content-Type"] == "text/plain"
            assert response.content == b"hello"

            response = client.get("/retrieve", params={"id": "doesnotexist"})
            assert response.status_code == status.HTTP_404_NOT_FOUND

            response = client.get("/health")
            assert response.json()["ready"] is True


class TestConcurrentUploads:
    """Test the unique index under racing writers"""

    def test_exactly_one_concurrent_store_wins(self, make_store):
        store = make_store()
        store.init_collections()

        def attempt(i: int) -> str:
            data = f"writer {i}".encode()
            try:
                store.store(StoredObject(name="race.txt", data=data, size=len(data), mimetype="text/plain"))
                return "stored"
            except Conflict:
                return "conflict"

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(attempt, range(16)))

        assert outcomes.count("stored") == 1
        assert outcomes.count("conflict") == 15
        assert store.count() == 1
