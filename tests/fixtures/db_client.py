"""Database and app fixtures for tests.

MongoDB is replaced by an in-process mongomock client; the app is built
around it through `create_app(settings, file_store=...)`.
"""
from typing import Callable

import mongomock
import pytest
from fastapi.testclient import TestClient

from files_api.database.mongo_adapter import MongoFileStore
from files_api.main import create_app
from files_api.settings import Settings
from tests.consts import TEST_COLLECTION, TEST_DATABASE, TEST_MONGODB_URI


def make_settings(**overrides) -> Settings:
    """Settings for tests, ignoring any local .env file."""
    values = {
        "mongodb_uri": TEST_MONGODB_URI,
        "mongodb_database": TEST_DATABASE,
        "mongodb_collection": TEST_COLLECTION,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def mongo_client():
    client = mongomock.MongoClient()
    yield client
    client.close()


@pytest.fixture
def make_file_store(mongo_client) -> Callable[..., MongoFileStore]:
    def _make_file_store(unique_names: bool = True) -> MongoFileStore:
        return MongoFileStore(
            database_name=TEST_DATABASE,
            collection_name=TEST_COLLECTION,
            unique_names=unique_names,
            client=mongo_client,
        )
    return _make_file_store


@pytest.fixture
def file_store(make_file_store) -> MongoFileStore:
    store = make_file_store()
    store.init_collections()
    return store


@pytest.fixture
def make_client(make_file_store) -> Callable[..., TestClient]:
    """Build a TestClient for an app configured with the given settings overrides."""
    def _make_client(**overrides) -> TestClient:
        settings = make_settings(**overrides)
        store = make_file_store(unique_names=settings.unique_names)
        app = create_app(settings, file_store=store)
        return TestClient(app)
    return _make_client


@pytest.fixture
def client(make_client) -> TestClient:
    with make_client() as test_client:
        yield test_client
