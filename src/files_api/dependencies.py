from fastapi import Request

from files_api.database.mongo_adapter import MongoFileStore
from files_api.settings import Settings


def create_file_store(settings: Settings) -> MongoFileStore:
    """Build the MongoDB file store described by the settings."""
    return MongoFileStore(
        connection_string=settings.mongodb_uri,
        database_name=settings.mongodb_database,
        collection_name=settings.mongodb_collection,
        unique_names=settings.unique_names,
        timeout_ms=settings.mongodb_timeout_ms,
    )


def get_settings_from_app(request: Request) -> Settings:
    """Settings dependency."""
    return request.app.state.settings


def get_file_store(request: Request) -> MongoFileStore:
    """File store dependency."""
    return request.app.state.file_store
