from textwrap import dedent
import logging
from typing import Optional

import pydantic
from fastapi import FastAPI
from fastapi.routing import APIRoute

from files_api.database.mongo_adapter import MongoFileStore
from files_api.dependencies import create_file_store
from files_api.errors import (
    FileStoreError,
    StorageUnavailable,
    handle_broad_exceptions,
    handle_file_store_errors,
    handle_pydantic_validation_errors,
)
from files_api.routers.files import router as files_router
from files_api.routers.health import router as health_router
from files_api.settings import Settings, get_settings

# Set up logging
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, file_store: Optional[MongoFileStore] = None) -> FastAPI:
    """Create a FastAPI application."""
    settings = settings or get_settings()
    file_store = file_store or create_file_store(settings)

    app = FastAPI(
        title="Files API",
        summary="Upload files and retrieve them byte-for-byte",
        version="v1",
        description=dedent(
            f"""\
        Files are stored in MongoDB, one document per file.

        | Setting | Value |
        | --- | --- |
        | Naming policy | `{settings.naming_policy.value}` |
        | Retrieve by | `{settings.locator.value}` |
        | Content-Disposition | `{settings.content_disposition.value}` |
        """
        ),
        docs_url="/docs",  # the base url serves the upload form
        generate_unique_id_function=custom_generate_unique_id,
    )

    app.state.settings = settings
    app.state.file_store = file_store

    logger.info("creating indexes")
    try:
        file_store.init_collections()
    except StorageUnavailable:
        # retried before the first write
        logger.error("MongoDB unreachable at startup; index creation deferred")

    app.include_router(files_router, tags=["files"])
    app.include_router(health_router, tags=["health"])

    app.add_exception_handler(
        exc_class_or_status_code=FileStoreError,
        handler=handle_file_store_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    app_settings = get_settings()
    uvicorn.run(create_app(app_settings), host=app_settings.host, port=app_settings.port)
