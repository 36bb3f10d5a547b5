from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from files_api.database.mongo_adapter import MongoFileStore
from files_api.dependencies import get_file_store
from files_api.errors import StorageUnavailable
from files_api.schemas import HealthResponse

router = APIRouter()

@router.get("/health", response_model=HealthResponse)
async def health_check(file_store: MongoFileStore = Depends(get_file_store)):
    """
    Health check endpoint for monitoring API status and component readiness.

    Returns status of the API and database components.
    """
    health_status = {
        "status": "ok",
        "components": {
            "api": "ready",
            "database": "ready"
        },
        "ready": False
    }

    # Check database status
    try:
        await run_in_threadpool(file_store.ping)
    except StorageUnavailable as e:
        health_status["components"]["database"] = f"error: {e.message}"
        health_status["status"] = "degraded"

    health_status["ready"] = all(
        state == "ready" for state in health_status["components"].values()
    )

    return health_status
