####################################
# --- Request/response schemas --- #
####################################

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

UPLOAD_SUCCESS_MESSAGE = "File stored successfully!"


class UploadFileResponse(BaseModel):
    """Response model for `POST /upload`."""
    message: str = Field(description="A message about the operation.")
    file_id: str = Field(
        description="The ID assigned to the stored file.",
        json_schema_extra={"example": "65f1c0a2e4b0a1b2c3d4e5f6"},
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": UPLOAD_SUCCESS_MESSAGE,
                "file_id": "65f1c0a2e4b0a1b2c3d4e5f6",
            }
        }
    )


class ErrorResponse(BaseModel):
    """Body of every error response."""
    error: str = Field(json_schema_extra={"example": "File not found"})


class HealthResponse(BaseModel):
    """Response model for `GET /health`."""
    status: str
    components: Dict[str, str]
    ready: bool
