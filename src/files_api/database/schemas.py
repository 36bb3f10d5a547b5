"""
Schemas for stored file documents.

`StoredObject` is the in-process shape of a stored file; the JSON schema
validates the raw document right before it is written to MongoDB.
"""

from datetime import datetime
from typing import Any, Dict, Optional

import jsonschema
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing_extensions import Self

DEFAULT_MIMETYPE = "application/octet-stream"
DEFAULT_ENCODING = "7bit"


class StoredObject(BaseModel):
    """A stored file: raw bytes plus the metadata declared at upload time"""
    id: Optional[str] = Field(None, description="Store-assigned identifier, None until written")
    name: str = Field(..., min_length=1, description="Original filename as sent by the client")
    data: bytes = Field(..., description="Exact file content")
    size: int = Field(..., ge=0, description="Byte length of data")
    mimetype: str = Field(DEFAULT_MIMETYPE, description="Client-declared content type")
    encoding: str = Field(DEFAULT_ENCODING, description="Client-declared transfer encoding")
    md5: Optional[str] = Field(None, description="Advisory content hash from the upload pipeline")
    truncated: bool = Field(False, description="Whether the upload pipeline cut the file short")
    uploaded_at: Optional[datetime] = Field(None, description="When the record was built")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_size_matches_data(self) -> Self:
        if self.size != len(self.data):
            raise ValueError(f"size {self.size} does not match data length {len(self.data)}")
        return self

    def to_document(self) -> Dict[str, Any]:
        """Document body for insertion; `_id` is assigned by the store."""
        return self.model_dump(exclude={"id"})


STORED_OBJECT_JSON_SCHEMA = {
    "type": "object",
    "required": ["name", "data", "size", "mimetype"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "data": {},
        "size": {"type": "integer", "minimum": 0},
        "mimetype": {"type": "string"},
        "encoding": {"type": "string"},
        "md5": {"type": ["string", "null"]},
        "truncated": {"type": "boolean"},
        "uploaded_at": {},
    },
    "additionalProperties": False,
}


def validate_stored_object_document(document: Dict[str, Any]) -> None:
    """Validate a file document against the schema"""
    jsonschema.validate(document, STORED_OBJECT_JSON_SCHEMA)

