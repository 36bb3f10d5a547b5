"""Turn an uploaded file into a `StoredObject` ready to be written."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import pydantic

from files_api.database.schemas import DEFAULT_ENCODING, DEFAULT_MIMETYPE, StoredObject
from files_api.errors import InvalidUpload

logger = logging.getLogger(__name__)


@dataclass
class RawUpload:
    """A file as parsed out of a multipart request, fully read into memory."""
    name: Optional[str]
    data: Optional[bytes]
    size: Optional[int] = None
    mimetype: Optional[str] = None
    encoding: Optional[str] = None
    md5: Optional[str] = None
    truncated: bool = False


def build_stored_object(upload: RawUpload) -> StoredObject:
    """
    Copy the declared attributes of an upload into a `StoredObject`.

    No content sniffing, size limits or scanning happen here. `size` always
    ends up as the real byte count of `data`.

    :param upload: the uploaded file; the caller has already checked one was sent.
    :raises InvalidUpload: if the upload has no name or no data.
    """
    if not upload.name:
        raise InvalidUpload("Uploaded file is missing a name")
    if upload.data is None:
        raise InvalidUpload("Uploaded file is missing its data")

    data = bytes(upload.data)
    if upload.size is not None and upload.size != len(data):
        logger.warning(f"Declared size {upload.size} for {upload.name!r} differs from {len(data)} bytes received")

    try:
        return StoredObject(
            name=upload.name,
            data=data,
            size=len(data),
            mimetype=upload.mimetype or DEFAULT_MIMETYPE,
            encoding=upload.encoding or DEFAULT_ENCODING,
            md5=upload.md5,
            truncated=upload.truncated,
            uploaded_at=datetime.now(timezone.utc),
        )
    except pydantic.ValidationError as e:
        raise InvalidUpload(f"Uploaded file is invalid: {e.errors()[0]['msg']}") from e
