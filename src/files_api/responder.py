"""Build the HTTP response that sends a stored file back to the client."""

import re
from typing import Dict
from urllib.parse import quote

from fastapi import Response

from files_api.database.schemas import StoredObject
from files_api.settings import Disposition

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def content_disposition(name: str, disposition: Disposition = Disposition.INLINE) -> str:
    """
    Content-Disposition value naming the file.

    Non-ASCII names get an RFC 5987 `filename*` parameter next to an ASCII
    fallback, since header values must be latin-1 encodable.
    """
    name = _CONTROL_CHARS.sub("", name)
    fallback = name.encode("ascii", "replace").decode("ascii")
    fallback = fallback.replace("\\", "\\\\").replace('"', '\\"')

    value = f'{disposition.value}; filename="{fallback}"'
    if fallback != name:
        value += f"; filename*=UTF-8''{quote(name, safe='')}"
    return value


def file_headers(stored_object: StoredObject, disposition: Disposition = Disposition.INLINE) -> Dict[str, str]:
    return {
        "Content-Type": stored_object.mimetype,
        "Content-Length": str(stored_object.size),
        "Content-Disposition": content_disposition(stored_object.name, disposition),
    }


def build_file_response(stored_object: StoredObject, disposition: Disposition = Disposition.INLINE) -> Response:
    """
    Return the stored bytes untouched with type, length and name headers.

    Content-Type is set through the headers rather than `media_type` so it
    goes out verbatim, without a charset appended.
    """
    return Response(
        content=stored_object.data,
        headers=file_headers(stored_object, disposition),
    )
