import hashlib
from html import escape
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, Response
from starlette.datastructures import UploadFile as StarletteUploadFile

from files_api.database.mongo_adapter import MongoFileStore
from files_api.dependencies import get_file_store, get_settings_from_app
from files_api.errors import MissingFile, MissingLocator, NotFound
from files_api.records import RawUpload, build_stored_object
from files_api.responder import build_file_response
from files_api.schemas import UPLOAD_SUCCESS_MESSAGE, ErrorResponse, UploadFileResponse
from files_api.settings import Locator, Settings

router = APIRouter()

UPLOAD_FORM_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8">
    <title>{title}</title>
  </head>
  <body>
    <h1>Upload a file</h1>
    <form action="/upload" method="post" enctype="multipart/form-data">
      <input type="file" name="{field_name}">
      <input type="submit" value="Upload">
    </form>
    <h2>Retrieve a file</h2>
    <form action="/retrieve" method="get">
      <input type="text" name="{locator}" placeholder="file {locator}">
      <input type="submit" value="Retrieve">
    </form>
  </body>
</html>
"""


async def read_upload(upload: StarletteUploadFile) -> RawUpload:
    """Read an uploaded file into memory and note what the client declared about it."""
    data = await upload.read()
    return RawUpload(
        name=upload.filename,
        data=data,
        size=getattr(upload, "size", None),
        mimetype=upload.content_type,
        encoding=upload.headers.get("content-transfer-encoding"),
        md5=hashlib.md5(data).hexdigest(),
    )


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def upload_page(settings: Settings = Depends(get_settings_from_app)):
    """Serve the upload form."""
    return UPLOAD_FORM_TEMPLATE.format(
        title=escape(settings.app_name),
        field_name=escape(settings.upload_field_name, quote=True),
        locator=settings.locator.value,
    )


@router.post(
    "/upload",
    status_code=status.HTTP_201_CREATED,
    response_model=UploadFileResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_409_CONFLICT: {"model": ErrorResponse},
        status.HTTP_413_CONTENT_TOO_LARGE: {"model": ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
)
async def upload_file(
    request: Request,
    settings: Settings = Depends(get_settings_from_app),
    file_store: MongoFileStore = Depends(get_file_store),
) -> UploadFileResponse:
    """
    Store the file sent in the multipart upload field.

    The field name is configurable (`UPLOAD_FIELD_NAME`, default `sampleFile`).
    Returns the ID the file can be retrieved with.
    """
    async with request.form() as form:
        upload = form.get(settings.upload_field_name)
        if not isinstance(upload, StarletteUploadFile):
            raise MissingFile()
        raw_upload = await read_upload(upload)

    # an empty file input is submitted as a part with no filename and no content
    if not raw_upload.name and not raw_upload.data:
        raise MissingFile()

    stored_object = build_stored_object(raw_upload)
    file_id = await run_in_threadpool(file_store.store, stored_object)

    return UploadFileResponse(message=UPLOAD_SUCCESS_MESSAGE, file_id=file_id)


@router.get(
    "/retrieve",
    response_class=Response,
    responses={
        status.HTTP_200_OK: {"content": {"application/octet-stream": {}}, "description": "The file's bytes"},
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
)
async def retrieve_file(
    id: Optional[str] = Query(None, description="ID returned by `POST /upload` (when LOCATOR=id)"),
    legacy_id: Optional[str] = Query(None, alias="_id", include_in_schema=False),
    name: Optional[str] = Query(None, description="Name of the file (when LOCATOR=name)"),
    settings: Settings = Depends(get_settings_from_app),
    file_store: MongoFileStore = Depends(get_file_store),
) -> Response:
    """
    Send a stored file back with its Content-Type, Content-Length and
    Content-Disposition headers.
    """
    by_name = settings.locator == Locator.NAME
    if by_name:
        locator = name
        if not locator:
            raise MissingLocator("Missing file name")
    else:
        locator = id or legacy_id
        if not locator:
            raise MissingLocator("Missing file id")

    stored_object = await run_in_threadpool(file_store.find, locator, by_name)
    if stored_object is None:
        raise NotFound()

    return build_file_response(stored_object, settings.content_disposition)
