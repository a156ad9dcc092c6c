import logging
from functools import lru_cache

from fastapi import APIRouter
from fastapi import Depends
from fastapi import File
from fastapi import Form
from fastapi import Query
from fastapi import UploadFile
from fastapi import status
from fastapi.responses import JSONResponse

from uploadkit.models.upload_models import RawUploadedFile
from uploadkit.upload_logic.upload_handler import FileUploadHandler

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@lru_cache
def get_upload_handler() -> FileUploadHandler:
    """Process-wide handler built from the environment settings."""
    return FileUploadHandler()


async def _read_upload(upload: UploadFile) -> RawUploadedFile:
    # Fully buffered, no streaming
    content = await upload.read()
    return RawUploadedFile(
        filename=upload.filename or "unknown_file",
        content_type=upload.content_type or None,
        size=len(content),
        content=content,
    )


@router.post("/upload", summary="Upload one or more files")
async def upload_files(
    files: list[UploadFile] | None = File(default=None),
    route_field: str | None = Form(default=None, alias="route"),
    route_query: str | None = Query(default=None, alias="route"),
    handler: FileUploadHandler = Depends(get_upload_handler),
) -> JSONResponse:
    """
    Stores the submitted `files` and returns `{success, files}` or `{success, error}`.

    `files` is a single object when one file was stored and an array otherwise.
    The optional `route` form field (or query parameter) names the preferred route.
    """
    raw_files = [await _read_upload(upload) for upload in files or []]
    route_hint = route_field or route_query
    logger.info("/api/upload called with %d file(s), route=%s", len(raw_files), route_hint)

    result = await handler.process(raw_files, route_hint)
    status_code = status.HTTP_200_OK if result.success else status.HTTP_400_BAD_REQUEST
    return JSONResponse(result.to_response(), status_code=status_code)


@router.get("/routes", summary="List configured upload routes")
def list_routes(handler: FileUploadHandler = Depends(get_upload_handler)) -> dict[str, list[str]]:
    return {"routes": handler.get_available_routes()}
