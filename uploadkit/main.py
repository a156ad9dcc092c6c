import logging

from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from uploadkit.api.routes import router
from uploadkit.core.config import settings
from uploadkit.core.exceptions import UploadError
from uploadkit.core.logging import setup_logging

setup_logging()

app = FastAPI(title="uploadkit")

logger = logging.getLogger(__name__)


@app.exception_handler(UploadError)
async def upload_exception_handler(_request: Request, exc: UploadError) -> JSONResponse:
    logger.error(f"Upload error: {str(exc)}")
    return JSONResponse({"success": False, "error": str(exc)}, status_code=500)


@app.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check() -> dict[str, str]:
    logger.info("Health check endpoint called")
    return {"status": "ok"}


app.include_router(router)

# Stored files are served from their public URLs
settings.public_root.mkdir(parents=True, exist_ok=True)
app.mount("/", StaticFiles(directory=settings.public_root), name="public")
