"""Static MIME type tables used to categorise uploads."""

import logging
import mimetypes

logger = logging.getLogger(__name__)

IMAGE_TYPES: tuple[str, ...] = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
    "image/tiff",
)

DOCUMENT_TYPES: tuple[str, ...] = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
    "text/csv",
)

DEFAULT_MIME_TYPE = "application/octet-stream"

# Encoder output formats: file extension and MIME type of each
FORMAT_EXTENSIONS: dict[str, str] = {
    "webp": ".webp",
    "jpeg": ".jpg",
    "png": ".png",
}

FORMAT_MIME_TYPES: dict[str, str] = {
    "webp": "image/webp",
    "jpeg": "image/jpeg",
    "png": "image/png",
}

# Types accepted by the built-in avatar/thumbnail routes
WEB_IMAGE_TYPES: tuple[str, ...] = ("image/jpeg", "image/png", "image/webp")


def is_image_file(mime_type: str) -> bool:
    return mime_type in IMAGE_TYPES


def is_document_file(mime_type: str) -> bool:
    return mime_type in DOCUMENT_TYPES


def lookup_mime_type(filename: str) -> str:
    """Guesses a MIME type from the filename extension.

    Only used when the client did not declare a content type.
    """
    guessed, _ = mimetypes.guess_type(filename)
    if guessed is None:
        logger.debug("No MIME type known for %s, using %s", filename, DEFAULT_MIME_TYPE)
        return DEFAULT_MIME_TYPE
    return guessed
