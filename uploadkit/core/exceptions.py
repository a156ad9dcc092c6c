"""Core custom exceptions for the upload library."""

# Fixed batch-level messages surfaced in ``UploadResult.error``.
NO_FILES_PROVIDED = "No files provided"
NO_VALID_FILES = "No valid files were uploaded"


class UploadError(Exception):
    """Base exception for upload-related errors."""


class ConfigurationError(UploadError):
    """Exception for configuration-related errors (e.g., invalid quality, broken route table)."""


class RouteNotFoundError(UploadError):
    """No route in the table accepts the file."""


class FileValidationError(UploadError):
    """The file's type or size is rejected by its resolved route."""


class ImageDecodeError(UploadError):
    """Image bytes could not be decoded or encoded by the codec."""


class StorageError(UploadError):
    """Directory creation or file write failed."""
