# uploadkit/services/storage/local_storage.py
import logging
from pathlib import Path
from typing import Protocol

from uploadkit.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class DirectoryService(Protocol):
    def ensure_exists(self, path: Path) -> None: ...


class ByteSink(Protocol):
    def write(self, path: Path, data: bytes) -> None: ...


class FileStorage(DirectoryService, ByteSink, Protocol):
    """Both capabilities the upload handler needs from a storage backend."""


class LocalFileStorage:
    """Directory service and byte sink on the local filesystem."""

    def ensure_exists(self, path: Path) -> None:
        """Creates ``path`` and any missing parents; an existing directory is fine."""
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create directory {path}: {e}", exc_info=True)
            raise StorageError(f"Could not create directory {path}: {e.strerror or e}") from e

    def write(self, path: Path, data: bytes) -> None:
        try:
            path.write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}", exc_info=True)
            raise StorageError(f"Could not write file {path}: {e.strerror or e}") from e
        logger.debug(f"Wrote {len(data)} bytes to {path}")
