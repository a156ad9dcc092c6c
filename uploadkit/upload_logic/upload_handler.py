"""Orchestrates one upload operation over a batch of files.

For each file the handler resolves a route, validates the file against it and,
when accepted, stores it (transcoding images and generating variants as
configured). Expected rejections (no route, wrong type, too large) only drop
the offending file; unexpected failures (codec, I/O) end the whole batch.
"""

import asyncio
import logging
from collections.abc import Callable
from collections.abc import Mapping
from collections.abc import Sequence
from typing import Any
from uuid import uuid4

from uploadkit.core.config import UploadConfig
from uploadkit.core.config import resolve_upload_config
from uploadkit.core.exceptions import NO_FILES_PROVIDED
from uploadkit.core.exceptions import NO_VALID_FILES
from uploadkit.core.exceptions import FileValidationError
from uploadkit.core.exceptions import RouteNotFoundError
from uploadkit.core.exceptions import UploadError
from uploadkit.core.file_types import is_image_file
from uploadkit.core.file_types import lookup_mime_type
from uploadkit.models.upload_models import FileOutcome
from uploadkit.models.upload_models import RawUploadedFile
from uploadkit.models.upload_models import Route
from uploadkit.models.upload_models import RouteTable
from uploadkit.models.upload_models import ThumbnailInfo
from uploadkit.models.upload_models import UploadedFileRecord
from uploadkit.models.upload_models import UploadReport
from uploadkit.models.upload_models import UploadResult
from uploadkit.services.file_router import FileRouter
from uploadkit.services.image_codec import ImageCodec
from uploadkit.services.image_codec import PillowImageCodec
from uploadkit.services.image_processor import ImageProcessor
from uploadkit.services.image_processor import variant_name
from uploadkit.services.storage.local_storage import FileStorage
from uploadkit.services.storage.local_storage import LocalFileStorage
from uploadkit.upload_logic.filenames import generate_unique_filename

logger = logging.getLogger(__name__)

_REJECTIONS = (RouteNotFoundError, FileValidationError)


class FileUploadHandler:
    """Routes, validates and stores uploaded files.

    One instance may serve many requests: its configuration is immutable and
    each operation works on a snapshot of the route table.

    Args:
        config: Field overrides or a ready ``UploadConfig``; merged over the
            settings defaults once, at construction.
        routing_config: Route table; the built-in images/documents/avatars/thumbnails
            table when omitted.
        codec: Image codec capability (Pillow by default).
        storage: Directory service and byte sink (local disk by default).
        mime_lookup: Filename to MIME type, used when no content type was declared.
    """

    def __init__(
        self,
        config: UploadConfig | Mapping[str, Any] | None = None,
        routing_config: RouteTable | None = None,
        *,
        codec: ImageCodec | None = None,
        storage: FileStorage | None = None,
        mime_lookup: Callable[[str], str] | None = None,
    ) -> None:
        self.config = resolve_upload_config(config)
        self.storage: FileStorage = storage if storage is not None else LocalFileStorage()
        self.image_processor = ImageProcessor(self.config, codec if codec is not None else PillowImageCodec(), self.storage)
        self.file_router = FileRouter(self.config, routing_config)
        self.mime_lookup = mime_lookup or lookup_mime_type

    @classmethod
    async def upload(
        cls,
        files: Sequence[RawUploadedFile],
        config: UploadConfig | Mapping[str, Any] | None = None,
        route_hint: str | None = None,
    ) -> UploadResult:
        """One-shot helper: builds a handler and processes ``files``."""
        return await cls(config).process(files, route_hint)

    async def handle_upload(self, files: Sequence[RawUploadedFile], route_hint: str | None = None) -> UploadResult:
        return await self.process(files, route_hint)

    async def process(self, files: Sequence[RawUploadedFile], route_hint: str | None = None) -> UploadResult:
        """Processes the batch and collapses the outcome into an ``UploadResult``.

        Returns a failure with a fixed message when the batch is empty or no
        file was accepted, or with the error's message when any file failed
        unexpectedly; records stored before that failure are not returned.
        """
        request_id = str(uuid4())
        if not files:
            logger.info("[%s] Upload called without files", request_id)
            return UploadResult.fail(NO_FILES_PROVIDED)

        table = self.file_router.snapshot()
        logger.info("[%s] Processing %d file(s), route hint=%s", request_id, len(files), route_hint)

        records: list[UploadedFileRecord] = []
        try:
            for file in files:
                try:
                    records.append(await self._process_file(file, route_hint, table, request_id))
                except _REJECTIONS as e:
                    if self.config.validation_failure_policy == "abort":
                        raise
                    logger.warning("[%s] Skipping %s: %s", request_id, file.filename, str(e))
        except UploadError as e:
            logger.error("[%s] Upload failed: %s", request_id, str(e))
            return UploadResult.fail(str(e))
        except Exception as e:
            logger.error("[%s] Unexpected error during upload: %s", request_id, str(e), exc_info=True)
            return UploadResult.fail(str(e) or "Upload failed")

        if not records:
            logger.info("[%s] No file of %d passed routing and validation", request_id, len(files))
            return UploadResult.fail(NO_VALID_FILES)

        logger.info("[%s] Stored %d of %d file(s)", request_id, len(records), len(files))
        return UploadResult.ok(records)

    async def process_detailed(self, files: Sequence[RawUploadedFile], route_hint: str | None = None) -> UploadReport:
        """Like ``process`` but reports every file's outcome separately.

        Unexpected errors are confined to the file that raised them, so the
        remaining files are still processed.
        """
        request_id = str(uuid4())
        table = self.file_router.snapshot()
        outcomes: list[FileOutcome] = []

        for file in files:
            try:
                record = await self._process_file(file, route_hint, table, request_id)
            except _REJECTIONS as e:
                logger.warning("[%s] Rejected %s: %s", request_id, file.filename, str(e))
                outcomes.append(FileOutcome(original_name=file.filename, status="rejected", reason=str(e)))
            except UploadError as e:
                logger.error("[%s] Failed to process %s: %s", request_id, file.filename, str(e))
                outcomes.append(FileOutcome(original_name=file.filename, status="error", reason=str(e)))
            except Exception as e:
                logger.error("[%s] Unexpected error processing %s: %s", request_id, file.filename, str(e), exc_info=True)
                outcomes.append(FileOutcome(original_name=file.filename, status="error", reason=str(e) or "Upload failed"))
            else:
                outcomes.append(FileOutcome(original_name=file.filename, status="success", record=record))

        return UploadReport(outcomes=outcomes)

    async def _process_file(
        self,
        file: RawUploadedFile,
        route_hint: str | None,
        table: RouteTable,
        request_id: str,
    ) -> UploadedFileRecord:
        mime_type = file.content_type or self.mime_lookup(file.filename)

        route = self.file_router.determine_route(mime_type, route_hint, table)
        if route is None:
            raise RouteNotFoundError(f"No suitable route found for file {file.filename}")

        validation = self.file_router.validate_file_for_route(file, route, mime_type)
        if not validation.valid:
            raise FileValidationError(validation.error)

        is_image = is_image_file(mime_type)
        transcode = is_image and self.config.transcode_images and mime_type != self.config.target_mime_type

        filename = generate_unique_filename(file.filename, self.config.target_extension if transcode else None)
        file_path = self.file_router.get_upload_path(route, filename)
        public_url = self.file_router.get_public_url(route, filename)

        if table.create_subdirectories:
            await asyncio.to_thread(self.storage.ensure_exists, file_path.parent)

        metadata = await self.image_processor.get_image_metadata(file.content) if is_image else None
        await self.image_processor.save_primary(file.content, file_path, transcode, metadata)
        logger.debug("[%s] Stored %s as %s (transcoded=%s)", request_id, file.filename, file_path, transcode)

        thumbnail = None
        if self.config.generate_thumbnails and is_image:
            thumbnail = await self._create_thumbnail(file.content, filename, route, table)

        responsive = None
        if self.config.generate_responsive and is_image:
            responsive = await self.image_processor.generate_responsive_sizes(
                file.content,
                file_path,
                public_url,
                self.config.responsive_sizes,
            )

        return UploadedFileRecord(
            filename=filename,
            original_name=file.filename,
            size=file.size,
            mime_type=self.config.target_mime_type if transcode else mime_type,
            path=str(file_path),
            url=public_url,
            is_image=is_image,
            metadata=metadata,
            thumbnail=thumbnail,
            responsive=responsive,
        )

    async def _create_thumbnail(self, buffer: bytes, filename: str, route: Route, table: RouteTable) -> ThumbnailInfo:
        thumbnail_route = table.get("thumbnails") or route
        thumbnail_name = variant_name(filename, "_thumb", self.config.target_extension)
        thumbnail_path = self.file_router.get_upload_path(thumbnail_route, thumbnail_name)

        if table.create_subdirectories:
            await asyncio.to_thread(self.storage.ensure_exists, thumbnail_path.parent)
        await self.image_processor.create_thumbnail(buffer, thumbnail_path, self.config.thumbnail_size)

        return ThumbnailInfo(
            path=str(thumbnail_path),
            url=self.file_router.get_public_url(thumbnail_route, thumbnail_name),
        )

    def get_available_routes(self) -> list[str]:
        return self.file_router.get_available_routes()

    def add_route(self, name: str, route: Route) -> None:
        self.file_router.add_route(name, route)

    def remove_route(self, name: str) -> None:
        self.file_router.remove_route(name)
