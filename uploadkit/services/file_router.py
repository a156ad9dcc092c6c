"""Route resolution and per-route validation for uploaded files.

A ``FileRouter`` owns a ``RouteTable`` and answers two questions for each
incoming file: which route should receive it (``determine_route``) and whether
the route accepts it (``validate_file_for_route``). It also derives the on-disk
path and public URL of a stored file.

The table is replaced, never edited in place: ``add_route``/``remove_route``
swap in a new immutable table, and ``snapshot`` hands one operation a stable
view of it.
"""

import logging
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from uploadkit.core.config import UploadConfig
from uploadkit.core.exceptions import ConfigurationError
from uploadkit.core.file_types import WEB_IMAGE_TYPES
from uploadkit.core.file_types import is_document_file
from uploadkit.core.file_types import is_image_file
from uploadkit.models.upload_models import RawUploadedFile
from uploadkit.models.upload_models import Route
from uploadkit.models.upload_models import RouteTable
from uploadkit.models.upload_models import ValidationOutcome

logger = logging.getLogger(__name__)

AVATAR_MAX_SIZE_MB = 2.0
THUMBNAIL_MAX_SIZE_MB = 1.0


def _format_mb(value: float) -> str:
    """Plain decimal rendering of a size cap: 5 -> "5", 1.5 -> "1.5"."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def default_route_table(config: UploadConfig) -> RouteTable:
    """Route table used when the caller does not provide one."""
    return RouteTable(
        routes={
            "images": Route(
                directory=config.upload_dir,
                allowed_types=config.allowed_image_types,
                max_size_mb=config.max_file_size_mb,
            ),
            "documents": Route(
                directory=config.docs_dir,
                allowed_types=config.allowed_doc_types,
                max_size_mb=config.max_file_size_mb,
            ),
            "avatars": Route(
                directory=config.upload_dir,
                subdirectory="avatars",
                allowed_types=WEB_IMAGE_TYPES,
                max_size_mb=AVATAR_MAX_SIZE_MB,
            ),
            "thumbnails": Route(
                directory=config.upload_dir,
                subdirectory="thumbnails",
                allowed_types=WEB_IMAGE_TYPES,
                max_size_mb=THUMBNAIL_MAX_SIZE_MB,
            ),
        },
        default_route="images",
        create_subdirectories=True,
    )


class FileRouter:
    def __init__(self, upload_config: UploadConfig, routing_config: RouteTable | None = None) -> None:
        self._upload_config = upload_config
        self._table = routing_config if routing_config is not None else default_route_table(upload_config)

    def snapshot(self) -> RouteTable:
        return self._table

    def determine_route(self, mime_type: str, route_hint: str | None = None, table: RouteTable | None = None) -> Route | None:
        """Picks the route for a file of ``mime_type``.

        Resolution order, first match wins:

        1. the hinted route, if it exists and allows ``mime_type``;
        2. for image types, the ``images`` route, else the default route;
        3. for document types, the ``documents`` route, else the default route;
        4. the default route, if one is designated;
        5. ``None``.

        Args:
            mime_type: The file's effective MIME type.
            route_hint: Optional caller-preferred route name.
            table: Route table to resolve against; the current one when omitted.

        Returns:
            The selected ``Route`` or ``None`` when nothing matches.
        """
        if table is None:
            table = self._table

        if route_hint:
            hinted = table.get(route_hint)
            if hinted is not None and mime_type in hinted.allowed_types:
                return hinted
            logger.debug("Route hint '%s' not usable for %s, inferring route", route_hint, mime_type)

        if is_image_file(mime_type):
            return table.get("images") or table.get(table.default_route or "images")

        if is_document_file(mime_type):
            return table.get("documents") or table.get(table.default_route or "documents")

        if table.default_route:
            return table.get(table.default_route)

        return None

    def validate_file_for_route(self, file: RawUploadedFile, route: Route, mime_type: str | None = None) -> ValidationOutcome:
        """Checks the file's type and size against the route's constraints.

        ``mime_type`` overrides the declared content type, for files whose type
        was looked up from the filename.
        """
        file_type = mime_type if mime_type is not None else (file.content_type or "")

        if file_type not in route.allowed_types:
            return ValidationOutcome(valid=False, error=f"File type {file_type} is not allowed for this route")

        if file.size > route.max_size_bytes(self._upload_config):
            size_mb = file.size / (1024 * 1024)
            max_mb = route.max_size_label(self._upload_config)
            return ValidationOutcome(
                valid=False,
                error=f"File size {size_mb:.2f}MB exceeds maximum of {_format_mb(max_mb)}MB for this route",
            )

        return ValidationOutcome(valid=True)

    def get_upload_path(self, route: Route, filename: str) -> Path:
        base_path = self._upload_config.public_root / route.directory
        if route.subdirectory:
            return base_path / route.subdirectory / filename
        return base_path / filename

    def get_public_url(self, route: Route, filename: str) -> str:
        url = f"/{route.directory}"
        if route.subdirectory:
            url += f"/{route.subdirectory}"
        return f"{url}/{filename}"

    def get_available_routes(self) -> list[str]:
        return list(self._table.routes)

    def get_route_config(self, route_name: str) -> Route | None:
        return self._table.get(route_name)

    def add_route(self, name: str, route: Route) -> None:
        """Adds or replaces a route. Concurrent writers must serialise externally."""
        self._table = self._rebuild(lambda table: table.with_route(name, route))
        logger.info("Route '%s' registered (%s/%s)", name, route.directory, route.subdirectory or "")

    def remove_route(self, name: str) -> None:
        self._table = self._rebuild(lambda table: table.without_route(name))
        logger.info("Route '%s' removed", name)

    def _rebuild(self, change: Callable[[RouteTable], RouteTable]) -> RouteTable:
        try:
            return change(self._table)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid route table: {e}") from e
