from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import model_validator
from pydantic.alias_generators import to_camel

from uploadkit.core.config import BYTES_PER_MB
from uploadkit.core.config import UploadConfig
from uploadkit.core.exceptions import NO_FILES_PROVIDED
from uploadkit.core.exceptions import NO_VALID_FILES


class _WireModel(BaseModel):
    """Frozen model serialised with the camelCase keys of the upload JSON contract."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Route(BaseModel):
    """Named destination policy: where a file goes and what it may be."""

    model_config = ConfigDict(frozen=True)

    directory: str
    subdirectory: str | None = None
    allowed_types: tuple[str, ...] = Field(min_length=1)
    max_size_mb: float | None = Field(default=None, gt=0)

    def max_size_bytes(self, config: UploadConfig) -> int:
        if self.max_size_mb is None:
            return config.max_file_size_bytes
        return int(self.max_size_mb * BYTES_PER_MB)

    def max_size_label(self, config: UploadConfig) -> float:
        """The cap in MB, as shown in rejection messages."""
        return self.max_size_mb if self.max_size_mb is not None else config.max_file_size_mb


class RouteTable(BaseModel):
    """Immutable mapping of route name to Route.

    Updated copy-on-write through ``with_route``/``without_route`` so a handler
    shared across requests never exposes a half-modified table.
    """

    model_config = ConfigDict(frozen=True)

    routes: dict[str, Route]
    default_route: str | None = None
    create_subdirectories: bool = True

    @model_validator(mode="after")
    def check_fallback_routes(self) -> "RouteTable":
        if self.default_route is not None:
            if self.default_route not in self.routes:
                raise ValueError(f"Default route '{self.default_route}' is not defined")
        elif "images" not in self.routes or "documents" not in self.routes:
            raise ValueError("Route table needs a default route or both 'images' and 'documents' routes")
        return self

    def get(self, name: str | None) -> Route | None:
        if name is None:
            return None
        return self.routes.get(name)

    def with_route(self, name: str, route: Route) -> "RouteTable":
        return RouteTable(
            routes={**self.routes, name: route},
            default_route=self.default_route,
            create_subdirectories=self.create_subdirectories,
        )

    def without_route(self, name: str) -> "RouteTable":
        return RouteTable(
            routes={key: value for key, value in self.routes.items() if key != name},
            default_route=self.default_route,
            create_subdirectories=self.create_subdirectories,
        )


class ValidationOutcome(BaseModel):
    """Result of checking a file against a route."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    error: str | None = None


class RawUploadedFile(BaseModel):
    """One file as extracted from the multipart body by the HTTP layer."""

    model_config = ConfigDict(frozen=True)

    filename: str
    content_type: str | None = None
    size: int = Field(ge=0)
    content: bytes

    @classmethod
    def from_bytes(cls, filename: str, content: bytes, content_type: str | None = None) -> "RawUploadedFile":
        return cls(filename=filename, content_type=content_type, size=len(content), content=content)


class ImageMetadata(_WireModel):
    width: int | None = None
    height: int | None = None
    format: str | None = None
    has_alpha: bool | None = None


class ThumbnailInfo(_WireModel):
    path: str
    url: str


class ResponsiveImage(_WireModel):
    width: int = Field(alias="size")
    path: str
    url: str


class UploadedFileRecord(_WireModel):
    """Everything the caller needs to know about one stored file."""

    filename: str
    original_name: str
    size: int
    mime_type: str = Field(alias="type")
    path: str
    url: str
    is_image: bool
    metadata: ImageMetadata | None = None
    thumbnail: ThumbnailInfo | None = None
    responsive: list[ResponsiveImage] | None = None


class UploadResult(BaseModel):
    """Outcome of one upload operation.

    ``files`` is a single record when exactly one file was stored and a list
    (in input order) when several were; ``error`` is set only on failure.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    files: UploadedFileRecord | list[UploadedFileRecord] | None = None
    error: str | None = None

    @model_validator(mode="after")
    def check_shape(self) -> "UploadResult":
        if self.success and (self.files is None or self.error is not None):
            raise ValueError("A successful result carries files and no error")
        if not self.success and (self.error is None or self.files is not None):
            raise ValueError("A failed result carries an error and no files")
        return self

    @classmethod
    def ok(cls, records: list[UploadedFileRecord]) -> "UploadResult":
        return cls(success=True, files=records[0] if len(records) == 1 else list(records))

    @classmethod
    def fail(cls, error: str) -> "UploadResult":
        return cls(success=False, error=error)

    @property
    def records(self) -> list[UploadedFileRecord]:
        if self.files is None:
            return []
        if isinstance(self.files, list):
            return list(self.files)
        return [self.files]

    def to_response(self) -> dict[str, Any]:
        """The ``{success, files}`` / ``{success, error}`` JSON body."""
        if not self.success:
            return {"success": False, "error": self.error}
        if isinstance(self.files, UploadedFileRecord):
            return {"success": True, "files": self.files.to_dict()}
        return {"success": True, "files": [record.to_dict() for record in self.files or []]}


class FileOutcome(BaseModel):
    """Per-file outcome of a detailed upload run."""

    model_config = ConfigDict(frozen=True)

    original_name: str
    status: Literal["success", "rejected", "error"]
    record: UploadedFileRecord | None = None
    reason: str | None = None


class UploadReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcomes: list[FileOutcome]

    @property
    def succeeded(self) -> list[UploadedFileRecord]:
        return [o.record for o in self.outcomes if o.status == "success" and o.record is not None]

    @property
    def rejected(self) -> list[FileOutcome]:
        return [o for o in self.outcomes if o.status == "rejected"]

    @property
    def errors(self) -> list[FileOutcome]:
        return [o for o in self.outcomes if o.status == "error"]

    def to_result(self) -> UploadResult:
        """Reduces the outcome list to the collapsed ``UploadResult`` shape.

        The first per-file error wins, as it would have ended a plain ``process`` run.
        """
        if not self.outcomes:
            return UploadResult.fail(NO_FILES_PROVIDED)
        if self.errors:
            return UploadResult.fail(self.errors[0].reason or "Upload failed")
        if not self.succeeded:
            return UploadResult.fail(NO_VALID_FILES)
        return UploadResult.ok(self.succeeded)
