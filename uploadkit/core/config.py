"""Library configuration settings.

This module defines the process-wide defaults using Pydantic's BaseSettings,
loaded from environment variables and .env files, and the immutable
per-operation ``UploadConfig`` that is derived from them.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Annotated
from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import PositiveInt
from pydantic import ValidationError
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import NoDecode

from uploadkit.core.exceptions import ConfigurationError
from uploadkit.core.file_types import DOCUMENT_TYPES
from uploadkit.core.file_types import FORMAT_EXTENSIONS
from uploadkit.core.file_types import FORMAT_MIME_TYPES
from uploadkit.core.file_types import IMAGE_TYPES

BYTES_PER_MB = 1024 * 1024

TargetFormat = Literal["webp", "jpeg", "png"]
ValidationFailurePolicy = Literal["skip", "abort"]


def _split_csv(v: Any) -> Any:
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


class Settings(BaseSettings):
    """Manages default upload settings, loading them from environment variables or an .env file.

    Attributes:
        max_file_size_mb: Global per-file size cap in megabytes.
        allowed_image_types: MIME types accepted by the default images route.
        allowed_doc_types: MIME types accepted by the default documents route.
        transcode_images: Re-encode uploaded images to ``target_format``.
        target_format: Compressed format used for transcoding and all variants.
        quality: Encoder quality (1-100) for primary and responsive outputs.
        upload_dir: Directory (under ``public_root``) for images.
        docs_dir: Directory (under ``public_root``) for documents.
        public_root: Filesystem root that is served publicly.
        generate_thumbnails: Produce a square thumbnail per image.
        thumbnail_size: Thumbnail edge length in pixels.
        generate_responsive: Produce width-constrained responsive variants.
        responsive_sizes: Widths of the responsive variants, in output order.
        validation_failure_policy: ``skip`` rejected files or ``abort`` the batch.
    """

    max_file_size_mb: float = Field(default=5.0)
    allowed_image_types: Annotated[list[str], NoDecode] = Field(default_factory=lambda: list(IMAGE_TYPES))
    allowed_doc_types: Annotated[list[str], NoDecode] = Field(default_factory=lambda: list(DOCUMENT_TYPES))
    transcode_images: bool = Field(default=True)
    target_format: TargetFormat = Field(default="webp")
    quality: int = Field(default=80)
    upload_dir: str = Field(default="uploads")
    docs_dir: str = Field(default="docs")
    public_root: Path = Field(default=Path("public"))
    generate_thumbnails: bool = Field(default=False)
    thumbnail_size: int = Field(default=200)
    generate_responsive: bool = Field(default=False)
    responsive_sizes: Annotated[list[int], NoDecode] = Field(default_factory=lambda: [400, 800, 1200])
    validation_failure_policy: ValidationFailurePolicy = Field(default="skip")

    model_config = {
        "env_file": ".env",
        "env_prefix": "",  # No prefix for environment variables
        "extra": "ignore",  # Ignore extra fields
    }

    @field_validator("allowed_image_types", "allowed_doc_types", "responsive_sizes", mode="before")  # type: ignore
    @classmethod
    def split_comma_separated(cls, v: Any) -> Any:
        """Accepts comma-separated strings for list settings coming from the environment."""
        return _split_csv(v)


settings = Settings()


class UploadConfig(BaseModel):
    """Effective, immutable configuration for one upload handler."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_file_size_mb: float = Field(gt=0)
    allowed_image_types: tuple[str, ...]
    allowed_doc_types: tuple[str, ...]
    transcode_images: bool
    target_format: TargetFormat
    quality: int = Field(ge=1, le=100)
    upload_dir: str
    docs_dir: str
    public_root: Path
    generate_thumbnails: bool
    thumbnail_size: PositiveInt
    generate_responsive: bool
    responsive_sizes: tuple[PositiveInt, ...]
    validation_failure_policy: ValidationFailurePolicy

    @field_validator("allowed_image_types", "allowed_doc_types", "responsive_sizes", mode="before")
    @classmethod
    def accept_csv(cls, v: Any) -> Any:
        return _split_csv(v)

    @field_validator("public_root")
    @classmethod
    def absolute_public_root(cls, v: Path) -> Path:
        return v.expanduser().resolve()

    @property
    def max_file_size_bytes(self) -> int:
        return int(self.max_file_size_mb * BYTES_PER_MB)

    @property
    def target_extension(self) -> str:
        return FORMAT_EXTENSIONS[self.target_format]

    @property
    def target_mime_type(self) -> str:
        return FORMAT_MIME_TYPES[self.target_format]


def resolve_upload_config(
    overrides: UploadConfig | Mapping[str, Any] | None = None,
    base: Settings | None = None,
) -> UploadConfig:
    """Merges caller overrides over the settings defaults into one immutable config.

    Args:
        overrides: A ready ``UploadConfig`` (returned as-is) or a mapping of field overrides.
        base: Settings supplying the defaults; the module-level ``settings`` when omitted.

    Returns:
        The effective ``UploadConfig``.

    Raises:
        ConfigurationError: If the merged values are invalid or an unknown key is given.
    """
    if isinstance(overrides, UploadConfig):
        return overrides

    merged: dict[str, Any] = (base or settings).model_dump()
    merged.update(dict(overrides or {}))
    try:
        return UploadConfig(**merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid upload configuration: {e}") from e
