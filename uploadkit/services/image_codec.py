"""Image codec capability and its Pillow implementation.

The upload core only talks to the ``ImageCodec`` protocol: decode bytes to
metadata, encode bytes with options. ``PillowImageCodec`` is the default
implementation; tests substitute in-memory fakes.
"""

import io
import logging
from typing import Literal
from typing import Protocol

from PIL import Image
from PIL import ImageOps
from PIL import UnidentifiedImageError
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from uploadkit.core.config import TargetFormat
from uploadkit.core.exceptions import ImageDecodeError
from uploadkit.models.upload_models import ImageMetadata

logger = logging.getLogger(__name__)

FitMode = Literal["inside", "cover"]

# Pillow save() format names
_PIL_FORMATS: dict[str, str] = {"webp": "WEBP", "jpeg": "JPEG", "png": "PNG"}

_ALPHA_MODES = {"RGBA", "LA", "PA", "RGBa", "La"}


class EncodeOptions(BaseModel):
    """How a single encode call should resize and compress.

    ``inside`` keeps the aspect ratio within ``max_width``/``max_height`` and
    never enlarges; ``cover`` fills exactly ``max_width`` x ``max_height``,
    cropping the overflow around the centre.
    """

    model_config = ConfigDict(frozen=True)

    target_format: TargetFormat
    quality: int = Field(ge=1, le=100)
    max_width: int | None = Field(default=None, gt=0)
    max_height: int | None = Field(default=None, gt=0)
    fit: FitMode = "inside"


class ImageCodec(Protocol):
    def decode_metadata(self, data: bytes) -> ImageMetadata: ...

    def encode(self, data: bytes, options: EncodeOptions) -> bytes: ...


def _open(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
        raise ImageDecodeError(f"Unsupported or corrupted image data: {e}") from e
    return image


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in _ALPHA_MODES or "transparency" in image.info


def _prepare_mode(image: Image.Image, target_format: str) -> Image.Image:
    """Converts to a pixel mode the target encoder accepts."""
    if target_format == "jpeg":
        return image if image.mode in ("RGB", "L") else image.convert("RGB")
    if image.mode in ("RGB", "RGBA") and "transparency" not in image.info:
        return image
    return image.convert("RGBA" if _has_alpha(image) else "RGB")


def _resize(image: Image.Image, options: EncodeOptions) -> Image.Image:
    if options.max_width is None and options.max_height is None:
        return image

    if options.fit == "cover":
        if options.max_width is None:
            box = (options.max_height, options.max_height)
        elif options.max_height is None:
            box = (options.max_width, options.max_width)
        else:
            box = (options.max_width, options.max_height)
        return ImageOps.fit(image, box, method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))

    bound_width = options.max_width or image.width
    bound_height = options.max_height or image.height
    resized = image.copy()
    # thumbnail() keeps the aspect ratio and never enlarges
    resized.thumbnail((bound_width, bound_height), Image.Resampling.LANCZOS)
    return resized


class PillowImageCodec:
    """``ImageCodec`` backed by Pillow."""

    def decode_metadata(self, data: bytes) -> ImageMetadata:
        image = _open(data)
        return ImageMetadata(
            width=image.width,
            height=image.height,
            format=image.format.lower() if image.format else None,
            has_alpha=_has_alpha(image),
        )

    def encode(self, data: bytes, options: EncodeOptions) -> bytes:
        image = _open(data)
        logger.debug(
            "Encoding %s %dx%d to %s (quality=%d, max=%sx%s, fit=%s)",
            image.format,
            image.width,
            image.height,
            options.target_format,
            options.quality,
            options.max_width,
            options.max_height,
            options.fit,
        )
        image = _resize(_prepare_mode(image, options.target_format), options)

        save_kwargs: dict[str, object] = {}
        if options.target_format == "webp":
            save_kwargs = {"quality": options.quality, "method": 6}
        elif options.target_format == "jpeg":
            save_kwargs = {"quality": options.quality, "progressive": True, "optimize": True}
        elif options.target_format == "png":
            save_kwargs = {"optimize": True, "compress_level": 9}

        out = io.BytesIO()
        try:
            image.save(out, format=_PIL_FORMATS[options.target_format], **save_kwargs)
        except (OSError, ValueError) as e:
            raise ImageDecodeError(f"Failed to encode image as {options.target_format}: {e}") from e
        return out.getvalue()
