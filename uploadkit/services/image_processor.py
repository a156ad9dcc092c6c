import asyncio
import logging
from pathlib import Path
from pathlib import PurePosixPath

from uploadkit.core.config import UploadConfig
from uploadkit.models.upload_models import ImageMetadata
from uploadkit.models.upload_models import ResponsiveImage
from uploadkit.services.image_codec import EncodeOptions
from uploadkit.services.image_codec import ImageCodec
from uploadkit.services.storage.local_storage import ByteSink

logger = logging.getLogger(__name__)

# Longest edge allowed for a transcoded primary image
MAX_PRIMARY_DIMENSION = 2048
THUMBNAIL_QUALITY = 80


def variant_name(filename: str, suffix: str, extension: str) -> str:
    """``photo_1.png`` + ``_400w`` + ``.webp`` -> ``photo_1_400w.webp``."""
    return f"{PurePosixPath(filename).stem}{suffix}{extension}"


class ImageProcessor:
    """Produces the primary output and derived variants of an uploaded image.

    Codec calls are blocking and run in worker threads, so every encode is an
    await point the caller can cancel.
    """

    def __init__(self, config: UploadConfig, codec: ImageCodec, sink: ByteSink) -> None:
        self.config = config
        self.codec = codec
        self.sink = sink

    async def get_image_metadata(self, buffer: bytes) -> ImageMetadata:
        return await asyncio.to_thread(self.codec.decode_metadata, buffer)

    async def save_primary(self, buffer: bytes, output_path: Path, transcode: bool, metadata: ImageMetadata | None = None) -> None:
        """Writes the main output for an upload.

        When ``transcode`` is set the image is re-encoded in the target format at
        the configured quality, and any axis longer than MAX_PRIMARY_DIMENSION is
        scaled down to it. Otherwise the original bytes are written unchanged.
        """
        if not transcode:
            await asyncio.to_thread(self.sink.write, output_path, buffer)
            return

        if metadata is None:
            metadata = await self.get_image_metadata(buffer)

        options = EncodeOptions(
            target_format=self.config.target_format,
            quality=self.config.quality,
            max_width=MAX_PRIMARY_DIMENSION if (metadata.width or 0) > MAX_PRIMARY_DIMENSION else None,
            max_height=MAX_PRIMARY_DIMENSION if (metadata.height or 0) > MAX_PRIMARY_DIMENSION else None,
            fit="inside",
        )
        encoded = await asyncio.to_thread(self.codec.encode, buffer, options)
        await asyncio.to_thread(self.sink.write, output_path, encoded)
        logger.debug("Transcoded %d -> %d bytes into %s", len(buffer), len(encoded), output_path)

    async def create_thumbnail(self, buffer: bytes, output_path: Path, size: int = 200) -> None:
        """Square, centre-cropped thumbnail, always at THUMBNAIL_QUALITY."""
        options = EncodeOptions(
            target_format=self.config.target_format,
            quality=THUMBNAIL_QUALITY,
            max_width=size,
            max_height=size,
            fit="cover",
        )
        encoded = await asyncio.to_thread(self.codec.encode, buffer, options)
        await asyncio.to_thread(self.sink.write, output_path, encoded)

    async def generate_responsive_sizes(
        self,
        buffer: bytes,
        base_path: Path,
        base_url: str,
        sizes: tuple[int, ...] | list[int] = (400, 800, 1200, 1600),
    ) -> list[ResponsiveImage]:
        """Width-constrained variants next to ``base_path``, in the order of ``sizes``.

        Every variant is encoded before any is written, so a failing encode
        leaves no partial set behind.
        """
        extension = self.config.target_extension
        encoded_variants: list[tuple[int, bytes]] = []
        for width in sizes:
            options = EncodeOptions(
                target_format=self.config.target_format,
                quality=self.config.quality,
                max_width=width,
                fit="inside",
            )
            encoded_variants.append((width, await asyncio.to_thread(self.codec.encode, buffer, options)))

        base_url_path = PurePosixPath(base_url)
        results: list[ResponsiveImage] = []
        for width, encoded in encoded_variants:
            name = variant_name(base_path.name, f"_{width}w", extension)
            variant_path = base_path.with_name(name)
            await asyncio.to_thread(self.sink.write, variant_path, encoded)
            results.append(
                ResponsiveImage(
                    width=width,
                    path=str(variant_path),
                    url=str(base_url_path.with_name(name)),
                )
            )

        logger.debug("Generated %d responsive variants for %s", len(results), base_path.name)
        return results
