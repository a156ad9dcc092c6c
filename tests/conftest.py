import io
from pathlib import Path

import pytest
from PIL import Image

from uploadkit.core.config import resolve_upload_config
from uploadkit.core.exceptions import ImageDecodeError
from uploadkit.core.exceptions import StorageError
from uploadkit.models.upload_models import ImageMetadata
from uploadkit.models.upload_models import RawUploadedFile


def image_bytes(width: int, height: int, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    """Encodes a small gradient image in ``fmt``."""
    color = (200, 30, 60, 128) if mode == "RGBA" else (200, 30, 60)
    image = Image.new(mode, (width, height), color)
    for x in range(0, width, max(1, width // 16)):
        image.putpixel((x, x * height // width), (x % 256, 90, 20, 255) if mode == "RGBA" else (x % 256, 90, 20))
    out = io.BytesIO()
    image.save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def make_image():
    return image_bytes


# Fixture factory to create raw uploads with filename, content and declared type
@pytest.fixture
def make_raw_file():
    def _make_raw_file(filename: str, content: bytes, content_type: str | None = None, size: int | None = None) -> RawUploadedFile:
        return RawUploadedFile(
            filename=filename,
            content_type=content_type,
            size=len(content) if size is None else size,
            content=content,
        )

    return _make_raw_file


class FakeCodec:
    """Deterministic codec: reports fixed metadata, encodes to a tagged payload."""

    def __init__(self, width: int = 640, height: int = 480, fmt: str = "png", fail_on_width: int | None = None):
        self.metadata = ImageMetadata(width=width, height=height, format=fmt, has_alpha=False)
        self.fail_on_width = fail_on_width
        self.encode_calls = []
        self.decode_calls = 0

    def decode_metadata(self, data: bytes) -> ImageMetadata:
        self.decode_calls += 1
        if data.startswith(b"BROKEN"):
            raise ImageDecodeError("Unsupported or corrupted image data")
        return self.metadata

    def encode(self, data: bytes, options) -> bytes:
        self.encode_calls.append(options)
        if data.startswith(b"BROKEN"):
            raise ImageDecodeError("Unsupported or corrupted image data")
        if self.fail_on_width is not None and options.max_width == self.fail_on_width:
            raise ImageDecodeError(f"encode failed at width {options.max_width}")
        return f"{options.target_format}:{options.quality}:{options.max_width}x{options.max_height}:{options.fit}".encode()


class FakeStorage:
    """In-memory directory service and byte sink."""

    def __init__(self, fail_writes: bool = False):
        self.directories: set[Path] = set()
        self.files: dict[Path, bytes] = {}
        self.fail_writes = fail_writes

    def ensure_exists(self, path: Path) -> None:
        self.directories.add(path)

    def write(self, path: Path, data: bytes) -> None:
        if self.fail_writes:
            raise StorageError(f"Could not write file {path}: disk full")
        self.files[path] = data


@pytest.fixture
def fake_codec():
    return FakeCodec()


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def upload_config(tmp_path):
    def _upload_config(**overrides):
        return resolve_upload_config({"public_root": tmp_path / "public", **overrides})

    return _upload_config


@pytest.fixture
def codec_factory():
    return FakeCodec


@pytest.fixture
def storage_factory():
    return FakeStorage
