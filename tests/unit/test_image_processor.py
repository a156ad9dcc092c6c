import io
from pathlib import Path

import pytest
from PIL import Image

from uploadkit.core.exceptions import ImageDecodeError
from uploadkit.services.image_codec import PillowImageCodec
from uploadkit.services.image_processor import ImageProcessor
from uploadkit.services.image_processor import variant_name
from uploadkit.services.storage.local_storage import LocalFileStorage


@pytest.fixture
def processor(upload_config, fake_codec, fake_storage):
    return ImageProcessor(upload_config(quality=65), fake_codec, fake_storage)


def test_variant_name():
    assert variant_name("photo_1_abc.png", "_400w", ".webp") == "photo_1_abc_400w.webp"
    assert variant_name("photo_1_abc.webp", "_thumb", ".webp") == "photo_1_abc_thumb.webp"


@pytest.mark.asyncio
async def test_verbatim_write_keeps_bytes(processor, fake_codec, fake_storage):
    await processor.save_primary(b"original-bytes", Path("/out/a.png"), transcode=False)

    assert fake_storage.files[Path("/out/a.png")] == b"original-bytes"
    assert fake_codec.encode_calls == []


@pytest.mark.asyncio
async def test_transcode_uses_configured_quality_without_cap(processor, fake_codec, fake_storage):
    await processor.save_primary(b"img", Path("/out/a.webp"), transcode=True)

    (options,) = fake_codec.encode_calls
    assert options.target_format == "webp"
    assert options.quality == 65
    assert options.max_width is None and options.max_height is None
    assert fake_storage.files[Path("/out/a.webp")] == b"webp:65:NonexNone:inside"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "width,height,expected",
    [(4000, 1000, (2048, None)), (1000, 4000, (None, 2048)), (5000, 3000, (2048, 2048)), (2048, 2048, (None, None))],
)
async def test_transcode_caps_oversized_axes(upload_config, codec_factory, fake_storage, width, height, expected):
    codec = codec_factory(width=width, height=height)
    processor = ImageProcessor(upload_config(), codec, fake_storage)

    await processor.save_primary(b"img", Path("/out/big.webp"), transcode=True)

    (options,) = codec.encode_calls
    assert (options.max_width, options.max_height) == expected
    assert options.fit == "inside"


@pytest.mark.asyncio
async def test_thumbnail_is_cover_crop_at_fixed_quality(processor, fake_codec, fake_storage):
    await processor.create_thumbnail(b"img", Path("/out/t.webp"), 150)

    (options,) = fake_codec.encode_calls
    assert (options.max_width, options.max_height) == (150, 150)
    assert options.fit == "cover"
    assert options.quality == 80


@pytest.mark.asyncio
async def test_responsive_set_keeps_input_order(processor, fake_storage):
    results = await processor.generate_responsive_sizes(
        b"img",
        Path("/pub/uploads/p_1_x.png"),
        "/uploads/p_1_x.png",
        [800, 200, 1200],
    )

    assert [r.width for r in results] == [800, 200, 1200]
    assert results[0].path == str(Path("/pub/uploads/p_1_x_800w.webp"))
    assert results[0].url == "/uploads/p_1_x_800w.webp"
    assert results[2].url == "/uploads/p_1_x_1200w.webp"
    assert fake_storage.files[Path("/pub/uploads/p_1_x_200w.webp")] == b"webp:65:200xNone:inside"


@pytest.mark.asyncio
async def test_responsive_set_is_all_or_nothing(upload_config, codec_factory, fake_storage):
    codec = codec_factory(fail_on_width=800)
    processor = ImageProcessor(upload_config(), codec, fake_storage)

    with pytest.raises(ImageDecodeError):
        await processor.generate_responsive_sizes(b"img", Path("/pub/a.png"), "/a.png", [400, 800, 1200])

    assert fake_storage.files == {}


@pytest.mark.asyncio
async def test_metadata_errors_propagate(processor):
    with pytest.raises(ImageDecodeError):
        await processor.get_image_metadata(b"BROKEN")


# ---------------------------------------------------------------------------
# Real codec and disk
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_real_variants_respect_requested_dimensions(upload_config, make_image, tmp_path):
    processor = ImageProcessor(upload_config(), PillowImageCodec(), LocalFileStorage())
    source = make_image(900, 600)
    base_path = tmp_path / "photo.png"

    await processor.create_thumbnail(source, tmp_path / "photo_thumb.webp", 120)
    responsive = await processor.generate_responsive_sizes(source, base_path, "/uploads/photo.png", [300, 600, 1800])

    thumbnail = Image.open(tmp_path / "photo_thumb.webp")
    assert thumbnail.size == (120, 120)
    assert thumbnail.format == "WEBP"

    assert len(responsive) == 3
    for requested, variant in zip([300, 600, 1800], responsive):
        decoded = Image.open(io.BytesIO(Path(variant.path).read_bytes()))
        assert decoded.width <= requested
    # No upscaling past the 900px source
    assert Image.open(responsive[2].path).width == 900
