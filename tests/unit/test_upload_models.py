import pytest

from uploadkit.models.upload_models import ImageMetadata
from uploadkit.models.upload_models import RawUploadedFile
from uploadkit.models.upload_models import ResponsiveImage
from uploadkit.models.upload_models import ThumbnailInfo
from uploadkit.models.upload_models import UploadedFileRecord
from uploadkit.models.upload_models import UploadResult


def _record(name: str = "a.webp", **extra) -> UploadedFileRecord:
    return UploadedFileRecord(
        filename=name,
        original_name="a.png",
        size=10,
        mime_type="image/webp",
        path=f"/srv/public/uploads/{name}",
        url=f"/uploads/{name}",
        is_image=True,
        **extra,
    )


def test_record_serialises_with_wire_keys():
    record = _record(
        metadata=ImageMetadata(width=4, height=3, format="png", has_alpha=True),
        thumbnail=ThumbnailInfo(path="/t.webp", url="/t.webp"),
        responsive=[ResponsiveImage(width=400, path="/r.webp", url="/r.webp")],
    )

    assert record.to_dict() == {
        "filename": "a.webp",
        "originalName": "a.png",
        "size": 10,
        "type": "image/webp",
        "path": "/srv/public/uploads/a.webp",
        "url": "/uploads/a.webp",
        "isImage": True,
        "metadata": {"width": 4, "height": 3, "format": "png", "hasAlpha": True},
        "thumbnail": {"path": "/t.webp", "url": "/t.webp"},
        "responsive": [{"size": 400, "path": "/r.webp", "url": "/r.webp"}],
    }


def test_record_omits_absent_optionals():
    assert set(_record().to_dict()) == {"filename", "originalName", "size", "type", "path", "url", "isImage"}


def test_result_collapses_single_record():
    assert isinstance(UploadResult.ok([_record()]).to_response()["files"], dict)
    assert isinstance(UploadResult.ok([_record("a"), _record("b")]).to_response()["files"], list)


def test_success_response_bodies():
    single = UploadResult.ok([_record("a.webp")]).to_response()
    assert single == {"success": True, "files": _record("a.webp").to_dict()}

    many = UploadResult.ok([_record("a.webp"), _record("b.webp")]).to_response()
    assert [f["filename"] for f in many["files"]] == ["a.webp", "b.webp"]


def test_failed_result_shape():
    assert UploadResult.fail("nope").to_response() == {"success": False, "error": "nope"}
    assert UploadResult.fail("nope").records == []


def test_result_rejects_mixed_shape():
    with pytest.raises(ValueError):
        UploadResult(success=True, error="x")
    with pytest.raises(ValueError):
        UploadResult(success=False, files=_record())


def test_raw_file_from_bytes():
    raw = RawUploadedFile.from_bytes("a.txt", b"abc", "text/plain")
    assert raw.size == 3
