from uploadkit.core.file_types import DEFAULT_MIME_TYPE
from uploadkit.core.file_types import DOCUMENT_TYPES
from uploadkit.core.file_types import IMAGE_TYPES
from uploadkit.core.file_types import is_document_file
from uploadkit.core.file_types import is_image_file
from uploadkit.core.file_types import lookup_mime_type


def test_tables_are_disjoint():
    assert not set(IMAGE_TYPES) & set(DOCUMENT_TYPES)


def test_categories():
    assert is_image_file("image/jpg")
    assert is_image_file("image/tiff")
    assert not is_image_file("image/svg+xml")
    assert is_document_file("text/csv")
    assert not is_document_file("application/zip")


def test_lookup_by_extension():
    assert lookup_mime_type("scan.pdf") == "application/pdf"
    assert lookup_mime_type("photo.PNG") == "image/png"
    assert lookup_mime_type("no_extension") == DEFAULT_MIME_TYPE
    assert lookup_mime_type("mystery.zzzz") == DEFAULT_MIME_TYPE
