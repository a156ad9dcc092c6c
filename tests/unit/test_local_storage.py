import pytest

from uploadkit.core.exceptions import StorageError
from uploadkit.services.storage.local_storage import LocalFileStorage


def test_ensure_exists_is_recursive_and_idempotent(tmp_path):
    storage = LocalFileStorage()
    target = tmp_path / "a" / "b" / "c"

    storage.ensure_exists(target)
    storage.ensure_exists(target)

    assert target.is_dir()


def test_write_round_trip(tmp_path):
    storage = LocalFileStorage()
    storage.write(tmp_path / "f.bin", b"\x00\x01")
    assert (tmp_path / "f.bin").read_bytes() == b"\x00\x01"


def test_write_into_missing_directory_raises_storage_error(tmp_path):
    with pytest.raises(StorageError):
        LocalFileStorage().write(tmp_path / "missing" / "f.bin", b"x")


def test_directory_blocked_by_file_raises_storage_error(tmp_path):
    (tmp_path / "taken").write_bytes(b"")
    with pytest.raises(StorageError):
        LocalFileStorage().ensure_exists(tmp_path / "taken" / "sub")
