"""Unique, collision-resistant names for stored uploads."""

import string
import time
from pathlib import PurePath
from secrets import choice

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def generate_unique_filename(original_name: str, extension: str | None = None) -> str:
    """Builds ``<stem>_<epoch-ms>_<6 random chars><ext>``.

    Directory components of ``original_name`` are dropped. ``extension``
    replaces the original extension (used when the file is transcoded).
    """
    # Some browsers send full Windows paths
    basename = PurePath(original_name.replace("\\", "/")).name or "file"
    original = PurePath(basename)
    ext = extension if extension is not None else original.suffix
    timestamp = int(time.time() * 1000)
    random_part = "".join(choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"{original.stem}_{timestamp}_{random_part}{ext}"
