"""Upload logic package.

Groups the orchestration of one upload operation (routing, validation,
storage, variant generation) so that `uploadkit/api/routes.py` only deals with
HTTP concerns.
"""

from .filenames import generate_unique_filename  # noqa: F401
from .upload_handler import FileUploadHandler  # noqa: F401
