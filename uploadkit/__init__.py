"""File-upload helper: route, validate and store uploads, with image variants."""

from uploadkit.core.config import UploadConfig  # noqa: F401
from uploadkit.core.config import resolve_upload_config  # noqa: F401
from uploadkit.core.file_types import DOCUMENT_TYPES  # noqa: F401
from uploadkit.core.file_types import IMAGE_TYPES  # noqa: F401
from uploadkit.models.upload_models import RawUploadedFile  # noqa: F401
from uploadkit.models.upload_models import Route  # noqa: F401
from uploadkit.models.upload_models import RouteTable  # noqa: F401
from uploadkit.models.upload_models import UploadedFileRecord  # noqa: F401
from uploadkit.models.upload_models import UploadResult  # noqa: F401
from uploadkit.upload_logic.upload_handler import FileUploadHandler  # noqa: F401
