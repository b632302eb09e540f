"""Local upload storage.

Files land in ``UPLOAD_DIR`` under a random UUID name and are served back
through ``/api/files/<name>``.
"""
import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime

from werkzeug.utils import secure_filename

from errors import BadRequest

logger = logging.getLogger(__name__)

FILE_URL_PREFIX = "/api/files/"


@dataclass
class StoredFile:
    original_name: str
    stored_name: str
    size: int
    content_type: str
    uploaded_at: datetime

    @property
    def url(self):
        return FILE_URL_PREFIX + self.stored_name

    @property
    def is_image(self):
        return self.content_type.startswith("image/")

    def to_dict(self):
        return {
            "fileName": self.original_name,
            "fileUrl": self.url,
            "fileSize": self.size,
            "fileType": self.content_type,
            "uploadedAt": self.uploaded_at.isoformat() + "Z",
        }


def _stored_name(original_name):
    _, ext = os.path.splitext(original_name)
    ext = secure_filename(ext.lstrip("."))
    token = uuid.uuid4().hex
    return f"{token}.{ext}" if ext else token


def store_upload(file, config):
    """Validate and persist a werkzeug ``FileStorage``.

    Raises ``BadRequest`` for a missing part, an oversized file or a type
    outside the allow-list. Write errors propagate to the caller.
    """
    if file is None or not file.filename:
        raise BadRequest("No file provided")

    max_bytes = config["MAX_UPLOAD_BYTES"]
    data = file.stream.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise BadRequest(f"File size too large. Maximum size is {max_bytes // (1024 * 1024)}MB")

    content_type = file.mimetype or ""
    if content_type not in config["ALLOWED_UPLOAD_TYPES"]:
        raise BadRequest("File type not allowed")

    upload_dir = config["UPLOAD_DIR"]
    os.makedirs(upload_dir, exist_ok=True)
    stored_name = _stored_name(file.filename)
    with open(os.path.join(upload_dir, stored_name), "wb") as fh:
        fh.write(data)

    logger.info("stored upload %s (%d bytes, %s)", stored_name, len(data), content_type)
    return StoredFile(
        original_name=file.filename,
        stored_name=stored_name,
        size=len(data),
        content_type=content_type,
        uploaded_at=datetime.utcnow(),
    )


def resolve_stored_path(filename, config):
    """Return the on-disk path for ``filename`` or None when it does not exist."""
    safe = secure_filename(filename)
    if not safe or safe != filename:
        return None
    path = os.path.join(config["UPLOAD_DIR"], safe)
    return path if os.path.isfile(path) else None
