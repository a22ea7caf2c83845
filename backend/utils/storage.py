# backend/utils/storage.py
import logging
import shutil
import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from config import settings
from services.errors import ServiceError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}
MAX_IMAGE_BYTES = 2 * 1024 * 1024


def upload_root() -> Path:
    root = Path(settings.UPLOAD_DIR)
    root.mkdir(parents=True, exist_ok=True)
    return root


def save_image(file: UploadFile, folder: str) -> str:
    """Store an uploaded image and return its path relative to the upload root."""
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise ServiceError("Invalid file type", status_code=400)

    target_dir = upload_root() / folder
    target_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{uuid.uuid4()}.{ALLOWED_IMAGE_TYPES[file.content_type]}"
    save_path = target_dir / filename

    try:
        with open(save_path, "wb") as buffer:
            shutil.copyfileobj(file.file, buffer)
    finally:
        file.file.close()

    if save_path.stat().st_size > MAX_IMAGE_BYTES:
        save_path.unlink()
        raise ServiceError("Image must not exceed 2 MB", status_code=400)

    return f"{folder}/{filename}"


def delete_image(path: Optional[str]) -> None:
    """Remove a stored image; failures are logged, never raised."""
    if not path:
        return
    root = upload_root().resolve()
    target = (root / path).resolve()
    if root not in target.parents:
        logger.warning("Refusing to delete file outside upload dir: %s", path)
        return
    try:
        target.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not delete stored image %s", path, exc_info=True)
