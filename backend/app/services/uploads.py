"""Upload persistence: stream an incoming file to the project's files/ tree."""
import logging
import os
import shutil
import uuid
from typing import BinaryIO, NamedTuple

logger = logging.getLogger("buildtrack-store")


class StoredUpload(NamedTuple):
    file_id: str
    stored_name: str
    absolute_path: str
    size: int


def save_upload(fileobj: BinaryIO, original_name: str, dest_dir: str) -> StoredUpload:
    """Write ``fileobj`` to ``dest_dir/{uuid}{ext}`` and return where it landed."""
    ext = os.path.splitext(original_name or "")[1]
    file_id = str(uuid.uuid4())
    stored_name = f"{file_id}{ext}"
    path = os.path.join(dest_dir, stored_name)
    os.makedirs(dest_dir, exist_ok=True)
    with open(path, "wb") as fh:
        shutil.copyfileobj(fileobj, fh)
    size = os.path.getsize(path)
    logger.info(f"Upload saved: {original_name} → {path} ({size} bytes)")
    return StoredUpload(file_id, stored_name, path, size)
