"""
Storage Layer - flat-file JSON store rooted at DATA_DIR.

Layout:
    settings.json
    projects/{id}/project.json | bom.json | quotations.json | timeline.json | drawings.json
    projects/{id}/files/{quotations|drawings|renderings}/{uuid}{ext}

A missing file or directory means "no data yet", never an error.
"""
import json
import logging
import os
from typing import Any, List, Optional

from app.config import DATA_DIR

logger = logging.getLogger("buildtrack-store")

UPLOAD_KINDS = ("quotations", "drawings", "renderings")


class FlatFileStore:
    """Whole-file JSON reads and writes. Last write wins; writes are not atomic."""

    def __init__(self, root: str = DATA_DIR):
        self.root = os.path.abspath(root)

    def path(self, relative: str) -> str:
        return os.path.join(self.root, relative)

    def read(self, relative: str) -> Optional[Any]:
        full_path = self.path(relative)
        try:
            with open(full_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Unreadable data file {relative}: {e}")
            return None

    def write(self, relative: str, data: Any) -> None:
        full_path = self.path(relative)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def delete(self, relative: str) -> None:
        try:
            os.remove(self.path(relative))
        except FileNotFoundError:
            pass

    def list_directories(self, relative: str) -> List[str]:
        full_path = self.path(relative)
        try:
            return sorted(
                entry.name for entry in os.scandir(full_path) if entry.is_dir()
            )
        except FileNotFoundError:
            return []

    def ensure_project_dir(self, project_id: str) -> str:
        project_dir = self.path(os.path.join("projects", project_id))
        for kind in UPLOAD_KINDS:
            os.makedirs(os.path.join(project_dir, "files", kind), exist_ok=True)
        return project_dir

    @staticmethod
    def project_file(project_id: str, name: str) -> str:
        return os.path.join("projects", project_id, name)

    def upload_dir(self, project_id: str, kind: str) -> str:
        if kind not in UPLOAD_KINDS:
            raise ValueError(f"Unknown upload kind: {kind}")
        return self.path(os.path.join("projects", project_id, "files", kind))


_store: Optional[FlatFileStore] = None


def init_store(root: str = DATA_DIR) -> FlatFileStore:
    """Create the data root and the process-wide store."""
    global _store
    os.makedirs(root, exist_ok=True)
    _store = FlatFileStore(root)
    logger.info(f"Data store ready at {_store.root}")
    return _store


def get_store() -> FlatFileStore:
    """FastAPI dependency; tests override it with a store under tmp_path."""
    return _store if _store is not None else init_store()
