"""Drawing register: drawings with uploaded revisions."""
import logging
import uuid
from typing import BinaryIO, List, Optional

from app.db import FlatFileStore
from app.db.repositories import DrawingRepository
from app.models.schemas import Drawing, DrawingCreate, DrawingRevision, now_iso
from app.services.exceptions import NotFoundError
from app.services.uploads import save_upload

logger = logging.getLogger("buildtrack-drawings")

DEFAULT_REVISION = "Rev A"


class DrawingService:

    def __init__(self, drawings: DrawingRepository, store: FlatFileStore):
        self.drawings = drawings
        self.store = store

    def list(self, project_id: str) -> List[Drawing]:
        return self.drawings.list(project_id)

    def get(self, project_id: str, drawing_id: str) -> Drawing:
        drawing = self.drawings.get(project_id, drawing_id)
        if drawing is None:
            raise NotFoundError("Drawing", drawing_id)
        return drawing

    def create(self, project_id: str, data: DrawingCreate) -> Drawing:
        drawing = Drawing(
            id=str(uuid.uuid4()),
            project_id=project_id,
            title=data.title,
            drawing_number=data.drawing_number,
            category=data.category,
            description=data.description or "",
        )
        return self.drawings.upsert(project_id, drawing)

    def add_revision(
        self,
        project_id: str,
        drawing_id: str,
        fileobj: BinaryIO,
        file_name: str,
        mime_type: Optional[str],
        revision_number: Optional[str] = None,
        notes: str = "",
    ) -> Drawing:
        """Store the file under files/drawings/ and make it the current revision."""
        drawing = self.get(project_id, drawing_id)
        revision_number = revision_number or DEFAULT_REVISION
        stored = save_upload(fileobj, file_name, self.store.upload_dir(project_id, "drawings"))
        revision = DrawingRevision(
            id=str(uuid.uuid4()),
            revision_number=revision_number,
            file_name=file_name,
            file_size=stored.size,
            mime_type=mime_type or "application/octet-stream",
            storage_path=f"files/drawings/{stored.stored_name}",
            notes=notes,
        )
        updated = drawing.model_copy(update={
            "revisions": list(drawing.revisions) + [revision],
            "current_revision": revision_number,
            "updated_at": now_iso(),
        })
        logger.info(
            f"Drawing {drawing.drawing_number} now at {revision_number}",
            extra={"project_id": project_id},
        )
        return self.drawings.upsert(project_id, updated)

    def delete(self, project_id: str, drawing_id: str) -> None:
        if not self.drawings.delete(project_id, drawing_id):
            raise NotFoundError("Drawing", drawing_id)
