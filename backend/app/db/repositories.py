"""
Typed repositories over FlatFileStore, one per aggregate.

Project, BOM and Timeline documents carry a ``version`` counter. save()
increments it; passing ``expected_version`` turns the write into a
compare-and-set that raises VersionConflictError when the stored version
has moved on. Without it the write is last-write-wins.
"""
import logging
from typing import Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from app.db import FlatFileStore
from app.models.schemas import (
    AppSettings,
    BOMData,
    Drawing,
    MaskedAppSettings,
    Project,
    Quotation,
    TimelineData,
    now_iso,
)
from app.services.exceptions import VersionConflictError

logger = logging.getLogger("buildtrack-store")

M = TypeVar("M", bound=BaseModel)

SETTINGS_PATH = "settings.json"
MASK_CHAR = "•"


def _validate(model_class: Type[M], raw, relative: str) -> Optional[M]:
    if raw is None:
        return None
    try:
        return model_class.model_validate(raw)
    except ValidationError as e:
        logger.error(f"Invalid {model_class.__name__} in {relative}: {e.error_count()} errors")
        return None


class VersionedDocumentRepository(Generic[M]):
    """One JSON document per project (project.json, bom.json, timeline.json)."""

    filename: str = ""
    model_class: Type[M]
    entity_name: str = ""

    def __init__(self, store: FlatFileStore):
        self.store = store

    def _relative(self, project_id: str) -> str:
        return self.store.project_file(project_id, self.filename)

    def get(self, project_id: str) -> Optional[M]:
        relative = self._relative(project_id)
        return _validate(self.model_class, self.store.read(relative), relative)

    def stored_version(self, project_id: str) -> int:
        raw = self.store.read(self._relative(project_id))
        if isinstance(raw, dict):
            version = raw.get("version", 0)
            return version if isinstance(version, int) else 0
        return 0

    def save(self, project_id: str, document: M, expected_version: Optional[int] = None) -> M:
        actual = self.stored_version(project_id)
        if expected_version is not None and expected_version != actual:
            raise VersionConflictError(self.entity_name, expected_version, actual)
        saved = document.model_copy(update={"version": actual + 1})
        self.store.write(self._relative(project_id), saved.to_json_dict())
        return saved


class ProjectRepository(VersionedDocumentRepository[Project]):
    filename = "project.json"
    model_class = Project
    entity_name = "Project"

    def list(self) -> List[Project]:
        """All projects, most recently updated first. Directories without project.json are skipped."""
        projects = []
        for project_id in self.store.list_directories("projects"):
            project = self.get(project_id)
            if project is not None:
                projects.append(project)
        return sorted(projects, key=lambda p: p.updated_at, reverse=True)

    def create(self, project: Project) -> Project:
        self.store.ensure_project_dir(project.id)
        return self.save(project.id, project)


class BOMRepository(VersionedDocumentRepository[BOMData]):
    filename = "bom.json"
    model_class = BOMData
    entity_name = "BOM"


class TimelineRepository(VersionedDocumentRepository[TimelineData]):
    filename = "timeline.json"
    model_class = TimelineData
    entity_name = "Timeline"


class CollectionRepository(Generic[M]):
    """A JSON array of records per project (quotations.json, drawings.json)."""

    filename: str = ""
    model_class: Type[M]

    def __init__(self, store: FlatFileStore):
        self.store = store

    def _relative(self, project_id: str) -> str:
        return self.store.project_file(project_id, self.filename)

    def list(self, project_id: str) -> List[M]:
        relative = self._relative(project_id)
        raw = self.store.read(relative)
        if not isinstance(raw, list):
            return []
        records = []
        for entry in raw:
            record = _validate(self.model_class, entry, relative)
            if record is not None:
                records.append(record)
        return records

    def get(self, project_id: str, record_id: str) -> Optional[M]:
        return next((r for r in self.list(project_id) if r.id == record_id), None)

    def save_all(self, project_id: str, records: List[M]) -> None:
        self.store.write(self._relative(project_id), [r.to_json_dict() for r in records])

    def upsert(self, project_id: str, record: M) -> M:
        records = self.list(project_id)
        for idx, existing in enumerate(records):
            if existing.id == record.id:
                records[idx] = record
                break
        else:
            records.append(record)
        self.save_all(project_id, records)
        return record

    def delete(self, project_id: str, record_id: str) -> bool:
        records = self.list(project_id)
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) == len(records):
            return False
        self.save_all(project_id, remaining)
        return True


class QuotationRepository(CollectionRepository[Quotation]):
    filename = "quotations.json"
    model_class = Quotation


class DrawingRepository(CollectionRepository[Drawing]):
    filename = "drawings.json"
    model_class = Drawing


def mask_api_key(key: str) -> str:
    """First 7 + 8 bullets + last 4; short keys are fully masked; empty stays empty."""
    if not key:
        return ""
    if len(key) <= 12:
        return MASK_CHAR * 12
    return f"{key[:7]}{MASK_CHAR * 8}{key[-4:]}"


class SettingsRepository:
    """Global settings.json at the data root."""

    def __init__(self, store: FlatFileStore):
        self.store = store

    def raw(self) -> Optional[dict]:
        data = self.store.read(SETTINGS_PATH)
        return data if isinstance(data, dict) else None

    def get(self) -> AppSettings:
        settings = _validate(AppSettings, self.raw(), SETTINGS_PATH)
        return settings if settings is not None else AppSettings()

    def masked(self) -> MaskedAppSettings:
        settings = self.get()
        return MaskedAppSettings(
            anthropic_api_key=mask_api_key(settings.anthropic_api_key),
            has_api_key=bool(settings.anthropic_api_key),
            updated_at=settings.updated_at,
        )

    def update_api_key(self, api_key: str) -> AppSettings:
        settings = self.get().model_copy(update={
            "anthropic_api_key": api_key.strip(),
            "updated_at": now_iso(),
        })
        self.store.write(SETTINGS_PATH, settings.to_json_dict())
        logger.info("API key updated" if settings.anthropic_api_key else "API key cleared")
        return settings
