"""
test_repositories.py — Flat-file store and repository tests.

Tests cover:
  - Missing files and directories read as "no data yet"
  - Unreadable JSON is treated as absent
  - Version counter and compare-and-set saves
  - Project listing order and directory layout
  - Settings masking and API key resolution
"""

import json
import os

import pytest

from app.config import resolve_api_key
from app.db.repositories import DrawingRepository, mask_api_key
from app.models.schemas import BOMData, Drawing, Project
from app.services.exceptions import VersionConflictError


class TestFlatFileStore:

    def test_missing_file_is_none(self, store):
        assert store.read("projects/nope/project.json") is None

    def test_missing_directory_lists_empty(self, store):
        assert store.list_directories("projects") == []

    def test_write_then_read(self, store):
        store.write("projects/p1/bom.json", {"projectId": "p1", "note": "Ŝtoep"})
        assert store.read("projects/p1/bom.json") == {"projectId": "p1", "note": "Ŝtoep"}

    def test_corrupt_json_is_none(self, store):
        path = store.path("settings.json")
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write("{broken")
        assert store.read("settings.json") is None

    def test_upload_dir_rejects_unknown_kind(self, store):
        with pytest.raises(ValueError):
            store.upload_dir("p1", "invoices")


class TestVersionedDocuments:

    def test_version_increments_on_save(self, bom_repo):
        first = bom_repo.save("p1", BOMData(project_id="p1"))
        second = bom_repo.save("p1", first)
        assert first.version == 1
        assert second.version == 2
        assert bom_repo.get("p1").version == 2

    def test_expected_version_match(self, bom_repo):
        saved = bom_repo.save("p1", BOMData(project_id="p1"))
        again = bom_repo.save("p1", saved, expected_version=saved.version)
        assert again.version == 2

    def test_expected_version_conflict(self, bom_repo):
        bom_repo.save("p1", BOMData(project_id="p1"))
        bom_repo.save("p1", BOMData(project_id="p1"))
        with pytest.raises(VersionConflictError) as exc:
            bom_repo.save("p1", BOMData(project_id="p1"), expected_version=1)
        assert exc.value.expected == 1
        assert exc.value.actual == 2
        assert exc.value.status_code == 409

    def test_invalid_document_reads_as_none(self, store, bom_repo):
        store.write("projects/p1/bom.json", {"items": "not a list"})
        assert bom_repo.get("p1") is None


class TestProjectRepository:

    def test_create_lays_out_upload_dirs(self, store, project_repo):
        project_repo.create(Project(id="p1", name="House"))
        for kind in ("quotations", "drawings", "renderings"):
            assert os.path.isdir(store.path(f"projects/p1/files/{kind}"))

    def test_list_newest_first_and_skips_empty_dirs(self, store, project_repo):
        project_repo.create(Project(id="a", name="Old", updated_at="2025-01-01T00:00:00+00:00"))
        project_repo.create(Project(id="b", name="New", updated_at="2025-06-01T00:00:00+00:00"))
        store.ensure_project_dir("orphan")
        assert [p.name for p in project_repo.list()] == ["New", "Old"]


class TestCollections:

    def test_upsert_and_delete(self, store):
        repo = DrawingRepository(store)
        drawing = Drawing(id="d1", project_id="p1", title="Site plan", drawing_number="A-001", category="site_plan")
        repo.upsert("p1", drawing)
        repo.upsert("p1", drawing.model_copy(update={"title": "Site plan rev"}))
        assert [d.title for d in repo.list("p1")] == ["Site plan rev"]
        assert repo.delete("p1", "d1") is True
        assert repo.delete("p1", "d1") is False
        assert repo.list("p1") == []

    def test_stored_file_uses_camel_case(self, store, quotation_repo, make_quotation):
        quotation_repo.upsert("p1", make_quotation(project_id="p1"))
        raw = store.read("projects/p1/quotations.json")
        assert "supplierName" in raw[0]
        assert "totalInclVat" in raw[0]


class TestSettings:

    @pytest.mark.parametrize("key, expected", [
        ("", ""),
        ("short-key", "•" * 12),
        ("sk-ant-REDACTED", "sk-ant-" + "•" * 8 + "WXYZ"),
    ])
    def test_mask_api_key(self, key, expected):
        assert mask_api_key(key) == expected

    def test_defaults_when_no_file(self, settings_repo):
        masked = settings_repo.masked()
        assert masked.has_api_key is False
        assert masked.anthropic_api_key == ""

    def test_update_trims_and_masks(self, store, settings_repo):
        settings_repo.update_api_key("  sk-ant-REDACTED  ")
        assert store.read("settings.json")["anthropicApiKey"] == "sk-ant-REDACTED"
        masked = settings_repo.masked()
        assert masked.has_api_key is True
        assert masked.anthropic_api_key.endswith("9876")
        assert "secret" not in masked.anthropic_api_key

    def test_resolve_prefers_stored_key(self, settings_repo):
        settings_repo.update_api_key("sk-stored")
        assert resolve_api_key(settings_repo.raw(), {"ANTHROPIC_API_KEY": "sk-env"}) == "sk-stored"

    def test_resolve_falls_back_to_environment(self):
        assert resolve_api_key(None, {"ANTHROPIC_API_KEY": " sk-env "}) == "sk-env"
        assert resolve_api_key({"anthropicApiKey": "  "}, {"ANTHROPIC_API_KEY": "sk-env"}) == "sk-env"

    def test_resolve_none_when_unset(self):
        assert resolve_api_key({}, {}) is None
