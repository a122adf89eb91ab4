"""
test_import_safety.py — Import and layering checks.

Verifies that:
  1. Every engine, service and route module imports cleanly with no data
     directory present and no API key configured.
  2. The pure engines stay independent of the storage and HTTP layers, so
     they can be exercised without a FastAPI app or a FlatFileStore.
  3. Only handlers that await the document-AI provider are async; the
     rest are plain def and run in the threadpool.

No network or external services are required.
"""

import sys
import os
import importlib
import pytest

_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


_SERVICE_MODULES = [
    "app.config",
    "app.services.exceptions",
    "app.services.money",
    "app.services.spreadsheet_parser",
    "app.services.extraction_normalizer",
    "app.services.llm_client",
    "app.services.extraction_service",
    "app.services.bom_templates",
    "app.services.bom_engine",
    "app.services.costing_engine",
    "app.services.timeline_engine",
    "app.services.project_service",
    "app.services.quotation_service",
    "app.services.drawing_service",
    "app.services.report_engine",
    "app.services.uploads",
    "app.services.logging_config",
    "app.services.middleware",
]

_STORAGE_AND_MODEL_MODULES = [
    "app.models.schemas",
    "app.db",
    "app.db.repositories",
]

_ROUTE_MODULES = [
    "app.api.deps",
    "app.api.project_routes",
    "app.api.bom_routes",
    "app.api.quotation_routes",
    "app.api.timeline_routes",
    "app.api.cost_routes",
    "app.api.drawing_routes",
    "app.api.report_routes",
    "app.api.settings_routes",
]


_ROUTER_MODULES = [m for m in _ROUTE_MODULES if not m.endswith("deps")]

# Handlers that await the document-AI provider
_ASYNC_HANDLERS = {"extract_quotation", "test_connection"}


class TestModuleImports:
    """Each module must import on its own."""

    @pytest.mark.parametrize("module_path", _SERVICE_MODULES)
    def test_service_module_imports(self, module_path):
        mod = importlib.import_module(module_path)
        assert mod is not None, f"Module {module_path} is None after import"

    @pytest.mark.parametrize("module_path", _STORAGE_AND_MODEL_MODULES)
    def test_storage_and_model_modules_import(self, module_path):
        mod = importlib.import_module(module_path)
        assert mod is not None

    @pytest.mark.parametrize("module_path", _ROUTE_MODULES)
    def test_route_modules_expose_router(self, module_path):
        mod = importlib.import_module(module_path)
        if module_path.endswith("deps"):
            assert hasattr(mod, "raise_http")
        else:
            assert hasattr(mod, "router"), f"{module_path} has no APIRouter"

    @pytest.mark.parametrize("module_path", _ROUTER_MODULES)
    def test_only_upstream_calls_are_async(self, module_path):
        """Disk- and render-bound handlers must be plain def so they run in the threadpool."""
        import inspect
        from fastapi.routing import APIRoute
        router = importlib.import_module(module_path).router
        for route in router.routes:
            if not isinstance(route, APIRoute):
                continue
            is_async = inspect.iscoroutinefunction(route.endpoint)
            assert is_async == (route.endpoint.__name__ in _ASYNC_HANDLERS), (
                f"{module_path}:{route.endpoint.__name__} async={is_async}"
            )


class TestEngineLayering:
    """Engines must not reach into storage or HTTP."""

    @pytest.mark.parametrize("module_path", [
        "app.services.bom_engine",
        "app.services.costing_engine",
        "app.services.timeline_engine",
        "app.services.spreadsheet_parser",
        "app.services.extraction_normalizer",
    ])
    def test_engine_has_no_storage_or_http_imports(self, module_path):
        mod = importlib.import_module(module_path)
        names = dir(mod)
        for forbidden in ("FlatFileStore", "APIRouter", "HTTPException", "get_store"):
            assert forbidden not in names, f"{module_path} imports {forbidden}"

    def test_bom_engine_does_not_import_costing_engine(self):
        """bom_engine should be independent of costing_engine."""
        import app.services.bom_engine as bom
        assert "costing_engine" not in dir(bom), (
            "bom_engine appears to directly import costing_engine (circular risk)"
        )

    def test_bom_template_categories_all_have_prefixes(self):
        """Every template category must map to an item-number prefix."""
        from app.services.bom_engine import CATEGORY_PREFIXES
        from app.services.bom_templates import NHBRC_BOM_TEMPLATE
        for row in NHBRC_BOM_TEMPLATE:
            assert row.category in CATEGORY_PREFIXES
