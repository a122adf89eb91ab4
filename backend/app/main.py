"""
Residential Build Manager API
FastAPI backend over a flat-file JSON store: projects, bill of materials,
supplier quotations with document-AI extraction, build timeline, costs,
drawings and printable reports for South African residential builds.
"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import CORS_ORIGINS, DATA_DIR, LLM_EXTRACTION_MODEL, LOG_JSON, LOG_LEVEL
from app.db import init_store
from app.services.logging_config import setup_logging
from app.services.middleware import RequestTimingMiddleware

setup_logging(level=LOG_LEVEL, json_output=LOG_JSON)
logger = logging.getLogger("buildtrack-api")

API_VERSION = "1.0.0"

# Record process start time for uptime calculation
_PROCESS_START = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.store = init_store(DATA_DIR)
    logger.info(f"Build manager API starting (model: {LLM_EXTRACTION_MODEL})")
    yield


app = FastAPI(
    title="Residential Build Manager API",
    version=API_VERSION,
    description="Project, BOM, quotation and timeline management for South African residential construction",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "X-Requested-With"],
)
# Request timing + X-Request-ID must be outermost so it wraps all other middleware
app.add_middleware(RequestTimingMiddleware)

# Routers
from app.api.project_routes import router as project_router
from app.api.bom_routes import router as bom_router
from app.api.quotation_routes import router as quotation_router
from app.api.timeline_routes import router as timeline_router
from app.api.cost_routes import router as cost_router
from app.api.drawing_routes import router as drawing_router
from app.api.report_routes import router as report_router
from app.api.settings_routes import router as settings_router

app.include_router(project_router)
app.include_router(bom_router)
app.include_router(quotation_router)
app.include_router(timeline_router)
app.include_router(cost_router)
app.include_router(drawing_router)
app.include_router(report_router)
app.include_router(settings_router)


@app.get("/health")
async def health_check():
    return {
        "status": "ok",
        "version": API_VERSION,
        "model": LLM_EXTRACTION_MODEL,
        "uptime_seconds": round(time.monotonic() - _PROCESS_START, 1),
    }
