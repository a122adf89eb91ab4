"""
Runtime configuration — environment variables and business constants.

Import from here in routes and services rather than calling os.getenv()
at the use site.
"""
from __future__ import annotations

import os
from typing import Mapping, Optional

from dotenv import load_dotenv

load_dotenv()

# ── Storage ────────────────────────────────────────────────────────────────────
DATA_DIR: str = os.getenv("DATA_DIR", os.path.join(os.getcwd(), "data"))
DOWNLOAD_DIR: str = os.getenv("DOWNLOAD_DIR", "/tmp/downloads")

# ── Uploads ────────────────────────────────────────────────────────────────────
MAX_UPLOAD_MB: int = int(os.getenv("MAX_UPLOAD_MB", "20"))
MAX_UPLOAD_BYTES: int = MAX_UPLOAD_MB * 1024 * 1024

# ── Document AI ────────────────────────────────────────────────────────────────
LLM_EXTRACTION_MODEL: str = os.getenv("LLM_EXTRACTION_MODEL", "anthropic/claude-sonnet-4-20250514")
LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", "4096"))
API_KEY_ENV_VAR = "ANTHROPIC_API_KEY"

# ── HTTP ───────────────────────────────────────────────────────────────────────
_cors_default = "http://localhost:3000,http://localhost:8000"
CORS_ORIGINS: list[str] = [
    o.strip() for o in os.getenv("CORS_ORIGINS", _cors_default).split(",") if o.strip()
]

# ── Logging ────────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON: bool = os.getenv("LOG_FORMAT", "json").lower() != "text"

# ── South African business constants ───────────────────────────────────────────
SA_VAT_RATE: float = 0.15
DEFAULT_CONTINGENCY_PCT: float = 10.0
CURRENCY: str = "ZAR"


def resolve_api_key(stored_settings: Optional[Mapping], environ: Mapping[str, str]) -> Optional[str]:
    """
    Resolve the document-AI API key.

    A non-empty key saved through the settings page wins; otherwise the
    ANTHROPIC_API_KEY entry of ``environ`` is used. Returns None when neither
    is set.
    """
    if stored_settings:
        stored = stored_settings.get("anthropicApiKey") or stored_settings.get("anthropic_api_key")
        if isinstance(stored, str) and stored.strip():
            return stored.strip()
    env_key = environ.get(API_KEY_ENV_VAR, "")
    return env_key.strip() or None
