"""Settings routes — document-AI API key storage and connection test."""
import logging
import os

from fastapi import APIRouter, Depends

from app.api.deps import get_settings_repo
from app.config import resolve_api_key
from app.db.repositories import SettingsRepository
from app.models.schemas import SettingsUpdate
from app.services import llm_client

router = APIRouter(prefix="/api/settings", tags=["Settings"])
logger = logging.getLogger("buildtrack-api")

NO_KEY_MESSAGE = "No API key configured. Please save an API key first."


@router.get("")
def get_settings(settings: SettingsRepository = Depends(get_settings_repo)):
    """Settings with the API key masked; the full key is never returned."""
    return settings.masked().to_json_dict()


@router.put("")
def update_settings(body: SettingsUpdate, settings: SettingsRepository = Depends(get_settings_repo)):
    settings.update_api_key(body.anthropic_api_key)
    return settings.masked().to_json_dict()


@router.post("/test-connection")
async def test_connection(settings: SettingsRepository = Depends(get_settings_repo)):
    api_key = resolve_api_key(settings.raw(), os.environ)
    if not api_key:
        return {"success": False, "error": NO_KEY_MESSAGE}
    return await llm_client.test_connection(api_key)
