"""
Application settings endpoints (theme, provider credentials, models).
"""

from __future__ import annotations

from fastapi import APIRouter

from api.dependencies import Store
from models.schemas.settings import SettingsResponse, SettingsUpdate

router = APIRouter()


@router.get("/settings", response_model=SettingsResponse, summary="Get settings")
def read_settings(store: Store) -> SettingsResponse:
    data = store.load()
    return SettingsResponse(theme=data.theme, openai=data.openai)


@router.put("/settings", response_model=SettingsResponse, summary="Update settings")
def update_settings(update: SettingsUpdate, store: Store) -> SettingsResponse:
    """Omitted sections keep their stored value."""
    data = store.save_settings(update)
    return SettingsResponse(theme=data.theme, openai=data.openai)
