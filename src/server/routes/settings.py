"""API key settings endpoints."""

from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI

from src.ai_chat.errors import InternalError

from ..dependencies import get_chat_history_repository, serialize_settings_status
from ..schemas import SettingsStatusResponse, SettingsUpdateRequest, SettingsUpdateResponse

logger = logging.getLogger(__name__)


def register_settings_routes(app: FastAPI) -> None:
    """Register settings endpoints."""

    @app.get("/api/settings", response_model=SettingsStatusResponse)
    async def get_settings() -> SettingsStatusResponse:
        """Report which API keys are stored."""
        repo = get_chat_history_repository()
        try:
            settings = await asyncio.to_thread(repo.get_settings)
            return serialize_settings_status(settings)
        except Exception as exc:
            logger.exception("Failed to get settings: %s", exc)
            raise InternalError("Failed to get settings") from exc

    @app.post("/api/settings", response_model=SettingsUpdateResponse)
    async def update_settings(request: SettingsUpdateRequest) -> SettingsUpdateResponse:
        """Store API keys; only the keys present in the body change."""
        repo = get_chat_history_repository()
        try:
            payload = request.model_dump(exclude_unset=True)
            settings = await asyncio.to_thread(repo.upsert_settings, **payload)
            logger.info("Settings updated: %s", sorted(payload))
            return SettingsUpdateResponse(
                success=True, settings=serialize_settings_status(settings)
            )
        except Exception as exc:
            logger.exception("Failed to update settings: %s", exc)
            raise InternalError("Failed to update settings") from exc
