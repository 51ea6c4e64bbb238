"""
UI settings API endpoints
"""
from fastapi import APIRouter, Depends

from ..models.ui_state import UiState
from ..services.settings_service import SettingsService

router = APIRouter(prefix="/api/settings", tags=["settings"])


def get_settings_service() -> SettingsService:
    """Dependency injection: get settings service instance"""
    return SettingsService()


@router.get("/ui", response_model=UiState)
async def get_ui_state(service: SettingsService = Depends(get_settings_service)):
    return await service.get_ui_state()


@router.put("/ui", response_model=UiState)
async def update_ui_state(ui: UiState, service: SettingsService = Depends(get_settings_service)):
    return await service.update_ui_state(ui)
