from fastapi import APIRouter, Depends

from apps.workshop.schemas import WorkshopSettingsUpdate, WorkshopSettingsResponse
from apps.workshop.services import WorkshopSettingsService, get_workshop_settings_service

router = APIRouter()


@router.get(
    "/settings",
    response_model=WorkshopSettingsResponse,
    summary="Get workshop settings",
    description="Name, address, phone and receipt message; defaults are created on first read"
)
def get_settings(service: WorkshopSettingsService = Depends(get_workshop_settings_service)):
    return service.get_settings()


@router.patch(
    "/settings",
    response_model=WorkshopSettingsResponse,
    summary="Update workshop settings"
)
def update_settings(
    settings_update: WorkshopSettingsUpdate,
    service: WorkshopSettingsService = Depends(get_workshop_settings_service)
):
    return service.update_settings(settings_update)
