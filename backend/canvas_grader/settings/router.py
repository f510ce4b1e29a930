"""Onboarding settings, profile and setup routes."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from canvas_grader.auth.models import User
from canvas_grader.auth.service import get_current_active_user
from canvas_grader.database import get_db, create_tables
from canvas_grader.errors import CanvasGraderError, NotFoundError
from .schemas import CanvasSettingsUpdate, CanvasSettingsResponse, ProfileUpdate, ProfileResponse
from .service import SettingsService, settings_response, profile_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["Settings"])
setup_router = APIRouter(prefix="/setup", tags=["Setup"])


def get_settings_service(db: Session = Depends(get_db)) -> SettingsService:
    return SettingsService(db)


@router.get("", response_model=CanvasSettingsResponse)
def read_settings(
    current_user: User = Depends(get_current_active_user),
    service: SettingsService = Depends(get_settings_service),
):
    settings = service.get_settings(current_user)
    if settings is None:
        raise NotFoundError("Canvas settings have not been saved yet")
    return settings_response(settings)


@router.put("", response_model=CanvasSettingsResponse)
def save_settings(
    data: CanvasSettingsUpdate,
    current_user: User = Depends(get_current_active_user),
    service: SettingsService = Depends(get_settings_service),
):
    """Save the Canvas URL and token collected during onboarding."""
    try:
        return settings_response(service.save_canvas_settings(current_user, data))
    except SQLAlchemyError as e:
        logger.error(f"Settings save error: {e}")
        raise CanvasGraderError(f"Failed to save settings: {e}")


@router.get("/profile", response_model=ProfileResponse)
def read_profile(
    current_user: User = Depends(get_current_active_user),
    service: SettingsService = Depends(get_settings_service),
):
    return profile_response(current_user, service.get_profile(current_user))


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_active_user),
    service: SettingsService = Depends(get_settings_service),
):
    try:
        profile = service.update_profile(current_user, data)
    except SQLAlchemyError as e:
        logger.error(f"Profile save error: {e}")
        raise CanvasGraderError(f"Failed to save profile: {e}")
    return profile_response(current_user, profile)


@setup_router.post("/ensure-tables")
def ensure_tables(current_user: User = Depends(get_current_active_user)):
    """Create any missing tables."""
    try:
        create_tables()
    except SQLAlchemyError as e:
        logger.error(f"Error ensuring tables exist: {e}")
        raise CanvasGraderError(str(e))
    return {"success": True, "message": "Tables created or verified"}
