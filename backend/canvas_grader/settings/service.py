"""Persistence for onboarding settings and the profile screen."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from canvas_grader.auth.models import User, utcnow
from canvas_grader.models import Profile, UserSettings
from .schemas import CanvasSettingsUpdate, CanvasSettingsResponse, ProfileUpdate, ProfileResponse

logger = logging.getLogger(__name__)


class SettingsService:
    def __init__(self, db: Session):
        self.db = db

    def get_settings(self, user: User) -> Optional[UserSettings]:
        return self.db.query(UserSettings).filter(UserSettings.user_id == user.id).first()

    def save_canvas_settings(self, user: User, data: CanvasSettingsUpdate) -> UserSettings:
        """Insert the user's settings row, or update it when one exists.

        The Canvas fields are mirrored into the user's metadata bag so the
        credential lookup still has a fallback if the row is unavailable.
        """
        values = data.model_dump()
        settings = self.get_settings(user)
        if settings is None:
            logger.info(f"Creating settings for user {user.id}")
            settings = UserSettings(user_id=user.id, **values)
            self.db.add(settings)
        else:
            logger.info(f"Updating settings for user {user.id}")
            for key, value in values.items():
                setattr(settings, key, value)
            settings.updated_at = utcnow()

        user.update_metadata(
            canvas_url=data.canvas_url,
            canvas_token=data.canvas_token,
            canvas_token_name=data.canvas_token_name,
            canvas_connected=True,
        )
        self.db.commit()
        self.db.refresh(settings)
        return settings

    def get_profile(self, user: User) -> Profile:
        profile = self.db.query(Profile).filter(Profile.id == user.id).first()
        if profile is None:
            # Users created before the profiles table existed
            profile = Profile(id=user.id)
            self.db.add(profile)
            self.db.commit()
            self.db.refresh(profile)
        return profile

    def update_profile(self, user: User, data: ProfileUpdate) -> Profile:
        profile = self.get_profile(user)
        changes = data.model_dump(exclude_unset=True)
        if "full_name" in changes:
            user.full_name = changes.pop("full_name")
        for key, value in changes.items():
            setattr(profile, key, value)
        self.db.commit()
        self.db.refresh(profile)
        return profile


def settings_response(settings: UserSettings) -> CanvasSettingsResponse:
    return CanvasSettingsResponse(
        id=settings.id,
        canvas_url=settings.canvas_url,
        canvas_token_name=settings.canvas_token_name,
        has_canvas_token=bool(settings.canvas_token),
        auto_sync=settings.auto_sync,
        sync_frequency=settings.sync_frequency,
        notifications_enabled=settings.notifications_enabled,
        email_notifications=settings.email_notifications,
        updated_at=settings.updated_at,
    )


def profile_response(user: User, profile: Profile) -> ProfileResponse:
    return ProfileResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        title=profile.title,
        institution=profile.institution,
        bio=profile.bio,
        avatar_url=profile.avatar_url,
    )
