"""Settings and profile request/response schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class CanvasSettingsUpdate(BaseModel):
    canvas_url: str
    canvas_token: str
    canvas_token_name: Optional[str] = None
    auto_sync: bool = True
    sync_frequency: str = "daily"
    notifications_enabled: bool = True
    email_notifications: bool = True


class CanvasSettingsResponse(BaseModel):
    """Stored settings; the token itself is never echoed back."""
    id: str
    canvas_url: Optional[str]
    canvas_token_name: Optional[str]
    has_canvas_token: bool
    auto_sync: Optional[bool]
    sync_frequency: Optional[str]
    notifications_enabled: Optional[bool]
    email_notifications: Optional[bool]
    updated_at: Optional[datetime]


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    title: Optional[str] = None
    institution: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None


class ProfileResponse(BaseModel):
    id: int
    email: str
    full_name: Optional[str]
    title: Optional[str]
    institution: Optional[str]
    bio: Optional[str]
    avatar_url: Optional[str]

    model_config = ConfigDict(from_attributes=True)
