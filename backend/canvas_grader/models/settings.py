"""Per-user Canvas settings."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
import uuid

from ..database import Base
from ..auth.models import utcnow


class UserSettings(Base):
    """Canvas connection and preference settings, one row per user."""
    __tablename__ = "user_settings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False)
    canvas_url = Column(Text, nullable=True)
    canvas_token = Column(Text, nullable=True)
    canvas_token_name = Column(Text, nullable=True)
    auto_sync = Column(Boolean, default=True)
    sync_frequency = Column(String(20), default="daily")
    notifications_enabled = Column(Boolean, default=True)
    email_notifications = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="settings")

    def __repr__(self):
        return f"<UserSettings(id={self.id}, user_id={self.user_id})>"

    @property
    def has_canvas_credentials(self) -> bool:
        return bool(self.canvas_url and self.canvas_token)
