"""User profile model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, event
from sqlalchemy.orm import relationship

from ..database import Base
from ..auth.models import User, utcnow


class Profile(Base):
    """Display and bio fields for a user; unrelated to Canvas."""
    __tablename__ = "profiles"

    id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    title = Column(Text, nullable=True)
    institution = Column(Text, nullable=True)
    bio = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="profile")

    def __repr__(self):
        return f"<Profile(id={self.id})>"


@event.listens_for(User, "after_insert")
def create_profile_for_new_user(mapper, connection, target):
    """Every user gets an empty profile row in the same transaction."""
    # A profile attached explicitly is flushed by the unit of work itself
    if target.__dict__.get("profile") is not None:
        return
    now = utcnow()
    connection.execute(
        Profile.__table__.insert().values(id=target.id, created_at=now, updated_at=now)
    )
