"""SQLAlchemy models for Canvas Grader."""

from ..auth.models import User, RefreshToken, LoginAttempt
from .settings import UserSettings
from .profile import Profile

__all__ = [
    "User",
    "RefreshToken",
    "LoginAttempt",
    "UserSettings",
    "Profile",
]
