"""User settings and profile package."""
from .service import SettingsService
from .router import router as settings_router, setup_router

__all__ = [
    'SettingsService',
    'settings_router',
    'setup_router',
]
