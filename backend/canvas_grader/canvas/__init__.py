"""Canvas LMS integration: API client, credential lookup and grading workflow."""
from .client import CanvasApiClient, create_canvas_api_client, normalize_canvas_url, is_valid_url
from .credentials import CanvasCredentials, resolve_canvas_credentials, get_canvas_credentials
from .service import GradingWorkflow, ensure_user
from .router import router as canvas_router

__all__ = [
    'CanvasApiClient',
    'create_canvas_api_client',
    'normalize_canvas_url',
    'is_valid_url',
    'CanvasCredentials',
    'resolve_canvas_credentials',
    'get_canvas_credentials',
    'GradingWorkflow',
    'ensure_user',
    'canvas_router',
]
