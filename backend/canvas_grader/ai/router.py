"""AI grading suggestion route."""
import logging

from fastapi import APIRouter, Depends

from canvas_grader.errors import CanvasGraderError, internal_error
from .llm import CompletionBackend, get_completion_backend
from .schemas import GradeSubmissionRequest
from .suggestions import generate_grading_suggestion

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI Grading"])


@router.post("/grade-submission")
def grade_submission(
    request: GradeSubmissionRequest,
    backend: CompletionBackend = Depends(get_completion_backend),
):
    """Draft a grade and feedback for one submission; nothing is posted to Canvas."""
    try:
        return generate_grading_suggestion(request, backend)
    except CanvasGraderError:
        raise
    except Exception as e:
        logger.error(f"Error in AI grading: {e}")
        raise internal_error(e)
