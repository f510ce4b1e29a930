"""Canvas routes consumed by the grading front end."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from canvas_grader.errors import (
    BadRequestError, CanvasApiError, CanvasGraderError, NotFoundError, internal_error
)
from .client import CanvasApiClient, create_canvas_api_client, is_valid_url, normalize_canvas_url
from .credentials import CanvasCredentials, get_canvas_credentials
from .schemas import ConnectionCheckRequest, GradeUpdateRequest
from .service import FullSubmission, GradingWorkflow, PartialSubmission

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/canvas", tags=["Canvas"])


def get_canvas_client(credentials: CanvasCredentials = Depends(get_canvas_credentials)) -> CanvasApiClient:
    """Dependency: a Canvas client bound to the current user's credentials."""
    return create_canvas_api_client(credentials.canvas_url, credentials.canvas_token)


def get_grading_workflow(client: CanvasApiClient = Depends(get_canvas_client)) -> GradingWorkflow:
    return GradingWorkflow(client)


def _split(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    return [part for part in value.split(",") if part]


@router.get("/courses")
def list_courses(
    include: Optional[str] = Query(default=None),
    enrollment_state: str = Query(default="active"),
    state: Optional[str] = Query(default=None),
    enrollment_type: str = Query(default="teacher"),
    workflow: GradingWorkflow = Depends(get_grading_workflow),
):
    """List the courses the user teaches."""
    try:
        courses = workflow.list_courses(
            include=_split(include),
            enrollment_state=enrollment_state,
            state=_split(state),
            enrollment_type=enrollment_type,
        )
        return {"courses": courses}
    except CanvasGraderError:
        raise
    except Exception as e:
        logger.error(f"Error fetching Canvas courses: {e}")
        raise internal_error(e)


@router.get("/courses/{course_id}")
def get_course(
    course_id: str,
    include: Optional[str] = Query(default=None),
    workflow: GradingWorkflow = Depends(get_grading_workflow),
):
    try:
        return {"course": workflow.get_course(course_id, include=_split(include))}
    except CanvasGraderError:
        raise
    except Exception as e:
        logger.error(f"Error fetching Canvas course {course_id}: {e}")
        raise internal_error(e)


@router.get("/courses/{course_id}/assignments")
def list_assignments(course_id: str, workflow: GradingWorkflow = Depends(get_grading_workflow)):
    try:
        return {"assignments": workflow.list_assignments(course_id)}
    except CanvasGraderError:
        raise
    except Exception as e:
        logger.error(f"Error fetching Canvas assignments: {e}")
        raise internal_error(e)


@router.get("/courses/{course_id}/assignments/{assignment_id}")
def get_assignment(course_id: str, assignment_id: str, workflow: GradingWorkflow = Depends(get_grading_workflow)):
    try:
        return {"assignment": workflow.get_assignment(course_id, assignment_id)}
    except CanvasGraderError:
        raise
    except Exception as e:
        logger.error(f"Error in assignment route: {e}")
        raise internal_error(e)


@router.get("/courses/{course_id}/assignments/{assignment_id}/submissions")
def list_submissions(
    course_id: str,
    assignment_id: str,
    include: Optional[str] = Query(default=None),
    workflow: GradingWorkflow = Depends(get_grading_workflow),
):
    try:
        submissions = workflow.list_submissions(course_id, assignment_id, include=_split(include))
        return {"submissions": submissions}
    except CanvasGraderError:
        raise
    except Exception as e:
        logger.error(f"Error fetching Canvas submissions: {e}")
        raise internal_error(e)


@router.get("/courses/{course_id}/assignments/{assignment_id}/submissions/{user_id}")
def get_submission(
    course_id: str,
    assignment_id: str,
    user_id: str,
    include: Optional[str] = Query(default=None),
    workflow: GradingWorkflow = Depends(get_grading_workflow),
):
    """Fetch one student's submission.

    When Canvas cannot return the submission but the assignment is
    reachable, the response is still a 200 carrying the assignment, a
    placeholder submission and an ``error`` marker.
    """
    try:
        result = workflow.get_submission(course_id, assignment_id, user_id, include=_split(include))
    except CanvasGraderError:
        raise
    except Exception as e:
        logger.error(f"Error in submission route: {e}")
        raise internal_error(e)

    if isinstance(result, (FullSubmission, PartialSubmission)):
        return result.to_body()
    raise NotFoundError(result.error)


@router.put("/courses/{course_id}/assignments/{assignment_id}/submissions/{user_id}")
def update_submission_grade(
    course_id: str,
    assignment_id: str,
    user_id: str,
    payload: GradeUpdateRequest,
    workflow: GradingWorkflow = Depends(get_grading_workflow),
):
    """Post a grade, and optionally a text comment, back to Canvas."""
    try:
        submission = workflow.update_submission_grade(
            course_id, assignment_id, user_id, payload.model_dump(exclude_unset=True)
        )
        return {"submission": submission}
    except CanvasGraderError:
        raise
    except Exception as e:
        logger.error(f"Error updating submission grade: {e}")
        raise internal_error(e)


@router.post("/test-connection")
def test_connection(request: ConnectionCheckRequest):
    """Check a Canvas URL and token pair before it is saved."""
    if not request.canvas_url or not request.canvas_token:
        raise BadRequestError("Canvas URL and API token are required")
    if not is_valid_url(request.canvas_url) and not is_valid_url(f"https://{request.canvas_url}"):
        raise BadRequestError("Please enter a valid Canvas URL")

    client = create_canvas_api_client(normalize_canvas_url(request.canvas_url), request.canvas_token)
    try:
        return client.test_connection()
    except CanvasApiError as e:
        raise BadRequestError(str(e) or "Failed to connect to Canvas") from e
    except Exception as e:
        logger.error(f"Canvas test connection error: {e}")
        raise internal_error(e)
