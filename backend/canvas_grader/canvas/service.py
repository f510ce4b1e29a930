"""Grading workflow: Canvas lookups shaped for the grading screens."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Union

from canvas_grader.errors import CanvasApiError, NotFoundError
from .client import CanvasApiClient

logger = logging.getLogger(__name__)

DEFAULT_ASSIGNMENT_INCLUDE = ["submission_count", "overrides"]
DEFAULT_SUBMISSIONS_INCLUDE = ["user"]
DEFAULT_SUBMISSION_INCLUDE = ["user", "submission_comments"]


def placeholder_user(user_id) -> Dict[str, Any]:
    name = f"Student {user_id}"
    return {
        "id": user_id,
        "name": name,
        "sortable_name": name,
        "avatar_url": "",
    }


def ensure_user(submission: Dict[str, Any], user_id) -> Dict[str, Any]:
    """Return the submission with a non-empty ``user``, synthesizing one if needed."""
    if submission.get("user"):
        return submission
    logger.warning("Submission missing user data, creating minimal user object")
    return {**submission, "user": placeholder_user(user_id)}


def placeholder_submission(assignment_id, user_id) -> Dict[str, Any]:
    return {
        "id": "unknown",
        "user_id": user_id,
        "assignment_id": assignment_id,
        "user": placeholder_user(user_id),
    }


@dataclass
class FullSubmission:
    submission: Dict[str, Any]

    def to_body(self) -> Dict[str, Any]:
        return {"submission": self.submission}


@dataclass
class PartialSubmission:
    """The submission could not be loaded but its assignment could."""
    assignment: Dict[str, Any]
    submission: Dict[str, Any]
    error: str = "Failed to fetch submission details"

    def to_body(self) -> Dict[str, Any]:
        return {
            "error": self.error,
            "assignment": self.assignment,
            "submission": self.submission,
        }


@dataclass
class SubmissionNotFound:
    error: str = "Submission not found"
    cause: Optional[str] = field(default=None, repr=False)


SubmissionResult = Union[FullSubmission, PartialSubmission, SubmissionNotFound]


class GradingWorkflow:
    """Course, assignment and submission operations for one Canvas user."""

    def __init__(self, client: CanvasApiClient):
        self.client = client

    def list_courses(
        self,
        include: Optional[Iterable[str]] = None,
        enrollment_state: str = "active",
        state: Optional[Iterable[str]] = None,
        enrollment_type: str = "teacher",
    ) -> list:
        return self.client.get_courses(
            include=include or [],
            enrollment_state=enrollment_state,
            state=state or ["available"],
            enrollment_type=enrollment_type,
        )

    def get_course(self, course_id, include: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        course = self.client.get_course(course_id, include=include)
        if not course:
            raise NotFoundError("Course not found")
        return course

    def list_assignments(self, course_id) -> list:
        return self.client.get_course_assignments(course_id, include=DEFAULT_ASSIGNMENT_INCLUDE)

    def get_assignment(self, course_id, assignment_id) -> Dict[str, Any]:
        logger.info(f"Processing request for course {course_id}, assignment {assignment_id}")
        try:
            assignment = self.client.get_assignment(course_id, assignment_id)
        except CanvasApiError as e:
            raise NotFoundError(str(e) or "Assignment not found or inaccessible") from e
        if not assignment:
            raise NotFoundError("Assignment not found")
        return assignment

    def list_submissions(self, course_id, assignment_id, include: Optional[Iterable[str]] = None) -> list:
        return self.client.get_assignment_submissions(
            course_id, assignment_id, include=include or DEFAULT_SUBMISSIONS_INCLUDE
        )

    def get_submission(
        self,
        course_id,
        assignment_id,
        user_id,
        include: Optional[Iterable[str]] = None,
    ) -> SubmissionResult:
        """Fetch one submission, degrading to the assignment alone when that fails."""
        try:
            submission = self.client.get_submission(
                course_id, assignment_id, user_id, include=include or DEFAULT_SUBMISSION_INCLUDE
            )
        except Exception as submission_error:
            logger.error(f"Error fetching submission: {submission_error}")
            return self._assignment_fallback(course_id, assignment_id, user_id)

        if not submission:
            logger.error("Submission not found or returned empty")
            return SubmissionNotFound()
        return FullSubmission(ensure_user(submission, user_id))

    def _assignment_fallback(self, course_id, assignment_id, user_id) -> SubmissionResult:
        try:
            assignment = self.client.get_assignment(course_id, assignment_id)
        except Exception as assignment_error:
            logger.error(f"Error fetching assignment: {assignment_error}")
            return SubmissionNotFound(
                "Failed to fetch submission and assignment details", cause=str(assignment_error)
            )
        if not assignment:
            return SubmissionNotFound("Failed to fetch submission and assignment details")
        return PartialSubmission(
            assignment=assignment,
            submission=placeholder_submission(assignment_id, user_id),
        )

    def update_submission_grade(self, course_id, assignment_id, user_id, payload: Dict[str, Any]) -> Dict[str, Any]:
        logger.info(f"Posting grade for user {user_id} on assignment {assignment_id} in course {course_id}")
        return self.client.update_submission_grade(course_id, assignment_id, user_id, payload)
