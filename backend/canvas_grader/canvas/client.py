"""Canvas LMS REST API client.

Every call goes through ``CanvasApiClient.request``, which builds
``<base>api/v1/<endpoint>``, attaches the bearer token and turns failures
into ``CanvasApiError`` with a readable message.
"""

import json
import logging
from typing import Any, Dict, Iterable, Optional
from urllib.parse import urlencode, urlparse

import requests

from canvas_grader.config import CANVAS_REQUEST_TIMEOUT
from canvas_grader.errors import CanvasApiError, CanvasConnectionError

logger = logging.getLogger(__name__)

API_PREFIX = "api/v1"
PER_PAGE = 100


def normalize_canvas_url(url: str) -> str:
    """Add an https scheme if none is present and end with exactly one slash."""
    normalized = url.strip()
    if not normalized.startswith(("http://", "https://")):
        normalized = f"https://{normalized}"
    return normalized.rstrip("/") + "/"


def is_valid_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if any(ch.isspace() for ch in url):
        return False
    return bool(parsed.scheme in ("http", "https") and parsed.netloc)


def _query_string(params: Dict[str, Any]) -> str:
    """Encode non-empty params; list values are joined with commas."""
    encoded = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            value = ",".join(str(v) for v in value)
        encoded[key] = value
    return urlencode(encoded)


def _with_query(path: str, params: Dict[str, Any]) -> str:
    query = _query_string(params)
    return f"{path}?{query}" if query else path


def _error_message(response: requests.Response) -> str:
    message = f"Canvas API error: {response.status_code} {response.reason}"
    try:
        data = response.json()
    except ValueError:
        return message
    errors = data.get("errors") if isinstance(data, dict) else None
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        return errors[0].get("message") or message
    return message


class CanvasApiClient:
    """Single seam between this service and one Canvas instance."""

    def __init__(self, canvas_url: str, token: str, timeout: Optional[float] = CANVAS_REQUEST_TIMEOUT):
        self.base_url = normalize_canvas_url(canvas_url)
        self.token = token
        self.timeout = timeout

    def build_url(self, endpoint: str) -> str:
        return f"{self.base_url}{API_PREFIX}/{endpoint.lstrip('/')}"

    def request(
        self,
        endpoint: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Any = None,
        throw_on_error: bool = True,
    ) -> Any:
        """Call a Canvas endpoint and return the decoded JSON body.

        With ``throw_on_error=False`` an error status is logged and ``None``
        returned instead of raising. A connection failure is always raised.
        """
        url = self.build_url(endpoint)
        request_headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        request_headers.update(headers or {})
        data = json.dumps(body) if body is not None else None

        logger.info(f"Making Canvas API request to: {url}")

        try:
            response = requests.request(
                method,
                url,
                headers=request_headers,
                data=data,
                timeout=self.timeout,
            )
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Canvas API request failed for {url}: {e}")
            raise CanvasConnectionError(
                f"Network error when connecting to Canvas API at {url}. "
                "Please check your Canvas URL and network connection."
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Canvas API request failed for {url}: {e}")
            message = f"Failed to connect to Canvas API: {e}"
            if throw_on_error:
                raise CanvasApiError(message) from e
            logger.warning(message)
            return None

        if not response.ok:
            message = _error_message(response)
            if throw_on_error:
                raise CanvasApiError(message, upstream_status=response.status_code)
            logger.warning(message)
            return None

        if not response.content:
            return None
        return response.json()

    # -----------------------------
    # Users
    # -----------------------------

    def get_current_user(self) -> Dict[str, Any]:
        return self.request("users/self")

    def get_user_by_id(self, user_id, throw_on_error: bool = False) -> Optional[Dict[str, Any]]:
        logger.info(f"Fetching user {user_id}")
        try:
            return self.request(f"users/{user_id}", throw_on_error=throw_on_error)
        except CanvasApiError as e:
            logger.error(f"Error fetching user {user_id}: {e}")
            raise

    # -----------------------------
    # Courses
    # -----------------------------

    def get_courses(
        self,
        include: Optional[Iterable[str]] = None,
        enrollment_state: Optional[str] = None,
        state: Optional[Iterable[str]] = None,
        enrollment_type: Optional[str] = None,
    ) -> list:
        endpoint = _with_query("courses", {
            "include": list(include or []),
            "enrollment_state": enrollment_state,
            "state": list(state or []),
            "enrollment_type": enrollment_type,
            "per_page": PER_PAGE,
        })
        return self.request(endpoint)

    def get_course(self, course_id, include: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        endpoint = _with_query(f"courses/{course_id}", {"include": list(include or [])})
        return self.request(endpoint)

    # -----------------------------
    # Assignments
    # -----------------------------

    def get_course_assignments(
        self,
        course_id,
        include: Optional[Iterable[str]] = None,
        bucket: Optional[str] = None,
        assignment_ids: Optional[Iterable] = None,
    ) -> list:
        endpoint = _with_query(f"courses/{course_id}/assignments", {
            "include": list(include or []),
            "bucket": bucket,
            "assignment_ids": list(assignment_ids or []),
            "per_page": PER_PAGE,
        })
        return self.request(endpoint)

    def get_assignment(self, course_id, assignment_id) -> Dict[str, Any]:
        logger.info(f"Fetching assignment {assignment_id} for course {course_id}")
        try:
            return self.request(f"courses/{course_id}/assignments/{assignment_id}")
        except CanvasApiError as e:
            logger.error(f"Error fetching assignment {assignment_id}: {e}")
            raise

    # -----------------------------
    # Submissions
    # -----------------------------

    def get_assignment_submissions(self, course_id, assignment_id, include: Optional[Iterable[str]] = None) -> list:
        endpoint = _with_query(
            f"courses/{course_id}/assignments/{assignment_id}/submissions",
            {"include": list(include or []), "per_page": PER_PAGE},
        )
        return self.request(endpoint)

    def get_submission(self, course_id, assignment_id, user_id, include: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        endpoint = _with_query(
            f"courses/{course_id}/assignments/{assignment_id}/submissions/{user_id}",
            {"include": list(include or [])},
        )
        return self.request(endpoint)

    def update_submission_grade(self, course_id, assignment_id, user_id, data: Dict[str, Any]) -> Dict[str, Any]:
        """PUT the posted grade (and optional text comment) for one student."""
        endpoint = f"courses/{course_id}/assignments/{assignment_id}/submissions/{user_id}"
        return self.request(endpoint, method="PUT", body=data)

    # -----------------------------
    # Connection check
    # -----------------------------

    def test_connection(self) -> Dict[str, Any]:
        user = self.get_current_user() or {}
        return {
            "success": True,
            "user": {
                "id": user.get("id"),
                "name": user.get("name"),
                "email": user.get("email") or user.get("login_id"),
                "avatar_url": user.get("avatar_url"),
            },
        }


def create_canvas_api_client(canvas_url: str, token: str) -> CanvasApiClient:
    return CanvasApiClient(canvas_url, token)
