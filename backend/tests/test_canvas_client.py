"""Tests for the Canvas REST client."""

import pytest
import requests

from canvas_grader.canvas.client import (
    CanvasApiClient, create_canvas_api_client, is_valid_url, normalize_canvas_url
)
from canvas_grader.errors import CanvasApiError, CanvasConnectionError

from conftest import FakeCanvasResponse


@pytest.mark.parametrize("raw, expected", [
    ("canvas.example.edu", "https://canvas.example.edu/"),
    ("https://canvas.example.edu", "https://canvas.example.edu/"),
    ("https://canvas.example.edu/", "https://canvas.example.edu/"),
    ("https://canvas.example.edu///", "https://canvas.example.edu/"),
    ("http://localhost:3000", "http://localhost:3000/"),
    ("  canvas.example.edu/  ", "https://canvas.example.edu/"),
])
def test_normalize_canvas_url(raw, expected):
    assert normalize_canvas_url(raw) == expected


@pytest.mark.parametrize("url, valid", [
    ("https://canvas.example.edu", True),
    ("http://localhost:3000/", True),
    ("canvas.example.edu", False),
    ("ftp://canvas.example.edu", False),
    ("https://", False),
    ("https://canvas example.edu", False),
])
def test_is_valid_url(url, valid):
    assert is_valid_url(url) is valid


def test_build_url():
    client = CanvasApiClient("canvas.example.edu", "tok")
    assert client.build_url("users/self") == "https://canvas.example.edu/api/v1/users/self"
    assert client.build_url("/courses/1") == "https://canvas.example.edu/api/v1/courses/1"


def test_request_sends_bearer_token_and_json_headers(fake_canvas):
    fake_canvas.add("GET", "users/self", FakeCanvasResponse(payload={"id": 1}))
    client = create_canvas_api_client("https://canvas.example.edu", "secret-token")

    assert client.request("users/self") == {"id": 1}

    call = fake_canvas.calls[0]
    assert call["url"] == "https://canvas.example.edu/api/v1/users/self"
    assert call["headers"]["Authorization"] == "Bearer secret-token"
    assert call["headers"]["Accept"] == "application/json"
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["body"] is None


def test_request_merges_caller_headers(fake_canvas):
    fake_canvas.add("GET", "users/self", FakeCanvasResponse(payload={}))
    client = CanvasApiClient("https://canvas.example.edu", "tok")

    client.request("users/self", headers={"X-Request-Id": "abc"})

    headers = fake_canvas.calls[0]["headers"]
    assert headers["X-Request-Id"] == "abc"
    assert headers["Authorization"] == "Bearer tok"


def test_request_uses_configured_timeout(fake_canvas):
    fake_canvas.add("GET", "users/self", FakeCanvasResponse(payload={}))

    CanvasApiClient("https://canvas.example.edu", "tok", timeout=5.0).request("users/self")

    assert fake_canvas.calls[0]["timeout"] == 5.0


def test_error_message_taken_from_canvas_errors(fake_canvas):
    fake_canvas.add("GET", "courses/1", FakeCanvasResponse(
        401, {"errors": [{"message": "Invalid access token."}]}, reason="Unauthorized"
    ))
    client = CanvasApiClient("https://canvas.example.edu", "tok")

    with pytest.raises(CanvasApiError) as exc_info:
        client.request("courses/1")

    assert str(exc_info.value) == "Invalid access token."
    assert exc_info.value.upstream_status == 401


def test_error_message_falls_back_to_status_line(fake_canvas):
    fake_canvas.add("GET", "courses/1", FakeCanvasResponse(
        500, text="<html>oops</html>", reason="Internal Server Error"
    ))
    client = CanvasApiClient("https://canvas.example.edu", "tok")

    with pytest.raises(CanvasApiError) as exc_info:
        client.request("courses/1")

    assert str(exc_info.value) == "Canvas API error: 500 Internal Server Error"


def test_error_status_returns_none_when_not_throwing(fake_canvas):
    client = CanvasApiClient("https://canvas.example.edu", "tok")

    assert client.request("users/42", throw_on_error=False) is None
    assert client.get_user_by_id(42) is None


def test_connection_failure_is_always_raised(fake_canvas):
    fake_canvas.add("GET", "users/self", requests.exceptions.ConnectionError("Name or service not known"))
    client = CanvasApiClient("https://canvas.example.edu", "tok")

    with pytest.raises(CanvasConnectionError) as exc_info:
        client.request("users/self", throw_on_error=False)

    message = str(exc_info.value)
    assert "Network error when connecting to Canvas API at https://canvas.example.edu/api/v1/users/self" in message
    assert "Please check your Canvas URL and network connection." in message


def test_other_transport_errors(fake_canvas):
    fake_canvas.add("GET", "users/self", requests.exceptions.Timeout("read timed out"))
    client = CanvasApiClient("https://canvas.example.edu", "tok")

    with pytest.raises(CanvasApiError) as exc_info:
        client.request("users/self")
    assert str(exc_info.value) == "Failed to connect to Canvas API: read timed out"

    assert client.request("users/self", throw_on_error=False) is None


def test_empty_body_returns_none(fake_canvas):
    fake_canvas.add("PUT", "courses/1", FakeCanvasResponse(204, reason="No Content"))
    client = CanvasApiClient("https://canvas.example.edu", "tok")

    assert client.request("courses/1", method="PUT", body={"x": 1}) is None
    assert fake_canvas.calls[0]["body"] == {"x": 1}


def test_get_courses_query(fake_canvas):
    fake_canvas.add("GET", "courses", FakeCanvasResponse(payload=[{"id": 1}]))
    client = CanvasApiClient("https://canvas.example.edu", "tok")

    courses = client.get_courses(
        include=["term", "total_students"],
        enrollment_state="active",
        state=["available"],
        enrollment_type="teacher",
    )

    assert courses == [{"id": 1}]
    call = fake_canvas.calls[0]
    assert "include=term%2Ctotal_students" in call["url"]
    assert call["query"] == {
        "include": ["term,total_students"],
        "enrollment_state": ["active"],
        "state": ["available"],
        "enrollment_type": ["teacher"],
        "per_page": ["100"],
    }


def test_get_course_without_include_has_no_query(fake_canvas):
    fake_canvas.add("GET", "courses/7", FakeCanvasResponse(payload={"id": 7}))
    client = CanvasApiClient("https://canvas.example.edu", "tok")

    assert client.get_course(7) == {"id": 7}
    assert fake_canvas.calls[0]["url"] == "https://canvas.example.edu/api/v1/courses/7"


def test_get_course_assignments_query(fake_canvas):
    fake_canvas.add("GET", "courses/7/assignments", FakeCanvasResponse(payload=[]))
    client = CanvasApiClient("https://canvas.example.edu", "tok")

    client.get_course_assignments(7, include=["submission_count"], bucket="ungraded", assignment_ids=[1, 2])

    assert fake_canvas.calls[0]["query"] == {
        "include": ["submission_count"],
        "bucket": ["ungraded"],
        "assignment_ids": ["1,2"],
        "per_page": ["100"],
    }


def test_get_submission_paths(fake_canvas):
    fake_canvas.add("GET", "courses/7/assignments/3/submissions", FakeCanvasResponse(payload=[]))
    fake_canvas.add("GET", "courses/7/assignments/3/submissions/9", FakeCanvasResponse(payload={"id": 5}))
    client = CanvasApiClient("https://canvas.example.edu", "tok")

    client.get_assignment_submissions(7, 3, include=["user"])
    assert client.get_submission(7, 3, 9, include=["user", "submission_comments"]) == {"id": 5}

    assert fake_canvas.calls[0]["query"] == {"include": ["user"], "per_page": ["100"]}
    assert fake_canvas.calls[1]["query"] == {"include": ["user,submission_comments"]}


def test_update_submission_grade_sends_put(fake_canvas):
    fake_canvas.add("PUT", "courses/7/assignments/3/submissions/9", FakeCanvasResponse(payload={"score": 95}))
    client = CanvasApiClient("https://canvas.example.edu", "tok")
    payload = {"submission": {"posted_grade": "95"}, "comment": {"text_comment": "Nice work"}}

    assert client.update_submission_grade(7, 3, 9, payload) == {"score": 95}
    assert fake_canvas.calls[0]["method"] == "PUT"
    assert fake_canvas.calls[0]["body"] == payload


def test_test_connection_reshapes_user(fake_canvas):
    fake_canvas.add("GET", "users/self", FakeCanvasResponse(payload={
        "id": 12,
        "name": "Ada Lovelace",
        "login_id": "ada@example.edu",
        "avatar_url": "https://canvas.example.edu/avatar.png",
        "locale": "en",
    }))
    client = CanvasApiClient("https://canvas.example.edu", "tok")

    assert client.test_connection() == {
        "success": True,
        "user": {
            "id": 12,
            "name": "Ada Lovelace",
            "email": "ada@example.edu",
            "avatar_url": "https://canvas.example.edu/avatar.png",
        },
    }
