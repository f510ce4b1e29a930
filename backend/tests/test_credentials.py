"""Tests for Canvas credential resolution."""

import pytest
from sqlalchemy.exc import OperationalError

from canvas_grader.canvas import credentials as credentials_module
from canvas_grader.canvas.credentials import (
    CanvasCredentials, from_settings_table, get_canvas_credentials, resolve_canvas_credentials
)
from canvas_grader.errors import CREDENTIALS_MISSING_MESSAGE, CredentialsNotFoundError
from canvas_grader.models import UserSettings


def save_metadata(db_session, user, **values):
    user.update_metadata(**values)
    db_session.commit()


def test_settings_row_wins_over_metadata(db_session, test_user):
    db_session.add(UserSettings(
        user_id=test_user.id,
        canvas_url="https://table.example.edu/",
        canvas_token="table-token",
    ))
    save_metadata(db_session, test_user, canvas_url="https://meta.example.edu/", canvas_token="meta-token")

    assert resolve_canvas_credentials(db_session, test_user) == CanvasCredentials(
        canvas_url="https://table.example.edu/", canvas_token="table-token"
    )


def test_metadata_used_when_no_settings_row(db_session, test_user):
    save_metadata(db_session, test_user, canvas_url="https://meta.example.edu/", canvas_token="meta-token")

    assert resolve_canvas_credentials(db_session, test_user) == CanvasCredentials(
        canvas_url="https://meta.example.edu/", canvas_token="meta-token"
    )


def test_incomplete_settings_row_falls_through(db_session, test_user):
    db_session.add(UserSettings(user_id=test_user.id, canvas_url="https://table.example.edu/"))
    save_metadata(db_session, test_user, canvas_url="https://meta.example.edu/", canvas_token="meta-token")

    assert resolve_canvas_credentials(db_session, test_user).canvas_token == "meta-token"


def test_partial_metadata_is_not_credentials(db_session, test_user):
    save_metadata(db_session, test_user, canvas_url="https://meta.example.edu/")

    assert resolve_canvas_credentials(db_session, test_user) is None


def test_no_credentials(db_session, test_user):
    assert resolve_canvas_credentials(db_session, test_user) is None


def test_settings_read_failure_falls_back_to_metadata(db_session, test_user, monkeypatch):
    save_metadata(db_session, test_user, canvas_url="https://meta.example.edu/", canvas_token="meta-token")

    def broken_query(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("no such table: user_settings"))

    monkeypatch.setattr(db_session, "query", broken_query)

    assert from_settings_table(db_session, test_user) is None
    assert resolve_canvas_credentials(db_session, test_user).canvas_url == "https://meta.example.edu/"


def test_sources_are_tried_in_order(db_session, test_user, monkeypatch):
    seen = []

    def first(db, user):
        seen.append("first")
        return None

    def second(db, user):
        seen.append("second")
        return CanvasCredentials("https://x.example.edu/", "t")

    def third(db, user):
        seen.append("third")
        return None

    monkeypatch.setattr(credentials_module, "CREDENTIAL_SOURCES", [first, second, third])

    assert resolve_canvas_credentials(db_session, test_user).canvas_token == "t"
    assert seen == ["first", "second"]


def test_dependency_raises_when_missing(db_session, test_user):
    with pytest.raises(CredentialsNotFoundError) as exc_info:
        get_canvas_credentials(current_user=test_user, db=db_session)

    assert exc_info.value.status_code == 400
    assert exc_info.value.to_body() == {"error": CREDENTIALS_MISSING_MESSAGE}
