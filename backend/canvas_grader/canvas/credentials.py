"""Locate the Canvas URL and API token for an authenticated user.

Sources are tried in order and the first complete pair wins: the
user_settings row, then the Canvas fields mirrored into the user's
metadata bag.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from canvas_grader.auth.models import User
from canvas_grader.auth.service import get_current_active_user
from canvas_grader.database import get_db
from canvas_grader.errors import CredentialsNotFoundError
from canvas_grader.models.settings import UserSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CanvasCredentials:
    canvas_url: str
    canvas_token: str


def _pair(url, token) -> Optional[CanvasCredentials]:
    if url and token:
        return CanvasCredentials(canvas_url=url, canvas_token=token)
    return None


def from_settings_table(db: Session, user: User) -> Optional[CanvasCredentials]:
    try:
        row = db.query(UserSettings).filter(UserSettings.user_id == user.id).first()
    except SQLAlchemyError as e:
        logger.warning(f"Error reading user_settings for user {user.id}, trying user metadata: {e}")
        db.rollback()
        return None
    if row is None:
        return None
    return _pair(row.canvas_url, row.canvas_token)


def from_user_metadata(db: Session, user: User) -> Optional[CanvasCredentials]:
    metadata = user.user_metadata or {}
    return _pair(metadata.get("canvas_url"), metadata.get("canvas_token"))


CredentialSource = Callable[[Session, User], Optional[CanvasCredentials]]

CREDENTIAL_SOURCES: List[CredentialSource] = [
    from_settings_table,
    from_user_metadata,
]


def resolve_canvas_credentials(db: Session, user: User) -> Optional[CanvasCredentials]:
    for source in CREDENTIAL_SOURCES:
        credentials = source(db, user)
        if credentials is not None:
            return credentials
    return None


def get_canvas_credentials(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> CanvasCredentials:
    """Dependency: the user's Canvas credentials, or a 400 pointing at onboarding."""
    credentials = resolve_canvas_credentials(db, current_user)
    if credentials is None:
        raise CredentialsNotFoundError()
    logger.info(
        f"Using Canvas URL: {credentials.canvas_url} "
        f"(token length: {len(credentials.canvas_token)})"
    )
    return credentials
