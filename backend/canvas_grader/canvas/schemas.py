"""Request bodies for the Canvas routes."""
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt


class SubmissionComment(BaseModel):
    text_comment: str

    model_config = ConfigDict(extra="allow")


class SubmissionGrade(BaseModel):
    # Strict numbers keep 95 an int and 88.5 a float on the way to Canvas
    posted_grade: Union[StrictInt, StrictFloat, str]
    comment: Optional[SubmissionComment] = None

    model_config = ConfigDict(extra="allow")


class GradeUpdateRequest(BaseModel):
    """Forwarded to Canvas as-is, including any Canvas fields not named here."""
    submission: SubmissionGrade

    model_config = ConfigDict(extra="allow")


class ConnectionCheckRequest(BaseModel):
    canvas_url: Optional[str] = Field(default=None, alias="canvasUrl")
    canvas_token: Optional[str] = Field(default=None, alias="canvasToken")

    model_config = ConfigDict(populate_by_name=True)
