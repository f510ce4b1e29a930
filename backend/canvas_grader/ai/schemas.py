"""Request and result shapes for AI grading."""
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class GradeSubmissionRequest(BaseModel):
    assignment_description: Optional[str] = Field(default=None, alias="assignmentDescription")
    submission_content: Optional[str] = Field(default=None, alias="submissionContent")
    points_possible: Optional[Union[float, str]] = Field(default=None, alias="pointsPossible")
    rubric: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class AIGrading(BaseModel):
    """Grade suggestion returned by the model; never persisted.

    Parsing is strict: model output missing any of the five keys is rejected
    as malformed (500 with ``rawResponse``), and keys outside this shape are
    dropped from the response.
    """
    grade: float
    feedback: str
    strengths: List[str]
    areas_for_improvement: List[str] = Field(alias="areasForImprovement")
    summary: str

    model_config = ConfigDict(populate_by_name=True)
