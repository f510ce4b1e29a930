"""Prompt construction and response parsing for AI grading suggestions."""

import json
import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from canvas_grader.config import AI_GRADING_MAX_TOKENS, AI_GRADING_TEMPERATURE
from canvas_grader.errors import BadRequestError, MalformedModelResponseError
from .llm import CompletionBackend
from .schemas import AIGrading, GradeSubmissionRequest

logger = logging.getLogger(__name__)

DEFAULT_POINTS = 100

_GRADING_PROMPT = """
You are an expert educational assistant helping a teacher grade a student submission.

ASSIGNMENT DESCRIPTION:
{description}

POINTS POSSIBLE: {points_label}

{rubric_section}

STUDENT SUBMISSION:
{submission}

Evaluate this submission thoroughly. Your evaluation must include:

1. A suggested grade (out of {points_scale} points)
2. Detailed feedback explaining the grade, covering strengths and areas for improvement
3. Specific references to the submission content that justify the evaluation
4. Constructive suggestions for improvement

Respond with a JSON object of exactly this structure:
{{
  "grade": number,
  "feedback": "detailed feedback text",
  "strengths": ["strength1", "strength2", ...],
  "areasForImprovement": ["area1", "area2", ...],
  "summary": "brief summary of evaluation"
}}
"""


def _format_points(points: Union[float, str, None]) -> Optional[str]:
    if points is None or points == "":
        return None
    if isinstance(points, float) and points.is_integer():
        return str(int(points))
    return str(points)


def build_grading_prompt(
    assignment_description: str,
    submission_content: str,
    points_possible: Union[float, str, None] = None,
    rubric: Optional[str] = None,
) -> str:
    """Embed the inputs verbatim in the fixed grading template."""
    points = _format_points(points_possible)
    return _GRADING_PROMPT.format(
        description=assignment_description,
        points_label=points or "Not specified",
        rubric_section=f"RUBRIC:\n{rubric}" if rubric else "",
        submission=submission_content,
        points_scale=points or DEFAULT_POINTS,
    )


def parse_grading_response(text: str) -> Dict[str, Any]:
    """Strictly parse the model output; the raw text travels with any failure."""
    try:
        data = json.loads(text)
        grading = AIGrading.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Error parsing AI response: {e}")
        raise MalformedModelResponseError(text) from e
    return grading.model_dump(by_alias=True)


def generate_grading_suggestion(request: GradeSubmissionRequest, backend: CompletionBackend) -> Dict[str, Any]:
    if not request.assignment_description or not request.submission_content:
        raise BadRequestError("Assignment description and submission content are required")

    prompt = build_grading_prompt(
        request.assignment_description,
        request.submission_content,
        request.points_possible,
        request.rubric,
    )
    text = backend.complete(
        prompt,
        temperature=AI_GRADING_TEMPERATURE,
        max_tokens=AI_GRADING_MAX_TOKENS,
    )
    return parse_grading_response(text)
