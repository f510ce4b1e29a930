"""Canvas Grader API: Canvas LMS browsing and AI-assisted grading for instructors."""

__version__ = "0.1.0"
