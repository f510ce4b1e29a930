"""AI-drafted grade and feedback suggestions."""
from .llm import CompletionBackend, OpenAICompletionBackend, get_completion_backend
from .suggestions import build_grading_prompt, parse_grading_response, generate_grading_suggestion
from .router import router as ai_router

__all__ = [
    'CompletionBackend',
    'OpenAICompletionBackend',
    'get_completion_backend',
    'build_grading_prompt',
    'parse_grading_response',
    'generate_grading_suggestion',
    'ai_router',
]
