"""Answer feedback services."""

from .base import FeedbackService, FeedbackServiceError
from .dummy import DummyFeedbackService
from .prompts import InvalidFeedbackError, build_feedback_prompt, parse_feedback

__all__ = [
    "DummyFeedbackService",
    "FeedbackService",
    "FeedbackServiceError",
    "InvalidFeedbackError",
    "build_feedback_prompt",
    "parse_feedback",
]
