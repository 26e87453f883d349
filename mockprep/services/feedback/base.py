"""Answer feedback service abstractions."""

from __future__ import annotations

import abc
from typing import Optional

from ...data.models import Feedback


class FeedbackServiceError(RuntimeError):
    """Raised when the scoring backend cannot be reached or rejects the request."""


class FeedbackService(abc.ABC):
    @abc.abstractmethod
    async def evaluate(
        self,
        question: str,
        correct_answer: str,
        user_answer: str,
        language: Optional[str] = None,
    ) -> Feedback:
        raise NotImplementedError


__all__ = ["FeedbackService", "FeedbackServiceError"]
