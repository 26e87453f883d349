"""Dummy feedback generator for offline usage."""

from __future__ import annotations

from typing import Optional

from ...data.models import Competencies, Feedback
from .base import FeedbackService


class DummyFeedbackService(FeedbackService):
    async def evaluate(
        self,
        question: str,
        correct_answer: str,
        user_answer: str,
        language: Optional[str] = None,
    ) -> Feedback:
        words = len(user_answer.split())
        score = 1 if words == 0 else 2 if words < 10 else 3
        return Feedback(
            rating=score,
            competencies=Competencies(
                technical_knowledge=score,
                communication_clarity=score,
                problem_solving=score,
                relevance=score,
            ),
            strengths=f"Answered with {words} words.",
            improvements="Replace the dummy feedback backend with a real model for meaningful scores.",
            suggested_answer=correct_answer or "No expected answer provided.",
        )


__all__ = ["DummyFeedbackService"]
