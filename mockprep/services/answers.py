"""Score, persist and list interview answers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from ..data.models import UserAnswer, UserIdentity
from ..data.storage import AnswerStore
from ..logging import get_logger
from .feedback.base import FeedbackService

LOGGER = get_logger(__name__)


class UnauthorizedError(RuntimeError):
    """Raised when an answer operation has no authenticated user."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


@dataclass
class SubmittedAnswer:
    answer: UserAnswer
    rating: int
    feedback: str


def _require_email(user: Optional[UserIdentity]) -> str:
    if user is None or not user.email:
        raise UnauthorizedError()
    return user.email


class AnswerService:
    def __init__(self, store: AnswerStore, feedback: FeedbackService) -> None:
        self.store = store
        self.feedback = feedback

    async def submit_answer(
        self,
        user: Optional[UserIdentity],
        mock_id: str,
        question: str,
        correct_answer: str,
        user_answer: str,
        language: Optional[str] = None,
        video_url: Optional[str] = None,
    ) -> SubmittedAnswer:
        email = _require_email(user)
        result = await self.feedback.evaluate(question, correct_answer, user_answer, language)
        feedback_json = result.to_json()

        answer = UserAnswer(
            mock_id_ref=mock_id,
            question=question,
            correct_answer=correct_answer,
            user_answer=user_answer,
            feedback=feedback_json,
            rating=str(result.rating),
            user_email=email,
            created_at=datetime.now(timezone.utc).isoformat(),
            video_url=video_url,
        )
        stored = self.store.save_answer(answer)
        LOGGER.info("Stored answer %s for interview %s (rating %s)", stored.id, mock_id, result.rating)
        return SubmittedAnswer(answer=stored, rating=result.rating, feedback=feedback_json)

    def get_answers(self, user: Optional[UserIdentity], mock_id: str) -> List[UserAnswer]:
        return self.store.fetch_answers(mock_id, _require_email(user))

    def delete_answers(self, user: Optional[UserIdentity], mock_id: str) -> int:
        removed = self.store.delete_answers(mock_id, _require_email(user))
        LOGGER.info("Deleted %d answers for interview %s", removed, mock_id)
        return removed


__all__ = ["AnswerService", "SubmittedAnswer", "UnauthorizedError"]
