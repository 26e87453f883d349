import json
import sqlite3
from types import SimpleNamespace

import pytest

from conftest import StaticFeedbackService
from mockprep.data.models import UserIdentity
from mockprep.data.storage import AnswerStore
from mockprep.services.answers import AnswerService, UnauthorizedError
from mockprep.services.feedback.openai_feedback import OpenAIFeedbackService
from mockprep.services.feedback.prompts import InvalidFeedbackError

QUESTION = "How do you design a REST API?"
EXPECTED = "Use resources, HTTP verbs and status codes."
ANSWER = "REST APIs use resource-based URLs and HTTP methods like GET and POST"

MODEL_REPLY = """```json
{
  "rating": 4,
  "competencies": {
    "technicalKnowledge": 4,
    "communicationClarity": 4,
    "problemSolving": 3,
    "relevance": 5
  },
  "strengths": "Correctly identifies resource URLs.",
  "improvements": "Mention status codes.",
  "suggestedAnswer": "Model resources as nouns, use verbs for actions and meaningful status codes."
}
```"""


class FakeCompletions:
    async def create(self, **kwargs):
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=MODEL_REPLY))])


@pytest.fixture()
def store(tmp_path) -> AnswerStore:
    store = AnswerStore(tmp_path / "mockprep.db")
    store.initialize()
    return store


@pytest.mark.asyncio
async def test_submit_answer_persists_rating_and_feedback(store) -> None:
    feedback = OpenAIFeedbackService(client=SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions())))
    service = AnswerService(store, feedback)
    user = UserIdentity(email="candidate@example.com")

    result = await service.submit_answer(user, "mock-1", QUESTION, EXPECTED, ANSWER, language="en")

    assert result.rating == 4
    stored = service.get_answers(user, "mock-1")
    assert len(stored) == 1
    assert stored[0].rating == "4"
    assert stored[0].user_answer == ANSWER
    assert stored[0].user_email == "candidate@example.com"
    assert stored[0].id == result.answer.id
    assert json.loads(stored[0].feedback)["competencies"]["relevance"] == 5
    assert stored[0].parsed_feedback().improvements == "Mention status codes."


@pytest.mark.asyncio
async def test_submit_answer_records_video_url(store) -> None:
    service = AnswerService(store, StaticFeedbackService())
    user = UserIdentity(email="candidate@example.com")

    await service.submit_answer(user, "mock-1", QUESTION, EXPECTED, ANSWER, video_url="https://cdn/1.webm")

    assert service.get_answers(user, "mock-1")[0].video_url == "https://cdn/1.webm"


@pytest.mark.asyncio
async def test_submit_answer_requires_identity(store) -> None:
    feedback = StaticFeedbackService()
    service = AnswerService(store, feedback)

    with pytest.raises(UnauthorizedError, match="Unauthorized"):
        await service.submit_answer(UserIdentity(), "mock-1", QUESTION, EXPECTED, ANSWER)
    with pytest.raises(UnauthorizedError):
        await service.submit_answer(None, "mock-1", QUESTION, EXPECTED, ANSWER)

    assert feedback.calls == []
    with sqlite3.connect(store.path) as conn:
        assert conn.execute("SELECT COUNT(*) FROM user_answers").fetchone()[0] == 0


@pytest.mark.asyncio
async def test_invalid_feedback_is_not_persisted(store) -> None:
    service = AnswerService(store, StaticFeedbackService(error=InvalidFeedbackError("bad json")))
    user = UserIdentity(email="candidate@example.com")

    with pytest.raises(InvalidFeedbackError):
        await service.submit_answer(user, "mock-1", QUESTION, EXPECTED, ANSWER)

    assert service.get_answers(user, "mock-1") == []


@pytest.mark.asyncio
async def test_answers_are_scoped_per_user(store) -> None:
    service = AnswerService(store, StaticFeedbackService())
    alice = UserIdentity(email="alice@example.com")
    bob = UserIdentity(email="bob@example.com")

    await service.submit_answer(alice, "mock-1", QUESTION, EXPECTED, ANSWER)
    await service.submit_answer(bob, "mock-1", QUESTION, EXPECTED, ANSWER)

    assert len(service.get_answers(alice, "mock-1")) == 1
    assert service.delete_answers(alice, "mock-1") == 1
    assert service.get_answers(alice, "mock-1") == []
    assert len(service.get_answers(bob, "mock-1")) == 1
    with pytest.raises(UnauthorizedError):
        service.get_answers(UserIdentity(), "mock-1")
