import json
from types import SimpleNamespace

import pytest

from mockprep.services.feedback.base import FeedbackServiceError
from mockprep.services.feedback.dummy import DummyFeedbackService
from mockprep.services.feedback.openai_feedback import OpenAIFeedbackService
from mockprep.services.feedback.prompts import (
    INVALID_RESPONSE_MESSAGE,
    InvalidFeedbackError,
    build_feedback_prompt,
    clean_json_response,
    parse_feedback,
)

VALID = {
    "rating": 4,
    "competencies": {
        "technicalKnowledge": 4,
        "communicationClarity": 5,
        "problemSolving": 3,
        "relevance": 4,
    },
    "strengths": "Good coverage of resources.",
    "improvements": "Discuss status codes.",
    "suggestedAnswer": "Use nouns for resources and HTTP verbs for actions.",
}


class FakeCompletions:
    def __init__(self, content: str) -> None:
        self.content = content
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(content: str) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(content)))


def test_prompt_language_selection() -> None:
    english = build_feedback_prompt("What is REST?", "Resources", "Resource URLs", "en")
    korean = build_feedback_prompt("REST란?", "리소스", "리소스 URL", "ko")

    assert english.startswith("You are an expert interview coach.")
    assert 'User\'s Answer: "Resource URLs"' in english
    assert korean.startswith("당신은 전문 면접 코치입니다.")
    assert '지원자의 답변: "리소스 URL"' in korean
    assert build_feedback_prompt("q", "a", "u") == build_feedback_prompt("q", "a", "u", "fr")


def test_clean_json_response_strips_fences() -> None:
    assert clean_json_response('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert clean_json_response('  {"a": 1}  ') == '{"a": 1}'


def test_parse_feedback_accepts_fenced_json() -> None:
    feedback = parse_feedback("```json\n" + json.dumps(VALID) + "\n```")

    assert feedback.rating == 4
    assert feedback.competencies.communication_clarity == 5
    assert json.loads(feedback.to_json())["suggestedAnswer"] == VALID["suggestedAnswer"]


@pytest.mark.parametrize(
    "text",
    [
        "Sorry, I cannot grade that.",
        json.dumps({**VALID, "rating": 7}),
        json.dumps({key: value for key, value in VALID.items() if key != "competencies"}),
    ],
)
def test_parse_feedback_rejects_invalid_responses(text: str) -> None:
    with pytest.raises(InvalidFeedbackError) as excinfo:
        parse_feedback(text)
    assert str(excinfo.value) == INVALID_RESPONSE_MESSAGE


@pytest.mark.asyncio
async def test_openai_feedback_service_uses_chat_completion() -> None:
    client = _client(json.dumps(VALID))
    service = OpenAIFeedbackService(model="gpt-test", client=client)

    feedback = await service.evaluate("What is REST?", "Resources", "Resource URLs", "ko")

    call = client.chat.completions.calls[0]
    assert call["model"] == "gpt-test"
    assert call["messages"][0]["role"] == "user"
    assert "지원자의 답변" in call["messages"][0]["content"]
    assert feedback.rating == 4


@pytest.mark.asyncio
async def test_openai_feedback_service_invalid_output() -> None:
    service = OpenAIFeedbackService(client=_client("not json"))

    with pytest.raises(InvalidFeedbackError):
        await service.evaluate("q", "a", "u")


@pytest.mark.asyncio
async def test_openai_feedback_service_wraps_api_errors() -> None:
    class DummyOpenAIError(Exception):
        pass

    class FailingCompletions:
        async def create(self, **kwargs):
            raise DummyOpenAIError("service unavailable")

    client = SimpleNamespace(chat=SimpleNamespace(completions=FailingCompletions()))
    service = OpenAIFeedbackService(client=client)
    service._openai_error_cls = DummyOpenAIError

    with pytest.raises(FeedbackServiceError, match="service unavailable"):
        await service.evaluate("q", "a", "u")


@pytest.mark.asyncio
async def test_dummy_feedback_scores_by_length() -> None:
    service = DummyFeedbackService()

    empty = await service.evaluate("q", "expected", "")
    long = await service.evaluate("q", "expected", "one two three four five six seven eight nine ten eleven")

    assert empty.rating == 1
    assert long.rating == 3
    assert long.suggested_answer == "expected"
