"""Scoring prompts and response parsing for answer feedback."""

from __future__ import annotations

import json
import re
from typing import Optional

from pydantic import ValidationError

from ...data.models import Feedback

INVALID_RESPONSE_MESSAGE = "AI returned invalid response. Please try again."

_FENCE_RE = re.compile(r"```(?:json)?\n?")


class InvalidFeedbackError(ValueError):
    """Raised when the scoring model does not return the expected JSON."""

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(INVALID_RESPONSE_MESSAGE)
        self.detail = detail


_ENGLISH_TEMPLATE = """You are an expert interview coach. Evaluate the following interview answer.

Question: "{question}"
Expected Answer: "{correct_answer}"
User's Answer: "{user_answer}"

Scoring rubric (use the FULL 1-5 scale, do not default to high scores):
- 5: Excellent. Covers all key points with depth, clear reasoning, and strong examples.
- 4: Good. Covers most key points but missing some detail or depth.
- 3: Adequate. Demonstrates partial understanding; covers some key points but misses important ones.
- 2: Weak. Shows minimal understanding; mostly vague, incomplete, or only tangentially related.
- 1: Poor. Fundamentally wrong, completely off-topic, or essentially empty.

Additional notes:
- Answers are captured via speech recognition, so ignore grammar mistakes, filler words, and transcription artifacts.
- Compare the substance of the answer against the expected answer's key points. A score of 3 means roughly half the key points are addressed.
- "communicationClarity" measures how well the candidate structures and conveys ideas, not grammar.
- "relevance" measures whether the answer addresses the question's core topic.

Respond with ONLY a JSON object (no markdown, no extra text) in this exact format:
{{
  "rating": <overall score 1-5>,
  "competencies": {{
    "technicalKnowledge": <score 1-5>,
    "communicationClarity": <score 1-5>,
    "problemSolving": <score 1-5>,
    "relevance": <score 1-5>
  }},
  "strengths": "<what the candidate did well, 1-2 sentences>",
  "improvements": "<specific areas to improve, 1-2 sentences>",
  "suggestedAnswer": "<a stronger version of the answer, 2-3 sentences>"
}}"""

_KOREAN_TEMPLATE = """당신은 전문 면접 코치입니다. 다음 면접 답변을 평가하세요.

질문: "{question}"
예상 답변: "{correct_answer}"
지원자의 답변: "{user_answer}"

채점 기준 (1-5점 전체 범위를 사용하세요. 높은 점수를 기본값으로 하지 마세요):
- 5점: 우수. 모든 핵심 요점을 깊이 있게 다루고, 명확한 논리와 좋은 예시를 제시함.
- 4점: 양호. 대부분의 핵심 요점을 다루지만, 일부 세부 사항이나 깊이가 부족함.
- 3점: 보통. 부분적 이해를 보여줌; 일부 핵심 요점은 다루지만 중요한 부분을 놓침.
- 2점: 미흡. 이해도가 낮음; 대부분 모호하거나, 불완전하거나, 간접적으로만 관련됨.
- 1점: 부족. 근본적으로 틀리거나, 완전히 주제에서 벗어나거나, 사실상 답변이 없음.

추가 사항:
- 답변은 음성 인식으로 수집되므로 문법 오류, 불필요한 단어, 전사 오류는 무시하세요.
- 예상 답변의 핵심 요점과 답변의 실질적 내용을 비교하세요. 3점은 핵심 요점의 약 절반을 다룬 수준입니다.
- "communicationClarity"는 아이디어 구성과 전달력을 측정합니다. 문법이 아닙니다.
- "relevance"는 답변이 질문의 핵심 주제를 다루는지를 측정합니다.

다음 JSON 형식으로만 응답하세요 (마크다운이나 추가 텍스트 없이):
{{
  "rating": <1-5점 전체 점수>,
  "competencies": {{
    "technicalKnowledge": <1-5점>,
    "communicationClarity": <1-5점>,
    "problemSolving": <1-5점>,
    "relevance": <1-5점>
  }},
  "strengths": "<잘한 점, 1-2문장, 한국어로>",
  "improvements": "<개선할 부분, 1-2문장, 한국어로>",
  "suggestedAnswer": "<더 나은 답변 예시, 2-3문장, 한국어로>"
}}"""


def build_feedback_prompt(
    question: str,
    correct_answer: str,
    user_answer: str,
    language: Optional[str] = None,
) -> str:
    template = _KOREAN_TEMPLATE if language == "ko" else _ENGLISH_TEMPLATE
    return template.format(question=question, correct_answer=correct_answer, user_answer=user_answer)


def clean_json_response(text: str) -> str:
    """Strip markdown code fences some models wrap around JSON."""

    return _FENCE_RE.sub("", text or "").strip()


def parse_feedback(text: str) -> Feedback:
    try:
        payload = json.loads(clean_json_response(text))
    except json.JSONDecodeError as exc:
        raise InvalidFeedbackError(str(exc)) from exc
    try:
        return Feedback.model_validate(payload)
    except ValidationError as exc:
        raise InvalidFeedbackError(str(exc)) from exc


__all__ = [
    "INVALID_RESPONSE_MESSAGE",
    "InvalidFeedbackError",
    "build_feedback_prompt",
    "clean_json_response",
    "parse_feedback",
]
