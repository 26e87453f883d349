"""Data models used by mockprep."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Competencies(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    technical_knowledge: int = Field(alias="technicalKnowledge", ge=1, le=5)
    communication_clarity: int = Field(alias="communicationClarity", ge=1, le=5)
    problem_solving: int = Field(alias="problemSolving", ge=1, le=5)
    relevance: int = Field(ge=1, le=5)


class Feedback(BaseModel):
    """Scored evaluation of one answer, serialised with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    rating: int = Field(ge=1, le=5)
    competencies: Competencies
    strengths: str
    improvements: str
    suggested_answer: str = Field(alias="suggestedAnswer")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class UserAnswer(BaseModel):
    id: Optional[int] = None
    mock_id_ref: str
    question: str
    correct_answer: str
    user_answer: str
    feedback: str
    rating: str
    user_email: str
    created_at: str
    video_url: Optional[str] = None

    def parsed_feedback(self) -> Feedback:
        return Feedback.model_validate_json(self.feedback)


class InterviewQuestion(BaseModel):
    question: str
    answer: str = ""


class InterviewPlan(BaseModel):
    mock_id: str
    questions: List[InterviewQuestion] = Field(default_factory=list)
    language: str = "en"
    voice_gender: str = "female"


@dataclass
class UserIdentity:
    email: Optional[str] = None


__all__ = [
    "Competencies",
    "Feedback",
    "InterviewPlan",
    "InterviewQuestion",
    "UserAnswer",
    "UserIdentity",
]
