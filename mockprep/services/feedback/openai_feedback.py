"""OpenAI-powered answer scoring."""

from __future__ import annotations

from typing import Any, Optional

from ...config import get_settings
from ...data.models import Feedback
from ...logging import get_logger
from .base import FeedbackService, FeedbackServiceError
from .prompts import build_feedback_prompt, parse_feedback

LOGGER = get_logger(__name__)


class OpenAIFeedbackService(FeedbackService):
    def __init__(self, model: Optional[str] = None, client: Any = None) -> None:
        settings = get_settings()
        self.model = model or settings.openai_feedback_model
        try:
            from openai import AsyncOpenAI, OpenAIError  # type: ignore
        except ImportError as exc:  # pragma: no cover - runtime dependency guard
            raise RuntimeError("openai package is required for OpenAIFeedbackService") from exc
        self._openai_error_cls = OpenAIError

        if client is not None:
            self.client = client
            return

        client_kwargs = {}
        if settings.openai_api_key:
            client_kwargs["api_key"] = settings.openai_api_key

        try:
            self.client = AsyncOpenAI(**client_kwargs)
        except OpenAIError as exc:
            message = str(exc)
            if "api_key" in message.lower():
                raise RuntimeError(
                    "OpenAI API key not configured. Set the OPENAI_API_KEY environment variable "
                    "or MOCKPREP_OPENAI_API_KEY."
                ) from exc
            raise RuntimeError(f"Failed to initialise OpenAI feedback client: {message}") from exc

    async def generate(self, prompt: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
            )
        except self._openai_error_cls as exc:
            raise FeedbackServiceError(str(exc)) from exc
        return response.choices[0].message.content or ""

    async def evaluate(
        self,
        question: str,
        correct_answer: str,
        user_answer: str,
        language: Optional[str] = None,
    ) -> Feedback:
        LOGGER.info("Requesting OpenAI feedback (%s)", language or "en")
        prompt = build_feedback_prompt(question, correct_answer, user_answer, language)
        return parse_feedback(await self.generate(prompt))


__all__ = ["OpenAIFeedbackService"]
