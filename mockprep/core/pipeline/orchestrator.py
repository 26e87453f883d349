"""Interview orchestrator coordinating prompts, capture, transcription and scoring."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ...config import Settings, get_settings
from ...data.models import InterviewPlan, InterviewQuestion, UserIdentity
from ...logging import get_logger
from ...services.answers import AnswerService, SubmittedAnswer, UnauthorizedError
from ...services.feedback.base import FeedbackServiceError
from ...services.feedback.prompts import InvalidFeedbackError
from ...services.storage.video_upload import VideoUploader
from ...services.tts.playback import Synthesizer, speak_with_cloud_tts
from ..media.base import MediaBackend, MediaBlob, MediaError, MediaTrack
from ..media.factory import resolve_tracks
from ..media.session import RecordingSession
from ..playback.base import AudioPlayer
from ..speech.fallback import SpeechFallbackController, Transcriber
from ..speech.recognition import RecognitionUnavailableError, SpeechRecognizer

LOGGER = get_logger(__name__)

SCORING_FAILED_MESSAGE = "Answer could not be scored"


class AnswerControl:
    """Runtime signals for a single answer: stop, optionally with typed text."""

    def __init__(self) -> None:
        self._stop = asyncio.Event()
        self._typed_text: Optional[str] = None

    def request_stop(self) -> None:
        self._stop.set()

    def submit_text(self, text: str) -> None:
        """Stop the answer and use ``text`` instead of any transcript."""

        self._typed_text = text
        self._stop.set()

    @property
    def should_stop(self) -> bool:
        return self._stop.is_set()

    @property
    def typed_text(self) -> Optional[str]:
        return self._typed_text

    @property
    def stop_event(self) -> asyncio.Event:
        return self._stop

    async def wait(self) -> None:
        await self._stop.wait()


@dataclass
class AnswerOutcome:
    ordinal: int
    question: InterviewQuestion
    transcript: str = ""
    video_url: Optional[str] = None
    submitted: Optional[SubmittedAnswer] = None
    error: Optional[str] = None


@dataclass
class InterviewOutcome:
    mock_id: str
    answers: List[AnswerOutcome] = field(default_factory=list)

    @property
    def submitted(self) -> List[AnswerOutcome]:
        return [answer for answer in self.answers if answer.submitted is not None]


class InterviewOrchestrator:
    """High-level coordinator for a mock interview session."""

    def __init__(
        self,
        backend: Optional[MediaBackend],
        answers: AnswerService,
        *,
        synthesis: Optional[Synthesizer] = None,
        player: Optional[AudioPlayer] = None,
        uploader: Optional[VideoUploader] = None,
        transcriber: Optional[Transcriber] = None,
        recognizer: Optional[SpeechRecognizer] = None,
        settings: Optional[Settings] = None,
        video_track: Optional[MediaTrack] = None,
        audio_track: Optional[MediaTrack] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.backend = backend
        self.answers = answers
        self.synthesis = synthesis
        self.player = player
        self.uploader = uploader
        self.transcriber = transcriber
        self.recognizer = recognizer
        if video_track is None and audio_track is None:
            video_track, audio_track = resolve_tracks(self.settings)
        self.video_track = video_track
        self.audio_track = audio_track

    async def run(
        self,
        plan: InterviewPlan,
        user: Optional[UserIdentity],
        controls: Callable[[int, InterviewQuestion], AnswerControl],
    ) -> InterviewOutcome:
        if not plan.questions:
            raise ValueError("The interview has no questions")

        outcome = InterviewOutcome(mock_id=plan.mock_id)
        fallback = self._create_fallback(plan.language)
        LOGGER.info("Starting interview %s (%d questions)", plan.mock_id, len(plan.questions))

        try:
            for index, question in enumerate(plan.questions):
                ordinal = index + 1
                result = await self._run_answer(plan, user, ordinal, question, controls, fallback)
                outcome.answers.append(result)
        finally:
            if fallback is not None:
                fallback.cancel_recording()

        LOGGER.info(
            "Interview %s finished: %d of %d answers submitted",
            plan.mock_id,
            len(outcome.submitted),
            len(outcome.answers),
        )
        return outcome

    def _create_fallback(self, language: str) -> Optional[SpeechFallbackController]:
        if self.backend is None or self.transcriber is None:
            return None
        return SpeechFallbackController(
            self.backend,
            self.transcriber,
            language=language,
            stop_timeout=self.settings.stop_timeout_seconds,
        )

    async def _read_question(self, plan: InterviewPlan, question: InterviewQuestion) -> None:
        if self.synthesis is None or self.player is None:
            return
        handle = await speak_with_cloud_tts(
            question.question,
            plan.voice_gender,
            client=self.synthesis,
            player=self.player,
        )
        await handle.wait()

    def _start_capture(self) -> Optional[RecordingSession]:
        if self.backend is None or self.video_track is None or self.audio_track is None:
            return None
        session = RecordingSession(
            self.backend,
            self.video_track,
            self.audio_track,
            stop_timeout=self.settings.stop_timeout_seconds,
        )
        try:
            session.start()
        except MediaError as exc:
            LOGGER.warning("Video capture unavailable; continuing without video: %s", exc)
            return None
        return session

    async def _stop_capture(self, session: Optional[RecordingSession]) -> Optional[MediaBlob]:
        if session is None:
            return None
        try:
            return await session.stop()
        except MediaError as exc:
            LOGGER.warning("Skipping answer video: %s", exc)
            return None

    async def _record_with_fallback(
        self,
        control: AnswerControl,
        fallback: SpeechFallbackController,
        track: Optional[MediaTrack],
    ) -> str:
        fallback.activate_whisper_mode()
        try:
            fallback.start_recording(track)
        except MediaError as exc:
            LOGGER.warning("Microphone unavailable for server transcription: %s", exc)
            await control.wait()
            return ""
        await control.wait()
        try:
            return await fallback.stop_recording()
        except MediaError as exc:
            LOGGER.warning("Discarding fallback recording: %s", exc)
            return ""

    async def _capture_transcript(
        self,
        control: AnswerControl,
        fallback: Optional[SpeechFallbackController],
        language: str,
    ) -> str:
        track = self.audio_track
        recognizer = self.recognizer
        use_recognizer = (
            track is not None
            and recognizer is not None
            and recognizer.is_supported()
            and not (fallback is not None and fallback.whisper_mode)
        )

        if not use_recognizer:
            if fallback is None:
                await control.wait()
                return ""
            return await self._record_with_fallback(control, fallback, track)

        listen = asyncio.ensure_future(recognizer.listen(track, control.stop_event, language))
        stopped = asyncio.ensure_future(control.wait())
        try:
            await asyncio.wait({listen, stopped}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopped.cancel()

        try:
            text = await listen
        except RecognitionUnavailableError as exc:
            LOGGER.warning("On-device recognition failed: %s", exc)
            if fallback is None:
                await control.wait()
                return ""
            fallback.activate_whisper_mode()
            if control.should_stop:
                return ""
            return await self._record_with_fallback(control, fallback, track)

        await control.wait()
        return text

    async def _run_answer(
        self,
        plan: InterviewPlan,
        user: Optional[UserIdentity],
        ordinal: int,
        question: InterviewQuestion,
        controls: Callable[[int, InterviewQuestion], AnswerControl],
        fallback: Optional[SpeechFallbackController],
    ) -> AnswerOutcome:
        result = AnswerOutcome(ordinal=ordinal, question=question)
        await self._read_question(plan, question)

        control = controls(ordinal, question)
        session = self._start_capture()
        blob: Optional[MediaBlob] = None
        try:
            transcript = await self._capture_transcript(control, fallback, plan.language)
            if control.typed_text:
                transcript = control.typed_text
            result.transcript = transcript.strip()
            blob = await self._stop_capture(session)
        finally:
            if session is not None:
                session.cleanup()
            if fallback is not None:
                fallback.cancel_recording()

        if not result.transcript:
            result.error = "No answer recorded"
            LOGGER.warning("Question %d produced no answer; skipping submission", ordinal)
            return result

        if blob is not None and blob.size and self.uploader is not None:
            result.video_url = await self.uploader.upload(blob, plan.mock_id, ordinal)

        try:
            result.submitted = await self.answers.submit_answer(
                user,
                plan.mock_id,
                question.question,
                question.answer,
                result.transcript,
                language=plan.language,
                video_url=result.video_url,
            )
        except (InvalidFeedbackError, UnauthorizedError, FeedbackServiceError) as exc:
            LOGGER.warning("Answer %d was not saved: %s", ordinal, exc)
            result.error = str(exc)
        except Exception:
            LOGGER.exception("Scoring answer %d failed", ordinal)
            result.error = SCORING_FAILED_MESSAGE
        return result


__all__ = [
    "AnswerControl",
    "AnswerOutcome",
    "InterviewOrchestrator",
    "InterviewOutcome",
]
