"""Typer CLI entry point for mockprep."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer

from .config import (
    EnvironmentSettingError,
    clear_environment_setting,
    get_settings,
    list_environment_settings,
    update_environment_setting,
)
from .core.media.factory import CaptureConfigurationError, create_media_backend
from .core.pipeline.orchestrator import AnswerControl, InterviewOrchestrator, InterviewOutcome
from .core.playback.base import AudioPlayer, PlaybackError
from .core.speech.recognition import UnsupportedSpeechRecognizer
from .data.models import InterviewPlan, InterviewQuestion, UserIdentity
from .data.storage import AnswerStore
from .logging import configure_logging, get_logger
from .services.answers import AnswerService, UnauthorizedError
from .services.factory import (
    ServiceConfigurationError,
    create_video_uploader,
    resolve_feedback_backend,
    resolve_speech_backend,
    resolve_transcription_backend,
)
from .services.transcription.endpoint_client import TranscriptionEndpointClient
from .services.tts.client import SpeechSynthesisClient
from .services.tts.playback import speak_with_cloud_tts

app = typer.Typer(help="mockprep mock interview recorder")
LOGGER = get_logger(__name__)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    configure_logging(logging.DEBUG if verbose else logging.INFO, force=verbose)


def _format_env_value(value) -> str:
    if value is None:
        return "<unset>"
    if isinstance(value, str) and not value:
        return '""'
    return str(value)


def _resolve_user(email: Optional[str]) -> UserIdentity:
    return UserIdentity(email=email or get_settings().user_email)


def _answer_service(feedback_backend: Optional[str] = None) -> AnswerService:
    settings = get_settings()
    try:
        feedback = resolve_feedback_backend(feedback_backend or settings.feedback_backend)
    except ServiceConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if feedback is None:
        raise typer.BadParameter("A feedback backend is required to score answers")
    store = AnswerStore(settings.database_path)
    store.initialize()
    return AnswerService(store, feedback)


def _create_player() -> Optional[AudioPlayer]:
    try:
        from .core.playback.sounddevice_player import SoundDevicePlayer

        return SoundDevicePlayer()
    except (ImportError, PlaybackError) as exc:
        LOGGER.warning("Audio playback unavailable: %s", exc)
        return None


def load_plan(path: Path, mock_id: Optional[str] = None) -> InterviewPlan:
    """Read an interview plan from JSON: an object or a bare list of questions."""

    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, list):
        payload = {"questions": payload}
    if mock_id:
        payload["mock_id"] = mock_id
    payload.setdefault("mock_id", path.stem)
    return InterviewPlan.model_validate(payload)


def _console_control(ordinal: int, question: InterviewQuestion) -> AnswerControl:
    control = AnswerControl()
    typer.echo("")
    typer.echo(f"Question {ordinal}: {question.question}")
    typer.echo("Answer out loud, then press Enter. Type an answer instead to submit text.")

    async def _read_line() -> None:
        line = await asyncio.to_thread(input)
        if line.strip():
            control.submit_text(line.strip())
        else:
            control.request_stop()

    asyncio.get_running_loop().create_task(_read_line())
    return control


def _print_outcome(outcome: InterviewOutcome) -> None:
    typer.echo("")
    typer.echo(f"Interview {outcome.mock_id}: {len(outcome.submitted)} of {len(outcome.answers)} answers saved")
    for answer in outcome.answers:
        if answer.submitted is not None:
            typer.echo(f"  {answer.ordinal}. rating {answer.submitted.rating}/5")
        else:
            typer.echo(f"  {answer.ordinal}. not saved: {answer.error}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind"),
    port: int = typer.Option(8000, help="Port to listen on"),
) -> None:
    """Run the transcription and text-to-speech HTTP API."""

    import uvicorn

    from .api.app import create_app

    uvicorn.run(create_app(), host=host, port=port)


@app.command()
def transcribe(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Audio file to transcribe"),
    language: str = typer.Option("en", help="Answer language: en or ko"),
    remote: bool = typer.Option(False, "--remote/--local", help="Use the HTTP endpoint instead of a local backend"),
) -> None:
    """Transcribe an audio file."""

    settings = get_settings()

    async def _run() -> str:
        if remote:
            from .core.media.base import MediaBlob

            client = TranscriptionEndpointClient()
            try:
                return await client.transcribe(MediaBlob(file.read_bytes(), f"audio/{file.suffix.lstrip('.')}"), language)
            finally:
                await client.aclose()
        service = resolve_transcription_backend(settings.transcription_backend)
        if service is None:
            raise typer.BadParameter("No transcription backend configured")
        return await service.transcribe(file.read_bytes(), file.name, language)

    try:
        text = asyncio.run(_run())
    except (ServiceConfigurationError, RuntimeError) as exc:
        typer.secho(f"Transcription failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    typer.echo(text)


@app.command()
def say(
    text: str = typer.Argument(..., help="Text to read aloud"),
    gender: Optional[str] = typer.Option(None, help="Interviewer voice: male or female"),
    remote: bool = typer.Option(False, "--remote/--local", help="Use the HTTP endpoint instead of a local backend"),
) -> None:
    """Read text aloud with the configured speech backend."""

    settings = get_settings()
    player = _create_player()
    if player is None:
        raise typer.Exit(code=1)

    async def _run() -> None:
        client = SpeechSynthesisClient() if remote else resolve_speech_backend(settings.speech_backend)
        if client is None:
            raise typer.BadParameter("No speech backend configured")
        try:
            handle = await speak_with_cloud_tts(text, gender or settings.voice_gender, client=client, player=player)
            await handle.wait()
        finally:
            if isinstance(client, SpeechSynthesisClient):
                await client.aclose()

    try:
        asyncio.run(_run())
    except ServiceConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    finally:
        player.close()


@app.command()
def interview(
    questions_json: Path = typer.Argument(..., exists=True, dir_okay=False, help="Interview plan JSON"),
    mock_id: Optional[str] = typer.Option(None, help="Override the interview id"),
    email: Optional[str] = typer.Option(None, help="Candidate email; defaults to MOCKPREP_USER_EMAIL"),
    language: Optional[str] = typer.Option(None, help="Answer language: en or ko"),
    gender: Optional[str] = typer.Option(None, help="Interviewer voice: male or female"),
    tts: bool = typer.Option(True, "--tts/--no-tts", help="Read questions aloud"),
    feedback_backend: Optional[str] = typer.Option(None, help="Feedback backend: dummy/openai"),
) -> None:
    """Run a mock interview from a JSON list of questions."""

    settings = get_settings()
    user = _resolve_user(email)
    if not user.email:
        typer.secho("Unauthorized: set --email or MOCKPREP_USER_EMAIL", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    plan = load_plan(questions_json, mock_id)
    updates = {}
    if language:
        updates["language"] = language
    if gender:
        updates["voice_gender"] = gender
    if updates:
        plan = plan.model_copy(update=updates)

    try:
        backend = create_media_backend(settings=settings)
    except CaptureConfigurationError as exc:
        LOGGER.warning("Capture disabled: %s", exc)
        backend = None

    answers = _answer_service(feedback_backend)
    player = _create_player() if tts else None

    async def _run() -> InterviewOutcome:
        synthesis = SpeechSynthesisClient() if player is not None else None
        transcriber = TranscriptionEndpointClient()
        uploader = create_video_uploader(settings)
        orchestrator = InterviewOrchestrator(
            backend,
            answers,
            synthesis=synthesis,
            player=player,
            uploader=uploader,
            transcriber=transcriber,
            recognizer=UnsupportedSpeechRecognizer(),
            settings=settings,
        )
        try:
            return await orchestrator.run(plan, user, _console_control)
        finally:
            await transcriber.aclose()
            if synthesis is not None:
                await synthesis.aclose()
            if uploader is not None:
                await uploader.storage.aclose()

    try:
        outcome = asyncio.run(_run())
    finally:
        if player is not None:
            player.close()
    _print_outcome(outcome)


@app.command()
def answers(
    mock_id: str = typer.Argument(..., help="Interview id"),
    email: Optional[str] = typer.Option(None, help="Candidate email; defaults to MOCKPREP_USER_EMAIL"),
    delete: bool = typer.Option(False, "--delete", help="Delete the stored answers instead of listing them"),
) -> None:
    """List (or delete) stored answers for an interview."""

    settings = get_settings()
    store = AnswerStore(settings.database_path)
    store.initialize()
    user = _resolve_user(email)

    if not user.email:
        typer.secho(str(UnauthorizedError()), err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if delete:
        removed = store.delete_answers(mock_id, user.email)
        typer.echo(f"Deleted {removed} answers")
        return

    stored = store.fetch_answers(mock_id, user.email)
    if not stored:
        typer.echo("No answers stored yet.")
        return
    for answer in stored:
        feedback = answer.parsed_feedback()
        typer.echo(f"- [{answer.rating}/5] {answer.question}")
        typer.echo(f"    answer: {answer.user_answer}")
        typer.echo(f"    strengths: {feedback.strengths}")
        typer.echo(f"    improvements: {feedback.improvements}")
        if answer.video_url:
            typer.echo(f"    video: {answer.video_url}")


@app.command("env")
def show_env() -> None:
    """Show environment-backed settings and their current values."""

    entries: List = list(list_environment_settings(get_settings()))
    for entry in entries:
        typer.echo(
            f"{entry.env_name} = {_format_env_value(entry.value)}"
            f" (default: {_format_env_value(entry.default)})"
        )


@app.command("env-set")
def env_set(
    field: str = typer.Argument(..., help="Setting name, e.g. language"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Persist a setting override to the .env file."""

    try:
        updated = update_environment_setting(field, value)
    except EnvironmentSettingError as exc:
        typer.secho(f"Failed to update {field}: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    typer.echo(f"{field} updated. Current value: {_format_env_value(getattr(updated, field))}.")


@app.command("env-unset")
def env_unset(field: str = typer.Argument(..., help="Setting name, e.g. language")) -> None:
    """Remove a setting override from the .env file."""

    try:
        updated = clear_environment_setting(field)
    except EnvironmentSettingError as exc:
        typer.secho(f"Failed to reset {field}: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    typer.echo(f"{field} reset. Current value: {_format_env_value(getattr(updated, field))}.")


if __name__ == "__main__":  # pragma: no cover
    app()
