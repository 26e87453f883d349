"""Tests for CLI commands and helpers."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from mockprep import cli
from mockprep.config import get_settings
from mockprep.data.models import UserAnswer
from mockprep.data.storage import AnswerStore

from conftest import make_feedback

runner = CliRunner()


def test_load_plan_accepts_bare_question_list(tmp_path) -> None:
    path = tmp_path / "backend-round.json"
    path.write_text(json.dumps([{"question": "What is REST?", "answer": "Resources"}]), encoding="utf-8")

    plan = cli.load_plan(path)

    assert plan.mock_id == "backend-round"
    assert plan.questions[0].question == "What is REST?"
    assert plan.language == "en"


def test_load_plan_overrides_mock_id(tmp_path) -> None:
    path = tmp_path / "plan.json"
    path.write_text(
        json.dumps({"mock_id": "abc", "language": "ko", "questions": [{"question": "Q"}]}),
        encoding="utf-8",
    )

    plan = cli.load_plan(path, mock_id="xyz")

    assert plan.mock_id == "xyz"
    assert plan.language == "ko"
    assert plan.questions[0].answer == ""


def test_env_set_and_unset_round_trip() -> None:
    result = runner.invoke(cli.app, ["env-set", "voice_gender", "male"])
    assert result.exit_code == 0, result.output
    assert get_settings().voice_gender == "male"

    listing = runner.invoke(cli.app, ["env"])
    assert "MOCKPREP_VOICE_GENDER = male (default: female)" in listing.output

    result = runner.invoke(cli.app, ["env-unset", "voice_gender"])
    assert result.exit_code == 0, result.output
    assert get_settings().voice_gender == "female"


def test_env_set_rejects_unknown_field() -> None:
    result = runner.invoke(cli.app, ["env-set", "bogus", "1"])

    assert result.exit_code == 1


def test_transcribe_with_dummy_backend(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("MOCKPREP_TRANSCRIPTION_BACKEND", "dummy")
    audio = tmp_path / "answer.webm"
    audio.write_bytes(b"12345")

    result = runner.invoke(cli.app, ["transcribe", str(audio), "--language", "ko"])

    assert result.exit_code == 0, result.output
    assert "Dummy ko transcript for answer.webm (5 bytes)" in result.output


def test_answers_requires_identity() -> None:
    result = runner.invoke(cli.app, ["answers", "mock-1"])

    assert result.exit_code == 1


@pytest.fixture()
def stored_answer(tmp_path, monkeypatch):
    db_path = tmp_path / "answers.db"
    monkeypatch.setenv("MOCKPREP_DATABASE_PATH", str(db_path))
    store = AnswerStore(db_path)
    store.initialize()
    store.save_answer(
        UserAnswer(
            mock_id_ref="mock-1",
            question="What is REST?",
            correct_answer="Resources",
            user_answer="Resource based URLs",
            feedback=make_feedback(4).to_json(),
            rating="4",
            user_email="candidate@example.com",
            created_at="2026-01-01T00:00:00+00:00",
            video_url="https://storage.test/public/mock-1/1.webm",
        )
    )
    return store


def test_answers_lists_stored_feedback(stored_answer) -> None:
    result = runner.invoke(cli.app, ["answers", "mock-1", "--email", "candidate@example.com"])

    assert result.exit_code == 0, result.output
    assert "[4/5] What is REST?" in result.output
    assert "strengths: Clear structure." in result.output
    assert "video: https://storage.test/public/mock-1/1.webm" in result.output


def test_answers_delete(stored_answer) -> None:
    result = runner.invoke(cli.app, ["answers", "mock-1", "--email", "candidate@example.com", "--delete"])

    assert result.exit_code == 0, result.output
    assert "Deleted 1 answers" in result.output
    assert stored_answer.fetch_answers("mock-1", "candidate@example.com") == []
