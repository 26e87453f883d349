from __future__ import annotations

from types import SimpleNamespace

import pytest

from mockprep.services.transcription.base import TranscriptionError
from mockprep.services.transcription.dummy import DummyTranscriptionService
from mockprep.services.transcription.openai_client import OpenAITranscriptionService
from mockprep.services.tts.base import SpeechSynthesisError
from mockprep.services.tts.openai_tts import OpenAISpeechService


class DummyOpenAIError(Exception):
    """Fake error raised by the mocked OpenAI client."""


def _make_transcription_service(response=None, fail: bool = False):
    calls: list[dict] = []

    class DummyTranscriptions:
        async def create(self, **kwargs):
            calls.append(kwargs)
            if fail:
                raise DummyOpenAIError("rate limited")
            return response

    service = OpenAITranscriptionService(
        model="test-model",
        client=SimpleNamespace(audio=SimpleNamespace(transcriptions=DummyTranscriptions())),
    )
    service._openai_error_cls = DummyOpenAIError
    return service, calls


@pytest.mark.asyncio
async def test_transcription_request_shape():
    service, calls = _make_transcription_service(SimpleNamespace(text="hello"))

    text = await service.transcribe(b"audio", "recording.webm", "ko")

    assert text == "hello"
    assert calls == [
        {
            "file": ("recording.webm", b"audio"),
            "model": "test-model",
            "language": "ko",
            "response_format": "json",
        }
    ]


@pytest.mark.asyncio
async def test_transcription_normalises_language():
    service, calls = _make_transcription_service({"text": "bonjour"})

    assert await service.transcribe(b"audio", "recording.mp4", "fr") == "bonjour"
    assert calls[0]["language"] == "en"


@pytest.mark.asyncio
async def test_transcription_errors_are_wrapped():
    service, _ = _make_transcription_service(fail=True)

    with pytest.raises(TranscriptionError):
        await service.transcribe(b"audio", "recording.webm")


def test_parse_transcription_response_variants():
    service, _ = _make_transcription_service()

    assert service._parse_transcription_response(None) == ""
    assert service._parse_transcription_response("plain") == "plain"
    assert service._parse_transcription_response({"text": None}) == ""
    assert service._parse_transcription_response(SimpleNamespace(text="obj")) == "obj"


@pytest.mark.asyncio
async def test_dummy_transcription_service():
    assert await DummyTranscriptionService("fixed").transcribe(b"", "a.webm") == "fixed"
    text = await DummyTranscriptionService().transcribe(b"1234", "a.webm", "ko")
    assert "ko" in text and "4 bytes" in text


@pytest.mark.asyncio
async def test_speech_service_requests_mp3():
    calls: list[dict] = []

    class DummySpeech:
        async def create(self, **kwargs):
            calls.append(kwargs)
            return SimpleNamespace(content=b"ID3mp3")

    service = OpenAISpeechService(model="tts-test", client=SimpleNamespace(audio=SimpleNamespace(speech=DummySpeech())))

    assert await service.synthesize("Question one", "onyx") == b"ID3mp3"
    assert calls == [{"model": "tts-test", "voice": "onyx", "input": "Question one", "response_format": "mp3"}]


@pytest.mark.asyncio
async def test_speech_service_wraps_errors():
    class DummySpeech:
        async def create(self, **kwargs):
            raise DummyOpenAIError("quota")

    service = OpenAISpeechService(client=SimpleNamespace(audio=SimpleNamespace(speech=DummySpeech())))
    service._openai_error_cls = DummyOpenAIError

    with pytest.raises(SpeechSynthesisError):
        await service.synthesize("Hi", "")
