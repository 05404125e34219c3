import asyncio
from types import SimpleNamespace

import pytest

from meeting_summarizer.config import Settings
from meeting_summarizer.errors import AudioValidationError, TranscriptionError
from meeting_summarizer.services.transcription import (
    GeminiTranscriber,
    MockTranscriber,
    TranscriptionService,
    TranscriptStore,
    parse_transcription_payload,
    select_transcriber,
    validate_audio_upload,
)


def test_valid_upload_passes():
    validate_audio_upload("standup.mp3", "audio/mpeg", 4096, max_mb=500)
    validate_audio_upload("standup.WAV", "application/octet-stream", 4096, max_mb=500)
    validate_audio_upload("standup.webm", None, 4096, max_mb=500)


@pytest.mark.parametrize(
    "file_name, content_type, size, message",
    [
        ("notes.txt", "text/plain", 4096, "Unsupported file type"),
        ("meeting.mp3", "video/mp4", 4096, "content type"),
        ("meeting.mp3", "audio/mpeg", 100, "too small"),
        ("meeting.mp3", "audio/mpeg", 2 * 1024 * 1024, "exceeds"),
        ("../etc/passwd.mp3", "audio/mpeg", 4096, "invalid characters"),
        ("a" * 252 + ".mp3", "audio/mpeg", 4096, "255"),
        ("", "audio/mpeg", 4096, "No audio file"),
    ],
)
def test_invalid_uploads_are_rejected(file_name, content_type, size, message):
    with pytest.raises(AudioValidationError) as exc_info:
        validate_audio_upload(file_name, content_type, size, max_mb=1)

    assert message in str(exc_info.value)


def test_mock_transcriber_is_deterministic_per_file_name():
    transcriber = MockTranscriber()

    first = asyncio.run(transcriber.transcribe(b"\0" * 2048, "weekly-sync.wav"))
    second = asyncio.run(transcriber.transcribe(b"\1" * 4096, "weekly-sync.wav"))

    assert first == second


def test_mock_segments_rotate_speakers_in_time_order():
    output = asyncio.run(MockTranscriber().transcribe(b"\0" * 2048, "planning.mp3"))

    speakers = [s.speaker for s in output.segments]
    assert speakers[:3] == ["Speaker 1", "Speaker 2", "Speaker 3"]
    starts = [s.start for s in output.segments]
    assert starts == sorted(starts)
    assert all(s.end >= s.start for s in output.segments)
    assert all(0.85 <= s.confidence <= 0.95 for s in output.segments)
    assert output.duration == output.segments[-1].end
    assert output.language == "en"


def test_payload_parsing_sorts_and_skips_bad_segments():
    payload = {
        "language": "de",
        "segments": [
            {"speaker": "Speaker 2", "start": 4.0, "end": 6.0, "text": "Second."},
            {"speaker": "Speaker 1", "start": 0.0, "end": 4.0, "text": "First."},
            {"speaker": "Speaker 1", "start": 9.0, "end": 7.0, "text": "Backwards."},
            {"speaker": "Speaker 3", "start": "soon", "text": "Bad time."},
            {"speaker": "Speaker 3", "start": 6.0, "end": 7.0, "text": "  "},
        ],
    }

    output = parse_transcription_payload(payload)

    assert [s.text for s in output.segments] == ["First.", "Second."]
    assert output.text == "First. Second."
    assert output.language == "de"
    assert output.duration == 6.0


def test_payload_parsing_accepts_bare_segment_list():
    output = parse_transcription_payload(
        [{"speaker": "Speaker 1", "start": 0.0, "end": 2.0, "text": "Hello."}],
        language="en",
    )

    assert [s.speaker for s in output.segments] == ["Speaker 1"]
    assert output.language == "en"


@pytest.mark.parametrize("payload", ["just text", 42, None, {"segments": "Speaker 1 said hi"}])
def test_payload_parsing_rejects_non_object_json(payload):
    with pytest.raises(TranscriptionError):
        parse_transcription_payload(payload)


class FakeGeminiModels:
    def __init__(self, text):
        self.text = text

    async def generate_content(self, **kwargs):
        return SimpleNamespace(text=self.text)


def _gemini_transcriber(response_text):
    transcriber = GeminiTranscriber.__new__(GeminiTranscriber)
    transcriber.client = SimpleNamespace(aio=SimpleNamespace(models=FakeGeminiModels(response_text)))
    transcriber.model = "gemini-2.5-flash"
    return transcriber


def test_gemini_scalar_json_is_a_transcription_error():
    transcriber = _gemini_transcriber("\"no speech detected\"")

    with pytest.raises(TranscriptionError):
        asyncio.run(transcriber.transcribe(b"\0" * 2048, "meeting.wav", "audio/wav"))


def test_gemini_segment_list_is_transcribed():
    transcriber = _gemini_transcriber('[{"speaker": "Speaker 1", "start": 0, "end": 3, "text": "We agreed."}]')

    output = asyncio.run(transcriber.transcribe(b"\0" * 2048, "meeting.wav", "audio/wav"))

    assert output.text == "We agreed."


def test_select_transcriber_without_key_uses_mock():
    assert isinstance(select_transcriber(Settings(gemini_api_key="", transcription_backend="gemini")), MockTranscriber)
    assert isinstance(select_transcriber(Settings(gemini_api_key="k", transcription_backend="mock")), MockTranscriber)


def test_transcribe_upload_stores_result():
    store = TranscriptStore()
    service = TranscriptionService(MockTranscriber(), store, max_upload_mb=1)

    result = asyncio.run(service.transcribe_upload(b"\0" * 2048, "retro.m4a", "audio/mp4"))

    assert result.status == "Completed"
    assert result.file_size == 2048
    assert result.speaker_count == 3
    assert result.processing_time_ms >= 1
    assert result.backend == "MockTranscriber"
    assert store.get(result.transcription_id) == result


def test_transcribe_upload_validates_first():
    store = TranscriptStore()
    service = TranscriptionService(MockTranscriber(), store, max_upload_mb=1)

    with pytest.raises(AudioValidationError):
        asyncio.run(service.transcribe_upload(b"\0" * 10, "retro.m4a", "audio/mp4"))
