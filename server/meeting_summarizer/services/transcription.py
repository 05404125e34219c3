"""Audio upload validation, transcription backends and the transcript store."""
import abc
import hashlib
import json
import logging
import os
import re
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from meeting_summarizer.config import Settings
from meeting_summarizer.errors import AudioValidationError, TranscriptionError
from meeting_summarizer.schemas.transcript import SpeakerSegment, TranscriptionResponse

logger = logging.getLogger(__name__)

AUDIO_MIME_TYPES = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".flac": "audio/flac",
    ".ogg": "audio/ogg",
    ".webm": "audio/webm",
}
MIN_AUDIO_BYTES = 1024
MAX_FILE_NAME_CHARS = 255

_UNSAFE_NAME = re.compile(r"[\x00-\x1f<>:\"/\\|?*]|\.\.")


def validate_audio_upload(file_name: Optional[str], content_type: Optional[str], size: int, max_mb: int) -> None:
    """Raise AudioValidationError if an upload cannot be transcribed."""
    if not file_name:
        raise AudioValidationError("No audio file was provided")
    if len(file_name) > MAX_FILE_NAME_CHARS:
        raise AudioValidationError(f"File name cannot exceed {MAX_FILE_NAME_CHARS} characters")
    if _UNSAFE_NAME.search(file_name):
        raise AudioValidationError("File name contains invalid characters")

    ext = os.path.splitext(file_name)[1].lower()
    if ext not in AUDIO_MIME_TYPES:
        allowed = ", ".join(AUDIO_MIME_TYPES)
        raise AudioValidationError(f"Unsupported file type '{ext or file_name}'. Supported types: {allowed}")

    # Browsers sometimes send application/octet-stream for audio; only reject explicit non-audio types
    if content_type and content_type != "application/octet-stream" and not content_type.startswith("audio/"):
        raise AudioValidationError(f"Invalid content type '{content_type}'; expected an audio/* type")

    if size < MIN_AUDIO_BYTES:
        raise AudioValidationError(f"Audio file is too small ({size} bytes); minimum is {MIN_AUDIO_BYTES} bytes")
    if size > max_mb * 1024 * 1024:
        raise AudioValidationError(f"Audio file exceeds the {max_mb} MB limit")


@dataclass
class TranscriptionOutput:
    text: str
    segments: list[SpeakerSegment] = field(default_factory=list)
    language: Optional[str] = None
    duration: Optional[float] = None


class Transcriber(abc.ABC):
    kind: str = ""

    @abc.abstractmethod
    async def transcribe(
        self,
        data: bytes,
        file_name: str,
        content_type: Optional[str] = None,
        language: Optional[str] = None,
    ) -> TranscriptionOutput: ...


# ----------------------------------------------------------------------
# Mock
# ----------------------------------------------------------------------

MOCK_SCENARIOS = [
    "Welcome everyone to today's meeting. Let me start by reviewing our quarterly objectives. "
    "We've made significant progress on the project milestones. "
    "Sarah, could you share the latest updates on the development timeline?",
    "Good morning team. Today we'll be discussing the upcoming product launch. "
    "The marketing campaign is ready to go live next week. "
    "We need to ensure all stakeholders are aligned on the messaging.",
    "Thank you all for joining this standup. Let's quickly go through what everyone accomplished yesterday. "
    "Starting with the backend team, we've deployed the new API endpoints to staging. "
    "We agreed to move the release to Friday.",
    "This is our monthly retrospective meeting. I'd like to start by celebrating our recent wins. "
    "The user feedback has been overwhelmingly positive since the last release. "
    "I will follow up with the design team by Thursday.",
]


class MockTranscriber(Transcriber):
    """Deterministic transcripts picked by file name; segments rotate over three speakers."""

    kind = "MockTranscriber"

    async def transcribe(self, data, file_name, content_type=None, language=None) -> TranscriptionOutput:
        logger.warning("Using mock transcription, no transcription provider configured")
        digest = hashlib.sha256(file_name.encode("utf-8")).digest()
        text = MOCK_SCENARIOS[digest[0] % len(MOCK_SCENARIOS)]

        segments: list[SpeakerSegment] = []
        current = 0.0
        for i, sentence in enumerate(s.strip() for s in text.split(".")):
            if not sentence:
                continue
            sentence = sentence if sentence.endswith("?") else sentence + "."
            duration = max(2.0, len(sentence) * 0.1)
            segments.append(SpeakerSegment(
                start=round(current, 2),
                end=round(current + duration, 2),
                text=sentence,
                speaker=f"Speaker {i % 3 + 1}",
                confidence=round(0.85 + (digest[i % len(digest)] % 10) / 100, 2),
            ))
            current += duration + 0.5

        return TranscriptionOutput(
            text=text,
            segments=segments,
            language=language or "en",
            duration=segments[-1].end if segments else 0.0,
        )


# ----------------------------------------------------------------------
# Gemini
# ----------------------------------------------------------------------

TRANSCRIPTION_PROMPT = """Transcribe this meeting recording with speaker diarization.
Label speakers "Speaker 1", "Speaker 2", ... in order of first appearance.
Return ONLY a JSON object:
{"language": "<ISO 639-1 code>", "segments": [{"speaker": "Speaker 1", "start": 0.0, "end": 4.2, "text": "..."}]}
Times are in seconds from the start of the recording."""


class GeminiTranscriber(Transcriber):
    """Audio understanding through the Gemini API."""

    kind = "GeminiTranscriber"

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash"):
        from google import genai

        self.client = genai.Client(api_key=api_key)
        self.model = model

    async def transcribe(self, data, file_name, content_type=None, language=None) -> TranscriptionOutput:
        from google.genai import types

        ext = os.path.splitext(file_name)[1].lower()
        mime_type = content_type if content_type and content_type.startswith("audio/") else AUDIO_MIME_TYPES.get(ext, "audio/mpeg")

        instruction = TRANSCRIPTION_PROMPT
        if language:
            instruction += f"\nThe spoken language is {language}."

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=[types.Part.from_bytes(data=data, mime_type=mime_type), instruction],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    temperature=0.0,
                ),
            )
        except Exception as e:
            logger.error(f"Gemini transcription failed for {file_name}: {type(e).__name__}")
            raise TranscriptionError(f"Transcription provider failed ({type(e).__name__})") from e

        text = (response.text or "").strip()
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            logger.warning(f"Failed to parse transcription JSON: {text[:200]}")
            raise TranscriptionError("Transcription provider returned an unreadable response")

        return parse_transcription_payload(payload, language)


def parse_transcription_payload(payload, language: Optional[str] = None) -> TranscriptionOutput:
    """Build a TranscriptionOutput from the JSON a provider returned.

    Accepts the requested object or a bare list of segments. Bad segments are
    skipped; any other JSON value raises TranscriptionError.
    """
    if isinstance(payload, list):
        payload = {"segments": payload}
    if not isinstance(payload, dict):
        logger.warning(f"Transcription JSON is a {type(payload).__name__}, expected an object")
        raise TranscriptionError("Transcription provider returned an unreadable response")

    raw_segments = payload.get("segments") or []
    if not isinstance(raw_segments, list):
        raise TranscriptionError("Transcription provider returned an unreadable response")

    segments: list[SpeakerSegment] = []
    for raw in raw_segments:
        try:
            segments.append(SpeakerSegment(
                start=float(raw.get("start", 0.0)),
                end=float(raw.get("end", raw.get("start", 0.0))),
                text=str(raw.get("text", "")).strip(),
                speaker=str(raw.get("speaker") or "Speaker 1"),
                confidence=raw.get("confidence"),
            ))
        except (TypeError, ValueError, AttributeError) as e:
            logger.debug(f"Skipping malformed transcription segment {raw!r}: {e}")

    segments = [s for s in segments if s.text]
    segments.sort(key=lambda s: (s.start, s.end))
    return TranscriptionOutput(
        text=" ".join(s.text for s in segments),
        segments=segments,
        language=payload.get("language") or language,
        duration=max((s.end for s in segments), default=0.0),
    )


def select_transcriber(s: Settings) -> Transcriber:
    if s.transcription_backend.strip().lower() == "mock" or not s.gemini_api_key:
        logger.info("Using mock transcriber")
        return MockTranscriber()
    try:
        transcriber = GeminiTranscriber(api_key=s.gemini_api_key, model=s.transcription_model)
    except Exception as e:
        logger.warning(f"Failed to construct Gemini transcriber ({type(e).__name__}); using mock transcriber")
        return MockTranscriber()
    logger.info(f"Using Gemini transcriber with model {s.transcription_model}")
    return transcriber


# ----------------------------------------------------------------------
# Store + service
# ----------------------------------------------------------------------


class TranscriptStore:
    """Completed transcriptions by id, for the life of the process."""

    def __init__(self):
        self._lock = threading.Lock()
        self._items: dict[str, TranscriptionResponse] = {}

    def save(self, transcription: TranscriptionResponse) -> None:
        with self._lock:
            self._items[transcription.transcription_id] = transcription

    def get(self, transcription_id: str) -> Optional[TranscriptionResponse]:
        with self._lock:
            return self._items.get(transcription_id)


class TranscriptionService:
    def __init__(self, transcriber: Transcriber, store: TranscriptStore, max_upload_mb: int = 500):
        self.transcriber = transcriber
        self.store = store
        self.max_upload_mb = max_upload_mb

    async def transcribe_upload(
        self,
        data: bytes,
        file_name: str,
        content_type: Optional[str] = None,
        language: Optional[str] = None,
    ) -> TranscriptionResponse:
        validate_audio_upload(file_name, content_type, len(data), self.max_upload_mb)

        created_at = datetime.now(timezone.utc)
        started = time.perf_counter()
        output = await self.transcriber.transcribe(data, file_name, content_type, language)
        elapsed_ms = max(1, int((time.perf_counter() - started) * 1000))

        result = TranscriptionResponse(
            transcription_id=str(uuid.uuid4()),
            file_name=file_name,
            file_size=len(data),
            status="Completed",
            transcribed_text=output.text,
            speaker_segments=output.segments,
            processing_time_ms=elapsed_ms,
            created_at=created_at,
            completed_at=datetime.now(timezone.utc),
            detected_language=output.language,
            duration=output.duration,
            speaker_count=len({s.speaker for s in output.segments}),
            backend=self.transcriber.kind,
        )
        self.store.save(result)
        logger.info(
            f"Transcribed {file_name} ({len(data)} bytes) as {result.transcription_id}: "
            f"{len(output.segments)} segments, {result.speaker_count} speakers, {elapsed_ms}ms"
        )
        return result
