from datetime import datetime
from typing import Optional

from pydantic import Field, model_validator

from meeting_summarizer.schemas.base import CamelModel


class SpeakerSegment(CamelModel):
    """One diarized stretch of speech."""

    start: float = Field(ge=0)
    end: float = Field(ge=0)
    text: str
    speaker: str = "Speaker 1"
    confidence: Optional[float] = Field(default=None, ge=0, le=1)

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.end < self.start:
            raise ValueError("segment end must not precede start")
        return self


class TranscriptionResponse(CamelModel):
    transcription_id: str
    file_name: str
    file_size: int
    status: str  # "Completed" or "Failed"
    transcribed_text: Optional[str] = None
    speaker_segments: Optional[list[SpeakerSegment]] = None
    error_message: Optional[str] = None
    processing_time_ms: int = 0
    created_at: datetime
    completed_at: Optional[datetime] = None
    detected_language: Optional[str] = None
    duration: Optional[float] = None
    speaker_count: Optional[int] = None
    backend: Optional[str] = None
