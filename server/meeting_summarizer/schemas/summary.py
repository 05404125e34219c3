import enum
import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from meeting_summarizer.schemas.base import CamelModel
from meeting_summarizer.schemas.speaker import SpeakerMapping


class SummaryStyle(str, enum.Enum):
    BRIEF = "Brief"
    DETAILED = "Detailed"
    ACTION_ITEMS = "ActionItems"
    KEY_DECISIONS = "KeyDecisions"
    EXECUTIVE_SUMMARY = "ExecutiveSummary"

    @property
    def includes_action_items(self) -> bool:
        return self in (SummaryStyle.ACTION_ITEMS, SummaryStyle.DETAILED)

    @property
    def includes_key_decisions(self) -> bool:
        return self in (SummaryStyle.KEY_DECISIONS, SummaryStyle.DETAILED)


class SummaryRequest(CamelModel):
    transcript: str
    style: SummaryStyle = SummaryStyle.BRIEF
    max_tokens: int = 500
    target_role: Optional[str] = None
    speaker_mappings: Optional[list[SpeakerMapping]] = None
    transcription_id: Optional[str] = None


class TranscriptionSummaryRequest(CamelModel):
    """Summarize a transcription already held by the service."""

    transcription_id: Optional[str] = None
    style: SummaryStyle = SummaryStyle.BRIEF
    max_tokens: int = 500
    target_role: Optional[str] = None


class SummaryResult(CamelModel):
    summary_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    transcription_id: Optional[str] = None
    content: str
    summary_type: SummaryStyle
    generated_at: datetime
    processing_time_ms: int
    token_count: int
    used_speaker_mappings: bool = False
    generated_for: Optional[str] = None
    action_items: Optional[list[str]] = None
    key_decisions: Optional[list[str]] = None


class ServiceStatus(CamelModel):
    service_name: str
    backend: str  # "RealBackend" or "MockBackend"
    available: bool
    status: str
    provider: Optional[str] = None
    model: Optional[str] = None
    supported_styles: list[SummaryStyle] = list(SummaryStyle)
    features: list[str] = []


class AvailabilityResponse(CamelModel):
    backend: str
    available: bool
    checked_at: datetime
