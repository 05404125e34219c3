from datetime import datetime
from typing import Optional

from pydantic import Field

from meeting_summarizer.schemas.base import CamelModel


class SpeakerMapping(CamelModel):
    """Binds an anonymous speaker label (e.g. "Speaker 1") to a name and role."""

    speaker_id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=100)
    role: str = Field(min_length=1, max_length=50)
    transcription_id: str = ""

    model_config = {**CamelModel.model_config, "frozen": True}


class SpeakerMappingRequest(CamelModel):
    transcription_id: str = Field(min_length=1)
    mappings: list[SpeakerMapping] = Field(min_length=1)


class SpeakerMappingResponse(CamelModel):
    transcription_id: str
    mappings: list[SpeakerMapping]
    last_updated: datetime
    mapped_speaker_count: int


class SessionOverrideRequest(CamelModel):
    transcription_id: str = Field(min_length=1)
    speaker_id: str = Field(min_length=1)
    new_name: str = Field(min_length=1, max_length=100)
    new_role: Optional[str] = Field(default=None, max_length=50)
    session_id: Optional[str] = None


class SessionRevertRequest(CamelModel):
    transcription_id: str = Field(min_length=1)
    speaker_id: str = Field(min_length=1)
    session_id: str = Field(min_length=1)


class SessionClearRequest(CamelModel):
    session_id: str = Field(min_length=1)


class SessionOverrideResponse(CamelModel):
    success: bool
    session_id: str
    speaker_id: str
    original_name: Optional[str] = None
    new_name: str
    mappings: list[SpeakerMapping] = []


class SessionStatusResponse(CamelModel):
    session_id: str
    transcription_id: str
    is_active: bool
    override_count: int
    last_activity: datetime
