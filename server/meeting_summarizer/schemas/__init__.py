from meeting_summarizer.schemas.base import CamelModel, ErrorDetail, ErrorResponse
from meeting_summarizer.schemas.speaker import SpeakerMapping, SpeakerMappingResponse
from meeting_summarizer.schemas.summary import (
    ServiceStatus,
    SummaryRequest,
    SummaryResult,
    SummaryStyle,
)
from meeting_summarizer.schemas.transcript import SpeakerSegment, TranscriptionResponse

__all__ = [
    "CamelModel",
    "ErrorDetail",
    "ErrorResponse",
    "ServiceStatus",
    "SpeakerMapping",
    "SpeakerMappingResponse",
    "SpeakerSegment",
    "SummaryRequest",
    "SummaryResult",
    "SummaryStyle",
    "TranscriptionResponse",
]
