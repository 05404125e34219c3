"""Process-wide service instances, exposed as FastAPI dependencies.

Everything is built lazily from ``settings`` on first use. Tests swap any of
these out through ``app.dependency_overrides``.
"""
from datetime import timedelta
from functools import lru_cache

from meeting_summarizer.config import ProviderConfig, settings
from meeting_summarizer.services.backend_selector import SummarizerSelector
from meeting_summarizer.services.speaker_store import SpeakerMappingStore
from meeting_summarizer.services.summarization_service import SummarizationService
from meeting_summarizer.services.transcription import TranscriptionService, TranscriptStore, select_transcriber
from meeting_summarizer.services.validation import SummaryLimits


@lru_cache
def get_speaker_store() -> SpeakerMappingStore:
    return SpeakerMappingStore(session_ttl=timedelta(minutes=settings.mapping_session_ttl_minutes))


@lru_cache
def get_selector() -> SummarizerSelector:
    return SummarizerSelector(ProviderConfig.from_settings(settings))


@lru_cache
def get_summarization_service() -> SummarizationService:
    return SummarizationService(
        selector=get_selector(),
        store=get_speaker_store(),
        limits=SummaryLimits.from_settings(settings),
        request_timeout=settings.summary_request_timeout_secs,
    )


@lru_cache
def get_transcript_store() -> TranscriptStore:
    return TranscriptStore()


@lru_cache
def get_transcription_service() -> TranscriptionService:
    return TranscriptionService(
        transcriber=select_transcriber(settings),
        store=get_transcript_store(),
        max_upload_mb=settings.max_upload_mb,
    )
