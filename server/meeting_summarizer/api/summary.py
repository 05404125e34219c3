from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from meeting_summarizer.config import ProviderConfig, Settings, get_settings
from meeting_summarizer.dependencies import (
    get_summarization_service,
    get_transcript_store,
    get_transcription_service,
)
from meeting_summarizer.schemas.summary import (
    AvailabilityResponse,
    ServiceStatus,
    SummaryRequest,
    SummaryResult,
    TranscriptionSummaryRequest,
)
from meeting_summarizer.schemas.transcript import TranscriptionResponse
from meeting_summarizer.services.summarization_service import SummarizationService
from meeting_summarizer.services.transcription import TranscriptionService, TranscriptStore

router = APIRouter()


@router.post("/generate", response_model=SummaryResult)
async def generate_summary(
    payload: SummaryRequest,
    service: SummarizationService = Depends(get_summarization_service),
):
    return await service.generate(payload)


@router.get("/status", response_model=ServiceStatus)
async def get_status(service: SummarizationService = Depends(get_summarization_service)):
    return service.service_status()


@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability(service: SummarizationService = Depends(get_summarization_service)):
    """Run the liveness probe of the active backend. Advisory only."""
    available = await service.is_service_available()
    return AvailabilityResponse(
        backend=service.selector.get().kind,
        available=available,
        checked_at=datetime.now(timezone.utc),
    )


@router.post("/backend/refresh", response_model=ServiceStatus)
async def refresh_backend(
    current: Settings = Depends(get_settings),
    service: SummarizationService = Depends(get_summarization_service),
):
    """Re-read provider settings from the environment and re-select the backend.

    Only served when debug is on.
    """
    if not current.debug:
        raise HTTPException(status_code=404, detail="Not Found")
    service.selector.invalidate(ProviderConfig.from_settings(Settings()))
    return service.service_status()


# ---------------------------------------------------------------------------
# Transcription
# ---------------------------------------------------------------------------


@router.post("/transcribe", response_model=TranscriptionResponse)
async def transcribe_audio(
    audio_file: UploadFile = File(..., alias="audioFile"),
    language: Optional[str] = Form(None),
    service: TranscriptionService = Depends(get_transcription_service),
):
    data = await audio_file.read()
    return await service.transcribe_upload(
        data,
        file_name=audio_file.filename or "",
        content_type=audio_file.content_type,
        language=language,
    )


@router.get("/transcribe/{transcription_id}", response_model=TranscriptionResponse)
async def get_transcription(
    transcription_id: str,
    store: TranscriptStore = Depends(get_transcript_store),
):
    transcription = store.get(transcription_id)
    if not transcription:
        raise HTTPException(status_code=404, detail=f"Transcription {transcription_id} not found")
    return transcription


@router.post("/transcriptions/{transcription_id}/summarize", response_model=SummaryResult)
async def summarize_transcription(
    transcription_id: str,
    payload: TranscriptionSummaryRequest,
    store: TranscriptStore = Depends(get_transcript_store),
    service: SummarizationService = Depends(get_summarization_service),
):
    if payload.transcription_id and payload.transcription_id != transcription_id:
        raise HTTPException(status_code=400, detail="Transcription ID in body does not match the URL")

    transcription = store.get(transcription_id)
    if not transcription:
        raise HTTPException(status_code=404, detail=f"Transcription {transcription_id} not found")

    return await service.summarize_segments(
        transcription_id,
        transcription.speaker_segments or [],
        style=payload.style,
        max_tokens=payload.max_tokens,
        target_role=payload.target_role,
    )
