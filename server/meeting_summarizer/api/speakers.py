from collections import Counter

from fastapi import APIRouter, Depends, HTTPException

from meeting_summarizer.dependencies import get_speaker_store
from meeting_summarizer.errors import RejectionReason, SummaryValidationError
from meeting_summarizer.schemas.speaker import (
    SessionClearRequest,
    SessionOverrideRequest,
    SessionOverrideResponse,
    SessionRevertRequest,
    SessionStatusResponse,
    SpeakerMapping,
    SpeakerMappingRequest,
    SpeakerMappingResponse,
)
from meeting_summarizer.services.speaker_store import MappingSet, SessionMismatchError, SpeakerMappingStore

router = APIRouter()


def _to_response(snapshot: MappingSet) -> SpeakerMappingResponse:
    return SpeakerMappingResponse(
        transcription_id=snapshot.transcription_id,
        mappings=list(snapshot.mappings),
        last_updated=snapshot.last_updated,
        mapped_speaker_count=len(snapshot.mappings),
    )


@router.post("", response_model=SpeakerMappingResponse)
async def upsert_mapping(
    payload: SpeakerMapping,
    store: SpeakerMappingStore = Depends(get_speaker_store),
):
    """Insert or replace a single speaker's mapping."""
    if not payload.transcription_id.strip():
        raise HTTPException(status_code=400, detail="transcriptionId is required")
    return _to_response(store.upsert(payload))


@router.post("/map", response_model=SpeakerMappingResponse)
async def save_mappings(
    payload: SpeakerMappingRequest,
    store: SpeakerMappingStore = Depends(get_speaker_store),
):
    """Replace every mapping of a transcription."""
    counts = Counter(m.speaker_id for m in payload.mappings)
    duplicates = sorted(speaker_id for speaker_id, n in counts.items() if n > 1)
    if duplicates:
        raise SummaryValidationError(
            RejectionReason.MALFORMED_REQUEST,
            f"Duplicate speaker IDs found: {', '.join(duplicates)}",
        )
    return _to_response(store.save_mappings(payload.transcription_id, payload.mappings))


# ---------------------------------------------------------------------------
# Session overrides
# ---------------------------------------------------------------------------


@router.post("/session/override", response_model=SessionOverrideResponse)
async def apply_session_override(
    payload: SessionOverrideRequest,
    store: SpeakerMappingStore = Depends(get_speaker_store),
):
    try:
        session, original, snapshot = store.apply_override(
            payload.transcription_id,
            payload.speaker_id,
            new_name=payload.new_name,
            new_role=payload.new_role,
            session_id=payload.session_id,
        )
    except SessionMismatchError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SessionOverrideResponse(
        success=True,
        session_id=session.session_id,
        speaker_id=payload.speaker_id,
        original_name=original.name if original else None,
        new_name=payload.new_name,
        mappings=list(snapshot.mappings),
    )


@router.post("/session/revert", response_model=SpeakerMappingResponse)
async def revert_session_override(
    payload: SessionRevertRequest,
    store: SpeakerMappingStore = Depends(get_speaker_store),
):
    try:
        snapshot = store.revert_override(payload.session_id, payload.transcription_id, payload.speaker_id)
    except SessionMismatchError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _to_response(snapshot)


@router.post("/session/clear", status_code=204)
async def clear_session(
    payload: SessionClearRequest,
    store: SpeakerMappingStore = Depends(get_speaker_store),
):
    if not store.clear_session(payload.session_id):
        raise HTTPException(status_code=404, detail=f"Session {payload.session_id} not found")


@router.get("/session/status/{session_id}", response_model=SessionStatusResponse)
async def get_session_status(
    session_id: str,
    store: SpeakerMappingStore = Depends(get_speaker_store),
):
    session = store.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found or expired")
    return SessionStatusResponse(
        session_id=session.session_id,
        transcription_id=session.transcription_id,
        is_active=store.is_active(session),
        override_count=len(session.originals),
        last_activity=session.last_activity,
    )


# ---------------------------------------------------------------------------
# Per-transcription reads and deletes
# ---------------------------------------------------------------------------


@router.get("/{transcription_id}", response_model=SpeakerMappingResponse)
async def get_mappings(
    transcription_id: str,
    store: SpeakerMappingStore = Depends(get_speaker_store),
):
    snapshot = store.get(transcription_id)
    if not snapshot:
        raise HTTPException(status_code=404, detail=f"No speaker mappings found for transcription {transcription_id}")
    return _to_response(snapshot)


@router.delete("/{transcription_id}", status_code=204)
async def delete_mappings(
    transcription_id: str,
    store: SpeakerMappingStore = Depends(get_speaker_store),
):
    if not store.delete(transcription_id):
        raise HTTPException(status_code=404, detail=f"No speaker mappings found for transcription {transcription_id}")
