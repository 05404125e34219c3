"""In-memory speaker mapping store.

Mappings live only as long as the process. Each transcription's mappings are
held as an immutable snapshot that is swapped wholesale under a lock, so a
reader sees either the old set or the new one, never a mix.
"""
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from meeting_summarizer.schemas.speaker import SpeakerMapping

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "Participant"


class SessionMismatchError(ValueError):
    """A session id was reused for a transcription other than the one it started on."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MappingSet:
    transcription_id: str
    mappings: tuple[SpeakerMapping, ...]
    last_updated: datetime

    def by_speaker(self, speaker_id: str) -> Optional[SpeakerMapping]:
        return next((m for m in self.mappings if m.speaker_id == speaker_id), None)


@dataclass
class OverrideSession:
    session_id: str
    transcription_id: str
    started_at: datetime
    last_activity: datetime
    # speaker_id -> mapping as it was before this session first overrode it
    # (None when the speaker had no mapping)
    originals: dict[str, Optional[SpeakerMapping]] = field(default_factory=dict)


class SpeakerMappingStore:
    """Mappings keyed by transcription id, plus session-scoped overrides."""

    def __init__(
        self,
        session_ttl: timedelta = timedelta(minutes=120),
        now: Callable[[], datetime] = _utcnow,
    ):
        self._lock = threading.Lock()
        self._mappings: dict[str, MappingSet] = {}
        self._sessions: dict[str, OverrideSession] = {}
        self._session_ttl = session_ttl
        self._now = now

    # ------------------------------------------------------------------
    # Mappings
    # ------------------------------------------------------------------

    def save_mappings(self, transcription_id: str, mappings: Iterable[SpeakerMapping]) -> MappingSet:
        """Replace every mapping of a transcription."""
        snapshot = self._snapshot(transcription_id, mappings)
        with self._lock:
            self._purge_expired()
            self._mappings[transcription_id] = snapshot
        logger.info(f"Saved {len(snapshot.mappings)} speaker mappings for transcription {transcription_id}")
        return snapshot

    def upsert(self, mapping: SpeakerMapping) -> MappingSet:
        """Insert or replace one mapping keyed by (transcriptionId, speakerId)."""
        transcription_id = mapping.transcription_id
        with self._lock:
            self._purge_expired()
            current = self._mappings.get(transcription_id)
            existing = [m for m in current.mappings if m.speaker_id != mapping.speaker_id] if current else []
            snapshot = self._snapshot(transcription_id, [*existing, mapping])
            self._mappings[transcription_id] = snapshot
        return snapshot

    def get(self, transcription_id: str) -> Optional[MappingSet]:
        with self._lock:
            self._purge_expired()
            return self._mappings.get(transcription_id)

    def delete(self, transcription_id: str) -> bool:
        """Drop a transcription's mappings and any override session on it."""
        with self._lock:
            for session_id in [s.session_id for s in self._sessions.values() if s.transcription_id == transcription_id]:
                del self._sessions[session_id]
            removed = self._mappings.pop(transcription_id, None) is not None
        if removed:
            logger.info(f"Deleted speaker mappings for transcription {transcription_id}")
        return removed

    # ------------------------------------------------------------------
    # Session overrides
    # ------------------------------------------------------------------

    def apply_override(
        self,
        transcription_id: str,
        speaker_id: str,
        new_name: str,
        new_role: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> tuple[OverrideSession, Optional[SpeakerMapping], MappingSet]:
        """Rename a speaker for the session, remembering the original mapping.

        Returns the session, the mapping that was replaced (None when the
        speaker had none) and the updated mapping set. A session stays bound
        to the transcription it started on; reusing it for another one raises
        SessionMismatchError.
        """
        session_id = session_id or str(uuid.uuid4())
        with self._lock:
            self._purge_expired()
            session = self._touch_session(session_id, transcription_id)

            current = self._mappings.get(transcription_id)
            original = current.by_speaker(speaker_id) if current else None
            if speaker_id not in session.originals:
                session.originals[speaker_id] = original

            replacement = SpeakerMapping(
                speaker_id=speaker_id,
                name=new_name,
                role=new_role or (original.role if original else DEFAULT_ROLE),
                transcription_id=transcription_id,
            )
            others = [m for m in current.mappings if m.speaker_id != speaker_id] if current else []
            snapshot = self._snapshot(transcription_id, [*others, replacement])
            self._mappings[transcription_id] = snapshot

        logger.info(f"Session {session_id} overrode {speaker_id} on transcription {transcription_id}")
        return session, original, snapshot

    def revert_override(self, session_id: str, transcription_id: str, speaker_id: str) -> MappingSet:
        """Restore a speaker's pre-session mapping.

        Raises LookupError when the session or the transcription's mappings
        are unknown, and SessionMismatchError when the session was started on
        another transcription. A speaker the session never overrode is left
        as is.
        """
        with self._lock:
            self._purge_expired()
            session = self._sessions.get(session_id)
            if session is None:
                raise LookupError(f"Session {session_id} not found")
            self._check_transcription(session, transcription_id)
            current = self._mappings.get(transcription_id)
            if current is None:
                raise LookupError(f"No speaker mappings found for transcription {transcription_id}")

            session.last_activity = self._now()
            if speaker_id not in session.originals:
                return current

            original = session.originals.pop(speaker_id)
            restored = [m for m in current.mappings if m.speaker_id != speaker_id]
            if original is not None:
                restored.append(original)
            snapshot = self._snapshot(transcription_id, restored)
            self._mappings[transcription_id] = snapshot
        logger.info(f"Session {session_id} reverted {speaker_id} on transcription {transcription_id}")
        return snapshot

    def clear_session(self, session_id: str) -> bool:
        """Drop a session together with its transcription's mappings."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is None:
                return False
            self._mappings.pop(session.transcription_id, None)
        logger.info(f"Cleared session {session_id} (transcription {session.transcription_id})")
        return True

    def get_session(self, session_id: str) -> Optional[OverrideSession]:
        with self._lock:
            self._purge_expired()
            return self._sessions.get(session_id)

    def is_active(self, session: OverrideSession) -> bool:
        return self._now() - session.last_activity < self._session_ttl

    # ------------------------------------------------------------------
    # Internals (callers hold the lock)
    # ------------------------------------------------------------------

    def _snapshot(self, transcription_id: str, mappings: Iterable[SpeakerMapping]) -> MappingSet:
        stamped = tuple(
            m if m.transcription_id == transcription_id else m.model_copy(update={"transcription_id": transcription_id})
            for m in mappings
        )
        return MappingSet(transcription_id=transcription_id, mappings=stamped, last_updated=self._now())

    def _touch_session(self, session_id: str, transcription_id: str) -> OverrideSession:
        now = self._now()
        session = self._sessions.get(session_id)
        if session is None:
            session = OverrideSession(
                session_id=session_id,
                transcription_id=transcription_id,
                started_at=now,
                last_activity=now,
            )
            self._sessions[session_id] = session
        else:
            self._check_transcription(session, transcription_id)
            session.last_activity = now
        return session

    @staticmethod
    def _check_transcription(session: OverrideSession, transcription_id: str) -> None:
        if session.transcription_id != transcription_id:
            raise SessionMismatchError(
                f"Session {session.session_id} belongs to transcription {session.transcription_id}, "
                f"not {transcription_id}"
            )

    def _purge_expired(self) -> None:
        expired = [s.session_id for s in self._sessions.values() if not self.is_active(s)]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.debug(f"Purged {len(expired)} expired mapping sessions")
