from collections import Counter
from dataclasses import dataclass
from typing import Optional

from meeting_summarizer.config import Settings
from meeting_summarizer.errors import RejectionReason, SummaryValidationError
from meeting_summarizer.schemas.speaker import SpeakerMapping
from meeting_summarizer.schemas.summary import SummaryRequest, SummaryStyle


@dataclass(frozen=True)
class SummaryLimits:
    max_transcript_chars: int = 500_000
    min_tokens: int = 1
    max_tokens: int = 2048
    max_target_role_chars: int = 50

    @classmethod
    def from_settings(cls, s: Settings) -> "SummaryLimits":
        return cls(
            max_transcript_chars=s.max_transcript_chars,
            min_tokens=s.min_summary_tokens,
            max_tokens=s.max_summary_tokens,
            max_target_role_chars=s.max_target_role_chars,
        )


def validate_summary_input(
    transcript: Optional[str],
    style,
    max_tokens,
    limits: SummaryLimits,
    target_role: Optional[str] = None,
    speaker_mappings: Optional[list[SpeakerMapping]] = None,
) -> None:
    """Raise SummaryValidationError for the first rule the input breaks."""
    if not isinstance(style, SummaryStyle):
        try:
            SummaryStyle(style)
        except ValueError:
            allowed = ", ".join(s.value for s in SummaryStyle)
            raise SummaryValidationError(
                RejectionReason.MALFORMED_REQUEST,
                f"Unknown summary style {style!r}. Supported styles: {allowed}",
            )

    if transcript is None or not isinstance(transcript, str):
        raise SummaryValidationError(RejectionReason.MALFORMED_REQUEST, "Transcript must be a string")

    if not transcript.strip():
        raise SummaryValidationError(RejectionReason.EMPTY_TRANSCRIPT, "Transcript cannot be empty")

    if len(transcript) > limits.max_transcript_chars:
        raise SummaryValidationError(
            RejectionReason.TRANSCRIPT_TOO_LONG,
            f"Transcript is {len(transcript)} characters; the limit is {limits.max_transcript_chars}",
        )

    # bool is an int subclass; reject it explicitly
    if isinstance(max_tokens, bool) or not isinstance(max_tokens, int):
        raise SummaryValidationError(RejectionReason.MALFORMED_REQUEST, "maxTokens must be an integer")

    if not limits.min_tokens <= max_tokens <= limits.max_tokens:
        raise SummaryValidationError(
            RejectionReason.INVALID_MAX_TOKENS,
            f"maxTokens must be between {limits.min_tokens} and {limits.max_tokens}, got {max_tokens}",
        )

    if target_role is not None and len(target_role) > limits.max_target_role_chars:
        raise SummaryValidationError(
            RejectionReason.MALFORMED_REQUEST,
            f"Target role cannot exceed {limits.max_target_role_chars} characters",
        )

    if speaker_mappings:
        duplicates = sorted(
            speaker_id for speaker_id, n in Counter(m.speaker_id for m in speaker_mappings).items() if n > 1
        )
        if duplicates:
            raise SummaryValidationError(
                RejectionReason.MALFORMED_REQUEST,
                f"Duplicate speaker IDs found: {', '.join(duplicates)}",
            )


def validate_request(request: SummaryRequest, limits: SummaryLimits) -> None:
    """Validate a SummaryRequest before any backend work starts."""
    validate_summary_input(
        transcript=request.transcript,
        style=request.style,
        max_tokens=request.max_tokens,
        limits=limits,
        target_role=request.target_role,
        speaker_mappings=request.speaker_mappings,
    )
