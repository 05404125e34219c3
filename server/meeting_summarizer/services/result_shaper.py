import math
from datetime import datetime, timezone
from typing import Optional

from meeting_summarizer.schemas.summary import SummaryResult
from meeting_summarizer.services.prompt_builder import BuiltPrompt
from meeting_summarizer.services.summarizers.base import SummarizerOutput


def estimate_tokens(text: str) -> int:
    """Rough token estimate, about four characters per token."""
    return max(1, len(text) // 4)


def shape_result(
    output: SummarizerOutput,
    prompt: BuiltPrompt,
    elapsed_ms: float,
    action_items: Optional[list[str]] = None,
    key_decisions: Optional[list[str]] = None,
    transcription_id: Optional[str] = None,
) -> SummaryResult:
    """Wrap backend output in a SummaryResult; identical shape for every backend."""
    token_count = output.output_tokens if output.output_tokens and output.output_tokens > 0 else estimate_tokens(output.text)

    return SummaryResult(
        transcription_id=transcription_id,
        content=output.text,
        summary_type=prompt.style,
        generated_at=datetime.now(timezone.utc),
        # A completed call always reports at least 1ms
        processing_time_ms=max(1, math.ceil(elapsed_ms)),
        token_count=token_count,
        used_speaker_mappings=prompt.mappings_applied,
        generated_for=prompt.target_role,
        action_items=(action_items or None) if prompt.style.includes_action_items else None,
        key_decisions=(key_decisions or None) if prompt.style.includes_key_decisions else None,
    )
