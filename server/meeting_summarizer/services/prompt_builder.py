"""Builds role-aware prompts from a transcript and its speaker mappings."""
import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from meeting_summarizer.schemas.speaker import SpeakerMapping
from meeting_summarizer.schemas.summary import SummaryStyle
from meeting_summarizer.schemas.transcript import SpeakerSegment

logger = logging.getLogger(__name__)

BASE_SYSTEM_PROMPT = """You are an expert meeting assistant that writes professional, accurate summaries of meeting transcripts.
Only report what the transcript supports. Do not invent participants, decisions or deadlines."""

ROLE_AWARE_PREAMBLE = """Speakers in the transcript are labelled as "Name (Role)".
Attribute contributions, decisions and tasks to the people who made or own them."""

STYLE_INSTRUCTIONS: dict[SummaryStyle, str] = {
    SummaryStyle.BRIEF: """Write a brief, high-level summary of the main topics and outcomes.
Keep it to one or two short paragraphs of plain prose. No lists or headings are required.""",
    SummaryStyle.DETAILED: """Write a comprehensive summary with these sections:
Overview: the main topics discussed.
Key Decisions: one "- " bullet per decision that was actually reached.
Action Items: one "- " bullet per concrete task, naming the owner when known.
Discussion Points: other important points raised.""",
    SummaryStyle.ACTION_ITEMS: """List the action items agreed in the meeting, one "- " bullet per task.
For each task give:
- the concrete task
- the owner, taken from the speaker's name and role when it can be derived
- a "Due:" marker with the deadline or next step when the transcript states one
Do not list tasks nobody committed to.""",
    SummaryStyle.KEY_DECISIONS: """List the decisions reached in the meeting, one "- " bullet per decision.
For each decision say what was decided and who made or influenced it.
Exclude open discussion that ended without a resolution.""",
    SummaryStyle.EXECUTIVE_SUMMARY: """Write an executive summary for a non-technical reader.
Cover outcomes, strategic implications, risks and the decisions or actions that need leadership attention.
Avoid jargon and implementation detail.""",
}


@dataclass(frozen=True)
class BuiltPrompt:
    """Everything a backend needs to produce a summary."""

    style: SummaryStyle
    annotated_transcript: str
    instructions: str
    target_role: Optional[str] = None
    mappings_applied: bool = False
    matched_speakers: tuple[str, ...] = ()


def format_speaker(mapping: SpeakerMapping) -> str:
    return f"{mapping.name} ({mapping.role})"


def _label_pattern(labels: Sequence[str]) -> re.Pattern:
    # Longest first so "Speaker 10" wins over "Speaker 1"; the lookarounds keep
    # a label from matching inside a longer word or number.
    ordered = sorted(labels, key=len, reverse=True)
    alternation = "|".join(re.escape(label) for label in ordered)
    return re.compile(rf"(?<![\w])(?:{alternation})(?![\w])")


def apply_speaker_mappings(
    transcript: str,
    mappings: Optional[Sequence[SpeakerMapping]],
) -> tuple[str, list[SpeakerMapping]]:
    """Rewrite raw speaker labels as "Name (Role)".

    Returns the rewritten transcript and the mappings whose label actually
    occurred, in first-occurrence order. Unmapped labels pass through.
    """
    if not mappings:
        return transcript, []

    by_label = {m.speaker_id: m for m in mappings if m.speaker_id}
    if not by_label:
        return transcript, []

    matched: dict[str, SpeakerMapping] = {}

    def _replace(match: re.Match) -> str:
        mapping = by_label[match.group(0)]
        matched.setdefault(mapping.speaker_id, mapping)
        return format_speaker(mapping)

    annotated = _label_pattern(list(by_label)).sub(_replace, transcript)
    return annotated, list(matched.values())


def order_segments(segments: Sequence[SpeakerSegment]) -> list[SpeakerSegment]:
    """Segments sorted by (start, end); stable for ties."""
    return sorted(segments, key=lambda s: (s.start, s.end))


def render_segments(segments: Sequence[SpeakerSegment]) -> str:
    """Turn diarized segments into "Speaker N: text" lines, one per turn.

    Consecutive segments from the same speaker are merged into one line.
    """
    lines: list[str] = []
    current_speaker: Optional[str] = None
    buffer: list[str] = []

    for seg in order_segments(segments):
        text = seg.text.strip()
        if not text:
            continue
        if seg.speaker != current_speaker and buffer:
            lines.append(f"{current_speaker}: {' '.join(buffer)}")
            buffer = []
        current_speaker = seg.speaker
        buffer.append(text)

    if buffer:
        lines.append(f"{current_speaker}: {' '.join(buffer)}")
    return "\n".join(lines)


class PromptBuilder:
    """Merges transcript, speaker mappings and style into a BuiltPrompt."""

    def build(
        self,
        transcript: str,
        style: SummaryStyle,
        target_role: Optional[str] = None,
        mappings: Optional[Sequence[SpeakerMapping]] = None,
    ) -> BuiltPrompt:
        annotated, matched = apply_speaker_mappings(transcript, mappings)
        if mappings and not matched:
            logger.debug(f"{len(mappings)} speaker mappings supplied but no label matched the transcript")

        instructions = self._build_instructions(style, target_role, matched)
        return BuiltPrompt(
            style=style,
            annotated_transcript=annotated,
            instructions=instructions,
            target_role=target_role,
            mappings_applied=bool(matched),
            matched_speakers=tuple(format_speaker(m) for m in matched),
        )

    def _build_instructions(
        self,
        style: SummaryStyle,
        target_role: Optional[str],
        matched: list[SpeakerMapping],
    ) -> str:
        parts = [BASE_SYSTEM_PROMPT, ""]

        if matched:
            parts.append(ROLE_AWARE_PREAMBLE)
            parts.append("Meeting participants:")
            for m in matched:
                parts.append(f"- {format_speaker(m)}")
            parts.append("")

        parts.append(STYLE_INSTRUCTIONS[style])

        if target_role:
            parts.append("")
            parts.append(f"The reader's role: {target_role}.")
            if style == SummaryStyle.EXECUTIVE_SUMMARY:
                parts.append(f"Address the summary to the concerns of the {target_role} and lead with what they must act on.")
            else:
                parts.append("Emphasize the information most relevant to this role.")

        return "\n".join(parts)
