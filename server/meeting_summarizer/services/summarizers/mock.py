import logging
import re

from meeting_summarizer.schemas.summary import SummaryStyle
from meeting_summarizer.services.extraction import (
    split_sentences,
    transcript_action_extractor,
    transcript_decision_extractor,
)
from meeting_summarizer.services.prompt_builder import BuiltPrompt
from meeting_summarizer.services.summarizers.base import MOCK_BACKEND, Summarizer, SummarizerOutput

logger = logging.getLogger(__name__)

_RAW_LABEL = re.compile(r"\bSpeaker \d+\b")

MOCK_TEMPLATES: dict[SummaryStyle, str] = {
    SummaryStyle.BRIEF: (
        "This is a mock brief summary of a meeting with {participants}. "
        "The discussion covered {turns} contributions and the main points were reviewed."
    ),
    SummaryStyle.DETAILED: (
        "This is a mock detailed summary of a meeting with {participants}.\n\n"
        "Overview:\nThe meeting covered {turns} contributions.\n\n"
        "Key Decisions:\n{decisions}\n\n"
        "Action Items:\n{actions}"
    ),
    SummaryStyle.ACTION_ITEMS: (
        "Mock action items identified in the meeting with {participants}. "
        "Each task below should be completed by its owner.\n\n"
        "Action Items:\n{actions}"
    ),
    SummaryStyle.KEY_DECISIONS: (
        "Mock key decisions reached in the meeting with {participants}.\n\n"
        "Key Decisions:\n{decisions}"
    ),
    SummaryStyle.EXECUTIVE_SUMMARY: (
        "This is a mock executive summary of the meeting with {participants}. "
        "It highlights {decision_count} decision(s) and {action_count} action item(s) "
        "that need leadership attention."
    ),
}


def _bullets(items: list[str], empty: str) -> str:
    if not items:
        return f"- {empty}"
    return "\n".join(f"- {item}" for item in items)


class MockSummarizer(Summarizer):
    """MockBackend: deterministic offline summaries for development and tests.

    Output depends only on the prompt, so equal requests produce equal content.
    """

    kind = MOCK_BACKEND

    def __init__(self):
        super().__init__(transcript_action_extractor(), transcript_decision_extractor())

    @property
    def name(self) -> str:
        return "mock"

    def _extraction_source(self, output: str, prompt: BuiltPrompt) -> str:
        # No model output to parse; the heuristics read the transcript itself
        return prompt.annotated_transcript

    def _participants(self, prompt: BuiltPrompt) -> str:
        names = list(prompt.matched_speakers)
        for label in _RAW_LABEL.findall(prompt.annotated_transcript):
            if label not in names:
                names.append(label)
        if not names:
            return "unidentified participants"
        if len(names) == 1:
            return names[0]
        return ", ".join(names[:-1]) + f" and {names[-1]}"

    async def summarize(self, prompt: BuiltPrompt, max_tokens: int) -> SummarizerOutput:
        actions = self.extract_action_items("", prompt)
        decisions = self.extract_key_decisions("", prompt)

        body = MOCK_TEMPLATES[prompt.style].format(
            participants=self._participants(prompt),
            turns=len(split_sentences(prompt.annotated_transcript)),
            actions=_bullets(actions, "No action items were identified."),
            decisions=_bullets(decisions, "No decisions were recorded."),
            action_count=len(actions),
            decision_count=len(decisions),
        )
        parts = [f"[MOCK SUMMARY - {prompt.style.value}] {body}"]
        if prompt.target_role:
            if prompt.style == SummaryStyle.EXECUTIVE_SUMMARY:
                parts.append(f"Framed for the concerns of the {prompt.target_role}.")
            else:
                parts.append(f"Prepared for: {prompt.target_role}.")
        text = "\n\n".join(parts)

        output_tokens = max(1, min(max_tokens, len(prompt.annotated_transcript) // 4))
        logger.debug(f"Mock summary generated: style={prompt.style.value}, tokens={output_tokens}")
        return SummarizerOutput(text=text, output_tokens=output_tokens)

    async def is_available(self) -> bool:
        return True

    def status_description(self) -> str:
        return "Available (mock mode, no AI provider configured)"
