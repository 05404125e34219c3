import abc
from dataclasses import dataclass
from typing import Optional

from meeting_summarizer.services.extraction import ActionItemExtractor
from meeting_summarizer.services.prompt_builder import BuiltPrompt

REAL_BACKEND = "RealBackend"
MOCK_BACKEND = "MockBackend"


@dataclass(frozen=True)
class SummarizerOutput:
    text: str
    output_tokens: Optional[int] = None


class Summarizer(abc.ABC):
    """A backend that turns a built prompt into summary text."""

    # REAL_BACKEND or MOCK_BACKEND
    kind: str = ""

    def __init__(self, action_extractor: ActionItemExtractor, decision_extractor: ActionItemExtractor):
        self.action_extractor = action_extractor
        self.decision_extractor = decision_extractor

    @property
    @abc.abstractmethod
    def name(self) -> str: ...

    @abc.abstractmethod
    async def summarize(self, prompt: BuiltPrompt, max_tokens: int) -> SummarizerOutput: ...

    @abc.abstractmethod
    async def is_available(self) -> bool: ...

    @abc.abstractmethod
    def status_description(self) -> str: ...

    def _extraction_source(self, output: str, prompt: BuiltPrompt) -> str:
        return output

    def extract_action_items(self, output: str, prompt: BuiltPrompt) -> list[str]:
        return self.action_extractor.extract(self._extraction_source(output, prompt))

    def extract_key_decisions(self, output: str, prompt: BuiltPrompt) -> list[str]:
        return self.decision_extractor.extract(self._extraction_source(output, prompt))
