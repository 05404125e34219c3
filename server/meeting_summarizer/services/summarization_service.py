"""Summarization pipeline: validate, build prompt, run backend, shape result."""
import asyncio
import logging
import time
from typing import Optional, Sequence

from meeting_summarizer.errors import SummaryCancelledError
from meeting_summarizer.schemas.speaker import SpeakerMapping
from meeting_summarizer.schemas.summary import ServiceStatus, SummaryRequest, SummaryResult, SummaryStyle
from meeting_summarizer.schemas.transcript import SpeakerSegment
from meeting_summarizer.services.backend_selector import SummarizerSelector
from meeting_summarizer.services.prompt_builder import BuiltPrompt, PromptBuilder, render_segments
from meeting_summarizer.services.result_shaper import shape_result
from meeting_summarizer.services.speaker_store import SpeakerMappingStore
from meeting_summarizer.services.summarizers.base import MOCK_BACKEND
from meeting_summarizer.services.validation import SummaryLimits, validate_request, validate_summary_input

logger = logging.getLogger(__name__)

FEATURES = [
    "speaker-role-mapping",
    "role-aware-prompts",
    "action-item-extraction",
    "key-decision-extraction",
    "session-overrides",
]


class SummarizationService:
    def __init__(
        self,
        selector: SummarizerSelector,
        store: SpeakerMappingStore,
        limits: SummaryLimits = SummaryLimits(),
        builder: Optional[PromptBuilder] = None,
        request_timeout: Optional[float] = None,
    ):
        self.selector = selector
        self.store = store
        self.limits = limits
        self.builder = builder or PromptBuilder()
        self.request_timeout = request_timeout

    async def generate(self, request: SummaryRequest, timeout: Optional[float] = None) -> SummaryResult:
        """Summarize an inline transcript.

        Inline mappings win; otherwise mappings stored for
        ``request.transcription_id`` are used when present.
        """
        validate_request(request, self.limits)
        mappings = self._resolve_mappings(request.speaker_mappings, request.transcription_id)
        prompt = self.builder.build(request.transcript, request.style, request.target_role, mappings)
        return await self._run(prompt, request.max_tokens, timeout, request.transcription_id)

    async def summarize_segments(
        self,
        transcription_id: str,
        segments: Sequence[SpeakerSegment],
        style: SummaryStyle,
        max_tokens: int,
        target_role: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> SummaryResult:
        """Summarize a stored transcription using its stored speaker mappings."""
        transcript = render_segments(segments)
        validate_summary_input(transcript, style, max_tokens, self.limits, target_role=target_role)
        mappings = self._resolve_mappings(None, transcription_id)
        prompt = self.builder.build(transcript, style, target_role, mappings)
        return await self._run(prompt, max_tokens, timeout, transcription_id)

    def _resolve_mappings(
        self,
        inline: Optional[list[SpeakerMapping]],
        transcription_id: Optional[str],
    ) -> Optional[Sequence[SpeakerMapping]]:
        if inline:
            return inline
        if transcription_id:
            stored = self.store.get(transcription_id)
            if stored:
                return stored.mappings
        return None

    async def _run(
        self,
        prompt: BuiltPrompt,
        max_tokens: int,
        timeout: Optional[float],
        transcription_id: Optional[str],
    ) -> SummaryResult:
        summarizer = self.selector.get()
        deadline = timeout if timeout is not None else self.request_timeout

        started = time.perf_counter()
        try:
            if deadline is not None:
                output = await asyncio.wait_for(summarizer.summarize(prompt, max_tokens), timeout=deadline)
            else:
                output = await summarizer.summarize(prompt, max_tokens)
        except asyncio.TimeoutError:
            logger.warning(f"Summarization via {summarizer.name} exceeded the {deadline}s deadline")
            raise SummaryCancelledError(f"Summarization did not finish within {deadline} seconds")
        elapsed_ms = (time.perf_counter() - started) * 1000

        action_items = summarizer.extract_action_items(output.text, prompt) if prompt.style.includes_action_items else None
        key_decisions = summarizer.extract_key_decisions(output.text, prompt) if prompt.style.includes_key_decisions else None

        result = shape_result(
            output,
            prompt,
            elapsed_ms,
            action_items=action_items,
            key_decisions=key_decisions,
            transcription_id=transcription_id,
        )
        logger.info(
            f"Summary {result.summary_id} via {summarizer.name}: style={prompt.style.value}, "
            f"{result.processing_time_ms}ms, {result.token_count} tokens, mappings={result.used_speaker_mappings}"
        )
        return result

    async def is_service_available(self) -> bool:
        """Advisory liveness probe of the selected backend."""
        return await self.selector.get().is_available()

    def service_status(self) -> ServiceStatus:
        summarizer = self.selector.get()
        is_mock = summarizer.kind == MOCK_BACKEND
        config = self.selector.config
        return ServiceStatus(
            service_name="Mock AI Summarization Service" if is_mock else "AI Summarization Service",
            backend=summarizer.kind,
            available=True,
            status=summarizer.status_description(),
            provider=None if is_mock else config.provider,
            model=None if is_mock else config.model,
            features=FEATURES,
        )
