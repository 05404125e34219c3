import asyncio

import pytest

from meeting_summarizer.config import ProviderConfig
from meeting_summarizer.errors import RejectionReason, SummaryCancelledError, SummaryValidationError
from meeting_summarizer.schemas.speaker import SpeakerMapping
from meeting_summarizer.schemas.summary import SummaryRequest, SummaryStyle
from meeting_summarizer.schemas.transcript import SpeakerSegment
from meeting_summarizer.services.summarizers.base import REAL_BACKEND
from meeting_summarizer.services.summarizers.mock import MockSummarizer

ACTION_TRANSCRIPT = (
    "Speaker 1: Let's assign the database task to John. "
    "Speaker 2: I'll finish the review by Wednesday."
)


class SpySummarizer(MockSummarizer):
    def __init__(self):
        super().__init__()
        self.prompts = []

    async def summarize(self, prompt, max_tokens):
        self.prompts.append(prompt)
        return await super().summarize(prompt, max_tokens)


class SlowSummarizer(MockSummarizer):
    async def summarize(self, prompt, max_tokens):
        await asyncio.sleep(1.0)
        return await super().summarize(prompt, max_tokens)


def test_action_items_scenario(mock_service):
    request = SummaryRequest(transcript=ACTION_TRANSCRIPT, style=SummaryStyle.ACTION_ITEMS, max_tokens=300)

    result = asyncio.run(mock_service.generate(request))

    assert result.summary_type == SummaryStyle.ACTION_ITEMS
    assert len(result.action_items) >= 1
    assert any(word in result.content for word in ("task", "action", "complete"))


def test_empty_transcript_never_reaches_backend(make_service):
    spy = SpySummarizer()
    service = make_service(spy)

    with pytest.raises(SummaryValidationError) as exc_info:
        asyncio.run(service.generate(SummaryRequest(transcript="", style=SummaryStyle.BRIEF)))

    assert exc_info.value.reason == RejectionReason.EMPTY_TRANSCRIPT
    assert spy.prompts == []


def test_max_tokens_above_bound_is_rejected(mock_service):
    request = SummaryRequest(transcript=ACTION_TRANSCRIPT, max_tokens=3000)

    with pytest.raises(SummaryValidationError) as exc_info:
        asyncio.run(mock_service.generate(request))

    assert exc_info.value.reason == RejectionReason.INVALID_MAX_TOKENS


@pytest.mark.parametrize("style", list(SummaryStyle))
def test_successful_results_report_time_and_tokens(mock_service, style):
    result = asyncio.run(mock_service.generate(SummaryRequest(transcript=ACTION_TRANSCRIPT, style=style)))

    assert result.processing_time_ms > 0
    assert result.token_count > 0
    assert result.content.startswith(f"[MOCK SUMMARY - {style.value}]")


def test_stored_mappings_round_trip(store, mock_service):
    store.upsert(SpeakerMapping(speaker_id="Speaker 1", name="John Smith", role="Technical Lead", transcription_id="t-1"))
    request = SummaryRequest(transcript=ACTION_TRANSCRIPT, transcription_id="t-1")

    result = asyncio.run(mock_service.generate(request))

    assert "John Smith" in result.content or "Technical Lead" in result.content
    assert result.used_speaker_mappings is True
    assert result.transcription_id == "t-1"


def test_inline_mappings_take_precedence(store, make_service):
    store.upsert(SpeakerMapping(speaker_id="Speaker 1", name="Stored Name", role="Lead", transcription_id="t-1"))
    spy = SpySummarizer()
    service = make_service(spy)
    request = SummaryRequest(
        transcript=ACTION_TRANSCRIPT,
        transcription_id="t-1",
        speaker_mappings=[SpeakerMapping(speaker_id="Speaker 2", name="Sarah", role="PM")],
    )

    asyncio.run(service.generate(request))

    assert spy.prompts[0].matched_speakers == ("Sarah (PM)",)
    assert "Stored Name" not in spy.prompts[0].annotated_transcript


def test_mappings_that_match_nothing_are_not_reported_as_used(mock_service):
    request = SummaryRequest(
        transcript=ACTION_TRANSCRIPT,
        speaker_mappings=[SpeakerMapping(speaker_id="Speaker 7", name="Nobody", role="Ghost")],
    )

    result = asyncio.run(mock_service.generate(request))

    assert result.used_speaker_mappings is False


def test_target_role_is_echoed(mock_service):
    request = SummaryRequest(transcript=ACTION_TRANSCRIPT, target_role="Executive Director")

    assert asyncio.run(mock_service.generate(request)).generated_for == "Executive Director"


def test_deadline_cancels_without_partial_result(make_service):
    service = make_service(SlowSummarizer())

    with pytest.raises(SummaryCancelledError):
        asyncio.run(service.generate(SummaryRequest(transcript=ACTION_TRANSCRIPT), timeout=0.01))


def test_summarize_segments_orders_and_uses_stored_mappings(store, make_service):
    store.upsert(SpeakerMapping(speaker_id="Speaker 2", name="Sarah", role="PM", transcription_id="t-2"))
    spy = SpySummarizer()
    service = make_service(spy)
    segments = [
        SpeakerSegment(start=3.0, end=5.0, text="I'll draft the plan by Friday.", speaker="Speaker 2"),
        SpeakerSegment(start=0.0, end=3.0, text="We need a launch plan.", speaker="Speaker 1"),
    ]

    result = asyncio.run(service.summarize_segments("t-2", segments, SummaryStyle.ACTION_ITEMS, 200))

    assert spy.prompts[0].annotated_transcript == (
        "Speaker 1: We need a launch plan.\nSarah (PM): I'll draft the plan by Friday."
    )
    assert result.used_speaker_mappings is True
    assert "Sarah (PM): I'll draft the plan by Friday. [Due: Friday]" in result.action_items


def test_summarize_segments_rejects_empty_transcription(mock_service):
    with pytest.raises(SummaryValidationError) as exc_info:
        asyncio.run(mock_service.summarize_segments("t-3", [], SummaryStyle.BRIEF, 200))

    assert exc_info.value.reason == RejectionReason.EMPTY_TRANSCRIPT


def test_mock_fallback_is_available(mock_service):
    assert asyncio.run(mock_service.is_service_available()) is True


def test_service_status_for_mock(mock_service):
    status = mock_service.service_status()

    assert status.service_name == "Mock AI Summarization Service"
    assert status.backend == "MockBackend"
    assert "Available" in status.status
    assert [s.value for s in status.supported_styles] == [
        "Brief", "Detailed", "ActionItems", "KeyDecisions", "ExecutiveSummary",
    ]


class StandInRealBackend(MockSummarizer):
    kind = REAL_BACKEND

    def status_description(self):
        return "Available (anthropic)"


def test_service_status_follows_backend_kind(make_service):
    config = ProviderConfig(provider="anthropic", api_key="k", model="claude-3-5-haiku-latest")
    status = make_service(StandInRealBackend(), config).service_status()

    assert status.service_name == "AI Summarization Service"
    assert status.backend == "RealBackend"
    assert (status.provider, status.model) == ("anthropic", "claude-3-5-haiku-latest")
