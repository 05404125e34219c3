import pytest
from fastapi.testclient import TestClient

from meeting_summarizer.config import ProviderConfig
from meeting_summarizer.dependencies import (
    get_speaker_store,
    get_summarization_service,
    get_transcript_store,
    get_transcription_service,
)
from meeting_summarizer.main import app
from meeting_summarizer.services.backend_selector import SummarizerSelector
from meeting_summarizer.services.speaker_store import SpeakerMappingStore
from meeting_summarizer.services.summarization_service import SummarizationService
from meeting_summarizer.services.transcription import MockTranscriber, TranscriptionService, TranscriptStore
from meeting_summarizer.services.validation import SummaryLimits

UNCONFIGURED = ProviderConfig(provider="gemini", api_key="", model="gemini-2.5-flash")

class StaticSelector:
    """Selector stand-in that always hands out the same summarizer."""

    def __init__(self, summarizer, config: ProviderConfig = UNCONFIGURED):
        self.summarizer = summarizer
        self.config = config

    def get(self):
        return self.summarizer

    def invalidate(self, config=None):
        pass


@pytest.fixture
def store():
    return SpeakerMappingStore()


@pytest.fixture
def mock_service(store):
    return SummarizationService(SummarizerSelector(UNCONFIGURED), store, SummaryLimits())


@pytest.fixture
def make_service(store):
    def _make(summarizer, config: ProviderConfig = UNCONFIGURED, **kwargs):
        return SummarizationService(StaticSelector(summarizer, config), store, SummaryLimits(), **kwargs)

    return _make


@pytest.fixture
def transcript_store():
    return TranscriptStore()


@pytest.fixture
def client(store, mock_service, transcript_store):
    transcription = TranscriptionService(MockTranscriber(), transcript_store, max_upload_mb=1)
    app.dependency_overrides[get_speaker_store] = lambda: store
    app.dependency_overrides[get_summarization_service] = lambda: mock_service
    app.dependency_overrides[get_transcript_store] = lambda: transcript_store
    app.dependency_overrides[get_transcription_service] = lambda: transcription
    yield TestClient(app)
    app.dependency_overrides.clear()
