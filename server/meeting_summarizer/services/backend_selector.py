"""Chooses the summarization backend from provider configuration.

Static config validity decides wiring. The liveness probe on the chosen
backend is advisory and never changes the selection.
"""
import logging
import threading
from typing import Callable, Optional

from meeting_summarizer.config import ProviderConfig
from meeting_summarizer.services.summarizers.base import Summarizer
from meeting_summarizer.services.summarizers.llm import CompletionClient, LLMSummarizer
from meeting_summarizer.services.summarizers.mock import MockSummarizer

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ProviderConfig], CompletionClient]


def select_summarizer(config: ProviderConfig, client_factory: Optional[ClientFactory] = None) -> Summarizer:
    if not config.is_valid():
        logger.warning(
            f"Summarizer provider config invalid (provider={config.provider}, model={config.model}, "
            f"has_api_key={bool(config.api_key)}); using mock summarizer"
        )
        return MockSummarizer()

    try:
        client = client_factory(config) if client_factory else None
        summarizer = LLMSummarizer(config, client=client)
    except Exception as e:
        logger.warning(f"Failed to construct {config.provider} summarizer ({type(e).__name__}); using mock summarizer")
        return MockSummarizer()

    logger.info(f"Using {config.provider} summarizer with model {config.model}")
    return summarizer


class SummarizerSelector:
    """Caches one resolution until invalidate() is called."""

    def __init__(self, config: ProviderConfig, client_factory: Optional[ClientFactory] = None):
        self._config = config
        self._client_factory = client_factory
        self._lock = threading.Lock()
        self._summarizer: Optional[Summarizer] = None

    @property
    def config(self) -> ProviderConfig:
        return self._config

    def get(self) -> Summarizer:
        with self._lock:
            if self._summarizer is None:
                self._summarizer = select_summarizer(self._config, self._client_factory)
            return self._summarizer

    def invalidate(self, config: Optional[ProviderConfig] = None) -> None:
        with self._lock:
            if config is not None:
                self._config = config
            self._summarizer = None
