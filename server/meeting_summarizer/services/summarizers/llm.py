import asyncio
import logging
from typing import Awaitable, Callable, Optional, Protocol

from meeting_summarizer.config import ProviderConfig
from meeting_summarizer.errors import (
    ProviderAuthError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    SummarizerError,
)
from meeting_summarizer.services.extraction import output_action_extractor, output_decision_extractor
from meeting_summarizer.services.llm_client import LLMCompletion
from meeting_summarizer.services.prompt_builder import BuiltPrompt
from meeting_summarizer.services.summarizers.base import REAL_BACKEND, Summarizer, SummarizerOutput

logger = logging.getLogger(__name__)

RETRYABLE = (ProviderTimeoutError, ProviderRateLimitError, ProviderUnavailableError)

PING_TIMEOUT_SECS = 10.0


class CompletionClient(Protocol):
    async def complete(self, system_prompt: str, content: str, max_tokens: int = 500) -> LLMCompletion: ...

    async def ping(self) -> None: ...


def build_client(config: ProviderConfig) -> CompletionClient:
    """Construct the provider SDK client for a config bundle."""
    if config.provider == "gemini":
        from meeting_summarizer.services.llm_client import LLMClient

        return LLMClient(api_key=config.api_key, model=config.model, base_url=config.base_url)
    if config.provider == "anthropic":
        from meeting_summarizer.services.claude_client import ClaudeClient

        return ClaudeClient(api_key=config.api_key, model=config.model, base_url=config.base_url)
    raise ValueError(f"Unsupported summarizer provider: {config.provider}")


def _status_code(exc: Exception) -> Optional[int]:
    # anthropic.APIStatusError exposes status_code, google.genai APIError exposes code
    for attr in ("status_code", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


def map_provider_error(provider: str, exc: Exception) -> SummarizerError:
    """Translate an SDK or transport exception into a typed provider failure.

    Messages are built here rather than copied from the SDK so request
    headers and keys never reach the caller.
    """
    if isinstance(exc, SummarizerError):
        return exc
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)) or "Timeout" in type(exc).__name__:
        return ProviderTimeoutError(f"{provider} did not respond in time")

    status = _status_code(exc)
    if status in (401, 403):
        return ProviderAuthError(f"{provider} rejected the configured credentials (HTTP {status})")
    if status == 429:
        return ProviderRateLimitError(f"{provider} rate limit exceeded, try again later")
    if status is not None and (status >= 500 or status == 408):
        return ProviderUnavailableError(f"{provider} is temporarily unavailable (HTTP {status})")
    if status is not None:
        return SummarizerError(f"{provider} rejected the summarization request (HTTP {status})")
    if isinstance(exc, (ConnectionError, OSError)) or "Connection" in type(exc).__name__:
        return ProviderUnavailableError(f"Could not reach {provider}")
    return SummarizerError(f"{provider} request failed: {type(exc).__name__}")


class LLMSummarizer(Summarizer):
    """RealBackend: summaries from an external LLM provider."""

    kind = REAL_BACKEND

    def __init__(
        self,
        config: ProviderConfig,
        client: Optional[CompletionClient] = None,
        retry_base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        super().__init__(output_action_extractor(), output_decision_extractor())
        self.config = config
        self.client = client if client is not None else build_client(config)
        self.retry_base_delay = retry_base_delay
        self._sleep = sleep

    @property
    def name(self) -> str:
        return f"{self.config.provider}:{self.config.model}"

    async def summarize(self, prompt: BuiltPrompt, max_tokens: int) -> SummarizerOutput:
        attempt = 0
        while True:
            try:
                completion = await asyncio.wait_for(
                    self.client.complete(prompt.instructions, prompt.annotated_transcript, max_tokens),
                    timeout=self.config.timeout_secs,
                )
                if not completion.text:
                    raise ProviderUnavailableError(f"{self.config.provider} returned an empty summary")
                return SummarizerOutput(text=completion.text, output_tokens=completion.output_tokens)
            except Exception as exc:
                error = map_provider_error(self.config.provider, exc)
                if not isinstance(error, RETRYABLE) or attempt >= self.config.max_retries:
                    logger.error(f"Summarization via {self.name} failed after {attempt + 1} attempt(s): {error.kind}")
                    if error is exc:
                        raise
                    raise error from exc

            delay = self.retry_base_delay * (2 ** attempt)
            attempt += 1
            logger.warning(
                f"{error.kind} from {self.name}, retry {attempt}/{self.config.max_retries} in {delay:.1f}s"
            )
            await self._sleep(delay)

    async def is_available(self) -> bool:
        try:
            await asyncio.wait_for(self.client.ping(), timeout=min(PING_TIMEOUT_SECS, self.config.timeout_secs))
        except Exception as exc:
            logger.warning(f"Availability probe for {self.name} failed: {type(exc).__name__}")
            return False
        return True

    def status_description(self) -> str:
        return f"Configured with {self.config.provider} model {self.config.model}"
