from meeting_summarizer.config import ProviderConfig, Settings
from meeting_summarizer.services.backend_selector import SummarizerSelector, select_summarizer
from meeting_summarizer.services.llm_client import LLMCompletion
from meeting_summarizer.services.summarizers.llm import LLMSummarizer
from meeting_summarizer.services.summarizers.mock import MockSummarizer

VALID = ProviderConfig(provider="gemini", api_key="test-key", model="gemini-2.5-flash")


class FakeClient:
    async def complete(self, system_prompt, content, max_tokens=500):
        return LLMCompletion(text="summary", output_tokens=3)

    async def ping(self):
        return None


def test_missing_credential_selects_mock():
    config = ProviderConfig(provider="gemini", api_key="", model="gemini-2.5-flash")

    assert isinstance(select_summarizer(config), MockSummarizer)


def test_whitespace_credential_selects_mock():
    config = ProviderConfig(provider="anthropic", api_key="   ", model="claude-sonnet-4-20250514")

    assert isinstance(select_summarizer(config), MockSummarizer)


def test_unknown_model_selects_mock():
    config = ProviderConfig(provider="gemini", api_key="test-key", model="gpt-4")

    assert isinstance(select_summarizer(config), MockSummarizer)


def test_unknown_provider_selects_mock():
    config = ProviderConfig(provider="openai", api_key="test-key", model="gemini-2.5-flash")

    assert isinstance(select_summarizer(config), MockSummarizer)


def test_valid_config_selects_llm():
    summarizer = select_summarizer(VALID, client_factory=lambda config: FakeClient())

    assert isinstance(summarizer, LLMSummarizer)
    assert summarizer.kind == "RealBackend"
    assert summarizer.name == "gemini:gemini-2.5-flash"


def test_construction_failure_falls_back_to_mock():
    def broken_factory(config):
        raise RuntimeError("SDK could not start")

    assert isinstance(select_summarizer(VALID, client_factory=broken_factory), MockSummarizer)


def test_selector_caches_until_invalidated():
    selector = SummarizerSelector(VALID, client_factory=lambda config: FakeClient())

    first = selector.get()
    assert selector.get() is first

    selector.invalidate(ProviderConfig(provider="gemini", api_key="", model="gemini-2.5-flash"))
    assert isinstance(selector.get(), MockSummarizer)


def test_provider_config_from_settings_picks_matching_key():
    settings = Settings(
        summarizer_provider="Anthropic",
        summarizer_model="claude-sonnet-4-20250514",
        gemini_api_key="g-key",
        anthropic_api_key="a-key",
        summarizer_base_url="",
    )

    config = ProviderConfig.from_settings(settings)

    assert config.provider == "anthropic"
    assert config.api_key == "a-key"
    assert config.base_url is None
    assert config.is_valid()


def test_provider_config_summary_hides_key():
    assert VALID.as_dict()["has_api_key"] is True
    assert "test-key" not in str(VALID.as_dict())
