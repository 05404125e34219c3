import logging
from typing import Optional

from meeting_summarizer.services.llm_client import LLMCompletion

logger = logging.getLogger(__name__)


class ClaudeClient:
    """Wrapper for the Anthropic Claude API."""

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514", base_url: Optional[str] = None):
        from anthropic import AsyncAnthropic

        # Retries are driven by the summarizer so backoff stays in one place
        self.client = AsyncAnthropic(api_key=api_key, base_url=base_url, max_retries=0)
        self.model = model

    async def complete(
        self,
        system_prompt: str,
        content: str,
        max_tokens: int = 500,
    ) -> LLMCompletion:
        """Generate a summary for an annotated transcript using Claude."""
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            system=system_prompt,
            messages=[{"role": "user", "content": content}],
        )
        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        ).strip()
        output_tokens = getattr(response.usage, "output_tokens", None) if response.usage else None
        logger.info(
            f"Claude response: stop_reason={response.stop_reason}, "
            f"len={len(text)}, output_tokens={output_tokens}"
        )
        return LLMCompletion(text=text, output_tokens=output_tokens)

    async def ping(self) -> None:
        await self.client.models.retrieve(self.model)
