import logging
from dataclasses import dataclass
from typing import Optional

from google import genai
from google.genai import types

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LLMCompletion:
    text: str
    # Provider-reported output token usage, when the response carries it
    output_tokens: Optional[int] = None


class LLMClient:
    """Wrapper for the Google Gemini API."""

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash", base_url: Optional[str] = None):
        http_options = types.HttpOptions(base_url=base_url) if base_url else None
        self.client = genai.Client(api_key=api_key, http_options=http_options)
        self.model = model

    async def complete(
        self,
        system_prompt: str,
        content: str,
        max_tokens: int = 500,
    ) -> LLMCompletion:
        """Generate a summary for an annotated transcript."""
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=content,
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                max_output_tokens=max_tokens,
                temperature=0.3,
            ),
        )

        text = (response.text or "").strip()
        finish = getattr(
            response.candidates[0], "finish_reason", None
        ) if response.candidates else None
        usage = getattr(response, "usage_metadata", None)
        output_tokens = getattr(usage, "candidates_token_count", None) if usage else None
        logger.info(
            f"Gemini response: finish_reason={finish}, "
            f"len={len(text)}, output_tokens={output_tokens}"
        )
        return LLMCompletion(text=text, output_tokens=output_tokens)

    async def ping(self) -> None:
        """Cheap reachability probe; raises on failure."""
        await self.client.aio.models.get(model=self.model)
