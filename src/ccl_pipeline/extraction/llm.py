import logging
from typing import Optional

from openai import OpenAI, OpenAIError

from ccl_pipeline.errors import ModelProviderError

logger = logging.getLogger(__name__)


class OpenAIChatModel:
    """``complete(prompt) -> str`` over an OpenAI-compatible chat endpoint."""

    def __init__(self, api_key: str, model: str = "gpt-4o", base_url: Optional[str] = None,
                 timeout: float = 120, temperature: float = 0.0) -> None:
        self.model = model
        self.temperature = temperature
        self._api_key = api_key
        self._base_url = base_url or None
        self._timeout = timeout
        self._client: Optional[OpenAI] = None

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not self._api_key:
                raise ModelProviderError("OPENAI_API_KEY is not configured")
            self._client = OpenAI(api_key=self._api_key, base_url=self._base_url, timeout=self._timeout)
        return self._client

    def complete(self, prompt: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
            )
        except OpenAIError as e:
            raise ModelProviderError(f"Language model call failed: {e}") from e
        content = response.choices[0].message.content if response.choices else None
        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.info(f"[llm] {self.model} prompt_tokens={usage.prompt_tokens} completion_tokens={usage.completion_tokens}")
        return content or ""
