import logging

import httpx
from openai import OpenAI, OpenAIError

from recruitflow.config import Settings
from recruitflow.errors import ConfigurationError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)


class TextGenerator:
    """
    Free-text prompt in, free-text completion out. Used to draft skill-test questions.
    """

    def __init__(self, settings: Settings, client: OpenAI | None = None):
        self.settings = settings
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            if not self.settings.OPENAI_API_KEY:
                raise ConfigurationError("OPENAI_API_KEY is not configured")
            # Plain httpx client so proxy env vars don't leak into the SDK.
            http_client = httpx.Client(trust_env=False, timeout=self.settings.LLM_TIMEOUT_SEC)
            self._client = OpenAI(
                api_key=self.settings.OPENAI_API_KEY,
                http_client=http_client,
                timeout=self.settings.LLM_TIMEOUT_SEC,
                max_retries=1,
            )
        return self._client

    def generate(self, prompt: str) -> str:
        prompt = (prompt or "").strip()
        if not prompt:
            raise ValidationError("Prompt is required")

        client = self._get_client()
        try:
            completion = client.chat.completions.create(
                model=self.settings.LLM_MODEL or "gpt-4o-mini",
                messages=[{"role": "user", "content": prompt}],
            )
        except OpenAIError as exc:
            logger.exception("Text generation failed")
            raise UpstreamError("Could not generate text") from exc

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise UpstreamError("Empty response from the language model")
        return content
