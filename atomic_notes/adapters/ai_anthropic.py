from __future__ import annotations

import asyncio
from typing import List, Optional

from atomic_notes.adapters.http_transport import post_json
from atomic_notes.core.errors import BackendError, ConfigError
from atomic_notes.core.interfaces import IdeaProvider
from atomic_notes.core.models import Clipping, ExtractedIdea, ExtractionPolicy, ExtractionRequest
from atomic_notes.core.parsing import parse_ideas
from atomic_notes.core.prompts import build_extraction_request


class AnthropicProvider(IdeaProvider):
    name = "anthropic"
    url = "https://api.anthropic.com/v1/messages"

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-sonnet-20240620",
        ca_bundle: Optional[str] = None,
        max_retries: int = 3,
        retry_backoff: float = 1.5,
        timeout: float = 60.0,
        max_tokens: int = 2048,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.ca_bundle = ca_bundle
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.timeout = timeout
        self.max_tokens = max_tokens

    async def extract(self, clipping: Clipping, policy: ExtractionPolicy) -> List[ExtractedIdea]:
        if not (self.api_key or "").strip():
            raise ConfigError("Anthropic API key is missing. Add it to the providers.anthropic settings.")
        request = build_extraction_request(clipping, policy)
        payload = await asyncio.to_thread(self._messages, request)
        return parse_ideas(_unwrap(payload))

    def _messages(self, request: ExtractionRequest) -> dict:
        return post_json(
            self.name,
            self.url,
            {
                "model": self.model,
                "max_tokens": self.max_tokens,
                "temperature": 0.2,
                "system": request.system,
                "messages": [{"role": "user", "content": request.user}],
            },
            headers={"x-api-key": self.api_key, "anthropic-version": "2023-06-01"},
            timeout=self.timeout,
            max_retries=self.max_retries,
            retry_backoff=self.retry_backoff,
            ca_bundle=self.ca_bundle,
        )


def _unwrap(payload: dict) -> str:
    blocks = payload.get("content") or [{}]
    text = blocks[0].get("text")
    if not text:
        raise BackendError("anthropic", "Anthropic response contained no content.", body=str(payload))
    return text
