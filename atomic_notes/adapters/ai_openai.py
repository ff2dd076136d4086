from __future__ import annotations

import asyncio
from typing import List, Optional

from atomic_notes.adapters.http_transport import post_json
from atomic_notes.core.errors import BackendError, ConfigError
from atomic_notes.core.interfaces import IdeaProvider
from atomic_notes.core.models import Clipping, ExtractedIdea, ExtractionPolicy, ExtractionRequest
from atomic_notes.core.parsing import parse_ideas
from atomic_notes.core.prompts import build_extraction_request


class OpenAIProvider(IdeaProvider):
    name = "openai"
    url = "https://api.openai.com/v1/chat/completions"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        ca_bundle: Optional[str] = None,
        max_retries: int = 3,
        retry_backoff: float = 1.5,
        timeout: float = 60.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.ca_bundle = ca_bundle
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.timeout = timeout

    async def extract(self, clipping: Clipping, policy: ExtractionPolicy) -> List[ExtractedIdea]:
        if not (self.api_key or "").strip():
            raise ConfigError("OpenAI API key is missing. Add it to the providers.openai settings.")
        request = build_extraction_request(clipping, policy)
        payload = await asyncio.to_thread(self._chat, request)
        return parse_ideas(_unwrap(payload))

    def _chat(self, request: ExtractionRequest) -> dict:
        return post_json(
            self.name,
            self.url,
            {
                "model": self.model,
                "temperature": 0.2,
                "messages": [
                    {"role": "system", "content": request.system},
                    {"role": "user", "content": request.user},
                ],
            },
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
            max_retries=self.max_retries,
            retry_backoff=self.retry_backoff,
            ca_bundle=self.ca_bundle,
        )


def _unwrap(payload: dict) -> str:
    choices = payload.get("choices") or [{}]
    content = (choices[0].get("message") or {}).get("content")
    if not content:
        raise BackendError("openai", "OpenAI response contained no content.", body=str(payload))
    return content
