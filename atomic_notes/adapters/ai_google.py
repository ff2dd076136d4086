from __future__ import annotations

import asyncio
import urllib.parse
from typing import List, Optional

from atomic_notes.adapters.http_transport import post_json
from atomic_notes.core.errors import BackendError, ConfigError
from atomic_notes.core.interfaces import IdeaProvider
from atomic_notes.core.models import Clipping, ExtractedIdea, ExtractionPolicy, ExtractionRequest
from atomic_notes.core.parsing import parse_ideas
from atomic_notes.core.prompts import build_extraction_request


class GoogleProvider(IdeaProvider):
    name = "google"
    base_url = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
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
            raise ConfigError("Google API key is missing. Add it to the providers.google settings.")
        request = build_extraction_request(clipping, policy)
        payload = await asyncio.to_thread(self._generate, request)
        return parse_ideas(_unwrap(payload))

    def _generate(self, request: ExtractionRequest) -> dict:
        # Gemini takes a single user turn; the system text is prepended to it
        url = f"{self.base_url}/{self.model}:generateContent?key={urllib.parse.quote(self.api_key)}"
        return post_json(
            self.name,
            url,
            {
                "contents": [
                    {"role": "user", "parts": [{"text": f"{request.system}\n\n{request.user}"}]},
                ],
                "generationConfig": {"temperature": 0.2},
            },
            timeout=self.timeout,
            max_retries=self.max_retries,
            retry_backoff=self.retry_backoff,
            ca_bundle=self.ca_bundle,
        )


def _unwrap(payload: dict) -> str:
    candidates = payload.get("candidates") or [{}]
    parts = (candidates[0].get("content") or {}).get("parts") or [{}]
    text = parts[0].get("text")
    if not text:
        raise BackendError("google", "Google response contained no content.", body=str(payload))
    return text
