from __future__ import annotations

import json
import os
import ssl
import time
import urllib.error
import urllib.request
from typing import Dict, Optional

from atomic_notes.core.errors import BackendError
from atomic_notes.logger import get_logger

logger = get_logger(__name__)


def post_json(
    provider: str,
    url: str,
    payload: dict,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 60.0,
    max_retries: int = 3,
    retry_backoff: float = 1.5,
    ca_bundle: Optional[str] = None,
) -> dict:
    body = json.dumps(payload).encode("utf-8")
    request = urllib.request.Request(url, data=body, method="POST")
    request.add_header("Content-Type", "application/json")
    for key, value in (headers or {}).items():
        request.add_header(key, value)
    context = None
    ca_bundle = ca_bundle or os.environ.get("SSL_CERT_FILE")
    if ca_bundle and os.path.exists(ca_bundle):
        context = ssl.create_default_context(cafile=ca_bundle)

    for attempt in range(max_retries + 1):
        try:
            with urllib.request.urlopen(request, context=context, timeout=timeout) as response:
                raw = response.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            if exc.code == 429 and attempt < max_retries:
                delay = retry_backoff * (2**attempt)
                logger.warning("%s rate limited; retrying in %.1fs", provider, delay)
                time.sleep(delay)
                continue
            error_body = exc.read().decode("utf-8", errors="replace") if exc.fp else ""
            raise BackendError(
                provider,
                f"{provider} API error ({exc.code}): {error_body}",
                status=exc.code,
                body=error_body,
            ) from exc
        except urllib.error.URLError as exc:
            raise BackendError(provider, f"{provider} request failed: {exc.reason}") from exc
        except TimeoutError as exc:
            raise BackendError(provider, f"{provider} request timed out after {timeout}s.") from exc
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise BackendError(provider, f"{provider} returned a non-JSON response.", body=raw) from exc
    raise BackendError(provider, f"{provider} request exhausted retries.")
