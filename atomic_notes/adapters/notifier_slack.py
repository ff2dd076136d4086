from __future__ import annotations

from typing import Optional

from atomic_notes.adapters.http_transport import post_json
from atomic_notes.core.errors import BackendError
from atomic_notes.core.interfaces import Notifier

POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"


class SlackNotifier(Notifier):
    """Posts extraction notices to one Slack channel."""

    def __init__(self, token: str, channel_id: str, ca_bundle: Optional[str] = None) -> None:
        self.token = token
        self.channel_id = channel_id
        self.ca_bundle = ca_bundle

    def notify_info(self, message: str) -> None:
        self._post(message)

    def notify_success(self, message: str) -> None:
        self._post(f":white_check_mark: {message}")

    def notify_failure(self, message: str) -> None:
        self._post(f":x: {message}")

    def _post(self, text: str) -> None:
        data = post_json(
            "slack",
            POST_MESSAGE_URL,
            {"channel": self.channel_id, "text": text},
            headers={"Authorization": f"Bearer {self.token}"},
            timeout=8.0,
            max_retries=1,
            ca_bundle=self.ca_bundle,
        )
        # Slack reports most failures with HTTP 200 and ok=false
        if not data.get("ok"):
            raise BackendError("slack", f"Slack error: {data.get('error', 'unknown')}", body=str(data))
