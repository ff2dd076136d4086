from __future__ import annotations

from typing import List

from atomic_notes.core.interfaces import IdeaProvider
from atomic_notes.core.models import Clipping, ExtractedIdea, ExtractionPolicy


def placeholder_count(policy: ExtractionPolicy) -> int:
    lower = max(policy.min_ideas, 1)
    upper = max(lower, policy.max_ideas)
    return max(lower, min(policy.target_ideas, upper))


class OfflineProvider(IdeaProvider):
    """Deterministic provider that never touches the network."""

    name = "offline"

    async def extract(self, clipping: Clipping, policy: ExtractionPolicy) -> List[ExtractedIdea]:
        return [
            ExtractedIdea(
                label=f"Idea {i + 1}",
                idea=f"Atomic idea {i + 1} derived from {clipping.path}.",
                tags=["offline"],
            )
            for i in range(placeholder_count(policy))
        ]
