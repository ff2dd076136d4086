from __future__ import annotations

import re
from typing import Iterable, List

from atomic_notes.core.errors import ValidationError
from atomic_notes.core.models import ExtractedIdea, ExtractionPolicy, ValidatedIdea
from atomic_notes.logger import get_logger

logger = get_logger(__name__)

SENTENCE_BREAK = re.compile(r"[.!?]+")
NEAR_DUPLICATE_MIN_LENGTH = 40


def validate_ideas(ideas: Iterable[ExtractedIdea], policy: ExtractionPolicy) -> List[ValidatedIdea]:
    candidates = list(ideas)
    kept: List[ValidatedIdea] = []
    for idea in candidates:
        if not idea.label.strip() or not idea.idea.strip():
            logger.warning("Filtering out invalid idea: missing label or idea text")
            continue
        if policy.max_sentences_per_idea and count_sentences(idea.idea) > policy.max_sentences_per_idea:
            logger.warning(
                "Filtering out idea '%s': exceeds sentence limit of %d",
                idea.label,
                policy.max_sentences_per_idea,
            )
            continue
        tags = [sanitize_tag(tag, policy.convert_spaces_to_hyphens) for tag in idea.tags]
        kept.append(
            ValidatedIdea(
                label=idea.label.strip(),
                idea=idea.idea.strip(),
                tags=[tag for tag in tags if tag],
            )
        )

    deduped = dedupe_ideas(kept)

    if len(deduped) < policy.min_ideas:
        raise ValidationError(surviving=len(deduped), required=policy.min_ideas)

    final = deduped[: policy.max_ideas]
    if len(final) != len(candidates):
        logger.info(
            "Filtered %d ideas; %d ideas will be processed.",
            len(candidates) - len(final),
            len(final),
        )
    return final


def count_sentences(text: str) -> int:
    return len([part for part in SENTENCE_BREAK.split(text) if part.strip()])


def normalize_idea_text(text: str) -> str:
    lowered = text.lower()
    lowered = re.sub("[\u2018\u2019]", "'", lowered)
    lowered = re.sub("[\u201c\u201d]", '"', lowered)
    lowered = re.sub(r"[^a-z0-9\s]", " ", lowered)
    return re.sub(r"\s+", " ", lowered).strip()


def is_near_duplicate(candidate: str, existing: str) -> bool:
    if candidate == existing:
        return True
    if len(candidate) > NEAR_DUPLICATE_MIN_LENGTH and len(existing) > NEAR_DUPLICATE_MIN_LENGTH:
        return candidate in existing or existing in candidate
    return False


def dedupe_ideas(ideas: Iterable[ValidatedIdea]) -> List[ValidatedIdea]:
    # Greedy: each idea is compared only against ideas already accepted
    result: List[ValidatedIdea] = []
    seen: List[str] = []
    for idea in ideas:
        normalized = normalize_idea_text(idea.idea)
        if not normalized:
            continue
        if any(is_near_duplicate(normalized, existing) for existing in seen):
            logger.warning("Filtering out near-duplicate idea: '%s'", idea.label)
            continue
        seen.append(normalized)
        result.append(idea)
    return result


def sanitize_tag(tag: str, convert_spaces: bool = True) -> str:
    value = re.sub(r"\s+", "-", tag) if convert_spaces else tag
    value = re.sub(r"[^A-Za-z0-9_-]", "-", value)
    value = re.sub(r"-+", "-", value)
    return value.strip("-").strip()
