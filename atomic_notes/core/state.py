from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from atomic_notes.core.interfaces import VaultStorage
from atomic_notes.core.models import ProcessingMarker
from atomic_notes.logger import get_logger

logger = get_logger(__name__)


class Admission(str, Enum):
    ADMITTED = "admitted"
    LOCKED = "locked"
    PROCESSED = "processed"


class ProcessingStateTracker:
    """Tracks which sources are processed (persisted) and in flight (in memory).

    The lock set lives for the process lifetime only; a restart forgets
    in-flight runs, and the persisted marker is the only durable state.
    """

    def __init__(
        self,
        storage: VaultStorage,
        processed_flag_field: str = "atomicNotesProcessed",
        processed_at_field: str = "atomicNotesProcessedAt",
        note_links_property: str = "atomicNotes",
        store_note_links: bool = True,
    ) -> None:
        self.storage = storage
        self.processed_flag_field = processed_flag_field
        self.processed_at_field = processed_at_field
        self.note_links_property = note_links_property
        self.store_note_links = store_note_links
        self._locked: Set[str] = set()

    def is_locked(self, key: str) -> bool:
        return key in self._locked

    def is_processed(self, key: str) -> bool:
        return self.read_marker(key).processed

    def read_marker(self, key: str) -> ProcessingMarker:
        frontmatter = self.storage.read_frontmatter(key)
        return marker_from_frontmatter(
            frontmatter, self.processed_flag_field, self.processed_at_field, self.note_links_property
        )

    def admit(self, key: str) -> Admission:
        # No await between the check and the add: the event loop cannot interleave here
        if key in self._locked:
            logger.debug("Skipping %s: extraction already in flight", key)
            return Admission.LOCKED
        if self.is_processed(key):
            logger.debug("Skipping %s: already processed", key)
            return Admission.PROCESSED
        self._locked.add(key)
        return Admission.ADMITTED

    def release(self, key: str) -> None:
        self._locked.discard(key)

    async def commit(self, key: str, note_links: Optional[List[str]] = None) -> ProcessingMarker:
        processed_at = datetime.now(timezone.utc)

        def _mark(frontmatter: Dict[str, Any]) -> None:
            frontmatter[self.processed_flag_field] = True
            frontmatter[self.processed_at_field] = processed_at.isoformat()
            if self.store_note_links and note_links:
                frontmatter[self.note_links_property] = list(note_links)

        try:
            await self.storage.update_frontmatter(key, _mark)
        finally:
            self.release(key)
        return ProcessingMarker(processed=True, processed_at=processed_at, note_links=list(note_links or []))


def marker_from_frontmatter(
    frontmatter: Dict[str, Any],
    processed_flag_field: str,
    processed_at_field: str,
    note_links_property: str,
) -> ProcessingMarker:
    processed = frontmatter.get(processed_flag_field) is True
    processed_at = _parse_instant(frontmatter.get(processed_at_field))
    links = frontmatter.get(note_links_property)
    return ProcessingMarker(
        processed=processed,
        processed_at=processed_at,
        note_links=[str(link) for link in links] if isinstance(links, list) else [],
    )


def _parse_instant(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
