from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


@dataclass
class Clipping:
    id: str
    path: str
    text: str
    processed: bool = False


@dataclass
class ExtractedIdea:
    label: str
    idea: str
    tags: List[str] = field(default_factory=list)


@dataclass
class ValidatedIdea:
    label: str
    idea: str
    tags: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class AtomicNote:
    id: str
    title: str
    body: str
    tags: List[str]
    source_clipping_id: str
    source_title: str
    timestamp: datetime


@dataclass
class ProcessingMarker:
    processed: bool
    processed_at: Optional[datetime] = None
    note_links: List[str] = field(default_factory=list)


@dataclass
class ExtractionPolicy:
    min_ideas: int = 3
    max_ideas: int = 6
    target_ideas: int = 4
    max_sentences_per_idea: Optional[int] = 2
    custom_prompt: str = ""
    convert_spaces_to_hyphens: bool = True


@dataclass
class ExtractionRequest:
    system: str
    user: str


class Trigger(str, Enum):
    MANUAL = "manual"
    WATCH = "watch"
    SWEEP = "sweep"


class RunStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED_LOCKED = "skipped_locked"
    SKIPPED_PROCESSED = "skipped_processed"
    FAILED = "failed"


@dataclass
class RunOutcome:
    source: str
    status: RunStatus
    note_paths: List[str] = field(default_factory=list)
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status != RunStatus.FAILED


@dataclass
class SweepSummary:
    processed_count: int = 0
    error_count: int = 0
    skipped_count: int = 0

    @property
    def total(self) -> int:
        return self.processed_count + self.error_count + self.skipped_count
