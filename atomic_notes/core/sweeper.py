from __future__ import annotations

from typing import List, Optional

from atomic_notes.core.models import RunStatus, SweepSummary, Trigger
from atomic_notes.core.notes import normalize_path
from atomic_notes.core.pipeline import ExtractionPipeline
from atomic_notes.logger import get_logger

logger = get_logger(__name__)


class BatchSweeper:
    def __init__(self, pipeline: ExtractionPipeline) -> None:
        self.pipeline = pipeline
        self.storage = pipeline.storage
        self.tracker = pipeline.tracker

    async def collect(self, folder: str, unprocessed_only: bool = True) -> List[str]:
        found: List[str] = []
        files, folders = await self.storage.list_children(folder)
        for path in files:
            if not is_markdown(path):
                continue
            if unprocessed_only and self.tracker.is_processed(path):
                continue
            found.append(path)
        for child in folders:
            found.extend(await self.collect(child, unprocessed_only))
        return found

    async def sweep_all(self, folder: Optional[str] = None) -> SweepSummary:
        root = normalize_path(folder or self.pipeline.config.clipping_folder)
        summary = SweepSummary()
        if not await self.storage.exists(root):
            self._notify_failure(
                f'Clippings folder "{root}" not found. Create it or update clipping_folder in the config.'
            )
            return summary

        pending = await self.collect(root)
        if not pending:
            self.pipeline.notify("info", "No unprocessed clippings found.")
            return summary

        self.pipeline.notify("info", f"Processing {len(pending)} unprocessed clippings...")
        for path in pending:
            outcome = await self.pipeline.run(path, Trigger.SWEEP)
            if outcome.status == RunStatus.COMPLETED:
                summary.processed_count += 1
            elif outcome.status == RunStatus.FAILED:
                summary.error_count += 1
            else:
                summary.skipped_count += 1

        message = f"Processed {summary.processed_count} clippings"
        if summary.error_count:
            message += f" ({summary.error_count} failed)"
        logger.info("Sweep of %s finished: %s", root, summary)
        self.pipeline.notify("info", f"{message}.")
        return summary

    def _notify_failure(self, message: str) -> None:
        logger.warning(message)
        self.pipeline.notify("failure", message)


def is_markdown(path: str) -> bool:
    return path.lower().endswith(".md")
