from __future__ import annotations

import asyncio
from typing import Dict, Optional

from atomic_notes.core.models import RunOutcome, Trigger
from atomic_notes.core.notes import normalize_path
from atomic_notes.core.pipeline import ExtractionPipeline
from atomic_notes.core.sweeper import is_markdown
from atomic_notes.logger import get_logger

logger = get_logger(__name__)


class FolderWatcher:
    """Turns vault change events into watch-triggered extraction runs.

    Overlapping events for one document are harmless: the pipeline's tracker
    drops any run that finds the document locked or already processed.
    """

    def __init__(self, pipeline: ExtractionPipeline, settle_delay: float = 0.1) -> None:
        self.pipeline = pipeline
        self.clipping_folder = normalize_path(pipeline.config.clipping_folder)
        self.output_folder = normalize_path(pipeline.config.output_folder)
        self.settle_delay = settle_delay

    def in_clipping_folder(self, path: str) -> bool:
        return _inside(normalize_path(path), self.clipping_folder)

    def should_process(self, path: str) -> bool:
        path = normalize_path(path)
        if not is_markdown(path) or not self.in_clipping_folder(path):
            return False
        # Notes written into a nested output folder must not feed back in
        return not (self.output_folder and _inside(path, self.output_folder))

    async def on_created(self, path: str) -> Optional[RunOutcome]:
        if not self.should_process(path):
            return None
        # Give the writer a moment to finish the file
        await asyncio.sleep(self.settle_delay)
        return await self.pipeline.run(path, Trigger.WATCH)

    async def on_modified(self, path: str) -> Optional[RunOutcome]:
        if not self.should_process(path):
            return None
        return await self.pipeline.run(path, Trigger.WATCH)

    async def on_renamed(self, path: str, old_path: str) -> Optional[RunOutcome]:
        if not self.should_process(path) or self.in_clipping_folder(old_path):
            return None
        await asyncio.sleep(self.settle_delay)
        return await self.pipeline.run(path, Trigger.WATCH)

    async def poll_once(self, previous: Dict[str, int]) -> Dict[str, int]:
        current = self.pipeline.storage.snapshot(self.clipping_folder)
        for path, mtime in current.items():
            if path not in previous:
                await self.on_created(path)
            elif previous[path] != mtime:
                await self.on_modified(path)
        return current

    async def watch(self, interval: float = 2.0, stop: Optional[asyncio.Event] = None) -> None:
        if not self.pipeline.config.auto_watch_clippings:
            logger.info("Folder watching is disabled (auto_watch_clippings is false)")
            return
        logger.info("Watching %s for new clippings", self.clipping_folder or "vault root")
        snapshot = self.pipeline.storage.snapshot(self.clipping_folder)
        stop = stop or asyncio.Event()
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
            if stop.is_set():
                break
            snapshot = await self.poll_once(snapshot)


def _inside(path: str, folder: str) -> bool:
    if not folder:
        return True
    return path == folder or path.startswith(f"{folder}/")
