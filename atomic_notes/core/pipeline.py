from __future__ import annotations

from typing import List, Optional, Set

from atomic_notes.config import AppConfig, build_policy, check_runnable
from atomic_notes.core.errors import EmptySourceError, StorageCollisionError
from atomic_notes.core.interfaces import IdeaProvider, Notifier, VaultStorage
from atomic_notes.core.models import AtomicNote, Clipping, RunOutcome, RunStatus, Trigger
from atomic_notes.core.notes import NoteBuilder, format_wiki_link, normalize_path, update_links_section
from atomic_notes.core.state import Admission, ProcessingStateTracker
from atomic_notes.core.validation import validate_ideas
from atomic_notes.logger import get_logger

logger = get_logger(__name__)

MAX_NOTICE_LENGTH = 100


class ExtractionPipeline:
    """Runs one extraction per source document.

    ``run`` is the error boundary: every failure is logged, reported once, and
    turned into a FAILED outcome instead of propagating to the trigger.
    """

    def __init__(
        self,
        config: AppConfig,
        provider: IdeaProvider,
        storage: VaultStorage,
        notifier: Notifier,
        tracker: Optional[ProcessingStateTracker] = None,
        note_builder: Optional[NoteBuilder] = None,
    ) -> None:
        self.config = config
        self.provider = provider
        self.storage = storage
        self.notifier = notifier
        self.policy = build_policy(config)
        self.tracker = tracker or ProcessingStateTracker(
            storage,
            processed_flag_field=config.processed_flag_field,
            processed_at_field=config.processed_at_field,
            note_links_property=config.note_links_property,
            store_note_links=config.store_note_links_in_frontmatter,
        )
        self.note_builder = note_builder or NoteBuilder(
            source_link_property=config.source_link_property,
            source_link_format=config.source_link_format,
        )

    async def run(self, source: str, trigger: Trigger = Trigger.MANUAL) -> RunOutcome:
        key = normalize_path(source)
        try:
            check_runnable(self.config)
            admission = self.tracker.admit(key)
        except Exception as exc:
            return self._fail(key, exc, trigger)
        if admission == Admission.LOCKED:
            return RunOutcome(key, RunStatus.SKIPPED_LOCKED)
        if admission == Admission.PROCESSED:
            return self._already_processed(key, trigger)

        try:
            return await self._extract(key, trigger)
        except Exception as exc:
            return self._fail(key, exc, trigger)
        finally:
            self.tracker.release(key)

    async def read_clipping(self, path: str) -> Clipping:
        key = normalize_path(path)
        text = await self.storage.read_text(key)
        return Clipping(id=key, path=key, text=text, processed=self.tracker.is_processed(key))

    async def write_notes(self, notes: List[AtomicNote]) -> List[str]:
        folder = normalize_path(self.config.output_folder)
        targets = self._plan_targets(folder, notes)
        if not self.config.allow_overwrite:
            for path in targets:
                if await self.storage.exists(path):
                    raise StorageCollisionError(path)

        await self.storage.ensure_folder(folder)
        for note, path in zip(notes, targets):
            await self.storage.write_text(path, self.note_builder.render(note))
            logger.debug("Wrote %s", path)
        return targets

    async def _extract(self, key: str, trigger: Trigger) -> RunOutcome:
        clipping = await self.read_clipping(key)
        if clipping.processed:
            return self._already_processed(key, trigger)
        if not clipping.text.strip():
            raise EmptySourceError(key)

        name = _display_name(key)
        if trigger == Trigger.MANUAL:
            self.notify("info", f'Processing "{name}"...')
        logger.info("Extracting ideas from %s with %s", key, self.provider.name or type(self.provider).__name__)

        ideas = await self.provider.extract(clipping, self.policy)
        validated = validate_ideas(ideas, self.policy)
        notes = self.note_builder.build(clipping, validated)
        paths = await self.write_notes(notes)

        links = [
            format_wiki_link(path, note.title, self.config.source_link_format)
            for note, path in zip(notes, paths)
        ]
        await self.tracker.commit(key, links)
        if self.config.write_note_links_to_footer:
            await self._link_back(key, links)

        logger.info("Created %d atomic notes from %s", len(notes), key)
        self.notify("success", f'"{name}": {len(notes)} atomic notes created')
        return RunOutcome(key, RunStatus.COMPLETED, note_paths=paths)

    async def _link_back(self, key: str, links: List[str]) -> None:
        try:
            content = await self.storage.read_text(key)
            await self.storage.write_text(key, update_links_section(content, links))
        except OSError as exc:
            # The marker is already committed; a missing footer is not worth failing the run
            logger.warning("Failed to add atomic note links to %s: %s", key, exc)

    def _plan_targets(self, folder: str, notes: List[AtomicNote]) -> List[str]:
        # Same-title notes in one batch get an ordinal suffix instead of colliding
        taken: Set[str] = set()
        targets = []
        for note in notes:
            filename = self.note_builder.filename_for(note)
            stem = filename[: -len(".md")]
            ordinal = 2
            while filename in taken:
                filename = f"{stem}-{ordinal}.md"
                ordinal += 1
            taken.add(filename)
            targets.append(f"{folder}/{filename}" if folder else filename)
        return targets

    def _already_processed(self, key: str, trigger: Trigger) -> RunOutcome:
        logger.info("%s is already processed", key)
        if trigger == Trigger.MANUAL:
            self.notify("info", f'"{_display_name(key)}" is already processed.')
        return RunOutcome(key, RunStatus.SKIPPED_PROCESSED)

    def _fail(self, key: str, exc: Exception, trigger: Trigger) -> RunOutcome:
        message = format_error_message(exc)
        logger.error("Extraction failed for %s: %s", key, exc, exc_info=exc)
        # Watch and sweep triggers only log; sweeps report a summary instead
        if trigger == Trigger.MANUAL:
            self.notify("failure", f"Extraction failed: {message}")
        return RunOutcome(key, RunStatus.FAILED, message=message)

    def notify(self, kind: str, message: str) -> None:
        try:
            getattr(self.notifier, f"notify_{kind}")(message)
        except Exception as exc:
            logger.warning("Notifier failed to deliver '%s': %s", message, exc)


def format_error_message(exc: BaseException) -> str:
    message = str(exc) or type(exc).__name__
    if len(message) > MAX_NOTICE_LENGTH:
        return message[: MAX_NOTICE_LENGTH - 3] + "..."
    return message


def _display_name(path: str) -> str:
    return path.rsplit("/", 1)[-1]
