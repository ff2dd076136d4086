import argparse
import asyncio
import os

from rich.table import Table

from atomic_notes.config import check_runnable, load_config
from atomic_notes.core.errors import ConfigError
from atomic_notes.core.models import RunStatus, Trigger
from atomic_notes.core.pipeline import ExtractionPipeline
from atomic_notes.core.sweeper import BatchSweeper
from atomic_notes.core.watcher import FolderWatcher
from atomic_notes.logger import console, setup_logging
from atomic_notes.registry import build_adapter, build_provider


def _build_pipeline(config) -> ExtractionPipeline:
    storage_settings = dict(config.storage.settings)
    storage_settings.setdefault("root", config.vault_dir)
    storage = build_adapter(config.storage.class_path, storage_settings)
    notifier = build_adapter(config.notifier.class_path, config.notifier.settings)
    provider = build_provider(config)
    return ExtractionPipeline(config=config, provider=provider, storage=storage, notifier=notifier)


def _relative_to_vault(config, path: str) -> str:
    if os.path.isabs(path):
        return os.path.relpath(path, os.path.abspath(config.vault_dir))
    return path


def cmd_extract(args) -> int:
    config = load_config(args.config)
    pipeline = _build_pipeline(config)
    outcome = asyncio.run(pipeline.run(_relative_to_vault(config, args.path), Trigger.MANUAL))
    return 1 if outcome.status == RunStatus.FAILED else 0


def cmd_sweep(args) -> int:
    config = load_config(args.config)
    pipeline = _build_pipeline(config)
    folder = _relative_to_vault(config, args.folder) if args.folder else None
    summary = asyncio.run(BatchSweeper(pipeline).sweep_all(folder))
    return 1 if summary.error_count else 0


def cmd_watch(args) -> int:
    config = load_config(args.config)
    try:
        check_runnable(config)
    except ConfigError as exc:
        raise SystemExit(str(exc)) from exc
    pipeline = _build_pipeline(config)
    watcher = FolderWatcher(pipeline, settle_delay=args.settle)
    try:
        asyncio.run(watcher.watch(interval=args.interval))
    except KeyboardInterrupt:
        console.print("Stopped watching.")
    return 0


def cmd_status(args) -> int:
    config = load_config(args.config)
    pipeline = _build_pipeline(config)
    sweeper = BatchSweeper(pipeline)

    async def _collect():
        if not await pipeline.storage.exists(config.clipping_folder):
            return []
        return await sweeper.collect(config.clipping_folder, unprocessed_only=False)

    paths = asyncio.run(_collect())
    table = Table(title=f"Clippings in {config.clipping_folder}")
    table.add_column("Clipping")
    table.add_column("Status")
    table.add_column("Processed at")
    table.add_column("Notes", justify="right")
    pending = 0
    for path in paths:
        marker = sweeper.tracker.read_marker(path)
        if not marker.processed:
            pending += 1
        table.add_row(
            path,
            "[green]processed[/green]" if marker.processed else "[yellow]pending[/yellow]",
            marker.processed_at.isoformat(timespec="seconds") if marker.processed_at else "",
            str(len(marker.note_links)) if marker.note_links else "",
        )
    console.print(table)
    console.print(f"{len(paths)} clippings, {pending} unprocessed.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Atomic notes extractor")
    parser.add_argument("--config", help="Path to config.json")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    parser.add_argument("--log-file", help="Also write logs to this file")
    sub = parser.add_subparsers(dest="command", required=True)

    extract_cmd = sub.add_parser("extract", help="Extract atomic notes from one clipping")
    extract_cmd.add_argument("path", help="Clipping path, relative to the vault")
    extract_cmd.set_defaults(func=cmd_extract)

    sweep_cmd = sub.add_parser("sweep", help="Process all unprocessed clippings in a folder")
    sweep_cmd.add_argument("folder", nargs="?", help="Folder to sweep (default: clipping_folder)")
    sweep_cmd.set_defaults(func=cmd_sweep)

    watch_cmd = sub.add_parser("watch", help="Watch the clipping folder and extract new clippings")
    watch_cmd.add_argument("--interval", type=float, default=2.0, help="Polling interval in seconds")
    watch_cmd.add_argument("--settle", type=float, default=0.1, help="Delay before reading a new file")
    watch_cmd.set_defaults(func=cmd_watch)

    status_cmd = sub.add_parser("status", help="Show processed state of clippings")
    status_cmd.set_defaults(func=cmd_status)

    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(level=args.log_level, log_file=args.log_file)
    raise SystemExit(args.func(args))


if __name__ == "__main__":
    main()
