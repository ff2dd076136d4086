from __future__ import annotations

import asyncio
import os
import tempfile
from typing import Any, Callable, Dict, List, Tuple

import yaml

from atomic_notes.core.interfaces import VaultStorage
from atomic_notes.core.notes import normalize_path
from atomic_notes.logger import get_logger

logger = get_logger(__name__)

FRONTMATTER_FENCE = "---"


class FileVault(VaultStorage):
    """Markdown vault on the local filesystem, addressed by vault-relative paths.

    Blocking file work runs in a worker thread. ``read_frontmatter`` stays
    synchronous so the processed check and the lock share one step of the
    event loop.
    """

    def __init__(self, root: str = ".") -> None:
        self.root = os.path.abspath(root)
        self._frontmatter_cache: Dict[str, Tuple[int, Dict[str, Any]]] = {}

    async def read_text(self, path: str) -> str:
        return await asyncio.to_thread(self._read, path)

    async def write_text(self, path: str, content: str) -> None:
        await asyncio.to_thread(self._write, path, content)
        self._frontmatter_cache.pop(normalize_path(path), None)

    async def exists(self, path: str) -> bool:
        return os.path.exists(self._abs(path))

    async def ensure_folder(self, path: str) -> None:
        os.makedirs(self._abs(path), exist_ok=True)

    async def list_children(self, folder: str) -> Tuple[List[str], List[str]]:
        return await asyncio.to_thread(self._list, normalize_path(folder))

    def read_frontmatter(self, path: str) -> Dict[str, Any]:
        key = normalize_path(path)
        target = self._abs(key)
        try:
            mtime = os.stat(target).st_mtime_ns
        except FileNotFoundError:
            return {}
        cached = self._frontmatter_cache.get(key)
        if cached and cached[0] == mtime:
            return cached[1]
        try:
            with open(target, "r", encoding="utf-8") as handle:
                header = _read_header_lines(handle)
        except (OSError, UnicodeDecodeError) as exc:
            # Reading the whole document later reports the real error
            logger.warning("Cannot read frontmatter of %s: %s", key, exc)
            return {}
        data = _load_header(header, key)
        self._frontmatter_cache[key] = (mtime, data)
        return data

    async def update_frontmatter(self, path: str, mutate: Callable[[Dict[str, Any]], None]) -> None:
        content = await self.read_text(path)
        header, body = split_frontmatter(content)
        data = _load_header(header, path, strict=True) if header is not None else {}
        mutate(data)
        await self.write_text(path, join_frontmatter(data, body))

    def snapshot(self, folder: str) -> Dict[str, int]:
        base = self._abs(folder)
        result: Dict[str, int] = {}
        if not os.path.isdir(base):
            return result
        for dirpath, _, filenames in os.walk(base):
            for filename in filenames:
                full = os.path.join(dirpath, filename)
                rel = os.path.relpath(full, self.root).replace(os.sep, "/")
                try:
                    result[rel] = os.stat(full).st_mtime_ns
                except FileNotFoundError:
                    continue
        return result

    def _read(self, path: str) -> str:
        with open(self._abs(path), "r", encoding="utf-8") as handle:
            return handle.read()

    def _write(self, path: str, content: str) -> None:
        target = self._abs(path)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=os.path.dirname(target), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.replace(tmp_path, target)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def _list(self, base: str) -> Tuple[List[str], List[str]]:
        files: List[str] = []
        folders: List[str] = []
        with os.scandir(self._abs(base)) as entries:
            for entry in sorted(entries, key=lambda e: e.name):
                child = f"{base}/{entry.name}" if base else entry.name
                if entry.is_dir():
                    folders.append(child)
                elif entry.is_file():
                    files.append(child)
        return files, folders

    def _abs(self, path: str) -> str:
        return os.path.join(self.root, *normalize_path(path).split("/"))


def split_frontmatter(content: str) -> Tuple[str | None, str]:
    lines = content.split("\n")
    if not lines or lines[0].strip() != FRONTMATTER_FENCE:
        return None, content
    for index in range(1, len(lines)):
        if lines[index].strip() == FRONTMATTER_FENCE:
            return "\n".join(lines[1:index]), "\n".join(lines[index + 1 :])
    return None, content


def join_frontmatter(data: Dict[str, Any], body: str) -> str:
    if not data:
        return body
    header = yaml.safe_dump(data, sort_keys=False, allow_unicode=True).strip()
    return f"{FRONTMATTER_FENCE}\n{header}\n{FRONTMATTER_FENCE}\n{body}"


def _read_header_lines(handle) -> str | None:
    first = handle.readline()
    if first.strip() != FRONTMATTER_FENCE:
        return None
    lines = []
    for line in handle:
        if line.strip() == FRONTMATTER_FENCE:
            return "".join(lines)
        lines.append(line)
    return None


def _load_header(header: str | None, path: str, strict: bool = False) -> Dict[str, Any]:
    if not header:
        return {}
    try:
        data = yaml.safe_load(header)
    except yaml.YAMLError as exc:
        if strict:
            raise
        logger.warning("Ignoring unreadable frontmatter in %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}
