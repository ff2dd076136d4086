from __future__ import annotations

import re
import unicodedata
from datetime import datetime, timezone
from typing import Iterable, List, Optional

import yaml

from atomic_notes.core.models import AtomicNote, Clipping, ValidatedIdea


LINK_FORMATS = {"filename", "pathWithTitle"}
LINKS_HEADING = "## Atomic Notes"
MAX_SLUG_LENGTH = 80


class NoteBuilder:
    def __init__(self, source_link_property: str = "source", source_link_format: str = "filename") -> None:
        self.source_link_property = source_link_property
        self.source_link_format = source_link_format

    def build(
        self,
        clipping: Clipping,
        ideas: Iterable[ValidatedIdea],
        timestamp: Optional[datetime] = None,
    ) -> List[AtomicNote]:
        # One timestamp for the whole batch keeps ids sortable
        created = timestamp or datetime.now(timezone.utc)
        millis = int(created.timestamp() * 1000)
        source_title = source_title_for(clipping.path)
        return [
            AtomicNote(
                id=f"{clipping.id}#{millis}-{index}",
                title=idea.label.strip(),
                body=idea.idea.strip(),
                tags=list(idea.tags),
                source_clipping_id=clipping.id,
                source_title=source_title,
                timestamp=created,
            )
            for index, idea in enumerate(ideas)
        ]

    def filename_for(self, note: AtomicNote) -> str:
        return f"{slugify(note.title)}.md"

    def render(self, note: AtomicNote) -> str:
        header = {
            "title": note.title,
            self.source_link_property: format_wiki_link(
                note.source_clipping_id, note.source_title, self.source_link_format
            ),
            "sourceClippingId": note.source_clipping_id,
            "created": note.timestamp.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
        if note.tags:
            header["tags"] = list(note.tags)
        frontmatter = yaml.safe_dump(header, sort_keys=False, allow_unicode=True).strip()
        source_link = format_wiki_link(note.source_clipping_id, note.source_title, "filename")
        return "\n".join(["---", frontmatter, "---", "", note.body, "", f"**Source:** {source_link}", ""])


def normalize_path(path: str) -> str:
    parts = [part for part in path.replace("\\", "/").split("/") if part and part != "."]
    return "/".join(parts)


def slugify(title: str) -> str:
    text = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    text = text[:MAX_SLUG_LENGTH].rstrip("-")
    return text or "note"


def source_title_for(path: str) -> str:
    stem = _stem(path)
    parts = [part for part in re.split(r"[-_]+", stem) if part]
    return " ".join(part[:1].upper() + part[1:] for part in parts) or stem


def format_wiki_link(path: str, title: str, link_format: str = "filename") -> str:
    normalized = path.replace("\\", "/").lstrip("/")
    normalized = re.sub(r"\.md$", "", normalized, flags=re.IGNORECASE).strip("'\"")
    filename = normalized.rsplit("/", 1)[-1] or normalized
    if link_format == "pathWithTitle":
        alias = re.sub(r"[\"'`]+", "", title.strip()).strip() or filename
        return f"[[{normalized}|{alias}]]"
    return f"[[{filename}]]"


def update_links_section(content: str, links: List[str]) -> str:
    """Replace any existing Atomic Notes section with a fresh list at the end."""
    lines = content.split("\n")
    start = next(
        (i for i, line in enumerate(lines) if line.strip().lower() == LINKS_HEADING.lower()),
        None,
    )
    if start is not None:
        end = len(lines)
        for i in range(start + 1, len(lines)):
            if lines[i].startswith("#"):
                end = i
                break
        del lines[start:end]

    if links:
        while lines and not lines[-1].strip():
            lines.pop()
        lines.extend(["", LINKS_HEADING, ""])
        lines.extend(f"- {link}" for link in links)
        lines.append("")
    return "\n".join(lines)


def _stem(path: str) -> str:
    filename = path.replace("\\", "/").rsplit("/", 1)[-1]
    return re.sub(r"\.md$", "", filename, flags=re.IGNORECASE)
