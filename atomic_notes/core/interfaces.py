from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Tuple

from atomic_notes.core.models import Clipping, ExtractedIdea, ExtractionPolicy


class IdeaProvider(ABC):
    name: str = ""

    @abstractmethod
    async def extract(self, clipping: Clipping, policy: ExtractionPolicy) -> List[ExtractedIdea]:
        raise NotImplementedError


class VaultStorage(ABC):
    @abstractmethod
    async def read_text(self, path: str) -> str:
        raise NotImplementedError

    @abstractmethod
    async def write_text(self, path: str, content: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def exists(self, path: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def ensure_folder(self, path: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def list_children(self, folder: str) -> Tuple[List[str], List[str]]:
        """Return (files, folders) directly inside ``folder``."""
        raise NotImplementedError

    @abstractmethod
    def read_frontmatter(self, path: str) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    async def update_frontmatter(self, path: str, mutate: Callable[[Dict[str, Any]], None]) -> None:
        raise NotImplementedError

    @abstractmethod
    def snapshot(self, folder: str) -> Dict[str, int]:
        raise NotImplementedError


class Notifier(ABC):
    @abstractmethod
    def notify_info(self, message: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def notify_success(self, message: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def notify_failure(self, message: str) -> None:
        raise NotImplementedError
