"""Shared fixtures: a temporary vault, a config pointing at it, and test doubles."""

import asyncio
from typing import List

import pytest

from atomic_notes.adapters.ai_offline import OfflineProvider
from atomic_notes.adapters.storage_vault import FileVault
from atomic_notes.config import AppConfig
from atomic_notes.core.interfaces import IdeaProvider, Notifier
from atomic_notes.core.models import ExtractedIdea
from atomic_notes.core.pipeline import ExtractionPipeline


class RecordingNotifier(Notifier):
    def __init__(self):
        self.messages = []

    def notify_info(self, message):
        self.messages.append(("info", message))

    def notify_success(self, message):
        self.messages.append(("success", message))

    def notify_failure(self, message):
        self.messages.append(("failure", message))

    def of_kind(self, kind):
        return [message for k, message in self.messages if k == kind]


class ScriptedProvider(IdeaProvider):
    """Returns fixed ideas, counts calls, and can pause mid-call."""

    name = "scripted"

    def __init__(self, ideas: List[ExtractedIdea], delay: float = 0.0, error: Exception = None):
        self.ideas = ideas
        self.delay = delay
        self.error = error
        self.calls = 0

    async def extract(self, clipping, policy):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return list(self.ideas)


def make_ideas(count):
    topics = ["rivers", "glaciers", "deserts", "forests", "oceans", "volcanoes", "prairies"]
    return [
        ExtractedIdea(
            label=f"About {topics[i]}",
            idea=f"The {topics[i]} shape the landscape in their own way.",
            tags=["geo graphy"],
        )
        for i in range(count)
    ]


@pytest.fixture
def vault_dir(tmp_path):
    (tmp_path / "Clippings").mkdir()
    return tmp_path


@pytest.fixture
def vault(vault_dir):
    return FileVault(str(vault_dir))


@pytest.fixture
def config(vault_dir):
    return AppConfig(vault_dir=str(vault_dir), provider="offline")


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def write_clipping(vault_dir):
    def _write(name, text):
        path = vault_dir / "Clippings" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return f"Clippings/{name}"

    return _write


@pytest.fixture
def make_pipeline(config, vault, notifier):
    def _make(idea_provider=None, **overrides):
        for key, value in overrides.items():
            setattr(config, key, value)
        return ExtractionPipeline(
            config=config,
            provider=idea_provider or OfflineProvider(),
            storage=vault,
            notifier=notifier,
        )

    return _make
