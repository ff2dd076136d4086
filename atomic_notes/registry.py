import importlib
from typing import Any

from atomic_notes.config import AppConfig
from atomic_notes.core.errors import ConfigError
from atomic_notes.core.interfaces import IdeaProvider


PROVIDER_CLASSES = {
    "openai": "atomic_notes.adapters.ai_openai.OpenAIProvider",
    "anthropic": "atomic_notes.adapters.ai_anthropic.AnthropicProvider",
    "google": "atomic_notes.adapters.ai_google.GoogleProvider",
    "offline": "atomic_notes.adapters.ai_offline.OfflineProvider",
    "mock": "atomic_notes.adapters.ai_offline.OfflineProvider",
}


def load_class(path: str) -> type:
    if not path or "." not in path:
        raise ConfigError(f"Invalid class path: {path}")
    module_path, class_name = path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)


def build_adapter(path: str, settings: dict) -> Any:
    klass = load_class(path)
    return klass(**settings)


def build_provider(config: AppConfig) -> IdeaProvider:
    class_path = PROVIDER_CLASSES.get(config.provider)
    if class_path is None:
        raise ConfigError(f"Unknown provider '{config.provider}'.")
    if config.provider in ("offline", "mock"):
        return build_adapter(class_path, {})
    provider = config.provider_config()
    settings = dict(provider.settings)
    settings["api_key"] = provider.api_key
    if provider.model:
        settings["model"] = provider.model
    return build_adapter(class_path, settings)
