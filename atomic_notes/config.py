import json
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from atomic_notes.core.errors import ConfigError
from atomic_notes.core.models import ExtractionPolicy
from atomic_notes.core.notes import LINK_FORMATS


@dataclass
class AdapterConfig:
    class_path: str
    settings: Dict[str, Any]


@dataclass
class ProviderConfig:
    api_key: str = ""
    model: str = ""
    settings: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AppConfig:
    vault_dir: str = "."
    clipping_folder: str = "Clippings"
    output_folder: str = "AtomicNotes"
    processed_flag_field: str = "atomicNotesProcessed"
    processed_at_field: str = "atomicNotesProcessedAt"
    source_link_property: str = "source"
    source_link_format: str = "filename"
    store_note_links_in_frontmatter: bool = True
    note_links_property: str = "atomicNotes"
    write_note_links_to_footer: bool = True
    min_ideas: int = 3
    max_ideas: int = 6
    target_ideas: int = 4
    max_sentences_per_idea: Optional[int] = 2
    allow_overwrite: bool = False
    auto_watch_clippings: bool = True
    sanitize_tags: bool = True
    custom_prompt: str = ""
    provider: str = "openai"
    providers: Dict[str, ProviderConfig] = field(default_factory=dict)
    storage: AdapterConfig = field(
        default_factory=lambda: AdapterConfig("atomic_notes.adapters.storage_vault.FileVault", {})
    )
    notifier: AdapterConfig = field(
        default_factory=lambda: AdapterConfig("atomic_notes.adapters.notifier_console.ConsoleNotifier", {})
    )

    def provider_config(self, name: Optional[str] = None) -> ProviderConfig:
        return self.providers.get(name or self.provider, ProviderConfig())


DEFAULT_CONFIG_PATH = "config.json"
ENV_CONFIG_PATH = "ANEX_CONFIG_PATH"
KNOWN_PROVIDERS = {"openai", "anthropic", "google", "offline", "mock"}
OFFLINE_PROVIDERS = {"offline", "mock"}
PROPERTY_NAME = re.compile(r"^[A-Za-z0-9_-]+$")


def load_dotenv(path: str = ".env") -> None:
    if not os.path.exists(path):
        return
    with open(path, "r", encoding="utf-8") as handle:
        for line in handle:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip("\"'")
            if key and key not in os.environ:
                os.environ[key] = value


def _resolve_env(value: Any) -> Any:
    if isinstance(value, str) and value.startswith("$"):
        env_key = value[1:]
        return os.environ.get(env_key, "")
    if isinstance(value, dict):
        return {k: _resolve_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env(v) for v in value]
    return value


def load_config(path: Optional[str] = None) -> AppConfig:
    load_dotenv()
    config_path = path or os.environ.get(ENV_CONFIG_PATH, DEFAULT_CONFIG_PATH)
    if not path and config_path == DEFAULT_CONFIG_PATH and not os.path.exists(config_path):
        example_path = "config.example.json"
        if os.path.exists(example_path):
            config_path = example_path
    with open(config_path, "r", encoding="utf-8") as handle:
        raw = json.load(handle)
    return config_from_dict(_resolve_env(raw))


def config_from_dict(raw: Dict[str, Any]) -> AppConfig:
    defaults = AppConfig()

    def _adapter(key: str, default: AdapterConfig) -> AdapterConfig:
        payload = raw.get(key) or {}
        return AdapterConfig(
            class_path=payload.get("class", default.class_path),
            settings=payload.get("settings", {}),
        )

    providers = {}
    for name, payload in (raw.get("providers") or {}).items():
        payload = dict(payload or {})
        providers[name] = ProviderConfig(
            api_key=str(payload.pop("api_key", "") or ""),
            model=str(payload.pop("model", "") or ""),
            settings=payload,
        )

    max_sentences = raw.get("max_sentences_per_idea", defaults.max_sentences_per_idea)

    return AppConfig(
        vault_dir=raw.get("vault_dir", defaults.vault_dir),
        clipping_folder=str(raw.get("clipping_folder", defaults.clipping_folder)).strip() or defaults.clipping_folder,
        output_folder=str(raw.get("output_folder", defaults.output_folder)).strip(),
        processed_flag_field=str(raw.get("processed_flag_field", defaults.processed_flag_field)).strip(),
        processed_at_field=str(raw.get("processed_at_field", defaults.processed_at_field)).strip(),
        source_link_property=str(raw.get("source_link_property", defaults.source_link_property)).strip(),
        source_link_format=raw.get("source_link_format", defaults.source_link_format),
        store_note_links_in_frontmatter=bool(
            raw.get("store_note_links_in_frontmatter", defaults.store_note_links_in_frontmatter)
        ),
        note_links_property=str(raw.get("note_links_property", defaults.note_links_property)).strip(),
        write_note_links_to_footer=bool(raw.get("write_note_links_to_footer", defaults.write_note_links_to_footer)),
        min_ideas=int(raw.get("min_ideas", defaults.min_ideas)),
        max_ideas=int(raw.get("max_ideas", defaults.max_ideas)),
        target_ideas=int(raw.get("target_ideas", defaults.target_ideas)),
        max_sentences_per_idea=int(max_sentences) if max_sentences else None,
        allow_overwrite=bool(raw.get("allow_overwrite", defaults.allow_overwrite)),
        auto_watch_clippings=bool(raw.get("auto_watch_clippings", defaults.auto_watch_clippings)),
        sanitize_tags=bool(raw.get("sanitize_tags", defaults.sanitize_tags)),
        custom_prompt=str(raw.get("custom_prompt", defaults.custom_prompt) or ""),
        provider=str(raw.get("provider", defaults.provider)).strip().lower(),
        providers=providers,
        storage=_adapter("storage", defaults.storage),
        notifier=_adapter("notifier", defaults.notifier),
    )


def build_policy(config: AppConfig) -> ExtractionPolicy:
    target = max(config.min_ideas, min(config.target_ideas, config.max_ideas))
    return ExtractionPolicy(
        min_ideas=config.min_ideas,
        max_ideas=config.max_ideas,
        target_ideas=target,
        max_sentences_per_idea=config.max_sentences_per_idea,
        custom_prompt=config.custom_prompt,
        convert_spaces_to_hyphens=config.sanitize_tags,
    )


def check_runnable(config: AppConfig) -> None:
    if not config.output_folder.strip():
        raise ConfigError("Output folder is not configured. Set output_folder in the config.")
    if config.min_ideas < 1 or config.max_ideas < config.min_ideas:
        raise ConfigError("Invalid idea limits. min_ideas must be >= 1 and max_ideas must be >= min_ideas.")
    for key in ("processed_flag_field", "processed_at_field", "source_link_property", "note_links_property"):
        value = getattr(config, key)
        if not PROPERTY_NAME.match(value):
            raise ConfigError(f"Invalid property name for {key}: '{value}'. Use letters, digits, '_' or '-'.")
    if config.source_link_format not in LINK_FORMATS:
        raise ConfigError(f"Unknown source_link_format '{config.source_link_format}'.")
    if config.provider not in KNOWN_PROVIDERS:
        raise ConfigError(f"Unknown provider '{config.provider}'.")
    if config.provider not in OFFLINE_PROVIDERS and not config.provider_config().api_key.strip():
        raise ConfigError(f"API key is required for {config.provider} provider. Add it to the config.")
