"""
Translator configuration management.

This module handles loading and accessing translator configuration from
multiple sources with a clear priority order:

    1. Environment variables (highest priority) - for per-run overrides
    2. Config file (config/translator.ini) - for a machine's static setup
    3. Example file (config/translator.example.ini) - development fallback
    4. Built-in defaults (lowest priority) - sensible fallbacks

Configuration is loaded once at module import time and cached. The
TranslatorConfig dataclass provides typed access to all settings.

Usage:
    from game_translator.config import config

    print(config.provider.api_endpoint)
    print(config.translation.target_language)
    print(config.storage.store_path)

Environment Variable Mapping:
    GT_PROVIDER_ENABLED -> provider.enabled
    GT_OLLAMA_URL       -> provider.base_url
    GT_MODEL            -> provider.model
    GT_TARGET_LANGUAGE  -> translation.target_language
    GT_SOURCE_LANGUAGE  -> translation.source_language
    GT_DATA_DIR         -> storage.data_dir
    GT_API_URL          -> sync.api_base_url
    GT_API_TOKEN        -> sync.api_token
    GT_LOG_LEVEL        -> logging.level
"""

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/, data/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Config file paths
CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "translator.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "translator.example.ini"


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ProviderSettings:
    """Ollama-compatible translation provider."""

    enabled: bool = False
    base_url: str = "http://localhost:11434"
    model: str = "qwen3:8b"
    timeout_seconds: float = 30.0
    max_text_length: int = 5000
    preload_model: bool = True

    @property
    def api_endpoint(self) -> str:
        """Full ``/api/chat`` URL."""
        return self.base_url.rstrip("/") + "/api/chat"


@dataclass
class TranslationSettings:
    """What to translate and how."""

    target_language: str = "auto"
    source_language: str = "auto"
    game_context: str = ""
    normalize_numbers: bool = True
    enable_translations: bool = True
    capture_keys_only: bool = False
    translate_own_ui: bool = True
    min_text_length: int = 3


@dataclass
class StorageSettings:
    """Where the translation store lives."""

    data_dir: str = "data"
    store_filename: str = "translations.json"
    flush_interval_seconds: float = 30.0

    @property
    def store_path(self) -> Path:
        """Absolute path of the main store file."""
        p = Path(self.data_dir)
        if not p.is_absolute():
            p = PROJECT_ROOT / p
        return p / self.store_filename


@dataclass
class SyncSettings:
    """Remote translation server."""

    api_base_url: str = ""
    api_token: str = ""
    timeout_seconds: float = 30.0
    merge_strategy: Literal["ask", "remote", "local"] = "ask"


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed"] = "simple"


@dataclass
class TranslatorConfig:
    """
    Complete translator configuration.

    Aggregates all settings sections. Access via the module-level `config`
    singleton, or build one explicitly with `load_config()`.
    """

    provider: ProviderSettings = field(default_factory=ProviderSettings)
    translation: TranslationSettings = field(default_factory=TranslationSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    sync: SyncSettings = field(default_factory=SyncSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @property
    def sync_enabled(self) -> bool:
        """Sync needs both a server URL and an API token."""
        return bool(self.sync.api_base_url and self.sync.api_token)


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_bool(value: str) -> bool:
    """Parse a string value to boolean."""
    return value.lower() in ("true", "yes", "1", "on", "enabled")


def _load_from_ini(parser: configparser.ConfigParser, cfg: TranslatorConfig) -> None:
    """Load configuration from parsed INI file into TranslatorConfig."""
    # Provider section
    if parser.has_section("provider"):
        if parser.has_option("provider", "enabled"):
            cfg.provider.enabled = _parse_bool(parser.get("provider", "enabled"))
        if parser.has_option("provider", "base_url"):
            cfg.provider.base_url = parser.get("provider", "base_url")
        if parser.has_option("provider", "model"):
            cfg.provider.model = parser.get("provider", "model")
        if parser.has_option("provider", "timeout_seconds"):
            cfg.provider.timeout_seconds = parser.getfloat("provider", "timeout_seconds")
        if parser.has_option("provider", "max_text_length"):
            cfg.provider.max_text_length = parser.getint("provider", "max_text_length")
        if parser.has_option("provider", "preload_model"):
            cfg.provider.preload_model = _parse_bool(parser.get("provider", "preload_model"))

    # Translation section
    if parser.has_section("translation"):
        if parser.has_option("translation", "target_language"):
            cfg.translation.target_language = parser.get("translation", "target_language")
        if parser.has_option("translation", "source_language"):
            cfg.translation.source_language = parser.get("translation", "source_language")
        if parser.has_option("translation", "game_context"):
            cfg.translation.game_context = parser.get("translation", "game_context")
        if parser.has_option("translation", "normalize_numbers"):
            cfg.translation.normalize_numbers = _parse_bool(
                parser.get("translation", "normalize_numbers")
            )
        if parser.has_option("translation", "enable_translations"):
            cfg.translation.enable_translations = _parse_bool(
                parser.get("translation", "enable_translations")
            )
        if parser.has_option("translation", "capture_keys_only"):
            cfg.translation.capture_keys_only = _parse_bool(
                parser.get("translation", "capture_keys_only")
            )
        if parser.has_option("translation", "translate_own_ui"):
            cfg.translation.translate_own_ui = _parse_bool(
                parser.get("translation", "translate_own_ui")
            )
        if parser.has_option("translation", "min_text_length"):
            cfg.translation.min_text_length = parser.getint("translation", "min_text_length")

    # Storage section
    if parser.has_section("storage"):
        if parser.has_option("storage", "data_dir"):
            cfg.storage.data_dir = parser.get("storage", "data_dir")
        if parser.has_option("storage", "store_filename"):
            cfg.storage.store_filename = parser.get("storage", "store_filename")
        if parser.has_option("storage", "flush_interval_seconds"):
            cfg.storage.flush_interval_seconds = parser.getfloat(
                "storage", "flush_interval_seconds"
            )

    # Sync section
    if parser.has_section("sync"):
        if parser.has_option("sync", "api_base_url"):
            cfg.sync.api_base_url = parser.get("sync", "api_base_url")
        if parser.has_option("sync", "api_token"):
            cfg.sync.api_token = parser.get("sync", "api_token")
        if parser.has_option("sync", "timeout_seconds"):
            cfg.sync.timeout_seconds = parser.getfloat("sync", "timeout_seconds")
        if parser.has_option("sync", "merge_strategy"):
            val = parser.get("sync", "merge_strategy").lower()
            if val in ("ask", "remote", "local"):
                cfg.sync.merge_strategy = val  # type: ignore[assignment]

    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed"):
                cfg.logging.format = val  # type: ignore[assignment]


def _apply_env_overrides(cfg: TranslatorConfig) -> None:
    """Apply environment variable overrides to configuration."""
    # Provider settings
    if env_enabled := os.getenv("GT_PROVIDER_ENABLED"):
        cfg.provider.enabled = _parse_bool(env_enabled)
    if env_url := os.getenv("GT_OLLAMA_URL"):
        cfg.provider.base_url = env_url
    if env_model := os.getenv("GT_MODEL"):
        cfg.provider.model = env_model

    # Translation settings
    if env_target := os.getenv("GT_TARGET_LANGUAGE"):
        cfg.translation.target_language = env_target
    if env_source := os.getenv("GT_SOURCE_LANGUAGE"):
        cfg.translation.source_language = env_source

    # Storage settings
    if env_data := os.getenv("GT_DATA_DIR"):
        cfg.storage.data_dir = env_data

    # Sync settings
    if env_api := os.getenv("GT_API_URL"):
        cfg.sync.api_base_url = env_api
    if env_token := os.getenv("GT_API_TOKEN"):
        cfg.sync.api_token = env_token

    # Logging settings
    if env_log := os.getenv("GT_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()


def load_config(config_file: Path | str | None = None) -> TranslatorConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. ``config_file`` when given, else config/translator.ini
        3. config/translator.example.ini (fallback for development)
        4. Built-in defaults

    Args:
        config_file: Explicit INI file to read instead of the default lookup.

    Returns:
        TranslatorConfig: Fully populated configuration object.
    """
    cfg = TranslatorConfig()

    # Determine which config file to use
    source = None
    if config_file is not None:
        source = Path(config_file)
    elif CONFIG_FILE.exists():
        source = CONFIG_FILE
    elif CONFIG_EXAMPLE.exists():
        # Use example as fallback for development
        source = CONFIG_EXAMPLE

    # Load from INI file if available
    if source is not None and source.exists():
        parser = configparser.ConfigParser(interpolation=None)
        parser.read(source, encoding="utf-8")
        _load_from_ini(parser, cfg)

    # Apply environment variable overrides (highest priority)
    _apply_env_overrides(cfg)

    return cfg


def reload_config() -> "TranslatorConfig":
    """
    Reload configuration from disk and environment.

    This updates the module-level `config` singleton. Engines that were
    already constructed keep the settings they were built with.

    Returns:
        TranslatorConfig: The newly loaded configuration.
    """
    global config
    config = load_config()
    return config


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

# Load configuration once at module import time
config = load_config()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_config_status() -> dict:
    """
    Get configuration status for diagnostics.

    Returns a dictionary with configuration source information. The API
    token itself is never included.
    """
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file_path": str(CONFIG_FILE),
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "provider_enabled": config.provider.enabled,
        "provider_endpoint": config.provider.api_endpoint,
        "model": config.provider.model,
        "store_path": str(config.storage.store_path),
        "sync_enabled": config.sync_enabled,
    }


def print_config_summary() -> None:
    """Print a summary of current configuration to stdout."""
    status = get_config_status()
    print("\n" + "=" * 60)
    print("TRANSLATOR CONFIGURATION")
    print("=" * 60)
    print(f"Config file: {status['config_file_path']}")
    print(f"File exists: {status['config_file_exists']}")
    if status["using_example"]:
        print("WARNING: Using example config (copy to translator.ini to customise)")
    print("-" * 60)
    print(f"Provider:    {status['provider_endpoint']} (enabled={status['provider_enabled']})")
    print(f"Model:       {status['model']}")
    print(f"Languages:   {config.translation.source_language} -> {config.translation.target_language}")
    print(f"Store:       {status['store_path']}")
    print(f"Sync:        {'enabled' if status['sync_enabled'] else 'disabled'}")
    print(f"Log level:   {config.logging.level}")
    print("=" * 60 + "\n")


# =============================================================================
# TEST HELPERS
# =============================================================================


class use_test_data_dir:
    """
    Context manager for pointing the store at a temporary directory.

    Usage:
        from game_translator.config import use_test_data_dir

        def test_something(tmp_path):
            with use_test_data_dir(tmp_path):
                engine = TranslatorEngine.from_config(config)

    Args:
        data_dir: Directory that will hold the store file
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir)
        self.original_dir: str | None = None

    def __enter__(self) -> Path:
        """Redirect the storage directory."""
        self.original_dir = config.storage.data_dir
        config.storage.data_dir = str(self.data_dir)
        return self.data_dir

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Restore the original storage directory."""
        if self.original_dir is not None:
            config.storage.data_dir = self.original_dir
        return None
