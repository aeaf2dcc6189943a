"""Translator engine: the single public entry-point for a host.

``TranslatorEngine`` orchestrates the store, the pattern index and the
dispatch pipeline.  A host (mod loader, test harness, CLI) constructs one
explicitly and calls :meth:`translate` for every string it is about to
display.

Caller contract
---------------
``translate()`` never blocks on the network and always returns a string:

- The translation, when the store or a numeric template already has it.
- The original text otherwise.  The text is queued, and once the provider
  answers the host's ``on_translation_complete(original, translated,
  handles)`` callback receives the result along with every consumer handle
  that asked for it in the meantime.

Own-interface detection
-----------------------
Strings belonging to the host's own translator UI get different prompt
framing and the ``MOD_UI`` tag.  The host either registers handles with
:meth:`register_own_ui` or supplies an ``is_own_ui_context(handle)``
capability.

Persistence
-----------
The store is never written on each change.  :meth:`flush_if_due` writes it
when dirty and the flush interval has elapsed; :meth:`start` can run that
check on a background flusher thread.  :meth:`shutdown` always writes.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from game_translator.config import TranslationSettings, TranslatorConfig
from game_translator.languages import resolve_language
from game_translator.normalization.numbers import (
    NormalizedText,
    extract_numbers,
    is_numeric_or_symbol,
)
from game_translator.normalization.patterns import PatternIndex
from game_translator.pipeline.dispatcher import PipelineOptions, TranslationPipeline
from game_translator.provider.base import TranslationProvider
from game_translator.provider.ollama import DEFAULT_MAX_TEXT_LENGTH, OllamaProvider
from game_translator.store.entry import Entry, TranslationTag
from game_translator.store.translation_store import TranslationStore

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[str, str, list[object]], None]
OwnUICapability = Callable[[object], bool]

DEFAULT_FLUSH_INTERVAL_SECONDS = 30.0

# Shorter strings are never looked up.
_MIN_LOOKUP_LENGTH = 2


@dataclass
class EngineStats:
    cache_hits: int = 0
    pattern_hits: int = 0
    queued: int = 0
    completed: int = 0
    captured: int = 0


class TranslatorEngine:
    """Synchronous lookup front-end over an asynchronous translation pipeline.

    Attributes:
        store:     The translation dictionary.
        patterns:  Numeric template index built from the store.
        pipeline:  Dispatch pipeline, ``None`` when no provider is configured.
        stats:     Session counters.
    """

    def __init__(
        self,
        store: TranslationStore,
        provider: TranslationProvider | None = None,
        *,
        settings: TranslationSettings | None = None,
        max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
        flush_interval_seconds: float = DEFAULT_FLUSH_INTERVAL_SECONDS,
        preload_model: bool = False,
        on_translation_complete: CompletionCallback | None = None,
        is_own_ui_context: OwnUICapability | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            store:                   Loaded translation store.
            provider:                Translation provider; ``None`` disables
                                     automatic translation.
            settings:                Translation behaviour switches.
            max_text_length:         Longest text sent to the provider.
            flush_interval_seconds:  Minimum delay between periodic saves.
            preload_model:           Warm the provider model in :meth:`start`.
            on_translation_complete: Host callback for finished translations.
            is_own_ui_context:       Host capability identifying its own UI.
        """
        self.store = store
        self.settings = settings or TranslationSettings()
        self.patterns = PatternIndex()
        self.stats = EngineStats()

        self._provider = provider
        self._on_translation_complete = on_translation_complete
        self._is_own_ui_context = is_own_ui_context
        self._own_ui_handles: dict[int, object] = {}
        self._translated_values: set[str] = set()

        self._preload_model = preload_model
        self._flush_interval = flush_interval_seconds
        self._last_flush = time.monotonic()
        self._flusher: threading.Thread | None = None
        self._flusher_stop = threading.Event()

        self.pipeline: TranslationPipeline | None = None
        if provider is not None:
            options = PipelineOptions(
                target_language=resolve_language(self.settings.target_language) or "English",
                source_language=resolve_language(self.settings.source_language, is_source=True),
                game_context=self.settings.game_context,
                normalize_numbers=self.settings.normalize_numbers,
                max_text_length=max_text_length,
                min_text_length=self.settings.min_text_length,
            )
            self.pipeline = TranslationPipeline(
                store,
                provider,
                options=options,
                patterns=self.patterns,
                on_complete=self._handle_completion,
                on_entry=self._handle_new_entry,
            )

        self.refresh()

    @classmethod
    def from_config(
        cls,
        cfg: TranslatorConfig,
        *,
        store_path: Path | str | None = None,
        on_translation_complete: CompletionCallback | None = None,
        is_own_ui_context: OwnUICapability | None = None,
    ) -> TranslatorEngine:
        """Build an engine, its store and its provider from configuration."""
        store = TranslationStore.load(store_path or cfg.storage.store_path)
        provider = None
        if cfg.provider.enabled:
            provider = OllamaProvider(
                api_endpoint=cfg.provider.api_endpoint,
                model=cfg.provider.model,
                timeout_seconds=cfg.provider.timeout_seconds,
                max_text_length=cfg.provider.max_text_length,
            )
        logger.info(
            "TranslatorEngine initialised (entries=%d, provider=%s)",
            len(store),
            cfg.provider.model if provider else "disabled",
        )
        return cls(
            store,
            provider,
            settings=cfg.translation,
            max_text_length=cfg.provider.max_text_length,
            flush_interval_seconds=cfg.storage.flush_interval_seconds,
            preload_model=cfg.provider.preload_model,
            on_translation_complete=on_translation_complete,
            is_own_ui_context=is_own_ui_context,
        )

    # ── Public API ────────────────────────────────────────────────────────────

    def translate(self, text: str, handle: object | None = None) -> str:
        """Return the translation of ``text`` if known, else ``text``.

        Misses are queued for the provider (or captured as empty human
        entries in capture-only mode).  Never blocks on the network.

        Args:
            text:   Source text as displayed.
            handle: Opaque consumer handle passed back on completion.

        Returns:
            Translated text, or the original text.
        """
        if not self.settings.enable_translations:
            return text
        if not text or len(text) < _MIN_LOOKUP_LENGTH or is_numeric_or_symbol(text):
            return text

        own_ui = self.is_own_ui(handle)
        if own_ui and not self.settings.translate_own_ui:
            return text

        if self.settings.normalize_numbers:
            normalized = extract_numbers(text)
        else:
            normalized = NormalizedText(text)
        key = normalized.text

        with self.store.lock:
            cached = self._lookup(text, normalized)
            if cached is not None:
                return cached

            templated = self.patterns.match(text)
            if templated is not None:
                self.stats.pattern_hits += 1
                return templated

            # Already a translation produced earlier in this dictionary.
            if key in self._translated_values:
                return text

            if self.settings.capture_keys_only:
                if self.store.add_entry(key, "", TranslationTag.HUMAN):
                    self.stats.captured += 1
                return text

            if self.pipeline is not None and self.pipeline.enqueue(text, handle, own_ui=own_ui):
                self.stats.queued += 1
        return text

    def register_own_ui(self, handle: object) -> None:
        """Mark ``handle`` as part of the host's own translator interface."""
        self._own_ui_handles[id(handle)] = handle

    def unregister_own_ui(self, handle: object) -> None:
        self._own_ui_handles.pop(id(handle), None)

    def is_own_ui(self, handle: object | None) -> bool:
        if handle is None:
            return False
        if self._own_ui_handles.get(id(handle)) is handle:
            return True
        if self._is_own_ui_context is None:
            return False
        try:
            return bool(self._is_own_ui_context(handle))
        except Exception:
            logger.exception("is_own_ui_context capability failed")
            return False

    def refresh(self) -> None:
        """Rebuild the pattern index and reverse cache from the store.

        Call after the store was replaced wholesale (sync, reload).
        """
        with self.store.lock:
            entries = self.store.snapshot()
            self.patterns.rebuild(entries)
            self._translated_values = {
                entry.value
                for key, entry in entries.items()
                if entry.value and entry.value != key
            }

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self, *, background_flush: bool = True, preload: bool | None = None) -> None:
        """Start the pipeline worker and, optionally, the periodic flusher.

        ``preload`` defaults to the ``preload_model`` setting.
        """
        if preload is None:
            preload = self._preload_model
        if self.pipeline is not None:
            if preload and hasattr(self._provider, "preload"):
                self._provider.preload()
            self.pipeline.start()
        if background_flush and self._flusher is None:
            self._flusher_stop.clear()
            self._flusher = threading.Thread(
                target=self._flush_loop,
                name="translation-flusher",
                daemon=True,
            )
            self._flusher.start()

    def flush_if_due(self, now: float | None = None) -> bool:
        """Save the store if it is dirty and the flush interval has elapsed.

        Returns:
            ``True`` if the store was written.
        """
        now = time.monotonic() if now is None else now
        if not self.store.dirty or now - self._last_flush < self._flush_interval:
            return False
        self._last_flush = now
        return self.store.save()

    def shutdown(self, timeout: float = 5.0) -> None:
        """Stop background threads and save the store unconditionally."""
        if self.pipeline is not None:
            self.pipeline.stop(timeout)
        if self._flusher is not None:
            self._flusher_stop.set()
            self._flusher.join(timeout)
            self._flusher = None
        self.store.save()
        logger.info(
            "TranslatorEngine stopped (entries=%d, queued=%d, completed=%d)",
            len(self.store),
            self.stats.queued,
            self.stats.completed,
        )

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _lookup(self, text: str, normalized: NormalizedText) -> str | None:
        """Store lookup under the normalized key, then its trimmed form.

        Returns the translation, ``text`` itself when the store marks it as
        needing no translation, or ``None`` on a miss.
        """
        key = normalized.text
        lead = tail = ""
        entry = self.store.get(key)
        if entry is None:
            trimmed = key.strip()
            if trimmed == key:
                return None
            entry = self.store.get(trimmed)
            if entry is None:
                return None
            lead = key[: len(key) - len(key.lstrip())]
            tail = key[len(key.rstrip()) :]
            key = trimmed
        if entry.is_placeholder or entry.tag is TranslationTag.SKIPPED or entry.value == key:
            return text
        self.stats.cache_hits += 1
        return lead + normalized.restore(entry.value) + tail

    def _handle_new_entry(self, key: str, entry: Entry) -> None:
        if entry.value and entry.value != key:
            with self.store.lock:
                self._translated_values.add(entry.value)

    def _handle_completion(self, original: str, translated: str, handles: list[object]) -> None:
        self.stats.completed += 1
        if self._on_translation_complete is not None:
            self._on_translation_complete(original, translated, handles)

    def _flush_loop(self) -> None:
        while not self._flusher_stop.wait(1.0):
            try:
                self.flush_if_due()
            except Exception:
                logger.exception("Periodic store flush failed")
