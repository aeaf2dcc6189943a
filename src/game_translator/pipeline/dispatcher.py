"""Deduplicating single-worker translation pipeline.

``TranslationPipeline`` accepts untranslated strings from any thread and
feeds them, one at a time, to a :class:`TranslationProvider` on a background
worker.  Callers never block on the network: :meth:`enqueue` only records
the request and returns.

Request lifecycle
-----------------
Each distinct source text moves through::

    ABSENT ──enqueue──▶ PENDING ──worker──▶ IN_FLIGHT ──done/error──▶ ABSENT

While a text is PENDING or IN_FLIGHT, further enqueues of the same text only
attach their consumer handle to the existing request, so there is at most
one provider call in flight per text.  When processing finishes (success or
failure) the text leaves the dedup map; a later occurrence is a brand-new
request.

Worker steps
------------
1. Replace numbers with ``[v<n>]`` placeholders (when enabled).
2. Re-check the store and the pattern index; a concurrent writer may have
   resolved the text already.
3. Build a :class:`ProviderRequest`.
4. Reject oversize text locally.
5. Clean the raw output.  The skip sentinel stores a ``SKIPPED`` entry and
   hands the original text back; anything else is stored as ``MOD_UI`` (own
   interface) or ``AI``, numbers are restored, and every collected consumer
   is notified.
6. Provider errors and empty output drop the request without retrying.

Locking
-------
The queue, the dedup map and the consumer lists are guarded by the store's
lock, the same mutex that guards store reads and writes.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from game_translator.normalization.numbers import NormalizedText, extract_numbers
from game_translator.normalization.patterns import PatternIndex
from game_translator.normalization.text_type import classify_text
from game_translator.provider.base import ProviderRequest, TranslationProvider, is_skip_sentinel
from game_translator.provider.cleaner import OutputCleaner
from game_translator.provider.ollama import DEFAULT_MAX_TEXT_LENGTH
from game_translator.store.entry import Entry, TranslationTag
from game_translator.store.translation_store import TranslationStore

logger = logging.getLogger(__name__)

DEFAULT_MIN_TEXT_LENGTH = 3

# Worker sleep between polls of an empty queue.
IDLE_SLEEP_SECONDS = 0.1

CompletionCallback = Callable[[str, str, list[object]], None]
EntryCallback = Callable[[str, Entry], None]


class RequestState(str, Enum):
    ABSENT = "absent"
    PENDING = "pending"
    IN_FLIGHT = "in_flight"


@dataclass
class _Request:
    text: str
    own_ui: bool = False
    handles: list[object] = field(default_factory=list)
    state: RequestState = RequestState.PENDING

    def attach(self, handle: object | None) -> None:
        if handle is None:
            return
        # Handles are borrowed references; identity is enough to dedup them.
        if any(existing is handle for existing in self.handles):
            return
        self.handles.append(handle)


@dataclass(frozen=True)
class PipelineOptions:
    """Per-pipeline translation parameters.

    Attributes:
        target_language:   Language name to translate into.
        source_language:   Source language name, ``None`` for auto-detect.
        game_context:      Short description of the game for the prompt.
        normalize_numbers: Replace numbers with placeholders before lookup.
        max_text_length:   Longest normalized text sent to the provider.
        min_text_length:   Shortest text accepted by :meth:`enqueue`.
    """

    target_language: str = "English"
    source_language: str | None = None
    game_context: str = ""
    normalize_numbers: bool = True
    max_text_length: int = DEFAULT_MAX_TEXT_LENGTH
    min_text_length: int = DEFAULT_MIN_TEXT_LENGTH


class TranslationPipeline:
    """FIFO queue of distinct texts served by one background worker.

    Attributes:
        _store:      Dictionary that receives resolved entries.
        _provider:   External translator.
        _patterns:   Template index consulted before calling the provider.
        _cleaner:    Strips provider scaffolding.
        _options:    Language pair and limits.
        _on_complete: ``(original, translated, handles)`` consumer callback.
        _on_entry:   ``(key, entry)`` callback fired after a store write.
    """

    def __init__(
        self,
        store: TranslationStore,
        provider: TranslationProvider,
        *,
        options: PipelineOptions | None = None,
        patterns: PatternIndex | None = None,
        cleaner: OutputCleaner | None = None,
        on_complete: CompletionCallback | None = None,
        on_entry: EntryCallback | None = None,
    ) -> None:
        self._store = store
        self._provider = provider
        self._options = options or PipelineOptions()
        self._patterns = patterns if patterns is not None else PatternIndex()
        self._cleaner = cleaner or OutputCleaner()
        self._on_complete = on_complete
        self._on_entry = on_entry

        self._lock = store.lock
        self._queue: deque[str] = deque()
        self._requests: dict[str, _Request] = {}
        self._current: str | None = None

        self._worker: threading.Thread | None = None
        self._stop_event = threading.Event()

    # ── Enqueue side ──────────────────────────────────────────────────────────

    def enqueue(self, text: str, handle: object | None = None, *, own_ui: bool = False) -> bool:
        """Schedule ``text`` for translation.

        Args:
            text:   Source text exactly as displayed.
            handle: Opaque consumer handle notified on completion.
            own_ui: True when the text belongs to the translator's own UI.

        Returns:
            ``True`` if a new request was created, ``False`` when the text was
            rejected or merged into an existing request.
        """
        if not text or len(text) < self._options.min_text_length:
            return False

        with self._lock:
            existing = self._requests.get(text)
            if existing is not None:
                existing.attach(handle)
                existing.own_ui = existing.own_ui or own_ui
                return False

            request = _Request(text=text, own_ui=own_ui)
            request.attach(handle)
            self._requests[text] = request
            self._queue.append(text)

        logger.debug("Queued for translation: %r", text[:40])
        return True

    def state_of(self, text: str) -> RequestState:
        with self._lock:
            request = self._requests.get(text)
            return request.state if request is not None else RequestState.ABSENT

    @property
    def queue_count(self) -> int:
        with self._lock:
            return len(self._queue)

    @property
    def is_translating(self) -> bool:
        with self._lock:
            return self._current is not None

    @property
    def current_text(self) -> str | None:
        with self._lock:
            return self._current

    @property
    def patterns(self) -> PatternIndex:
        return self._patterns

    def clear(self) -> None:
        """Drop every pending request.  An in-flight request is left to finish."""
        with self._lock:
            self._queue.clear()
            in_flight = self._requests.get(self._current) if self._current else None
            self._requests.clear()
            if in_flight is not None:
                self._requests[in_flight.text] = in_flight

    # ── Worker side ───────────────────────────────────────────────────────────

    def process_next(self) -> bool:
        """Dequeue and resolve one request.

        Returns:
            ``True`` if a request was processed, ``False`` if the queue was
            empty.
        """
        with self._lock:
            if not self._queue:
                return False
            text = self._queue.popleft()
            request = self._requests.get(text)
            if request is None:
                return True
            request.state = RequestState.IN_FLIGHT
            self._current = text

        translated: str | None = None
        try:
            translated = self._resolve(request)
        finally:
            with self._lock:
                handles = list(request.handles)
                self._requests.pop(text, None)
                self._current = None

        if translated is not None:
            self._notify(text, translated, handles)
        return True

    def start(self) -> None:
        """Start the background worker.  Calling twice is a no-op.

        A worker that :meth:`stop` left finishing a slow request is kept and
        told to carry on, so there is never more than one worker thread.
        """
        with self._lock:
            worker = self._worker
            if worker is not None and worker.is_alive():
                self._stop_event.clear()
                return
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._worker = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name="translation-worker",
                daemon=True,
            )
            self._worker.start()
        logger.info("Translation worker started")

    def stop(self, timeout: float | None = 5.0) -> None:
        """Ask the worker to exit after its current iteration.

        If the worker is still inside a provider call when ``timeout``
        expires, it stays referenced and exits once that call returns.
        """
        with self._lock:
            worker = self._worker
            if worker is None:
                return
            self._stop_event.set()
        worker.join(timeout)
        if worker.is_alive():
            logger.warning(
                "Translation worker still busy after %.1fs; it exits after the current request",
                timeout or 0,
            )
            return
        with self._lock:
            if self._worker is worker:
                self._worker = None
        logger.info("Translation worker stopped")

    @property
    def is_running(self) -> bool:
        worker = self._worker
        return worker is not None and worker.is_alive()

    def _run(self, stop_event: threading.Event) -> None:
        while True:
            # The exit decision is taken under the lock so start() either
            # revives this thread or sees it gone.
            with self._lock:
                if stop_event.is_set():
                    if self._worker is threading.current_thread():
                        self._worker = None
                    return
            try:
                worked = self.process_next()
            except Exception:
                logger.exception("Translation worker iteration failed")
                worked = False
            if not worked:
                stop_event.wait(IDLE_SLEEP_SECONDS)

    # ── Resolution ────────────────────────────────────────────────────────────

    def _resolve(self, request: _Request) -> str | None:
        text = request.text
        normalized = extract_numbers(text) if self._options.normalize_numbers else NormalizedText(text)
        key = normalized.text

        # 2. Another writer may have resolved this text while it was queued.
        with self._lock:
            cached = self._store.get(key)
            if cached is not None and not cached.is_placeholder:
                if cached.tag is TranslationTag.SKIPPED or cached.value == key:
                    return text
                return normalized.restore(cached.value)
            templated = self._patterns.match(text)
        if templated is not None:
            return templated

        # 4. Oversize text is never sent.
        if len(key) > self._options.max_text_length:
            logger.debug("Text too long (%d chars), not translated", len(key))
            return None

        provider_request = ProviderRequest(
            text=key,
            source_language=self._options.source_language,
            target_language=self._options.target_language,
            game_context=self._options.game_context,
            own_ui=request.own_ui,
            text_type=classify_text(key),
        )
        try:
            raw = self._provider.translate(provider_request)
        except Exception as exc:
            logger.debug("Provider raised for %r: %s", key[:40], exc)
            return None

        cleaned = self._cleaner.clean(raw)
        if cleaned is None:
            logger.debug("No usable translation for %r", key[:40])
            return None

        if is_skip_sentinel(cleaned):
            self._store_entry(key, Entry(key, TranslationTag.SKIPPED))
            logger.debug("Provider skipped %r (not in source language)", key[:40])
            return text

        tag = TranslationTag.MOD_UI if request.own_ui else TranslationTag.AI
        self._store_entry(key, Entry(cleaned, tag))
        return normalized.restore(cleaned)

    def _store_entry(self, key: str, entry: Entry) -> None:
        with self._lock:
            existing = self._store.get(key)
            if existing is not None and existing.is_placeholder:
                self._store.set_entry(key, entry.value, entry.tag)
            elif not self._store.add_entry(key, entry.value, entry.tag):
                return
            self._patterns.add(key, entry)
        if self._on_entry is not None:
            try:
                self._on_entry(key, entry)
            except Exception:
                logger.exception("Entry callback failed for %r", key[:40])

    def _notify(self, original: str, translated: str, handles: list[object]) -> None:
        if self._on_complete is None:
            return
        try:
            self._on_complete(original, translated, handles)
        except Exception:
            logger.exception("Translation completion callback failed for %r", original[:40])
