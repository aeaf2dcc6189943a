"""Translation entry model and persistent store.

Public API::

    from game_translator.store import Entry, TranslationStore, TranslationTag

    store = TranslationStore.load(path)
    store.add_entry("Continue", "Continuer", TranslationTag.AI)
    store.save()
"""

from game_translator.store.entry import (
    METADATA_PREFIX,
    Entry,
    TranslationTag,
    entry_from_json,
    entry_priority,
    is_metadata_key,
    outranks,
)
from game_translator.store.hashing import canonicalize, compute_content_hash
from game_translator.store.translation_store import (
    GameInfo,
    ParsedSnapshot,
    TranslationStore,
)

__all__ = [
    "METADATA_PREFIX",
    "Entry",
    "GameInfo",
    "ParsedSnapshot",
    "TranslationStore",
    "TranslationTag",
    "canonicalize",
    "compute_content_hash",
    "entry_from_json",
    "entry_priority",
    "is_metadata_key",
    "outranks",
]
