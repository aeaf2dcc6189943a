"""Persistent, versioned translation dictionary.

``TranslationStore`` owns the mapping of source text → :class:`Entry`, the
store's identity (a UUID created once and only replaced by :meth:`fork`),
the hash recorded at the last successful sync, and the *ancestor snapshot*
(the mapping as it was right after the last download or upload).  The
ancestor is the common base used by the three-way merge and the baseline
against which ``local_changes_count`` is measured.

File layout
-----------
The main file is a JSON object.  Metadata comes first, then entries sorted
by key in code-point order (UTF-8 byte order) so that diffs and hashes are
reproducible::

    {
      "_uuid": "4f5c...",
      "_game": {"name": "Hollow Deep", "steam_id": "123450"},
      "_source": {"hash": "9a1b..."},
      "_local_changes": 3,
      "Continue": {"v": "Continuer", "t": "A"},
      "Health: [v0]": {"v": "Santé : [v0]", "t": "H"}
    }

``_local_changes`` is omitted when zero and ``_game`` / ``_source`` when
unknown.  The ancestor lives alongside as ``<file>.ancestor`` with the same
schema.  An absent ancestor means "no baseline, everything is a local
change".

Failure isolation
-----------------
A missing or corrupt main file is *recoverable*: it is logged and replaced
by an empty store with a fresh identity.  A write failure is logged, leaves
the previous file on disk untouched (writes go to a temp file that is
``os.replace``-d into place) and keeps the in-memory store dirty so the next
periodic flush retries.

Locking
-------
Every public method takes ``store.lock``, a re-entrant lock.  The dispatch
pipeline uses the *same* lock for its queue and pending map, which keeps the
at-most-one-in-flight invariant and store writes under a single mutex.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import uuid as uuid_lib
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path

from game_translator.exceptions import SnapshotFormatError
from game_translator.store.entry import (
    Entry,
    TranslationTag,
    entry_from_json,
    is_metadata_key,
)
from game_translator.store.hashing import compute_content_hash

logger = logging.getLogger(__name__)

ANCESTOR_SUFFIX = ".ancestor"


@dataclass(frozen=True)
class GameInfo:
    """Identification of the game a store belongs to."""

    name: str | None = None
    steam_id: str | None = None

    def to_json(self) -> dict[str, str | None]:
        return {"name": self.name, "steam_id": self.steam_id}


@dataclass
class ParsedSnapshot:
    """Result of parsing a store-formatted JSON document.

    Attributes:
        entries:       Translation entries, legacy values already upgraded.
        uuid:          ``_uuid`` metadata, or ``None`` when absent.
        local_changes: ``_local_changes`` metadata (informational only; the
                       store recomputes it against its ancestor).
        source_hash:   ``_source.hash`` metadata, if present.
        game:          ``_game`` metadata, if present.
    """

    entries: dict[str, Entry]
    uuid: str | None = None
    local_changes: int = 0
    source_hash: str | None = None
    game: GameInfo | None = None


def new_uuid() -> str:
    return str(uuid_lib.uuid4())


def _write_atomic(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=path.name + ".",
        suffix=".tmp",
        delete=False,
    )
    tmp = Path(handle.name)
    try:
        with handle:
            handle.write(content)
        os.replace(tmp, path)
    finally:
        # Gone already when the replace succeeded.
        tmp.unlink(missing_ok=True)


class TranslationStore:
    """Translation dictionary with identity, sync hash and ancestor snapshot.

    Attributes:
        path:              Main store file, or ``None`` for an in-memory store.
        uuid:              Stable identity of this dictionary.
        last_synced_hash:  Content hash recorded at the last successful sync.
        local_changes_count: Number of entries differing from the ancestor.
        game:              Game this dictionary belongs to, when known.
        dirty:             True when in-memory state has not been flushed.
    """

    def __init__(
        self,
        path: Path | str | None = None,
        *,
        uuid: str | None = None,
        entries: Mapping[str, Entry] | None = None,
        ancestor: Mapping[str, Entry] | None = None,
        game: GameInfo | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self.path: Path | None = Path(path) if path is not None else None
        self.uuid: str = uuid or new_uuid()
        self.last_synced_hash: str | None = None
        self.game = game
        self.dirty = False
        self._entries: dict[str, Entry] = {
            k: v for k, v in (entries or {}).items() if not is_metadata_key(k)
        }
        self._ancestor: dict[str, Entry] | None = dict(ancestor) if ancestor is not None else None
        self.local_changes_count = 0
        self.recalculate_local_changes()

    # ── Loading ───────────────────────────────────────────────────────────────

    @classmethod
    def load(cls, path: Path | str) -> TranslationStore:
        """Load a store from ``path`` (and its sibling ancestor file).

        Never raises for missing or unreadable files: both produce an empty
        store with a freshly generated identity, marked dirty so the new
        identity is persisted by the next flush.
        """
        path = Path(path)
        store = cls(path)

        if not path.exists():
            store.dirty = True
            logger.info("No store file at %s, starting fresh with UUID %s", path, store.uuid)
            return store

        try:
            parsed = cls.parse_snapshot(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            store.dirty = True
            logger.error(
                "Failed to load store %s (%s); starting fresh with UUID %s", path, exc, store.uuid
            )
            return store

        store._entries = parsed.entries
        store.game = parsed.game
        store.last_synced_hash = parsed.source_hash
        if parsed.uuid:
            store.uuid = parsed.uuid
        else:
            store.dirty = True
            logger.info("Legacy store file without _uuid, generated %s", store.uuid)

        store._ancestor = store._load_ancestor()
        store.recalculate_local_changes()
        logger.info(
            "Loaded %d translations from %s (uuid=%s, local_changes=%d)",
            len(store._entries),
            path,
            store.uuid,
            store.local_changes_count,
        )
        return store

    @staticmethod
    def parse_snapshot(text: str) -> ParsedSnapshot:
        """Parse a store-formatted JSON document.

        Raises:
            ValueError: If ``text`` is not valid JSON.
            SnapshotFormatError: If the document is not a JSON object.
        """
        data = json.loads(text)
        if not isinstance(data, dict):
            raise SnapshotFormatError("translation snapshot must be a JSON object")

        entries: dict[str, Entry] = {}
        skipped = 0
        for key, raw in data.items():
            if is_metadata_key(key):
                continue
            entry = entry_from_json(raw)
            if entry is None:
                skipped += 1
                continue
            entries[key] = entry
        if skipped:
            logger.warning("Ignored %d malformed entries while parsing snapshot", skipped)

        raw_uuid = data.get("_uuid")
        raw_changes = data.get("_local_changes")
        source = data.get("_source")
        game = data.get("_game")
        return ParsedSnapshot(
            entries=entries,
            uuid=raw_uuid if isinstance(raw_uuid, str) and raw_uuid else None,
            local_changes=raw_changes if isinstance(raw_changes, int) else 0,
            source_hash=source.get("hash") if isinstance(source, dict) else None,
            game=GameInfo(game.get("name"), game.get("steam_id")) if isinstance(game, dict) else None,
        )

    def _load_ancestor(self) -> dict[str, Entry] | None:
        ancestor_path = self.ancestor_path
        if ancestor_path is None or not ancestor_path.exists():
            return None
        try:
            parsed = self.parse_snapshot(ancestor_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Failed to load ancestor %s: %s", ancestor_path, exc)
            return None
        logger.info("Loaded %d ancestor entries for merge support", len(parsed.entries))
        return parsed.entries

    # ── Persistence ───────────────────────────────────────────────────────────

    @property
    def lock(self) -> threading.RLock:
        """The single mutex guarding this store (shared with the pipeline)."""
        return self._lock

    @property
    def ancestor_path(self) -> Path | None:
        if self.path is None:
            return None
        return self.path.with_name(self.path.name + ANCESTOR_SUFFIX)

    def to_json(self) -> str:
        """Serialise the store: metadata first, then entries in sorted order."""
        with self._lock:
            output: dict[str, object] = {"_uuid": self.uuid}
            if self.game is not None:
                output["_game"] = self.game.to_json()
            if self.last_synced_hash:
                output["_source"] = {"hash": self.last_synced_hash}
            if self.local_changes_count > 0:
                output["_local_changes"] = self.local_changes_count
            for key in sorted(self._entries):
                output[key] = self._entries[key].to_json()
        return json.dumps(output, ensure_ascii=False, indent=2)

    def save(self, path: Path | str | None = None) -> bool:
        """Write the store atomically.

        Returns:
            ``True`` on success.  ``False`` if there is nowhere to write or
            the write failed; the store then stays dirty.
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            logger.warning("TranslationStore.save called on an in-memory store; ignoring")
            return False

        with self._lock:
            content = self.to_json()
            try:
                _write_atomic(target, content)
            except OSError as exc:
                logger.error("Failed to save store to %s: %s", target, exc)
                return False
            if path is None or target == self.path:
                self.dirty = False
            logger.debug("Saved %d entries to %s", len(self._entries), target)
            return True

    def _write_ancestor(self) -> None:
        ancestor_path = self.ancestor_path
        if ancestor_path is None:
            return
        if self._ancestor is None:
            try:
                ancestor_path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Failed to remove ancestor %s: %s", ancestor_path, exc)
            return
        output = {key: self._ancestor[key].to_json() for key in sorted(self._ancestor)}
        try:
            _write_atomic(ancestor_path, json.dumps(output, ensure_ascii=False, indent=2))
        except OSError as exc:
            logger.warning("Failed to save ancestor %s: %s", ancestor_path, exc)

    # ── Identity and sync baseline ────────────────────────────────────────────

    def compute_content_hash(self) -> str:
        with self._lock:
            return compute_content_hash(self._entries, self.uuid)

    def pin_ancestor(self) -> None:
        """Make the current mapping the new reconciliation baseline."""
        with self._lock:
            self._ancestor = dict(self._entries)
            self.local_changes_count = 0
            self.dirty = True
            self._write_ancestor()
            logger.info("Pinned ancestor with %d entries", len(self._ancestor))

    def pin_ancestor_from_remote(self, remote_entries: Mapping[str, Entry]) -> None:
        """Use a mapping known to be on the server as the baseline.

        Subsequent local edits are then measured against that version.
        """
        with self._lock:
            self._ancestor = {k: v for k, v in remote_entries.items() if not is_metadata_key(k)}
            self.recalculate_local_changes()
            self.dirty = True
            self._write_ancestor()
            logger.info(
                "Pinned ancestor from remote (%d entries, %d local changes)",
                len(self._ancestor),
                self.local_changes_count,
            )

    def fork(self) -> str:
        """Break lineage with the remote copy.

        Assigns a new identity and discards the ancestor, so every current
        entry becomes a local change.  The store is persisted immediately.

        Returns:
            The new UUID.
        """
        with self._lock:
            old_uuid = self.uuid
            self.uuid = new_uuid()
            self._ancestor = None
            self.last_synced_hash = None
            self.local_changes_count = len(self._entries)
            self.dirty = True
            self._write_ancestor()
            logger.info("Forked store %s -> %s", old_uuid, self.uuid)
            if self.path is not None:
                self.save()
            return self.uuid

    # ── Entries ───────────────────────────────────────────────────────────────

    def _differs_from_ancestor(self, key: str, entry: Entry | None) -> bool:
        if entry is None:
            return False
        if self._ancestor is None:
            return True
        return self._ancestor.get(key) != entry

    def add_entry(self, key: str, value: str, tag: TranslationTag = TranslationTag.AI) -> bool:
        """Insert a new entry.  First writer wins: existing keys are left alone.

        Returns:
            ``True`` if the entry was inserted.
        """
        if not key or is_metadata_key(key):
            return False
        with self._lock:
            if key in self._entries:
                return False
            entry = Entry(value, tag)
            self._entries[key] = entry
            self.dirty = True
            if self._differs_from_ancestor(key, entry):
                self.local_changes_count += 1
            return True

    def set_entry(self, key: str, value: str, tag: TranslationTag = TranslationTag.HUMAN) -> None:
        """Write an entry unconditionally (explicit human edit or validation)."""
        if not key or is_metadata_key(key):
            raise ValueError(f"invalid translation key: {key!r}")
        with self._lock:
            before = self._differs_from_ancestor(key, self._entries.get(key))
            entry = Entry(value, tag)
            self._entries[key] = entry
            after = self._differs_from_ancestor(key, entry)
            self.local_changes_count += int(after) - int(before)
            self.dirty = True

    def remove_entry(self, key: str) -> bool:
        with self._lock:
            if key not in self._entries:
                return False
            if self._differs_from_ancestor(key, self._entries[key]):
                self.local_changes_count -= 1
            del self._entries[key]
            self.dirty = True
            return True

    def replace_entries(self, entries: Mapping[str, Entry]) -> None:
        """Replace the whole mapping (used after a merge or a clean download)."""
        with self._lock:
            self._entries = {k: v for k, v in entries.items() if not is_metadata_key(k)}
            self.recalculate_local_changes()
            self.dirty = True

    def recalculate_local_changes(self) -> int:
        """Recount entries that are new or differ from the ancestor."""
        with self._lock:
            self.local_changes_count = sum(
                1 for key, entry in self._entries.items() if self._differs_from_ancestor(key, entry)
            )
            return self.local_changes_count

    def get(self, key: str) -> Entry | None:
        with self._lock:
            return self._entries.get(key)

    def snapshot(self) -> dict[str, Entry]:
        """Return a copy of the current mapping."""
        with self._lock:
            return dict(self._entries)

    def ancestor_snapshot(self) -> dict[str, Entry] | None:
        with self._lock:
            return dict(self._ancestor) if self._ancestor is not None else None

    @property
    def has_ancestor(self) -> bool:
        return self._ancestor is not None

    def tag_counts(self) -> dict[TranslationTag, int]:
        with self._lock:
            counts = {tag: 0 for tag in TranslationTag}
            for entry in self._entries.values():
                counts[entry.tag] += 1
            return counts

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())
