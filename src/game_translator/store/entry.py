"""Translation entries and their provenance tags.

An :class:`Entry` is one translated value plus a :class:`TranslationTag`
recording where the value came from.  Tags carry a total priority order
that the merge engine uses to resolve non-conflicting updates without
asking the user.

Priority order
--------------
::

    Human-empty (0) < AI (1) < Validated (2) < Human-with-value (3)
                    < Skipped / ModUI (4, immutable)

"Human-empty" is a placeholder produced by capture-only mode: the key was
captured but nobody has written a translation for it yet.

``SKIPPED`` and ``MOD_UI`` are immutable.  They sit at the top of the order,
so they can win or tie a priority comparison but never lose one.

Serialisation
-------------
Entries are persisted as ``{"v": <value>, "t": <letter>}``.  Older store
files map a key directly to a bare string; :func:`entry_from_json` upgrades
those to ``AI`` entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

# Keys starting with this prefix are metadata (``_uuid``, ``_game`` ...), not
# translations.  They are excluded from every set operation.
METADATA_PREFIX = "_"


class TranslationTag(str, Enum):
    """Provenance of a translation.  Values are the persisted letters."""

    AI = "A"
    HUMAN = "H"
    VALIDATED = "V"
    SKIPPED = "S"
    MOD_UI = "M"

    @property
    def is_immutable(self) -> bool:
        """Whether entries with this tag may never be replaced by a merge."""
        return self in (TranslationTag.SKIPPED, TranslationTag.MOD_UI)

    @classmethod
    def from_letter(cls, letter: str | None) -> TranslationTag:
        """Parse a persisted tag letter, defaulting unknown values to ``AI``."""
        if not letter:
            return cls.AI
        try:
            return cls(letter.upper())
        except ValueError:
            return cls.AI


_IMMUTABLE_PRIORITY = 4


@dataclass(frozen=True)
class Entry:
    """A single translated value with its provenance tag."""

    value: str
    tag: TranslationTag = TranslationTag.AI

    @property
    def is_placeholder(self) -> bool:
        """True for a captured key with no human translation yet."""
        return self.tag is TranslationTag.HUMAN and not self.value

    @property
    def priority(self) -> int:
        return entry_priority(self)

    def to_json(self) -> dict[str, str]:
        return {"v": self.value, "t": self.tag.value}


def entry_priority(entry: Entry) -> int:
    """Return the replacement priority of ``entry`` (higher wins)."""
    if entry.tag.is_immutable:
        return _IMMUTABLE_PRIORITY
    if entry.tag is TranslationTag.HUMAN:
        return 3 if entry.value else 0
    if entry.tag is TranslationTag.VALIDATED:
        return 2
    return 1


def outranks(candidate: Entry, other: Entry) -> bool:
    """True if ``candidate`` should replace ``other`` without a conflict.

    An immutable ``other`` can never be outranked.
    """
    if other.tag.is_immutable:
        return False
    return entry_priority(candidate) > entry_priority(other)


def is_metadata_key(key: str) -> bool:
    return key.startswith(METADATA_PREFIX)


def entry_from_json(raw: Any) -> Entry | None:
    """Build an :class:`Entry` from a persisted JSON value.

    Accepts both the current ``{"v": ..., "t": ...}`` object form and the
    legacy bare-string form.  Anything else returns ``None`` so the caller
    can skip the key.
    """
    if isinstance(raw, str):
        return Entry(raw, TranslationTag.AI)
    if isinstance(raw, dict):
        value = raw.get("v")
        if not isinstance(value, str):
            return None
        tag = raw.get("t")
        return Entry(value, TranslationTag.from_letter(tag if isinstance(tag, str) else None))
    return None
