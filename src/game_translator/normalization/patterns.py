"""Reuse of numerically templated translations.

A store key such as ``"Gold: [v0] / [v1]"`` with value ``"Or : [v0] / [v1]"``
is compiled into an anchored matcher::

    ^Gold:\\ (-?\\d+(?:[.,]\\d+)?%?)\\ /\\ (-?\\d+(?:[.,]\\d+)?%?)$

so that ``"Gold: 12 / 40"`` resolves to ``"Or : 12 / 40"`` without a provider
call.  Matchers are tried in insertion order and the first match wins.

Misses are remembered in a failure set so the same untranslatable string
does not rescan every matcher on each frame.  The set is cleared whenever a
new matcher is added, since a new template may now match.

``PatternIndex`` holds no lock of its own; callers access it under the store
lock.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass

from game_translator.normalization.numbers import NUMBER_CAPTURE, PLACEHOLDER_PATTERN, placeholder
from game_translator.store.entry import Entry, TranslationTag, is_metadata_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternEntry:
    """One compiled template: source key, translated value and matcher."""

    key: str
    translated: str
    matcher: re.Pattern[str]
    placeholder_indices: tuple[int, ...]


def _is_template_candidate(key: str, entry: Entry) -> bool:
    if is_metadata_key(key) or entry.tag is TranslationTag.SKIPPED:
        return False
    if not entry.value or entry.value == key:
        return False
    tokens = {m.group(0) for m in PLACEHOLDER_PATTERN.finditer(key)}
    if not tokens:
        return False
    return all(token in entry.value for token in tokens)


def compile_template(key: str, translated: str) -> PatternEntry:
    """Compile ``key`` into an anchored matcher.

    Raises:
        re.error: If the generated expression does not compile.
    """
    # split() with a capturing group alternates literal text and indices.
    pieces = PLACEHOLDER_PATTERN.split(key)
    expression = ["^"]
    indices: list[int] = []
    for position, piece in enumerate(pieces):
        if position % 2 == 0:
            expression.append(re.escape(piece))
        else:
            indices.append(int(piece))
            expression.append(NUMBER_CAPTURE)
    expression.append("$")
    return PatternEntry(key, translated, re.compile("".join(expression)), tuple(indices))


class PatternIndex:
    """Ordered collection of compiled translation templates."""

    def __init__(self) -> None:
        self._entries: dict[str, PatternEntry] = {}
        self._failures: set[str] = set()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def failure_count(self) -> int:
        return len(self._failures)

    def rebuild(self, entries: Mapping[str, Entry]) -> int:
        """Recompile every eligible entry.

        Returns:
            Number of templates compiled.
        """
        self._entries.clear()
        self._failures.clear()
        for key, entry in entries.items():
            self._compile_into_index(key, entry)
        logger.debug("Built %d pattern entries", len(self._entries))
        return len(self._entries)

    def add(self, key: str, entry: Entry) -> bool:
        """Compile a single new entry.  Returns ``True`` if it became a template."""
        if not self._compile_into_index(key, entry):
            return False
        self._failures.clear()
        return True

    def discard(self, key: str) -> None:
        self._entries.pop(key, None)

    def match(self, text: str) -> str | None:
        """Translate ``text`` through the first matching template, if any."""
        if not self._entries or text in self._failures:
            return None

        for pattern in self._entries.values():
            try:
                found = pattern.matcher.match(text)
                if found is None:
                    continue
                result = pattern.translated
                for index, captured in zip(pattern.placeholder_indices, found.groups()):
                    result = result.replace(placeholder(index), captured)
                return result
            except (re.error, IndexError, TypeError) as exc:
                logger.debug("Pattern %r failed on %r: %s", pattern.key, text[:40], exc)

        self._failures.add(text)
        return None

    def _compile_into_index(self, key: str, entry: Entry) -> bool:
        if not _is_template_candidate(key, entry):
            return False
        try:
            self._entries[key] = compile_template(key, entry.value)
        except re.error as exc:
            logger.debug("Skipping uncompilable pattern %r: %s", key, exc)
            return False
        return True
