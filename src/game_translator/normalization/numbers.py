"""Numeric placeholder extraction and restoration.

UI strings frequently differ only in their numbers (``"Gold: 120"`` vs
``"Gold: 95"``).  Replacing each number with a positional placeholder
(``[v0]``, ``[v1]`` ...) lets every variant share one dictionary entry and one
provider call::

    >>> normalized = extract_numbers("Level 3 - 45% complete")
    >>> normalized.text, normalized.numbers
    ('Level [v0] - [v1] complete', ['3', '45%'])
    >>> restore_numbers("Niveau [v0] - [v1] terminé", normalized.numbers)
    'Niveau 3 - 45% terminé'

Hex-colour guard
----------------
Rich-text markup embeds colours like ``<color=#ff0000>``.  A digit run is left
in place when walking back from it, over at most 8 hexadecimal characters,
reaches a ``#``.  Any non-hex character ends the walk.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

# Sign, digits, optional decimal part (dot or comma), optional percent.
NUMBER_PATTERN = re.compile(r"(-?\d+(?:[.,]\d+)?%?)")

# Numeric capture used inside compiled pattern-index matchers.
NUMBER_CAPTURE = r"(-?\d+(?:[.,]\d+)?%?)"

PLACEHOLDER_PATTERN = re.compile(r"\[v(\d+)\]")

_HEX_LOOKBACK = 8
_HEX_CHARS = frozenset("0123456789abcdefABCDEF")


def placeholder(index: int) -> str:
    return f"[v{index}]"


@dataclass(frozen=True)
class NormalizedText:
    """Text with its numbers replaced by placeholders."""

    text: str
    numbers: list[str] = field(default_factory=list)

    @property
    def has_numbers(self) -> bool:
        return bool(self.numbers)

    def restore(self, translated: str) -> str:
        return restore_numbers(translated, self.numbers)


def is_part_of_hex_color(text: str, index: int) -> bool:
    """True if the match starting at ``index`` sits inside a ``#rrggbb`` token."""
    for i in range(index - 1, max(index - _HEX_LOOKBACK, 0) - 1, -1):
        char = text[i]
        if char == "#":
            return True
        if char not in _HEX_CHARS:
            break
    return False


def extract_numbers(text: str) -> NormalizedText:
    """Replace numeric substrings with ``[v<n>]`` placeholders, left to right."""
    if not text:
        return NormalizedText(text)

    numbers: list[str] = []
    parts: list[str] = []
    cursor = 0
    # Placeholders already present in the text are kept verbatim.
    reserved = [m.span() for m in PLACEHOLDER_PATTERN.finditer(text)]
    for match in NUMBER_PATTERN.finditer(text):
        if any(start <= match.start() < end for start, end in reserved):
            continue
        if is_part_of_hex_color(text, match.start()):
            continue
        parts.append(text[cursor : match.start()])
        parts.append(placeholder(len(numbers)))
        numbers.append(match.group(0))
        cursor = match.end()

    if not numbers:
        return NormalizedText(text)
    parts.append(text[cursor:])
    return NormalizedText("".join(parts), numbers)


def restore_numbers(text: str, numbers: list[str]) -> str:
    """Substitute ``numbers[i]`` back into every ``[v<i>]`` in ``text``."""
    if not text or not numbers:
        return text
    for index, number in enumerate(numbers):
        text = text.replace(placeholder(index), number)
    return text


def placeholders_in(text: str) -> list[str]:
    """Placeholder tokens in ``text``, in order of appearance."""
    return [m.group(0) for m in PLACEHOLDER_PATTERN.finditer(text)]


def is_numeric_or_symbol(text: str) -> bool:
    """True when ``text`` contains no letters at all (``"100%"``, ``"--"``)."""
    return not any(char.isalpha() for char in text.strip())
