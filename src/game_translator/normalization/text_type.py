"""Coarse classification of source text, used to size provider instructions."""

from __future__ import annotations

from enum import Enum

from game_translator.languages import uses_word_spacing

# Longest run of characters treated as a single word in scripts that do not
# separate words with spaces.
_NON_SPACING_WORD_MAX = 4


class TextType(str, Enum):
    SINGLE_WORD = "single_word"
    PHRASE = "phrase"
    PARAGRAPH = "paragraph"


def classify_text(text: str) -> TextType:
    """Classify ``text`` as a single word, a phrase, or a paragraph.

    Any line break makes a paragraph.  Otherwise spaced scripts are a single
    word when they contain no whitespace; unspaced scripts (CJK, Thai ...)
    fall back to a length threshold.
    """
    stripped = text.strip()
    if "\n" in stripped or "\r" in stripped:
        return TextType.PARAGRAPH
    if uses_word_spacing(stripped):
        return TextType.PHRASE if any(c.isspace() for c in stripped) else TextType.SINGLE_WORD
    if len(stripped) <= _NON_SPACING_WORD_MAX:
        return TextType.SINGLE_WORD
    return TextType.PHRASE
