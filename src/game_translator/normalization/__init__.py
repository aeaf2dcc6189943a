"""Text normalization: numeric placeholders, text classification, templates."""

from game_translator.normalization.numbers import (
    NormalizedText,
    extract_numbers,
    is_numeric_or_symbol,
    restore_numbers,
)
from game_translator.normalization.patterns import PatternIndex
from game_translator.normalization.text_type import TextType, classify_text

__all__ = [
    "NormalizedText",
    "PatternIndex",
    "TextType",
    "classify_text",
    "extract_numbers",
    "is_numeric_or_symbol",
    "restore_numbers",
]
