"""Provider contract shared by the pipeline and concrete providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from game_translator.normalization.text_type import TextType

# Returned by a provider, after cleaning, when the text is not in the source
# language (or otherwise should not be translated).  Compared
# case-insensitively.
SKIP_SENTINEL = "[SKIP]"


@dataclass(frozen=True)
class ProviderRequest:
    """Everything a provider needs to translate one normalized string.

    Attributes:
        text:            Source text with numbers already replaced by
                         ``[v<n>]`` placeholders.
        source_language: Source language name, ``None`` for auto-detect.
        target_language: Target language name.
        game_context:    Short description of the game, may be empty.
        own_ui:          True when the text belongs to the translator's own
                         interface; only changes prompt framing.
        text_type:       Coarse size class used to tune instructions.
    """

    text: str
    source_language: str | None
    target_language: str
    game_context: str = ""
    own_ui: bool = False
    text_type: TextType = TextType.PHRASE

    @property
    def has_placeholders(self) -> bool:
        return "[v" in self.text


@runtime_checkable
class TranslationProvider(Protocol):
    """Anything that can translate a :class:`ProviderRequest`.

    ``translate`` returns the raw provider text, or ``None`` on any failure.
    It must never raise for network problems.
    """

    def translate(self, request: ProviderRequest) -> str | None: ...


def is_skip_sentinel(text: str) -> bool:
    return text.strip().upper() == SKIP_SENTINEL
