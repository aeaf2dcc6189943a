"""System prompt construction for LLM translation providers.

The prompt is assembled from short fixed sentences.  Only the language pair,
the game context and a few request switches vary.
"""

from __future__ import annotations

from game_translator.normalization.text_type import TextType
from game_translator.provider.base import SKIP_SENTINEL, ProviderRequest

_CORE_RULES = (
    "Output ONLY the translation, nothing else. "
    "Keep it concise for UI. Preserve the original tone and style. "
    "Preserve formatting tags and special characters. "
)

_PLACEHOLDER_RULE = (
    "IMPORTANT: Keep [v0], [v1], etc. placeholders exactly as-is (they represent numbers). "
)

_SINGLE_WORD_RULES = (
    "For single words: translate if it's game content (items, actions, stats). "
    "Keep unchanged: language names (English, French...), keyboard keys "
    "(Tab, Esc, Space...), technical settings (VSync, Auto as setting value). "
)

_PARAGRAPH_RULES = "Keep the line breaks of the original text. "


def build_system_prompt(request: ProviderRequest) -> str:
    """Render the system prompt for ``request``."""
    parts: list[str] = []

    if request.own_ui:
        subject = "the interface of a game translation tool"
    else:
        subject = "video game UI"
    if request.source_language:
        parts.append(
            f"You are a {subject} translator from {request.source_language} "
            f"to {request.target_language}. "
        )
    else:
        parts.append(f"You are a {subject} translator to {request.target_language}. ")

    parts.append(_CORE_RULES)
    if request.has_placeholders:
        parts.append(_PLACEHOLDER_RULE)

    if request.text_type is TextType.SINGLE_WORD:
        parts.append(_SINGLE_WORD_RULES)
    elif request.text_type is TextType.PARAGRAPH:
        parts.append(_PARAGRAPH_RULES)

    if request.source_language:
        parts.append(
            f"If the text is not written in {request.source_language}, "
            f"output exactly {SKIP_SENTINEL}. "
        )

    if request.game_context and not request.own_ui:
        parts.append(f"Game context: {request.game_context}.")

    return "".join(parts).strip()


def build_user_message(request: ProviderRequest) -> str:
    # Disables the reasoning phase of hybrid thinking models.
    return f"{request.text} /no_think"
