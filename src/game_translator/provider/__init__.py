"""Translation providers.

Public API::

    from game_translator.provider import OllamaProvider, OutputCleaner, ProviderRequest
"""

from game_translator.provider.base import (
    SKIP_SENTINEL,
    ProviderRequest,
    TranslationProvider,
    is_skip_sentinel,
)
from game_translator.provider.cleaner import OutputCleaner
from game_translator.provider.ollama import DEFAULT_MAX_TEXT_LENGTH, OllamaProvider
from game_translator.provider.prompt import build_system_prompt, build_user_message

__all__ = [
    "DEFAULT_MAX_TEXT_LENGTH",
    "SKIP_SENTINEL",
    "OllamaProvider",
    "OutputCleaner",
    "ProviderRequest",
    "TranslationProvider",
    "build_system_prompt",
    "build_user_message",
    "is_skip_sentinel",
]
