"""Language code helpers.

Providers are prompted with full English language names ("French",
"Simplified Chinese") rather than ISO codes, which small models follow far
more reliably.  :func:`resolve_language` accepts either form.
"""

from __future__ import annotations

import locale
import logging
import unicodedata

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "English"
AUTO = "auto"

ISO_TO_NAME: dict[str, str] = {
    "en": "English",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "pl": "Polish",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Simplified Chinese",
    "zh-cn": "Simplified Chinese",
    "zh-hans": "Simplified Chinese",
    "zh-tw": "Traditional Chinese",
    "zh-hant": "Traditional Chinese",
    "ar": "Arabic",
    "tr": "Turkish",
    "nl": "Dutch",
    "sv": "Swedish",
    "da": "Danish",
    "nb": "Norwegian Bokmål",
    "nn": "Norwegian Nynorsk",
    "no": "Norwegian Bokmål",
    "fi": "Finnish",
    "cs": "Czech",
    "hu": "Hungarian",
    "ro": "Romanian",
    "el": "Greek",
    "th": "Thai",
    "vi": "Vietnamese",
    "id": "Indonesian",
    "ms": "Malay",
    "uk": "Ukrainian",
    "bg": "Bulgarian",
    "sk": "Slovak",
    "hr": "Croatian",
    "sr": "Serbian",
    "sl": "Slovenian",
    "lt": "Lithuanian",
    "lv": "Latvian",
    "et": "Estonian",
    "is": "Icelandic",
    "ga": "Irish",
    "cy": "Welsh",
    "ca": "Catalan",
    "gl": "Galician",
    "eu": "Basque",
    "af": "Afrikaans",
    "mk": "Macedonian",
    "sq": "Albanian",
    "hy": "Armenian",
    "be": "Belarusian",
    "fa": "Persian",
    "hi": "Hindi",
    "bn": "Bengali",
    "ur": "Urdu",
    "ta": "Tamil",
    "te": "Telugu",
    "my": "Burmese",
    "km": "Khmer",
    "lo": "Lao",
    "tl": "Tagalog",
    "az": "Azerbaijani",
    "uz": "Uzbek",
    "kk": "Kazakh",
    "he": "Hebrew",
    "iw": "Hebrew",
    "ka": "Georgian",
    "sw": "Swahili",
}

# Scripts written without spaces between words.  Checked by Unicode
# character name prefix.
_NON_SPACING_SCRIPTS = (
    "CJK",
    "HIRAGANA",
    "KATAKANA",
    "THAI",
    "LAO",
    "KHMER",
    "MYANMAR",
    "TIBETAN",
)


def iso_code_to_name(code: str | None) -> str:
    """Map an ISO 639-1 code (``"fr"``, ``"zh-TW"``) to a language name.

    Full names and unknown codes are returned unchanged; an empty code maps
    to English.
    """
    if not code:
        return DEFAULT_LANGUAGE
    normalized = code.strip().lower().replace("_", "-")
    if normalized in ISO_TO_NAME:
        return ISO_TO_NAME[normalized]
    primary = normalized.split("-", 1)[0]
    if primary != normalized and primary in ISO_TO_NAME:
        return ISO_TO_NAME[primary]
    return code.strip()


def system_language_name() -> str:
    """Language name of the current process locale, English if unknown."""
    try:
        lang, _encoding = locale.getlocale()
    except ValueError:
        lang = None
    if not lang or lang in ("C", "POSIX"):
        logger.debug("No usable system locale, defaulting to %s", DEFAULT_LANGUAGE)
        return DEFAULT_LANGUAGE
    name = iso_code_to_name(lang)
    if name not in ISO_TO_NAME.values():
        return DEFAULT_LANGUAGE
    return name


def resolve_language(value: str | None, *, is_source: bool = False) -> str | None:
    """Resolve a configured language setting to a provider-facing name.

    ``"auto"`` means the system locale for a target language and "let the
    provider detect it" (``None``) for a source language.
    """
    if value is None or value.strip().lower() == AUTO:
        return None if is_source else system_language_name()
    return iso_code_to_name(value)


def uses_word_spacing(text: str) -> bool:
    """False when ``text`` is predominantly in a script without word spaces."""
    letters = [char for char in text if char.isalpha()]
    if not letters:
        return True
    non_spacing = sum(
        1 for char in letters if unicodedata.name(char, "").startswith(_NON_SPACING_SCRIPTS)
    )
    return non_spacing * 2 < len(letters)
