"""Cleanup of raw LLM translation output.

Small local models rarely return *only* the translation.  ``OutputCleaner``
strips the scaffolding they add so that the stored value is the translated
text and nothing else.

Cleaning pipeline (applied in order)
------------------------------------
1. **Empty check**: blank string → ``None``.
2. **Reasoning blocks**: ``<think>...</think>`` sections emitted by hybrid
   thinking models are removed, as are stray ``/no_think`` and ``/think``
   echoes of the prompt suffix.
3. **Markdown bold**: ``**word**`` → ``word``.
4. **Boilerplate prefix**: a leading ``Translation:``, ``Here's``,
   ``The translation is`` ... is dropped.
5. **Explanation tail**: text after a blank line that starts with a typical
   explanation opener (``Note:``, ``This ``, ``Explanation:`` ...) is cut.
   Other blank lines are kept, since the source may be multi-paragraph.
6. **Wrapping quotes**: a single pair of quotes wrapping the *whole* text is
   removed.  Quotes inside the text are left alone.
7. **Final empty check**: returns ``None`` if cleaning left nothing.

The skip sentinel passes through untouched; recognising it is the
pipeline's job.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

_THINK_BLOCK = re.compile(r"<think>[\s\S]*?</think>\s*", re.IGNORECASE)
_THINK_DIRECTIVES = (" /no_think", "/no_think", " /think", "/think")
_MARKDOWN_BOLD = re.compile(r"\*\*([^*]+)\*\*")
_BOILERPLATE_PREFIX = re.compile(
    r"^(?:(?:Translation|Traduction)\s*[:\-]|(?:Here'?s?|The translation is)\b\s*[:\-]?)\s*",
    re.IGNORECASE,
)
_EXPLANATION_TAIL = re.compile(
    r"\n\n(Note:|I |This |Here |The above|Explanation:|Translation note:)",
    re.IGNORECASE,
)
_QUOTE_PAIRS = (('"', '"'), ("'", "'"), ("“", "”"), ("«", "»"))


class OutputCleaner:
    """Strips provider scaffolding from a raw response."""

    def clean(self, raw: str | None) -> str | None:
        """Clean a raw provider response.

        Args:
            raw: Raw text returned by the provider.

        Returns:
            The cleaned translation, or ``None`` when nothing usable remains.
        """
        # ── 1. Empty check ────────────────────────────────────────────────────
        if not raw or not raw.strip():
            return None
        text = raw

        # ── 2. Reasoning blocks ───────────────────────────────────────────────
        text = _THINK_BLOCK.sub("", text)
        for directive in _THINK_DIRECTIVES:
            text = text.replace(directive, "")

        # ── 3. Markdown bold ──────────────────────────────────────────────────
        text = _MARKDOWN_BOLD.sub(r"\1", text)

        # ── 4. Boilerplate prefix ─────────────────────────────────────────────
        text = _BOILERPLATE_PREFIX.sub("", text.lstrip(), count=1)

        # ── 5. Explanation tail ───────────────────────────────────────────────
        tail = _EXPLANATION_TAIL.search(text)
        if tail is not None:
            logger.debug("OutputCleaner: cut explanation tail %r", text[tail.start() :][:40])
            text = text[: tail.start()]

        # ── 6. Wrapping quotes ────────────────────────────────────────────────
        text = text.strip()
        for opening, closing in _QUOTE_PAIRS:
            if len(text) >= 2 and text.startswith(opening) and text.endswith(closing):
                text = text[1:-1]
                break

        # ── 7. Final empty check ──────────────────────────────────────────────
        text = text.strip()
        return text if text else None
