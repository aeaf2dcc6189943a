"""Ollama HTTP provider.

``OllamaProvider`` is a thin, synchronous wrapper around the Ollama
``/api/chat`` endpoint and the only place in the pipeline that makes a
network call.  It runs on the pipeline's worker thread, so a blocking
``requests.post`` never stalls a caller.

Request shape
-------------
- ``stream`` is always ``False``: one JSON object per response.
- ``temperature`` is 0.0, translations should be reproducible.
- ``num_predict`` is ``max(200, 2 * len(text))`` so long paragraphs are not
  truncated.
- The user turn carries a ``/no_think`` suffix and an empty assistant
  ``<think>`` block is primed, which disables the reasoning phase of hybrid
  thinking models (qwen3 and similar).

Failures (timeout, connection error, non-2xx, malformed JSON, oversize
input) all return ``None``.
"""

from __future__ import annotations

import logging

import requests

from game_translator.provider.base import ProviderRequest
from game_translator.provider.prompt import build_system_prompt, build_user_message

logger = logging.getLogger(__name__)

# Requests longer than this are rejected locally and never sent.
DEFAULT_MAX_TEXT_LENGTH = 5000

_MIN_NUM_PREDICT = 200
_EMPTY_THINK_BLOCK = "<think>\n\n</think>\n\n"


class OllamaProvider:
    """Synchronous provider that calls the Ollama ``/api/chat`` endpoint.

    Attributes:
        _api_endpoint:    Full ``/api/chat`` URL.
        _model:           Ollama model tag (e.g. ``"qwen3:8b"``).
        _timeout:         HTTP request timeout in seconds.
        _max_text_length: Local rejection threshold for input text.
    """

    def __init__(
        self,
        *,
        api_endpoint: str,
        model: str,
        timeout_seconds: float,
        max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
    ) -> None:
        """Initialise the provider.

        Args:
            api_endpoint:    Full Ollama ``/api/chat`` URL.
            model:           Ollama model tag.
            timeout_seconds: HTTP request timeout.
            max_text_length: Longest input text that will be sent.
        """
        self._api_endpoint = api_endpoint
        self._model = model
        self._timeout = timeout_seconds
        self._max_text_length = max_text_length

    @property
    def model(self) -> str:
        return self._model

    # ── Primary translate method ──────────────────────────────────────────────

    def translate(self, request: ProviderRequest) -> str | None:
        """Call Ollama and return the raw response content.

        Content-level cleanup is handled by ``OutputCleaner``.

        Args:
            request: Normalized text plus prompt parameters.

        Returns:
            Raw LLM output string on success, ``None`` on failure.
        """
        if len(request.text) > self._max_text_length:
            logger.debug(
                "OllamaProvider: text too long (%d > %d chars), not sent",
                len(request.text),
                self._max_text_length,
            )
            return None

        payload = self._build_payload(request)

        try:
            response = requests.post(
                self._api_endpoint,
                json=payload,
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout:
            logger.debug(
                "OllamaProvider: request timed out after %.1fs (endpoint=%s)",
                self._timeout,
                self._api_endpoint,
            )
            return None
        except requests.exceptions.ConnectionError:
            logger.warning(
                "OllamaProvider: cannot connect to Ollama at %s",
                self._api_endpoint,
            )
            return None
        except requests.exceptions.RequestException as exc:
            logger.debug("OllamaProvider: request failed: %s", exc)
            return None
        except ValueError as exc:
            logger.debug("OllamaProvider: response was not JSON: %s", exc)
            return None

        message = data.get("message") if isinstance(data, dict) else None
        content = message.get("content", "") if isinstance(message, dict) else ""
        if not isinstance(content, str):
            return None
        return content.strip() or None

    def preload(self) -> bool:
        """Ask Ollama to load the model into memory ahead of the first request.

        Returns:
            ``True`` if Ollama acknowledged the request.
        """
        payload = {"model": self._model, "messages": [], "stream": False}
        try:
            response = requests.post(self._api_endpoint, json=payload, timeout=self._timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            logger.warning("OllamaProvider: failed to preload model %s: %s", self._model, exc)
            return False
        logger.info("OllamaProvider: model %s loaded", self._model)
        return True

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _build_payload(self, request: ProviderRequest) -> dict:
        """Construct the Ollama ``/api/chat`` request payload.

        Args:
            request: Provider request to translate.

        Returns:
            Dict ready to be serialised as the POST body.
        """
        return {
            "model": self._model,
            "stream": False,
            "messages": [
                {"role": "system", "content": build_system_prompt(request)},
                {"role": "user", "content": build_user_message(request)},
                {"role": "assistant", "content": _EMPTY_THINK_BLOCK},
            ],
            "options": {
                "temperature": 0.0,
                "num_predict": max(_MIN_NUM_PREDICT, len(request.text) * 2),
            },
        }
