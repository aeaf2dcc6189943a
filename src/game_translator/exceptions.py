"""Exception types raised by game_translator.

Most failure paths in this package degrade to "no-op, keep previous state"
and are reported through logging rather than exceptions (a corrupt store
file, a provider timeout).  The exceptions below cover the few places where
the caller has to make a decision.
"""

from __future__ import annotations

from dataclasses import dataclass


class TranslatorError(Exception):
    """Base class for all game_translator errors."""


class SnapshotFormatError(TranslatorError, ValueError):
    """Raised when a snapshot payload is not a JSON object of translations.

    Only raised for *remote* payloads.  A corrupt local store file is a
    recoverable condition and never raises.
    """


@dataclass(eq=False)
class RemoteAPIError(TranslatorError):
    """Raised by :class:`~game_translator.sync.SyncService` when a remote call fails.

    Attributes:
        message:     Human-readable error message.
        status_code: HTTP status code, or ``0`` for transport-level failures.
        detail:      Additional detail from the server response, if any.
    """

    message: str
    status_code: int = 0
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message
