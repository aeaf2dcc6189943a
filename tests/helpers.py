"""Shared test doubles and entry shorthands for the game-translator tests."""

from game_translator.provider.base import ProviderRequest
from game_translator.store import Entry, TranslationTag


class FakeProvider:
    """
    Provider double returning scripted responses.

    Responses are looked up by the normalized request text; unknown texts
    get ``default``. A response may be an exception instance, which is
    raised instead of returned.
    """

    def __init__(self, responses: dict[str, object] | None = None, default: object = None):
        self.responses = dict(responses or {})
        self.default = default
        self.requests: list[ProviderRequest] = []

    def translate(self, request: ProviderRequest) -> str | None:
        self.requests.append(request)
        response = self.responses.get(request.text, self.default)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def call_count(self) -> int:
        return len(self.requests)


def ai(value: str) -> Entry:
    return Entry(value, TranslationTag.AI)


def human(value: str) -> Entry:
    return Entry(value, TranslationTag.HUMAN)


def validated(value: str) -> Entry:
    return Entry(value, TranslationTag.VALIDATED)


def skipped(value: str) -> Entry:
    return Entry(value, TranslationTag.SKIPPED)


def mod_ui(value: str) -> Entry:
    return Entry(value, TranslationTag.MOD_UI)
