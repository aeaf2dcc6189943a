"""Unit tests for OutputCleaner."""

import pytest

from game_translator.provider.cleaner import OutputCleaner


@pytest.fixture
def cleaner():
    return OutputCleaner()


class TestEmptyInput:
    def test_none_returns_none(self, cleaner):
        assert cleaner.clean(None) is None

    def test_whitespace_only_returns_none(self, cleaner):
        assert cleaner.clean("   \n  ") is None

    def test_only_think_block_returns_none(self, cleaner):
        assert cleaner.clean("<think>hmm</think>") is None


class TestReasoning:
    def test_think_block_removed(self, cleaner):
        assert cleaner.clean("<think>\nLet me see.\n</think>\n\nContinuer") == "Continuer"

    def test_think_block_case_insensitive(self, cleaner):
        assert cleaner.clean("<THINK></THINK>Continuer") == "Continuer"

    def test_echoed_directive_removed(self, cleaner):
        assert cleaner.clean("Continuer /no_think") == "Continuer"


class TestScaffolding:
    def test_markdown_bold(self, cleaner):
        assert cleaner.clean("**Continuer**") == "Continuer"

    @pytest.mark.parametrize(
        "raw",
        [
            "Translation: Continuer",
            "translation - Continuer",
            "Here's Continuer",
            "The translation is: Continuer",
            "Traduction : Continuer",
        ],
    )
    def test_boilerplate_prefix(self, cleaner, raw):
        assert cleaner.clean(raw) == "Continuer"

    def test_prefix_requires_word_boundary(self, cleaner):
        assert cleaner.clean("Heresy") == "Heresy"

    def test_bare_label_word_is_a_translation(self, cleaner):
        assert cleaner.clean("Traduction") == "Traduction"

    def test_explanation_tail_cut(self, cleaner):
        assert cleaner.clean("Continuer\n\nNote: this is formal.") == "Continuer"

    def test_paragraph_break_kept(self, cleaner):
        text = "Premier paragraphe.\n\nDeuxième paragraphe."
        assert cleaner.clean(text) == text


class TestQuotes:
    @pytest.mark.parametrize(
        "raw", ['"Continuer"', "'Continuer'", "“Continuer”", "«Continuer»"]
    )
    def test_wrapping_pair_removed(self, cleaner, raw):
        assert cleaner.clean(raw) == "Continuer"

    def test_inner_quotes_kept(self, cleaner):
        assert cleaner.clean('Dire "bonjour"') == 'Dire "bonjour"'

    def test_only_one_pair_removed(self, cleaner):
        assert cleaner.clean("\"'Continuer'\"") == "'Continuer'"

    def test_lone_quote_kept(self, cleaner):
        assert cleaner.clean('"') == '"'


def test_skip_sentinel_passes_through(cleaner):
    assert cleaner.clean("[SKIP]") == "[SKIP]"
