"""Unit tests for text classification and word-spacing detection."""

import pytest

from game_translator.languages import uses_word_spacing
from game_translator.normalization.text_type import TextType, classify_text


@pytest.mark.unit
@pytest.mark.parametrize(
    "text, expected",
    [
        ("Continue", TextType.SINGLE_WORD),
        ("  Options  ", TextType.SINGLE_WORD),
        ("New game", TextType.PHRASE),
        ("Level [v0] complete", TextType.PHRASE),
        ("First line\nSecond line", TextType.PARAGRAPH),
        ("保存", TextType.SINGLE_WORD),
        ("新しいゲームを開始する", TextType.PHRASE),
    ],
)
def test_classify_text(text, expected):
    assert classify_text(text) is expected


@pytest.mark.unit
class TestWordSpacing:
    def test_latin_uses_spacing(self):
        assert uses_word_spacing("Start game")

    def test_japanese_does_not(self):
        assert not uses_word_spacing("ゲームを開始")

    def test_thai_does_not(self):
        assert not uses_word_spacing("เริ่มเกม")

    def test_korean_uses_spacing(self):
        assert uses_word_spacing("게임 시작")

    def test_no_letters_counts_as_spacing(self):
        assert uses_word_spacing("123 !!")
