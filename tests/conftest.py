"""
Shared pytest fixtures for the game-translator test suite.

This module provides fixtures that are automatically available to all test files:
- Temporary store files and TranslationStore instances
- A scripted fake provider that records the requests it receives
- A small entry mapping used by the store and merge tests

Every fixture is function-scoped; nothing touches the real data directory.
"""

from collections.abc import Generator
from pathlib import Path

import pytest

from game_translator.config import use_test_data_dir
from game_translator.store import Entry, TranslationStore, TranslationTag
from tests.helpers import FakeProvider, ai, human

STORE_UUID = "11111111-2222-3333-4444-555555555555"

# ============================================================================
# STORE FIXTURES
# ============================================================================


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    """Path of a store file that does not exist yet."""
    return tmp_path / "translations.json"


@pytest.fixture
def store(store_path: Path) -> TranslationStore:
    """An empty, file-backed store with a fixed identity."""
    return TranslationStore(store_path, uuid=STORE_UUID)


@pytest.fixture
def memory_store() -> TranslationStore:
    """An empty store with no backing file."""
    return TranslationStore(uuid="memory-store")


@pytest.fixture
def test_data_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Redirect the configured data directory to a temporary one."""
    with use_test_data_dir(tmp_path):
        yield tmp_path


# ============================================================================
# PROVIDER FIXTURES
# ============================================================================


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


# ============================================================================
# ENTRY FIXTURES
# ============================================================================


@pytest.fixture
def sample_entries() -> dict[str, Entry]:
    return {
        "Continue": ai("Continuer"),
        "Health: [v0]": human("Santé : [v0]"),
        "Options": Entry("Options", TranslationTag.SKIPPED),
    }
