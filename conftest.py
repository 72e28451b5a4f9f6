import shutil
from pathlib import Path

import pytest

from backend import storage
from backend.characters import new_character

TEST_DATA_DIR = Path("data-tests")


@pytest.fixture(autouse=True)
def clean_test_data():
    """Wipe data-tests/ and point character storage at it before every test."""
    if TEST_DATA_DIR.exists():
        shutil.rmtree(TEST_DATA_DIR)
    storage.init_storage(TEST_DATA_DIR)
    yield
    # leave data-tests around after tests for inspection; CI can ignore it


@pytest.fixture
def character():
    """A fresh solo, saved to storage."""
    char = new_character(
        background="Grew up in Kabuki",
        augmentations="Reflex booster",
        appearance="Long coat, green optics",
        trade="Solo",
        player_id="player-1",
    )
    storage.save_character(char)
    return char
