import sys
from datetime import datetime
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from bewijsje import config
from bewijsje.storage import LocalStore
from bewijsje.summary import IdentitySource


@pytest.fixture(autouse=True)
def default_store_file(tmp_path, monkeypatch):
    """Keep the default store out of the home directory."""
    path = tmp_path / "default-store.json"
    monkeypatch.setattr(config, "STORE_FILE", path)
    return path


@pytest.fixture
def store(tmp_path):
    return LocalStore(tmp_path / "store.json")


@pytest.fixture
def identity():
    """No remembered name, no page, no global game id."""
    return IdentitySource.from_context(game_constant="")


@pytest.fixture
def now():
    return datetime(2025, 10, 27, 14, 5)


@pytest.fixture
def eva_session():
    return {
        "name": "Eva", "class": "2B", "gameId": "telrij",
        "seconds": 125, "score": 7, "total": 10,
        "questions": [
            {"q": "3+4", "correct": "7", "given": "7", "ok": True},
            {"q": "5+5", "correct": "10", "given": "9", "ok": False},
        ],
    }
