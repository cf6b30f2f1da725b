from pathlib import Path
import sys

import mongomock
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import database  # noqa: E402


@pytest.fixture
def mongo_db(monkeypatch):
    """Fresh in-memory database in place of the configured MongoDB."""
    db = mongomock.MongoClient()["weekly_physics_test"]
    monkeypatch.setattr(database, "db", db)
    return db


@pytest.fixture
def no_db(monkeypatch):
    monkeypatch.setattr(database, "db", None)
