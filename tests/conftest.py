from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from draftroom import database
from draftroom.main import app
from draftroom.models.draft import Draft
from draftroom.services.round_manager import add_round


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = str(tmp_path / "draftroom_test.db")
    monkeypatch.setattr(database, "DATABASE_URL", path)
    return path


@pytest.fixture
def client(db_path):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_draft():
    """Build an in-memory draft with ``rounds`` materialised rounds."""
    def _make_draft(draft_order=("A", "B", "C"), rounds=2, is_snake_draft=True, **fields):
        draft = Draft(
            id="draft-1",
            year=2025,
            type="prospect",
            is_snake_draft=is_snake_draft,
            created_at=datetime(2025, 3, 1, tzinfo=timezone.utc),
            is_active=True,
            draft_order=list(draft_order),
            **fields,
        )
        for _ in range(rounds):
            draft = add_round(draft)
        return draft

    return _make_draft
