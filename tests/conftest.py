from datetime import datetime, timedelta

import pytest

from cardwise.domain.models import Card


@pytest.fixture
def now():
    return datetime(2024, 3, 15, 10, 30)


@pytest.fixture
def make_card():
    """Factory for cards; keyword arguments override any field."""
    counter = {"n": 0}

    def _make(**overrides) -> Card:
        counter["n"] += 1
        fields = {
            "id": f"card-{counter['n']}",
            "question": f"Question {counter['n']}?",
            "answer": f"Answer {counter['n']}",
            "created_at": datetime(2024, 1, 1) + timedelta(minutes=counter["n"]),
        }
        fields.update(overrides)
        return Card(**fields)

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config and card data
    monkeypatch.setenv("HOME", str(home))
    for var in ("CARDWISE_DATA_DIR", "CARDWISE_USER_ID", "CARDWISE_SEED", "CARDWISE_ORDER"):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def data_dir(mock_home, monkeypatch):
    """Isolated data directory picked up through CARDWISE_DATA_DIR."""
    d = mock_home / "data"
    monkeypatch.setenv("CARDWISE_DATA_DIR", str(d))
    return d
