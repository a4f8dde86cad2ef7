"""
Shared pytest fixtures for bracket tests.

Running tests:
    pytest tests/
"""
import pytest
import random
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.models import Competitor


@pytest.fixture
def client():
    """Create a test client."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the app's tournament storage at a temporary directory."""
    import app as app_module

    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    monkeypatch.setattr(app_module, 'TOURNAMENTS_FILE', str(data_dir / "tournaments.yaml"))
    return str(data_dir)


@pytest.fixture
def rng():
    """Seeded random source so draws are reproducible."""
    return random.Random(1234)


def make_roster(count):
    return [Competitor(name=f"Team {i + 1}", id=f"t{i + 1}") for i in range(count)]


@pytest.fixture
def four_competitors():
    return make_roster(4)


@pytest.fixture
def five_competitors():
    return make_roster(5)


@pytest.fixture
def three_competitors():
    return [
        Competitor(name="X", id="x"),
        Competitor(name="Y", id="y"),
        Competitor(name="Z", id="z"),
    ]
