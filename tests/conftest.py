"""
Shared pytest fixtures for the Nolimpiadi tournament tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - fast subset
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.models import Player, Team, Match, Discipline, ROUND_ROBIN


def make_roster():
    """The 12-player 4/4/4 roster (light, medium, heavy in that order)."""
    players = []
    for i in range(1, 5):
        players.append(Player(id=f"p{i}", name=f"Light{i} Rossi", weight=2, category="RAGAZZO"))
    for i in range(5, 9):
        players.append(Player(id=f"p{i}", name=f"Medium{i} Verdi", weight=4, category="GIOVANE"))
    for i in range(9, 13):
        players.append(Player(id=f"p{i}", name=f"Heavy{i} Neri", weight=6, category="ADULTO"))
    return players


@pytest.fixture
def roster():
    return make_roster()


@pytest.fixture
def fixed_teams():
    """Six teams with stable ids, matching the pairing the balancer produces."""
    return [
        Team(id="t1", name="Heavy9 & Light1", player_ids=["p9", "p1"], total_weight=8),
        Team(id="t2", name="Heavy10 & Light2", player_ids=["p10", "p2"], total_weight=8),
        Team(id="t3", name="Heavy11 & Light3", player_ids=["p11", "p3"], total_weight=8),
        Team(id="t4", name="Heavy12 & Light4", player_ids=["p12", "p4"], total_weight=8),
        Team(id="t5", name="Medium5 & Medium6", player_ids=["p5", "p6"], total_weight=8),
        Team(id="t6", name="Medium7 & Medium8", player_ids=["p7", "p8"], total_weight=8),
    ]


@pytest.fixture
def team_discipline():
    return Discipline("PING_PONG", "Ping Pong", True)


@pytest.fixture
def individual_discipline():
    return Discipline("FRECCETTE", "Freccette", False)


def played(match_id, discipline_id, p1, p2, s1, s2):
    """A completed round-robin match."""
    winner = p1 if s1 > s2 else (p2 if s2 > s1 else None)
    return Match(id=match_id, discipline_id=discipline_id, player1_id=p1, player2_id=p2,
                 score1=s1, score2=s2, is_completed=True, phase=ROUND_ROBIN, winner_id=winner)


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the Flask app at an empty temporary data directory."""
    import app as app_module
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    return str(data_dir)


@pytest.fixture
def client(temp_data_dir):
    """Create a test client bound to the temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
