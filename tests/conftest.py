"""
Shared pytest fixtures for bracket engine tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.models import Entrant


def make_entrants(count):
    """Entrants player-1..player-N with strictly decreasing ranking (player-1 is seed 1)."""
    return [
        Entrant(f'player-{i + 1}', f'Player {i + 1:02d}', ranking=2000 - i * 50)
        for i in range(count)
    ]


def find(slots, slot_id):
    return next(s for s in slots if s.id == slot_id)


def play_out(entrants, overrides=None):
    """
    Play every ready match until none is left, the first occupant always
    winning by the minimum score. Returns (slots, overrides).
    """
    from brackets.evaluator import evaluate, win_threshold

    overrides = dict(overrides or {})
    while True:
        slots = evaluate(entrants, overrides)
        ready = [s for s in slots if s.status == 'ready']
        if not ready:
            return slots, overrides
        for slot in ready:
            overrides[slot.id] = {'score1': win_threshold(slot.best_of), 'score2': 0}


@pytest.fixture
def entrants_32():
    """A full field of 32 ranked entrants."""
    return make_entrants(32)


@pytest.fixture
def entrants_24():
    """24 ranked entrants; seeds 25-32 are BYEs."""
    return make_entrants(24)


@pytest.fixture
def client():
    """Create a Flask test client."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
