"""Shared pytest fixtures: a scripted random source and quiet engines."""

import pytest

from engine import GameEngine
from models import GameState
from rng import RandomProvider


class ScriptedRandom(RandomProvider):
    """Replays queued draws, then falls back to fixed defaults.

    With the defaults every ``random_int(n)`` returns 1, so no weighted roll
    (``1 % freq == 0``) ever fires, and every float draw is 0.5.
    """

    def __init__(self, ints=None, floats=None):
        super().__init__(seed=0)
        self.ints = list(ints or [])
        self.floats = list(floats or [])

    def random_int(self, max_exclusive):
        if max_exclusive <= 0:
            return 0
        if self.ints:
            return self.ints.pop(0) % max_exclusive
        return 1 if max_exclusive > 1 else 0

    def random_float(self):
        if self.floats:
            return self.floats.pop(0)
        return 0.5


@pytest.fixture
def scripted_rng():
    return ScriptedRandom


@pytest.fixture
def quiet_engine():
    """Engine whose turns trigger no random events"""
    return GameEngine(rng=ScriptedRandom())


@pytest.fixture
def state(quiet_engine) -> GameState:
    return quiet_engine.create_initial_state()
