"""
Pytest configuration and shared fixtures for the Vindinium trainer.

This module provides fixtures for:
- Game state fixtures shared by the game and AI apps
"""
from dataclasses import replace

import pytest

from apps.game.rulesets import create_initial_state


@pytest.fixture
def midgame_state():
    """A 12x12 state a third of the way through a 300-turn match."""
    return replace(create_initial_state(size=12, max_turns=300), turn=100)
