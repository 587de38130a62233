"""
Player abstractions for match participants.

This module provides a unified interface for all player types, so a
match runner can seat random baselines and evolved networks alike.
"""
from .base import BasePlayer
from .random_player import RandomPlayer
from .neural import Decision, NeuralPlayer, decide

__all__ = [
    'BasePlayer',
    'RandomPlayer',
    'NeuralPlayer',
    'Decision',
    'decide',
]
