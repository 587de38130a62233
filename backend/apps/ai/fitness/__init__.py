"""
Fitness evaluation for finished matches.

Each hero is scored 0-100 on gold, mines, survival and exploration;
the combined fitness is a weighted average of the four.
"""
from .combined import (
    DEFAULT_WEIGHTS,
    FitnessBreakdown,
    FitnessResult,
    FitnessWeights,
    calculate_fitness,
    score,
)
from .metrics import exploration_score, gold_score, mine_score, survival_score
from .stats import HeroStats, HeroStatsTracker

__all__ = [
    'DEFAULT_WEIGHTS',
    'FitnessBreakdown',
    'FitnessResult',
    'FitnessWeights',
    'HeroStats',
    'HeroStatsTracker',
    'calculate_fitness',
    'exploration_score',
    'gold_score',
    'mine_score',
    'score',
    'survival_score',
]
