"""
Evaluation of trained agents against fixed baselines.

Used to put a number on a saved agent's strength independent of the
population it evolved in.
"""
from .baseline import EvaluationResult, evaluate_vs_random

__all__ = [
    'EvaluationResult',
    'evaluate_vs_random',
]
