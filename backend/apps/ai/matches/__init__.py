"""
Match infrastructure for evolution and evaluation.

Components:
- MatchRunner: Play one four-hero match and score every hero
- MatchPool: Run a batch of independent matches on a bounded thread pool

Example usage:
    from apps.ai.matches import MatchRunner
    from apps.ai.players import NeuralPlayer, RandomPlayer

    runner = MatchRunner()
    result = runner.play({
        1: NeuralPlayer('agent', weights),
        2: RandomPlayer('r2'),
        3: RandomPlayer('r3'),
        4: RandomPlayer('r4'),
    })
    print(f"Winner: {result.winner}")
"""
from .pool import MatchPool, default_workers
from .runner import MatchResult, MatchRunner

__all__ = [
    'MatchPool',
    'MatchResult',
    'MatchRunner',
    'default_workers',
]
