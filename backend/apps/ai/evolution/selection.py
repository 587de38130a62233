"""
Selection strategies for the evolutionary loop.

- Elite: the top of the ranking survives unchanged
- Tournament: parents are the best of a small random sample of elites

Both work with any object exposing a ``fitness`` attribute.
"""
import random
from typing import List, Sequence, Tuple, TypeVar

T = TypeVar('T')


class TournamentSelection:
    """
    Tournament selection strategy.

    Randomly pick k candidates, the fittest wins.

    Tournament size controls selection pressure:
    - k=2: Low pressure, more diversity
    - k=5: High pressure, faster convergence

    Example:
        selection = TournamentSelection(tournament_size=3)
        parent_a, parent_b = selection.select_pair(elites, rng)
    """

    def __init__(self, tournament_size: int = 3):
        if tournament_size < 1:
            raise ValueError("tournament_size must be at least 1")
        self.tournament_size = tournament_size

    def select_one(self, candidates: Sequence[T], rng: random.Random) -> T:
        if not candidates:
            raise ValueError("Cannot select from an empty population")
        k = min(self.tournament_size, len(candidates))
        contestants = rng.sample(list(candidates), k)
        return max(contestants, key=lambda c: c.fitness)

    def select_pair(self, candidates: Sequence[T], rng: random.Random) -> Tuple[T, T]:
        """Two independent tournaments. The same candidate may win both."""
        return self.select_one(candidates, rng), self.select_one(candidates, rng)


class EliteSelection:
    """
    Elitism: preserve the best individuals unchanged.

    The number of elites is ``max(1, round(n * elite_fraction))``.
    """

    def __init__(self, elite_fraction: float = 0.2):
        if not 0.0 <= elite_fraction <= 1.0:
            raise ValueError("elite_fraction must be between 0 and 1")
        self.elite_fraction = elite_fraction

    def elite_count(self, population_size: int) -> int:
        return min(population_size, max(1, round(population_size * self.elite_fraction)))

    def get_elite(self, ranked: Sequence[T]) -> List[T]:
        """Top of an already ranked (best first) population."""
        return list(ranked[:self.elite_count(len(ranked))])
