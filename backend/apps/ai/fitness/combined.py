"""
Combined fitness: a weighted average of the four metrics.
"""
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional, Sequence

from apps.game.rulesets.vindinium import Hero

from .metrics import exploration_score, gold_score, mine_score, survival_score
from .stats import HeroStats


@dataclass(frozen=True)
class FitnessWeights:
    """
    Relative importance of each metric.

    Only the ratios matter: scaling every weight by the same positive
    factor leaves the combined fitness unchanged.
    """

    gold: float = 3.0
    mine: float = 1.0
    survival: float = 2.0
    exploration: float = 1.0

    def __post_init__(self):
        for f in fields(self):
            if getattr(self, f.name) < 0:
                raise ValueError(f"Fitness weight '{f.name}' must be non-negative")

    @property
    def total(self) -> float:
        return self.gold + self.mine + self.survival + self.exploration

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'FitnessWeights':
        data = data or {}
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown fitness weights: {', '.join(sorted(unknown))}")
        return cls(**{k: float(v) for k, v in data.items()})

    @classmethod
    def parse(cls, text: str) -> 'FitnessWeights':
        """
        Parse ``'gold=3,mine=1,survival=2,exploration=1'``.

        Omitted names keep their defaults.
        """
        values = {}
        for part in filter(None, (p.strip() for p in text.split(','))):
            name, sep, value = part.partition('=')
            if not sep:
                raise ValueError(f"Expected name=value, got '{part}'")
            try:
                values[name.strip()] = float(value)
            except ValueError as e:
                raise ValueError(f"Weight '{name.strip()}' is not a number: {value}") from e
        return cls.from_dict(values)

    @classmethod
    def from_settings(cls) -> 'FitnessWeights':
        """Build weights from Django's ``FITNESS_WEIGHTS`` setting."""
        from django.conf import settings

        return cls.from_dict(getattr(settings, 'FITNESS_WEIGHTS', None))


DEFAULT_WEIGHTS = FitnessWeights()


@dataclass(frozen=True)
class FitnessBreakdown:
    """The four component scores behind a fitness value."""

    gold: float = 0.0
    mines: float = 0.0
    survival: float = 0.0
    exploration: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'FitnessBreakdown':
        """Missing components default to zero."""
        data = data or {}
        return cls(**{f.name: float(data.get(f.name, 0.0)) for f in fields(cls)})

    @classmethod
    def mean(cls, breakdowns: Sequence['FitnessBreakdown']) -> 'FitnessBreakdown':
        if not breakdowns:
            return cls()
        n = len(breakdowns)
        return cls(**{
            f.name: sum(getattr(b, f.name) for b in breakdowns) / n
            for f in fields(cls)
        })


@dataclass(frozen=True)
class FitnessResult:
    fitness: float
    breakdown: FitnessBreakdown


def calculate_fitness(
    gold: float,
    mines: float,
    survival: float,
    exploration: float,
    weights: FitnessWeights = DEFAULT_WEIGHTS,
) -> float:
    """
    Weighted average of the component scores.

    Returns 0.0 when every weight is zero.
    """
    total = weights.total
    if total <= 0:
        return 0.0
    weighted = (
        gold * weights.gold
        + mines * weights.mine
        + survival * weights.survival
        + exploration * weights.exploration
    )
    return weighted / total


def score(
    hero: Hero,
    hero_stats: HeroStats,
    all_heroes: Sequence[Hero],
    weights: FitnessWeights = DEFAULT_WEIGHTS,
    total_mines: int = 4,
) -> FitnessResult:
    """
    Score one hero at the end of a match.

    Args:
        hero: The hero's final state.
        hero_stats: Counters accumulated over the match.
        all_heroes: Final state of every hero, including ``hero``.
        weights: Metric weights.
        total_mines: Number of mines on the board.
    """
    breakdown = FitnessBreakdown(
        gold=gold_score(hero, all_heroes),
        mines=mine_score(hero, total_mines),
        survival=survival_score(hero_stats),
        exploration=exploration_score(hero_stats),
    )
    fitness = calculate_fitness(
        breakdown.gold, breakdown.mines, breakdown.survival, breakdown.exploration, weights,
    )
    return FitnessResult(fitness=fitness, breakdown=breakdown)
