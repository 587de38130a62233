"""
Individual fitness metrics, each scored 0-100.

- gold: share of all gold held at the end of the match
- mines: share of the board's mines held at the end
- survival: average life while alive, penalized by deaths
- exploration: distinct cells visited, penalized by idle turns
"""
import math
from typing import Sequence

from apps.game.rulesets.vindinium import Hero

from .stats import HeroStats

MAX_SCORE = 100


def _clamp(value: float) -> float:
    return max(0.0, min(float(MAX_SCORE), value))


def gold_score(hero: Hero, all_heroes: Sequence[Hero]) -> int:
    """
    Hero's share of total gold. 25 is a fair share in a four-hero match.

    Returns 0 when nobody has any gold.
    """
    total = sum(h.gold for h in all_heroes)
    if total <= 0:
        return 0
    return min(MAX_SCORE, math.floor(100 * hero.gold / total))


def mine_score(hero: Hero, total_mines: int) -> int:
    """Hero's share of the mines on the board. 0 when the board has none."""
    if total_mines <= 0:
        return 0
    return min(MAX_SCORE, math.floor(100 * hero.mine_count / total_mines))


def survival_score(stats: HeroStats) -> float:
    """70% average life while alive, 30% death penalty of 25 points per death."""
    return _clamp(0.7 * stats.avg_life + 0.3 * (100 - 25 * stats.deaths))


def exploration_score(stats: HeroStats) -> float:
    """+3 per distinct cell occupied, -2 per turn spent in place."""
    return _clamp(3 * len(stats.unique_tiles) - 2 * stats.idle_turns)
