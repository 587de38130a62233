"""
Per-match hero statistics.

A HeroStatsTracker is fed every (before, after) state pair of a match and
accumulates the counters the fitness metrics are computed from.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set, Tuple

from apps.game.rulesets.vindinium import GameState


@dataclass
class HeroStats:
    """Counters for one hero over one match."""

    # Combat
    attacks: int = 0
    kills: int = 0
    mines_stolen: int = 0

    # Resilience
    health_recovered: int = 0
    deaths: int = 0
    total_hp: int = 0
    turns_alive: int = 0

    # Exploration
    unique_tiles: Set[Tuple[int, int]] = field(default_factory=set)
    idle_turns: int = 0

    mine_acquisition_turns: List[int] = field(default_factory=list)

    @property
    def avg_life(self) -> float:
        """Mean life over the turns the hero was alive, 0 if never sampled."""
        return self.total_hp / self.turns_alive if self.turns_alive else 0.0


class HeroStatsTracker:
    """
    Accumulate HeroStats for every hero in a match.

    Example:
        tracker = HeroStatsTracker([1, 2, 3, 4])
        for each turn:
            after = advance_turn(before, hero_id, move)
            tracker.record_turn(before, after, hero_id)
        stats = tracker.stats[1]
    """

    def __init__(self, hero_ids: Iterable[int]):
        self.stats: Dict[int, HeroStats] = {hero_id: HeroStats() for hero_id in hero_ids}

    def record_turn(self, before: GameState, after: GameState, acting_hero_id: int) -> None:
        """
        Update counters from one turn.

        Life is sampled for every living hero. Exploration is only
        counted for the hero that acted.
        """
        for event in after.events:
            stats = self.stats.get(event.hero_id)
            if stats is None:
                continue
            if event.kind == 'attack':
                stats.attacks += 1
            elif event.kind == 'death':
                stats.deaths += 1
                killer = self.stats.get(event.other_id) if event.other_id is not None else None
                if killer is not None:
                    killer.kills += 1
            elif event.kind == 'capture':
                stats.mine_acquisition_turns.append(before.turn)
                if event.other_id is not None:
                    stats.mines_stolen += 1
            elif event.kind == 'heal':
                stats.health_recovered += event.amount

        for hero in after.heroes:
            stats = self.stats.get(hero.id)
            if stats is not None and hero.life > 0:
                stats.total_hp += hero.life
                stats.turns_alive += 1

        previous = before.hero(acting_hero_id)
        current = after.hero(acting_hero_id)
        stats = self.stats.get(acting_hero_id)
        if previous is None or current is None or stats is None:
            return
        stats.unique_tiles.add(current.pos)
        if current.pos == previous.pos:
            stats.idle_turns += 1
