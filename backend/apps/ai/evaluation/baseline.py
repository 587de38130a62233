"""
Evaluation of an agent against uniformly random opponents.

The agent takes each hero seat in turn across the matches so that no
spawn corner is favoured. A match counts as a win only when the agent
ends with strictly more gold than every opponent.
"""
import logging
import random
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from functools import partial
from typing import Any, Dict, Optional, Tuple

from apps.game.rulesets.vindinium import DEFAULT_RULES, GameRules, NUM_HEROES

from ..fitness import DEFAULT_WEIGHTS, FitnessWeights
from ..matches import MatchPool, MatchRunner
from ..players import NeuralPlayer, RandomPlayer

logger = logging.getLogger(__name__)


@dataclass
class EvaluationResult:
    """Outcome of an evaluation run."""
    wins: int
    matches: int
    avg_fitness: float
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def win_rate(self) -> float:
        return self.wins / self.matches if self.matches else 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['win_rate'] = self.win_rate
        return data


def _play_seat(
    job: Tuple[int, int],
    member,
    runner: MatchRunner,
    max_turns: Optional[int],
) -> Tuple[bool, float]:
    agent_hero, seed = job
    opponent_rng = random.Random(seed)
    players = {
        hero_id: RandomPlayer(f'random_{hero_id}', seed=opponent_rng.getrandbits(32))
        for hero_id in range(1, NUM_HEROES + 1)
        if hero_id != agent_hero
    }
    players[agent_hero] = NeuralPlayer(member.id, member.weights)

    result = runner.play(players, max_turns=max_turns)
    return result.winner == agent_hero, result.fitness[agent_hero].fitness


def evaluate_vs_random(
    member,
    num_matches: int = 100,
    rules: GameRules = DEFAULT_RULES,
    fitness_weights: FitnessWeights = DEFAULT_WEIGHTS,
    max_turns: Optional[int] = None,
    seed: Optional[int] = None,
    workers: Optional[int] = None,
) -> EvaluationResult:
    """
    Play ``member`` against three random players ``num_matches`` times.

    Args:
        member: A PopulationMember (anything with ``id`` and ``weights``).
        num_matches: Matches to play.
        rules: Game constants.
        fitness_weights: Weights for the reported average fitness.
        max_turns: Overrides the rules' match length.
        seed: Seed for the opponents' random sources.
        workers: Thread pool size (defaults to the CPU count).

    Returns:
        EvaluationResult over the matches that completed.
    """
    if num_matches < 1:
        raise ValueError("num_matches must be at least 1")

    rng = random.Random(seed)
    jobs = [((k % NUM_HEROES) + 1, rng.getrandbits(32)) for k in range(num_matches)]
    runner = MatchRunner(rules=rules, fitness_weights=fitness_weights)
    pool = MatchPool(
        partial(_play_seat, member=member, runner=runner, max_turns=max_turns),
        max_workers=workers,
    )
    results, failures = pool.run(jobs)

    wins = sum(1 for _, (won, _) in results if won)
    avg = sum(fitness for _, (_, fitness) in results) / len(results) if results else 0.0
    if failures:
        logger.warning("%d of %d evaluation matches failed", failures, num_matches)

    return EvaluationResult(wins=wins, matches=len(results), avg_fitness=avg)
