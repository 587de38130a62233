"""
Match runner for playing games between players.

Plays one complete four-hero match, tracking per-hero statistics
turn by turn, and scores every hero at the end.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from apps.game.rulesets.vindinium import (
    DEFAULT_RULES,
    GameRules,
    GameState,
    Move,
    VindiniumRuleSet,
)

from ..fitness import DEFAULT_WEIGHTS, FitnessResult, FitnessWeights, HeroStats, HeroStatsTracker, score
from ..players.base import BasePlayer

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """Result of a single match."""
    final_state: GameState
    fitness: Dict[int, FitnessResult] = field(default_factory=dict)
    stats: Dict[int, HeroStats] = field(default_factory=dict)
    winner: Optional[int] = None  # Hero ID, None on a tie
    num_turns: int = 0

    @property
    def gold(self) -> Dict[int, int]:
        return {hero.id: hero.gold for hero in self.final_state.heroes}


class MatchRunner:
    """
    Run matches between players.

    Handles the complete game flow:
    1. Initialize game state
    2. Ask the acting hero's player for a move, round-robin
    3. Apply the move and record statistics
    4. Score every hero once the turn limit is reached

    The runner holds no per-match state, so one instance can serve
    many matches running on different threads.

    Example:
        runner = MatchRunner(rules=GameRules(max_turns=300))
        result = runner.play({
            1: NeuralPlayer('agent', weights),
            2: RandomPlayer('r2'),
            3: RandomPlayer('r3'),
            4: RandomPlayer('r4'),
        })
        print(result.fitness[1].fitness)
    """

    def __init__(
        self,
        rules: GameRules = DEFAULT_RULES,
        fitness_weights: FitnessWeights = DEFAULT_WEIGHTS,
        yield_every: int = 50,
    ):
        """
        Initialize the runner.

        Args:
            rules: Game constants.
            fitness_weights: Weights for the combined fitness.
            yield_every: Turns between cooperative yields of the thread.
        """
        self.ruleset = VindiniumRuleSet(rules)
        self.fitness_weights = fitness_weights
        self.yield_every = max(1, yield_every)

    def play(
        self,
        players: Dict[int, BasePlayer],
        max_turns: Optional[int] = None,
    ) -> MatchResult:
        """
        Play one full match.

        Heroes without a player stay put every turn.

        Args:
            players: Mapping of hero id (1-4) to player.
            max_turns: Overrides the rules' match length.

        Returns:
            MatchResult with the final state and per-hero fitness.
        """
        state = self.ruleset.get_initial_state()
        if max_turns:
            state = GameState(
                turn=0,
                max_turns=max_turns,
                heroes=state.heroes,
                board=state.board,
                finished=False,
            )

        tracker = HeroStatsTracker(hero.id for hero in state.heroes)

        while not self.ruleset.is_finished(state):
            hero_id = self.ruleset.get_current_player(state)
            player = players.get(hero_id)
            move = player.select_move(state, hero_id) if player is not None else Move.STAY

            next_state = self.ruleset.apply_move(state, hero_id, move)
            tracker.record_turn(state, next_state, hero_id)
            state = next_state

            if state.turn % self.yield_every == 0:
                # Let other matches (and the driver thread) run.
                time.sleep(0)

        total_mines = state.board.count_mines()
        fitness = {
            hero.id: score(
                hero,
                tracker.stats[hero.id],
                state.heroes,
                self.fitness_weights,
                total_mines,
            )
            for hero in state.heroes
        }

        logger.debug(
            "Match finished after %d turns, gold %s",
            state.turn, {h.id: h.gold for h in state.heroes},
        )

        return MatchResult(
            final_state=state,
            fitness=fitness,
            stats=tracker.stats,
            winner=self.ruleset.check_winner(state),
            num_turns=state.turn,
        )
