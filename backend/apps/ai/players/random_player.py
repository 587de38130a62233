"""
Random player implementation.

A simple player that selects uniformly at random from the five moves.
Used as the baseline opponent when evaluating saved agents.
"""
import random
from typing import Optional

from apps.game.rulesets.vindinium import GameState, Move, MOVE_ORDER

from .base import BasePlayer


class RandomPlayer(BasePlayer):
    """
    A player that chooses moves uniformly at random.

    Attributes:
        seed: Optional random seed for reproducibility.

    Example:
        player = RandomPlayer(player_id='random_1', seed=42)
        move = player.select_move(state, hero_id=2)
    """

    def __init__(
        self,
        player_id: str,
        game_type: str = 'vindinium',
        name: Optional[str] = None,
        seed: Optional[int] = None,
    ):
        super().__init__(
            player_id=player_id,
            game_type=game_type,
            name=name or 'Random Player',
        )
        self.seed = seed
        self._rng = random.Random(seed)

    def select_move(self, game_state: GameState, hero_id: int) -> Move:
        return self._rng.choice(MOVE_ORDER)

    def get_player_type(self) -> str:
        """Return 'random' as the player type."""
        return 'random'
