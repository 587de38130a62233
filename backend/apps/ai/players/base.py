"""
Base player abstraction for all player types.

This module defines the interface every player must implement to take
a seat in a match. The key method is `select_move`, which takes a game
state and the hero the player controls, returning the chosen move.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from apps.game.rulesets.vindinium import GameState, Move


class BasePlayer(ABC):
    """
    Abstract base class for all player types.

    Players hold no per-game state of their own, so one instance may
    control the same seat in several consecutive matches.

    Attributes:
        player_id: Unique identifier for this player instance.
        game_type: The game type this player is configured for.
        name: Human-readable name for display purposes.

    Example:
        class StayPlayer(BasePlayer):
            def select_move(self, game_state, hero_id):
                return Move.STAY

            def get_player_type(self):
                return 'stay'
    """

    def __init__(
        self,
        player_id: str,
        game_type: str = 'vindinium',
        name: Optional[str] = None,
    ):
        """
        Initialize a player.

        Args:
            player_id: Unique identifier for this player.
            game_type: Game type this player plays.
            name: Optional display name. Defaults to player_id if not provided.
        """
        self.player_id = player_id
        self.game_type = game_type
        self.name = name or player_id

    @abstractmethod
    def select_move(self, game_state: GameState, hero_id: int) -> Move:
        """
        Choose a move for ``hero_id`` in ``game_state``.

        Every move is legal in Vindinium; blocked moves simply do nothing.

        Args:
            game_state: Current state of the game.
            hero_id: The hero this player controls.

        Returns:
            The chosen Move.
        """

    @abstractmethod
    def get_player_type(self) -> str:
        """Return the type identifier for this player (e.g. 'random', 'neural')."""

    def get_config(self) -> Dict[str, Any]:
        return {
            'player_id': self.player_id,
            'game_type': self.game_type,
            'name': self.name,
            'type': self.get_player_type(),
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.player_id}, game={self.game_type})"

    def __str__(self) -> str:
        return f"{self.name} ({self.get_player_type()})"
