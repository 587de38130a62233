"""
Abstract base class for game rule sets.

A rule set bundles the pure functions that define a game: the starting
position, the legal moves, the transition function and the end-of-game
verdict. Rule sets hold configuration only, never game state, so one
instance can be shared by every match running in parallel.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class BaseRuleSet(ABC):
    """
    Interface every game implementation follows.

    Attributes:
        game_type: Unique identifier for this game type.
        display_name: Human-readable name.
        num_players: Number of seats in a match.

    Example:
        ruleset = VindiniumRuleSet()
        state = ruleset.get_initial_state()
        while not state.finished:
            hero_id = ruleset.get_current_player(state)
            state = ruleset.apply_move(state, hero_id, 'Stay')
    """

    game_type: str = ''
    display_name: str = ''
    num_players: int = 2

    @abstractmethod
    def get_initial_state(self) -> Any:
        """Return the starting state of a new game."""

    @abstractmethod
    def get_legal_moves(self, state: Any, player_id: int) -> List[Any]:
        """Return every move the player may submit in this state."""

    @abstractmethod
    def apply_move(self, state: Any, player_id: int, move: Any) -> Any:
        """Return the state after the player's move. Must not mutate ``state``."""

    @abstractmethod
    def get_current_player(self, state: Any) -> int:
        """Return the id of the player whose turn it is."""

    @abstractmethod
    def check_winner(self, state: Any) -> Optional[int]:
        """Return the winner's id once the game is over, else None."""

    @abstractmethod
    def validate_state(self, state: Any) -> bool:
        """Return True if the state satisfies the game's invariants."""

    def is_finished(self, state: Any) -> bool:
        return bool(getattr(state, 'finished', False))

    def serialize_state(self, state: Any) -> Dict[str, Any]:
        """JSON-serializable form of a state for storage or other tooling."""
        return state.to_dict()

    @abstractmethod
    def deserialize_state(self, data: Dict[str, Any]) -> Any:
        """Inverse of serialize_state."""
