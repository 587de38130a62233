"""
Neural network player implementation.

The network reads the encoded state and scores the five moves directly;
the move with the highest output is played. ``decide`` is the pure
function behind the player and also returns the intermediate values
for inspection.
"""
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import torch

from apps.game.rulesets.vindinium import GameState, Move, MOVE_ORDER

from ..encoders.base import BaseEncoder
from ..encoders.vindinium import VindiniumEncoder, nearest_offset
from ..networks.builder import NetworkBuilder
from .base import BasePlayer

MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 0.99

_default_encoder = VindiniumEncoder()


@dataclass
class Decision:
    """
    The outcome of one forward pass.

    Attributes:
        move: The chosen move.
        confidence: Winning output mapped from [-1, 1] into [0.1, 0.99].
        activations: Output of every layer, input side first.
        inputs: The encoded feature vector.
        reasoning: Short human-readable summary.
        latency: Seconds spent encoding and evaluating.
    """

    move: Move
    confidence: float
    activations: List[List[float]] = field(default_factory=list)
    inputs: List[float] = field(default_factory=list)
    reasoning: str = ''
    latency: float = 0.0


def decide(
    state: GameState,
    hero_id: int,
    weights: Sequence[torch.Tensor],
    encoder: Optional[BaseEncoder] = None,
) -> Decision:
    """
    Pick a move for ``hero_id`` with the given weight set.

    Ties between outputs go to the earliest move in
    North, South, East, West, Stay order.
    """
    start = time.perf_counter()
    encoder = encoder or _default_encoder

    features = encoder.encode(state, hero_id)
    output, activations = NetworkBuilder.forward(weights, features)

    # torch.argmax does not promise the first index on ties.
    values = output.tolist()
    best = max(range(len(values)), key=lambda i: (values[i], -i))
    value = values[best]
    confidence = min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, (value + 1) / 2))
    move = MOVE_ORDER[best]

    mine_dx, mine_dy = nearest_offset(features, 'capturable_mine')
    reasoning = (
        f"Turn {state.turn}: {move.value} at {confidence:.0%} confidence; "
        f"nearest target mine at ({mine_dx:+.2f}, {mine_dy:+.2f})."
    )

    return Decision(
        move=move,
        confidence=confidence,
        activations=[layer.tolist() for layer in activations],
        inputs=features.tolist(),
        reasoning=reasoning,
        latency=time.perf_counter() - start,
    )


class NeuralPlayer(BasePlayer):
    """
    A player driven by an evolved weight set.

    The weights are only read, never modified, so several players in
    concurrent matches may share the same weight set.

    Attributes:
        weights: The weight set.
        encoder: The state encoder matching the network's input.

    Example:
        builder = NetworkBuilder(Topology(hidden_width=16))
        player = NeuralPlayer(
            player_id='agent_1',
            weights=builder.create_random(),
        )
        move = player.select_move(state, hero_id=1)
    """

    def __init__(
        self,
        player_id: str,
        weights: Sequence[torch.Tensor],
        encoder: Optional[BaseEncoder] = None,
        game_type: str = 'vindinium',
        name: Optional[str] = None,
    ):
        super().__init__(
            player_id=player_id,
            game_type=game_type,
            name=name or 'Neural Player',
        )
        self.weights = weights
        self.encoder = encoder or _default_encoder

    def select_move(self, game_state: GameState, hero_id: int) -> Move:
        return self.decide(game_state, hero_id).move

    def decide(self, game_state: GameState, hero_id: int) -> Decision:
        return decide(game_state, hero_id, self.weights, self.encoder)

    def get_player_type(self) -> str:
        return 'neural'
