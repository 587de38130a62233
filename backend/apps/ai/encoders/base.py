"""
Base encoder abstraction for game state encoding.

Encoders transform game states into fixed-size numerical feature
vectors suitable for neural network input.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence

import numpy as np
import torch


class BaseEncoder(ABC):
    """
    Abstract base class for game state encoders.

    Each game type has its own encoder. The length of the vector is a
    contract: every weight matrix of a network is shaped against it, so
    changing a feature set means bumping ``version``.

    Attributes:
        input_size: The size of the output feature vector.
        game_type: The game type this encoder is designed for.
        version: Feature-set version.

    Example:
        encoder = VindiniumEncoder()
        features = encoder.encode(state, hero_id=1)  # numpy array
        tensor = encoder.encode_tensor(state, hero_id=1)
    """

    input_size: int = 0
    game_type: str = ''
    version: int = 1

    @abstractmethod
    def encode(self, game_state: Any, hero_id: int) -> np.ndarray:
        """
        Encode a game state from one hero's point of view.

        Args:
            game_state: The game state.
            hero_id: The hero whose perspective is encoded.

        Returns:
            A float32 numpy array of shape (input_size,).
        """

    def encode_tensor(self, game_state: Any, hero_id: int) -> torch.Tensor:
        """Encode a game state into a float32 PyTorch tensor."""
        return torch.from_numpy(self.encode(game_state, hero_id))

    def encode_batch(self, game_states: Sequence[Any], hero_id: int) -> np.ndarray:
        """Encode several states into an array of shape (batch, input_size)."""
        return np.stack([self.encode(state, hero_id) for state in game_states])

    @abstractmethod
    def get_feature_names(self) -> List[str]:
        """Human-readable names for each feature, length ``input_size``."""

    def describe(self) -> Dict[str, Any]:
        return {
            'game_type': self.game_type,
            'version': self.version,
            'input_size': self.input_size,
            'feature_names': self.get_feature_names(),
        }
