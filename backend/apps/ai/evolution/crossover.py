"""
Crossover operators for network evolution.

Parents always share a topology: the population is reset whenever the
topology changes, so mixing is a per-scalar choice between aligned
weights. Mismatched parents are rejected outright rather than padded
or truncated.
"""
import random
from typing import Optional, Sequence

import torch

from ..exceptions import IncompatibleTopologyError
from ..networks.builder import ModelWeights


class WeightCrossover:
    """
    Uniform crossover with a tunable mix ratio.

    Each scalar of the child comes from parent B with probability
    ``mix_ratio`` and from parent A otherwise.

    Example:
        crossover = WeightCrossover()
        mix = crossover.random_mix_ratio(rng)
        child = crossover.crossover(parent_a, parent_b, mix, generator=gen)
    """

    def __init__(self, min_mix: float = 0.2, max_mix: float = 0.8):
        if not 0.0 <= min_mix <= max_mix <= 1.0:
            raise ValueError("Require 0 <= min_mix <= max_mix <= 1")
        self.min_mix = min_mix
        self.max_mix = max_mix

    def random_mix_ratio(self, rng: random.Random) -> float:
        return rng.uniform(self.min_mix, self.max_mix)

    def crossover(
        self,
        parent_a: Sequence[torch.Tensor],
        parent_b: Sequence[torch.Tensor],
        mix_ratio: float = 0.5,
        generator: Optional[torch.Generator] = None,
    ) -> ModelWeights:
        """
        Create a child weight set from two parents.

        A mix ratio of 0 returns a copy of parent A, 1 a copy of parent B.

        Raises:
            IncompatibleTopologyError: If the parents' layer shapes differ.
        """
        self._check_compatible(parent_a, parent_b)

        child = []
        for a, b in zip(parent_a, parent_b):
            mask = torch.rand(a.shape, generator=generator) < mix_ratio
            child.append(torch.where(mask, b, a))
        return child

    def _check_compatible(
        self,
        parent_a: Sequence[torch.Tensor],
        parent_b: Sequence[torch.Tensor],
    ) -> None:
        shapes_a = [tuple(m.shape) for m in parent_a]
        shapes_b = [tuple(m.shape) for m in parent_b]
        if shapes_a != shapes_b:
            raise IncompatibleTopologyError(
                f"Parents must have identical layer shapes: {shapes_a} vs {shapes_b}"
            )
