"""
Weight mutation operators for neuroevolution.

Topology is fixed within a population, so mutation only perturbs
weights. Two layers of noise are applied:

1. Ordinary perturbation: a random subset of weights receives
   Gaussian noise of standard deviation ``sigma``.
2. Macro mutation: a small share of the perturbed weights receive
   noise scaled by ``macro_scale`` instead, which lets the search
   jump out of shallow local optima.

The rate and sigma shrink over time (AdaptiveMutationSchedule) and
shrink faster once the best fitness stops improving.
"""
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional, Sequence

import torch

from ..networks.builder import ModelWeights


class WeightMutator:
    """
    Weight perturbation mutation operator.

    Attributes:
        sigma: Standard deviation of Gaussian noise.
        mutation_rate: Probability of mutating each weight.
        macro_rate: Probability that a mutated weight gets macro noise.
        macro_scale: Multiplier applied to sigma for macro noise.

    Example:
        mutator = WeightMutator(sigma=0.1, mutation_rate=0.2)
        child = mutator.mutate(parent_weights, generator=gen)
    """

    def __init__(
        self,
        sigma: float = 0.1,
        mutation_rate: float = 0.1,
        macro_rate: float = 0.02,
        macro_scale: float = 10.0,
    ):
        if not 0.0 <= mutation_rate <= 1.0:
            raise ValueError("mutation_rate must be between 0 and 1")
        if not 0.0 <= macro_rate <= 1.0:
            raise ValueError("macro_rate must be between 0 and 1")
        if sigma < 0:
            raise ValueError("sigma must be non-negative")
        self.sigma = sigma
        self.mutation_rate = mutation_rate
        self.macro_rate = macro_rate
        self.macro_scale = macro_scale

    def mutate(
        self,
        weights: Sequence[torch.Tensor],
        generator: Optional[torch.Generator] = None,
    ) -> ModelWeights:
        """
        Return a perturbed copy of ``weights``. The input is not modified.

        Unmutated scalars are copied exactly, so a rate of 0 returns a
        bit-identical weight set.

        Args:
            weights: Parent weight set.
            generator: Random source for this call only.
        """
        if self.mutation_rate <= 0.0:
            return [matrix.clone() for matrix in weights]

        mutated = []
        for matrix in weights:
            mask = torch.rand(matrix.shape, generator=generator) < self.mutation_rate
            macro = torch.rand(matrix.shape, generator=generator) < self.macro_rate
            noise = torch.randn(matrix.shape, generator=generator) * self.sigma
            noise = torch.where(macro, noise * self.macro_scale, noise)
            mutated.append(torch.where(mask, matrix + noise, matrix))
        return mutated


@dataclass
class AdaptiveMutationSchedule:
    """
    Mutation rate and sigma that decay with generations and stagnation.

    rate  = max(min_rate,  base_rate  * generation_decay^gen * plateau_decay^stall)
    sigma = max(min_sigma, base_sigma * generation_decay^gen * plateau_decay^stall)

    ``stall`` counts consecutive generations in which the best fitness
    improved by less than ``plateau_threshold`` over the previous
    ``progress_window`` generations. Any real progress resets it.
    """

    base_rate: float = 0.15
    base_sigma: float = 0.5
    min_rate: float = 0.01
    min_sigma: float = 0.02
    generation_decay: float = 0.995
    plateau_decay: float = 0.9
    progress_window: int = 5
    plateau_threshold: float = 0.5
    macro_rate: float = 0.02
    macro_scale: float = 10.0

    stall: int = field(default=0, init=False)
    _best_history: Deque[float] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if self.progress_window < 1:
            raise ValueError("progress_window must be at least 1")
        for name in ('generation_decay', 'plateau_decay'):
            if not 0.0 < getattr(self, name) <= 1.0:
                raise ValueError(f"{name} must be in (0, 1]")
        self._best_history = deque(maxlen=self.progress_window + 1)

    def _factor(self, generation: int) -> float:
        return (self.generation_decay ** generation) * (self.plateau_decay ** self.stall)

    def rate(self, generation: int) -> float:
        return max(self.min_rate, min(1.0, self.base_rate * self._factor(generation)))

    def sigma(self, generation: int) -> float:
        return max(self.min_sigma, self.base_sigma * self._factor(generation))

    def record_best(self, best_fitness: float) -> None:
        """Feed one generation's best fitness and update the stall counter."""
        self._best_history.append(best_fitness)
        if len(self._best_history) <= self.progress_window:
            return
        improvement = self._best_history[-1] - self._best_history[0]
        if improvement < self.plateau_threshold:
            self.stall += 1
        else:
            self.stall = 0

    def reset(self) -> None:
        self.stall = 0
        self._best_history.clear()

    def mutator(self, generation: int) -> WeightMutator:
        return WeightMutator(
            sigma=self.sigma(generation),
            mutation_rate=self.rate(generation),
            macro_rate=self.macro_rate,
            macro_scale=self.macro_scale,
        )
