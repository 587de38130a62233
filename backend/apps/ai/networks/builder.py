"""
Network builder for agent weight sets.

This module provides the core infrastructure for:
- Creating randomly initialized weight sets for a topology
- Running the forward pass of a weight set
- Converting weight sets to and from JSON-friendly nested lists
- Checking that two weight sets share a topology
"""
import math
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import torch
import torch.nn.functional as F

from ..exceptions import IncompatibleTopologyError
from .architectures import Topology, create_mlp_architecture

# A weight set: one [in, out] float32 matrix per layer, input to output.
ModelWeights = List[torch.Tensor]

LEAKY_SLOPE = 0.01


class NetworkBuilder:
    """
    Build, run and serialize weight sets for one topology.

    Weight sets are kept as plain lists of tensors rather than
    nn.Module instances: they are only ever used for inference and
    are copied, mixed and perturbed far more often than evaluated
    in batches.

    Storage Format:
        [
            [[w_00, w_01, ...], ...],   # layer 0, shape [in][out]
            ...
        ]

    Example:
        builder = NetworkBuilder(Topology(hidden_width=16, hidden_layers=2))
        weights = builder.create_random(torch.Generator().manual_seed(0))
        output, activations = builder.forward(weights, features)
        data = builder.serialize_weights(weights)
        weights = builder.deserialize_weights(data)
    """

    def __init__(self, topology: Optional[Topology] = None):
        self.topology = topology or Topology()

    def create_random(self, generator: Optional[torch.Generator] = None) -> ModelWeights:
        """
        Create a weight set with Xavier-uniform initialization.

        Each matrix is drawn from U(-b, b) with b = sqrt(6 / (fan_in + fan_out)).

        Args:
            generator: Random source. Pass a dedicated generator so that
                concurrent callers do not share the global torch RNG.

        Returns:
            A new list of float32 tensors.
        """
        weights = []
        for fan_in, fan_out in self.topology.layer_shapes():
            bound = math.sqrt(6.0 / (fan_in + fan_out))
            matrix = torch.rand((fan_in, fan_out), generator=generator, dtype=torch.float32)
            weights.append(matrix * (2 * bound) - bound)
        return weights

    @staticmethod
    def forward(
        weights: Sequence[torch.Tensor],
        inputs: Any,
    ) -> Tuple[torch.Tensor, List[torch.Tensor]]:
        """
        Run the forward pass.

        Hidden layers use leaky ReLU, the output layer tanh.

        Args:
            weights: Weight set to evaluate.
            inputs: Feature vector (numpy array or tensor).

        Returns:
            Tuple of (output vector, activations of every layer).
        """
        if isinstance(inputs, np.ndarray):
            x = torch.from_numpy(inputs.astype(np.float32, copy=False))
        else:
            x = torch.as_tensor(inputs, dtype=torch.float32)

        activations = []
        with torch.no_grad():
            last = len(weights) - 1
            for i, matrix in enumerate(weights):
                x = x @ matrix
                x = torch.tanh(x) if i == last else F.leaky_relu(x, negative_slope=LEAKY_SLOPE)
                activations.append(x)
        return x, activations

    def serialize_weights(self, weights: Sequence[torch.Tensor]) -> List[List[List[float]]]:
        """Convert a weight set to nested lists for JSON storage."""
        return [matrix.detach().cpu().tolist() for matrix in weights]

    def deserialize_weights(self, data: Sequence[Any]) -> ModelWeights:
        """
        Rebuild a weight set from nested lists.

        Raises:
            IncompatibleTopologyError: If the stored shapes do not match
                this builder's topology.
        """
        try:
            weights = [torch.tensor(matrix, dtype=torch.float32) for matrix in data]
        except (TypeError, ValueError) as e:
            raise IncompatibleTopologyError(f"Malformed weight data: {e}") from e
        self.check_compatible(weights)
        return weights

    @staticmethod
    def clone(weights: Sequence[torch.Tensor]) -> ModelWeights:
        return [matrix.clone() for matrix in weights]

    def is_compatible(self, weights: Sequence[torch.Tensor]) -> bool:
        shapes = [tuple(matrix.shape) for matrix in weights]
        return shapes == self.topology.layer_shapes()

    def check_compatible(self, weights: Sequence[torch.Tensor]) -> None:
        if not self.is_compatible(weights):
            shapes = [tuple(matrix.shape) for matrix in weights]
            raise IncompatibleTopologyError(
                f"Weight shapes {shapes} do not match topology "
                f"{self.topology.layer_shapes()}"
            )

    @staticmethod
    def infer_topology(data: Sequence[Any]) -> Topology:
        """
        Work out the topology from stored nested-list weights.

        Raises:
            IncompatibleTopologyError: If the layers do not chain or the
                hidden layers differ in width.
        """
        if not data:
            raise IncompatibleTopologyError("Weight data has no layers")
        try:
            shapes = [(len(matrix), len(matrix[0])) for matrix in data]
        except (TypeError, IndexError) as e:
            raise IncompatibleTopologyError(f"Malformed weight data: {e}") from e

        if len(shapes) < 2:
            raise IncompatibleTopologyError("A network needs at least one hidden layer")
        for (_, out_prev), (in_next, _) in zip(shapes[:-1], shapes[1:]):
            if out_prev != in_next:
                raise IncompatibleTopologyError(f"Layer shapes do not chain: {shapes}")
        widths = {out for _, out in shapes[:-1]}
        if len(widths) != 1:
            raise IncompatibleTopologyError(f"Hidden layers differ in width: {shapes}")

        return Topology(
            hidden_width=shapes[0][1],
            hidden_layers=len(shapes) - 1,
            input_size=shapes[0][0],
            output_size=shapes[-1][1],
        )

    def get_parameter_count(self) -> int:
        return self.topology.parameter_count

    def describe(self):
        return create_mlp_architecture(self.topology)
