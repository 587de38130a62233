"""
Network topologies for the neural agents.

Agents are plain feedforward networks without bias terms. The topology
is fully described by the hidden layer width and the number of hidden
layers; the input width comes from the encoder and the output width
from the number of moves.
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Tuple

from apps.ai.encoders.vindinium import VindiniumEncoder
from apps.game.rulesets.vindinium import MOVE_ORDER

INPUT_SIZE = VindiniumEncoder.input_size
OUTPUT_SIZE = len(MOVE_ORDER)


@dataclass(frozen=True)
class Topology:
    """
    Shape of an agent network.

    Attributes:
        hidden_width: Units per hidden layer.
        hidden_layers: Number of hidden layers (at least 1).
        input_size: Feature vector length.
        output_size: Number of output units.
    """

    hidden_width: int = 16
    hidden_layers: int = 1
    input_size: int = INPUT_SIZE
    output_size: int = OUTPUT_SIZE

    def __post_init__(self):
        if self.hidden_width < 1:
            raise ValueError("hidden_width must be at least 1")
        if self.hidden_layers < 1:
            raise ValueError("hidden_layers must be at least 1")

    def layer_shapes(self) -> List[Tuple[int, int]]:
        """(in, out) shape of every weight matrix, input to output."""
        sizes = [self.input_size] + [self.hidden_width] * self.hidden_layers + [self.output_size]
        return list(zip(sizes[:-1], sizes[1:]))

    @property
    def parameter_count(self) -> int:
        return sum(i * o for i, o in self.layer_shapes())

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Topology':
        return cls(
            hidden_width=int(data.get('hidden_width', cls.hidden_width)),
            hidden_layers=int(data.get('hidden_layers', cls.hidden_layers)),
            input_size=int(data.get('input_size', INPUT_SIZE)),
            output_size=int(data.get('output_size', OUTPUT_SIZE)),
        )


def create_mlp_architecture(topology: Topology) -> Dict[str, Any]:
    """
    JSON description of a topology, layer by layer.

    Stored alongside saved agents so the layout can be inspected
    without loading any weights.

    Example:
        >>> create_mlp_architecture(Topology(hidden_width=8))['layers'][0]
        {'id': 'hidden_0', 'type': 'linear', 'in': 51, 'out': 8, 'bias': False}
    """
    layers = []
    shapes = topology.layer_shapes()
    for i, (fan_in, fan_out) in enumerate(shapes[:-1]):
        layers.append({'id': f'hidden_{i}', 'type': 'linear', 'in': fan_in, 'out': fan_out, 'bias': False})
        layers.append({'id': f'hidden_{i}_act', 'type': 'activation', 'fn': 'leaky_relu'})
    fan_in, fan_out = shapes[-1]
    layers.append({'id': 'output', 'type': 'linear', 'in': fan_in, 'out': fan_out, 'bias': False})
    layers.append({'id': 'output_act', 'type': 'activation', 'fn': 'tanh'})

    return {
        'name': f'MLP-{topology.hidden_layers}x{topology.hidden_width}',
        'input_size': topology.input_size,
        'output_size': topology.output_size,
        'layers': layers,
    }
