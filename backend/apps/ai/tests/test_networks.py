"""
Tests for network topologies and the network builder.

Tests:
- Topology validation and layer shapes
- Xavier initialization
- Forward pass output range
- Serialization and topology checks
"""
import math

import numpy as np
import pytest
import torch

from apps.ai.exceptions import IncompatibleTopologyError
from apps.ai.networks import NetworkBuilder, Topology, create_mlp_architecture


class TestTopology:
    """Tests for Topology."""

    def test_defaults(self):
        topology = Topology()

        assert topology.hidden_width == 16
        assert topology.hidden_layers == 1
        assert topology.input_size == 51
        assert topology.output_size == 5

    def test_layer_shapes(self, topology):
        assert topology.layer_shapes() == [(51, 8), (8, 8), (8, 5)]

    def test_parameter_count(self, topology):
        assert topology.parameter_count == 51 * 8 + 8 * 8 + 8 * 5

    @pytest.mark.parametrize('width,layers', [(0, 1), (4, 0), (-1, 2)])
    def test_invalid(self, width, layers):
        with pytest.raises(ValueError):
            Topology(hidden_width=width, hidden_layers=layers)

    def test_dict_round_trip(self, topology):
        assert Topology.from_dict(topology.to_dict()) == topology

    def test_architecture_description(self, topology):
        arch = create_mlp_architecture(topology)

        assert arch['name'] == 'MLP-2x8'
        linear = [layer for layer in arch['layers'] if layer['type'] == 'linear']
        assert [(layer['in'], layer['out']) for layer in linear] == topology.layer_shapes()
        assert all(layer['bias'] is False for layer in linear)
        assert arch['layers'][-1]['fn'] == 'tanh'


class TestCreateRandom:
    """Tests for weight initialization."""

    def test_shapes(self, builder, weights):
        assert [tuple(m.shape) for m in weights] == builder.topology.layer_shapes()
        assert all(m.dtype == torch.float32 for m in weights)

    def test_xavier_bound(self, builder, weights):
        for matrix, (fan_in, fan_out) in zip(weights, builder.topology.layer_shapes()):
            bound = math.sqrt(6.0 / (fan_in + fan_out))
            assert matrix.abs().max().item() <= bound

    def test_same_seed_same_weights(self, builder):
        a = builder.create_random(torch.Generator().manual_seed(7))
        b = builder.create_random(torch.Generator().manual_seed(7))

        assert all(torch.equal(x, y) for x, y in zip(a, b))

    def test_different_seed_different_weights(self, builder):
        a = builder.create_random(torch.Generator().manual_seed(7))
        b = builder.create_random(torch.Generator().manual_seed(8))

        assert not torch.equal(a[0], b[0])


class TestForward:
    """Tests for the forward pass."""

    def test_output_shape_and_range(self, weights, initial_state):
        from apps.ai.encoders import VindiniumEncoder

        features = VindiniumEncoder().encode(initial_state, 1)
        output, activations = NetworkBuilder.forward(weights, features)

        assert output.shape == (5,)
        assert output.min().item() >= -1.0
        assert output.max().item() <= 1.0
        assert len(activations) == 3
        assert torch.equal(activations[-1], output)

    def test_accepts_tensor_and_list(self, weights):
        inputs = [0.1] * 51

        from_list, _ = NetworkBuilder.forward(weights, inputs)
        from_tensor, _ = NetworkBuilder.forward(weights, torch.tensor(inputs))
        from_array, _ = NetworkBuilder.forward(weights, np.array(inputs, dtype=np.float32))

        assert torch.allclose(from_list, from_tensor)
        assert torch.allclose(from_list, from_array)

    def test_hidden_layers_leak_negative_values(self):
        first = torch.zeros((51, 1))
        first[0, 0] = -1.0
        last = torch.ones((1, 5))

        _, activations = NetworkBuilder.forward([first, last], [1.0] + [0.0] * 50)

        assert activations[0].item() == pytest.approx(-0.01)

    def test_forward_does_not_track_gradients(self, weights):
        output, _ = NetworkBuilder.forward(weights, [0.0] * 51)

        assert not output.requires_grad


class TestSerialization:
    """Tests for weight (de)serialization."""

    def test_round_trip_is_exact(self, builder, weights):
        data = builder.serialize_weights(weights)
        restored = builder.deserialize_weights(data)

        assert all(torch.equal(a, b) for a, b in zip(weights, restored))

    def test_serialized_form_is_nested_lists(self, builder, weights):
        data = builder.serialize_weights(weights)

        assert isinstance(data, list)
        assert len(data) == 3
        assert len(data[0]) == 51
        assert len(data[0][0]) == 8
        assert isinstance(data[0][0][0], float)

    def test_wrong_topology_rejected(self, weights):
        other = NetworkBuilder(Topology(hidden_width=4, hidden_layers=1))

        with pytest.raises(IncompatibleTopologyError):
            other.deserialize_weights(NetworkBuilder().serialize_weights(weights))

    def test_ragged_data_rejected(self, builder):
        with pytest.raises(IncompatibleTopologyError):
            builder.deserialize_weights([[[0.0, 1.0], [0.0]]])

    def test_clone_is_independent(self, weights):
        copy = NetworkBuilder.clone(weights)
        copy[0][0, 0] += 1.0

        assert not torch.equal(copy[0], weights[0])


class TestCompatibility:
    """Tests for topology checks and inference."""

    def test_is_compatible(self, builder, weights):
        assert builder.is_compatible(weights)
        assert not NetworkBuilder(Topology(hidden_width=8)).is_compatible(weights)

    def test_check_compatible_raises(self, weights):
        with pytest.raises(IncompatibleTopologyError):
            NetworkBuilder(Topology(hidden_width=3)).check_compatible(weights)

    def test_infer_topology(self, builder, weights, topology):
        data = builder.serialize_weights(weights)

        assert NetworkBuilder.infer_topology(data) == topology

    def test_infer_topology_empty(self):
        with pytest.raises(IncompatibleTopologyError):
            NetworkBuilder.infer_topology([])

    def test_infer_topology_broken_chain(self):
        data = [
            [[0.0] * 4] * 51,
            [[0.0] * 5] * 3,
        ]
        with pytest.raises(IncompatibleTopologyError):
            NetworkBuilder.infer_topology(data)

    def test_infer_topology_uneven_hidden_widths(self):
        data = [
            [[0.0] * 4] * 51,
            [[0.0] * 6] * 4,
            [[0.0] * 5] * 6,
        ]
        with pytest.raises(IncompatibleTopologyError):
            NetworkBuilder.infer_topology(data)

    def test_parameter_count(self, builder):
        assert builder.get_parameter_count() == builder.topology.parameter_count
