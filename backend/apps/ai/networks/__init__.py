"""
Neural network infrastructure for AI players.

This module provides:
- Topology: hidden width and depth of an agent network
- NetworkBuilder: random init, forward pass and weight (de)serialization
"""
from .architectures import Topology, create_mlp_architecture
from .builder import ModelWeights, NetworkBuilder

__all__ = [
    'ModelWeights',
    'NetworkBuilder',
    'Topology',
    'create_mlp_architecture',
]
