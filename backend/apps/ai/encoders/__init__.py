"""
Board state encoders for neural network input.

Encoders transform game states into feature representations
suitable for neural network input.

Includes:
- VindiniumEncoder: Fixed 51-feature hero-relative encoding
"""
from .base import BaseEncoder
from .vindinium import VindiniumEncoder

__all__ = [
    'BaseEncoder',
    'VindiniumEncoder',
]
