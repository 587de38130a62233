"""
Tests for the AI app.

This package contains tests for:
- State encoders
- Network topologies and the network builder
- Player implementations
- Fitness metrics
- Neuroevolution operators and population management
- Match runner and match pool
- Saved-agent storage, evaluation and management commands
"""
