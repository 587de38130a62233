"""
Pytest fixtures for AI app tests.

Provides fixtures for:
- Sample game states
- Small topologies and weight sets
- Fast evolution configurations
- Population members
"""
import pytest
import torch

from apps.ai.evolution import EvolutionConfig, MemberStatus, PopulationMember
from apps.ai.fitness import FitnessBreakdown
from apps.ai.networks import NetworkBuilder, Topology
from apps.game.rulesets import GameRules, create_initial_state


@pytest.fixture
def initial_state():
    """The standard 12x12 starting position."""
    return create_initial_state(size=12, max_turns=300)


@pytest.fixture
def topology():
    return Topology(hidden_width=8, hidden_layers=2)


@pytest.fixture
def builder(topology):
    return NetworkBuilder(topology)


@pytest.fixture
def generator():
    """A seeded torch generator."""
    return torch.Generator().manual_seed(1234)


@pytest.fixture
def weights(builder, generator):
    """A random weight set for the ``topology`` fixture."""
    return builder.create_random(generator)


@pytest.fixture
def fast_rules():
    """Short matches on the smallest board."""
    return GameRules(board_size=10, max_turns=40)


@pytest.fixture
def fast_config():
    """A small population that steps quickly."""
    return EvolutionConfig(
        population_size=8,
        hidden_width=4,
        hidden_layers=1,
        elite_fraction=0.25,
        diversity_fraction=0.0,
        matches_per_group=1,
        top_group_matches=2,
        max_turns=40,
        workers=2,
    )


@pytest.fixture
def population_member(weights, topology):
    """A simulated member built from the ``weights`` fixture."""
    return PopulationMember(
        id='gen2_ind_000',
        weights=weights,
        topology=topology,
        generation=2,
        fitness=37.5,
        fitness_breakdown=FitnessBreakdown(gold=40, mines=25, survival=55, exploration=18),
        status=MemberStatus.SIMULATED,
        games_played=4,
    )
