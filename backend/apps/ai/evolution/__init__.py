"""
Neuroevolution module for evolving Vindinium agents.

Topology is fixed within a population; only weights evolve, through
elitism, tournament selection, uniform crossover and adaptive Gaussian
mutation, plus random re-injection for diversity.

Example usage:
    from apps.ai.evolution import Population, EvolutionConfig, EvolutionDriver

    config = EvolutionConfig(population_size=16, hidden_width=16)
    pop = Population(config, seed=1)

    # Step by hand
    for _ in range(10):
        stats = pop.step()
        print(f"Gen {stats.generation}: best={stats.best_fitness:.1f}")

    # Or in the background
    driver = EvolutionDriver(pop)
    driver.start()
"""
from .crossover import WeightCrossover
from .driver import EvolutionDriver, LogEntry
from .mutations import AdaptiveMutationSchedule, WeightMutator
from .population import (
    EvolutionConfig,
    GenerationStats,
    MatchJob,
    MemberStatus,
    Population,
    PopulationMember,
)
from .selection import EliteSelection, TournamentSelection

__all__ = [
    # Operators
    'WeightMutator',
    'AdaptiveMutationSchedule',
    'WeightCrossover',
    'TournamentSelection',
    'EliteSelection',

    # Population management
    'Population',
    'PopulationMember',
    'MemberStatus',
    'EvolutionConfig',
    'GenerationStats',
    'MatchJob',

    # Driver
    'EvolutionDriver',
    'LogEntry',
]
