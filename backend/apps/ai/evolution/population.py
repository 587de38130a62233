"""
Population management for the evolutionary loop.

Handles the lifecycle of a population of agents:
- Initialization (random, from seed members, or around a saved agent)
- Simulation (grouped four-hero matches on a thread pool)
- Evolution (elitism, tournament selection, crossover, mutation,
  random re-injection)
- Generation advancement and cost accounting

Population state is only replaced once every match of a generation has
reported, so an interrupted step leaves the previous generation intact.
"""
import logging
import math
import random
import threading
from collections import deque
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from functools import partial
from typing import Any, Deque, Dict, List, Optional, Sequence, Tuple

import torch

from apps.game.rulesets.vindinium import DEFAULT_RULES, GameRules, NUM_HEROES

from ..exceptions import AgentLoadError, IncompatibleTopologyError
from ..fitness import DEFAULT_WEIGHTS, FitnessBreakdown, FitnessResult, FitnessWeights
from ..matches import MatchPool, MatchRunner
from ..networks import ModelWeights, NetworkBuilder, Topology, create_mlp_architecture
from ..players.neural import NeuralPlayer
from .crossover import WeightCrossover
from .mutations import AdaptiveMutationSchedule
from .selection import EliteSelection, TournamentSelection

logger = logging.getLogger(__name__)


class MemberStatus(str, Enum):
    """Where a member came from, or what happened to it last."""

    AWAITING = 'Awaiting'
    SIMULATED = 'Simulated'
    ELITE = 'Elite'
    DIRECT_HEIR = 'DirectHeir'
    MUTATED_CHILD = 'MutatedChild'
    RANDOM_INJECTION = 'RandomInjection'


@dataclass
class PopulationMember:
    """One agent in the population."""

    id: str
    weights: ModelWeights
    topology: Topology
    generation: int = 0
    fitness: float = 0.0
    fitness_breakdown: FitnessBreakdown = field(default_factory=FitnessBreakdown)
    fitness_variance: float = 0.0
    sample_count: int = 0
    games_played: int = 0
    # Best mean fitness seen so far. Display only, never used for selection.
    display_fitness: float = 0.0
    display_breakdown: FitnessBreakdown = field(default_factory=FitnessBreakdown)
    status: MemberStatus = MemberStatus.AWAITING
    parent_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable form, weights as nested lists."""
        return {
            'id': self.id,
            'weights': NetworkBuilder(self.topology).serialize_weights(self.weights),
            'config': {
                'hidden_width': self.topology.hidden_width,
                'hidden_layers': self.topology.hidden_layers,
            },
            'architecture': create_mlp_architecture(self.topology),
            'generation': self.generation,
            'fitness': self.fitness,
            'fitness_breakdown': self.fitness_breakdown.to_dict(),
            'fitness_variance': self.fitness_variance,
            'sample_count': self.sample_count,
            'games_played': self.games_played,
            'display_fitness': self.display_fitness,
            'display_breakdown': self.display_breakdown.to_dict(),
            'status': self.status.value,
            'parent_ids': list(self.parent_ids),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PopulationMember':
        """
        Rebuild a member from its stored form.

        Optional fields (breakdowns, config, counters) default to zero
        values. The topology is taken from ``config`` when present and
        inferred from the weight shapes otherwise.

        Raises:
            AgentLoadError: If the weights are missing, malformed or
                disagree with the stored config.
        """
        if not isinstance(data, dict) or not data.get('weights'):
            raise AgentLoadError("Stored agent has no weights")

        try:
            inferred = NetworkBuilder.infer_topology(data['weights'])
            config = data.get('config') or {}
            if config:
                topology = Topology(
                    hidden_width=int(config.get('hidden_width', inferred.hidden_width)),
                    hidden_layers=int(config.get('hidden_layers', inferred.hidden_layers)),
                )
            else:
                topology = Topology(
                    hidden_width=inferred.hidden_width,
                    hidden_layers=inferred.hidden_layers,
                )
            weights = NetworkBuilder(topology).deserialize_weights(data['weights'])
        except (IncompatibleTopologyError, ValueError) as e:
            raise AgentLoadError(f"Stored agent weights are unusable: {e}") from e

        try:
            status = MemberStatus(data.get('status', MemberStatus.AWAITING.value))
        except ValueError:
            status = MemberStatus.AWAITING

        return cls(
            id=str(data.get('id') or 'loaded'),
            weights=weights,
            topology=topology,
            generation=int(data.get('generation', 0)),
            fitness=float(data.get('fitness', 0.0)),
            fitness_breakdown=FitnessBreakdown.from_dict(data.get('fitness_breakdown')),
            fitness_variance=float(data.get('fitness_variance', 0.0)),
            sample_count=int(data.get('sample_count', 0)),
            games_played=int(data.get('games_played', 0)),
            display_fitness=float(data.get('display_fitness', data.get('fitness', 0.0))),
            display_breakdown=FitnessBreakdown.from_dict(
                data.get('display_breakdown') or data.get('fitness_breakdown')
            ),
            status=status,
            parent_ids=list(data.get('parent_ids', [])),
        )


@dataclass
class EvolutionConfig:
    """Configuration for an evolution run."""

    # Population
    population_size: int = 16
    hidden_width: int = 16
    hidden_layers: int = 1
    elite_fraction: float = 0.2
    diversity_fraction: float = 0.1

    # Selection
    tournament_size: int = 3

    # Crossover
    min_mix_ratio: float = 0.2
    max_mix_ratio: float = 0.8

    # Mutation
    base_mutation_rate: float = 0.15
    base_sigma: float = 0.5
    min_mutation_rate: float = 0.01
    min_sigma: float = 0.02
    generation_decay: float = 0.995
    plateau_decay: float = 0.9
    progress_window: int = 5
    plateau_threshold: float = 0.5
    macro_rate: float = 0.02
    macro_scale: float = 10.0

    # Simulation
    matches_per_group: int = 1
    top_group_matches: int = 3
    max_turns: Optional[int] = None  # None: use the game rules
    yield_every: int = 50
    workers: Optional[int] = None

    # Limits and bookkeeping
    cost_budget: Optional[float] = None
    history_size: int = 200

    def __post_init__(self):
        if self.population_size < NUM_HEROES or self.population_size % NUM_HEROES:
            raise ValueError(f"population_size must be a positive multiple of {NUM_HEROES}")
        if self.hidden_width < 1 or self.hidden_layers < 1:
            raise ValueError("hidden_width and hidden_layers must be at least 1")
        for name in ('elite_fraction', 'diversity_fraction', 'min_mix_ratio', 'max_mix_ratio'):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1")
        if self.min_mix_ratio > self.max_mix_ratio:
            raise ValueError("min_mix_ratio must not exceed max_mix_ratio")
        if self.matches_per_group < 1 or self.top_group_matches < 1:
            raise ValueError("Match counts must be at least 1")
        if self.max_turns is not None and self.max_turns < 1:
            raise ValueError("max_turns must be positive")
        if self.cost_budget is not None and self.cost_budget <= 0:
            raise ValueError("cost_budget must be positive")
        if self.history_size < 1:
            raise ValueError("history_size must be at least 1")

    @property
    def topology(self) -> Topology:
        return Topology(hidden_width=self.hidden_width, hidden_layers=self.hidden_layers)

    def mutation_schedule(self) -> AdaptiveMutationSchedule:
        return AdaptiveMutationSchedule(
            base_rate=self.base_mutation_rate,
            base_sigma=self.base_sigma,
            min_rate=self.min_mutation_rate,
            min_sigma=self.min_sigma,
            generation_decay=self.generation_decay,
            plateau_decay=self.plateau_decay,
            progress_window=self.progress_window,
            plateau_threshold=self.plateau_threshold,
            macro_rate=self.macro_rate,
            macro_scale=self.macro_scale,
        )

    @classmethod
    def from_settings(cls, **overrides) -> 'EvolutionConfig':
        """
        Build a config from Django's ``EVOLUTION`` setting.

        Keyword overrides that are not None take precedence.
        """
        from django.conf import settings

        values = dict(getattr(settings, 'EVOLUTION', {}) or {})
        values.update({k: v for k, v in overrides.items() if v is not None})
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown evolution settings: {', '.join(sorted(unknown))}")
        return cls(**values)


@dataclass
class GenerationStats:
    """Statistics for a generation."""
    generation: int = 0
    best_fitness: float = 0.0
    avg_fitness: float = 0.0
    best_breakdown: FitnessBreakdown = field(default_factory=FitnessBreakdown)
    avg_breakdown: FitnessBreakdown = field(default_factory=FitnessBreakdown)
    matches_played: int = 0
    matches_failed: int = 0
    mutation_rate: float = 0.0
    sigma: float = 0.0
    stall: int = 0
    cumulative_cost: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data['best_breakdown'] = self.best_breakdown.to_dict()
        data['avg_breakdown'] = self.avg_breakdown.to_dict()
        return data


@dataclass(frozen=True)
class MatchJob:
    """One scheduled match: which member sits in which hero seat."""
    group: int
    index: int
    seats: Tuple[Tuple[int, str], ...]  # (hero_id, member_id)


class Population:
    """
    Manages a population of evolving agents.

    Handles the complete evolutionary cycle, one generation per step():
    1. Simulate grouped matches
    2. Aggregate samples into per-member fitness
    3. Rank, keep the elite
    4. Breed children (tournament, crossover, mutation)
    5. Replace some children with fresh random agents
    6. Advance the generation counter and cost accounting

    Example:
        config = EvolutionConfig(population_size=16)
        pop = Population(config, seed=42)

        for _ in range(100):
            stats = pop.step()
            print(f"Gen {stats.generation}: best={stats.best_fitness:.1f}")

        pop.save_best('champion')
    """

    def __init__(
        self,
        config: Optional[EvolutionConfig] = None,
        rules: Optional[GameRules] = None,
        fitness_weights: Optional[FitnessWeights] = None,
        seed: Optional[int] = None,
    ):
        """
        Initialize the population with random agents.

        Args:
            config: Evolution configuration.
            rules: Game constants used for every match.
            fitness_weights: Weights for the combined fitness.
            seed: Seed for the population's random source.
        """
        self.config = config or EvolutionConfig()
        self.rules = rules or DEFAULT_RULES
        self.fitness_weights = fitness_weights or DEFAULT_WEIGHTS
        self.rng = random.Random(seed)

        self.crossover = WeightCrossover(self.config.min_mix_ratio, self.config.max_mix_ratio)
        self.selection = TournamentSelection(tournament_size=self.config.tournament_size)
        self.elite_selection = EliteSelection(elite_fraction=self.config.elite_fraction)
        self.schedule = self.config.mutation_schedule()

        self._lock = threading.RLock()
        # Bumped whenever the population is replaced outside of step().
        self._epoch = 0

        self.builder = NetworkBuilder(self.config.topology)
        self.members: List[PopulationMember] = []
        self.generation = 0
        self.history: Deque[GenerationStats] = deque(maxlen=self.config.history_size)
        self.cumulative_games = 0
        self.budget_exhausted = False

        self._initialize_random()

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def _generator(self) -> torch.Generator:
        """A fresh torch generator seeded from the population RNG."""
        return torch.Generator().manual_seed(self.rng.getrandbits(63))

    def _random_member(self, member_id: str, status: MemberStatus) -> PopulationMember:
        return PopulationMember(
            id=member_id,
            weights=self.builder.create_random(self._generator()),
            topology=self.builder.topology,
            generation=self.generation,
            status=status,
        )

    def _initialize_random(self) -> None:
        self.members = [
            self._random_member(f"gen{self.generation}_ind_{i:03d}", MemberStatus.AWAITING)
            for i in range(self.config.population_size)
        ]

    def _clear_progress(self) -> None:
        self.history.clear()
        self.cumulative_games = 0
        self.budget_exhausted = False
        self.schedule.reset()
        self._epoch += 1

    def reset(
        self,
        hidden_width: Optional[int] = None,
        hidden_layers: Optional[int] = None,
    ) -> None:
        """
        Re-initialize the whole population, optionally with a new topology.

        Members of different topologies never coexist, so any topology
        change discards every current member.
        """
        with self._lock:
            self.config = replace(
                self.config,
                hidden_width=self.config.hidden_width if hidden_width is None else hidden_width,
                hidden_layers=self.config.hidden_layers if hidden_layers is None else hidden_layers,
            )
            self.builder = NetworkBuilder(self.config.topology)
            self.generation = 0
            self._clear_progress()
            self._initialize_random()
            logger.info(
                "Population reset: %d agents, topology %dx%d",
                self.config.population_size, self.config.hidden_layers, self.config.hidden_width,
            )

    def seed_from(self, seeds: Sequence[PopulationMember]) -> None:
        """
        Fill the first slots with copies of ``seeds``, the rest randomly.

        Seeds whose topology differs from the population's are replaced
        by random agents rather than reshaped.
        """
        with self._lock:
            members = []
            for i in range(self.config.population_size):
                member_id = f"gen{self.generation}_ind_{i:03d}"
                seed = seeds[i] if i < len(seeds) else None
                if seed is not None and self.builder.is_compatible(seed.weights):
                    members.append(replace(
                        seed,
                        id=member_id,
                        weights=NetworkBuilder.clone(seed.weights),
                        topology=self.builder.topology,
                        status=MemberStatus.AWAITING,
                        parent_ids=[seed.id],
                    ))
                else:
                    if seed is not None:
                        logger.warning(
                            "Seed %s does not match topology %s; using random weights",
                            seed.id, self.builder.topology.layer_shapes(),
                        )
                    members.append(self._random_member(member_id, MemberStatus.AWAITING))
            self.members = members
            self._epoch += 1

    def load_agent(self, agent_id: str) -> PopulationMember:
        """
        Replace the population with mutations of a saved agent.

        The saved agent's topology is adopted. Slot 0 holds the agent
        itself, every other slot a mutated copy of it.

        Raises:
            AgentLoadError: If the agent is missing or unusable. The
                current population is left untouched.
        """
        from ..storage import load_agent

        record = load_agent(agent_id)
        elite = PopulationMember.from_dict(record.member)

        config = replace(
            self.config,
            hidden_width=elite.topology.hidden_width,
            hidden_layers=elite.topology.hidden_layers,
        )
        builder = NetworkBuilder(config.topology)
        schedule = config.mutation_schedule()
        mutator = schedule.mutator(0)

        members = [replace(elite, id=f"gen{elite.generation}_elite_000", status=MemberStatus.ELITE)]
        for i in range(1, config.population_size):
            members.append(PopulationMember(
                id=f"gen{elite.generation}_ind_{i:03d}",
                weights=mutator.mutate(elite.weights, self._generator()),
                topology=builder.topology,
                generation=elite.generation,
                status=MemberStatus.MUTATED_CHILD,
                parent_ids=[elite.id],
            ))

        with self._lock:
            self.config = config
            self.builder = builder
            self.schedule = schedule
            self.generation = elite.generation
            self._clear_progress()
            self.members = members

        logger.info("Loaded agent '%s' (%s) into a population of %d", record.name, agent_id, len(members))
        return elite

    # ------------------------------------------------------------------
    # Settings changed between generations
    # ------------------------------------------------------------------

    def set_fitness_weights(self, weights: FitnessWeights) -> None:
        with self._lock:
            self.fitness_weights = weights

    def set_match_counts(
        self,
        matches_per_group: Optional[int] = None,
        top_group_matches: Optional[int] = None,
    ) -> None:
        with self._lock:
            self.config = replace(
                self.config,
                matches_per_group=self.config.matches_per_group if matches_per_group is None else matches_per_group,
                top_group_matches=self.config.top_group_matches if top_group_matches is None else top_group_matches,
            )

    def set_cost_budget(self, budget: Optional[float]) -> None:
        """Set or clear the cost ceiling. Raising it above the spent cost resumes."""
        with self._lock:
            self.config = replace(self.config, cost_budget=budget)
            self.budget_exhausted = budget is not None and self.cumulative_cost >= budget

    # ------------------------------------------------------------------
    # Generation step
    # ------------------------------------------------------------------

    def schedule_matches(self, members: Sequence[PopulationMember]) -> List[MatchJob]:
        """
        Group members in fours by rank and schedule their matches.

        Groups holding a top-quartile member play ``top_group_matches``
        matches, the others ``matches_per_group``. In match k the member
        in group slot i plays hero ((i + k) mod 4) + 1.
        """
        top_ids = {m.id for m in members[:max(1, len(members) // 4)]}
        jobs = []
        for group_index, start in enumerate(range(0, len(members), NUM_HEROES)):
            group = members[start:start + NUM_HEROES]
            if any(m.id in top_ids for m in group):
                count = self.config.top_group_matches
            else:
                count = self.config.matches_per_group
            for k in range(count):
                seats = tuple(sorted(
                    (((i + k) % NUM_HEROES) + 1, member.id) for i, member in enumerate(group)
                ))
                jobs.append(MatchJob(group=group_index, index=k, seats=seats))
        return jobs

    def _play(
        self,
        job: MatchJob,
        weights_by_id: Dict[str, ModelWeights],
        runner: MatchRunner,
        max_turns: Optional[int],
    ) -> Dict[str, FitnessResult]:
        players = {
            hero_id: NeuralPlayer(member_id, weights_by_id[member_id])
            for hero_id, member_id in job.seats
        }
        result = runner.play(players, max_turns=max_turns)
        return {member_id: result.fitness[hero_id] for hero_id, member_id in job.seats}

    def step(self) -> Optional[GenerationStats]:
        """
        Run one full generation.

        Returns:
            Statistics of the generation just simulated, or None if the
            population was reset or reloaded while its matches ran.
        """
        with self._lock:
            epoch = self._epoch
            members = list(self.members)
            config = self.config
            runner = MatchRunner(
                rules=self.rules,
                fitness_weights=self.fitness_weights,
                yield_every=config.yield_every,
            )

        jobs = self.schedule_matches(members)
        weights_by_id = {m.id: m.weights for m in members}
        pool = MatchPool(
            partial(self._play, weights_by_id=weights_by_id, runner=runner, max_turns=config.max_turns),
            max_workers=config.workers,
        )
        results, failures = pool.run(jobs)

        samples: Dict[str, List[FitnessResult]] = {m.id: [] for m in members}
        for _, outcome in results:
            for member_id, fitness in outcome.items():
                samples[member_id].append(fitness)

        with self._lock:
            if epoch != self._epoch:
                logger.warning("Population changed during simulation; discarding generation results")
                return None

            # Members never scored rank below every scored one.
            ranked = sorted(
                (self._aggregate(m, samples[m.id]) for m in members),
                key=lambda m: (m.sample_count > 0, m.fitness),
                reverse=True,
            )
            stats = self._advance(ranked, len(results), failures)

        logger.info(
            "Generation %d: best=%.2f avg=%.2f matches=%d failed=%d rate=%.3f sigma=%.3f",
            stats.generation, stats.best_fitness, stats.avg_fitness,
            stats.matches_played, stats.matches_failed, stats.mutation_rate, stats.sigma,
        )
        if self.budget_exhausted:
            logger.info(
                "Cost budget exhausted (%.0f >= %.0f)",
                stats.cumulative_cost, self.config.cost_budget,
            )
        return stats

    def _aggregate(self, member: PopulationMember, results: List[FitnessResult]) -> PopulationMember:
        """Average a member's samples. A member with none keeps its old fitness."""
        if not results:
            return member

        n = len(results)
        mean = sum(r.fitness for r in results) / n
        variance = sum((r.fitness - mean) ** 2 for r in results) / n
        breakdown = FitnessBreakdown.mean([r.breakdown for r in results])

        improved = mean >= member.display_fitness
        return replace(
            member,
            fitness=mean,
            fitness_breakdown=breakdown,
            fitness_variance=variance,
            sample_count=n,
            games_played=member.games_played + n,
            display_fitness=mean if improved else member.display_fitness,
            display_breakdown=breakdown if improved else member.display_breakdown,
            status=MemberStatus.SIMULATED,
        )

    def _advance(
        self,
        ranked: List[PopulationMember],
        matches_played: int,
        matches_failed: int,
    ) -> GenerationStats:
        """Select, breed, diversify and move to the next generation. Caller holds the lock."""
        n = len(ranked)
        best = ranked[0]
        self.schedule.record_best(best.fitness)
        rate = self.schedule.rate(self.generation)
        sigma = self.schedule.sigma(self.generation)
        mutator = self.schedule.mutator(self.generation)
        next_generation = self.generation + 1

        elites = self.elite_selection.get_elite(ranked)
        next_members = [
            replace(m, status=MemberStatus.DIRECT_HEIR if rank == 1 else MemberStatus.ELITE)
            for rank, m in enumerate(elites)
        ]

        children = []
        for i in range(n - len(elites)):
            parent_a, parent_b = self.selection.select_pair(elites, self.rng)
            generator = self._generator()
            mix = self.crossover.random_mix_ratio(self.rng)
            weights = self.crossover.crossover(parent_a.weights, parent_b.weights, mix, generator)
            weights = mutator.mutate(weights, generator)
            children.append(PopulationMember(
                id=f"gen{next_generation}_ind_{i:03d}",
                weights=weights,
                topology=self.builder.topology,
                generation=next_generation,
                status=MemberStatus.MUTATED_CHILD,
                parent_ids=[parent_a.id, parent_b.id],
            ))

        injections = math.ceil(self.config.diversity_fraction * len(children))
        for i in range(len(children) - injections, len(children)):
            children[i] = PopulationMember(
                id=f"gen{next_generation}_rnd_{i:03d}",
                weights=self.builder.create_random(self._generator()),
                topology=self.builder.topology,
                generation=next_generation,
                status=MemberStatus.RANDOM_INJECTION,
            )

        self.members = next_members + children
        self.generation = next_generation
        self.cumulative_games += matches_played

        budget = self.config.cost_budget
        if budget is not None and self.cumulative_cost >= budget:
            self.budget_exhausted = True

        stats = GenerationStats(
            generation=self.generation,
            best_fitness=best.fitness,
            avg_fitness=sum(m.fitness for m in ranked) / n,
            best_breakdown=best.fitness_breakdown,
            avg_breakdown=FitnessBreakdown.mean([m.fitness_breakdown for m in ranked]),
            matches_played=matches_played,
            matches_failed=matches_failed,
            mutation_rate=rate,
            sigma=sigma,
            stall=self.schedule.stall,
            cumulative_cost=self.cumulative_cost,
        )
        self.history.append(stats)
        return stats

    # ------------------------------------------------------------------
    # Queries and persistence
    # ------------------------------------------------------------------

    @property
    def cumulative_cost(self) -> float:
        """Compute estimate: hidden width x depth x games simulated."""
        return float(self.config.hidden_width * self.config.hidden_layers * self.cumulative_games)

    def get_best(self) -> PopulationMember:
        with self._lock:
            return max(self.members, key=lambda m: m.fitness)

    @property
    def best_fitness(self) -> float:
        return self.get_best().fitness

    def save_best(self, name: str):
        """Store the current best member. Returns the SavedAgent record."""
        from ..storage import save_agent

        best = self.get_best()
        record = save_agent(best, name, self.fitness_weights)
        logger.info("Saved agent '%s' (fitness %.2f) as %s", name, best.fitness, record.id)
        return record
