"""
Tests for neuroevolution operators.

Tests the mutation, crossover, and selection operators for:
- Weight perturbation correctness
- Adaptive mutation schedule
- Crossover mixing
- Selection mechanisms
"""
import random
from types import SimpleNamespace

import pytest
import torch

from apps.ai.evolution import (
    AdaptiveMutationSchedule,
    EliteSelection,
    TournamentSelection,
    WeightCrossover,
    WeightMutator,
)
from apps.ai.exceptions import IncompatibleTopologyError
from apps.ai.networks import NetworkBuilder, Topology


def changed_fraction(a, b):
    changed = sum(int((x != y).sum()) for x, y in zip(a, b))
    total = sum(x.numel() for x in a)
    return changed / total


class TestWeightMutator:
    """Tests for WeightMutator."""

    def test_init(self):
        mutator = WeightMutator(sigma=0.2, mutation_rate=0.5)

        assert mutator.sigma == 0.2
        assert mutator.mutation_rate == 0.5

    @pytest.mark.parametrize('kwargs', [
        {'mutation_rate': 1.5},
        {'mutation_rate': -0.1},
        {'macro_rate': 2.0},
        {'sigma': -1.0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            WeightMutator(**kwargs)

    def test_zero_rate_returns_identical_copy(self, weights, generator):
        mutated = WeightMutator(sigma=1.0, mutation_rate=0.0).mutate(weights, generator)

        assert all(torch.equal(a, b) for a, b in zip(weights, mutated))
        assert all(a is not b for a, b in zip(weights, mutated))

    def test_full_rate_changes_every_weight(self, weights, generator):
        mutated = WeightMutator(sigma=0.1, mutation_rate=1.0).mutate(weights, generator)

        assert changed_fraction(weights, mutated) == 1.0

    def test_partial_rate(self, weights, generator):
        mutated = WeightMutator(sigma=0.1, mutation_rate=0.3).mutate(weights, generator)

        assert 0.2 < changed_fraction(weights, mutated) < 0.4

    def test_input_not_modified(self, weights, generator):
        before = NetworkBuilder.clone(weights)

        WeightMutator(mutation_rate=1.0).mutate(weights, generator)

        assert all(torch.equal(a, b) for a, b in zip(before, weights))

    def test_shapes_preserved(self, weights, generator):
        mutated = WeightMutator(mutation_rate=0.5).mutate(weights, generator)

        assert [m.shape for m in mutated] == [m.shape for m in weights]

    def test_macro_mutation_is_larger(self, weights):
        small = WeightMutator(sigma=0.1, mutation_rate=1.0, macro_rate=0.0)
        large = WeightMutator(sigma=0.1, mutation_rate=1.0, macro_rate=1.0, macro_scale=10.0)

        small_delta = small.mutate(weights, torch.Generator().manual_seed(3))[0] - weights[0]
        large_delta = large.mutate(weights, torch.Generator().manual_seed(3))[0] - weights[0]

        assert large_delta.abs().mean() > 5 * small_delta.abs().mean()

    def test_larger_sigma_larger_change(self, weights):
        deltas = []
        for sigma in (0.05, 0.2, 0.8):
            mutator = WeightMutator(sigma=sigma, mutation_rate=1.0, macro_rate=0.0)
            mutated = mutator.mutate(weights, torch.Generator().manual_seed(5))
            deltas.append(sum(float((m - w).abs().mean()) for m, w in zip(mutated, weights)))

        assert deltas[0] < deltas[1] < deltas[2]

    def test_same_generator_seed_reproducible(self, weights):
        mutator = WeightMutator(mutation_rate=0.5)

        a = mutator.mutate(weights, torch.Generator().manual_seed(11))
        b = mutator.mutate(weights, torch.Generator().manual_seed(11))

        assert all(torch.equal(x, y) for x, y in zip(a, b))


class TestAdaptiveMutationSchedule:
    """Tests for the decaying rate and sigma."""

    @pytest.fixture
    def schedule(self):
        return AdaptiveMutationSchedule(
            base_rate=0.15,
            base_sigma=0.5,
            generation_decay=1.0,
            plateau_decay=0.9,
            progress_window=2,
            plateau_threshold=0.5,
        )

    def test_initial_values(self, schedule):
        assert schedule.rate(0) == pytest.approx(0.15)
        assert schedule.sigma(0) == pytest.approx(0.5)
        assert schedule.stall == 0

    def test_sigma_non_increasing_with_generations(self):
        schedule = AdaptiveMutationSchedule()
        sigmas = [schedule.sigma(g) for g in range(200)]

        assert all(b <= a for a, b in zip(sigmas, sigmas[1:]))

    def test_floors(self):
        schedule = AdaptiveMutationSchedule(min_rate=0.01, min_sigma=0.02)

        assert schedule.rate(100000) == pytest.approx(0.01)
        assert schedule.sigma(100000) == pytest.approx(0.02)

    def test_no_stall_before_window_fills(self, schedule):
        schedule.record_best(10.0)
        schedule.record_best(10.0)

        assert schedule.stall == 0

    def test_stall_counts_flat_generations(self, schedule):
        for _ in range(4):
            schedule.record_best(10.0)

        assert schedule.stall == 2
        assert schedule.rate(0) == pytest.approx(0.15 * 0.81)
        assert schedule.sigma(0) == pytest.approx(0.5 * 0.81)

    def test_progress_resets_stall(self, schedule):
        for _ in range(4):
            schedule.record_best(10.0)
        schedule.record_best(20.0)

        assert schedule.stall == 0

    def test_reset(self, schedule):
        for _ in range(4):
            schedule.record_best(10.0)

        schedule.reset()

        assert schedule.stall == 0
        schedule.record_best(10.0)
        assert schedule.stall == 0

    def test_mutator_uses_schedule(self, schedule):
        mutator = schedule.mutator(0)

        assert mutator.mutation_rate == pytest.approx(0.15)
        assert mutator.sigma == pytest.approx(0.5)

    @pytest.mark.parametrize('kwargs', [
        {'progress_window': 0},
        {'generation_decay': 0.0},
        {'plateau_decay': 1.5},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            AdaptiveMutationSchedule(**kwargs)


class TestWeightCrossover:
    """Tests for WeightCrossover."""

    @pytest.fixture
    def parents(self, builder):
        a = builder.create_random(torch.Generator().manual_seed(1))
        b = builder.create_random(torch.Generator().manual_seed(2))
        return a, b

    def test_mix_zero_copies_parent_a(self, parents, generator):
        a, b = parents

        child = WeightCrossover().crossover(a, b, 0.0, generator)

        assert all(torch.equal(x, y) for x, y in zip(child, a))

    def test_mix_one_copies_parent_b(self, parents, generator):
        a, b = parents

        child = WeightCrossover().crossover(a, b, 1.0, generator)

        assert all(torch.equal(x, y) for x, y in zip(child, b))

    def test_every_scalar_from_a_parent(self, parents, generator):
        a, b = parents

        child = WeightCrossover().crossover(a, b, 0.5, generator)

        for c, x, y in zip(child, a, b):
            assert torch.all((c == x) | (c == y))
        assert 0.3 < changed_fraction(a, child) < 0.7

    def test_parents_not_modified(self, parents, generator):
        a, b = parents
        before = NetworkBuilder.clone(a)

        WeightCrossover().crossover(a, b, 0.5, generator)

        assert all(torch.equal(x, y) for x, y in zip(before, a))

    def test_incompatible_parents(self, weights):
        other = NetworkBuilder(Topology(hidden_width=4)).create_random()

        with pytest.raises(IncompatibleTopologyError):
            WeightCrossover().crossover(weights, other)

    def test_random_mix_ratio_in_range(self):
        crossover = WeightCrossover(min_mix=0.2, max_mix=0.8)
        rng = random.Random(0)

        ratios = [crossover.random_mix_ratio(rng) for _ in range(100)]

        assert all(0.2 <= r <= 0.8 for r in ratios)

    def test_invalid_range(self):
        with pytest.raises(ValueError):
            WeightCrossover(min_mix=0.9, max_mix=0.1)


class TestSelection:
    """Tests for tournament and elite selection."""

    @pytest.fixture
    def candidates(self):
        return [SimpleNamespace(id=i, fitness=float(i)) for i in range(10)]

    def test_full_tournament_picks_best(self, candidates):
        selection = TournamentSelection(tournament_size=10)

        assert selection.select_one(candidates, random.Random(0)).id == 9

    def test_tournament_size_clamped(self, candidates):
        selection = TournamentSelection(tournament_size=50)

        assert selection.select_one(candidates[:3], random.Random(0)).id == 2

    def test_tournament_favours_fitter(self, candidates):
        selection = TournamentSelection(tournament_size=3)
        rng = random.Random(5)

        picks = [selection.select_one(candidates, rng).fitness for _ in range(200)]

        assert sum(picks) / len(picks) > 4.5

    def test_select_pair(self, candidates):
        a, b = TournamentSelection(3).select_pair(candidates, random.Random(1))

        assert a in candidates and b in candidates

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            TournamentSelection().select_one([], random.Random(0))

    @pytest.mark.parametrize('n,fraction,expected', [
        (16, 0.2, 3),
        (8, 0.25, 2),
        (8, 0.0, 1),
        (4, 1.0, 4),
    ])
    def test_elite_count(self, n, fraction, expected):
        assert EliteSelection(fraction).elite_count(n) == expected

    def test_get_elite(self, candidates):
        ranked = sorted(candidates, key=lambda c: c.fitness, reverse=True)

        elite = EliteSelection(0.3).get_elite(ranked)

        assert [c.id for c in elite] == [9, 8, 7]
