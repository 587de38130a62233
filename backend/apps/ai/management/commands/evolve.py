"""
Management command to evolve a population of agents.

Usage:
    python manage.py evolve [--generations 50 | --forever] [--population 16]
        [--hidden-width 16] [--hidden-layers 1]
        [--weights gold=3,mine=1,survival=2,exploration=1]
        [--matches-per-group 1] [--top-group-matches 3] [--max-turns 300]
        [--cost-budget 1e6] [--workers 4] [--seed 42]
        [--load <agent id>] [--save-best <name>]

Unset options fall back to the EVOLUTION, FITNESS_WEIGHTS and
VINDINIUM_RULES settings. Ctrl-C stops after the current generation.
"""
from django.core.management.base import BaseCommand, CommandError

from apps.ai.evolution import EvolutionConfig, EvolutionDriver, Population
from apps.ai.exceptions import AgentLoadError
from apps.ai.fitness import FitnessWeights
from apps.game.rulesets import GameRules


class Command(BaseCommand):
    help = 'Evolve a population of neural agents through simulated matches'

    def add_arguments(self, parser):
        length = parser.add_mutually_exclusive_group()
        length.add_argument(
            '--generations',
            type=int,
            default=10,
            help='Number of generations to run (default: 10)',
        )
        length.add_argument(
            '--forever',
            action='store_true',
            help='Run until interrupted or the cost budget is reached',
        )
        parser.add_argument('--population', type=int, help='Population size (multiple of 4)')
        parser.add_argument('--hidden-width', type=int, help='Units per hidden layer')
        parser.add_argument('--hidden-layers', type=int, help='Number of hidden layers')
        parser.add_argument(
            '--weights',
            type=str,
            help='Fitness weights, e.g. gold=3,mine=1,survival=2,exploration=1',
        )
        parser.add_argument('--matches-per-group', type=int, help='Matches per group of four')
        parser.add_argument('--top-group-matches', type=int, help='Matches for top-quartile groups')
        parser.add_argument('--max-turns', type=int, help='Turns per match')
        parser.add_argument('--cost-budget', type=float, help='Pause once this compute cost is spent')
        parser.add_argument('--workers', type=int, help='Match threads (default: CPU count)')
        parser.add_argument('--seed', type=int, help='Random seed')
        parser.add_argument('--load', type=str, metavar='AGENT_ID', help='Seed from a saved agent')
        parser.add_argument('--save-best', type=str, metavar='NAME', help='Save the best agent when done')

    def handle(self, *args, **options):
        try:
            config = EvolutionConfig.from_settings(
                population_size=options['population'],
                hidden_width=options['hidden_width'],
                hidden_layers=options['hidden_layers'],
                matches_per_group=options['matches_per_group'],
                top_group_matches=options['top_group_matches'],
                max_turns=options['max_turns'],
                cost_budget=options['cost_budget'],
                workers=options['workers'],
            )
            if options['weights']:
                weights = FitnessWeights.parse(options['weights'])
            else:
                weights = FitnessWeights.from_settings()
            rules = GameRules.from_settings()
        except (TypeError, ValueError) as e:
            raise CommandError(f"Invalid configuration: {e}")

        population = Population(config, rules=rules, fitness_weights=weights, seed=options['seed'])

        if options['load']:
            try:
                elite = population.load_agent(options['load'])
            except AgentLoadError as e:
                raise CommandError(str(e))
            self.stdout.write(
                f"Loaded agent {options['load']} "
                f"({elite.topology.hidden_layers}x{elite.topology.hidden_width}, "
                f"fitness {elite.fitness:.2f})"
            )

        self.stdout.write(
            f"Evolving {config.population_size} agents "
            f"({population.config.hidden_layers}x{population.config.hidden_width}), "
            f"weights {weights.to_dict()}"
        )

        driver = EvolutionDriver(
            population,
            max_generations=None if options['forever'] else options['generations'],
            on_generation=self._report,
        )
        driver.start()
        try:
            while driver.is_alive:
                driver.join(timeout=0.5)
                if driver.is_paused and population.budget_exhausted:
                    driver.stop()
        except KeyboardInterrupt:
            self.stdout.write("Stopping after the current generation...")
            driver.stop()
            driver.join()

        if population.budget_exhausted:
            self.stdout.write(self.style.WARNING(
                f"Cost budget reached: {population.cumulative_cost:.0f}"
            ))

        best = population.get_best()
        self.stdout.write(self.style.SUCCESS(
            f"\nEvolution finished after generation {population.generation}"
            f"\n  Best fitness: {best.fitness:.2f}"
            f"\n  Best agent: {best.id}"
        ))

        if options['save_best']:
            record = population.save_best(options['save_best'])
            self.stdout.write(self.style.SUCCESS(f"Saved best agent as {record.name} ({record.id})"))

    def _report(self, stats):
        b = stats.best_breakdown
        self.stdout.write(
            f"Gen {stats.generation:4d}  best {stats.best_fitness:6.2f}  "
            f"avg {stats.avg_fitness:6.2f}  "
            f"[gold {b.gold:.0f} mines {b.mines:.0f} survival {b.survival:.0f} "
            f"exploration {b.exploration:.0f}]  "
            f"rate {stats.mutation_rate:.3f} sigma {stats.sigma:.3f}"
            + (f"  failed {stats.matches_failed}" if stats.matches_failed else '')
        )
