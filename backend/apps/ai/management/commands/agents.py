"""
Management command to manage saved agents.

Usage:
    python manage.py agents list [--starred]
    python manage.py agents delete <agent id>
    python manage.py agents star <agent id>
    python manage.py agents evaluate <agent id> [--matches 100]
"""
from django.core.management.base import BaseCommand, CommandError

from apps.ai import storage
from apps.ai.exceptions import AgentLoadError


class Command(BaseCommand):
    help = 'List, delete, star or evaluate saved agents'

    def add_arguments(self, parser):
        subparsers = parser.add_subparsers(dest='action', required=True)

        list_parser = subparsers.add_parser('list', help='List saved agents')
        list_parser.add_argument('--starred', action='store_true', help='Only starred agents')

        delete_parser = subparsers.add_parser('delete', help='Delete a saved agent')
        delete_parser.add_argument('agent_id')

        star_parser = subparsers.add_parser('star', help='Star or unstar a saved agent')
        star_parser.add_argument('agent_id')

        evaluate_parser = subparsers.add_parser('evaluate', help='Play against random opponents')
        evaluate_parser.add_argument('agent_id')
        evaluate_parser.add_argument(
            '--matches',
            type=int,
            default=100,
            help='Number of matches (default: 100)',
        )
        evaluate_parser.add_argument('--max-turns', type=int, help='Turns per match')
        evaluate_parser.add_argument('--seed', type=int, help='Random seed for the opponents')

    def handle(self, *args, **options):
        action = options['action']
        try:
            if action == 'list':
                self._list(options['starred'])
            elif action == 'delete':
                storage.delete_agent(options['agent_id'])
                self.stdout.write(self.style.SUCCESS(f"Deleted {options['agent_id']}"))
            elif action == 'star':
                starred = storage.toggle_star(options['agent_id'])
                self.stdout.write(f"{options['agent_id']} {'starred' if starred else 'unstarred'}")
            elif action == 'evaluate':
                self._evaluate(options)
        except AgentLoadError as e:
            raise CommandError(str(e))

    def _list(self, starred_only):
        agents = storage.list_agents(starred_only=starred_only)
        if not agents:
            self.stdout.write("No saved agents")
            return
        for agent in agents:
            latest = agent.latest_evaluation
            win_rate = f"{latest['win_rate']:.0%}" if latest else '-'
            self.stdout.write(
                f"{'*' if agent.starred else ' '} {agent.id}  {agent.name:<24} "
                f"fitness {agent.fitness:6.2f}  gen {agent.generation:4d}  "
                f"{agent.hidden_layers}x{agent.hidden_width}  win rate {win_rate}"
            )

    def _evaluate(self, options):
        if options['matches'] < 1:
            raise CommandError("--matches must be at least 1")
        result = storage.evaluate_agent(
            options['agent_id'],
            num_matches=options['matches'],
            max_turns=options['max_turns'],
            seed=options['seed'],
        )
        self.stdout.write(self.style.SUCCESS(
            f"Won {result.wins} of {result.matches} matches ({result.win_rate:.1%}), "
            f"average fitness {result.avg_fitness:.2f}"
        ))
