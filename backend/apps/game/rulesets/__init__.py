"""
Game rule sets.

The Vindinium engine is exposed both as pure functions
(``create_initial_state``, ``advance_turn``) and through the
``VindiniumRuleSet`` wrapper used by the match runner.

Usage:
    from apps.game.rulesets import VindiniumRuleSet, Move

    ruleset = VindiniumRuleSet()
    state = ruleset.get_initial_state()
    state = ruleset.apply_move(state, 1, Move.SOUTH)
"""
from .base import BaseRuleSet
from .vindinium import (
    Board,
    DEFAULT_RULES,
    GameRules,
    GameState,
    Hero,
    Move,
    MOVE_ORDER,
    TurnEvent,
    VindiniumRuleSet,
    advance_turn,
    create_initial_state,
)

__all__ = [
    'BaseRuleSet',
    'Board',
    'DEFAULT_RULES',
    'GameRules',
    'GameState',
    'Hero',
    'Move',
    'MOVE_ORDER',
    'TurnEvent',
    'VindiniumRuleSet',
    'advance_turn',
    'create_initial_state',
]
