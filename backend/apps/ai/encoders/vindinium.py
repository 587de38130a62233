"""
Vindinium state encoder.

Encodes a game state into 51 features from one hero's perspective:

- Features 0-24: 5x5 vision window centred on the hero, row-major
  (dy -2..2 outer, dx -2..2 inner)
- Features 25-36: life, gold and mine count of heroes 1..4
- Features 37-46: radars (dx/size, dy/size) to the nearest tavern,
  neutral mine, enemy mine, enemy hero and capturable mine
- Features 47-50: game progress and health pressure signals
"""
from typing import List, Optional, Tuple

import numpy as np

from apps.game.rulesets.vindinium import (
    EMPTY,
    NEUTRAL_MINE,
    NUM_HEROES,
    TAVERN,
    WALL,
    GameState,
    is_hero,
    is_mine,
    mine_owner,
)

from .base import BaseEncoder

VISION_RADIUS = 2

OUT_OF_BOUNDS = -1.0
TILE_VALUES = {
    EMPTY: 0.0,
    WALL: -0.8,
    TAVERN: 1.0,
    NEUTRAL_MINE: 0.7,
}
OWN_MINE = 0.3
ENEMY_MINE = 0.9
OWN_HERO = 0.5
ENEMY_HERO = -0.9

LOW_HEALTH_PRESSURE_LIFE = 50
LOW_HEALTH_FLAG_LIFE = 30


class VindiniumEncoder(BaseEncoder):
    """
    Fixed-length encoder for Vindinium states.

    The encoding is relative to the hero given to ``encode``: its own
    mines and position read differently from those of its enemies.

    Example:
        encoder = VindiniumEncoder()
        features = encoder.encode(state, hero_id=2)
        # features is a numpy array of shape (51,)
    """

    input_size = 51
    game_type = 'vindinium'
    version = 1

    RADARS = ('tavern', 'neutral_mine', 'enemy_mine', 'enemy_hero', 'capturable_mine')

    def encode(self, game_state: GameState, hero_id: int) -> np.ndarray:
        features = np.zeros(self.input_size, dtype=np.float32)
        hero = game_state.hero(hero_id)
        if hero is None:
            return features

        board = game_state.board
        size = board.size
        hx, hy = hero.pos

        idx = 0
        for dy in range(-VISION_RADIUS, VISION_RADIUS + 1):
            for dx in range(-VISION_RADIUS, VISION_RADIUS + 1):
                features[idx] = self._tile_value(board.tile_at(hx + dx, hy + dy), hero_id)
                idx += 1

        for i in range(NUM_HEROES):
            other = game_state.hero(i + 1)
            if other is None:
                continue
            features[25 + i] = other.life / 100.0
            features[29 + i] = min(1.0, other.gold / 1000.0)
            features[33 + i] = min(1.0, other.mine_count / 10.0)

        nearest = self._nearest_targets(game_state, hero_id)
        for i, name in enumerate(self.RADARS):
            target = nearest[name]
            if target is not None:
                features[37 + 2 * i] = (target[0] - hx) / size
                features[38 + 2 * i] = (target[1] - hy) / size

        life = hero.life
        features[47] = game_state.turn / game_state.max_turns if game_state.max_turns else 0.0
        features[48] = max(0.0, (LOW_HEALTH_PRESSURE_LIFE - life) / LOW_HEALTH_PRESSURE_LIFE)

        tavern = nearest['tavern']
        if tavern is not None:
            distance = abs(tavern[0] - hx) + abs(tavern[1] - hy)
            features[49] = (1 - life / 100.0) * (1 - min(1.0, distance / (2.0 * size)))
        features[50] = 1.0 if life < LOW_HEALTH_FLAG_LIFE else 0.0

        return features

    def _tile_value(self, tile: Optional[str], hero_id: int) -> float:
        if tile is None:
            return OUT_OF_BOUNDS
        if tile in TILE_VALUES:
            return TILE_VALUES[tile]
        if is_mine(tile):
            return OWN_MINE if mine_owner(tile) == hero_id else ENEMY_MINE
        if is_hero(tile):
            return OWN_HERO if tile[1:] == str(hero_id) else ENEMY_HERO
        return 0.0

    def _nearest_targets(self, game_state: GameState, hero_id: int):
        """
        Nearest cell of each radar category by Manhattan distance.

        The hero's own cell is never a target. Ties go to the first
        cell in row-major order.
        """
        hx, hy = game_state.hero(hero_id).pos
        best = {name: None for name in self.RADARS}
        best_dist = {name: None for name in self.RADARS}

        def consider(name: str, x: int, y: int, dist: int) -> None:
            if best_dist[name] is None or dist < best_dist[name]:
                best[name] = (x, y)
                best_dist[name] = dist

        for x, y, tile in game_state.board.positions():
            dist = abs(x - hx) + abs(y - hy)
            if dist == 0:
                continue
            if tile == TAVERN:
                consider('tavern', x, y, dist)
            elif is_mine(tile):
                owner = mine_owner(tile)
                if owner is None:
                    consider('neutral_mine', x, y, dist)
                elif owner != hero_id:
                    consider('enemy_mine', x, y, dist)
                if owner != hero_id:
                    consider('capturable_mine', x, y, dist)
            elif is_hero(tile) and tile[1:] != str(hero_id):
                consider('enemy_hero', x, y, dist)

        return best

    def get_feature_names(self) -> List[str]:
        names = [
            f'vision_{dx:+d}_{dy:+d}'
            for dy in range(-VISION_RADIUS, VISION_RADIUS + 1)
            for dx in range(-VISION_RADIUS, VISION_RADIUS + 1)
        ]
        for stat in ('life', 'gold', 'mines'):
            names.extend(f'hero_{i}_{stat}' for i in range(1, NUM_HEROES + 1))
        for radar in self.RADARS:
            names.extend([f'{radar}_dx', f'{radar}_dy'])
        names.extend(['turn_progress', 'low_health_pressure', 'tavern_urgency', 'low_health_flag'])
        return names


def nearest_offset(features: np.ndarray, radar: str) -> Tuple[float, float]:
    """Read one radar's (dx, dy) pair back out of an encoded vector."""
    i = VindiniumEncoder.RADARS.index(radar)
    return float(features[37 + 2 * i]), float(features[38 + 2 * i])
