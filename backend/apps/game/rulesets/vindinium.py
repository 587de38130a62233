"""
Vindinium-style rules: four heroes competing for gold mines on a square grid.

The engine is a pure function of (state, hero, move). Every call returns a
new GameState; the input state is never modified. Turn order is round-robin,
the acting hero for a state is ``(turn % 4) + 1``.

Per-turn resolution for the acting hero:
    1. Crashed or dead heroes do nothing (only the turn counter advances).
    2. The move is resolved into a unit displacement (Stay = none).
    3. Upkeep: life -= move_life_cost, floored at 1.
    4. Walls and the board edge block movement.
    5. Empty cells are entered.
    6. Taverns heal (for a fee) but are never entered.
    7. Foreign mines are captured for a life cost, or kill the hero.
    8. Other heroes are attacked in place.
    9. Owned mines pay income.
    10. Deaths respawn the victim at its spawn cell (recursively on telefrag).
    11. The hero overlay is redrawn from hero positions.
    12. turn += 1, finished once turn reaches max_turns.

Board wire format: a flat string of 2-character cells, row-major:
    '  ' empty, '##' wall, '[]' tavern, '$-' neutral mine,
    '$N' mine owned by hero N, '@N' hero N.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .base import BaseRuleSet

NUM_HEROES = 4
MIN_BOARD_SIZE = 10

EMPTY = '  '
WALL = '##'
TAVERN = '[]'
NEUTRAL_MINE = '$-'

Pos = Tuple[int, int]


class Move(str, Enum):
    """The five actions a hero can take on its turn."""

    NORTH = 'North'
    SOUTH = 'South'
    EAST = 'East'
    WEST = 'West'
    STAY = 'Stay'

    @classmethod
    def coerce(cls, value: Any) -> 'Move':
        """Map any value onto a Move; anything unrecognised becomes STAY."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for move in cls:
                if value.strip().lower() in (move.value.lower(), move.name.lower()):
                    return move
        return cls.STAY


# Output unit order of the neural agent.
MOVE_ORDER: Tuple[Move, ...] = (Move.NORTH, Move.SOUTH, Move.EAST, Move.WEST, Move.STAY)

DELTAS: Dict[Move, Pos] = {
    Move.NORTH: (0, -1),
    Move.SOUTH: (0, 1),
    Move.EAST: (1, 0),
    Move.WEST: (-1, 0),
    Move.STAY: (0, 0),
}


def mine_tile(owner_id: Optional[int]) -> str:
    """Tile code for a mine owned by ``owner_id`` (None for neutral)."""
    return NEUTRAL_MINE if owner_id is None else f'${owner_id}'


def hero_tile(hero_id: int) -> str:
    return f'@{hero_id}'


def is_mine(tile: Optional[str]) -> bool:
    return tile is not None and tile.startswith('$')


def is_hero(tile: Optional[str]) -> bool:
    return tile is not None and tile.startswith('@')


def mine_owner(tile: str) -> Optional[int]:
    """Owner id of a mine tile, or None when the mine is neutral."""
    owner = tile[1]
    return int(owner) if owner.isdigit() else None


@dataclass(frozen=True)
class GameRules:
    """Numeric constants of the game. All are overridable."""

    initial_life: int = 100
    move_life_cost: int = 1
    tavern_heal: int = 50
    tavern_cost: int = 2
    mine_life_cost: int = 20
    attack_damage: int = 20
    mine_gold_per_turn: int = 1
    board_size: int = 12
    max_turns: int = 300

    def __post_init__(self):
        if self.initial_life <= 0:
            raise ValueError("initial_life must be positive")
        if self.board_size < MIN_BOARD_SIZE:
            raise ValueError(f"board_size must be at least {MIN_BOARD_SIZE}")
        if self.max_turns <= 0:
            raise ValueError("max_turns must be positive")
        for name in ('move_life_cost', 'tavern_heal', 'tavern_cost',
                     'mine_life_cost', 'attack_damage', 'mine_gold_per_turn'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")

    @classmethod
    def from_settings(cls, **overrides) -> 'GameRules':
        """
        Build rules from Django's ``VINDINIUM_RULES`` setting.

        Keyword overrides take precedence over the setting.
        """
        from django.conf import settings

        values = dict(getattr(settings, 'VINDINIUM_RULES', {}) or {})
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


DEFAULT_RULES = GameRules()


@dataclass(frozen=True)
class Hero:
    """A hero's full state. Instances are immutable; the engine replaces them."""

    id: int
    pos: Pos
    spawn_pos: Pos
    life: int = 100
    gold: int = 0
    mine_count: int = 0
    crashed: bool = False
    name: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name or f'Hero {self.id}',
            'pos': {'x': self.pos[0], 'y': self.pos[1]},
            'spawnPos': {'x': self.spawn_pos[0], 'y': self.spawn_pos[1]},
            'life': self.life,
            'gold': self.gold,
            'mineCount': self.mine_count,
            'crashed': self.crashed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Hero':
        pos = data.get('pos', {})
        spawn = data.get('spawnPos', pos)
        return cls(
            id=int(data['id']),
            pos=(int(pos.get('x', 0)), int(pos.get('y', 0))),
            spawn_pos=(int(spawn.get('x', 0)), int(spawn.get('y', 0))),
            life=int(data.get('life', DEFAULT_RULES.initial_life)),
            gold=int(data.get('gold', 0)),
            mine_count=int(data.get('mineCount', 0)),
            crashed=bool(data.get('crashed', False)),
            name=data.get('name', ''),
        )


@dataclass(frozen=True)
class TurnEvent:
    """
    Something that happened during one turn.

    kind is one of:
        'attack'  hero_id hit other_id for amount damage
        'death'   hero_id died; other_id is the killer (None for a failed capture)
        'capture' hero_id took a mine; other_id is the previous owner (None if neutral)
        'heal'    hero_id healed amount life at a tavern
    """

    kind: str
    hero_id: int
    other_id: Optional[int] = None
    amount: int = 0


@dataclass(frozen=True)
class Board:
    """Square grid of 2-character tile codes, row-major."""

    size: int
    cells: Tuple[str, ...]

    def __post_init__(self):
        if len(self.cells) != self.size * self.size:
            raise ValueError(
                f"Board of size {self.size} needs {self.size * self.size} cells, "
                f"got {len(self.cells)}"
            )

    @property
    def tiles(self) -> str:
        """The flat 2-char-per-cell wire encoding."""
        return ''.join(self.cells)

    @classmethod
    def parse(cls, size: int, tiles: str) -> 'Board':
        if len(tiles) != size * size * 2:
            raise ValueError(f"Tile string length {len(tiles)} does not match size {size}")
        return cls(size, tuple(tiles[i:i + 2] for i in range(0, len(tiles), 2)))

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def tile_at(self, x: int, y: int) -> Optional[str]:
        """Tile at (x, y), or None when off-board."""
        if not self.in_bounds(x, y):
            return None
        return self.cells[y * self.size + x]

    def with_tile(self, x: int, y: int, tile: str) -> 'Board':
        cells = list(self.cells)
        cells[y * self.size + x] = tile
        return Board(self.size, tuple(cells))

    def positions(self) -> Iterator[Tuple[int, int, str]]:
        for idx, tile in enumerate(self.cells):
            yield idx % self.size, idx // self.size, tile

    def count_mines(self) -> int:
        return sum(1 for tile in self.cells if is_mine(tile))


@dataclass(frozen=True)
class GameState:
    turn: int
    max_turns: int
    heroes: Tuple[Hero, ...]
    board: Board
    finished: bool = False
    events: Tuple[TurnEvent, ...] = field(default=(), compare=False)

    @property
    def current_hero_id(self) -> int:
        return (self.turn % NUM_HEROES) + 1

    def hero(self, hero_id: int) -> Optional[Hero]:
        for hero in self.heroes:
            if hero.id == hero_id:
                return hero
        return None

    def with_hero(self, hero: Hero) -> 'GameState':
        """Copy of this state with one hero replaced and the overlay redrawn."""
        heroes = tuple(hero if h.id == hero.id else h for h in self.heroes)
        cells = _redraw_overlay(list(self.board.cells), self.board.size, heroes)
        return replace(self, heroes=heroes, board=Board(self.board.size, tuple(cells)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'turn': self.turn,
            'maxTurns': self.max_turns,
            'heroes': [h.to_dict() for h in self.heroes],
            'board': {'size': self.board.size, 'tiles': self.board.tiles},
            'finished': self.finished,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameState':
        board = data['board']
        turn = int(data.get('turn', 0))
        max_turns = int(data.get('maxTurns', DEFAULT_RULES.max_turns))
        return cls(
            turn=turn,
            max_turns=max_turns,
            heroes=tuple(Hero.from_dict(h) for h in data.get('heroes', [])),
            board=Board.parse(int(board['size']), board['tiles']),
            finished=turn >= max_turns,
        )


def spawn_positions(size: int) -> Dict[int, Pos]:
    return {
        1: (1, 1),
        2: (size - 2, 1),
        3: (1, size - 2),
        4: (size - 2, size - 2),
    }


def create_initial_state(
    size: Optional[int] = None,
    max_turns: Optional[int] = None,
    rules: GameRules = DEFAULT_RULES,
) -> GameState:
    """
    Build the standard starting position.

    Walls line the border, heroes start in the four inner corners,
    four neutral mines sit three cells in from each corner and two
    taverns share the centre row.
    """
    size = size or rules.board_size
    max_turns = max_turns or rules.max_turns
    if size < MIN_BOARD_SIZE:
        raise ValueError(f"Board size must be at least {MIN_BOARD_SIZE}, got {size}")

    cells = [EMPTY] * (size * size)
    for i in range(size):
        cells[i] = WALL
        cells[size * (size - 1) + i] = WALL
        cells[i * size] = WALL
        cells[i * size + (size - 1)] = WALL

    far = size - 4
    for x, y in ((3, 3), (far, 3), (3, far), (far, far)):
        cells[y * size + x] = NEUTRAL_MINE

    mid = size // 2
    cells[(mid - 1) * size + (mid - 1)] = TAVERN
    cells[(mid - 1) * size + mid] = TAVERN

    heroes = tuple(
        Hero(
            id=hero_id,
            pos=spawn,
            spawn_pos=spawn,
            life=rules.initial_life,
            name=f'Hero {hero_id}',
        )
        for hero_id, spawn in sorted(spawn_positions(size).items())
    )
    cells = _redraw_overlay(cells, size, heroes)

    return GameState(
        turn=0,
        max_turns=max_turns,
        heroes=heroes,
        board=Board(size, tuple(cells)),
        finished=False,
    )


def advance_turn(
    state: GameState,
    hero_id: int,
    move: Any,
    rules: GameRules = DEFAULT_RULES,
) -> GameState:
    """
    Apply one hero's move and return the next state.

    Never raises for a well-formed state: unknown moves act as Stay,
    unknown hero ids only advance the turn counter.
    """
    size = state.board.size
    heroes: Dict[int, Hero] = {h.id: h for h in state.heroes}
    cells: List[str] = list(state.board.cells)
    events: List[TurnEvent] = []

    actor = heroes.get(hero_id)
    if actor is not None and not actor.crashed and actor.life > 0:
        _resolve_action(heroes, cells, size, hero_id, Move.coerce(move), rules, events)

    ordered = tuple(heroes[h.id] for h in state.heroes)
    cells = _redraw_overlay(cells, size, ordered)
    turn = state.turn + 1

    return GameState(
        turn=turn,
        max_turns=state.max_turns,
        heroes=ordered,
        board=Board(size, tuple(cells)),
        finished=turn >= state.max_turns,
        events=tuple(events),
    )


def _resolve_action(
    heroes: Dict[int, Hero],
    cells: List[str],
    size: int,
    hero_id: int,
    move: Move,
    rules: GameRules,
    events: List[TurnEvent],
) -> None:
    hero = heroes[hero_id]
    dx, dy = DELTAS[move]
    x, y = hero.pos[0] + dx, hero.pos[1] + dy

    hero = replace(hero, life=max(1, hero.life - rules.move_life_cost))
    heroes[hero_id] = hero

    if (dx, dy) != (0, 0) and 0 <= x < size and 0 <= y < size:
        occupant = _hero_at(heroes, (x, y), exclude=hero_id)
        tile = cells[y * size + x]

        if occupant is not None:
            _attack(heroes, cells, hero_id, occupant.id, rules, events)
        elif tile == EMPTY or is_hero(tile):
            heroes[hero_id] = replace(hero, pos=(x, y))
        elif tile == TAVERN:
            if hero.gold >= rules.tavern_cost:
                healed = min(rules.initial_life, hero.life + rules.tavern_heal)
                heroes[hero_id] = replace(
                    hero, gold=hero.gold - rules.tavern_cost, life=healed,
                )
                events.append(TurnEvent('heal', hero_id, amount=healed - hero.life))
        elif is_mine(tile):
            owner = mine_owner(tile)
            if owner != hero_id:
                _take_mine(heroes, cells, y * size + x, hero_id, owner, rules, events)
        # Walls: no movement, no effect.

    hero = heroes[hero_id]
    heroes[hero_id] = replace(
        hero, gold=hero.gold + hero.mine_count * rules.mine_gold_per_turn,
    )


def _take_mine(
    heroes: Dict[int, Hero],
    cells: List[str],
    index: int,
    hero_id: int,
    owner: Optional[int],
    rules: GameRules,
    events: List[TurnEvent],
) -> None:
    hero = heroes[hero_id]
    if hero.life > rules.mine_life_cost:
        cells[index] = mine_tile(hero_id)
        heroes[hero_id] = replace(
            hero,
            life=hero.life - rules.mine_life_cost,
            mine_count=hero.mine_count + 1,
        )
        if owner is not None and owner in heroes:
            previous = heroes[owner]
            heroes[owner] = replace(previous, mine_count=max(0, previous.mine_count - 1))
        events.append(TurnEvent('capture', hero_id, other_id=owner))
    else:
        heroes[hero_id] = replace(hero, life=0)
        _respawn(heroes, cells, hero_id, None, rules, events, set())


def _attack(
    heroes: Dict[int, Hero],
    cells: List[str],
    attacker_id: int,
    victim_id: int,
    rules: GameRules,
    events: List[TurnEvent],
) -> None:
    victim = heroes[victim_id]
    life = max(0, victim.life - rules.attack_damage)
    heroes[victim_id] = replace(victim, life=life)
    events.append(TurnEvent('attack', attacker_id, other_id=victim_id, amount=rules.attack_damage))
    if life <= 0:
        _respawn(heroes, cells, victim_id, attacker_id, rules, events, set())


def _respawn(
    heroes: Dict[int, Hero],
    cells: List[str],
    hero_id: int,
    killer_id: Optional[int],
    rules: GameRules,
    events: List[TurnEvent],
    visited: set,
) -> None:
    """Kill a hero: free its mines, keep its gold, send it home at full life."""
    if hero_id in visited:
        return
    visited.add(hero_id)

    owned = mine_tile(hero_id)
    for idx, tile in enumerate(cells):
        if tile == owned:
            cells[idx] = NEUTRAL_MINE

    hero = heroes[hero_id]
    heroes[hero_id] = replace(
        hero, pos=hero.spawn_pos, life=rules.initial_life, mine_count=0,
    )
    events.append(TurnEvent('death', hero_id, other_id=killer_id))

    # Telefrag whoever is standing on the spawn cell.
    occupant = _hero_at(heroes, hero.spawn_pos, exclude=hero_id)
    if occupant is not None:
        _respawn(heroes, cells, occupant.id, hero_id, rules, events, visited)


def _hero_at(heroes: Dict[int, Hero], pos: Pos, exclude: int) -> Optional[Hero]:
    for hero in heroes.values():
        if hero.id != exclude and hero.pos == pos:
            return hero
    return None


def _redraw_overlay(cells: List[str], size: int, heroes) -> List[str]:
    cells = [EMPTY if is_hero(tile) else tile for tile in cells]
    for hero in heroes:
        x, y = hero.pos
        if 0 <= x < size and 0 <= y < size:
            cells[y * size + x] = hero_tile(hero.id)
    return cells


class VindiniumRuleSet(BaseRuleSet):
    """
    Rule set wrapper around the pure engine functions.

    Example:
        ruleset = VindiniumRuleSet(GameRules(max_turns=600))
        state = ruleset.get_initial_state()
        state = ruleset.apply_move(state, 1, Move.EAST)
    """

    game_type = 'vindinium'
    display_name = 'Vindinium'
    num_players = NUM_HEROES

    def __init__(self, rules: Optional[GameRules] = None):
        self.rules = rules or DEFAULT_RULES

    def get_initial_state(self) -> GameState:
        return create_initial_state(rules=self.rules)

    def get_legal_moves(self, state: GameState, player_id: int) -> List[Move]:
        # Every move is accepted; blocked ones simply have no effect.
        return list(MOVE_ORDER)

    def apply_move(self, state: GameState, player_id: int, move: Any) -> GameState:
        return advance_turn(state, player_id, move, self.rules)

    def get_current_player(self, state: GameState) -> int:
        return state.current_hero_id

    def check_winner(self, state: GameState) -> Optional[int]:
        """The hero holding strictly the most gold at the end; None on a tie."""
        if not state.finished or not state.heroes:
            return None
        ranked = sorted(state.heroes, key=lambda h: h.gold, reverse=True)
        if len(ranked) > 1 and ranked[0].gold == ranked[1].gold:
            return None
        return ranked[0].id

    def validate_state(self, state: GameState) -> bool:
        if state.finished != (state.turn >= state.max_turns):
            return False
        if len({h.id for h in state.heroes}) != len(state.heroes):
            return False
        if len({h.pos for h in state.heroes}) != len(state.heroes):
            return False

        owned: Dict[int, int] = {}
        for _, _, tile in state.board.positions():
            if is_mine(tile):
                owner = mine_owner(tile)
                if owner is not None:
                    owned[owner] = owned.get(owner, 0) + 1

        for hero in state.heroes:
            if not 0 <= hero.life <= self.rules.initial_life:
                return False
            if hero.gold < 0 or hero.mine_count != owned.get(hero.id, 0):
                return False
            if state.board.tile_at(*hero.pos) != hero_tile(hero.id):
                return False
        return True

    def deserialize_state(self, data: Dict[str, Any]) -> GameState:
        return GameState.from_dict(data)
