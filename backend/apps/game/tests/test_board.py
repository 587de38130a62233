"""Tests for the board wire format and state serialization."""
import pytest

from apps.game.rulesets.vindinium import (
    Board,
    GameRules,
    GameState,
    Hero,
    NEUTRAL_MINE,
    TAVERN,
    WALL,
    create_initial_state,
    mine_owner,
    spawn_positions,
)


class TestBoard:
    """Tests for Board encoding."""

    def test_initial_layout(self):
        board = create_initial_state(size=12).board

        assert len(board.tiles) == 12 * 12 * 2
        assert board.tiles.startswith(WALL * 12)
        assert board.tile_at(1, 1) == '@1'
        assert board.tile_at(10, 1) == '@2'
        assert board.tile_at(1, 10) == '@3'
        assert board.tile_at(10, 10) == '@4'
        assert board.tile_at(3, 3) == NEUTRAL_MINE
        assert board.tile_at(8, 8) == NEUTRAL_MINE
        assert board.tile_at(5, 5) == TAVERN
        assert board.tile_at(6, 5) == TAVERN
        assert board.count_mines() == 4

    def test_parse_round_trip(self):
        board = create_initial_state(size=11).board

        assert Board.parse(11, board.tiles) == board

    def test_parse_rejects_wrong_length(self):
        with pytest.raises(ValueError):
            Board.parse(10, '##' * 10)

    def test_tile_at_off_board(self):
        board = create_initial_state(size=10).board

        assert board.tile_at(-1, 0) is None
        assert board.tile_at(0, 10) is None

    def test_minimum_size(self):
        with pytest.raises(ValueError):
            create_initial_state(size=9)

    @pytest.mark.parametrize('size', [10, 11, 12, 16])
    def test_layout_keeps_four_mines_and_two_taverns(self, size):
        board = create_initial_state(size=size).board

        assert board.count_mines() == 4
        assert board.tiles.count('[]') == 2

    def test_mine_owner(self):
        assert mine_owner('$3') == 3
        assert mine_owner(NEUTRAL_MINE) is None


class TestSerialization:
    """Tests for state dictionaries."""

    def test_state_round_trip(self):
        state = create_initial_state(size=10, max_turns=50)

        assert GameState.from_dict(state.to_dict()) == state

    def test_hero_defaults_for_missing_fields(self):
        hero = Hero.from_dict({'id': 2, 'pos': {'x': 3, 'y': 4}})

        assert hero.spawn_pos == (3, 4)
        assert hero.life == 100
        assert hero.gold == 0
        assert hero.mine_count == 0
        assert not hero.crashed

    def test_spawns_are_inner_corners(self):
        assert spawn_positions(12) == {1: (1, 1), 2: (10, 1), 3: (1, 10), 4: (10, 10)}


class TestGameRules:
    """Tests for rule validation."""

    def test_defaults(self):
        rules = GameRules()

        assert rules.initial_life == 100
        assert rules.tavern_cost == 2
        assert rules.mine_life_cost == 20

    def test_negative_cost_rejected(self):
        with pytest.raises(ValueError):
            GameRules(attack_damage=-1)

    def test_from_settings_overrides(self, settings):
        settings.VINDINIUM_RULES = {'max_turns': 120, 'board_size': 10}

        rules = GameRules.from_settings(max_turns=80)

        assert rules.board_size == 10
        assert rules.max_turns == 80
