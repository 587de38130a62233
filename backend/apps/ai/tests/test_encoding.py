"""
Tests for state encoders.

Tests the VindiniumEncoder for:
- Output shape and dtype
- Vision window values
- Hero statistics
- Radar offsets and tie-breaking
- Health pressure signals
"""
from dataclasses import replace

import numpy as np
import pytest
import torch

from apps.ai.encoders import BaseEncoder, VindiniumEncoder
from apps.ai.encoders.vindinium import nearest_offset
from apps.game.rulesets.vindinium import mine_tile


def place(state, hero_id, **changes):
    return state.with_hero(replace(state.hero(hero_id), **changes))


@pytest.fixture
def encoder():
    return VindiniumEncoder()


class TestVindiniumEncoderShape:
    """Tests for the encoder contract."""

    def test_is_base_encoder(self, encoder):
        assert isinstance(encoder, BaseEncoder)
        assert encoder.game_type == 'vindinium'

    def test_encode_shape_and_dtype(self, encoder, initial_state):
        features = encoder.encode(initial_state, 1)

        assert features.shape == (51,)
        assert features.dtype == np.float32

    def test_encode_tensor(self, encoder, initial_state):
        tensor = encoder.encode_tensor(initial_state, 1)

        assert isinstance(tensor, torch.Tensor)
        assert tensor.dtype == torch.float32
        assert tensor.shape == (51,)

    def test_encode_batch(self, encoder, initial_state):
        batch = encoder.encode_batch([initial_state, initial_state], 2)

        assert batch.shape == (2, 51)

    def test_feature_names(self, encoder):
        names = encoder.get_feature_names()

        assert len(names) == encoder.input_size
        assert len(set(names)) == len(names)
        assert names[12] == 'vision_+0_+0'
        assert names[-1] == 'low_health_flag'

    def test_describe(self, encoder):
        description = encoder.describe()

        assert description['input_size'] == 51
        assert description['version'] == 1

    def test_missing_hero_encodes_zeros(self, encoder, initial_state):
        features = encoder.encode(initial_state, 7)

        assert not features.any()

    def test_deterministic(self, encoder, initial_state):
        np.testing.assert_array_equal(
            encoder.encode(initial_state, 3),
            encoder.encode(initial_state, 3),
        )


class TestVision:
    """Tests for the 5x5 vision window."""

    def test_own_hero_in_centre(self, encoder, initial_state):
        features = encoder.encode(initial_state, 1)

        assert features[12] == pytest.approx(0.5)

    def test_off_board_cells(self, encoder, initial_state):
        # Hero 1 stands at (1, 1): the top row and left column are off-board.
        features = encoder.encode(initial_state, 1)

        assert features[0] == pytest.approx(-1.0)
        assert features[4] == pytest.approx(-1.0)
        assert features[5] == pytest.approx(-1.0)

    def test_walls_and_empty(self, encoder, initial_state):
        features = encoder.encode(initial_state, 1)

        # (0, 0) is a wall, (2, 2) is empty.
        assert features[6] == pytest.approx(-0.8)
        assert features[18] == pytest.approx(0.0)

    def test_neutral_mine(self, encoder, initial_state):
        # Mine at (3, 3) is two cells right and two down.
        features = encoder.encode(initial_state, 1)

        assert features[24] == pytest.approx(0.7)

    def test_own_and_enemy_mines(self, encoder, initial_state):
        board = initial_state.board.with_tile(3, 3, mine_tile(1))
        state = replace(initial_state, board=board)
        assert encoder.encode(state, 1)[24] == pytest.approx(0.3)

        board = initial_state.board.with_tile(3, 3, mine_tile(2))
        state = replace(initial_state, board=board)
        assert encoder.encode(state, 1)[24] == pytest.approx(0.9)

    def test_enemy_hero(self, encoder, initial_state):
        state = place(initial_state, 2, pos=(2, 2))

        features = encoder.encode(state, 1)

        assert features[18] == pytest.approx(-0.9)


class TestHeroStats:
    """Tests for life, gold and mine features."""

    def test_initial_values(self, encoder, initial_state):
        features = encoder.encode(initial_state, 1)

        np.testing.assert_allclose(features[25:29], 1.0)
        np.testing.assert_allclose(features[29:37], 0.0)

    def test_values_are_absolute_per_hero(self, encoder, initial_state):
        state = place(initial_state, 3, life=40, gold=250, mine_count=2)

        features = encoder.encode(state, 1)

        assert features[27] == pytest.approx(0.4)
        assert features[31] == pytest.approx(0.25)
        assert features[35] == pytest.approx(0.2)

    def test_gold_and_mines_saturate(self, encoder, initial_state):
        state = place(initial_state, 2, gold=5000, mine_count=20)

        features = encoder.encode(state, 1)

        assert features[30] == pytest.approx(1.0)
        assert features[34] == pytest.approx(1.0)


class TestRadars:
    """Tests for nearest-target offsets."""

    def test_tavern(self, encoder, initial_state):
        # Taverns at (5, 5) and (6, 5); (5, 5) is closer to (1, 1).
        features = encoder.encode(initial_state, 1)

        assert nearest_offset(features, 'tavern') == pytest.approx((4 / 12, 4 / 12))

    def test_neutral_and_capturable_mine(self, encoder, initial_state):
        features = encoder.encode(initial_state, 1)

        assert nearest_offset(features, 'neutral_mine') == pytest.approx((2 / 12, 2 / 12))
        assert nearest_offset(features, 'capturable_mine') == pytest.approx((2 / 12, 2 / 12))

    def test_no_enemy_mine(self, encoder, initial_state):
        features = encoder.encode(initial_state, 1)

        assert nearest_offset(features, 'enemy_mine') == (0.0, 0.0)

    def test_enemy_hero_tie_goes_to_first_in_row_major_order(self, encoder, initial_state):
        # (10, 1) and (1, 10) are both nine steps away.
        features = encoder.encode(initial_state, 1)

        assert nearest_offset(features, 'enemy_hero') == pytest.approx((9 / 12, 0.0))

    def test_enemy_mine(self, encoder, initial_state):
        board = initial_state.board.with_tile(3, 3, mine_tile(2))
        state = replace(initial_state, board=board)

        features = encoder.encode(state, 1)

        assert nearest_offset(features, 'enemy_mine') == pytest.approx((2 / 12, 2 / 12))
        assert nearest_offset(features, 'capturable_mine') == pytest.approx((2 / 12, 2 / 12))
        # Next neutral mines are (8, 3) and (3, 8); (8, 3) comes first.
        assert nearest_offset(features, 'neutral_mine') == pytest.approx((7 / 12, 2 / 12))

    def test_own_mine_is_not_capturable(self, encoder, initial_state):
        board = initial_state.board.with_tile(3, 3, mine_tile(1))
        state = replace(initial_state, board=board)

        features = encoder.encode(state, 1)

        assert nearest_offset(features, 'capturable_mine') == pytest.approx((7 / 12, 2 / 12))


class TestPressureSignals:
    """Tests for turn progress and health pressure."""

    def test_full_health(self, encoder, initial_state):
        features = encoder.encode(initial_state, 1)

        assert features[47] == pytest.approx(0.0)
        assert features[48] == pytest.approx(0.0)
        assert features[49] == pytest.approx(0.0)
        assert features[50] == pytest.approx(0.0)

    def test_turn_progress(self, encoder, midgame_state):
        assert encoder.encode(midgame_state, 1)[47] == pytest.approx(1 / 3)

    def test_low_health(self, encoder, initial_state):
        state = place(initial_state, 1, life=20)

        features = encoder.encode(state, 1)

        assert features[48] == pytest.approx(0.6)
        # Tavern eight steps away on a 12 board.
        assert features[49] == pytest.approx(0.8 * (1 - 8 / 24))
        assert features[50] == pytest.approx(1.0)

    def test_flag_threshold(self, encoder, initial_state):
        assert encoder.encode(place(initial_state, 1, life=30), 1)[50] == 0.0
        assert encoder.encode(place(initial_state, 1, life=29), 1)[50] == 1.0
