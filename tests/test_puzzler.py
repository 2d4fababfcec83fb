"""
Tests for Peace Puzzler.
"""

import random

import pytest

from arcade import puzzler
from arcade.puzzler import (
    COLORS,
    MAX_PROGRESS,
    PuzzlerGame,
    apply_gravity,
    find_matches,
    find_possible_moves,
    generate_grid,
    swapped,
)

A, B, C, D, E = COLORS

# one move away from a row of three: swap (0, 2) and (0, 3)
NEAR_MATCH = [
    [A, A, B, A],
    [B, C, D, E],
    [C, D, E, B],
    [D, E, B, C],
]


@pytest.fixture
def game():
    g = PuzzlerGame(random.Random(3))
    g.toggle_play()
    g.grid = [list(row) for row in NEAR_MATCH]
    return g


class TestBoard:
    def test_find_matches_rows_and_columns(self):
        grid = [
            [A, A, A, A],
            [B, C, D, C],
            [B, D, C, D],
            [B, C, D, E],
        ]
        assert find_matches(grid) == [(0, 0), (0, 1), (0, 2), (0, 3), (1, 0), (2, 0), (3, 0)]

    def test_cleared_cells_never_match(self):
        grid = [[None] * 4 for _ in range(4)]
        assert find_matches(grid) == []

    @pytest.mark.parametrize("seed", range(10))
    def test_generated_boards_start_without_matches(self, seed):
        grid = generate_grid(random.Random(seed))
        assert find_matches(grid) == []
        assert all(tile in COLORS for row in grid for tile in row)

    def test_gravity_moves_gaps_to_the_top(self):
        grid = [
            [A, B, C, D],
            [None, B, None, D],
            [C, None, None, D],
            [D, E, A, None],
        ]
        assert apply_gravity(grid) == [
            [None, None, None, None],
            [A, B, None, D],
            [C, B, C, D],
            [D, E, A, D],
        ]

    def test_possible_moves(self):
        moves = find_possible_moves(NEAR_MATCH)
        assert ((0, 2), (0, 3)) in moves
        for a, b in moves:
            assert find_matches(swapped(NEAR_MATCH, a, b))


class TestGame:
    def test_matching_swap_clears_and_fills_meter(self, game):
        cleared = game.swap((0, 2), (0, 3))

        assert cleared >= 3
        assert game.progress == cleared
        assert all(tile is not None for row in game.grid for tile in row)
        assert find_matches(game.grid) == []

    def test_swap_without_match_is_undone(self, game):
        assert game.swap((1, 0), (2, 0)) == 0
        assert game.grid == NEAR_MATCH
        assert game.progress == 0

    def test_swap_must_be_adjacent(self, game):
        with pytest.raises(ValueError):
            game.swap((0, 0), (2, 2))

    def test_meter_caps_and_solves(self, game):
        game.progress = MAX_PROGRESS - 1
        game.swap((0, 2), (0, 3))
        assert game.progress == MAX_PROGRESS
        assert game.state == "solved"

    def test_click_selects_then_swaps(self, game):
        assert game.click(0, 2) == 0
        assert game.selected == (0, 2)
        assert game.click(0, 3) >= 3
        assert game.selected is None

    def test_hint(self, game):
        a, b = game.hint()
        assert find_matches(swapped(game.grid, a, b))

    def test_hint_is_a_random_possible_move(self, game):
        moves = find_possible_moves(game.grid)
        game.rng = random.Random(7)
        assert game.hint() == random.Random(7).choice(moves)

    def test_reshuffle_gives_a_playable_board(self, game):
        game.reshuffle()

        assert game.reshuffles == 1
        assert find_possible_moves(game.grid)
        assert find_matches(game.grid) == []

    def test_board_with_no_moves_left_is_reshuffled(self, game, monkeypatch):
        real_find_moves = puzzler.find_possible_moves
        calls = []

        def stuck_after_move(grid):
            calls.append(grid)
            return [] if len(calls) == 1 else real_find_moves(grid)

        monkeypatch.setattr(puzzler, "find_possible_moves", stuck_after_move)
        assert game.swap((0, 2), (0, 3)) >= 3

        assert game.reshuffles == 1
        assert real_find_moves(game.grid)
        assert find_matches(game.grid) == []

    def test_paused_game_ignores_swaps(self, game):
        game.toggle_play()
        assert game.state == "paused"
        assert game.swap((0, 2), (0, 3)) == 0
        assert game.hint() is None
