"""
Peace Puzzler: a gentle 4x4 match-3.

Swap two neighbouring tiles to line up three or more of the same colour.
Every cleared tile fills the calm meter; the puzzle is solved at 100.
"""

import random
from typing import List, Optional, Set, Tuple

GRID_SIZE = 4
COLORS = ["#a7f3d0", "#fecdd3", "#e0e7ff", "#f5d0fe", "#bae6fd"]
MAX_PROGRESS = 100

Grid = List[List[Optional[str]]]  # None marks a cleared cell
Position = Tuple[int, int]
Move = Tuple[Position, Position]


def find_matches(grid: Grid) -> List[Position]:
    """All cells in a horizontal or vertical run of 3+ equal colours."""
    size = len(grid)
    matches: Set[Position] = set()

    for r in range(size):
        c = 0
        while c < size - 2:
            color = grid[r][c]
            if color is not None and grid[r][c + 1] == color and grid[r][c + 2] == color:
                length = 3
                while c + length < size and grid[r][c + length] == color:
                    length += 1
                matches.update((r, c + i) for i in range(length))
                c += length
            else:
                c += 1

    for c in range(size):
        r = 0
        while r < size - 2:
            color = grid[r][c]
            if color is not None and grid[r + 1][c] == color and grid[r + 2][c] == color:
                length = 3
                while r + length < size and grid[r + length][c] == color:
                    length += 1
                matches.update((r + i, c) for i in range(length))
                r += length
            else:
                r += 1

    return sorted(matches)


def generate_grid(rng: random.Random, size: int = GRID_SIZE) -> Grid:
    """A full board with no ready-made matches."""
    grid: Grid = []
    for r in range(size):
        row: List[Optional[str]] = []
        for c in range(size):
            while True:
                color = rng.choice(COLORS)
                run_left = c >= 2 and row[c - 1] == color and row[c - 2] == color
                run_up = r >= 2 and grid[r - 1][c] == color and grid[r - 2][c] == color
                if not (run_left or run_up):
                    break
            row.append(color)
        grid.append(row)
    return grid


def apply_gravity(grid: Grid) -> Grid:
    """Let tiles fall into cleared cells; gaps collect at the top."""
    size = len(grid)
    new_grid = [list(row) for row in grid]
    for c in range(size):
        empty_row = size - 1
        for r in range(size - 1, -1, -1):
            if new_grid[r][c] is not None:
                new_grid[empty_row][c], new_grid[r][c] = new_grid[r][c], new_grid[empty_row][c]
                empty_row -= 1
    return new_grid


def refill(grid: Grid, rng: random.Random) -> Grid:
    return [[rng.choice(COLORS) if tile is None else tile for tile in row] for row in grid]


def swapped(grid: Grid, a: Position, b: Position) -> Grid:
    new_grid = [list(row) for row in grid]
    (r1, c1), (r2, c2) = a, b
    new_grid[r1][c1], new_grid[r2][c2] = new_grid[r2][c2], new_grid[r1][c1]
    return new_grid


def find_possible_moves(grid: Grid) -> List[Move]:
    """Every right/down swap that would produce a match."""
    size = len(grid)
    moves: List[Move] = []
    for r in range(size):
        for c in range(size):
            if c < size - 1 and find_matches(swapped(grid, (r, c), (r, c + 1))):
                moves.append(((r, c), (r, c + 1)))
            if r < size - 1 and find_matches(swapped(grid, (r, c), (r + 1, c))):
                moves.append(((r, c), (r + 1, c)))
    return moves


def is_adjacent(a: Position, b: Position) -> bool:
    return abs(a[0] - b[0]) + abs(a[1] - b[1]) == 1


class PuzzlerGame:
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.grid: Grid = generate_grid(self.rng)
        self.progress = 0
        self.selected: Optional[Position] = None
        self.state = "idle"  # idle | playing | paused | solved
        self.reshuffles = 0

    def toggle_play(self) -> None:
        if self.state == "playing":
            self.state = "paused"
            return
        if self.state in ("idle", "solved"):
            self.grid = generate_grid(self.rng)
            self.progress = 0
            self.selected = None
        self.state = "playing"

    def reshuffle(self) -> None:
        grid = generate_grid(self.rng)
        while not find_possible_moves(grid):
            grid = generate_grid(self.rng)
        self.grid = grid
        self.reshuffles += 1

    def hint(self) -> Optional[Move]:
        if self.state != "playing":
            return None
        moves = find_possible_moves(self.grid)
        return self.rng.choice(moves) if moves else None

    def click(self, row: int, col: int) -> int:
        """
        First click selects a tile, second click swaps with it when adjacent.
        Returns the number of tiles cleared by the move.
        """
        if self.state != "playing" or not (0 <= row < GRID_SIZE and 0 <= col < GRID_SIZE):
            return 0
        if self.selected is None:
            self.selected = (row, col)
            return 0

        first, self.selected = self.selected, None
        if not is_adjacent(first, (row, col)):
            return 0
        return self.swap(first, (row, col))

    def swap(self, a: Position, b: Position) -> int:
        """Swap two neighbours; a swap that makes no match is undone."""
        if self.state != "playing":
            return 0
        if not is_adjacent(a, b):
            raise ValueError(f"Tiles {a} and {b} are not adjacent")

        candidate = swapped(self.grid, a, b)
        if not find_matches(candidate):
            return 0

        cleared = self._resolve(candidate)
        if self.state == "playing" and not find_possible_moves(self.grid):
            self.reshuffle()
        return cleared

    def _resolve(self, grid: Grid) -> int:
        """Clear matches, drop, refill and repeat until the board is still."""
        cleared = 0
        matches = find_matches(grid)
        while matches:
            cleared += len(matches)
            self.progress = min(self.progress + len(matches), MAX_PROGRESS)
            for r, c in matches:
                grid[r][c] = None
            grid = refill(apply_gravity(grid), self.rng)
            matches = find_matches(grid)

        self.grid = grid
        if self.progress >= MAX_PROGRESS:
            self.state = "solved"
        return cleared
