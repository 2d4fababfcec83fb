"""
Classic Blocks: a calm falling-blocks game on a 10x20 board.

Completed rows dissolve and add to the Calm Score. There is no speed-up; the
game ends only when a piece locks at the very top.
"""

import random
from typing import List, Optional

BOARD_WIDTH = 10
BOARD_HEIGHT = 20
LINE_SCORE = 10
PIECES = "IJLOSTZ"

# 0 is an empty cell of the piece's bounding box
TETROMINOES = {
    "I": [[0, "I", 0, 0], [0, "I", 0, 0], [0, "I", 0, 0], [0, "I", 0, 0]],
    "J": [[0, "J", 0], [0, "J", 0], ["J", "J", 0]],
    "L": [[0, "L", 0], [0, "L", 0], [0, "L", "L"]],
    "O": [["O", "O"], ["O", "O"]],
    "S": [[0, "S", "S"], ["S", "S", 0], [0, 0, 0]],
    "T": [["T", "T", "T"], [0, "T", 0], [0, 0, 0]],
    "Z": [["Z", "Z", 0], [0, "Z", "Z"], [0, 0, 0]],
}

Board = List[List[Optional[str]]]
Shape = List[list]


def create_board() -> Board:
    return [[None] * BOARD_WIDTH for _ in range(BOARD_HEIGHT)]


def rotate_clockwise(shape: Shape) -> Shape:
    return [list(row)[::-1] for row in zip(*shape)]


class BlocksGame:
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.board: Board = create_board()
        self.shape: Shape = [[0]]
        self.x = 0
        self.y = 0
        self.score = 0
        self.rows = 0
        self.state = "idle"  # idle | playing | paused | over

    # ---------- lifecycle ----------

    def start(self) -> None:
        self.board = create_board()
        self.score = 0
        self.rows = 0
        self._spawn()
        self.state = "playing"

    def toggle_pause(self) -> None:
        if self.state == "playing":
            self.state = "paused"
        elif self.state == "paused":
            self.state = "playing"

    def _spawn(self) -> None:
        piece = self.rng.choice(PIECES)
        self.shape = [list(row) for row in TETROMINOES[piece]]
        self.x = BOARD_WIDTH // 2 - 2
        self.y = 0

    # ---------- collision ----------

    def collides(self, shape: Shape, x: int, y: int) -> bool:
        for dy, row in enumerate(shape):
            for dx, value in enumerate(row):
                if value == 0:
                    continue
                bx, by = x + dx, y + dy
                if not (0 <= bx < BOARD_WIDTH and 0 <= by < BOARD_HEIGHT):
                    return True
                if self.board[by][bx] is not None:
                    return True
        return False

    # ---------- moves ----------

    def move(self, dx: int) -> bool:
        if self.state != "playing":
            return False
        if self.collides(self.shape, self.x + dx, self.y):
            return False
        self.x += dx
        return True

    def rotate(self) -> bool:
        """Rotate clockwise, nudging sideways (1, -2, 3, ...) to get clear of walls."""
        if self.state != "playing":
            return False
        rotated = rotate_clockwise(self.shape)
        x = self.x
        offset = 1
        while self.collides(rotated, x, self.y):
            x += offset
            offset = -(offset + (1 if offset > 0 else -1))
            if offset > len(rotated[0]):
                return False
        self.shape = rotated
        self.x = x
        return True

    def tick(self) -> None:
        """Gravity step (also the soft drop): fall one row or lock the piece."""
        if self.state != "playing":
            return
        if self.collides(self.shape, self.x, self.y + 1):
            if self.y < 1:
                self.state = "over"
                return
            self._lock()
        else:
            self.y += 1

    def hard_drop(self) -> None:
        if self.state != "playing":
            return
        self.y = self.ghost_y()
        self.tick()

    def ghost_y(self) -> int:
        """Row the current piece would land on (the hint position)."""
        y = self.y
        while not self.collides(self.shape, self.x, y + 1):
            y += 1
        return y

    # ---------- locking ----------

    def _lock(self) -> None:
        for dy, row in enumerate(self.shape):
            for dx, value in enumerate(row):
                if value != 0:
                    self.board[self.y + dy][self.x + dx] = value
        self._sweep()
        self._spawn()

    def _sweep(self) -> int:
        kept = [row for row in self.board if not all(cell is not None for cell in row)]
        cleared = BOARD_HEIGHT - len(kept)
        if cleared:
            self.board = [[None] * BOARD_WIDTH for _ in range(cleared)] + kept
            self.rows += cleared
            self.score += cleared * LINE_SCORE
        return cleared

    # ---------- view ----------

    def render(self, show_hint: bool = False) -> List[List[str]]:
        """Board with the falling piece drawn in; "" is empty, "*" is the hint."""
        view = [[cell or "" for cell in row] for row in self.board]

        if show_hint and self.state == "playing":
            gy = self.ghost_y()
            for dy, row in enumerate(self.shape):
                for dx, value in enumerate(row):
                    if value != 0:
                        view[gy + dy][self.x + dx] = "*"

        if self.state in ("playing", "paused"):
            for dy, row in enumerate(self.shape):
                for dx, value in enumerate(row):
                    if value != 0:
                        view[self.y + dy][self.x + dx] = value
        return view
