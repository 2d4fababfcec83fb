"""Bubble Wrap: pop all 48 bubbles and the sheet refills."""

import math
import random
from typing import List, NamedTuple, Optional, Set, Tuple

BUBBLE_COUNT = 48  # 8 columns x 6 rows
PARTICLES_PER_POP = 5


class PopResult(NamedTuple):
    popped: bool
    particles: List[Tuple[float, float]]  # (dx, dy) end offsets in px
    sheet_cleared: bool


class BubbleWrap:
    def __init__(self, rng: Optional[random.Random] = None, bubble_count: int = BUBBLE_COUNT):
        self.rng = rng or random.Random()
        self.bubble_count = bubble_count
        self.popped: Set[int] = set()
        self.total_popped = 0
        self.sheets_cleared = 0

    def is_popped(self, bubble_id: int) -> bool:
        return bubble_id in self.popped

    def _particles(self) -> List[Tuple[float, float]]:
        particles = []
        for _ in range(PARTICLES_PER_POP):
            angle = math.radians(self.rng.random() * 360)
            distance = self.rng.random() * 20 + 10
            particles.append((math.cos(angle) * distance, math.sin(angle) * distance))
        return particles

    def pop(self, bubble_id: int) -> PopResult:
        if not 0 <= bubble_id < self.bubble_count:
            raise ValueError(f"No bubble {bubble_id}")
        if bubble_id in self.popped:
            return PopResult(False, [], False)

        self.popped.add(bubble_id)
        self.total_popped += 1
        particles = self._particles()

        cleared = len(self.popped) == self.bubble_count
        if cleared:
            self.popped = set()
            self.sheets_cleared += 1
        return PopResult(True, particles, cleared)
