"""Color Splash: tap the canvas to send ripples of colour across it."""

import itertools
from typing import Dict, List, NamedTuple, Optional, Tuple

from schemas import GameSettings

MAX_POINTS = 100
STARTING_POINTS = 2

# (from, to) gradient stops per swatch
PALETTES: Dict[str, List[Tuple[str, str]]] = {
    "pastel": [
        ("#67e8f9", "#60a5fa"),
        ("#f9a8d4", "#fdba74"),
        ("#5eead4", "#38bdf8"),
        ("#bef264", "#4ade80"),
        ("#fcd34d", "#fb923c"),
        ("#f0abfc", "#fb7185"),
    ],
    "oceanic": [
        ("#38bdf8", "#2563eb"),
        ("#5eead4", "#06b6d4"),
        ("#93c5fd", "#818cf8"),
        ("#a5f3fc", "#38bdf8"),
        ("#2dd4bf", "#3b82f6"),
        ("#7dd3fc", "#6366f1"),
    ],
    "sunset": [
        ("#fbbf24", "#ea580c"),
        ("#f87171", "#e11d48"),
        ("#fde047", "#ef4444"),
        ("#f472b6", "#c026d3"),
        ("#fb923c", "#dc2626"),
        ("#fb7185", "#9333ea"),
    ],
}

SPEEDS = {
    "slow": 1000,
    "medium": 600,
    "fast": 300,
}


class Ripple(NamedTuple):
    id: int
    x: float
    y: float
    started_ms: int
    duration_ms: int
    color: Tuple[str, str]


class ColorSplash:
    def __init__(self, settings: Optional[GameSettings] = None):
        self.settings = settings or GameSettings()
        self.points = STARTING_POINTS
        self.paused = False
        self.color_index = 0
        self.ripples: List[Ripple] = []
        self._ids = itertools.count(1)

    @property
    def palette(self) -> List[Tuple[str, str]]:
        return PALETTES[self.settings.color_palette]

    @property
    def ripple_duration(self) -> int:
        return SPEEDS[self.settings.animation_speed]

    @property
    def current_color(self) -> Tuple[str, str]:
        return self.palette[self.color_index % len(self.palette)]

    def apply_settings(self, settings: GameSettings) -> None:
        self.settings = settings
        self.color_index %= len(self.palette)

    def toggle_pause(self) -> None:
        self.paused = not self.paused

    def splash(self, x: float, y: float, now_ms: int) -> Optional[Ripple]:
        if self.paused:
            return None
        self.points = min(self.points + 1, MAX_POINTS)
        self.color_index = (self.color_index + 1) % len(self.palette)

        ripple = Ripple(next(self._ids), x, y, now_ms, self.ripple_duration, self.current_color)
        self.ripples.append(ripple)
        return ripple

    def expire(self, now_ms: int) -> List[Ripple]:
        """Drop finished ripples and return those still animating."""
        self.ripples = [r for r in self.ripples if now_ms - r.started_ms < r.duration_ms]
        return self.ripples
