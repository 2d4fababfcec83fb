"""
Calm Arcade: small relaxing games.

Each engine is plain Python with an injectable random.Random so a board can be
replayed from a seed.
"""

from arcade.blocks import BlocksGame
from arcade.bubble_wrap import BubbleWrap
from arcade.color_splash import ColorSplash
from arcade.puzzler import PuzzlerGame
from arcade.wordflow import PlayerStats, WordFlowGame

__all__ = [
    "BlocksGame",
    "BubbleWrap",
    "ColorSplash",
    "PlayerStats",
    "PuzzlerGame",
    "WordFlowGame",
]
