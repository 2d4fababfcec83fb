"""
Word Flow: find every word hidden in a wheel of letters.

Hints cost 10 and reveal one letter of an unsolved word. Finishing a level
earns 25 hints; playing on consecutive days earns 5 more per day.
"""

import random
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Set, Tuple

HINT_COST = 10
LEVEL_COMPLETE_REWARD = 25
STREAK_REWARD = 5
STARTING_HINTS = 5

PUZZLES = [
    {"level": 1, "difficulty": "Easy", "letters": ["N", "L", "A", "C", "M", "I"],
     "words": ["CALM", "CLAIM", "MAIL", "MAIN", "CLAN", "MANIC", "CAM"]},
    {"level": 2, "difficulty": "Easy", "letters": ["E", "A", "R", "B", "H", "T"],
     "words": ["BREATH", "HEART", "EARTH", "BEAR", "BARE", "RATE", "HAT"]},
    {"level": 3, "difficulty": "Medium", "letters": ["O", "S", "E", "R", "N", "E"],
     "words": ["SERENE", "ROSE", "NOSE", "SEEN", "RENO", "SNORE", "ONE"]},
]


@dataclass
class PlayerStats:
    hints: int = STARTING_HINTS
    streak: int = 0
    last_played: Optional[str] = None  # YYYY-MM-DD

    def to_dict(self) -> Dict:
        return asdict(self)


def check_in(stats: Optional[PlayerStats], today: Optional[date] = None) -> PlayerStats:
    """Update the daily streak when the player opens the game."""
    today = today or date.today()
    today_str = today.isoformat()

    if stats is None:
        return PlayerStats(last_played=today_str, streak=1)

    stats = PlayerStats(**asdict(stats))
    if stats.last_played == (today - timedelta(days=1)).isoformat():
        stats.streak += 1
        stats.hints += STREAK_REWARD
    elif stats.last_played != today_str:
        stats.streak = 1
    stats.last_played = today_str
    return stats


@dataclass
class WordFlowGame:
    stats: PlayerStats = field(default_factory=PlayerStats)
    rng: random.Random = field(default_factory=random.Random)
    puzzles: List[Dict] = field(default_factory=lambda: PUZZLES)
    state: str = "idle"  # idle | playing | paused | solved
    puzzle_index: int = 0
    letters: List[str] = field(default_factory=list)
    guess: str = ""
    found: Set[str] = field(default_factory=set)
    hinted: Set[Tuple[int, int]] = field(default_factory=set)  # (word index, letter index)

    @property
    def puzzle(self) -> Dict:
        return self.puzzles[self.puzzle_index]

    @property
    def words(self) -> List[str]:
        return self.puzzle["words"]

    def _reset_round(self) -> None:
        self.found = set()
        self.guess = ""
        self.hinted = set()

    def play(self) -> None:
        """Start, or move on to the next puzzle after the first one."""
        self._reset_round()
        if self.state != "idle":
            self.puzzle_index = (self.puzzle_index + 1) % len(self.puzzles)
        self.letters = list(self.puzzle["letters"])
        self.rng.shuffle(self.letters)
        self.state = "playing"

    def restart(self) -> None:
        self._reset_round()
        if self.state == "paused":
            self.state = "playing"

    def toggle_pause(self) -> None:
        if self.state == "playing":
            self.state = "paused"
        elif self.state == "paused":
            self.state = "playing"

    def shuffle(self) -> None:
        if self.state == "playing":
            self.rng.shuffle(self.letters)

    def add_letter(self, letter: str) -> None:
        if self.state != "playing":
            return
        letter = letter.upper()
        if letter not in self.puzzle["letters"]:
            raise ValueError(f"{letter!r} is not on the wheel")
        self.guess += letter

    def delete_letter(self) -> None:
        if self.state == "playing":
            self.guess = self.guess[:-1]

    def submit(self) -> bool:
        """Check the current guess. True when it uncovers a new word."""
        if not self.guess or self.state != "playing":
            return False
        guess, self.guess = self.guess, ""

        if guess not in self.words or guess in self.found:
            return False

        self.found.add(guess)
        if len(self.found) == len(self.words):
            self.state = "solved"
            self.stats.hints += LEVEL_COMPLETE_REWARD
        return True

    def submit_word(self, word: str) -> bool:
        if self.state != "playing":
            return False
        self.guess = word.strip().upper()
        return self.submit()

    def use_hint(self) -> Optional[Tuple[int, int]]:
        """Reveal one hidden letter of an unsolved word; costs HINT_COST hints."""
        if self.state != "playing" or self.stats.hints < HINT_COST:
            return None

        hidden = [
            (wi, li)
            for wi, word in enumerate(self.words)
            if word not in self.found
            for li in range(len(word))
            if (wi, li) not in self.hinted
        ]
        if not hidden:
            return None

        choice = self.rng.choice(hidden)
        self.hinted.add(choice)
        self.stats.hints -= HINT_COST
        return choice

    def revealed(self, word_index: int) -> str:
        """The word as shown to the player: found words in full, otherwise hinted letters only."""
        word = self.words[word_index]
        if word in self.found:
            return word
        return "".join(ch if (word_index, i) in self.hinted else "_" for i, ch in enumerate(word))
