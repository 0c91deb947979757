"""
Mini-game reward calculators.

Each calculator is a pure function from client-reported telemetry to a
coin amount and a breakdown. Telemetry is clamped here before use; the
server never trusts a client-submitted coin figure.
"""

import math
import random
import re
from dataclasses import dataclass, field
from typing import Any, Literal

# =============================================================================
# SHARED
# =============================================================================


@dataclass(frozen=True)
class RewardResult:
    """Coins awarded plus how they were computed."""

    coins: int
    breakdown: dict[str, Any] = field(default_factory=dict)


def _non_negative_int(value: float | int | None) -> int:
    if value is None or not math.isfinite(value):
        return 0
    return max(0, math.floor(value))


# =============================================================================
# MEMORY MATCH
# =============================================================================


@dataclass(frozen=True)
class MemoryMode:
    """Difficulty configuration for the memory-match game."""

    name: str
    pairs: int
    total_time: int
    base_per_pair: int
    time_bonus_multiplier: float
    perfect_bonus: int
    combo_step: float
    combo_cap: float


MEMORY_MODES: dict[str, MemoryMode] = {
    "easy": MemoryMode(
        name="easy",
        pairs=3,
        total_time=30,
        base_per_pair=5,
        time_bonus_multiplier=1,
        perfect_bonus=10,
        combo_step=0.0,
        combo_cap=1.0,
    ),
    "medium": MemoryMode(
        name="medium",
        pairs=6,
        total_time=45,
        base_per_pair=8,
        time_bonus_multiplier=1.5,
        perfect_bonus=25,
        combo_step=0.1,
        combo_cap=1.5,
    ),
    "hard": MemoryMode(
        name="hard",
        pairs=8,
        total_time=60,
        base_per_pair=12,
        time_bonus_multiplier=2,
        perfect_bonus=50,
        combo_step=0.2,
        combo_cap=2.0,
    ),
}

DEFAULT_MEMORY_MODE = "easy"


def get_memory_mode(difficulty: str | None) -> MemoryMode:
    """Mode for a difficulty name; unknown names play as easy."""
    key = (difficulty or DEFAULT_MEMORY_MODE).strip().lower()
    return MEMORY_MODES.get(key, MEMORY_MODES[DEFAULT_MEMORY_MODE])


@dataclass(frozen=True)
class MemoryTelemetry:
    """Client-reported end-of-game stats."""

    pairs_matched: float = 0
    mismatches: float = 0
    time_left: float = 0
    streak_max: float = 1


def combo_multiplier(mode: MemoryMode, streak_max: int) -> float:
    """Streak-based scaling: 1 + step per extra match in a row, capped."""
    return min(1 + mode.combo_step * (streak_max - 1), mode.combo_cap)


def memory_time_bonus(mode: MemoryMode, time_left: int) -> int:
    """Coins for seconds left on the clock."""
    if mode.name == "hard":
        return 2 * time_left
    return math.floor(mode.time_bonus_multiplier * time_left)


def memory_reward(telemetry: MemoryTelemetry, mode: MemoryMode) -> RewardResult:
    """
    Reward for a finished memory-match game.

    The board size comes from the mode, not the client. Only a game with
    every pair matched and time remaining pays out.

    Breakdown keys: won, base, timeBonus, bonus, comboMult.
    """
    matched = min(_non_negative_int(telemetry.pairs_matched), mode.pairs)
    mismatches = _non_negative_int(telemetry.mismatches)
    time_left = min(_non_negative_int(telemetry.time_left), mode.total_time)
    streak_max = max(1, _non_negative_int(telemetry.streak_max))

    won = matched >= mode.pairs and time_left > 0
    combo = combo_multiplier(mode, streak_max)

    base = math.floor(mode.base_per_pair * matched * combo)
    time_bonus = memory_time_bonus(mode, time_left)
    bonus = mode.perfect_bonus if won and mismatches == 0 else 0
    coins = max(0, base + time_bonus + bonus) if won else 0

    return RewardResult(
        coins=coins,
        breakdown={
            "won": won,
            "base": base,
            "timeBonus": time_bonus,
            "bonus": bonus,
            "comboMult": combo,
        },
    )


# =============================================================================
# SPIN THE WHEEL
# =============================================================================

SpinType = Literal["coins", "free_pack"]


@dataclass(frozen=True)
class SpinOutcome:
    """One wheel segment."""

    type: SpinType
    label: str
    delta: int = 0


# (upper bound of the cumulative range, outcome); ranges are [prev, bound)
SPIN_SEGMENTS: tuple[tuple[float, SpinOutcome], ...] = (
    (0.10, SpinOutcome("coins", "Lose 50 coins", -50)),
    (0.45, SpinOutcome("coins", "+50 coins", 50)),
    (0.70, SpinOutcome("coins", "+100 coins", 100)),
    (0.80, SpinOutcome("coins", "+250 coins", 250)),
    (1.00, SpinOutcome("free_pack", "Free random pack")),
)

# Balance never drops below this on a coin outcome
SPIN_BALANCE_FLOOR = 0


def spin_outcome(roll: float) -> SpinOutcome:
    """Map a uniform roll in [0, 1) to its wheel segment."""
    for bound, outcome in SPIN_SEGMENTS:
        if roll < bound:
            return outcome
    return SPIN_SEGMENTS[-1][1]


def spin_wheel(rng: random.Random | None = None) -> SpinOutcome:
    """Spin once using a single uniform draw."""
    rng = rng or random.Random()
    return spin_outcome(rng.random())


# =============================================================================
# TYPING CHALLENGE
# =============================================================================

COINS_PER_CORRECT_WORD = 20
COINS_PER_STREAK_POINT = 10


def typing_reward(correct_words: float | None, max_streak: float | None) -> RewardResult:
    """
    Reward for a finished typing challenge.

    A streak cannot be longer than the number of correct words.
    """
    correct = _non_negative_int(correct_words)
    streak = min(_non_negative_int(max_streak), correct)
    if correct == 0:
        return RewardResult(coins=0, breakdown={"correctReward": 0, "streakReward": 0})

    correct_reward = correct * COINS_PER_CORRECT_WORD
    streak_reward = streak * COINS_PER_STREAK_POINT
    return RewardResult(
        coins=correct_reward + streak_reward,
        breakdown={"correctReward": correct_reward, "streakReward": streak_reward},
    )


# =============================================================================
# SILHOUETTE GUESS
# =============================================================================

SILHOUETTE_REWARD = 200

_STRIP_CHARS = re.compile(r"[\s\-'.]+")


def normalize_name(value: str | None) -> str:
    """Case-fold and drop whitespace, hyphens, apostrophes, and dots."""
    return _STRIP_CHARS.sub("", str(value or "").lower())


def display_name(answer: str) -> str:
    """Title-case a stored answer: "mr-mime" -> "Mr Mime"."""
    return " ".join(word[:1].upper() + word[1:] for word in re.split(r"[-\s]+", answer) if word)


def silhouette_reward(guess: str | None, answer: str) -> RewardResult:
    """Flat reward for a correct guess; an empty guess is never correct."""
    normalized = normalize_name(guess)
    correct = bool(normalized) and normalized == normalize_name(answer)
    return RewardResult(
        coins=SILHOUETTE_REWARD if correct else 0,
        breakdown={"correct": correct},
    )
