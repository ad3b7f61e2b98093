"""
Dice Duel Game Engine - Pure scoring and dice logic without GUI dependencies

This module contains the scoring rules and the five-dice state used by each
side's turn engine. It uses immutable data structures and pure functions so the
rules can be unit tested without a frontend or a clock.
"""
from dataclasses import dataclass, replace
from typing import Tuple
from enum import Enum
from collections import Counter
import logging
import random

logger = logging.getLogger(__name__)

NUM_DICE = 5
LOW_STRAIGHT = frozenset({1, 2, 3, 4, 5})
HIGH_STRAIGHT = frozenset({2, 3, 4, 5, 6})
LOW_STRAIGHT_POINTS = 1000
HIGH_STRAIGHT_POINTS = 1500


class ConfigurationError(ValueError):
    """Static game data is malformed; the engine refuses to start."""


class Side(Enum):
    """The two sides of a match"""
    HUMAN = "Player"
    BOT = "Bot"

    @property
    def other(self) -> 'Side':
        return Side.BOT if self is Side.HUMAN else Side.HUMAN


class TurnPhase(Enum):
    """Phases of one side's turn"""
    SPIN = "Spin"
    AFTER_SPIN = "AfterSpin"
    RESPIN = "ReSpin"
    END = "End"


@dataclass(frozen=True)
class Score:
    """Reward for a five-die result plus the faces that earned it"""
    reward: int
    highlighted_faces: frozenset = frozenset()


# Yield tables indexed by count (0-5)
_ONES_YIELD = (0, 100, 200, 1000, 2000, 4000)
_FIVES_YIELD = (0, 50, 100, 500, 1000, 2000)
_SET_MULTIPLIER = (0, 0, 0, 100, 200, 400)


def face_yield(face, count):
    """
    Points earned by `count` dice all showing `face`

    Ones and fives score on their own; every other face needs at least three
    of a kind. Counts outside 0-5 yield nothing.

    Args:
        face: Face value (1-6)
        count: Number of dice showing that face

    Returns:
        Integer points (0 if the count doesn't score)
    """
    if not (0 <= count <= NUM_DICE):
        return 0
    if face == 1:
        return _ONES_YIELD[count]
    if face == 5:
        return _FIVES_YIELD[count]
    return face * _SET_MULTIPLIER[count]


def _values_of(dice):
    """Accept plain ints or anything with a .value attribute (DieState)"""
    return tuple(getattr(die, "value", die) for die in dice)


def is_straight(values, low, high):
    """
    Check if five values are the distinct run low..high

    Args:
        values: Five face values (ints or DieState)
        low: Lowest face of the run
        high: Highest face of the run

    Returns:
        True if the values are exactly the five faces low..high
    """
    unique = set(_values_of(values))
    return len(unique) == NUM_DICE and min(unique) == low and max(unique) == high


def calculate_reward(dice):
    """
    Score a five-die result

    Straights are checked first and preclude all other scoring on the roll.
    Otherwise each face is scored independently from its count and the yields
    are summed. A roll with nothing scoring returns Score(0, frozenset()).

    Args:
        dice: Five face values (ints or DieState)

    Returns:
        Score with the total reward and the faces that contributed to it

    Raises:
        ValueError: If there aren't exactly five values or a value is outside 1-6
    """
    values = _values_of(dice)
    if len(values) != NUM_DICE:
        raise ValueError(f"Expected {NUM_DICE} dice, got {len(values)}.")
    for i, value in enumerate(values):
        if not isinstance(value, int) or not (1 <= value <= 6):
            raise ValueError(f"Die value at index {i} is {value!r}, must be between 1 and 6.")

    if is_straight(values, 1, 5):
        return Score(LOW_STRAIGHT_POINTS, LOW_STRAIGHT)
    if is_straight(values, 2, 6):
        return Score(HIGH_STRAIGHT_POINTS, HIGH_STRAIGHT)

    counts = Counter(values)
    reward = 0
    winning = set()
    for face in range(1, 7):
        points = face_yield(face, counts[face])
        if points > 0:
            reward += points
            winning.add(face)
    return Score(reward, frozenset(winning))


# ══════════════════════════════════════════════════════════════════════════════
# Dice Set
# ══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RollTimings:
    """Roll animation durations, in frames"""
    min_ticks: int = 18
    max_ticks: int = 30
    stop_delay_ticks: int = 4  # extra frames per die index so dice stop left to right

    def __post_init__(self):
        if self.min_ticks < 0 or self.stop_delay_ticks < 0:
            raise ConfigurationError("Roll timings must be non-negative.")
        if self.min_ticks > self.max_ticks:
            raise ConfigurationError(
                f"Roll min_ticks ({self.min_ticks}) exceeds max_ticks ({self.max_ticks})."
            )


@dataclass(frozen=True)
class DieState:
    """Pure representation of a single die's state - immutable"""
    value: int  # 1-6, meaningless while rolling
    locked: bool = False
    rolling: bool = False
    ticks_left: int = 0

    def toggle_locked(self) -> 'DieState':
        """Return new DieState with locked status toggled"""
        return replace(self, locked=not self.locked)


def create_dice(count=NUM_DICE, rng=random):
    """Create a fresh dice tuple: random faces, nothing locked or rolling."""
    return tuple(DieState(value=rng.randint(1, 6)) for _ in range(count))


def validate_dice(dice):
    """
    Check the dice tuple has exactly five dice

    The scoring and locking rules assume five dice everywhere, so any other
    length is a fatal configuration error.

    Raises:
        ConfigurationError: If the length is wrong
    """
    dice = tuple(dice)
    if len(dice) != NUM_DICE:
        logger.error("Dice set has %d dice, expected exactly %d", len(dice), NUM_DICE)
        raise ConfigurationError(f"Dice set must have exactly {NUM_DICE} dice, got {len(dice)}.")
    return dice


def start_roll(dice, timings, rng=random):
    """
    Put every unlocked die into the rolling state

    Each rolling die gets a uniform random duration within the configured
    window, offset by its index so the dice stop one after another. Locked
    dice keep their value and never roll.

    Args:
        dice: Current dice tuple
        timings: RollTimings
        rng: Random source with randint()

    Returns:
        New dice tuple
    """
    rolled = []
    for i, die in enumerate(dice):
        if die.locked:
            rolled.append(replace(die, rolling=False, ticks_left=0))
            continue
        duration = rng.randint(timings.min_ticks, timings.max_ticks) + i * timings.stop_delay_ticks
        rolled.append(replace(die, rolling=True, ticks_left=duration))
    return tuple(rolled)


def advance_dice(dice, rng=random):
    """
    Advance a roll by one frame

    Rolling dice count down; a die whose timer runs out stops and receives a
    fresh uniform face in 1-6.

    Args:
        dice: Current dice tuple
        rng: Random source with randint()

    Returns:
        (new dice tuple, tuple of indices that stopped this frame)
    """
    advanced = []
    stopped = []
    for i, die in enumerate(dice):
        if not die.rolling:
            advanced.append(die)
            continue
        ticks_left = die.ticks_left - 1
        if ticks_left <= 0:
            advanced.append(DieState(value=rng.randint(1, 6), locked=die.locked))
            stopped.append(i)
        else:
            advanced.append(replace(die, ticks_left=ticks_left))
    return tuple(advanced), tuple(stopped)


def toggle_die_lock(dice, die_index):
    """Return dice with one die's lock toggled; invalid index or rolling die leaves dice unchanged."""
    if not (0 <= die_index < len(dice)) or dice[die_index].rolling:
        return dice
    dice_list = list(dice)
    dice_list[die_index] = dice_list[die_index].toggle_locked()
    return tuple(dice_list)


def clear_locks(dice):
    return tuple(replace(die, locked=False) for die in dice)


def any_locked(dice):
    return any(die.locked for die in dice)


def any_rolling(dice):
    return any(die.rolling for die in dice)


def face_values(dice) -> Tuple[int, ...]:
    return tuple(die.value for die in dice)


def locked_indices(dice) -> Tuple[int, ...]:
    return tuple(i for i, die in enumerate(dice) if die.locked)
