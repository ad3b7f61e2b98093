"""
Dice Duel AI — Strategy interface, bot pacing controller, and headless turn loop.

Contains:
- Action types (LockAction, BankAction)
- DiceStrategy abstract base class
- MarginalValueStrategy, the greedy one-step bot
- BotPlayer, which drives a TurnEngine with "thinking" delays
- play_turn() and play_match() for headless simulation
"""
from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from typing import Tuple, Union

from game_engine import (
    NUM_DICE,
    RollTimings,
    TurnPhase,
    calculate_reward,
    face_yield,
    is_straight,
)
from turn_engine import TurnController, TurnEngine

logger = logging.getLogger(__name__)


# ── Action Types ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LockAction:
    """Lock the dice showing `face` and re-roll the rest."""
    face: int
    lock: Tuple[int, ...]  # dice indices (0-4) to lock
    reason: str = ""


@dataclass(frozen=True)
class BankAction:
    """Bank the current turn points."""
    reason: str = ""


# ── Strategy Interface ──────────────────────────────────────────────────────

class DiceStrategy(ABC):
    """Abstract base class for bot strategies."""

    @abstractmethod
    def choose_action(self, values: Tuple[int, ...]) -> Union[LockAction, BankAction]:
        """Given the five faces after the first roll, decide: lock and re-roll, or bank.

        Args:
            values: Current face values of the five dice

        Returns:
            LockAction to lock dice and re-roll the rest, or BankAction
        """
        ...


# ── MarginalValueStrategy ───────────────────────────────────────────────────

def marginal_values(values):
    """Points gained by one more die of each face present in the roll.

    Only faces that actually appear are considered, and only while the count
    can still grow (count + 1 <= 5). Returns {face: marginal} in ascending face
    order, including zero and negative marginals.
    """
    counts = Counter(values)
    marginals = {}
    for face in range(1, 7):
        count = counts[face]
        if count == 0 or count + 1 > NUM_DICE:
            continue
        marginals[face] = face_yield(face, count + 1) - face_yield(face, count)
    return marginals


class MarginalValueStrategy(DiceStrategy):
    """One-step greedy bot: commit to the face whose next die is worth the most.

    Decision logic:
    - A straight is banked as-is
    - Otherwise the face with the largest positive marginal value is locked
      (ties go to the lowest face) and the rest re-rolled
    - With no positive marginal anywhere, bank immediately

    It never looks beyond the immediate marginal yield, which keeps bot play
    deterministic for a given roll.
    """

    def choose_action(self, values):
        values = tuple(values)
        if is_straight(values, 1, 5) or is_straight(values, 2, 6):
            return BankAction(reason="Straight — banking it")

        best_face = None
        best_gain = 0
        for face, gain in marginal_values(values).items():
            if gain > best_gain:
                best_face, best_gain = face, gain

        if best_face is None:
            return BankAction(reason="Nothing worth chasing — banking")

        lock = tuple(i for i, v in enumerate(values) if v == best_face)
        return LockAction(
            face=best_face,
            lock=lock,
            reason=f"Locking {len(lock)}x {best_face} — next one is worth +{best_gain}",
        )


# ── Bot pacing ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class BotDelays:
    """Thinking delays before each bot step, in frames."""
    spin: int = 60          # before the first roll
    after_spin: int = 90    # before deciding what to lock
    show_locks: int = 15    # showing the locked dice before re-rolling
    end: int = 60           # before banking after the re-roll

    def for_phase(self, phase: TurnPhase) -> int:
        if phase == TurnPhase.SPIN:
            return self.spin
        if phase == TurnPhase.AFTER_SPIN:
            return self.after_spin
        return self.end


class BotPlayer(TurnController):
    """Drives a TurnEngine through the same actions a human would use.

    Each idle frame the bot waits for turn ownership, then counts up to the
    delay for the current phase before acting:
    - Spin: roll
    - AfterSpin: ask the strategy; lock and (after a short pause) re-roll, or bank
    - End: bank, without re-deciding on the new dice
    """

    def __init__(self, strategy: DiceStrategy | None = None, delays: BotDelays | None = None) -> None:
        self.strategy = strategy or MarginalValueStrategy()
        self.delays = delays or BotDelays()
        self.reset()

    def reset(self) -> None:
        self.timer = 0
        self.reason = ""
        self.showing_locks = False
        self._phase = None

    def tick(self, engine: TurnEngine) -> None:
        if not engine.can_act:
            self.timer = 0
            return

        if engine.phase != self._phase:
            self._phase = engine.phase
            self.timer = 0

        self.timer += 1

        # Pause to show the locked dice before re-rolling
        if self.showing_locks:
            if self.timer >= self.delays.show_locks:
                self.showing_locks = False
                self.timer = 0
                engine.roll_locked()
            return

        if self.timer < self.delays.for_phase(engine.phase):
            return
        self.timer = 0

        if engine.phase == TurnPhase.SPIN:
            self.reason = ""
            engine.roll()
        elif engine.phase == TurnPhase.AFTER_SPIN:
            self._decide(engine)
        elif engine.phase == TurnPhase.END:
            self.reason = f"Banking {engine.current_turn_points} after the re-roll"
            engine.bank()

    def _decide(self, engine: TurnEngine) -> None:
        action = self.strategy.choose_action(engine.face_values)
        self.reason = action.reason
        logger.debug("Bot decision on %s: %s", engine.face_values, action)
        if isinstance(action, BankAction):
            engine.bank()
            return
        for i in range(len(engine.dice)):
            if (i in action.lock) != engine.dice[i].locked:
                engine.toggle_lock(i)
        if engine.any_locked:
            self.showing_locks = True
        else:
            engine.bank()


# ── Headless play ───────────────────────────────────────────────────────────

INSTANT = RollTimings(min_ticks=0, max_ticks=0, stop_delay_ticks=0)
NO_DELAYS = BotDelays(spin=0, after_spin=0, show_locks=0, end=0)


def play_turn(strategy: DiceStrategy, rng=random) -> Tuple[int, Tuple[Tuple[int, ...], ...]]:
    """Play one bot turn with no animation.

    Args:
        strategy: The strategy to use for the lock decision
        rng: Random source with randint()

    Returns:
        (banked points, tuple of the rolls seen this turn)
    """
    values = tuple(rng.randint(1, 6) for _ in range(NUM_DICE))
    rolls = [values]
    action = strategy.choose_action(values)
    if isinstance(action, LockAction):
        values = tuple(v if i in action.lock else rng.randint(1, 6) for i, v in enumerate(values))
        rolls.append(values)
    return calculate_reward(values).reward, tuple(rolls)


def play_match(first: DiceStrategy, second: DiceStrategy, target_score: int = 500,
               rng=random, max_turns: int = 10000) -> Tuple[int, int]:
    """Alternate turns between two strategies until one reaches target_score.

    Returns:
        (index of the winner, 0 or 1; number of turns played in total)
    """
    strategies = (first, second)
    balances = [0, 0]
    for turn in range(max_turns):
        idx = turn % 2
        points, _ = play_turn(strategies[idx], rng)
        balances[idx] += points
        if balances[idx] >= target_score:
            return idx, turn + 1
    raise RuntimeError(f"No winner after {max_turns} turns")
