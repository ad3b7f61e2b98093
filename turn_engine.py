"""
TurnEngine — one side's turn state machine.

Owns the five dice, the running turn points and the banked balance for a
single side, and moves through Spin → AfterSpin → (ReSpin → End) → Spin.
Rolls are frame-ticked: an action starts a roll, tick() advances it, and the
phase only changes once every die in the roll has stopped.

The engine never decides anything by itself. Who acts is pluggable: a human
frontend calls the action methods directly, and a TurnController (the bot)
is given a chance to act on every idle tick.
"""
from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from typing import Callable

from feedback import HEAVY, LIGHT, MEDIUM, FeedbackSink, fire_feedback
from game_engine import (
    RollTimings,
    Score,
    Side,
    TurnPhase,
    advance_dice,
    any_locked,
    any_rolling,
    calculate_reward,
    clear_locks,
    create_dice,
    face_values,
    locked_indices,
    start_roll,
    toggle_die_lock,
    validate_dice,
)
from game_log import GameLog

logger = logging.getLogger(__name__)


class TurnController(ABC):
    """Decision source that drives a TurnEngine through its public actions."""

    @abstractmethod
    def tick(self, engine: TurnEngine) -> None:
        """Called once per idle frame (no roll in progress)."""
        ...

    def reset(self) -> None:
        """Forget any in-flight decision. Called on restart."""


class TurnEngine:
    """State machine for one side's turns.

    Every action rechecks turn ownership (via the can_act callback) and the
    reentrancy guard, and returns True only if it was accepted. Rejected
    actions are silent no-ops: they come from stale UI, not program faults.
    """

    def __init__(
        self,
        side: Side,
        can_act: Callable[[Side], bool] | None = None,
        on_turn_end: Callable[[Side, int], None] | None = None,
        controller: TurnController | None = None,
        feedback: FeedbackSink | None = None,
        timings: RollTimings | None = None,
        rng=None,
        dice=None,
        game_log: GameLog | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            side: Which side this engine plays for.
            can_act: Ownership query, called before every action. None means always allowed.
            on_turn_end: Called with (side, total_balance) after every bank.
            controller: Decision source; None for a human-driven side.
            feedback: Best-effort feedback sink.
            timings: Roll animation durations in frames.
            rng: Random source with randint(); defaults to the random module.
            dice: Optional initial dice tuple (must have exactly five dice).
            game_log: Optional log to record rolls, locks and banks.

        Raises:
            ConfigurationError: If the dice tuple isn't exactly five dice.
        """
        self.side = side
        self._can_act = can_act
        self._on_turn_end = on_turn_end
        self.controller = controller
        self.feedback = feedback
        self.timings = timings or RollTimings()
        self.rng = rng or random
        self.game_log = game_log

        self.dice = validate_dice(dice if dice is not None else create_dice(rng=self.rng))
        self.phase = TurnPhase.SPIN
        self.current_turn_points = 0
        self.total_balance = 0
        self.spin_in_progress = False
        self.last_score: Score | None = None
        self.rolls_this_turn = 0
        self.turn_number = 1
        self.enabled = True

    # ── Queries ───────────────────────────────────────────────────────────

    @property
    def can_act(self) -> bool:
        """Whether this side may act right now (enabled and owns the turn)."""
        if not self.enabled:
            return False
        if self._can_act is None:
            return True
        return self._can_act(self.side)

    @property
    def face_values(self) -> tuple[int, ...]:
        return face_values(self.dice)

    @property
    def highlighted_faces(self) -> frozenset:
        return self.last_score.highlighted_faces if self.last_score else frozenset()

    @property
    def any_locked(self) -> bool:
        return any_locked(self.dice)

    @property
    def can_roll(self) -> bool:
        return self.phase == TurnPhase.SPIN and not self.spin_in_progress and self.can_act

    @property
    def can_roll_locked(self) -> bool:
        return (self.phase == TurnPhase.AFTER_SPIN and not self.spin_in_progress
                and self.any_locked and self.can_act)

    @property
    def can_toggle_lock(self) -> bool:
        return (self.phase == TurnPhase.AFTER_SPIN and not self.spin_in_progress
                and not any_rolling(self.dice) and self.can_act)

    @property
    def can_bank(self) -> bool:
        return (self.phase in (TurnPhase.AFTER_SPIN, TurnPhase.END)
                and not self.spin_in_progress and self.can_act)

    # ── Actions ───────────────────────────────────────────────────────────

    def roll(self) -> bool:
        """Start the first roll of a turn (Spin phase only)."""
        if not self.can_roll:
            logger.debug("%s: roll ignored in %s", self.side.value, self.phase.value)
            return False
        fire_feedback(self.feedback, LIGHT)
        self.current_turn_points = 0
        self._start_roll()
        return True

    def roll_locked(self) -> bool:
        """Re-roll the unlocked dice, keeping the locked ones (AfterSpin with a lock only)."""
        if not self.can_roll_locked:
            logger.debug("%s: re-roll ignored in %s", self.side.value, self.phase.value)
            return False
        fire_feedback(self.feedback, LIGHT)
        self.phase = TurnPhase.RESPIN
        self._start_roll()
        return True

    def toggle_lock(self, die_index: int) -> bool:
        """Lock or unlock one die (AfterSpin only, never during a roll)."""
        if (not self.can_toggle_lock or not isinstance(die_index, int)
                or not (0 <= die_index < len(self.dice))):
            logger.debug("%s: lock toggle on die %s ignored", self.side.value, die_index)
            return False
        self.dice = toggle_die_lock(self.dice, die_index)
        fire_feedback(self.feedback, LIGHT)
        if self.game_log is not None:
            self.game_log.log_lock_change(self.turn_number, self.side,
                                          list(locked_indices(self.dice)), list(self.face_values))
        return True

    def bank(self) -> bool:
        """Bank the turn points, end the turn, and report the new balance upstream."""
        if not self.can_bank:
            logger.debug("%s: bank ignored in %s", self.side.value, self.phase.value)
            return False
        banked = self.current_turn_points
        self.total_balance += banked
        self.current_turn_points = 0
        self.dice = clear_locks(self.dice)
        self.phase = TurnPhase.SPIN
        self.rolls_this_turn = 0
        fire_feedback(self.feedback, MEDIUM)
        if self.game_log is not None:
            self.game_log.log_bank(self.turn_number, self.side, banked,
                                   self.total_balance, list(self.face_values))
        logger.info("%s banked %d (balance %d)", self.side.value, banked, self.total_balance)
        self.turn_number += 1
        if self._on_turn_end is not None:
            self._on_turn_end(self.side, self.total_balance)
        return True

    def disable(self) -> None:
        """Stop accepting actions. A roll already in progress still finishes, but is not scored."""
        self.enabled = False

    def restart(self) -> None:
        """Zero every field and return to a fresh Spin phase."""
        fire_feedback(self.feedback, HEAVY)
        self.dice = create_dice(rng=self.rng)
        self.phase = TurnPhase.SPIN
        self.current_turn_points = 0
        self.total_balance = 0
        self.spin_in_progress = False
        self.last_score = None
        self.rolls_this_turn = 0
        self.turn_number = 1
        self.enabled = True
        if self.controller is not None:
            self.controller.reset()

    # ── Frame update ──────────────────────────────────────────────────────

    def tick(self) -> None:
        """Advance one frame: move an in-progress roll along, or let the controller act."""
        if self.spin_in_progress:
            self.dice, stopped = advance_dice(self.dice, self.rng)
            for _ in stopped:
                fire_feedback(self.feedback, LIGHT)
            if not any_rolling(self.dice):
                self._complete_roll()
            return

        if self.controller is not None and self.enabled:
            self.controller.tick(self)

    # ── Internal ──────────────────────────────────────────────────────────

    def _start_roll(self) -> None:
        self.spin_in_progress = True
        self.dice = start_roll(self.dice, self.timings, self.rng)

    def _complete_roll(self) -> None:
        """Called once every die in the roll has stopped."""
        self.spin_in_progress = False
        if not self.enabled:
            # Completion is detached once the side is disabled (match over).
            return
        respin = self.phase == TurnPhase.RESPIN
        self.last_score = calculate_reward(self.dice)
        self.current_turn_points = self.last_score.reward
        self.rolls_this_turn += 1
        self.phase = TurnPhase.END if respin else TurnPhase.AFTER_SPIN
        if self.game_log is not None:
            self.game_log.log_roll(self.turn_number, self.side, list(self.face_values),
                                   self.current_turn_points, respin=respin)
        logger.debug("%s rolled %s for %d", self.side.value, self.face_values, self.current_turn_points)
