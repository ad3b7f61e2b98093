"""FrontendAdapter — Shared UI state management for Dice Duel frontends.

Builds the per-frame read-only projection of the match (MatchSnapshot),
pushes it to a presentation sink, routes human input to the coordinator, and
applies persisted settings. Pure Python — no terminal or audio dependency.

A frontend creates a FrontendAdapter wrapping a GameCoordinator and keeps only
rendering and input translation to itself.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from feedback import FeedbackSink, NullFeedback
from game_coordinator import GameCoordinator
from game_engine import Side, TurnPhase, any_rolling
from settings import load_settings, save_settings
from turn_engine import TurnEngine

logger = logging.getLogger(__name__)

FACE_RULES = [
    ("1-2-3-4-5", "Low straight = 1000"),
    ("2-3-4-5-6", "High straight = 1500"),
    ("Ones", "100 / 200 / 1000 / 2000 / 4000 for 1-5 dice"),
    ("Fives", "50 / 100 / 500 / 1000 / 2000 for 1-5 dice"),
    ("Others", "3 / 4 / 5 of a kind = face x 100 / 200 / 400"),
]


# ── Snapshot (read-only projection) ───────────────────────────────────────────

@dataclass(frozen=True)
class DieView:
    value: int
    locked: bool
    rolling: bool
    highlighted: bool


@dataclass(frozen=True)
class SideSnapshot:
    """What a frontend needs to draw one side."""
    side: Side
    phase: TurnPhase
    dice: tuple[DieView, ...]
    current_turn_points: int
    total_balance: int
    highlighted_faces: frozenset
    has_rolled: bool
    is_active: bool
    can_roll: bool
    can_roll_locked: bool
    can_toggle_lock: bool
    can_bank: bool


@dataclass(frozen=True)
class MatchSnapshot:
    human: SideSnapshot
    bot: SideSnapshot
    active_side: Side
    game_over: bool
    winner: Side | None
    target_score: int
    bot_reason: str
    speed: str
    sound_enabled: bool

    def side(self, side: Side) -> SideSnapshot:
        return self.human if side == Side.HUMAN else self.bot


def snapshot_side(engine: TurnEngine, active: bool) -> SideSnapshot:
    """Project one engine's state. Highlights only apply once the roll has settled."""
    settled = engine.rolls_this_turn > 0 and not any_rolling(engine.dice)
    highlighted = engine.highlighted_faces if settled else frozenset()
    dice = tuple(
        DieView(value=d.value, locked=d.locked, rolling=d.rolling,
                highlighted=d.value in highlighted and not d.rolling)
        for d in engine.dice
    )
    return SideSnapshot(
        side=engine.side,
        phase=engine.phase,
        dice=dice,
        current_turn_points=engine.current_turn_points,
        total_balance=engine.total_balance,
        highlighted_faces=highlighted,
        has_rolled=engine.rolls_this_turn > 0 or engine.spin_in_progress,
        is_active=active,
        can_roll=engine.can_roll,
        can_roll_locked=engine.can_roll_locked,
        can_toggle_lock=engine.can_toggle_lock,
        can_bank=engine.can_bank,
    )


# ── Frontend Adapter ──────────────────────────────────────────────────────────

class FrontendAdapter:
    """Shared UI state management for Dice Duel frontends.

    Wraps a GameCoordinator. The human side's input goes through the do_*
    methods; update() advances one frame and returns the events it saw.
    """

    def __init__(self, coordinator: GameCoordinator, feedback: FeedbackSink | None = None,
                 presenter: Callable[[MatchSnapshot], None] | None = None, settings_path=None):
        self.coordinator = coordinator
        self.feedback = feedback or coordinator.feedback or NullFeedback()
        self.presenter = presenter
        self.settings_path = settings_path

    # ── Settings ──────────────────────────────────────────────────────────

    def _save_setting(self, key, value):
        """Persist one changed preference, leaving every other saved key as it was."""
        settings = load_settings(self.settings_path)
        settings[key] = value
        save_settings(settings, self.settings_path)

    def toggle_sound(self):
        """Toggle sound and save."""
        self._save_setting("sound_enabled", self.feedback.toggle())

    def change_speed(self, direction):
        """Change bot speed. Returns True if speed changed."""
        if self.coordinator.change_speed(direction):
            self._save_setting("speed", self.coordinator.speed_name)
            return True
        return False

    # ── Human actions ─────────────────────────────────────────────────────

    def do_roll(self):
        """Roll for the human: first roll in Spin, locked re-roll in AfterSpin."""
        coord = self.coordinator
        if coord.human.phase == TurnPhase.AFTER_SPIN:
            return coord.request_roll_locked(Side.HUMAN)
        return coord.request_roll(Side.HUMAN)

    def do_toggle_lock(self, die_index):
        return self.coordinator.toggle_lock(Side.HUMAN, die_index)

    def do_bank(self):
        return self.coordinator.request_bank(Side.HUMAN)

    def do_restart(self):
        self.coordinator.restart_match()

    # ── Per-frame update ──────────────────────────────────────────────────

    def snapshot(self) -> MatchSnapshot:
        coord = self.coordinator
        return MatchSnapshot(
            human=snapshot_side(coord.human, coord.can_act(Side.HUMAN)),
            bot=snapshot_side(coord.bot, coord.can_act(Side.BOT)),
            active_side=coord.active_side,
            game_over=coord.game_over,
            winner=coord.winner,
            target_score=coord.target_score,
            bot_reason=coord.bot_reason,
            speed=coord.speed_name,
            sound_enabled=self.feedback.enabled,
        )

    def update(self):
        """Tick the coordinator, push a snapshot to the presenter, report events.

        Returns dict of events that occurred this frame:
            roll_started, roll_ended, turn_changed, game_over_triggered
        """
        coord = self.coordinator
        was_rolling = coord.is_rolling
        side_before = coord.active_side
        was_game_over = coord.game_over

        coord.tick()

        events = {
            "roll_started": coord.is_rolling and not was_rolling,
            "roll_ended": was_rolling and not coord.is_rolling,
            "turn_changed": coord.active_side != side_before,
            "game_over_triggered": coord.game_over and not was_game_over,
        }

        if self.presenter is not None:
            try:
                self.presenter(self.snapshot())
            except Exception:
                logger.warning("Presenter failed", exc_info=True)

        return events

    # ── Text helpers ──────────────────────────────────────────────────────

    def status_text(self):
        """One-line status for the current frame."""
        coord = self.coordinator
        if coord.game_over:
            who = "You win" if coord.winner == Side.HUMAN else "Bot wins"
            return f"{who}! Press N for a new match."
        if coord.active_side == Side.BOT:
            return "Bot's turn"
        phase = coord.human.phase
        if coord.human.spin_in_progress:
            return "Rolling..."
        if phase == TurnPhase.SPIN:
            return "Your turn — roll the dice"
        if phase == TurnPhase.AFTER_SPIN:
            if coord.human.any_locked:
                return "Re-roll the unlocked dice, or bank"
            return "Lock dice to re-roll, or bank"
        return "Bank your points"

    def turn_history(self, limit=8):
        """Recent bank entries as display lines, newest last."""
        lines = []
        for entry in self.coordinator.game_log.get_bank_entries()[-limit:]:
            dice_str = ",".join(str(v) for v in entry.dice_values)
            lines.append(f"{entry.side.value} T{entry.turn}: [{dice_str}] +{entry.points} = {entry.balance}")
        return lines
