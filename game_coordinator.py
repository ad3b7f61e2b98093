"""
GameCoordinator — Match arbitration between the human and bot turn engines.

Owns turn ownership, the win condition, restart, and the per-frame tick that
drives both engines. Frontends read coordinator properties to decide what to
render and call the request_* methods in response to user input.
"""
from __future__ import annotations

import argparse
import logging
from typing import Callable

from ai import BotDelays, BotPlayer, DiceStrategy
from feedback import HEAVY, LIGHT, FeedbackSink, fire_feedback
from game_engine import ConfigurationError, RollTimings, Side
from game_log import GameLog
from turn_engine import TurnEngine

logger = logging.getLogger(__name__)

FPS = 30
DEFAULT_TARGET_SCORE = 500

# Speed presets for bot pacing, in frames at 30 FPS
SPEED_PRESETS = {
    "slow":   BotDelays(spin=90, after_spin=135, show_locks=30, end=90),
    "normal": BotDelays(spin=60, after_spin=90, show_locks=15, end=60),
    "fast":   BotDelays(spin=15, after_spin=20, show_locks=6, end=15),
}
SPEED_NAMES = ["slow", "normal", "fast"]


def _notify(callback: Callable | None, *args) -> None:
    """Call an external observer, isolating the match from its failures."""
    if callback is None:
        return
    try:
        callback(*args)
    except Exception:
        logger.warning("Observer %r failed", callback, exc_info=True)


class GameCoordinator:
    """Arbitrates a two-sided match: who may act, and when the match is won.

    The two engines never see each other; every turn report comes through
    on_turn_end(), which is the single place balances are compared against
    the target.
    """

    def __init__(
        self,
        target_score: int = DEFAULT_TARGET_SCORE,
        speed: str = "normal",
        bot_strategy: DiceStrategy | None = None,
        feedback: FeedbackSink | None = None,
        timings: RollTimings | None = None,
        rng=None,
        on_turn_completed: Callable[[Side, int], None] | None = None,
        on_turn_change: Callable[[Side], None] | None = None,
        on_match_over: Callable[[Side], None] | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            target_score: Banked total that wins the match.
            speed: Bot pacing preset name ("slow", "normal", "fast").
            bot_strategy: Strategy for the bot; defaults to MarginalValueStrategy.
            feedback: Feedback sink shared by both engines.
            timings: Roll animation timings shared by both engines.
            rng: Random source with randint(); defaults to the random module.
            on_turn_completed: Observer called with (side, new_balance) after each bank.
            on_turn_change: Observer called with the new turn holder.
            on_match_over: Observer called with the winning side.

        Raises:
            ConfigurationError: On a non-positive target or unknown speed.
        """
        if not isinstance(target_score, int) or isinstance(target_score, bool) or target_score <= 0:
            logger.error("Invalid target score %r", target_score)
            raise ConfigurationError(f"Target score must be a positive integer, got {target_score!r}.")
        if speed not in SPEED_PRESETS:
            logger.error("Unknown speed preset %r", speed)
            raise ConfigurationError(f"Speed must be one of {SPEED_NAMES}, got {speed!r}.")

        self.target_score = target_score
        self.speed_name = speed
        self.feedback = feedback
        self.on_turn_completed = on_turn_completed
        self.on_turn_change = on_turn_change
        self.on_match_over = on_match_over

        self.active_side = Side.HUMAN
        self.game_over = False
        self.winner: Side | None = None

        self.game_log = GameLog()
        self.bot_player = BotPlayer(bot_strategy, SPEED_PRESETS[speed])
        self.engines = {
            Side.HUMAN: TurnEngine(
                Side.HUMAN, can_act=self.can_act, on_turn_end=self.on_turn_end,
                feedback=feedback, timings=timings, rng=rng, game_log=self.game_log,
            ),
            Side.BOT: TurnEngine(
                Side.BOT, can_act=self.can_act, on_turn_end=self.on_turn_end,
                controller=self.bot_player, feedback=feedback, timings=timings,
                rng=rng, game_log=self.game_log,
            ),
        }

    # ── Properties ────────────────────────────────────────────────────────

    @property
    def human(self) -> TurnEngine:
        return self.engines[Side.HUMAN]

    @property
    def bot(self) -> TurnEngine:
        return self.engines[Side.BOT]

    @property
    def is_rolling(self) -> bool:
        """Whether either side has a roll in progress."""
        return any(engine.spin_in_progress for engine in self.engines.values())

    @property
    def bot_reason(self) -> str:
        return self.bot_player.reason

    def can_act(self, side: Side) -> bool:
        """Whether `side` owns the turn and the match is still running."""
        return side == self.active_side and not self.game_over

    # ── Action methods (called by frontends on input) ─────────────────────

    def request_roll(self, side: Side) -> bool:
        return self.engines[side].roll()

    def request_roll_locked(self, side: Side) -> bool:
        return self.engines[side].roll_locked()

    def toggle_lock(self, side: Side, die_index: int) -> bool:
        return self.engines[side].toggle_lock(die_index)

    def request_bank(self, side: Side) -> bool:
        return self.engines[side].bank()

    def restart_match(self) -> None:
        """Start a fresh match, preserving speed and target settings."""
        self.game_over = False
        self.winner = None
        self.active_side = Side.HUMAN
        self.game_log.clear()
        for engine in self.engines.values():
            engine.restart()
        logger.info("Match restarted (target %d)", self.target_score)

    def change_speed(self, direction: int) -> bool:
        """Change bot speed. direction=+1 for faster, -1 for slower.

        Returns True if speed actually changed, False if already at limit.
        """
        idx = SPEED_NAMES.index(self.speed_name)
        new_idx = idx + direction
        if 0 <= new_idx < len(SPEED_NAMES):
            self.speed_name = SPEED_NAMES[new_idx]
            self.bot_player.delays = SPEED_PRESETS[self.speed_name]
            return True
        return False

    # ── Turn reports ──────────────────────────────────────────────────────

    def on_turn_end(self, side: Side, balance: int) -> None:
        """Called by an engine after it banks. Declares the winner or passes the turn."""
        if self.game_over:
            return
        _notify(self.on_turn_completed, side, balance)
        if balance >= self.target_score:
            self._end_match(side)
            return
        self.active_side = side.other
        fire_feedback(self.feedback, LIGHT)
        logger.info("%s's turn", self.active_side.value)
        _notify(self.on_turn_change, self.active_side)

    def check_win_condition(self) -> None:
        """Safety net: re-check both banked totals against the target."""
        if self.game_over:
            return
        for side in (Side.HUMAN, Side.BOT):
            if self.engines[side].total_balance >= self.target_score:
                self._end_match(side)
                return

    # ── Frame update ──────────────────────────────────────────────────────

    def tick(self) -> None:
        """Advance one frame: both engines, then the win-condition safety net."""
        for engine in self.engines.values():
            engine.tick()
        self.check_win_condition()

    # ── Internal ──────────────────────────────────────────────────────────

    def _end_match(self, winner: Side) -> None:
        self.game_over = True
        self.winner = winner
        for engine in self.engines.values():
            engine.disable()
        fire_feedback(self.feedback, HEAVY)
        logger.info("%s wins with %d", winner.value, self.engines[winner].total_balance)
        _notify(self.on_match_over, winner)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Optional list of args (for testing). None uses sys.argv.

    Returns:
        Parsed argparse.Namespace. Options left as None fall back to saved settings.
    """
    parser = argparse.ArgumentParser(description="Dice Duel — five dice against the bot")
    parser.add_argument("--target", type=int, default=None, metavar="POINTS",
                        help=f"Banked total that wins the match (default: {DEFAULT_TARGET_SCORE})")
    parser.add_argument("--speed", choices=SPEED_NAMES, default=None,
                        help="Bot playback speed (default: normal)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed the dice for a reproducible match")
    parser.add_argument("--no-sound", action="store_true", help="Disable sound feedback")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default=None,
                        help="Logging level (default: WARNING)")
    parser.add_argument("--log-file", default=None, metavar="PATH",
                        help="Write logs to this file instead of stderr")
    return parser.parse_args(argv)
