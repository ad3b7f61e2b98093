"""
GameCoordinator Test Suite

Tests match arbitration between the human and bot engines without any
frontend dependency. Covers: setup and configuration errors, turn ownership,
bot turns, the win condition and its safety net, restart, observers,
speed control, and CLI parsing.

Conventions match existing test files:
- Class grouping by topic
- Scripted random source for exact faces
- No mocking — exercises the real engines
"""
import random

import pytest

from ai import INSTANT, NO_DELAYS
from feedback import HEAVY, LIGHT, MEDIUM, RecordingFeedback
from game_coordinator import (
    DEFAULT_TARGET_SCORE, SPEED_NAMES, SPEED_PRESETS, GameCoordinator, parse_args,
)
from game_engine import ConfigurationError, RollTimings, Side, TurnPhase


# ── Helpers ──────────────────────────────────────────────────────────────────

class ScriptedRandom:
    """Hands out queued die faces; every other range returns its lower bound.

    With the queue empty every face is a one.
    """

    def __init__(self, *faces):
        self.faces = list(faces)

    def queue(self, *faces):
        self.faces.extend(faces)

    def randint(self, a, b):
        if (a, b) == (1, 6) and self.faces:
            return self.faces.pop(0)
        return a


def make_coordinator(target_score=5000, **kwargs):
    """Coordinator with instant rolls, an instant bot, and scripted dice."""
    kwargs.setdefault("timings", INSTANT)
    kwargs.setdefault("rng", ScriptedRandom())
    coordinator = GameCoordinator(target_score=target_score, **kwargs)
    coordinator.bot_player.delays = NO_DELAYS
    return coordinator


def tick_until(coordinator, predicate, max_ticks=5000):
    """Tick the coordinator until predicate(coordinator) is True.
    Raises if max_ticks exceeded."""
    for _ in range(max_ticks):
        coordinator.tick()
        if predicate(coordinator):
            return
    raise TimeoutError(f"Predicate not satisfied after {max_ticks} ticks")


def human_turn(coordinator, *faces):
    """Roll the given faces for the human and bank them."""
    coordinator.human.rng.queue(*faces)
    assert coordinator.request_roll(Side.HUMAN)
    tick_until(coordinator, lambda c: not c.human.spin_in_progress)
    assert coordinator.request_bank(Side.HUMAN)


def bot_turn(coordinator, *faces):
    """Let the bot play a whole turn on the given faces."""
    coordinator.bot.rng.queue(*faces)
    tick_until(coordinator, lambda c: c.active_side == Side.HUMAN or c.game_over)


# ═══════════════════════════════════════════════════════════════════════════════
# 1. SETUP
# ═══════════════════════════════════════════════════════════════════════════════

class TestSetup:

    def test_defaults(self):
        c = GameCoordinator()
        assert c.target_score == DEFAULT_TARGET_SCORE == 500
        assert c.speed_name == "normal"
        assert c.active_side == Side.HUMAN
        assert c.game_over is False
        assert c.winner is None
        assert c.human.phase == TurnPhase.SPIN
        assert c.bot.phase == TurnPhase.SPIN
        assert c.bot.controller is c.bot_player
        assert c.human.controller is None

    def test_ownership_starts_with_human(self):
        c = make_coordinator()
        assert c.can_act(Side.HUMAN) is True
        assert c.can_act(Side.BOT) is False
        assert c.active_side == Side.HUMAN

    @pytest.mark.parametrize("target", [0, -100, "500", 2.5, True])
    def test_invalid_target_rejected(self, target):
        with pytest.raises(ConfigurationError):
            GameCoordinator(target_score=target)

    def test_unknown_speed_rejected(self):
        with pytest.raises(ConfigurationError):
            GameCoordinator(speed="ludicrous")

    def test_engines_share_log(self):
        c = make_coordinator()
        assert c.human.game_log is c.game_log
        assert c.bot.game_log is c.game_log


# ═══════════════════════════════════════════════════════════════════════════════
# 2. TURN OWNERSHIP
# ═══════════════════════════════════════════════════════════════════════════════

class TestTurnFlow:

    def test_bot_cannot_act_on_human_turn(self):
        c = make_coordinator()
        assert c.request_roll(Side.BOT) is False
        assert c.bot.spin_in_progress is False

    def test_human_bank_passes_turn(self):
        c = make_coordinator()
        human_turn(c, 1, 1, 2, 3, 4)
        assert c.active_side == Side.BOT
        assert c.human.total_balance == 200
        assert c.can_act(Side.HUMAN) is False
        assert c.request_roll(Side.HUMAN) is False

    def test_bot_plays_then_passes_back(self):
        c = make_coordinator()
        human_turn(c, 1, 1, 2, 3, 4)
        bot_turn(c, 2, 3, 4, 5, 6)
        assert c.active_side == Side.HUMAN
        assert c.bot.total_balance == 1500
        assert c.game_over is False

    def test_human_rolls_while_bot_idle(self):
        c = make_coordinator()
        c.human.rng.queue(5, 2, 2, 3, 4)
        c.request_roll(Side.HUMAN)
        assert c.is_rolling is True
        c.tick()
        assert c.is_rolling is False
        assert c.human.phase == TurnPhase.AFTER_SPIN
        assert c.bot.phase == TurnPhase.SPIN

    def test_toggle_lock_routed_to_side(self):
        c = make_coordinator()
        c.human.rng.queue(1, 1, 2, 3, 4)
        c.request_roll(Side.HUMAN)
        c.tick()
        assert c.toggle_lock(Side.HUMAN, 0) is True
        assert c.toggle_lock(Side.BOT, 0) is False
        assert c.request_roll_locked(Side.HUMAN) is True
        assert c.human.phase == TurnPhase.RESPIN

    def test_zero_turn_still_passes(self):
        c = make_coordinator()
        human_turn(c, 2, 2, 4, 4, 6)
        assert c.human.total_balance == 0
        assert c.active_side == Side.BOT

    def test_bot_waits_its_delays(self):
        c = make_coordinator(speed="normal")
        c.bot_player.delays = SPEED_PRESETS["normal"]
        human_turn(c, 1, 1, 2, 3, 4)
        for _ in range(SPEED_PRESETS["normal"].spin - 1):
            c.tick()
        assert c.bot.spin_in_progress is False
        c.tick()
        assert c.bot.spin_in_progress is True


# ═══════════════════════════════════════════════════════════════════════════════
# 3. WIN CONDITION
# ═══════════════════════════════════════════════════════════════════════════════

class TestWinCondition:

    def test_human_reaches_target(self):
        c = make_coordinator(target_score=500)
        human_turn(c, 1, 1, 1, 2, 3)
        assert c.game_over is True
        assert c.winner == Side.HUMAN
        assert c.active_side == Side.HUMAN
        assert c.human.enabled is False
        assert c.bot.enabled is False

    def test_exact_target_wins(self):
        c = make_coordinator(target_score=500)
        human_turn(c, 5, 5, 5, 2, 3)
        assert c.human.total_balance == 500
        assert c.winner == Side.HUMAN

    def test_bot_reaches_target(self):
        c = make_coordinator(target_score=1000)
        human_turn(c, 2, 2, 4, 4, 6)
        bot_turn(c, 2, 3, 4, 5, 6)
        assert c.game_over is True
        assert c.winner == Side.BOT

    def test_no_balance_change_after_game_over(self):
        c = make_coordinator(target_score=500)
        human_turn(c, 1, 1, 1, 2, 3)
        balances = (c.human.total_balance, c.bot.total_balance)
        assert c.request_roll(Side.HUMAN) is False
        assert c.request_bank(Side.HUMAN) is False
        assert c.request_roll(Side.BOT) is False
        assert c.request_bank(Side.BOT) is False
        for _ in range(100):
            c.tick()
        assert (c.human.total_balance, c.bot.total_balance) == balances
        assert c.bot.spin_in_progress is False

    def test_turn_report_ignored_after_game_over(self):
        c = make_coordinator(target_score=500)
        human_turn(c, 1, 1, 1, 2, 3)
        c.on_turn_end(Side.BOT, 9999)
        assert c.winner == Side.HUMAN

    def test_safety_net_catches_direct_balance_change(self):
        c = make_coordinator(target_score=500)
        c.bot.total_balance = 600
        c.tick()
        assert c.game_over is True
        assert c.winner == Side.BOT

    def test_safety_net_checks_human_first(self):
        c = make_coordinator(target_score=500)
        c.bot.total_balance = 600
        c.human.total_balance = 700
        c.check_win_condition()
        assert c.winner == Side.HUMAN

    def test_below_target_not_over(self):
        c = make_coordinator(target_score=500)
        c.human.total_balance = 499
        c.tick()
        assert c.game_over is False


# ═══════════════════════════════════════════════════════════════════════════════
# 4. RESTART
# ═══════════════════════════════════════════════════════════════════════════════

class TestRestart:

    def test_restart_resets_match(self):
        c = make_coordinator(target_score=1000)
        human_turn(c, 1, 1, 2, 3, 4)
        bot_turn(c, 2, 3, 4, 5, 6)
        assert c.game_over is True

        c.restart_match()
        assert c.game_over is False
        assert c.winner is None
        assert c.active_side == Side.HUMAN
        for engine in (c.human, c.bot):
            assert engine.total_balance == 0
            assert engine.current_turn_points == 0
            assert engine.phase == TurnPhase.SPIN
            assert engine.enabled is True
            assert not engine.any_locked
        assert c.game_log.entries == []

    def test_restart_keeps_settings(self):
        c = make_coordinator(target_score=800, speed="fast")
        c.restart_match()
        assert c.target_score == 800
        assert c.speed_name == "fast"

    def test_restart_mid_turn(self):
        c = make_coordinator()
        c.human.rng.queue(1, 1, 2, 3, 4)
        c.request_roll(Side.HUMAN)
        c.tick()
        c.toggle_lock(Side.HUMAN, 0)
        c.restart_match()
        assert c.human.phase == TurnPhase.SPIN
        assert c.request_roll(Side.HUMAN) is True

    def test_playable_after_restart(self):
        c = make_coordinator(target_score=500)
        human_turn(c, 1, 1, 1, 2, 3)
        c.restart_match()
        human_turn(c, 1, 2, 2, 3, 4)
        assert c.active_side == Side.BOT
        assert c.human.total_balance == 100


# ═══════════════════════════════════════════════════════════════════════════════
# 5. OBSERVERS AND FEEDBACK
# ═══════════════════════════════════════════════════════════════════════════════

class TestObservers:

    def test_notifications(self):
        completed, changes, overs = [], [], []
        c = make_coordinator(
            target_score=1000,
            on_turn_completed=lambda side, balance: completed.append((side, balance)),
            on_turn_change=changes.append,
            on_match_over=overs.append,
        )
        human_turn(c, 1, 1, 2, 3, 4)
        bot_turn(c, 2, 3, 4, 5, 6)
        assert completed == [(Side.HUMAN, 200), (Side.BOT, 1500)]
        assert changes == [Side.BOT]
        assert overs == [Side.BOT]

    def test_failing_observer_isolated(self):
        def boom(*args):
            raise RuntimeError("observer broke")

        c = make_coordinator(on_turn_completed=boom, on_turn_change=boom)
        human_turn(c, 1, 1, 2, 3, 4)
        assert c.active_side == Side.BOT
        assert c.human.total_balance == 200

    def test_feedback_on_transition_and_match_over(self):
        sink = RecordingFeedback()
        c = make_coordinator(target_score=1000, feedback=sink)
        human_turn(c, 1, 1, 2, 3, 4)
        assert sink.events[-2:] == [MEDIUM, LIGHT]
        bot_turn(c, 2, 3, 4, 5, 6)
        assert sink.events[-2:] == [MEDIUM, HEAVY]


# ═══════════════════════════════════════════════════════════════════════════════
# 6. SPEED CONTROL
# ═══════════════════════════════════════════════════════════════════════════════

class TestSpeedControl:

    def test_speed_names_ordered(self):
        assert SPEED_NAMES == ["slow", "normal", "fast"]
        assert set(SPEED_PRESETS) == set(SPEED_NAMES)

    def test_faster_presets_are_shorter(self):
        slow, normal, fast = (SPEED_PRESETS[n] for n in SPEED_NAMES)
        assert slow.spin > normal.spin > fast.spin
        assert slow.after_spin > normal.after_spin > fast.after_spin

    def test_change_speed(self):
        c = GameCoordinator(speed="normal")
        assert c.change_speed(+1) is True
        assert c.speed_name == "fast"
        assert c.bot_player.delays == SPEED_PRESETS["fast"]
        assert c.change_speed(+1) is False
        assert c.change_speed(-1) is True
        assert c.change_speed(-1) is True
        assert c.speed_name == "slow"
        assert c.change_speed(-1) is False


# ═══════════════════════════════════════════════════════════════════════════════
# 7. CLI PARSING
# ═══════════════════════════════════════════════════════════════════════════════

class TestCLIParsing:

    def test_defaults_left_for_settings(self):
        args = parse_args([])
        assert args.target is None
        assert args.speed is None
        assert args.seed is None
        assert args.no_sound is False
        assert args.log_level is None
        assert args.log_file is None

    def test_all_flags(self):
        args = parse_args(["--target", "1000", "--speed", "fast", "--seed", "7",
                           "--no-sound", "--log-level", "DEBUG", "--log-file", "duel.log"])
        assert args.target == 1000
        assert args.speed == "fast"
        assert args.seed == 7
        assert args.no_sound is True
        assert args.log_level == "DEBUG"
        assert args.log_file == "duel.log"

    def test_unknown_speed_exits(self):
        with pytest.raises(SystemExit):
            parse_args(["--speed", "warp"])


# ═══════════════════════════════════════════════════════════════════════════════
# 8. INTEGRATION
# ═══════════════════════════════════════════════════════════════════════════════

class TestIntegration:

    def test_seeded_match_runs_to_completion(self):
        """A whole match with real dice, a human who always banks, and animated rolls."""
        c = GameCoordinator(target_score=1500, speed="fast", rng=random.Random(3),
                            timings=RollTimings(2, 4, 1))
        for _ in range(200000):
            if c.game_over:
                break
            if c.can_act(Side.HUMAN):
                if c.human.can_roll:
                    c.request_roll(Side.HUMAN)
                elif c.human.can_bank:
                    c.request_bank(Side.HUMAN)
            c.tick()
        assert c.game_over is True
        assert c.winner in (Side.HUMAN, Side.BOT)
        assert c.engines[c.winner].total_balance >= 1500
