#!/usr/bin/env python3
"""
Dice Duel TUI — Terminal-based frontend using Textual.

Keyboard-driven interface with ASCII dice for both sides, a scoring legend,
and the recent turn history. All game state comes from the FrontendAdapter's
per-frame snapshot.
"""
import logging
import random

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Footer, Header, Static
from textual import on

from frontend_adapter import FACE_RULES, FrontendAdapter
from game_coordinator import FPS
from game_engine import Side

logger = logging.getLogger(__name__)


# ── Box-art die faces ────────────────────────────────────────────────────────

# Pip slots per row: left, centre, right
PIP_LAYOUT = {
    1: ("   ", " o ", "   "),
    2: ("o  ", "   ", "  o"),
    3: ("o  ", " o ", "  o"),
    4: ("o o", "   ", "o o"),
    5: ("o o", " o ", "o o"),
    6: ("o o", "o o", "o o"),
}


def _box(rows, double=False):
    """Draw a 9x5 die from three pip rows."""
    h, v, corners = ("═", "║", "╔╗╚╝") if double else ("─", "│", "┌┐└┘")
    lines = [corners[0] + h * 7 + corners[1]]
    for row in rows:
        slots = ["●" if c == "o" else c for c in row]
        lines.append(f"{v} {slots[0]} {slots[1]} {slots[2]} {v}")
    lines.append(corners[2] + h * 7 + corners[3])
    return lines


BOX_ART = {v: _box(rows) for v, rows in PIP_LAYOUT.items()}
BOX_ART_LOCKED = {v: _box(rows, double=True) for v, rows in PIP_LAYOUT.items()}
BOX_ART_CUP = _box(("   ", " ? ", "   "))


def render_dice_box(side_snapshot):
    """Render 5 dice as box art, side by side, with lock labels underneath."""
    if not side_snapshot.has_rolled:
        lines = ["  ".join(BOX_ART_CUP[row] for _ in range(5)) for row in range(5)]
        lines.append("  ".join(f"   [{i+1}]   " for i in range(5)))
        return "\n".join(lines)

    lines = []
    for row in range(5):
        parts = []
        for die in side_snapshot.dice:
            # Rolling dice flicker through random faces; only the engine's value is real
            val = random.randint(1, 6) if die.rolling else die.value
            art = BOX_ART_LOCKED[val][row] if die.locked else BOX_ART[val][row]
            if die.highlighted:
                art = f"[bold yellow]{art}[/bold yellow]"
            parts.append(art)
        lines.append("  ".join(parts))

    label_parts = []
    for i, die in enumerate(side_snapshot.dice):
        lock_label = " LOCK" if die.locked else ""
        label_parts.append(f"  [{i+1}]{lock_label}".ljust(11))
    lines.append("".join(label_parts))
    return "\n".join(lines)


# ── Widgets ──────────────────────────────────────────────────────────────────

class SideDisplay(Static):
    """Renders one side: header line with points, then its dice."""

    def __init__(self, side, **kwargs):
        super().__init__(**kwargs)
        self.side = side

    def render(self):
        snap = self.app.match_frame.side(self.side)
        marker = "▸ " if snap.is_active else "  "
        header = (f"{marker}[bold]{self.side.value}[/bold]  "
                  f"Balance: {snap.total_balance}  "
                  f"Turn: {snap.current_turn_points}  "
                  f"[dim]({snap.phase.value})[/dim]")
        return header + "\n" + render_dice_box(snap)


class StatusDisplay(Static):
    """Shows the match status and the bot's reasoning."""

    def render(self):
        snap = self.app.match_frame
        lines = [f"[bold]{self.app.adapter.status_text()}[/bold]"]
        if snap.bot_reason and not snap.game_over:
            lines.append(f"[dim]Bot: {snap.bot_reason}[/dim]")
        sound = "on" if snap.sound_enabled else "off"
        lines.append(f"Target: {snap.target_score}  |  Bot speed: {snap.speed.capitalize()} (+/-)  |  Sound: {sound}")
        return "\n".join(lines)


class LegendDisplay(Static):
    """Scoring legend plus recent banks."""

    def render(self):
        lines = ["[bold]── SCORING ──[/bold]"]
        for name, rule in FACE_RULES:
            lines.append(f"  {name:<10} {rule}")
        lines.append("")
        lines.append("[bold]── RECENT TURNS ──[/bold]")
        history = self.app.adapter.turn_history()
        if not history:
            lines.append("  [dim]No turns banked yet[/dim]")
        lines.extend(f"  {line}" for line in history)
        return "\n".join(lines)


# ── Main App ─────────────────────────────────────────────────────────────────

class DiceDuelApp(App):
    """Dice Duel terminal UI application."""

    CSS = """
    Screen {
        layout: vertical;
    }

    #game-area {
        layout: horizontal;
        height: 1fr;
    }

    #dice-panel {
        width: 62;
        padding: 1 2;
    }

    #legend-panel {
        width: 1fr;
        padding: 1 2;
    }

    #human-display, #bot-display {
        height: auto;
        margin-bottom: 1;
    }

    #status-display {
        height: auto;
    }

    #buttons {
        height: auto;
        margin-top: 1;
    }

    #buttons Button {
        margin-right: 2;
    }
    """

    BINDINGS = [
        Binding("space", "roll", "Roll", show=True),
        Binding("1", "lock_1", "Lock 1"),
        Binding("2", "lock_2", "Lock 2"),
        Binding("3", "lock_3", "Lock 3"),
        Binding("4", "lock_4", "Lock 4"),
        Binding("5", "lock_5", "Lock 5"),
        Binding("b", "bank", "Bank", show=True),
        Binding("s", "sound", "Sound"),
        Binding("plus", "speed_up", "+Speed"),
        Binding("equals", "speed_up", "+Speed"),
        Binding("minus", "speed_down", "-Speed"),
        Binding("n", "new_match", "New match", show=True),
        Binding("escape", "quit", "Quit"),
    ]

    def __init__(self, coordinator, feedback=None):
        super().__init__()
        self.coordinator = coordinator
        self.adapter = FrontendAdapter(coordinator, feedback=feedback, presenter=self._present)
        self.match_frame = self.adapter.snapshot()
        self._tick_timer = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="game-area"):
            with Vertical(id="dice-panel"):
                yield SideDisplay(Side.BOT, id="bot-display")
                yield SideDisplay(Side.HUMAN, id="human-display")
                with Horizontal(id="buttons"):
                    yield Button("ROLL", id="roll-btn", variant="primary")
                    yield Button("BANK", id="bank-btn", variant="success")
                yield StatusDisplay(id="status-display")
            with Vertical(id="legend-panel"):
                yield LegendDisplay(id="legend-display")
        yield Footer()

    def on_mount(self):
        self.title = "Dice Duel"
        self._tick_timer = self.set_interval(1 / FPS, self._game_tick)

    def _present(self, snapshot):
        """Presentation sink: keep the frame every widget renders from."""
        self.match_frame = snapshot

    def _game_tick(self):
        """Per-frame game update."""
        self.adapter.update()
        self._refresh_display()

    def _after_action(self):
        self._present(self.adapter.snapshot())
        self._refresh_display()

    def _refresh_display(self):
        """Refresh all display widgets from the current frame."""
        try:
            snap = self.match_frame
            for widget_id in ("#human-display", "#bot-display"):
                self.query_one(widget_id, SideDisplay).refresh()
            self.query_one("#status-display", StatusDisplay).refresh()
            self.query_one("#legend-display", LegendDisplay).refresh()
            self.query_one("#roll-btn", Button).disabled = not (
                snap.human.can_roll or snap.human.can_roll_locked)
            self.query_one("#bank-btn", Button).disabled = not snap.human.can_bank
        except Exception:
            logger.debug("Refresh error", exc_info=True)

    # ── Actions ──────────────────────────────────────────────────────────

    def action_roll(self):
        self.adapter.do_roll()
        self._after_action()

    @on(Button.Pressed, "#roll-btn")
    def on_roll_button(self):
        self.action_roll()

    def action_bank(self):
        self.adapter.do_bank()
        self._after_action()

    @on(Button.Pressed, "#bank-btn")
    def on_bank_button(self):
        self.action_bank()

    def action_lock_1(self):
        self._do_lock(0)

    def action_lock_2(self):
        self._do_lock(1)

    def action_lock_3(self):
        self._do_lock(2)

    def action_lock_4(self):
        self._do_lock(3)

    def action_lock_5(self):
        self._do_lock(4)

    def _do_lock(self, index):
        self.adapter.do_toggle_lock(index)
        self._after_action()

    def action_sound(self):
        self.adapter.toggle_sound()
        self._after_action()

    def action_speed_up(self):
        self.adapter.change_speed(+1)
        self._after_action()

    def action_speed_down(self):
        self.adapter.change_speed(-1)
        self._after_action()

    def action_new_match(self):
        if self.coordinator.game_over:
            self.adapter.do_restart()
            self._after_action()


if __name__ == "__main__":
    from dice_duel import main
    main()
