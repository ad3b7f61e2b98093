"""Game log for Dice Duel — records rolls, lock changes and banks for the current match.

Pure Python, no frontend dependency. Kept in memory only and cleared on
restart; it backs the turn history shown by the frontends.
"""
from __future__ import annotations

from dataclasses import dataclass

from game_engine import Side


@dataclass
class LogEntry:
    """A single logged game event."""
    turn: int                                   # per-side turn number, from 1
    side: Side
    event_type: str                             # "roll", "lock", "bank"
    dice_values: tuple[int, ...]
    locked_indices: tuple[int, ...] | None = None
    points: int | None = None                   # reward for rolls, banked points for banks
    balance: int | None = None                  # total after a bank
    respin: bool = False


class GameLog:
    """Accumulates LogEntry records during a match."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def log_roll(self, turn: int, side: Side, dice_values: list[int], points: int,
                 respin: bool = False) -> None:
        """Record a completed roll and its reward."""
        self.entries.append(LogEntry(
            turn=turn,
            side=side,
            event_type="roll",
            dice_values=tuple(dice_values),
            points=points,
            respin=respin,
        ))

    def log_lock_change(self, turn: int, side: Side, locked_indices: list[int], dice_values: list[int]) -> None:
        """Record a lock/unlock change."""
        self.entries.append(LogEntry(
            turn=turn,
            side=side,
            event_type="lock",
            dice_values=tuple(dice_values),
            locked_indices=tuple(locked_indices),
        ))

    def log_bank(self, turn: int, side: Side, points: int, balance: int, dice_values: list[int]) -> None:
        """Record a bank that ended the turn."""
        self.entries.append(LogEntry(
            turn=turn,
            side=side,
            event_type="bank",
            dice_values=tuple(dice_values),
            points=points,
            balance=balance,
        ))

    def get_bank_entries(self, side: Side | None = None) -> list[LogEntry]:
        """Return bank entries, for one side or both."""
        return [e for e in self.entries
                if e.event_type == "bank" and (side is None or e.side == side)]

    def clear(self) -> None:
        """Remove all entries."""
        self.entries = []
