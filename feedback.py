"""
Feedback sinks — intensity-tagged, fire-and-forget feedback for game events.

The engine fires "light", "medium" or "heavy" at rolls, die stops, lock
toggles, banks, turn transitions and match end. Sinks are best-effort: a
failing sink is logged and otherwise ignored.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

LIGHT = "light"
MEDIUM = "medium"
HEAVY = "heavy"
INTENSITIES = (LIGHT, MEDIUM, HEAVY)


class FeedbackSink(ABC):
    """Abstract feedback interface — each frontend provides its own implementation."""

    @abstractmethod
    def trigger(self, intensity: str) -> None: ...

    @abstractmethod
    def toggle(self) -> bool: ...

    @property
    @abstractmethod
    def enabled(self) -> bool: ...


class NullFeedback(FeedbackSink):
    """No-op feedback for headless play, tests, and machines without audio."""

    def __init__(self, enabled: bool = False) -> None:
        self._enabled = enabled

    def trigger(self, intensity: str) -> None:
        pass

    def toggle(self) -> bool:
        self._enabled = not self._enabled
        return self._enabled

    @property
    def enabled(self) -> bool:
        return self._enabled


class RecordingFeedback(NullFeedback):
    """Keeps every intensity it was given, in order."""

    def __init__(self) -> None:
        super().__init__(enabled=True)
        self.events: list[str] = []

    def trigger(self, intensity: str) -> None:
        self.events.append(intensity)


def fire_feedback(sink: FeedbackSink | None, intensity: str) -> None:
    """Send intensity to sink, never letting a sink failure reach the caller."""
    if sink is None:
        return
    if intensity not in INTENSITIES:
        logger.warning("Unknown feedback intensity %r", intensity)
        return
    try:
        sink.trigger(intensity)
    except Exception:
        logger.warning("Feedback sink %s failed on %r", type(sink).__name__, intensity, exc_info=True)
