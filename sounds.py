"""
SoundFeedback — Synthesized audio feedback for Dice Duel using pure Python.

Builds 16-bit mono PCM with math.sin into an array (no numpy) and maps the
engine's feedback intensities onto it: light → click, medium → chime,
heavy → fanfare. Every sound is rendered once at init so playback is instant.
"""
from __future__ import annotations

import math
import random
from array import array

import pygame

from feedback import HEAVY, LIGHT, MEDIUM, FeedbackSink

SAMPLE_RATE = 44100
_PEAK = 32767

_WAVEFORMS = {
    "sine": math.sin,
    "square": lambda phase: 1.0 if math.sin(phase) >= 0 else -1.0,
    "noise": lambda phase: random.uniform(-1.0, 1.0),
}


def _tone(duration_ms: int, freq: float = 440.0, waveform: str = "sine",
          volume: float = 0.3, fade_out: bool = True) -> bytes:
    """Render one tone (or noise burst) as signed 16-bit mono samples.

    The amplitude falls linearly to zero over the duration when fade_out is set.
    """
    count = int(SAMPLE_RATE * duration_ms / 1000)
    wave = _WAVEFORMS[waveform]
    step = 2 * math.pi * freq / SAMPLE_RATE
    samples = array("h")
    for i in range(count):
        envelope = 1.0 - i / count if fade_out else 1.0
        value = max(-1.0, min(1.0, wave(i * step) * volume * envelope))
        samples.append(int(value * _PEAK))
    return samples.tobytes()


def _notes(*freqs: float, note_ms: int = 175, volume: float = 0.25) -> bytes:
    """Concatenate sine notes, one per frequency."""
    return b"".join(_tone(note_ms, freq, "sine", volume) for freq in freqs)


class SoundFeedback(FeedbackSink):
    """Pre-renders and plays one sound per feedback intensity.

    Raises pygame.error at construction if no audio device is available;
    callers fall back to NullFeedback in that case.
    """

    def __init__(self, enabled: bool = True) -> None:
        if not pygame.mixer.get_init():
            pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1)
        self._enabled = enabled

        pcm = {
            # Die stop / lock click: short noise tick
            LIGHT: _tone(40, waveform="noise", volume=0.12),
            # Bank chime: C5 → E5
            MEDIUM: _notes(523.25, 659.25),
            # Match over / restart fanfare: C5 → E5 → G5
            HEAVY: _notes(523.25, 659.25, 783.99, note_ms=200),
        }
        self._sounds = {intensity: pygame.mixer.Sound(buffer=data) for intensity, data in pcm.items()}

    def toggle(self) -> bool:
        """Toggle sound on/off. Returns new enabled state."""
        self._enabled = not self._enabled
        return self._enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def trigger(self, intensity: str) -> None:
        if self._enabled:
            self._sounds[intensity].play()
