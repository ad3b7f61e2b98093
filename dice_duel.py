#!/usr/bin/env python3
"""
Entry point for Dice Duel.

Usage:
    python dice_duel.py                       # Terminal UI, saved settings
    python dice_duel.py --target 1000         # Longer match
    python dice_duel.py --speed fast --seed 7 # Fast bot, reproducible dice
    python dice_duel.py --log-level DEBUG --log-file duel.log

Command-line options override ~/.dice_duel_settings.json.
"""
import logging
import random
import sys

import pygame

from feedback import NullFeedback
from game_coordinator import GameCoordinator, parse_args
from game_engine import ConfigurationError
from settings import load_settings

logger = logging.getLogger(__name__)


def configure_logging(level_name, log_file=None):
    """Set up root logging. The TUI owns the terminal, so prefer a file when given."""
    level = getattr(logging, str(level_name).upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        filename=log_file,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def make_feedback(sound_enabled):
    """Build the sound sink, falling back to silence when audio is unavailable."""
    if not sound_enabled:
        return NullFeedback()
    try:
        from sounds import SoundFeedback
        return SoundFeedback()
    except pygame.error:
        logger.warning("Audio unavailable, continuing without sound", exc_info=True)
        return NullFeedback()


def build_coordinator(args, settings, feedback=None):
    """Create the GameCoordinator from CLI args, falling back to saved settings.

    Raises:
        ConfigurationError: If the target or speed is invalid.
    """
    target = args.target if args.target is not None else settings["target_score"]
    speed = args.speed if args.speed is not None else settings["speed"]
    rng = random.Random(args.seed) if args.seed is not None else None
    return GameCoordinator(target_score=target, speed=speed, feedback=feedback, rng=rng)


def main(argv=None):
    args = parse_args(argv)
    settings = load_settings()
    configure_logging(args.log_level or settings["log_level"], args.log_file)

    sound_enabled = bool(settings["sound_enabled"]) and not args.no_sound
    feedback = make_feedback(sound_enabled)

    try:
        coordinator = build_coordinator(args, settings, feedback)
    except ConfigurationError as e:
        logger.error("Cannot start: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    from tui import DiceDuelApp
    app = DiceDuelApp(coordinator=coordinator, feedback=feedback)
    app.run()


if __name__ == "__main__":
    main()
