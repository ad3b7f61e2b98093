#!/usr/bin/env python3
"""
Dice Duel Bot Benchmark — Simulate bot turns and bot-vs-bot matches headlessly.

Usage: python ai_benchmark.py [--turns N] [--games N] [--target POINTS]
       python ai_benchmark.py --verbose --games 500
       python ai_benchmark.py --csv --turns 5000
"""
import argparse
import random
import statistics
import time

from ai import MarginalValueStrategy, play_match, play_turn


def benchmark_turns(strategy, num_turns, seed=0):
    """Play num_turns single turns and return (points list, re-roll count, elapsed)."""
    rng = random.Random(seed)
    points = []
    rerolls = 0
    t0 = time.perf_counter()
    for _ in range(num_turns):
        turn_points, rolls = play_turn(strategy, rng)
        points.append(turn_points)
        if len(rolls) > 1:
            rerolls += 1
    return points, rerolls, time.perf_counter() - t0


def benchmark_matches(strategy, num_games, target_score, seed=0):
    """Play num_games mirror matches and return (first-player wins, turn counts, elapsed)."""
    rng = random.Random(seed)
    first_wins = 0
    turns = []
    t0 = time.perf_counter()
    for _ in range(num_games):
        winner, match_turns = play_match(strategy, strategy, target_score=target_score, rng=rng)
        if winner == 0:
            first_wins += 1
        turns.append(match_turns)
    return first_wins, turns, time.perf_counter() - t0


def print_turn_results(points, rerolls, elapsed, verbose=False):
    avg = sum(points) / len(points)
    zeros = sum(1 for p in points if p == 0)
    print(f"  Turns: {len(points)}  avg={avg:7.1f}  max={max(points):5d}  "
          f"zero={zeros / len(points):5.1%}  re-rolled={rerolls / len(points):5.1%}  "
          f"({elapsed:.2f}s)")
    if verbose:
        stdev = statistics.stdev(points) if len(points) >= 2 else 0.0
        median = statistics.median(points)
        print(f"  {'':7s}stdev={stdev:7.1f}  median={median:5.0f}")


def print_match_results(first_wins, turns, elapsed, target_score, verbose=False):
    games = len(turns)
    avg = sum(turns) / games
    print(f"  Matches to {target_score}: {games}  first player wins={first_wins / games:5.1%}  "
          f"avg turns={avg:5.1f}  min={min(turns)}  max={max(turns)}  ({elapsed:.2f}s)")
    if verbose:
        stdev = statistics.stdev(turns) if games >= 2 else 0.0
        print(f"  {'':7s}stdev={stdev:5.1f}  median={statistics.median(turns):5.1f}")


def print_csv(points, rerolls, first_wins, turns, target_score):
    print("turns,avg_points,max_points,reroll_rate,games,target,first_win_rate,avg_match_turns")
    print(f"{len(points)},{sum(points) / len(points):.1f},{max(points)},"
          f"{rerolls / len(points):.3f},{len(turns)},{target_score},"
          f"{first_wins / len(turns):.3f},{sum(turns) / len(turns):.1f}")


def positive_int(text):
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def main(argv=None):
    parser = argparse.ArgumentParser(description="Dice Duel Bot Benchmark")
    parser.add_argument("--turns", type=positive_int, default=2000,
                        help="Number of single turns to simulate (default: 2000)")
    parser.add_argument("--games", type=positive_int, default=200,
                        help="Number of bot-vs-bot matches (default: 200)")
    parser.add_argument("--target", type=positive_int, default=500,
                        help="Match target score (default: 500)")
    parser.add_argument("--seed", type=int, default=0,
                        help="Random seed (default: 0)")
    parser.add_argument("--verbose", action="store_true",
                        help="Show extra statistics (stdev, median)")
    parser.add_argument("--csv", action="store_true",
                        help="Output results as CSV")
    args = parser.parse_args(argv)

    strategy = MarginalValueStrategy()
    points, rerolls, turn_elapsed = benchmark_turns(strategy, args.turns, args.seed)
    first_wins, turns, match_elapsed = benchmark_matches(strategy, args.games, args.target, args.seed)

    if args.csv:
        print_csv(points, rerolls, first_wins, turns, args.target)
        return

    print("Dice Duel Bot Benchmark — MarginalValue")
    print("=" * 80)
    print_turn_results(points, rerolls, turn_elapsed, verbose=args.verbose)
    print_match_results(first_wins, turns, match_elapsed, args.target, verbose=args.verbose)
    print("=" * 80)


if __name__ == "__main__":
    main()
