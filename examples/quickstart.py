"""
Quickstart example for Rival Sweeper.

This script demonstrates basic usage of the rival strategies.
"""

import random

from rivalsweeper import (
    GameState,
    RivalContext,
    analyze_board,
    board_from_rows,
    format_board,
    format_possibility_flags,
    generate_hidden_clues,
    registry,
    run_strategy_many_tests,
)
from rivalsweeper.analysis import BOARD_PRESETS


def main():
    print("=" * 60)
    print("Rival Sweeper - Quickstart Example")
    print("=" * 60)

    # Example 1: Deduction on a small board
    print("\n1. Deduction on a hand-made 4x4 board...")
    print("-" * 60)

    board = board_from_rows([
        "aRNR",
        "RnRA",
        "NAHa",
        "ARNR",
    ])
    print(format_board(board, reveal_all=True))
    print()
    print(format_possibility_flags(board, analyze_board(board)))

    # Example 2: One rival turn
    print("\n2. One reasoning rival turn...")
    print("-" * 60)

    rng = random.Random(42)
    strategy = registry.create("reasoning", rng=rng)
    hidden = generate_hidden_clues(board, rng)
    picks = strategy.select_tiles_to_reveal(GameState(board=board), hidden, RivalContext())
    for i, tile in enumerate(picks, start=1):
        print(f"{i}. {tile.position} -> {tile.faction}")
    print(f"Guaranteed picks: {strategy.guaranteed_picks}")
    print(f"Priority picks: {strategy.priority_picks}")
    print(f"Monte Carlo runs: {strategy.monte_carlo_runs}")

    # Example 3: Compare strategies on the small preset
    print("\n3. Strategy comparison (small preset, 20 turns each)...")
    print("-" * 60)

    w, h, counts = BOARD_PRESETS["small"]
    for name in registry.available_types():
        results = run_strategy_many_tests(name, w, h, counts, runs=20, seed=0)
        print(
            f"{name:13s} rival hits/turn: {results['avg_rival_hits']:.2f}  "
            f"hazard rate: {results['hazard_hit_rate']*100:5.1f}%  "
            f"fast path: {results['fast_path_share']*100:5.1f}%"
        )

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()
