"""Analysis and benchmarking tools for the rival strategies."""

import random
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .engine import (
    ALLY,
    FACTIONS,
    HAZARD,
    NEUTRAL,
    RIVAL,
    Board,
    create_board,
    format_board,
    reveal_tile,
)
from .possibility import ExclusionAnalysis, analyze_board
from .signals import generate_hidden_clues
from .strategies import DeductiveStrategy, GameState, RivalContext, registry

# Standard board presets: (width, height, {faction: count}).
BOARD_PRESETS: Dict[str, Tuple[int, int, Dict[str, int]]] = {
    "small": (6, 6, {ALLY: 10, RIVAL: 10, NEUTRAL: 12, HAZARD: 4}),
    "medium": (9, 9, {ALLY: 22, RIVAL: 22, NEUTRAL: 29, HAZARD: 8}),
    "large": (12, 10, {ALLY: 34, RIVAL: 34, NEUTRAL: 40, HAZARD: 12}),
}


def format_possibility_flags(
    board: Board,
    analysis: Optional[ExclusionAnalysis] = None,
    *,
    show_coords: bool = True,
) -> str:
    """
    Format the deduction state of a board as a human-readable grid.

    Args:
        board: Board to describe.
        analysis: Possibility analysis of ``board``; computed when omitted.
        show_coords: If True, include coordinate labels and a header.

    Returns:
        A text grid where revealed tiles show their adjacency count, ``R``
        marks a guaranteed rival, ``x`` a tile ruled out as rival, ``?`` an
        ambiguous tile and a blank an absent hole.
    """
    if analysis is None:
        analysis = analyze_board(board)
    guaranteed = analysis.guaranteed_positions()
    w, h = board.width, board.height

    def cell_char(x: int, y: int) -> str:
        tile = board.tiles.get((x, y))
        if tile is None or tile.faction not in FACTIONS:
            return " "
        if tile.revealed:
            return str(tile.adjacency_count)
        if tile.position in guaranteed:
            return "R"
        if tile.position in analysis.ruled_out_rivals:
            return "x"
        return "?"

    lines: List[str] = []
    if show_coords:
        header = " ".join(f"{x:2d}" for x in range(w))
        lines.append("   " + header)
        lines.append("   " + "-" * (3 * w - 1))

    for y in range(h):
        row = " ".join(f" {cell_char(x, y)}" for x in range(w))
        lines.append(f"{y:2d} |" + row if show_coords else row)

    return "\n".join(lines)


def reveal_random_ally_tiles(board: Board, count: int, rng: random.Random) -> Board:
    """Reveal ``count`` random unrevealed tiles on the ally's behalf."""
    positions = [t.position for t in board.unrevealed_tiles()]
    for pos in rng.sample(positions, min(count, len(positions))):
        board = reveal_tile(board, pos, ALLY)
    return board


def run_strategy_single_test(
    strategy_name: str,
    width: int,
    height: int,
    counts: Dict[str, int],
    *,
    ally_reveals: int = 6,
    seed: Optional[int] = None,
    special_behaviors: Optional[Dict[str, object]] = None,
    show_boards: bool = False,
) -> Dict[str, object]:
    """
    Play one rival turn with a named strategy on a fresh random board.

    Args:
        strategy_name: Registered strategy name.
        width: Board width.
        height: Board height.
        counts: Faction -> number of tiles.
        ally_reveals: How many random tiles the ally reveals before the rival moves.
        seed: Seed for every random draw in the test.
        special_behaviors: Level behaviour mapping for the rival context.
        show_boards: If True, print the board and the deduction grid.

    Returns:
        Metrics dict with "tiles_selected", "rival_hits", "hazard_hit",
        "ending_faction", "guaranteed_picks", "priority_picks" and "selection".
    """
    rng = random.Random(seed)
    board = create_board(width, height, counts, rng)
    board = reveal_random_ally_tiles(board, ally_reveals, rng)

    strategy = registry.create(strategy_name, rng=rng)
    context = RivalContext.from_special_behaviors(special_behaviors)
    hidden = generate_hidden_clues(board, rng)
    selection = strategy.select_tiles_to_reveal(GameState(board=board), hidden, context)

    if show_boards:
        print(f"Strategy: {strategy.name}")
        print("Board (factions visible):")
        print(format_board(board, reveal_all=True))
        print()
        print("Deduction grid:")
        print(format_possibility_flags(board))
        print()
        print(f"Selected: {[(t.position, t.faction) for t in selection]}")

    guaranteed_picks = 0
    priority_picks = len(selection)
    if isinstance(strategy, DeductiveStrategy):
        guaranteed_picks = strategy.guaranteed_picks
        priority_picks = strategy.priority_picks

    rival_hits = sum(1 for t in selection if t.faction == RIVAL)
    ending = selection[-1].faction if selection and selection[-1].faction != RIVAL else "none"

    return {
        "tiles_selected": len(selection),
        "rival_hits": rival_hits,
        "hazard_hit": int(any(t.faction == HAZARD for t in selection)),
        "ending_faction": ending,
        "guaranteed_picks": guaranteed_picks,
        "priority_picks": priority_picks,
        "selection": [t.position for t in selection],
    }


def run_strategy_many_tests(
    strategy_name: str,
    width: int,
    height: int,
    counts: Dict[str, int],
    runs: int,
    *,
    ally_reveals: int = 6,
    seed: Optional[int] = None,
) -> Dict[str, float]:
    """
    Run many independent single-turn tests and return averaged metrics.

    Args:
        strategy_name: Registered strategy name.
        width: Board width.
        height: Board height.
        counts: Faction -> number of tiles.
        runs: Number of independent turns, must be > 0.
        ally_reveals: Ally reveals before each rival turn.
        seed: Base seed; run ``i`` uses ``seed + i``.

    Returns:
        - avg_tiles_selected
        - avg_rival_hits
        - hazard_hit_rate
        - ending_<faction>_rate for every non-rival faction and "none"
        - fast_path_share: guaranteed picks over all picks
    """
    if runs <= 0:
        raise ValueError("runs must be positive.")

    selected: List[int] = []
    hits: List[int] = []
    hazard_hits: List[int] = []
    endings: Counter = Counter()
    total_guaranteed = 0
    total_picks = 0

    for i in range(runs):
        result = run_strategy_single_test(
            strategy_name,
            width,
            height,
            counts,
            ally_reveals=ally_reveals,
            seed=None if seed is None else seed + i,
        )
        selected.append(int(result["tiles_selected"]))  # type: ignore[arg-type]
        hits.append(int(result["rival_hits"]))  # type: ignore[arg-type]
        hazard_hits.append(int(result["hazard_hit"]))  # type: ignore[arg-type]
        endings[str(result["ending_faction"])] += 1
        total_guaranteed += int(result["guaranteed_picks"])  # type: ignore[arg-type]
        total_picks += int(result["guaranteed_picks"]) + int(result["priority_picks"])  # type: ignore[arg-type]

    out: Dict[str, float] = {
        "avg_tiles_selected": float(np.mean(selected)),
        "avg_rival_hits": float(np.mean(hits)),
        "hazard_hit_rate": float(np.mean(hazard_hits)),
    }
    for faction in (ALLY, NEUTRAL, HAZARD, "none"):
        out[f"ending_{faction}_rate"] = endings[faction] / runs
    out["fast_path_share"] = (total_guaranteed / total_picks) if total_picks > 0 else 0.0
    return out


def run_strategy_comparison(
    runs: int,
    strategies: Optional[Sequence[str]] = None,
    *,
    presets: Optional[Sequence[str]] = None,
    seed: Optional[int] = None,
    show_plots: bool = True,
) -> Dict[str, Dict[str, Dict[str, float]]]:
    """
    Compare strategies across the standard board presets and plot summaries.

    Args:
        runs: Number of turns per strategy and preset.
        strategies: Strategy names; every registered strategy when omitted.
        presets: Preset names from BOARD_PRESETS; all of them when omitted.
        seed: Base seed shared by every strategy, so each sees the same boards.
        show_plots: If True, draw bar charts of rival hits and hazard hit rate.

    Returns:
        Mapping strategy -> preset -> metrics from run_strategy_many_tests().
    """
    strategy_names = list(strategies or registry.available_types())
    preset_names = list(presets or BOARD_PRESETS)

    results: Dict[str, Dict[str, Dict[str, float]]] = {}
    for name in strategy_names:
        results[name] = {}
        for preset in preset_names:
            w, h, counts = BOARD_PRESETS[preset]
            results[name][preset] = run_strategy_many_tests(
                name, w, h, counts, runs, seed=seed
            )

    if not show_plots:
        return results

    x = np.arange(len(preset_names))
    bar_w = 0.8 / max(len(strategy_names), 1)
    offsets = (np.arange(len(strategy_names)) - (len(strategy_names) - 1) / 2) * bar_w

    # 1) Rival hits per turn
    plt.figure()  # type: ignore[misc]
    for offset, name in zip(offsets, strategy_names):
        values = [results[name][p]["avg_rival_hits"] for p in preset_names]
        plt.bar(x + offset, values, width=bar_w, label=name)  # type: ignore[misc]
    plt.xticks(x, preset_names)  # type: ignore[misc]
    plt.ylabel("Average rival tiles per turn")  # type: ignore[misc]
    plt.title("Rival hits per turn by strategy")  # type: ignore[misc]
    plt.legend()  # type: ignore[misc]
    plt.tight_layout()
    plt.show()  # type: ignore[misc]

    # 2) Hazard hit rate
    plt.figure()  # type: ignore[misc]
    for offset, name in zip(offsets, strategy_names):
        values = [results[name][p]["hazard_hit_rate"] for p in preset_names]
        plt.bar(x + offset, values, width=bar_w, label=name)  # type: ignore[misc]
    plt.xticks(x, preset_names)  # type: ignore[misc]
    plt.ylabel("Hazard hit rate")  # type: ignore[misc]
    plt.ylim(0.0, 1.0)  # type: ignore[misc]
    plt.title("Turns ending on a hazard")  # type: ignore[misc]
    plt.legend()  # type: ignore[misc]
    plt.tight_layout()
    plt.show()  # type: ignore[misc]

    return results
