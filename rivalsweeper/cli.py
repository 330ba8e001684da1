"""Terminal game: a human ally against a rival strategy."""

import argparse
import logging
import random
from typing import Dict, List, Optional, Sequence

from .engine import (
    ALLY,
    FACTIONS,
    HAZARD,
    NEUTRAL,
    RIVAL,
    Board,
    count_remaining,
    create_board,
    format_board,
    reveal_tile,
)
from .signals import HiddenClue
from .strategies import GameState, RivalStrategy, plan_rival_turn, registry
from .utils import key_to_position, position_to_key


def default_counts(width: int, height: int) -> Dict[str, int]:
    """Faction counts for a board of the given size, with no holes."""
    cells = width * height
    ally = max(1, round(cells * 0.28))
    rival = max(1, round(cells * 0.28))
    hazard = max(1, round(cells * 0.10))
    neutral = cells - ally - rival - hazard
    if neutral < 0:
        raise ValueError("Board is too small for a game.")
    return {ALLY: ally, RIVAL: rival, NEUTRAL: neutral, HAZARD: hazard}


def _winner(board: Board) -> Optional[str]:
    remaining = count_remaining(board)
    if remaining.ally == 0:
        return ALLY
    if remaining.rival == 0:
        return RIVAL
    return None


def play_cli(
    board: Board,
    strategy: RivalStrategy,
    *,
    special_behaviors: Optional[Dict[str, object]] = None,
    rng: Optional[random.Random] = None,
) -> None:
    """
    Run a simple terminal UI for playing against a rival strategy.

    The ally reveals one tile per turn; the rival then reveals tiles until
    it uncovers a non-rival tile. Revealing a hazard loses the game, and the
    side whose tiles are all revealed first wins.

    Args:
        board: Starting board.
        strategy: Strategy that plays the rival.
        special_behaviors: Level behaviour mapping for the rival.
        rng: Random source for the rival's hidden signals.
    """
    rng = rng or random.Random()
    past: List[HiddenClue] = []
    turn = 0

    print("Rival CLI (enter: x y). Coordinates are 0-based. Type 'q' to quit.\n")
    print(format_board(board))

    while True:
        s = input("\nMove (x y): ").strip()
        if s.lower() in {"q", "quit", "exit"}:
            print("Quit.")
            return

        parts = s.replace(",", " ").split()
        if len(parts) != 2:
            print("Invalid input. Example: 3 5")
            continue

        try:
            x, y = key_to_position(",".join(parts))
        except ValueError:
            print("Invalid input. Coordinates must be integers.")
            continue

        tile = board.get_tile((x, y))
        if tile is None or tile.faction not in FACTIONS or tile.revealed:
            print("That tile cannot be revealed.")
            continue

        board = reveal_tile(board, (x, y), ALLY)
        print(f"\nYou revealed ({x}, {y}): {tile.faction}.\n")
        print(format_board(board))

        if tile.faction == HAZARD:
            print("\nYou hit a hazard. You lost.")
            print(format_board(board, reveal_all=True))
            return
        if _winner(board) is not None:
            break

        turn += 1
        state = GameState(board=board, past_hidden_clues=tuple(past))
        plan = plan_rival_turn(
            state,
            special_behaviors,
            strategy=strategy,
            strategy_name=strategy.name,
            rng=rng,
            turn_number=turn,
        )
        past.extend(c.as_past() for c in plan.hidden_clues)

        hit_hazard = False
        for picked in plan.tiles_to_reveal:
            board = reveal_tile(board, picked.position, RIVAL)
            where = position_to_key(picked.position)
            print(f"{strategy.icon} {strategy.name} reveals {where}: {picked.faction}")
            if picked.faction == HAZARD:
                hit_hazard = True
                break
        print()
        print(format_board(board))

        if hit_hazard:
            print("\nThe rival hit a hazard. You won!")
            print(format_board(board, reveal_all=True))
            return
        if _winner(board) is not None:
            break

    if _winner(board) == ALLY:
        print("\nAll your tiles are revealed. You won!")
    else:
        print("\nThe rival revealed all its tiles. You lost.")
    print("\nFull board:")
    print(format_board(board, reveal_all=True))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play a game against a rival strategy.")
    parser.add_argument("--width", type=int, default=8, help="Board width")
    parser.add_argument("--height", type=int, default=8, help="Board height")
    parser.add_argument(
        "--strategy",
        choices=registry.available_types(),
        default="reasoning",
        help="Rival strategy",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--rival-never-hazards",
        action="store_true",
        help="The rival never targets hazard tiles",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show rival reasoning")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    rng = random.Random(args.seed)
    board = create_board(args.width, args.height, default_counts(args.width, args.height), rng)
    strategy = registry.create(args.strategy, rng=rng)
    behaviors: Dict[str, object] = {"rival_never_hazards": args.rival_never_hazards}
    play_cli(board, strategy, special_behaviors=behaviors, rng=rng)


if __name__ == "__main__":
    main()
