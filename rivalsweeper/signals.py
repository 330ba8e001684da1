"""Hidden signal records consumed by the rival's priority scoring."""

import random
from collections import defaultdict
from dataclasses import dataclass
from typing import DefaultDict, Dict, Iterable, List, Optional

from .engine import RIVAL, Board, Tile
from .utils import Position

CURRENT = "current"
PAST = "past"
TURN_ORIGINS = (CURRENT, PAST)

# Bag composition for generated rival signals.
RIVAL_PICKS = 2
OTHER_PICKS = 6
RIVAL_COPIES = 12
OTHER_COPIES = 4
TOTAL_DRAWS = 10


@dataclass(frozen=True)
class HiddenClue:
    """A decaying, AI-only strength value pointing at one tile."""

    strength: float
    target: Position
    turn_origin: str = CURRENT

    def __post_init__(self) -> None:
        if self.turn_origin not in TURN_ORIGINS:
            raise ValueError(
                f"turn_origin must be one of {TURN_ORIGINS}, got {self.turn_origin!r}."
            )
        if self.strength < 0:
            raise ValueError("strength must be non-negative.")

    def as_past(self) -> "HiddenClue":
        """Return the same signal re-labelled as coming from an earlier turn."""
        return HiddenClue(strength=self.strength, target=self.target, turn_origin=PAST)


def signal_strengths(clues: Iterable[HiddenClue]) -> Dict[Position, float]:
    """Sum signal strengths per target position."""
    totals: DefaultDict[Position, float] = defaultdict(float)
    for clue in clues:
        totals[clue.target] += clue.strength
    return dict(totals)


def _pick(tiles: List[Tile], count: int, rng: random.Random) -> List[Tile]:
    if len(tiles) <= count:
        return list(tiles)
    return rng.sample(tiles, count)


def generate_hidden_clues(
    board: Board, rng: Optional[random.Random] = None
) -> List[HiddenClue]:
    """
    Draw one turn's worth of hidden rival signals from a weighted bag.

    Two unrevealed rival tiles and six other unrevealed tiles are chosen.
    The rival picks are drawn first; the remaining draws come without
    replacement from a bag holding 12 copies of each rival pick and 4 copies
    of each other pick. Every draw adds one unit of strength to its tile.

    Returns:
        One current-turn HiddenClue per tile that received any strength.
    """
    rng = rng or random.Random()
    unrevealed = board.unrevealed_tiles()
    rival_tiles = [t for t in unrevealed if t.faction == RIVAL]

    chosen_rivals = _pick(rival_tiles, RIVAL_PICKS, rng)
    chosen_positions = {t.position for t in chosen_rivals}
    others = [t for t in unrevealed if t.position not in chosen_positions]
    chosen_others = _pick(others, OTHER_PICKS, rng)

    bag: List[Position] = []
    for tile in chosen_rivals:
        bag.extend([tile.position] * RIVAL_COPIES)
    for tile in chosen_others:
        bag.extend([tile.position] * OTHER_COPIES)

    drawn: List[Position] = [t.position for t in chosen_rivals]
    remaining_draws = TOTAL_DRAWS - len(drawn)
    for _ in range(min(remaining_draws, len(bag))):
        drawn.append(bag.pop(rng.randrange(len(bag))))

    pips: Dict[Position, int] = {}
    for pos in drawn:
        pips[pos] = pips.get(pos, 0) + 1

    return [HiddenClue(strength=float(n), target=pos) for pos, n in pips.items()]
