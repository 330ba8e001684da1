"""Random, constraint-respecting counterfactual boards for Monte Carlo trials."""

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Set, Tuple

from .engine import ABSENT, ALLY, HAZARD, NEUTRAL, RIVAL, Board, count_remaining
from .possibility import ExclusionAnalysis
from .utils import Position

logger = logging.getLogger(__name__)

# Most constrained factions first, so rare factions are not starved.
ASSIGNMENT_ORDER: Tuple[str, ...] = (RIVAL, ALLY, HAZARD, NEUTRAL)


@dataclass
class CounterfactualAssignment:
    """
    A full faction assignment for every present tile.

    ``counterfactual`` holds the positions whose faction was hypothesised,
    i.e. neither revealed nor logically guaranteed.
    """

    assignments: Dict[Position, str] = field(default_factory=dict)
    counterfactual: Set[Position] = field(default_factory=set)

    def with_swap(self, a: Position, b: Position) -> "CounterfactualAssignment":
        """Return a new assignment with the factions of ``a`` and ``b`` exchanged."""
        swapped = dict(self.assignments)
        swapped[a], swapped[b] = self.assignments[b], self.assignments[a]
        return CounterfactualAssignment(assignments=swapped, counterfactual=self.counterfactual)

    def counts(self, positions: Optional[Set[Position]] = None) -> Dict[str, int]:
        """Count assigned factions, optionally restricted to ``positions``."""
        out: Dict[str, int] = {}
        for pos, faction in self.assignments.items():
            if positions is not None and pos not in positions:
                continue
            out[faction] = out.get(faction, 0) + 1
        return out


def create_random_assignment(
    board: Board,
    analysis: ExclusionAnalysis,
    possibilities: Mapping[Position, Tuple[str, ...]],
    rng: Optional[random.Random] = None,
    remaining: Optional[Mapping[str, int]] = None,
) -> CounterfactualAssignment:
    """
    Build one random assignment that matches the remaining faction counts.

    Revealed tiles keep their real faction and guaranteed rivals are fixed to
    rival. The other tiles are shuffled and filled greedily in
    ASSIGNMENT_ORDER, each faction taking its required number of tiles among
    those whose possibilities still admit it.

    Args:
        board: Board snapshot.
        analysis: Possibility analysis of ``board``.
        possibilities: Unrevealed position -> still-permitted factions.
        rng: Random source for the shuffle.
        remaining: Remaining unrevealed count per faction (including the
            guaranteed rivals). Defaults to the board's own totals.

    Returns:
        A CounterfactualAssignment. If the counts cannot be met the leftover
        tiles take any permitted faction (or neutral) and a warning is logged.
    """
    rng = rng or random.Random()
    assignments: Dict[Position, str] = {}
    counterfactual: Set[Position] = set()

    for tile in board.tiles.values():
        if tile.faction != ABSENT and tile.revealed:
            assignments[tile.position] = tile.faction

    guaranteed = 0
    for tile in analysis.guaranteed_rivals:
        if tile.position not in assignments:
            assignments[tile.position] = RIVAL
            guaranteed += 1

    if remaining is None:
        remaining = count_remaining(board).as_dict()
    required: Dict[str, int] = {f: int(remaining.get(f, 0)) for f in ASSIGNMENT_ORDER}
    required[RIVAL] -= guaranteed

    unassigned: List[Position] = [
        t.position
        for t in board.tiles.values()
        if t.faction != ABSENT and t.position not in assignments
    ]
    rng.shuffle(unassigned)

    taken: Set[Position] = set()
    for faction in ASSIGNMENT_ORDER:
        count = required[faction]
        assigned = 0
        for pos in unassigned:
            if assigned >= count:
                break
            if pos in taken or faction not in possibilities.get(pos, ()):
                continue
            assignments[pos] = faction
            counterfactual.add(pos)
            taken.add(pos)
            assigned += 1
        if assigned < count:
            logger.warning(
                "Could only assign %d/%d %s tiles (constraint infeasibility)",
                assigned,
                count,
                faction,
            )

    for pos in unassigned:
        if pos in taken:
            continue
        permitted = possibilities.get(pos, ())
        if not permitted:
            logger.warning("Tile at %s has no possible faction, defaulting to neutral", pos)
            assignments[pos] = NEUTRAL
        else:
            assignments[pos] = permitted[0]
        counterfactual.add(pos)

    return CounterfactualAssignment(assignments=assignments, counterfactual=counterfactual)
