"""Adjacency constraints and the tension score of a counterfactual assignment."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set, Tuple

from .engine import ABSENT, Board
from .sampler import CounterfactualAssignment
from .utils import Position

# Share of a constraint's mismatch given to the tiles whose reassignment
# would fix it; the rest is split evenly over the two weaker buckets.
PRIMARY_SHARE = 3 / 4
SECONDARY_SHARE = 1 / 8


@dataclass(frozen=True)
class AdjacencyConstraint:
    """A revealed tile's count of same-faction-as-revealer neighbours."""

    position: Position
    revealer: str
    expected_count: int
    neighbors: Tuple[Position, ...]

    def actual_count(self, assignment: CounterfactualAssignment) -> int:
        return sum(
            1 for pos in self.neighbors if assignment.assignments.get(pos) == self.revealer
        )

    def violation(self, assignment: CounterfactualAssignment) -> int:
        return abs(self.actual_count(assignment) - self.expected_count)


@dataclass
class TensionInfo:
    """Per-tile tension (counterfactual tiles only) and its total."""

    per_tile: Dict[Position, float] = field(default_factory=dict)
    total: float = 0.0


def extract_adjacency_constraints(board: Board) -> List[AdjacencyConstraint]:
    """
    Collect one constraint per revealed tile that carries an adjacency count.

    Only real reveals contribute; tiles annotated by other effects but still
    unrevealed do not.
    """
    constraints: List[AdjacencyConstraint] = []
    for tile in board.tiles.values():
        if not tile.revealed or tile.faction == ABSENT:
            continue
        if tile.revealed_by is None or tile.adjacency_count is None:
            continue
        constraints.append(
            AdjacencyConstraint(
                position=tile.position,
                revealer=tile.revealed_by,
                expected_count=tile.adjacency_count,
                neighbors=board.neighbors(tile.position),
            )
        )
    return constraints


def _spread(tensions: Dict[Position, float], keys: List[Position], amount: float) -> None:
    """Split ``amount`` evenly over ``keys``; nothing happens when keys is empty."""
    if not keys:
        return
    share = amount / len(keys)
    for key in keys:
        tensions[key] += share


def calculate_tension(
    assignment: CounterfactualAssignment,
    constraints: Iterable[AdjacencyConstraint],
) -> TensionInfo:
    """
    Measure how badly an assignment violates the adjacency constraints.

    For each violated constraint the mismatch ``diff`` is attributed to
    counterfactual tiles only:

    - over-count: 3/4 to adjacent tiles assigned the revealer's faction,
      1/8 to adjacent tiles of other factions, 1/8 to non-adjacent tiles
      of other factions;
    - under-count: 3/4 to adjacent tiles of other factions, 1/8 to adjacent
      tiles of the revealer's faction, 1/8 to non-adjacent tiles of the
      revealer's faction.

    Args:
        assignment: Assignment to score.
        constraints: Adjacency constraints from the revealed tiles.

    Returns:
        TensionInfo with accumulated per-tile tension and the total.
    """
    tensions: Dict[Position, float] = {pos: 0.0 for pos in assignment.counterfactual}

    for constraint in constraints:
        revealer = constraint.revealer
        actual = constraint.actual_count(assignment)
        diff = abs(actual - constraint.expected_count)
        if diff == 0:
            continue

        adjacent: Set[Position] = {
            pos for pos in constraint.neighbors if pos in assignment.counterfactual
        }
        adjacent_same = [
            pos for pos in constraint.neighbors
            if pos in adjacent and assignment.assignments[pos] == revealer
        ]
        adjacent_other = [
            pos for pos in constraint.neighbors
            if pos in adjacent and assignment.assignments[pos] != revealer
        ]

        if actual > constraint.expected_count:
            far_other = [
                pos for pos in assignment.counterfactual
                if pos not in adjacent and assignment.assignments[pos] != revealer
            ]
            _spread(tensions, adjacent_same, diff * PRIMARY_SHARE)
            _spread(tensions, adjacent_other, diff * SECONDARY_SHARE)
            _spread(tensions, far_other, diff * SECONDARY_SHARE)
        else:
            far_same = [
                pos for pos in assignment.counterfactual
                if pos not in adjacent and assignment.assignments[pos] == revealer
            ]
            _spread(tensions, adjacent_other, diff * PRIMARY_SHARE)
            _spread(tensions, adjacent_same, diff * SECONDARY_SHARE)
            _spread(tensions, far_same, diff * SECONDARY_SHARE)

    return TensionInfo(per_tile=tensions, total=sum(tensions.values()))


def count_violations(
    assignment: CounterfactualAssignment,
    constraints: Iterable[AdjacencyConstraint],
    touching: Iterable[Position] = (),
) -> int:
    """
    Sum |actual - expected| over constraints.

    Args:
        assignment: Assignment to check.
        constraints: Adjacency constraints.
        touching: When non-empty, only constraints with at least one of
            these positions among their neighbours are counted.
    """
    touch = set(touching)
    total = 0
    for constraint in constraints:
        if touch and touch.isdisjoint(constraint.neighbors):
            continue
        total += constraint.violation(assignment)
    return total
