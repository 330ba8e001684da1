"""Hill-climbing refinement of counterfactual assignments by pairwise swaps."""

from collections import defaultdict
from typing import DefaultDict, Dict, Iterable, List, Optional, Sequence

from .sampler import CounterfactualAssignment
from .tension import AdjacencyConstraint, TensionInfo, calculate_tension
from .utils import Position

MAX_CLIMB_STEPS = 100

# Float slack when comparing tension totals before and after a swap.
_TENSION_EPS = 1e-9


def _index_constraints(
    constraints: Sequence[AdjacencyConstraint],
) -> Dict[Position, List[int]]:
    """Map each position to the indices of the constraints it neighbours."""
    index: DefaultDict[Position, List[int]] = defaultdict(list)
    for i, constraint in enumerate(constraints):
        for pos in constraint.neighbors:
            index[pos].append(i)
    return dict(index)


def _local_violations(
    assignment: CounterfactualAssignment,
    constraints: Sequence[AdjacencyConstraint],
    relevant: Iterable[int],
) -> int:
    return sum(constraints[i].violation(assignment) for i in relevant)


def find_improving_swap(
    assignment: CounterfactualAssignment,
    tension: TensionInfo,
    constraints: Sequence[AdjacencyConstraint],
    index: Optional[Dict[Position, List[int]]] = None,
) -> Optional[CounterfactualAssignment]:
    """
    Return the assignment after the first improving swap, or None.

    Counterfactual tiles are ranked by descending tension (ties keep
    assignment order). Pairs (i, j) with i ranked before j and different
    factions are scanned in that order; the first swap that strictly lowers
    the violation count of the constraints touching either tile, without
    raising the total tension, is taken.
    """
    if index is None:
        index = _index_constraints(constraints)

    ranking = sorted(
        (pos for pos in assignment.assignments if pos in assignment.counterfactual),
        key=lambda pos: -tension.per_tile.get(pos, 0.0),
    )
    if len(ranking) < 2:
        return None

    for i, first in enumerate(ranking):
        faction1 = assignment.assignments[first]
        for second in ranking[i + 1:]:
            if assignment.assignments[second] == faction1:
                continue

            relevant = set(index.get(first, ())) | set(index.get(second, ()))
            if not relevant:
                continue

            before = _local_violations(assignment, constraints, relevant)
            candidate = assignment.with_swap(first, second)
            after = _local_violations(candidate, constraints, relevant)
            if after >= before:
                continue

            # Keeps total tension non-increasing across climb steps.
            if calculate_tension(candidate, constraints).total > tension.total + _TENSION_EPS:
                continue
            return candidate

    return None


def hill_climb(
    assignment: CounterfactualAssignment,
    constraints: Iterable[AdjacencyConstraint],
    max_steps: int = MAX_CLIMB_STEPS,
    history: Optional[List[float]] = None,
) -> CounterfactualAssignment:
    """
    Reduce constraint tension by repeated pairwise faction swaps.

    Stops on a perfect fit (zero tension), when no improving swap exists
    (a local optimum), or after ``max_steps`` steps.

    Args:
        assignment: Starting assignment. It is not modified.
        constraints: Adjacency constraints from the revealed tiles.
        max_steps: Hard cap on climbing steps.
        history: If given, the total tension seen at each step is appended.

    Returns:
        The refined assignment.
    """
    constraints = list(constraints)
    index = _index_constraints(constraints)
    current = assignment

    for _ in range(max_steps):
        tension = calculate_tension(current, constraints)
        if history is not None:
            history.append(tension.total)
        if tension.total == 0:
            break

        swapped = find_improving_swap(current, tension, constraints, index)
        if swapped is None:
            break
        current = swapped

    return current
