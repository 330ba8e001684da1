"""
Monte Carlo estimate of each unrevealed tile's faction.

Each trial samples a counterfactual board, refines it by hill climbing and
tallies the resulting faction of every unrevealed tile. Counts divided by the
number of trials approximate the posterior faction probabilities under the
adjacency evidence.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from .engine import FACTIONS, Board
from .hill_climb import MAX_CLIMB_STEPS, hill_climb
from .possibility import ExclusionAnalysis, determine_possibilities
from .sampler import create_random_assignment
from .tension import AdjacencyConstraint
from .utils import Position

logger = logging.getLogger(__name__)

DEFAULT_TRIALS = 20


@dataclass
class MonteCarloResults:
    """Per-tile, per-faction assignment counts over ``trials`` runs."""

    faction_counts: Dict[Position, Dict[str, int]] = field(default_factory=dict)
    trials: int = DEFAULT_TRIALS

    def count(self, position: Position, faction: str) -> int:
        return self.faction_counts.get(position, {}).get(faction, 0)

    def probability(self, position: Position, faction: str) -> float:
        return self.count(position, faction) / self.trials

    def merge(self, other: "MonteCarloResults") -> "MonteCarloResults":
        """Combine two independent tallies into one."""
        merged: Dict[Position, Dict[str, int]] = {
            pos: dict(counts) for pos, counts in self.faction_counts.items()
        }
        for pos, counts in other.faction_counts.items():
            target = merged.setdefault(pos, {f: 0 for f in FACTIONS})
            for faction, n in counts.items():
                target[faction] = target.get(faction, 0) + n
        return MonteCarloResults(faction_counts=merged, trials=self.trials + other.trials)


def run_monte_carlo(
    board: Board,
    analysis: ExclusionAnalysis,
    constraints: Iterable[AdjacencyConstraint],
    trials: int = DEFAULT_TRIALS,
    rng: Optional[random.Random] = None,
    max_climb_steps: int = MAX_CLIMB_STEPS,
) -> MonteCarloResults:
    """
    Run independent sample-and-climb trials and tally the outcomes.

    Args:
        board: Board snapshot.
        analysis: Possibility analysis of ``board``.
        constraints: Adjacency constraints of ``board``.
        trials: Number of independent trials, must be > 0.
        rng: Random source shared by the trials' shuffles.
        max_climb_steps: Hill-climbing cap per trial.

    Returns:
        MonteCarloResults keyed by every unrevealed tile.

    Raises:
        ValueError: If ``trials`` is not positive.
    """
    if trials <= 0:
        raise ValueError("trials must be positive.")

    rng = rng or random.Random()
    constraints = list(constraints)
    possibilities = determine_possibilities(board, analysis)

    counts: Dict[Position, Dict[str, int]] = {
        pos: {f: 0 for f in FACTIONS} for pos in possibilities
    }

    for _ in range(trials):
        sampled = create_random_assignment(board, analysis, possibilities, rng)
        refined = hill_climb(sampled, constraints, max_steps=max_climb_steps)
        for pos, faction in refined.assignments.items():
            tile_counts = counts.get(pos)
            if tile_counts is not None:
                tile_counts[faction] += 1

    logger.debug(
        "Monte Carlo: %d trials over %d unrevealed tiles, %d constraints",
        trials,
        len(counts),
        len(constraints),
    )
    return MonteCarloResults(faction_counts=counts, trials=trials)
