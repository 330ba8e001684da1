"""Ranking of candidate tiles from hidden signals and Monte Carlo estimates."""

import math
import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional

from .config import DEFAULT_CONFIG, ReasoningConfig
from .engine import HAZARD, RIVAL, Board, Tile, count_remaining
from .monte_carlo import MonteCarloResults
from .possibility import ExclusionAnalysis
from .signals import CURRENT, HiddenClue
from .utils import Position


@dataclass(frozen=True)
class PriorityBreakdown:
    base: float = 0.0
    rival_bonus: float = 0.0
    hazard_penalty: float = 0.0
    no_signal_hazard_penalty: float = 0.0


@dataclass(frozen=True)
class TilePriority:
    tile: Tile
    score: float
    breakdown: PriorityBreakdown


def calculate_base_priorities(
    board: Board,
    clues: Iterable[HiddenClue],
    noise_stacks: int = 0,
    rng: Optional[random.Random] = None,
    config: ReasoningConfig = DEFAULT_CONFIG,
) -> Dict[Position, float]:
    """
    Compute the base signal of every unrevealed tile.

    Current-turn signals count at full strength, past-turn signals decay to
    ``max(strength - decay, 0)``. Each tile then receives independent noise:
    one ``U(0, noise_amplitude)`` draw per active noise-amplifier stack, or a
    single small tie-breaking draw when there are none.

    Args:
        board: Board snapshot.
        clues: Hidden signals from this turn and earlier turns.
        noise_stacks: Number of active noise-amplifier stacks.
        rng: Random source for the noise draws.
        config: Scoring constants.

    Returns:
        Position -> base priority for every present, unrevealed tile.
    """
    if noise_stacks < 0:
        raise ValueError("noise_stacks must be non-negative.")
    rng = rng or random.Random()

    signal: Dict[Position, float] = {}
    for clue in clues:
        if clue.turn_origin == CURRENT:
            strength = clue.strength
        else:
            strength = max(clue.strength - config.past_signal_decay, 0.0)
        signal[clue.target] = signal.get(clue.target, 0.0) + strength

    base: Dict[Position, float] = {}
    for tile in board.unrevealed_tiles():
        noise = 0.0
        if noise_stacks > 0:
            for _ in range(noise_stacks):
                noise += rng.uniform(0.0, config.noise_amplitude)
        else:
            noise = rng.uniform(0.0, config.tiebreak_amplitude)
        base[tile.position] = signal.get(tile.position, 0.0) + noise
    return base


def calculate_priorities(
    board: Board,
    monte_carlo: MonteCarloResults,
    analysis: ExclusionAnalysis,
    base_priorities: Mapping[Position, float],
    current_signal: Mapping[Position, float],
    config: ReasoningConfig = DEFAULT_CONFIG,
) -> List[TilePriority]:
    """
    Merge base signal with Monte Carlo rival/hazard estimates.

    Guaranteed and ruled-out rival tiles are skipped. For every other tile::

        rival_bonus    = log2((mc_rival + rival_bias) / (trials + denom_bias))
        hazard_penalty = w * log2((mc_hazard + hazard_bias) / (trials + denom_bias))
        final          = base + rival_bonus - hazard_penalty + no_signal_hazard_penalty

    where each bias is ``remaining / 100 + 0.001`` and the no-signal penalty
    applies to true hazards that received no current-turn signal.

    Returns:
        TilePriority list sorted highest score first.
    """
    remaining = count_remaining(board)
    rival_bias = remaining.rival / 100 + 0.001
    hazard_bias = remaining.hazard / 100 + 0.001
    denom = monte_carlo.trials + remaining.unrevealed / 100 + 0.001

    guaranteed = analysis.guaranteed_positions()
    priorities: List[TilePriority] = []

    for pos, counts in monte_carlo.faction_counts.items():
        if pos in guaranteed or pos in analysis.ruled_out_rivals:
            continue
        tile = board.get_tile(pos)
        if tile is None or tile.revealed:
            continue

        base = base_priorities.get(pos, 0.0)
        rival_bonus = math.log2((counts.get(RIVAL, 0) + rival_bias) / denom)
        hazard_penalty = config.hazard_penalty_weight * math.log2(
            (counts.get(HAZARD, 0) + hazard_bias) / denom
        )
        no_signal = 0.0
        if tile.faction == HAZARD and current_signal.get(pos, 0.0) == 0:
            no_signal = -config.no_signal_hazard_penalty

        priorities.append(
            TilePriority(
                tile=tile,
                score=base + rival_bonus - hazard_penalty + no_signal,
                breakdown=PriorityBreakdown(
                    base=base,
                    rival_bonus=rival_bonus,
                    hazard_penalty=hazard_penalty,
                    no_signal_hazard_penalty=no_signal,
                ),
            )
        )

    priorities.sort(key=lambda tp: tp.score, reverse=True)
    return priorities


def calculate_signal_priorities(
    board: Board,
    base_priorities: Mapping[Position, float],
    config: ReasoningConfig = DEFAULT_CONFIG,
) -> List[TilePriority]:
    """
    Rank unrevealed tiles by base signal alone.

    True hazards lose a tiny tie-breaking amount so that, all else equal,
    they sort after other tiles.
    """
    priorities: List[TilePriority] = []
    for tile in board.unrevealed_tiles():
        base = base_priorities.get(tile.position, 0.0)
        penalty = config.hazard_tiebreak_penalty if tile.faction == HAZARD else 0.0
        priorities.append(
            TilePriority(
                tile=tile,
                score=base - penalty,
                breakdown=PriorityBreakdown(base=base, hazard_penalty=penalty),
            )
        )
    priorities.sort(key=lambda tp: tp.score, reverse=True)
    return priorities
