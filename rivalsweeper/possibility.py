"""Per-tile faction possibility flags and fixpoint constraint propagation."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from .engine import ABSENT, FACTIONS, RIVAL, Board, RemainingCounts, Tile, count_remaining
from .utils import Position

logger = logging.getLogger(__name__)

MAX_PROPAGATION_PASSES = 100


@dataclass
class PossibilityFlags:
    """One boolean per faction: True means that faction is not yet excluded."""

    ally: bool = True
    rival: bool = True
    neutral: bool = True
    hazard: bool = True

    @classmethod
    def one_hot(cls, faction: str) -> "PossibilityFlags":
        flags = cls(False, False, False, False)
        setattr(flags, faction, True)
        return flags

    def allows(self, faction: str) -> bool:
        return bool(getattr(self, faction))

    def clear(self, faction: str) -> bool:
        """Exclude one faction. Returns True if the flag changed."""
        if getattr(self, faction):
            setattr(self, faction, False)
            return True
        return False

    def force(self, faction: str) -> bool:
        """Exclude every faction except ``faction``. Returns True if anything changed."""
        changed = False
        for other in FACTIONS:
            if other != faction and self.clear(other):
                changed = True
        return changed

    def possible(self) -> Tuple[str, ...]:
        """Still-permitted factions in canonical order."""
        return tuple(f for f in FACTIONS if getattr(self, f))

    def is_only(self, faction: str) -> bool:
        return self.possible() == (faction,)


@dataclass
class ExclusionAnalysis:
    """Result of one possibility-analysis pass over a board."""

    guaranteed_rivals: List[Tile] = field(default_factory=list)
    ruled_out_rivals: Set[Position] = field(default_factory=set)
    flags: Dict[Position, PossibilityFlags] = field(default_factory=dict)
    passes: int = 0
    converged: bool = True

    def guaranteed_positions(self) -> Set[Position]:
        return {t.position for t in self.guaranteed_rivals}


def initialize_flags(board: Board) -> Dict[Position, PossibilityFlags]:
    """
    Build fresh flags: one-hot for revealed tiles, all-true for unrevealed.

    Absent tiles get no entry.
    """
    flags: Dict[Position, PossibilityFlags] = {}
    for tile in board.tiles.values():
        if tile.faction == ABSENT:
            continue
        if tile.revealed:
            flags[tile.position] = PossibilityFlags.one_hot(tile.faction)
        else:
            flags[tile.position] = PossibilityFlags()
    return flags


def _propagate_adjacency(board: Board, flags: Dict[Position, PossibilityFlags]) -> bool:
    """Apply the exhausted/forced deductions of every revealed tile once."""
    any_changed = False

    for tile in board.tiles.values():
        if not tile.revealed or tile.revealed_by is None or tile.adjacency_count is None:
            continue

        revealer = tile.revealed_by
        required = tile.adjacency_count

        revealed_matches = 0
        unrevealed_adjacent: List[Position] = []
        for pos in board.neighbors(tile.position):
            adj = board.tiles[pos]
            if adj.revealed:
                if adj.faction == revealer:
                    revealed_matches += 1
            else:
                unrevealed_adjacent.append(pos)

        could_match = [pos for pos in unrevealed_adjacent if flags[pos].allows(revealer)]

        # Exhausted: every revealer tile around this one is already visible.
        if revealed_matches >= required:
            for pos in unrevealed_adjacent:
                if flags[pos].clear(revealer):
                    any_changed = True

        # Forced: every remaining candidate is needed to reach the count.
        if could_match and revealed_matches + len(could_match) == required:
            for pos in could_match:
                if flags[pos].force(revealer):
                    any_changed = True

    return any_changed


def _propagate_faction_totals(
    board: Board,
    flags: Dict[Position, PossibilityFlags],
    remaining: RemainingCounts,
) -> bool:
    """Apply the known remaining faction totals to every unrevealed tile once."""
    any_changed = False
    unrevealed = [t.position for t in board.unrevealed_tiles()]

    for faction in FACTIONS:
        needed = remaining.of(faction)
        permitted = [pos for pos in unrevealed if flags[pos].allows(faction)]
        if needed == 0:
            for pos in permitted:
                if flags[pos].clear(faction):
                    any_changed = True
        elif len(permitted) == needed:
            for pos in permitted:
                if flags[pos].force(faction):
                    any_changed = True

    return any_changed


def propagate_once(
    board: Board,
    flags: Dict[Position, PossibilityFlags],
    remaining: Optional[RemainingCounts] = None,
) -> bool:
    """
    Run one propagation pass, mutating ``flags`` in place.

    Args:
        board: Board whose revealed tiles supply the constraints.
        flags: Flags to refine.
        remaining: Known remaining faction totals; when given, the
            faction-total deduction runs after the adjacency deductions.

    Returns:
        True if any flag changed.
    """
    changed = _propagate_adjacency(board, flags)
    if remaining is not None and _propagate_faction_totals(board, flags, remaining):
        changed = True
    return changed


def propagate_until_convergence(
    board: Board,
    flags: Dict[Position, PossibilityFlags],
    remaining: Optional[RemainingCounts] = None,
    max_passes: int = MAX_PROPAGATION_PASSES,
) -> Tuple[int, bool]:
    """
    Repeat propagation passes until no flag changes or the cap is reached.

    Returns:
        Tuple of (passes_run, converged).
    """
    passes = 0
    changed = True
    while changed and passes < max_passes:
        passes += 1
        changed = propagate_once(board, flags, remaining)

    if changed:
        logger.warning("Constraint propagation hit its limit of %d passes", max_passes)
    return passes, not changed


def analyze_board(
    board: Board,
    *,
    max_passes: int = MAX_PROPAGATION_PASSES,
    use_faction_totals: bool = True,
) -> ExclusionAnalysis:
    """
    Derive guaranteed and ruled-out rival tiles from the revealed adjacency counts.

    The propagation is sound but incomplete: it never produces a false
    guarantee, but may miss ones that need reasoning across several
    constraints at once.

    Args:
        board: Board snapshot to analyze. It is not modified.
        max_passes: Hard cap on propagation passes.
        use_faction_totals: Also apply the known remaining faction totals.

    Returns:
        ExclusionAnalysis with guaranteed rival tiles (board order), ruled-out
        rival positions and the final flags for every present tile.
    """
    flags = initialize_flags(board)
    remaining = count_remaining(board) if use_faction_totals else None
    passes, converged = propagate_until_convergence(board, flags, remaining, max_passes)

    guaranteed: List[Tile] = []
    ruled_out: Set[Position] = set()
    for tile in board.unrevealed_tiles():
        tile_flags = flags[tile.position]
        if tile_flags.is_only(RIVAL):
            guaranteed.append(tile)
        if not tile_flags.rival:
            ruled_out.add(tile.position)
        if not tile_flags.possible():
            logger.debug("Tile %s has no possible faction left", tile.position)

    return ExclusionAnalysis(
        guaranteed_rivals=guaranteed,
        ruled_out_rivals=ruled_out,
        flags=flags,
        passes=passes,
        converged=converged,
    )


def determine_possibilities(
    board: Board, analysis: ExclusionAnalysis
) -> Dict[Position, Tuple[str, ...]]:
    """
    Map each unrevealed tile to the factions its flags still permit.

    Revealed and absent tiles are not included.
    """
    possibilities: Dict[Position, Tuple[str, ...]] = {}
    for tile in board.unrevealed_tiles():
        flags = analysis.flags.get(tile.position)
        if flags is None:
            continue
        possibilities[tile.position] = flags.possible()
    return possibilities
