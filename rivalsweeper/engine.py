"""Board and tile primitives for the four-faction deduction game."""

import random
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .utils import Position, get_neighborhoods

ALLY = "ally"
RIVAL = "rival"
NEUTRAL = "neutral"
HAZARD = "hazard"
ABSENT = "absent"

# Real factions, in the canonical flag order.
FACTIONS: Tuple[str, ...] = (ALLY, RIVAL, NEUTRAL, HAZARD)
# Actors that can reveal a tile.
REVEALERS: Tuple[str, ...] = (ALLY, RIVAL)

SURFACE_HAZARD = "surface_hazard"

_FACTION_LETTERS: Dict[str, str] = {
    ALLY: "A",
    RIVAL: "R",
    NEUTRAL: "N",
    HAZARD: "H",
}
_LETTER_FACTIONS: Dict[str, str] = {v: k for k, v in _FACTION_LETTERS.items()}


@dataclass(frozen=True)
class Tile:
    """One grid cell. Immutable: revealing produces a new Tile."""

    position: Position
    faction: str
    revealed: bool = False
    revealed_by: Optional[str] = None
    adjacency_count: Optional[int] = None
    tags: FrozenSet[str] = frozenset()

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


@dataclass(frozen=True)
class RemainingCounts:
    """Per-faction counts of still-unrevealed tiles."""

    ally: int = 0
    rival: int = 0
    neutral: int = 0
    hazard: int = 0
    unrevealed: int = 0

    def of(self, faction: str) -> int:
        """Return the remaining count for one real faction."""
        if faction not in FACTIONS:
            raise ValueError(f"Unknown faction {faction!r}.")
        return int(getattr(self, faction))

    def as_dict(self) -> Dict[str, int]:
        return {f: self.of(f) for f in FACTIONS}


@dataclass(frozen=True)
class Board:
    """
    Sparse map from position to Tile plus the grid size and adjacency rule.

    Boards are treated as values: nothing in the package mutates ``tiles``
    after construction; ``reveal_tile`` returns a new Board sharing the
    untouched Tile objects. They compare by value but are unhashable, since
    ``tiles`` is a dict.
    """

    width: int
    height: int
    tiles: Dict[Position, Tile] = field(default_factory=dict)
    adjacency_rule: str = "standard"

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        # Validates dimensions and rule; also warms the neighbourhood cache.
        get_neighborhoods(self.width, self.height, self.adjacency_rule)

    def get_tile(self, position: Position) -> Optional[Tile]:
        return self.tiles.get(position)

    def neighbors(self, position: Position) -> Tuple[Position, ...]:
        """Return neighbouring positions under the board's rule, skipping absent tiles."""
        return get_neighbors(self, position)

    def unrevealed_tiles(self) -> List[Tile]:
        """Return all present, unrevealed tiles in board order."""
        return [
            t for t in self.tiles.values() if t.faction != ABSENT and not t.revealed
        ]


def get_neighbors(board: Board, position: Position) -> Tuple[Position, ...]:
    """
    Return the adjacency-rule-aware neighbours of a position.

    Positions that hold no tile or an absent tile are excluded.
    """
    neighborhoods = get_neighborhoods(board.width, board.height, board.adjacency_rule)
    out: List[Position] = []
    for pos in neighborhoods.get(position, ()):
        tile = board.tiles.get(pos)
        if tile is not None and tile.faction != ABSENT:
            out.append(pos)
    return tuple(out)


def calculate_adjacency(board: Board, position: Position, revealer: str) -> int:
    """Count neighbours of ``position`` whose faction equals ``revealer``."""
    count = 0
    for pos in get_neighbors(board, position):
        if board.tiles[pos].faction == revealer:
            count += 1
    return count


def reveal_tile(board: Board, position: Position, revealer: str) -> Board:
    """
    Reveal one tile and return the resulting board.

    Args:
        board: Board to reveal on. It is not modified.
        position: Tile to reveal.
        revealer: "ally" or "rival"; the adjacency count is taken with
            respect to this faction.

    Returns:
        A new Board, or ``board`` itself when the tile is missing, absent
        or already revealed.

    Raises:
        ValueError: If ``revealer`` is not one of REVEALERS.
    """
    if revealer not in REVEALERS:
        raise ValueError(f"revealer must be one of {REVEALERS}, got {revealer!r}.")

    tile = board.tiles.get(position)
    if tile is None or tile.faction == ABSENT or tile.revealed:
        return board

    adjacency_count = calculate_adjacency(board, position, revealer)

    new_tiles = dict(board.tiles)
    new_tiles[position] = replace(
        tile,
        revealed=True,
        revealed_by=revealer,
        adjacency_count=adjacency_count,
    )
    return replace(board, tiles=new_tiles)


def count_remaining(board: Board) -> RemainingCounts:
    """Count unrevealed tiles per faction (absent tiles are ignored)."""
    counts: Dict[str, int] = {f: 0 for f in FACTIONS}
    unrevealed = 0
    for tile in board.tiles.values():
        if tile.faction == ABSENT or tile.revealed:
            continue
        unrevealed += 1
        counts[tile.faction] += 1
    return RemainingCounts(unrevealed=unrevealed, **counts)


def create_board(
    width: int,
    height: int,
    counts: Dict[str, int],
    rng: Optional[random.Random] = None,
    *,
    surface_hazards: int = 0,
    adjacency_rule: str = "standard",
) -> Board:
    """
    Create a board with exact faction counts placed uniformly at random.

    Args:
        width: Board width, must be > 0.
        height: Board height, must be > 0.
        counts: Faction -> number of tiles. Cells not covered by the counts
            become absent holes.
        rng: Random source; a fresh ``random.Random()`` when omitted.
        surface_hazards: How many of the hazard tiles carry the
            "surface_hazard" tag (never targeted by the rival).
        adjacency_rule: Board adjacency rule.

    Raises:
        ValueError: If dimensions, factions or counts are invalid.
    """
    if width <= 0 or height <= 0:
        raise ValueError("Width and height must be positive.")
    for faction, n in counts.items():
        if faction not in FACTIONS:
            raise ValueError(f"Unknown faction {faction!r}.")
        if n < 0:
            raise ValueError("Faction counts must be non-negative.")
    total = sum(counts.values())
    if total > width * height:
        raise ValueError("Faction counts exceed the number of cells.")
    if surface_hazards < 0 or surface_hazards > counts.get(HAZARD, 0):
        raise ValueError("surface_hazards must be between 0 and the hazard count.")

    rng = rng or random.Random()

    cells: List[Position] = [(x, y) for y in range(height) for x in range(width)]
    chosen = rng.sample(cells, total)

    owners: Dict[Position, str] = {}
    cursor = 0
    for faction in FACTIONS:
        n = counts.get(faction, 0)
        for pos in chosen[cursor:cursor + n]:
            owners[pos] = faction
        cursor += n

    hazard_positions = [pos for pos in chosen if owners[pos] == HAZARD]
    tagged = set(rng.sample(hazard_positions, surface_hazards))

    tiles: Dict[Position, Tile] = {}
    for pos in cells:
        faction = owners.get(pos, ABSENT)
        tags = frozenset({SURFACE_HAZARD}) if pos in tagged else frozenset()
        tiles[pos] = Tile(position=pos, faction=faction, tags=tags)

    return Board(width=width, height=height, tiles=tiles, adjacency_rule=adjacency_rule)


def board_from_rows(
    rows: Sequence[str],
    *,
    adjacency_rule: str = "standard",
    surface_hazards: Iterable[Position] = (),
) -> Board:
    """
    Build a board from compact text rows.

    Each character is one cell: ``A``/``R``/``N``/``H`` for an unrevealed
    ally/rival/neutral/hazard tile, the lowercase letter for the same tile
    already revealed by the ally, and ``.`` for an absent hole.

    Raises:
        ValueError: If rows are empty, ragged, or contain unknown characters.
    """
    if not rows:
        raise ValueError("rows must not be empty.")
    width = len(rows[0])
    if any(len(r) != width for r in rows):
        raise ValueError("All rows must have the same length.")

    tagged = set(surface_hazards)
    tiles: Dict[Position, Tile] = {}
    ally_revealed: List[Position] = []
    for y, row in enumerate(rows):
        for x, ch in enumerate(row):
            pos = (x, y)
            if ch == ".":
                tiles[pos] = Tile(position=pos, faction=ABSENT)
                continue
            faction = _LETTER_FACTIONS.get(ch.upper())
            if faction is None:
                raise ValueError(f"Unknown board character {ch!r} at {pos}.")
            tags = frozenset({SURFACE_HAZARD}) if pos in tagged else frozenset()
            tiles[pos] = Tile(position=pos, faction=faction, tags=tags)
            if ch.islower():
                ally_revealed.append(pos)

    board = Board(
        width=width, height=len(rows), tiles=tiles, adjacency_rule=adjacency_rule
    )
    for pos in ally_revealed:
        board = reveal_tile(board, pos, ALLY)
    return board


# -------------------------------------------------------------------------
# Display
# -------------------------------------------------------------------------

_ANSI_RESET = "\033[0m"
_ANSI_COORD = "\033[96m"
_ANSI_ALLY = "\033[92m"
_ANSI_RIVAL = "\033[91m"


def _c(s: str) -> str:
    """Wrap string in coordinate color."""
    return f"{_ANSI_COORD}{s}{_ANSI_RESET}"


def format_board(board: Board, reveal_all: bool = False) -> str:
    """
    Render the board as a multi-line string for terminal display.

    Revealed tiles show their faction letter and adjacency count, coloured
    green when the ally revealed them and red for the rival.

    Args:
        board: Board to render.
        reveal_all: If True, show the faction of unrevealed tiles as well.
    """
    w, h = board.width, board.height

    def cell_str(x: int, y: int) -> str:
        tile = board.tiles.get((x, y))
        if tile is None or tile.faction == ABSENT:
            return "  "
        letter = _FACTION_LETTERS[tile.faction]
        if tile.revealed:
            color = _ANSI_ALLY if tile.revealed_by == ALLY else _ANSI_RIVAL
            return f"{color}{letter}{tile.adjacency_count}{_ANSI_RESET}"
        if reveal_all:
            return f"{letter.lower()} "
        return ". "

    header_cells = " ".join(f"{x:2d}" for x in range(w))
    out = [_c("   ") + _c(header_cells)]
    out.append(_c("   " + "-" * (3 * w - 1)))

    for y in range(h):
        row_cells = " ".join(cell_str(x, y) for x in range(w))
        out.append(_c(f"{y:2d} ") + _c("|") + row_cells)

    return "\n".join(out)
