"""Utility functions for the rival decision engine."""

from typing import Dict, List, Tuple

Position = Tuple[int, int]

# Adjacency rules understood by the board:
#   "standard"    -> 8-connected square neighbourhood
#   "manhattan-2" -> the 8-connected square plus the four orthogonal
#                    tiles at distance 2
ADJACENCY_RULES: Dict[str, Tuple[Position, ...]] = {
    "standard": tuple(
        (dx, dy)
        for dy in (-1, 0, 1)
        for dx in (-1, 0, 1)
        if not (dx == 0 and dy == 0)
    ),
    "manhattan-2": tuple(
        (dx, dy)
        for dy in (-1, 0, 1)
        for dx in (-1, 0, 1)
        if not (dx == 0 and dy == 0)
    )
    + ((0, -2), (-2, 0), (2, 0), (0, 2)),
}

# Module-level cache: (width, height, rule) -> {(x,y): ((nx,ny), ...), ...}
_NEIGHBORHOODS_CACHE: Dict[
    Tuple[int, int, str],
    Dict[Position, Tuple[Position, ...]]
] = {}


def get_neighborhoods(
    width: int, height: int, adjacency_rule: str = "standard"
) -> Dict[Position, Tuple[Position, ...]]:
    """
    Precompute and cache neighbor coordinates for every cell in a grid.

    Args:
        width: Grid width (number of columns). Must be positive.
        height: Grid height (number of rows). Must be positive.
        adjacency_rule: One of the keys of ADJACENCY_RULES.

    Returns:
        Mapping from each cell (x, y) to a tuple of in-bounds neighboring
        coordinates (nx, ny) under the requested adjacency rule.

    Raises:
        ValueError: If width or height is non-positive, or the rule is unknown.
    """
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be positive.")
    if adjacency_rule not in ADJACENCY_RULES:
        raise ValueError(
            f"Unknown adjacency rule {adjacency_rule!r}; expected one of "
            f"{sorted(ADJACENCY_RULES)}."
        )

    key = (width, height, adjacency_rule)
    cached = _NEIGHBORHOODS_CACHE.get(key)
    if cached is not None:
        return cached

    offsets = ADJACENCY_RULES[adjacency_rule]
    neighborhoods: Dict[Position, Tuple[Position, ...]] = {}
    for y in range(height):
        for x in range(width):
            nbrs: List[Position] = []
            for dx, dy in offsets:
                nx, ny = x + dx, y + dy
                if 0 <= nx < width and 0 <= ny < height:
                    nbrs.append((nx, ny))
            neighborhoods[(x, y)] = tuple(nbrs)

    _NEIGHBORHOODS_CACHE[key] = neighborhoods
    return neighborhoods


def position_to_key(position: Position) -> str:
    """Encode a position as its textual "x,y" key."""
    x, y = position
    return f"{x},{y}"


def key_to_position(key: str) -> Position:
    """
    Decode an "x,y" key back into a position.

    Raises:
        ValueError: If the key is not two comma-separated integers.
    """
    parts = key.replace(" ", "").split(",")
    if len(parts) != 2:
        raise ValueError(f"Malformed position key {key!r}.")
    return int(parts[0]), int(parts[1])
