import logging
import random
from typing import Dict, Iterator, List, Tuple

from hypothesis import given, settings
from hypothesis import strategies as st

from rivalsweeper.engine import (
    ALLY,
    FACTIONS,
    NEUTRAL,
    RIVAL,
    REVEALERS,
    Board,
    board_from_rows,
    count_remaining,
    reveal_tile,
)
from rivalsweeper.possibility import (
    PossibilityFlags,
    analyze_board,
    determine_possibilities,
    initialize_flags,
    propagate_once,
    propagate_until_convergence,
)
from rivalsweeper.utils import Position


def _random_revealed_board(seed: int, size: int = 3) -> Board:
    rng = random.Random(seed)
    rows = ["".join(rng.choice("ARNH") for _ in range(size)) for _ in range(size)]
    board = board_from_rows(rows)
    positions = list(board.tiles)
    for pos in rng.sample(positions, rng.randint(3, 6)):
        board = reveal_tile(board, pos, rng.choice(REVEALERS))
    return board


def _arrangements(counts: Dict[str, int], n: int) -> Iterator[Tuple[str, ...]]:
    if n == 0:
        yield ()
        return
    for faction in FACTIONS:
        if counts[faction] == 0:
            continue
        counts[faction] -= 1
        for rest in _arrangements(counts, n - 1):
            yield (faction,) + rest
        counts[faction] += 1


def _consistent_worlds(board: Board) -> List[Dict[Position, str]]:
    """Every faction assignment matching the revealed counts and the remaining totals."""
    unrevealed = [t.position for t in board.unrevealed_tiles()]
    counts = count_remaining(board).as_dict()
    known = {pos: t.faction for pos, t in board.tiles.items() if t.revealed}
    revealed = [t for t in board.tiles.values() if t.revealed]

    worlds: List[Dict[Position, str]] = []
    for arrangement in _arrangements(dict(counts), len(unrevealed)):
        world = dict(known)
        world.update(zip(unrevealed, arrangement))
        if all(
            sum(1 for n in board.neighbors(t.position) if world[n] == t.revealed_by)
            == t.adjacency_count
            for t in revealed
        ):
            worlds.append(world)
    return worlds


class TestPossibilityFlags:
    def test_force_and_clear(self) -> None:
        flags = PossibilityFlags()
        assert flags.possible() == FACTIONS
        assert flags.clear(ALLY)
        assert not flags.clear(ALLY)
        assert flags.force(RIVAL)
        assert flags.is_only(RIVAL)
        assert not flags.force(RIVAL)

    def test_one_hot(self) -> None:
        assert PossibilityFlags.one_hot(ALLY).possible() == (ALLY,)


class TestInitializeFlags:
    def test_revealed_one_hot_unrevealed_full(self) -> None:
        board = board_from_rows(["nR", ".H"])
        flags = initialize_flags(board)
        assert flags[(0, 0)].possible() == (NEUTRAL,)
        assert flags[(1, 0)].possible() == FACTIONS
        assert (0, 1) not in flags


class TestDeductions:
    def test_zero_count_excludes_revealer_from_neighbors(self) -> None:
        board = board_from_rows(["RNR", "HaN", "RRH"])
        analysis = analyze_board(board)
        for pos in board.neighbors((1, 1)):
            assert analysis.flags[pos].ally is False

    def test_forced_neighbors_take_revealer_faction(self) -> None:
        board = board_from_rows(["rAN"])
        analysis = analyze_board(board, use_faction_totals=False)
        assert analysis.flags[(1, 0)].is_only(ALLY)
        assert (1, 0) in analysis.ruled_out_rivals

    def test_last_unrevealed_tile_is_guaranteed_by_totals(self) -> None:
        board = board_from_rows(["aR"])
        analysis = analyze_board(board)
        assert [t.position for t in analysis.guaranteed_rivals] == [(1, 0)]
        assert determine_possibilities(board, analysis) == {(1, 0): (RIVAL,)}

    def test_no_reveals_gives_no_rival_deductions(self) -> None:
        board = board_from_rows(["RRR", "RAR", "RRR"])
        analysis = analyze_board(board)
        assert analysis.guaranteed_rivals == []
        assert analysis.ruled_out_rivals == set()

    def test_input_board_is_unchanged(self) -> None:
        board = board_from_rows(["RNR", "HaN", "RRH"])
        before = dict(board.tiles)
        analyze_board(board)
        assert board.tiles == before


class TestConvergence:
    def test_pass_cap_stops_and_warns(self, caplog) -> None:
        board = board_from_rows(["rAN", "RRa"])
        flags = initialize_flags(board)
        with caplog.at_level(logging.WARNING):
            passes, converged = propagate_until_convergence(
                board, flags, count_remaining(board), max_passes=1
            )
        assert passes == 1
        assert not converged
        assert "limit" in caplog.text

    @settings(max_examples=40, deadline=None)
    @given(st.integers(min_value=0, max_value=100_000))
    def test_propagation_is_idempotent(self, seed: int) -> None:
        board = _random_revealed_board(seed, size=4)
        analysis = analyze_board(board)
        assert analysis.converged
        assert propagate_once(board, analysis.flags, count_remaining(board)) is False


class TestSoundness:
    @settings(max_examples=60, deadline=None)
    @given(st.integers(min_value=0, max_value=100_000))
    def test_guarantees_hold_in_every_consistent_world(self, seed: int) -> None:
        board = _random_revealed_board(seed)
        analysis = analyze_board(board)
        worlds = _consistent_worlds(board)
        assert worlds

        for tile in analysis.guaranteed_rivals:
            assert tile.faction == RIVAL
            assert all(w[tile.position] == RIVAL for w in worlds)

        for pos in analysis.ruled_out_rivals:
            assert board.tiles[pos].faction != RIVAL
            assert all(w[pos] != RIVAL for w in worlds)

        for pos, flags in analysis.flags.items():
            assert flags.allows(board.tiles[pos].faction)
