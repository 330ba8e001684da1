import logging
import random

from hypothesis import given, settings
from hypothesis import strategies as st

from rivalsweeper.engine import (
    ALLY,
    FACTIONS,
    HAZARD,
    NEUTRAL,
    REVEALERS,
    RIVAL,
    board_from_rows,
    count_remaining,
    create_board,
    reveal_tile,
)
from rivalsweeper.possibility import ExclusionAnalysis, analyze_board, determine_possibilities
from rivalsweeper.sampler import CounterfactualAssignment, create_random_assignment


class TestCounterfactualAssignment:
    def test_swap_returns_new_assignment(self) -> None:
        a = CounterfactualAssignment({(0, 0): ALLY, (1, 0): RIVAL}, {(0, 0), (1, 0)})
        b = a.with_swap((0, 0), (1, 0))
        assert b.assignments == {(0, 0): RIVAL, (1, 0): ALLY}
        assert a.assignments == {(0, 0): ALLY, (1, 0): RIVAL}

    def test_counts_restricted(self) -> None:
        a = CounterfactualAssignment({(0, 0): ALLY, (1, 0): RIVAL, (2, 0): RIVAL})
        assert a.counts() == {ALLY: 1, RIVAL: 2}
        assert a.counts({(1, 0)}) == {RIVAL: 1}


class TestCreateRandomAssignment:
    def test_revealed_and_guaranteed_are_fixed(self) -> None:
        board = board_from_rows(["aR"])
        analysis = analyze_board(board)
        sample = create_random_assignment(
            board, analysis, determine_possibilities(board, analysis), random.Random(0)
        )
        assert sample.assignments == {(0, 0): ALLY, (1, 0): RIVAL}
        assert sample.counterfactual == set()

    @settings(max_examples=50, deadline=None)
    @given(
        st.integers(min_value=0, max_value=100_000),
        st.lists(st.integers(min_value=0, max_value=5), min_size=4, max_size=4),
    )
    def test_unconstrained_counts_are_exact(self, seed: int, vector: list) -> None:
        remaining = dict(zip(FACTIONS, vector))
        total = sum(vector)
        if total == 0:
            return
        board = create_board(total, 1, {ALLY: total})
        possibilities = {t.position: FACTIONS for t in board.unrevealed_tiles()}
        sample = create_random_assignment(
            board, ExclusionAnalysis(), possibilities, random.Random(seed), remaining=remaining
        )
        assert sample.counts() == {f: n for f, n in remaining.items() if n > 0}
        assert sample.counterfactual == set(board.tiles)

    @settings(max_examples=50, deadline=None)
    @given(st.integers(min_value=0, max_value=100_000))
    def test_possibility_flags_are_respected(self, seed: int) -> None:
        rng = random.Random(seed)
        counts = {ALLY: 5, RIVAL: 5, NEUTRAL: 4, HAZARD: 2}
        board = create_board(4, 4, counts, rng)
        for pos in rng.sample(list(board.tiles), 6):
            board = reveal_tile(board, pos, rng.choice(REVEALERS))

        analysis = analyze_board(board)
        possibilities = determine_possibilities(board, analysis)
        sample = create_random_assignment(board, analysis, possibilities, rng)

        assert set(sample.assignments) == set(board.tiles)
        for pos in sample.counterfactual:
            assert sample.assignments[pos] in possibilities[pos]
        for pos, tile in board.tiles.items():
            if tile.revealed:
                assert sample.assignments[pos] == tile.faction
                assert pos not in sample.counterfactual

    def test_infeasible_counts_fall_back_with_warning(self, caplog) -> None:
        board = board_from_rows(["RR"])
        possibilities = {(0, 0): (NEUTRAL,), (1, 0): ()}
        with caplog.at_level(logging.WARNING):
            sample = create_random_assignment(
                board, ExclusionAnalysis(), possibilities, random.Random(0)
            )
        assert sample.assignments == {(0, 0): NEUTRAL, (1, 0): NEUTRAL}
        assert "infeasibility" in caplog.text
        assert "no possible faction" in caplog.text

    def test_default_remaining_matches_board(self) -> None:
        board = create_board(3, 3, {ALLY: 2, RIVAL: 3, NEUTRAL: 3, HAZARD: 1}, random.Random(3))
        analysis = analyze_board(board)
        sample = create_random_assignment(
            board, analysis, determine_possibilities(board, analysis), random.Random(4)
        )
        assert sample.counts() == count_remaining(board).as_dict()
