import random

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from rivalsweeper.engine import (
    ALLY,
    HAZARD,
    NEUTRAL,
    REVEALERS,
    RIVAL,
    board_from_rows,
    create_board,
    reveal_tile,
)
from rivalsweeper.hill_climb import find_improving_swap, hill_climb
from rivalsweeper.possibility import analyze_board, determine_possibilities
from rivalsweeper.sampler import CounterfactualAssignment, create_random_assignment
from rivalsweeper.tension import calculate_tension, count_violations, extract_adjacency_constraints


def _misplaced():
    board = board_from_rows(["aAR"])
    assignment = CounterfactualAssignment(
        assignments={(0, 0): ALLY, (1, 0): RIVAL, (2, 0): ALLY},
        counterfactual={(1, 0), (2, 0)},
    )
    return board, assignment


class TestFindImprovingSwap:
    def test_swaps_the_misplaced_pair(self) -> None:
        board, assignment = _misplaced()
        constraints = extract_adjacency_constraints(board)
        tension = calculate_tension(assignment, constraints)
        swapped = find_improving_swap(assignment, tension, constraints)
        assert swapped is not None
        assert swapped.assignments[(1, 0)] == ALLY
        assert swapped.assignments[(2, 0)] == RIVAL

    def test_none_at_optimum(self) -> None:
        board = board_from_rows(["aAR"])
        assignment = CounterfactualAssignment(
            assignments={(0, 0): ALLY, (1, 0): ALLY, (2, 0): RIVAL},
            counterfactual={(1, 0), (2, 0)},
        )
        constraints = extract_adjacency_constraints(board)
        tension = calculate_tension(assignment, constraints)
        assert find_improving_swap(assignment, tension, constraints) is None


class TestHillClimb:
    def test_reaches_perfect_fit(self) -> None:
        board, assignment = _misplaced()
        history: list = []
        result = hill_climb(assignment, extract_adjacency_constraints(board), history=history)
        assert result.assignments[(1, 0)] == ALLY
        assert history == [pytest.approx(0.875), 0.0]
        assert assignment.assignments[(1, 0)] == RIVAL

    def test_step_cap(self) -> None:
        board, assignment = _misplaced()
        history: list = []
        result = hill_climb(
            assignment, extract_adjacency_constraints(board), max_steps=1, history=history
        )
        assert len(history) == 1
        assert result.assignments[(1, 0)] == ALLY

    @settings(max_examples=40, deadline=None)
    @given(st.integers(min_value=0, max_value=100_000))
    def test_tension_never_increases(self, seed: int) -> None:
        rng = random.Random(seed)
        counts = {ALLY: 6, RIVAL: 6, NEUTRAL: 6, HAZARD: 2}
        board = create_board(5, 4, counts, rng)
        for pos in rng.sample(list(board.tiles), 7):
            board = reveal_tile(board, pos, rng.choice(REVEALERS))

        analysis = analyze_board(board)
        constraints = extract_adjacency_constraints(board)
        start = create_random_assignment(
            board, analysis, determine_possibilities(board, analysis), rng
        )
        history: list = []
        result = hill_climb(start, constraints, history=history)

        assert history
        for before, after in zip(history, history[1:]):
            assert after <= before + 1e-9
        assert count_violations(result, constraints) <= count_violations(start, constraints)
        assert result.counts() == start.counts()
