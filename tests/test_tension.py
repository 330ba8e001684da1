import pytest

from rivalsweeper.engine import ALLY, RIVAL, board_from_rows
from rivalsweeper.sampler import CounterfactualAssignment
from rivalsweeper.tension import calculate_tension, count_violations, extract_adjacency_constraints


def _assignment(board, overrides):
    assignments = {pos: t.faction for pos, t in board.tiles.items()}
    assignments.update(overrides)
    counterfactual = {t.position for t in board.unrevealed_tiles()}
    return CounterfactualAssignment(assignments=assignments, counterfactual=counterfactual)


class TestExtractConstraints:
    def test_one_constraint_per_revealed_tile(self) -> None:
        board = board_from_rows(["aA", "NR"])
        constraints = extract_adjacency_constraints(board)
        assert len(constraints) == 1
        c = constraints[0]
        assert c.position == (0, 0)
        assert c.revealer == ALLY
        assert c.expected_count == 1
        assert set(c.neighbors) == {(1, 0), (0, 1), (1, 1)}

    def test_unrevealed_board_has_none(self) -> None:
        assert extract_adjacency_constraints(board_from_rows(["AR", "NH"])) == []


class TestCalculateTension:
    def test_true_assignment_has_zero_tension(self) -> None:
        board = board_from_rows(["aR", "NR"])
        tension = calculate_tension(_assignment(board, {}), extract_adjacency_constraints(board))
        assert tension.total == 0
        assert set(tension.per_tile) == {(1, 0), (0, 1), (1, 1)}

    def test_over_count_split(self) -> None:
        board = board_from_rows(["aR", "NR"])
        assignment = _assignment(board, {(1, 0): ALLY})
        tension = calculate_tension(assignment, extract_adjacency_constraints(board))
        assert tension.per_tile[(1, 0)] == pytest.approx(0.75)
        assert tension.per_tile[(0, 1)] == pytest.approx(0.0625)
        assert tension.per_tile[(1, 1)] == pytest.approx(0.0625)
        assert tension.total == pytest.approx(0.875)

    def test_under_count_split(self) -> None:
        board = board_from_rows(["aA", "NR"])
        assignment = _assignment(board, {(1, 0): RIVAL})
        tension = calculate_tension(assignment, extract_adjacency_constraints(board))
        for pos in [(1, 0), (0, 1), (1, 1)]:
            assert tension.per_tile[pos] == pytest.approx(0.25)
        assert tension.total == pytest.approx(0.75)

    def test_far_tiles_share_secondary_tension(self) -> None:
        board = board_from_rows(["aRN"])
        assignment = _assignment(board, {(1, 0): ALLY, (2, 0): RIVAL})
        tension = calculate_tension(assignment, extract_adjacency_constraints(board))
        assert tension.per_tile[(1, 0)] == pytest.approx(0.75)
        assert tension.per_tile[(2, 0)] == pytest.approx(0.125)


class TestCountViolations:
    def test_counts_mismatch(self) -> None:
        board = board_from_rows(["aR", "NR"])
        constraints = extract_adjacency_constraints(board)
        assert count_violations(_assignment(board, {}), constraints) == 0
        bad = _assignment(board, {(1, 0): ALLY, (0, 1): ALLY})
        assert count_violations(bad, constraints) == 2
        assert count_violations(bad, constraints, touching=[(5, 5)]) == 0
        assert count_violations(bad, constraints, touching=[(0, 1)]) == 2
