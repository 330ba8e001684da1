import matplotlib.pyplot as plt
import pytest

from rivalsweeper.analysis import (
    BOARD_PRESETS,
    format_possibility_flags,
    run_strategy_comparison,
    run_strategy_many_tests,
    run_strategy_single_test,
)
from rivalsweeper.engine import RIVAL, board_from_rows


class TestFormatPossibilityFlags:
    def test_guaranteed(self) -> None:
        assert format_possibility_flags(board_from_rows(["aR"]), show_coords=False) == " 0  R"

    def test_ruled_out(self) -> None:
        assert format_possibility_flags(board_from_rows(["aN"]), show_coords=False) == " 0  x"

    def test_ambiguous(self) -> None:
        text = format_possibility_flags(board_from_rows(["aRN"]), show_coords=False)
        assert text == " 0  ?  ?"

    def test_absent_and_header(self) -> None:
        text = format_possibility_flags(board_from_rows(["a.R"]))
        lines = text.splitlines()
        assert len(lines) == 3
        assert lines[2].startswith(" 0 |")


class TestSingleTest:
    def test_metrics(self) -> None:
        w, h, counts = BOARD_PRESETS["small"]
        result = run_strategy_single_test("priority", w, h, counts, seed=3)
        assert result["tiles_selected"] == len(result["selection"])
        assert result["rival_hits"] >= result["tiles_selected"] - 1
        assert result["ending_faction"] != RIVAL
        assert result["guaranteed_picks"] == 0

    def test_seed_repeats(self) -> None:
        w, h, counts = BOARD_PRESETS["small"]
        a = run_strategy_single_test("conservative", w, h, counts, seed=5)
        b = run_strategy_single_test("conservative", w, h, counts, seed=5)
        assert a == b


class TestManyTests:
    def test_rates(self) -> None:
        w, h, counts = BOARD_PRESETS["small"]
        out = run_strategy_many_tests("random", w, h, counts, runs=4, seed=0)
        endings = [v for k, v in out.items() if k.startswith("ending_")]
        assert sum(endings) == pytest.approx(1.0)
        assert 0.0 <= out["hazard_hit_rate"] <= 1.0
        assert out["fast_path_share"] == 0.0

    def test_zero_runs_raise(self) -> None:
        w, h, counts = BOARD_PRESETS["small"]
        with pytest.raises(ValueError):
            run_strategy_many_tests("random", w, h, counts, runs=0)


class TestComparison:
    def test_without_plots(self) -> None:
        results = run_strategy_comparison(
            2, ["priority", "random"], presets=["small"], seed=1, show_plots=False
        )
        assert set(results) == {"priority", "random"}
        assert set(results["priority"]) == {"small"}

    def test_with_plots(self, monkeypatch) -> None:
        monkeypatch.setattr(plt, "show", lambda *args, **kwargs: None)
        results = run_strategy_comparison(1, ["random"], presets=["small"], seed=2)
        assert "avg_rival_hits" in results["random"]["small"]
        plt.close("all")
