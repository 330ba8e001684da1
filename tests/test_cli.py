import builtins

import pytest

from rivalsweeper.cli import build_parser, default_counts, main, play_cli
from rivalsweeper.engine import board_from_rows
from rivalsweeper.strategies import PriorityStrategy


def _feed(monkeypatch, lines):
    it = iter(lines)
    monkeypatch.setattr(builtins, "input", lambda prompt="": next(it))


class TestPlayCli:
    def test_quit(self, monkeypatch, capsys) -> None:
        _feed(monkeypatch, ["oops", "a b", "q"])
        play_cli(board_from_rows(["AR"]), PriorityStrategy())
        out = capsys.readouterr().out
        assert "Invalid input" in out
        assert "Quit." in out

    def test_ally_hits_hazard(self, monkeypatch, capsys) -> None:
        _feed(monkeypatch, ["0 0"])
        play_cli(board_from_rows(["HR"]), PriorityStrategy())
        assert "You hit a hazard" in capsys.readouterr().out

    def test_ally_reveals_last_tile(self, monkeypatch, capsys) -> None:
        _feed(monkeypatch, ["0 0"])
        play_cli(board_from_rows(["AR"]), PriorityStrategy())
        assert "You won!" in capsys.readouterr().out

    def test_rival_takes_a_turn(self, monkeypatch, capsys) -> None:
        _feed(monkeypatch, ["0 0", "q", "q"])
        play_cli(board_from_rows(["AANR"]), PriorityStrategy())
        assert "reveals" in capsys.readouterr().out

    def test_revealed_tile_is_rejected(self, monkeypatch, capsys) -> None:
        _feed(monkeypatch, ["0 0", "q"])
        play_cli(board_from_rows(["aAR"]), PriorityStrategy())
        assert "cannot be revealed" in capsys.readouterr().out


class TestMain:
    def test_parser(self) -> None:
        args = build_parser().parse_args(["--width", "4", "--strategy", "random", "--seed", "2"])
        assert args.width == 4
        assert args.strategy == "random"
        assert args.seed == 2

    def test_unknown_strategy_exits(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--strategy", "telepathic"])

    def test_main_quits(self, monkeypatch, capsys) -> None:
        _feed(monkeypatch, ["q"])
        main(["--width", "4", "--height", "4", "--seed", "1", "--strategy", "random"])
        assert "Quit." in capsys.readouterr().out

    def test_default_counts(self) -> None:
        counts = default_counts(4, 4)
        assert sum(counts.values()) == 16
        with pytest.raises(ValueError):
            default_counts(1, 1)
