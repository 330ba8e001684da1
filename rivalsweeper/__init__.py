"""
Rival Sweeper

A decision engine for the computer-controlled rival in a four-faction
(ally / rival / neutral / hazard) deduction game, built from several stages:
- Possibility model: fixpoint propagation of adjacency and faction-total deductions
- Counterfactual sampling: random boards consistent with the remaining counts
- Hill climbing: tension-guided pairwise swaps toward the revealed evidence
- Monte Carlo estimation: per-tile faction frequencies over many trials
- Priority scoring: hidden signals merged with the estimates
"""

from .config import DEFAULT_CONFIG, ReasoningConfig
from .engine import Board, Tile, board_from_rows, create_board, format_board, reveal_tile
from .possibility import ExclusionAnalysis, analyze_board
from .signals import HiddenClue, generate_hidden_clues
from .strategies import (
    ConservativeStrategy,
    GameState,
    PriorityStrategy,
    RandomStrategy,
    ReasoningStrategy,
    RivalContext,
    RivalStrategy,
    plan_rival_turn,
    registry,
    select_strategy_for_level,
)
from .cli import play_cli
from .analysis import (
    format_possibility_flags,
    run_strategy_single_test,
    run_strategy_many_tests,
    run_strategy_comparison,
)

__version__ = "1.0.0"

__all__ = [
    # Board
    "Board",
    "Tile",
    "board_from_rows",
    "create_board",
    "format_board",
    "reveal_tile",
    # Reasoning
    "ExclusionAnalysis",
    "analyze_board",
    "HiddenClue",
    "generate_hidden_clues",
    "ReasoningConfig",
    "DEFAULT_CONFIG",
    # Strategies
    "RivalStrategy",
    "PriorityStrategy",
    "RandomStrategy",
    "ConservativeStrategy",
    "ReasoningStrategy",
    "GameState",
    "RivalContext",
    "plan_rival_turn",
    "registry",
    "select_strategy_for_level",
    # CLI
    "play_cli",
    # Analysis functions
    "format_possibility_flags",
    "run_strategy_single_test",
    "run_strategy_many_tests",
    "run_strategy_comparison",
]
