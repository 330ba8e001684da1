"""
Interchangeable rival strategies and the shared turn loop.

Every strategy answers the same question: given the public board, this
turn's hidden signals and the level's behaviour flags, which tiles should the
rival reveal, in order? The list always ends at the first tile that is not a
rival tile (revealing it ends the turn) or when nothing selectable is left.

Strategies:
1. priority: rank by hidden signal plus noise only
2. random: uniform random order, ignoring every signal
3. conservative: deduction first, then signal priority among tiles not
   ruled out as rival
4. reasoning: deduction first, then Monte Carlo + hill climbing estimates
   merged with the signal priority
"""

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_CONFIG, ReasoningConfig
from .engine import HAZARD, RIVAL, SURFACE_HAZARD, Board, Tile, reveal_tile
from .monte_carlo import run_monte_carlo
from .possibility import ExclusionAnalysis, analyze_board
from .priority import (
    TilePriority,
    calculate_base_priorities,
    calculate_priorities,
    calculate_signal_priorities,
)
from .signals import CURRENT, PAST, HiddenClue, generate_hidden_clues, signal_strengths
from .tension import extract_adjacency_constraints
from .utils import Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameState:
    """The slice of the game snapshot the rival reads."""

    board: Board
    past_hidden_clues: Tuple[HiddenClue, ...] = ()
    noise_stacks: int = 0


@dataclass(frozen=True)
class RivalContext:
    """Read-only per-level behaviour flags."""

    never_targets_hazards: bool = False
    adjacency_rule: Optional[str] = None
    excluded_tags: FrozenSet[str] = frozenset({SURFACE_HAZARD})
    turn_number: int = 0

    @classmethod
    def from_special_behaviors(
        cls, special_behaviors: Optional[Mapping[str, Any]], turn_number: int = 0
    ) -> "RivalContext":
        """Build a context from a level's ``special_behaviors`` mapping."""
        behaviors = special_behaviors or {}
        return cls(
            never_targets_hazards=bool(behaviors.get("rival_never_hazards", False)),
            adjacency_rule=behaviors.get("adjacency_rule"),
            turn_number=turn_number,
        )


@dataclass(frozen=True)
class TurnModifiers:
    """Per-turn adjustments a strategy may apply on top of the level flags."""

    priority_boost: int = 0
    avoid_hazards: bool = False


class RivalStrategy(ABC):
    """Base class for every rival tile-selection strategy."""

    name: str = ""
    description: str = ""
    icon: str = ""

    def __init__(
        self,
        config: Optional[ReasoningConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config: ReasoningConfig = config or DEFAULT_CONFIG
        self.rng: random.Random = rng or random.Random()

        # Metrics / counters (for analysis)
        self.turns_played: int = 0
        self.tiles_selected: int = 0

    @abstractmethod
    def select_tiles_to_reveal(
        self,
        state: GameState,
        hidden_clues: Sequence[HiddenClue],
        context: RivalContext,
    ) -> List[Tile]:
        """Return the tiles to reveal this turn, in order."""

    def get_turn_modifiers(self, state: GameState, turn_number: int) -> TurnModifiers:
        """Optional hook: per-turn modifiers. Neutral by default."""
        return TurnModifiers()

    # -------------------------------------------------------------------------
    # Shared helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _board_for(state: GameState, context: RivalContext) -> Board:
        # Adjacency counts were computed under the board's own rule.
        if context.adjacency_rule and context.adjacency_rule != state.board.adjacency_rule:
            logger.warning(
                "Ignoring context adjacency rule %r; board counts use %r",
                context.adjacency_rule,
                state.board.adjacency_rule,
            )
        return state.board

    @staticmethod
    def is_selectable(tile: Tile, context: RivalContext, modifiers: TurnModifiers) -> bool:
        """Whether the rival may target ``tile`` under the level flags."""
        if tile.tags & context.excluded_tags:
            return False
        if (context.never_targets_hazards or modifiers.avoid_hazards) and tile.faction == HAZARD:
            return False
        return True

    def _base_priorities(
        self,
        board: Board,
        state: GameState,
        hidden_clues: Sequence[HiddenClue],
        modifiers: TurnModifiers,
    ) -> Dict[Position, float]:
        past = [c if c.turn_origin == PAST else c.as_past() for c in state.past_hidden_clues]
        return calculate_base_priorities(
            board,
            list(hidden_clues) + past,
            noise_stacks=state.noise_stacks + modifiers.priority_boost,
            rng=self.rng,
            config=self.config,
        )

    def _finish(self, picked: List[Tile]) -> List[Tile]:
        self.turns_played += 1
        self.tiles_selected += len(picked)
        logger.debug("%s selected %d tile(s)", self.name, len(picked))
        return picked


def _take_until_turn_ends(candidates: Sequence[Tile]) -> List[Tile]:
    """Keep tiles in order up to and including the first non-rival one."""
    picked: List[Tile] = []
    for tile in candidates:
        picked.append(tile)
        if tile.faction != RIVAL:
            break
    return picked


class PriorityStrategy(RivalStrategy):
    """Ranks tiles by hidden signal and noise, with no deduction."""

    name = "Priority Rival"
    description = "Follows its hidden clues, never reasoning about revealed counts"
    icon = "🎯"

    def select_tiles_to_reveal(
        self,
        state: GameState,
        hidden_clues: Sequence[HiddenClue],
        context: RivalContext,
    ) -> List[Tile]:
        modifiers = self.get_turn_modifiers(state, context.turn_number)
        board = self._board_for(state, context)
        base = self._base_priorities(board, state, hidden_clues, modifiers)
        ranked = calculate_signal_priorities(board, base, self.config)
        selectable = [
            tp.tile for tp in ranked if self.is_selectable(tp.tile, context, modifiers)
        ]
        return self._finish(_take_until_turn_ends(selectable))


class RandomStrategy(RivalStrategy):
    """Uniformly random choices that ignore every signal."""

    name = "Random Rival"
    description = "Makes completely random choices, ignoring all clues"
    icon = "🎲"

    def select_tiles_to_reveal(
        self,
        state: GameState,
        hidden_clues: Sequence[HiddenClue],
        context: RivalContext,
    ) -> List[Tile]:
        modifiers = self.get_turn_modifiers(state, context.turn_number)
        board = self._board_for(state, context)
        available = [
            t for t in board.unrevealed_tiles() if self.is_selectable(t, context, modifiers)
        ]
        self.rng.shuffle(available)
        return self._finish(_take_until_turn_ends(available))


class DeductiveStrategy(RivalStrategy):
    """
    Turn loop shared by the strategies that reason about revealed counts.

    Each iteration analyses the current simulated board, takes the first
    selectable guaranteed rival if there is one, and otherwise asks
    ``_rank_candidates`` for a ranking. Rival picks are revealed on the
    simulated board and the loop continues; the first non-rival pick ends it.
    """

    def __init__(
        self,
        config: Optional[ReasoningConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(config=config, rng=rng)
        self.reveal_iterations: int = 0
        self.guaranteed_picks: int = 0
        self.priority_picks: int = 0

    @abstractmethod
    def _rank_candidates(
        self,
        board: Board,
        analysis: ExclusionAnalysis,
        base_priorities: Mapping[Position, float],
        current_signal: Mapping[Position, float],
    ) -> List[TilePriority]:
        """Rank the ambiguous tiles of ``board``, highest first."""

    def select_tiles_to_reveal(
        self,
        state: GameState,
        hidden_clues: Sequence[HiddenClue],
        context: RivalContext,
    ) -> List[Tile]:
        modifiers = self.get_turn_modifiers(state, context.turn_number)
        simulated = self._board_for(state, context)

        # Signal terms stay fixed for the whole turn.
        base = self._base_priorities(simulated, state, hidden_clues, modifiers)
        current_signal = signal_strengths(c for c in hidden_clues if c.turn_origin == CURRENT)

        picked: List[Tile] = []
        for iteration in range(1, self.config.max_reveal_iterations + 1):
            if not simulated.unrevealed_tiles():
                break
            self.reveal_iterations += 1
            analysis = analyze_board(
                simulated, max_passes=self.config.max_propagation_passes
            )
            logger.debug(
                "Iteration %d: %d guaranteed, %d ruled out",
                iteration,
                len(analysis.guaranteed_rivals),
                len(analysis.ruled_out_rivals),
            )

            next_tile: Optional[Tile] = None
            for tile in analysis.guaranteed_rivals:
                if self.is_selectable(tile, context, modifiers):
                    next_tile = tile
                    self.guaranteed_picks += 1
                    break

            if next_tile is None:
                ranked = self._rank_candidates(simulated, analysis, base, current_signal)
                selectable = [
                    tp for tp in ranked if self.is_selectable(tp.tile, context, modifiers)
                ]
                if not selectable:
                    logger.debug("No selectable tiles left, stopping")
                    break
                next_tile = selectable[0].tile
                self.priority_picks += 1

            picked.append(next_tile)
            if next_tile.faction != RIVAL:
                logger.debug("Picked %s tile at %s, turn ends", next_tile.faction, next_tile.position)
                break

            simulated = reveal_tile(simulated, next_tile.position, RIVAL)

        return self._finish(picked)


class ConservativeStrategy(DeductiveStrategy):
    """Deduction first, then signal priority among tiles not ruled out."""

    name = "Conservative Rival"
    description = "Uses iterative logic to deduce tile ownership and make safe choices"
    icon = "🧠"

    def _rank_candidates(
        self,
        board: Board,
        analysis: ExclusionAnalysis,
        base_priorities: Mapping[Position, float],
        current_signal: Mapping[Position, float],
    ) -> List[TilePriority]:
        return [
            tp
            for tp in calculate_signal_priorities(board, base_priorities, self.config)
            if tp.tile.position not in analysis.ruled_out_rivals
        ]


class ReasoningStrategy(DeductiveStrategy):
    """Deduction first, then Monte Carlo + hill climbing estimates."""

    name = "Reasoning Rival"
    description = "Uses Monte Carlo simulation and hill climbing to make probabilistic decisions"
    icon = "🎲"

    def __init__(
        self,
        config: Optional[ReasoningConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(config=config, rng=rng)
        self.monte_carlo_runs: int = 0
        self.last_priorities: List[TilePriority] = []

    def _rank_candidates(
        self,
        board: Board,
        analysis: ExclusionAnalysis,
        base_priorities: Mapping[Position, float],
        current_signal: Mapping[Position, float],
    ) -> List[TilePriority]:
        constraints = extract_adjacency_constraints(board)
        results = run_monte_carlo(
            board,
            analysis,
            constraints,
            trials=self.config.monte_carlo_trials,
            rng=self.rng,
            max_climb_steps=self.config.max_climb_steps,
        )
        self.monte_carlo_runs += 1

        priorities = calculate_priorities(
            board, results, analysis, base_priorities, current_signal, self.config
        )
        self.last_priorities = priorities

        if logger.isEnabledFor(logging.DEBUG):
            for tp in priorities[: self.config.debug_top_n]:
                b = tp.breakdown
                logger.debug(
                    "  %s [%s] total=%.4f base=%.4f rival=%.4f hazard=%.4f no_signal=%.4f",
                    tp.tile.position,
                    tp.tile.faction,
                    tp.score,
                    b.base,
                    b.rival_bonus,
                    b.hazard_penalty,
                    b.no_signal_hazard_penalty,
                )
        return priorities


# -------------------------------------------------------------------------
# Registry
# -------------------------------------------------------------------------

StrategyFactory = Callable[..., RivalStrategy]

DEFAULT_STRATEGY = "priority"


class StrategyRegistry:
    """Name -> factory table for the available strategies."""

    def __init__(self) -> None:
        self._factories: Dict[str, StrategyFactory] = {}

    def register(self, name: str, factory: StrategyFactory) -> None:
        self._factories[name] = factory

    def create(self, name: str, **kwargs: Any) -> RivalStrategy:
        """
        Instantiate a registered strategy.

        Raises:
            ValueError: If no strategy is registered under ``name``.
        """
        factory = self._factories.get(name)
        if factory is None:
            raise ValueError(
                f"Unknown strategy type {name!r}; available: {self.available_types()}."
            )
        return factory(**kwargs)

    def available_types(self) -> List[str]:
        return list(self._factories)

    def has_type(self, name: str) -> bool:
        return name in self._factories


registry = StrategyRegistry()
registry.register("priority", PriorityStrategy)
registry.register("random", RandomStrategy)
registry.register("conservative", ConservativeStrategy)
registry.register("reasoning", ReasoningStrategy)


def select_strategy_for_level(special_behaviors: Optional[Mapping[str, Any]] = None) -> str:
    """Return the level's ``rival_ai`` when it is registered, else the default."""
    if special_behaviors:
        requested = special_behaviors.get("rival_ai")
        if requested and registry.has_type(requested):
            return str(requested)
    return DEFAULT_STRATEGY


@dataclass
class RivalTurnPlan:
    """One rival turn: the hidden signals drawn and the tiles to reveal."""

    strategy_name: str
    hidden_clues: List[HiddenClue] = field(default_factory=list)
    tiles_to_reveal: List[Tile] = field(default_factory=list)


def plan_rival_turn(
    state: GameState,
    special_behaviors: Optional[Mapping[str, Any]] = None,
    *,
    strategy: Optional[RivalStrategy] = None,
    strategy_name: Optional[str] = None,
    rng: Optional[random.Random] = None,
    turn_number: int = 0,
) -> RivalTurnPlan:
    """
    Draw this turn's hidden signals and let a strategy choose the reveals.

    Args:
        state: Current game snapshot.
        special_behaviors: Level behaviour mapping (``rival_ai``,
            ``rival_never_hazards``, ``adjacency_rule``).
        strategy: Strategy instance to use; overrides the name lookup.
        strategy_name: Registered strategy name; defaults to the level's choice.
        rng: Random source for the signal draw and a newly created strategy.
        turn_number: Passed through to the context.
    """
    rng = rng or random.Random()
    if strategy is None:
        name = strategy_name or select_strategy_for_level(special_behaviors)
        strategy = registry.create(name, rng=rng)
    else:
        name = strategy_name or type(strategy).__name__

    context = RivalContext.from_special_behaviors(special_behaviors, turn_number=turn_number)
    hidden = generate_hidden_clues(state.board, rng)
    tiles = strategy.select_tiles_to_reveal(state, hidden, context)
    return RivalTurnPlan(strategy_name=name, hidden_clues=hidden, tiles_to_reveal=tiles)
