"""Tunable constants for the rival decision engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ReasoningConfig:
    """
    Iteration caps and scoring weights shared by the strategies.

    The caps are hard bounds: reaching one ends that phase with whatever
    partial result it has.
    """

    # Iteration caps
    monte_carlo_trials: int = 20
    max_climb_steps: int = 100
    max_propagation_passes: int = 100
    max_reveal_iterations: int = 50

    # Base signal
    noise_amplitude: float = 1.5      # U(0, amplitude) per noise-amplifier stack
    tiebreak_amplitude: float = 0.01  # used when no stack is active
    past_signal_decay: float = 1.0    # past strength s contributes max(s - decay, 0)

    # Monte Carlo bias terms
    no_signal_hazard_penalty: float = 0.3
    hazard_penalty_weight: float = 1.0 / 3.0

    # Pure-priority ranking
    hazard_tiebreak_penalty: float = 0.002

    # Number of candidates narrated at debug level per iteration
    debug_top_n: int = 5

    def __post_init__(self) -> None:
        for name in (
            "monte_carlo_trials",
            "max_climb_steps",
            "max_propagation_passes",
            "max_reveal_iterations",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive.")
        if self.noise_amplitude < 0 or self.tiebreak_amplitude < 0:
            raise ValueError("Noise amplitudes must be non-negative.")
        if self.past_signal_decay < 0:
            raise ValueError("past_signal_decay must be non-negative.")
        if self.debug_top_n < 0:
            raise ValueError("debug_top_n must be non-negative.")


DEFAULT_CONFIG = ReasoningConfig()
