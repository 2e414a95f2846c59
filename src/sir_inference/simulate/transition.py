# src/sir_inference/simulate/transition.py
# One discrete time step of the stochastic SIR chain.
#
#   incidence_t ~ Binomial(S_{t-1}, 1 - exp(-beta * I_{t-1} / N))
#   removal_t   ~ Binomial(I_{t-1}, 1 - exp(-gamma))
#
#   S_t = S_{t-1} - incidence_t
#   I_t = I_{t-1} + incidence_t - removal_t
#   R_t = R_{t-1} + removal_t

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..errors import InvalidParameterError
from .random_source import RandomVariateSource


@dataclass(frozen=True)
class EpidemicState:
    """Compartment counts at a single time index."""
    S: int
    I: int
    R: int

    def __post_init__(self):
        if self.S < 0 or self.I < 0 or self.R < 0:
            raise InvalidParameterError(
                f"Compartment counts must be >= 0, got S={self.S}, I={self.I}, R={self.R}"
            )

    @property
    def total(self) -> int:
        return self.S + self.I + self.R


@dataclass(frozen=True)
class EpidemicParameters:
    """Transmission rate beta and per-step recovery hazard gamma."""
    beta: float
    gamma: float

    def __post_init__(self):
        check_rates(self.beta, self.gamma)


def check_rates(beta: float, gamma: float) -> None:
    if not (np.isfinite(beta) and np.isfinite(gamma)):
        raise InvalidParameterError(f"beta and gamma must be finite, got {beta}, {gamma}")
    if beta < 0 or gamma < 0:
        raise InvalidParameterError(f"beta and gamma must be >= 0, got {beta}, {gamma}")


def transition_probabilities(I, beta: float, gamma: float, N: int):
    """Per-step infection and removal probabilities.

    Works on scalars or numpy arrays of I. Both probabilities are clipped
    to [0, 1] so rounding can never push them out of range.

    Returns:
        (prob_si, prob_ir): prob_si has the shape of I, prob_ir is a float
    """
    if N <= 0:
        raise InvalidParameterError(f"Population size N must be > 0, got {N}")
    # -expm1(-x) == 1 - exp(-x) without cancellation for small x
    prob_si = np.clip(-np.expm1(-beta * np.asarray(I, dtype=float) / N), 0.0, 1.0)
    prob_ir = float(np.clip(-np.expm1(-gamma), 0.0, 1.0))
    if prob_si.ndim == 0:
        prob_si = float(prob_si)
    return prob_si, prob_ir


def step(
    state: EpidemicState,
    beta: float,
    gamma: float,
    N: int,
    rng: RandomVariateSource,
) -> Tuple[EpidemicState, int, int]:
    """Advance the epidemic by one time step.

    Args:
        state (EpidemicState): counts at t-1
        beta (float): transmission rate
        gamma (float): recovery hazard
        N (int): total population size
        rng (RandomVariateSource): the run's random source

    Returns:
        (new_state, incidence, removal)
    Raises:
        InvalidParameterError
    """
    check_rates(beta, gamma)
    if state.total != N:
        raise InvalidParameterError(f"State sums to {state.total}, expected N={N}")
    prob_si, prob_ir = transition_probabilities(state.I, beta, gamma, N)

    # Binomial(0, p) is 0 for every p, so S == 0 or I == 0 need no special case
    incidence = rng.binomial(state.S, prob_si)
    removal = rng.binomial(state.I, prob_ir)

    new_state = EpidemicState(
        S=state.S - incidence,
        I=state.I + incidence - removal,
        R=state.R + removal,
    )
    return new_state, incidence, removal
