# ###
# **generate_trajectory.py**

# Purpose: run the SIR transition for tau steps from an initial state and
# return the whole path: S, I, R at t = 0..tau and the incidence / removal
# counts drawn at t = 1..tau.

# Functions:
# - simulate()
#   - Input: initial state, beta, gamma, constants, random source; optionally
#     observed counts and the include_data flag.
#   - Output: a fresh, read-only Trajectory.
# - simulate_epidemic(): fixed parameters, starting from constants.initial_state.
# - simulate_from_prior(): draw (beta, gamma) from the prior, then simulate.
# - simulate_data(): simulate a synthetic data set for model fitting.
# ###

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple

import numpy as np
import pandas as pd

from ..errors import InvalidParameterError
from .random_source import RandomVariateSource, as_source
from .transition import EpidemicParameters, EpidemicState, check_rates, step

logger = logging.getLogger(__name__)


def _frozen_int_array(values, name: str) -> np.ndarray:
    arr = np.asarray(values)
    if arr.ndim != 1:
        raise InvalidParameterError(f"{name} must be a 1D sequence of counts")
    if arr.size and not np.all(np.equal(np.mod(arr, 1), 0)):
        raise InvalidParameterError(f"{name} must contain whole numbers")
    arr = arr.astype(np.int64)
    if np.any(arr < 0):
        raise InvalidParameterError(f"{name} must be non-negative")
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class EpidemicConstants:
    """Population size, initial infected / removed counts and the horizon tau."""
    N: int
    I0: int
    R0: int = 0
    tau: int = 100

    def __post_init__(self):
        for name in ("N", "I0", "R0", "tau"):
            value = getattr(self, name)
            try:
                whole = not isinstance(value, bool) and int(value) == value
            except (ValueError, OverflowError, TypeError):
                whole = False
            if not whole:
                raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
            object.__setattr__(self, name, int(value))
        if self.N <= 0:
            raise InvalidParameterError(f"N must be > 0, got {self.N}")
        if self.I0 < 0 or self.R0 < 0:
            raise InvalidParameterError("I0 and R0 must be >= 0")
        if self.I0 + self.R0 > self.N:
            raise InvalidParameterError(
                f"I0 + R0 must not exceed N ({self.I0} + {self.R0} > {self.N})"
            )
        if self.tau <= 0:
            raise InvalidParameterError(f"tau must be > 0, got {self.tau}")

    @property
    def initial_state(self) -> EpidemicState:
        return EpidemicState(S=self.N - self.I0 - self.R0, I=self.I0, R=self.R0)


@dataclass(frozen=True, eq=False)
class ObservedData:
    """Observed incidence and removal counts, one entry per time step."""
    incidence: np.ndarray
    removals: np.ndarray

    def __post_init__(self):
        incidence = _frozen_int_array(self.incidence, "incidence")
        removals = _frozen_int_array(self.removals, "removals")
        if incidence.size != removals.size:
            raise InvalidParameterError(
                f"incidence and removals must have equal length "
                f"({incidence.size} != {removals.size})"
            )
        object.__setattr__(self, "incidence", incidence)
        object.__setattr__(self, "removals", removals)

    def __len__(self) -> int:
        return int(self.incidence.size)

    def check_horizon(self, constants: EpidemicConstants) -> None:
        if len(self) > constants.tau:
            raise InvalidParameterError(
                f"Observed data has {len(self)} steps but tau is {constants.tau}"
            )


@dataclass(frozen=True, eq=False)
class Trajectory:
    """A single simulated epidemic.

    S, I, R have length tau + 1 (index 0 is the initial state); incidence
    and removals have length tau (index t - 1 holds the draw for step t).
    All arrays are read-only.
    """
    S: np.ndarray
    I: np.ndarray
    R: np.ndarray
    incidence: np.ndarray
    removals: np.ndarray
    params: Optional[EpidemicParameters] = field(default=None)

    def __post_init__(self):
        for name in ("S", "I", "R", "incidence", "removals"):
            object.__setattr__(self, name, _frozen_int_array(getattr(self, name), name))
        if not (self.S.size == self.I.size == self.R.size):
            raise InvalidParameterError("S, I and R must have equal length")
        if self.incidence.size != self.S.size - 1 or self.removals.size != self.S.size - 1:
            raise InvalidParameterError("incidence and removals must be one shorter than S")

    @property
    def tau(self) -> int:
        return int(self.incidence.size)

    @property
    def states(self) -> Iterator[EpidemicState]:
        for s, i, r in zip(self.S, self.I, self.R):
            yield EpidemicState(int(s), int(i), int(r))

    def observed(self, length: Optional[int] = None) -> ObservedData:
        """Incidence and removals for the first `length` steps (all by default)."""
        if length is None:
            length = self.tau
        if not 0 <= length <= self.tau:
            raise InvalidParameterError(f"length must lie in [0, {self.tau}], got {length}")
        return ObservedData(self.incidence[:length], self.removals[:length])

    def to_frame(self) -> pd.DataFrame:
        """One row per time index; incidence and removals are <NA> at t = 0."""
        counts = pd.array([pd.NA] + self.incidence.tolist(), dtype="Int64")
        removed = pd.array([pd.NA] + self.removals.tolist(), dtype="Int64")
        return pd.DataFrame({
            "t": np.arange(self.tau + 1),
            "S": self.S,
            "I": self.I,
            "R": self.R,
            "incidence": counts,
            "removals": removed,
        })


def simulate(
    initial_state: EpidemicState,
    beta: float,
    gamma: float,
    constants: EpidemicConstants,
    rng: RandomVariateSource,
    observed: Optional[ObservedData] = None,
    include_data: bool = True,
) -> Trajectory:
    """Simulate tau steps of the SIR chain.

    There is no early stopping: a run whose I hits 0 keeps stepping (with
    zero incidence and removals) until tau.

    With observed data and include_data=False the observed steps are kept as
    given and only the remaining steps are drawn. With include_data=True
    (the default) every step is drawn, overwriting any observed values.

    Raises:
        InvalidParameterError: bad rates, an initial state that does not sum
            to N, observed data longer than tau, or fixed observed counts
            that are impossible from the state they are applied to
    """
    check_rates(beta, gamma)
    if initial_state.total != constants.N:
        raise InvalidParameterError(
            f"Initial state sums to {initial_state.total}, expected N={constants.N}"
        )

    n_fixed = 0
    if observed is not None:
        observed.check_horizon(constants)
        if not include_data:
            n_fixed = len(observed)

    tau = constants.tau
    S = np.empty(tau + 1, dtype=np.int64)
    I = np.empty(tau + 1, dtype=np.int64)
    R = np.empty(tau + 1, dtype=np.int64)
    incidence = np.empty(tau, dtype=np.int64)
    removals = np.empty(tau, dtype=np.int64)

    state = initial_state
    S[0], I[0], R[0] = state.S, state.I, state.R

    for t in range(tau):
        if t < n_fixed:
            new_cases = int(observed.incidence[t])
            removed = int(observed.removals[t])
            if new_cases > state.S or removed > state.I:
                raise InvalidParameterError(
                    f"Observed counts at step {t + 1} are infeasible: "
                    f"incidence={new_cases} with S={state.S}, removals={removed} with I={state.I}"
                )
            state = EpidemicState(
                S=state.S - new_cases,
                I=state.I + new_cases - removed,
                R=state.R + removed,
            )
        else:
            state, new_cases, removed = step(state, beta, gamma, constants.N, rng)

        incidence[t] = new_cases
        removals[t] = removed
        S[t + 1], I[t + 1], R[t + 1] = state.S, state.I, state.R

    logger.debug(
        "Simulated %d steps (beta=%.4g, gamma=%.4g, fixed=%d): final size %d",
        tau, beta, gamma, n_fixed, int(R[-1] + I[-1]),
    )
    return Trajectory(
        S=S, I=I, R=R,
        incidence=incidence, removals=removals,
        params=EpidemicParameters(float(beta), float(gamma)),
    )


def simulate_epidemic(
    params: EpidemicParameters,
    constants: EpidemicConstants,
    rng,
    observed: Optional[ObservedData] = None,
    include_data: bool = True,
) -> Trajectory:
    """Simulate with fixed (beta, gamma) from constants.initial_state."""
    return simulate(
        constants.initial_state,
        params.beta,
        params.gamma,
        constants,
        as_source(rng),
        observed=observed,
        include_data=include_data,
    )


def simulate_from_prior(prior, constants: EpidemicConstants, rng) -> Tuple[EpidemicParameters, Trajectory]:
    """Draw (beta, gamma) from `prior`, then simulate with the same source."""
    rng = as_source(rng)
    params = prior.sample_prior(rng)
    return params, simulate_epidemic(params, constants, rng)


def simulate_data(
    params: EpidemicParameters,
    constants: EpidemicConstants,
    seed=None,
    n_observed: Optional[int] = None,
) -> Tuple[Trajectory, ObservedData]:
    """Simulate a data set to fit: the full run plus its first n_observed steps."""
    trajectory = simulate_epidemic(params, constants, as_source(seed))
    return trajectory, trajectory.observed(n_observed)

