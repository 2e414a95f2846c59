# src/sir_inference/inference/likelihood.py
"""
Binomial-chain log-likelihood of observed incidence and removals.

S and I are not latent: given the initial state and the two observed count
sequences they follow exactly from the difference equations, so the only
unknowns are beta and gamma.
"""

from typing import Sequence, Tuple

import numpy as np
from scipy.stats import binom

from ..errors import InvalidParameterError
from ..simulate.generate_trajectory import EpidemicConstants, ObservedData
from ..simulate.transition import check_rates, transition_probabilities


def reconstruct_states(
    incidence: Sequence[int],
    removals: Sequence[int],
    constants: EpidemicConstants,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Rebuild S, I, R for t = 0..len(incidence) from constants.initial_state.

    No feasibility check is made here: if the counts are impossible some
    entries come out negative, which log_likelihood reads as zero mass.

    Returns:
        (S, I, R): int arrays of length len(incidence) + 1
    """
    data = ObservedData(incidence, removals)
    data.check_horizon(constants)
    start = constants.initial_state

    cum_inc = np.concatenate(([0], np.cumsum(data.incidence)))
    cum_rem = np.concatenate(([0], np.cumsum(data.removals)))

    S = start.S - cum_inc
    I = start.I + cum_inc - cum_rem
    R = start.R + cum_rem
    return S.astype(np.int64), I.astype(np.int64), R.astype(np.int64)


def log_likelihood(
    observed_incidence: Sequence[int],
    observed_removals: Sequence[int],
    beta: float,
    gamma: float,
    constants: EpidemicConstants,
) -> float:
    """Joint log-likelihood of the observed counts given beta and gamma.

    Sum over t of
        log Binom(incidence_t; S_{t-1}, 1 - exp(-beta * I_{t-1} / N))
      + log Binom(removals_t;  I_{t-1}, 1 - exp(-gamma))

    Returns:
        float: -inf when some count exceeds the pool it is drawn from
    Raises:
        InvalidParameterError: negative or mismatched counts, data longer
            than tau, or negative beta / gamma
    """
    check_rates(beta, gamma)
    S, I, _ = reconstruct_states(observed_incidence, observed_removals, constants)
    incidence = np.asarray(observed_incidence, dtype=np.int64)
    removals = np.asarray(observed_removals, dtype=np.int64)

    if incidence.size == 0:
        return 0.0

    S_prev = S[:-1]
    I_prev = I[:-1]
    if np.any(incidence > S_prev) or np.any(removals > I_prev):
        return -np.inf

    prob_si, prob_ir = transition_probabilities(I_prev, beta, gamma, constants.N)
    ll = binom.logpmf(incidence, S_prev, prob_si).sum()
    ll += binom.logpmf(removals, I_prev, prob_ir).sum()

    if np.isnan(ll):
        return -np.inf
    return float(ll)


def log_likelihood_data(data: ObservedData, beta: float, gamma: float, constants: EpidemicConstants) -> float:
    return log_likelihood(data.incidence, data.removals, beta, gamma, constants)
