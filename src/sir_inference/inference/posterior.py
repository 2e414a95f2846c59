# src/sir_inference/inference/posterior.py
# The single scalar a sampler needs: log p(data | beta, gamma) + log p(beta, gamma).

import numpy as np

from ..simulate.generate_trajectory import EpidemicConstants, ObservedData
from .likelihood import log_likelihood
from .priors import PriorSpecification


class LogPosterior:
    """Unnormalised log posterior of (beta, gamma) for one fixed data set.

    Calling the instance with (beta, gamma) returns a float. A value of -inf
    means zero posterior mass and must be treated as a rejection by the
    sampler, never as an error.

    Args:
        data (ObservedData): observed incidence and removals
        constants (EpidemicConstants): N, I0, R0 and tau of the data set
        prior (PriorSpecification): Gamma priors on beta and gamma
    """

    def __init__(self, data: ObservedData, constants: EpidemicConstants, prior: PriorSpecification):
        data.check_horizon(constants)
        self.data = data
        self.constants = constants
        self.prior = prior

    def log_prior(self, beta: float, gamma: float) -> float:
        return self.prior.log_density_at(beta, gamma)

    def log_likelihood(self, beta: float, gamma: float) -> float:
        return log_likelihood(self.data.incidence, self.data.removals, beta, gamma, self.constants)

    def __call__(self, beta: float, gamma: float) -> float:
        lp = self.log_prior(beta, gamma)
        # skip the likelihood where the prior already rules the point out
        if lp == -np.inf:
            return -np.inf
        ll = self.log_likelihood(beta, gamma)
        if ll == -np.inf:
            return -np.inf
        return lp + ll
