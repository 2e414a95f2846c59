# src/sir_inference/inference/priors.py
# Independent Gamma priors on beta and gamma.
#
# Gamma priors here are parameterised by SHAPE and RATE, with mean shape / rate.
# scipy.stats.gamma and numpy's Generator.gamma both take a SCALE, so every
# call below passes scale = 1 / rate. Mixing the two conventions silently
# gives the wrong prior.

from dataclasses import dataclass

import numpy as np
from scipy.stats import gamma as scipy_gamma

from ..errors import InvalidParameterError
from ..simulate.random_source import RandomVariateSource
from ..simulate.transition import EpidemicParameters


@dataclass(frozen=True)
class GammaPrior:
    """Gamma(shape, rate) prior on a single non-negative rate."""
    shape: float
    rate: float

    def __post_init__(self):
        if not (self.shape > 0 and self.rate > 0):
            raise InvalidParameterError(
                f"Gamma prior shape and rate must be > 0, got ({self.shape}, {self.rate})"
            )

    @classmethod
    def from_mean(cls, mean: float, strength: float) -> "GammaPrior":
        """Gamma(mean * strength, strength): mean `mean`, variance mean / strength."""
        return cls(shape=mean * strength, rate=strength)

    @property
    def mean(self) -> float:
        return self.shape / self.rate

    @property
    def variance(self) -> float:
        return self.shape / self.rate ** 2

    def sample(self, rng: RandomVariateSource) -> float:
        return rng.gamma(self.shape, self.rate)

    def log_density(self, x: float) -> float:
        """log p(x); -inf at x == 0, InvalidParameterError for x < 0."""
        if x < 0:
            raise InvalidParameterError(f"Gamma prior evaluated at negative value {x}")
        if x == 0:
            return -np.inf
        return float(scipy_gamma.logpdf(x, a=self.shape, scale=1.0 / self.rate))


@dataclass(frozen=True)
class PriorSpecification:
    """Joint prior on (beta, gamma) as two independent Gamma priors."""
    beta: GammaPrior
    gamma: GammaPrior

    @classmethod
    def from_shape_rate(cls, beta_shape_rate, gamma_shape_rate) -> "PriorSpecification":
        return cls(beta=GammaPrior(*beta_shape_rate), gamma=GammaPrior(*gamma_shape_rate))

    def sample_prior(self, rng: RandomVariateSource) -> EpidemicParameters:
        """Draw beta then gamma from their priors."""
        beta = self.beta.sample(rng)
        gamma = self.gamma.sample(rng)
        return EpidemicParameters(beta=beta, gamma=gamma)

    def log_density(self, params: EpidemicParameters) -> float:
        return self.log_density_at(params.beta, params.gamma)

    def log_density_at(self, beta: float, gamma: float) -> float:
        """Joint log density at (beta, gamma), summing the two Gamma terms."""
        return self.beta.log_density(beta) + self.gamma.log_density(gamma)
