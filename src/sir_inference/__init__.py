"""Stochastic SIR simulation and Bayesian inference of beta and gamma."""

from .version_info import VERSION as __version__
from .errors import InvalidParameterError
from .simulate.random_source import RandomVariateSource
from .simulate.transition import EpidemicState, EpidemicParameters, step
from .simulate.generate_trajectory import (
    EpidemicConstants,
    ObservedData,
    Trajectory,
    simulate,
    simulate_epidemic,
    simulate_from_prior,
    simulate_data,
)
from .inference.priors import GammaPrior, PriorSpecification
from .inference.likelihood import log_likelihood, reconstruct_states
from .inference.posterior import LogPosterior
