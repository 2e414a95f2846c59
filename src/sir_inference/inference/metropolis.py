# src/sir_inference/inference/metropolis.py
"""
Adaptive random-walk Metropolis-within-Gibbs for (beta, gamma).

Each iteration updates beta then gamma with a scalar Normal random walk.
Proposals are reflected at zero (abs), which keeps the proposal symmetric on
[0, inf), so the plain Metropolis ratio applies. Every `adapt_interval`
iterations each proposal scale is nudged toward 44% acceptance, with the
size of the nudge shrinking over time.

The sampler only ever sees the log posterior as a black-box callable.
Burn-in is not discarded here; use discard_burn_in() on the result.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..errors import InvalidParameterError
from ..simulate.random_source import RandomVariateSource, as_source

logger = logging.getLogger(__name__)

PARAM_NAMES = ("beta", "gamma")
TARGET_ACCEPTANCE = 0.44


@dataclass
class MCMCResult:
    samples: np.ndarray          # (n_iter, 2), columns beta, gamma
    log_posterior: np.ndarray    # (n_iter,)
    acceptance_rate: np.ndarray  # (2,), per parameter
    proposal_scale: np.ndarray   # (2,), final scales after adaptation
    chain: int = 0

    @property
    def n_iter(self) -> int:
        return int(self.samples.shape[0])

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "chain": self.chain,
            "iteration": np.arange(self.n_iter),
            "beta": self.samples[:, 0],
            "gamma": self.samples[:, 1],
            "log_posterior": self.log_posterior,
        })


def _adapt_factor(times_adapted: int, acceptance: float) -> float:
    decay = 1.0 / (times_adapted + 3) ** 0.8
    return float(np.exp(10.0 * decay * (acceptance - TARGET_ACCEPTANCE)))


def run_metropolis(
    log_posterior: Callable[[float, float], float],
    initial: Sequence[float],
    n_iter: int,
    rng=None,
    proposal_scale: Sequence[float] = (0.1, 0.1),
    adapt: bool = True,
    adapt_interval: int = 200,
    chain: int = 0,
) -> MCMCResult:
    """Run one chain.

    Args:
        log_posterior: callable (beta, gamma) -> float; -inf rejects
        initial: starting (beta, gamma), must have finite log posterior
        n_iter (int): number of iterations kept (each one updates both)
        rng: RandomVariateSource, seed, or None
        proposal_scale: starting random-walk sd for beta and gamma
        adapt (bool): tune the scales toward 44% acceptance
        adapt_interval (int): iterations between tuning steps
    Returns:
        MCMCResult
    Raises:
        InvalidParameterError
    """
    if n_iter < 1:
        raise InvalidParameterError("n_iter must be >= 1")
    if adapt_interval < 1:
        raise InvalidParameterError("adapt_interval must be >= 1")
    current = np.asarray(initial, dtype=float)
    scale = np.asarray(proposal_scale, dtype=float).copy()
    if current.shape != (2,) or scale.shape != (2,):
        raise InvalidParameterError("initial and proposal_scale must both hold (beta, gamma)")
    if np.any(current < 0):
        raise InvalidParameterError(f"Initial values must be >= 0, got {tuple(current)}")
    if np.any(scale <= 0):
        raise InvalidParameterError("proposal_scale entries must be > 0")

    rng = as_source(rng)
    current_lp = log_posterior(*current)
    if not np.isfinite(current_lp):
        raise InvalidParameterError(
            f"Log posterior at the initial values {tuple(current)} is not finite"
        )

    samples = np.empty((n_iter, 2))
    trace = np.empty(n_iter)
    accepted_total = np.zeros(2, dtype=int)
    accepted_window = np.zeros(2, dtype=int)
    times_adapted = 0

    for it in range(n_iter):
        for j in range(2):
            proposal = current.copy()
            proposal[j] = abs(rng.normal(current[j], scale[j]))
            proposal_lp = log_posterior(*proposal)

            # -inf proposals are always rejected
            if np.isfinite(proposal_lp) and np.log(rng.uniform()) < proposal_lp - current_lp:
                current = proposal
                current_lp = proposal_lp
                accepted_total[j] += 1
                accepted_window[j] += 1

        samples[it] = current
        trace[it] = current_lp

        if adapt and (it + 1) % adapt_interval == 0:
            rates = accepted_window / adapt_interval
            for j in range(2):
                scale[j] *= _adapt_factor(times_adapted, rates[j])
            times_adapted += 1
            accepted_window[:] = 0
            logger.debug("chain %d iter %d: acceptance %s, scales %s", chain, it + 1, rates, scale)

    acceptance = accepted_total / n_iter
    logger.info(
        "chain %d finished %d iterations: acceptance beta=%.3f gamma=%.3f",
        chain, n_iter, acceptance[0], acceptance[1],
    )
    return MCMCResult(
        samples=samples,
        log_posterior=trace,
        acceptance_rate=acceptance,
        proposal_scale=scale,
        chain=chain,
    )


def run_chains(
    log_posterior: Callable[[float, float], float],
    initial: Sequence[float],
    n_iter: int,
    n_chains: int = 1,
    seed=None,
    **kwargs,
) -> List[MCMCResult]:
    """Run independent chains, each with its own spawned random source."""
    if n_chains < 1:
        raise InvalidParameterError("n_chains must be >= 1")
    sources = RandomVariateSource(seed).spawn(n_chains)
    return [
        run_metropolis(log_posterior, initial, n_iter, rng=source, chain=c, **kwargs)
        for c, source in enumerate(sources)
    ]


def discard_burn_in(
    result: Union[MCMCResult, pd.DataFrame, Sequence[MCMCResult]],
    n_burn: int,
) -> pd.DataFrame:
    """Drop the first n_burn iterations of every chain and return one DataFrame."""
    if n_burn < 0:
        raise InvalidParameterError("n_burn must be >= 0")
    if isinstance(result, MCMCResult):
        df = result.to_frame()
    elif isinstance(result, pd.DataFrame):
        df = result
    else:
        df = pd.concat([r.to_frame() for r in result], ignore_index=True)
    return df.loc[df["iteration"] >= n_burn].reset_index(drop=True)


def summarise_posterior(samples: pd.DataFrame, columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """Mean, sd and 2.5 / 50 / 97.5% quantiles for each parameter column."""
    columns = list(columns) if columns is not None else list(PARAM_NAMES)
    missing = [c for c in columns if c not in samples.columns]
    if missing:
        raise ValueError(f"Samples are missing columns: {missing}")
    if samples.empty:
        raise ValueError("No samples to summarise (is burn-in longer than the chain?)")
    values = samples[columns]
    summary = pd.DataFrame({
        "mean": values.mean(),
        "sd": values.std(),
        "q2.5": values.quantile(0.025),
        "median": values.quantile(0.5),
        "q97.5": values.quantile(0.975),
    })
    summary.index.name = "parameter"
    return summary
