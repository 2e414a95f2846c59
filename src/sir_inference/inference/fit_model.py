# src/sir_inference/inference/fit_model.py
"""
End-to-end fit: load (or simulate) observed counts, build the log posterior,
run the Metropolis chains, drop burn-in and summarise.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple
import logging

import pandas as pd

from ..errors import InvalidParameterError
from ..simulate.generate_trajectory import EpidemicConstants, ObservedData, simulate_data
from ..simulate.transition import EpidemicParameters
from .metropolis import discard_burn_in, run_chains, summarise_posterior
from .posterior import LogPosterior
from .priors import PriorSpecification

logger = logging.getLogger(__name__)

OBSERVED_COLUMNS = ("incidence", "removals")


@dataclass
class FitConfig:
    N: int = 10000
    I0: int = 5
    R0: int = 0
    tau: int = 100
    prior_beta: Tuple[float, float] = (0.6 * 10, 10.0)
    prior_gamma: Tuple[float, float] = (0.2 * 348, 348.0)
    # observed data: read from csv, or simulated from the "true" values below
    data_path: Optional[str] = None
    sim_id: Optional[int] = None
    true_beta: float = 0.6
    true_gamma: float = 0.2
    data_seed: Optional[int] = 1
    # sampler
    n_iter: int = 5000
    n_chains: int = 2
    burn_in: int = 1000
    seed: Optional[int] = None
    initial: Tuple[float, float] = (0.5, 0.25)
    proposal_scale: Tuple[float, float] = (0.05, 0.02)
    adapt_interval: int = 200
    out_path: Optional[str] = None

    def constants(self) -> EpidemicConstants:
        return EpidemicConstants(N=self.N, I0=self.I0, R0=self.R0, tau=self.tau)

    def prior(self) -> PriorSpecification:
        return PriorSpecification.from_shape_rate(self.prior_beta, self.prior_gamma)


def load_observed_csv(path, sim_id: Optional[int] = None) -> ObservedData:
    """Read observed counts from a csv with `incidence` and `removals` columns.

    Rows are taken in `t` order when a `t` column exists, else in file order.
    A row with both counts blank (the t=0 row written by generate_batch) is
    dropped; a row with only one of them blank is an error.

    A csv with a `sim_id` column (generate_batch output) holds several runs;
    `sim_id` picks one, and may be left out only when the file has one run.
    """
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Observed data csv not found: {path}")
    df = pd.read_csv(csv_path)
    missing = [c for c in OBSERVED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Observed data csv {path} is missing columns: {missing}")

    if "sim_id" in df.columns:
        run_ids = df["sim_id"].unique()
        if sim_id is None:
            if len(run_ids) != 1:
                raise InvalidParameterError(
                    f"{path} holds {len(run_ids)} runs; choose one with sim_id"
                )
            sim_id = run_ids[0]
        df = df.loc[df["sim_id"] == sim_id]
        if df.empty:
            raise InvalidParameterError(f"sim_id {sim_id} not found in {path}")
    elif sim_id is not None:
        raise InvalidParameterError(f"{path} has no sim_id column to select from")

    if "t" in df.columns:
        df = df.sort_values("t", kind="stable")

    blank = df[list(OBSERVED_COLUMNS)].isna()
    half_blank = blank.any(axis=1) & ~blank.all(axis=1)
    if half_blank.any():
        rows = df.index[half_blank].tolist()
        raise InvalidParameterError(
            f"Observed data csv {path} has rows with only one of incidence/removals: {rows}"
        )
    df = df.loc[~blank.all(axis=1)]
    return ObservedData(df["incidence"].to_numpy(), df["removals"].to_numpy())


def observed_data(cfg: FitConfig, constants: EpidemicConstants) -> ObservedData:
    if cfg.data_path is not None:
        data = load_observed_csv(cfg.data_path, sim_id=cfg.sim_id)
        logger.info("Loaded %d observed steps from %s", len(data), cfg.data_path)
        return data
    truth = EpidemicParameters(beta=cfg.true_beta, gamma=cfg.true_gamma)
    _, data = simulate_data(truth, constants, seed=cfg.data_seed)
    logger.info(
        "Simulated %d observed steps with beta=%s, gamma=%s (seed %s)",
        len(data), cfg.true_beta, cfg.true_gamma, cfg.data_seed,
    )
    return data


def fit(cfg: FitConfig) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Run the fit described by cfg.

    Returns:
        (samples, summary): post burn-in samples of every chain, and
        summarise_posterior() of them
    """
    constants = cfg.constants()
    data = observed_data(cfg, constants)
    log_post = LogPosterior(data, constants, cfg.prior())

    chains = run_chains(
        log_post,
        initial=cfg.initial,
        n_iter=cfg.n_iter,
        n_chains=cfg.n_chains,
        seed=cfg.seed,
        proposal_scale=cfg.proposal_scale,
        adapt_interval=cfg.adapt_interval,
    )
    samples = discard_burn_in(chains, cfg.burn_in)
    summary = summarise_posterior(samples)

    if cfg.out_path is not None:
        out = Path(cfg.out_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        samples.to_csv(out, index=False)
        logger.info("Posterior samples written to: %s", out)

    return samples, summary
