# src/sir_inference/simulate/simulate_paths.py
"""
Batch simulation driven by a single config object.
The runner builds a SimConfig from the command line and calls simulate_batch.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import logging
import pathlib

from .batch_processing import generate_batch
from .generate_trajectory import EpidemicConstants
from .transition import EpidemicParameters
from ..inference.priors import PriorSpecification

# Start logger
logger = logging.getLogger(__name__)

@dataclass
class SimConfig:
    N: int = 10000
    I0: int = 5
    R0: int = 0
    tau: int = 100
    # fixed parameters; leave both as None to draw each run from the prior
    beta: Optional[float] = None
    gamma: Optional[float] = None
    prior_beta: Tuple[float, float] = (0.6 * 10, 10.0)
    prior_gamma: Tuple[float, float] = (0.2 * 348, 348.0)
    n_runs: int = 100
    seed: Optional[int] = None
    out_path: str = "data/simulated_epidemics.csv"
    use_tempfile: bool = False

    def constants(self) -> EpidemicConstants:
        return EpidemicConstants(N=self.N, I0=self.I0, R0=self.R0, tau=self.tau)

    def prior(self) -> PriorSpecification:
        return PriorSpecification.from_shape_rate(self.prior_beta, self.prior_gamma)

    def params(self) -> Optional[EpidemicParameters]:
        if self.beta is None and self.gamma is None:
            return None
        if self.beta is None or self.gamma is None:
            raise ValueError("Give both beta and gamma, or neither to sample from the prior")
        return EpidemicParameters(beta=self.beta, gamma=self.gamma)


def simulate_batch(cfg: SimConfig):
    """Run the batch generation and return the runs and csv path."""
    params = cfg.params()
    prior = cfg.prior() if params is None else None
    out_path = None if cfg.use_tempfile else pathlib.Path(cfg.out_path)

    runs, csv_path = generate_batch(
        n_runs=int(cfg.n_runs),
        constants=cfg.constants(),
        seed=cfg.seed,
        params=params,
        prior=prior,
        out_path=out_path,
        use_tempfile=cfg.use_tempfile,
    )

    mode = "prior" if prior is not None else f"beta={params.beta}, gamma={params.gamma}"
    logger.info("Simulated %d runs (%s)", len(runs), mode)
    logger.info("CSV written to: %s", csv_path)
    return runs, csv_path
