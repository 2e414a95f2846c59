#
# **batch_processing.py**

# Purpose: call `simulate` as many times as needed for a user-defined number of
# independent epidemic runs, and write them to a .csv or a Python `tempfile`.
# Each run owns a random source spawned from the master seed, so no two runs
# ever share one and the batch is reproducible from the seed alone.

# Functions:
# - generate_batch()
#
#   - Input: number of runs, constants, master seed, and either fixed
#     parameters or a prior to draw them from.
#   - Output: list of SimulationRun, and the csv path. Long format: one row
#     per (run, t).
#

import csv
import logging
import tempfile
from pathlib import Path
from typing import List, NamedTuple, Optional, Tuple

from ..errors import InvalidParameterError
from .generate_trajectory import EpidemicConstants, Trajectory, simulate_epidemic
from .random_source import RandomVariateSource
from .transition import EpidemicParameters

logger = logging.getLogger(__name__)

CSV_HEADER = ["sim_id", "beta", "gamma", "t", "S", "I", "R", "incidence", "removals"]


class SimulationRun(NamedTuple):
    sim_id: int
    params: EpidemicParameters
    trajectory: Trajectory


def default_csv_path(use_tempfile=True):
    """Define the filepath of csv


    """
    if use_tempfile:
        tf = tempfile.NamedTemporaryFile(prefix="simulated_epidemics_", suffix=".csv")
        p = Path(tf.name)
        tf.close()
        return p
    else:
        return Path("simulated_epidemics.csv")


def trajectory_rows(sim_id: int, trajectory: Trajectory) -> List[list]:
    """Long-format csv rows for one run; incidence/removals are blank at t=0."""
    params = trajectory.params
    rows = []
    for t in range(trajectory.tau + 1):
        inc = "" if t == 0 else int(trajectory.incidence[t - 1])
        rem = "" if t == 0 else int(trajectory.removals[t - 1])
        rows.append([
            sim_id, params.beta, params.gamma, t,
            int(trajectory.S[t]), int(trajectory.I[t]), int(trajectory.R[t]),
            inc, rem,
        ])
    return rows


def generate_batch(
    n_runs: int,
    constants: EpidemicConstants,
    seed=None,
    params: Optional[EpidemicParameters] = None,
    prior=None,
    out_path=None,
    use_tempfile=True,
) -> Tuple[List[SimulationRun], Path]:
    """Simulate n_runs independent epidemics and write them to csv.

    Exactly one of `params` (every run uses the same beta, gamma) and `prior`
    (each run draws its own) must be given.
    """
    if n_runs < 1:
        raise InvalidParameterError("n_runs must be >= 1")
    if (params is None) == (prior is None):
        raise InvalidParameterError("Provide exactly one of params or prior")

    # Do file pathing
    if out_path is None:
        csv_path = default_csv_path(use_tempfile=use_tempfile)
    else:
        csv_path = Path(out_path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)

    sources = RandomVariateSource(seed).spawn(n_runs)
    runs: List[SimulationRun] = []

    with csv_path.open("w", newline="") as fh:
        writer = csv.writer(fh)
        writer.writerow(CSV_HEADER)

        for sim_id, rng in enumerate(sources, start=1):
            # prior draws come from the run's own source so each run is self-contained
            run_params = params if prior is None else prior.sample_prior(rng)
            trajectory = simulate_epidemic(run_params, constants, rng)
            runs.append(SimulationRun(sim_id, run_params, trajectory))
            writer.writerows(trajectory_rows(sim_id, trajectory))

    logger.info("Wrote %d runs of %d steps to %s", n_runs, constants.tau, csv_path)
    return runs, csv_path
