#!/usr/bin/env python3
# src/sir_inference/runner.py — command line entry point
#
#   python -m sir_inference.runner simulate --beta 0.6 --gamma 0.2 --runs 100 --seed 1
#   python -m sir_inference.runner simulate --runs 100 --seed 1          (draw from the priors)
#   python -m sir_inference.runner fit --iter 5000 --chains 2 --burn-in 1000 --out data/samples.csv
#   python -m sir_inference.runner fit --data observed.csv --tau 60

import argparse
import logging
import re
import sys
import time
from typing import Optional, Tuple

from .inference import fit_model
from .simulate import simulate_paths as sim

# Parser for pairs like 6,10 (shape,rate) or 0.5,0.25
def parse_pair(s: Optional[str]) -> Tuple[float, float]:
    if not s or not s.strip():
        raise argparse.ArgumentTypeError("expected two comma separated numbers, got an empty value")
    try:
        vals = [float(x) for x in re.split(r"[,\s;]+", s.strip()) if x]
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected two comma separated numbers, got {s!r}")
    if len(vals) != 2:
        raise argparse.ArgumentTypeError(f"expected two comma separated numbers, got {s!r}")
    return (vals[0], vals[1])

def add_model_args(p: argparse.ArgumentParser, defaults) -> None:
    p.add_argument("-N", "--population", dest="N", type=int, default=defaults.N,
                   metavar="N", help=f"Population size (default: {defaults.N})")
    p.add_argument("--I0", type=int, default=defaults.I0,
                   help=f"Initially infected (default: {defaults.I0})")
    p.add_argument("--R0", type=int, default=defaults.R0,
                   help=f"Initially removed (default: {defaults.R0})")
    p.add_argument("--tau", type=int, default=defaults.tau,
                   help=f"Number of time steps (default: {defaults.tau})")
    p.add_argument("--prior-beta", type=parse_pair, default=defaults.prior_beta,
                   metavar="SHAPE,RATE",
                   help="Gamma(shape, rate) prior on beta (default: %(default)s)")
    p.add_argument("--prior-gamma", type=parse_pair, default=defaults.prior_gamma,
                   metavar="SHAPE,RATE",
                   help="Gamma(shape, rate) prior on gamma (default: %(default)s)")

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Stochastic SIR simulation and inference")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    # ---------- simulate ----------
    sim_defaults = sim.SimConfig()
    sim_p = sub.add_parser("simulate", help="Simulate independent epidemic runs to csv")
    add_model_args(sim_p, sim_defaults)
    sim_p.add_argument("--beta", type=float, default=None,
                       help="Fixed transmission rate (omit with --gamma to sample the prior)")
    sim_p.add_argument("--gamma", type=float, default=None,
                       help="Fixed recovery hazard")
    sim_p.add_argument("--runs", dest="n_runs", type=int, default=sim_defaults.n_runs,
                       help=f"Number of runs (default: {sim_defaults.n_runs})")
    sim_p.add_argument("--seed", type=int, default=42, metavar="SEED",
                       help="Master RNG seed (default: 42)")
    sim_p.add_argument("--out", default=sim_defaults.out_path, metavar="PATH",
                       help=f"Output csv (default: {sim_defaults.out_path})")
    sim_p.add_argument("--use-tempfile", action="store_true",
                       help="Write to a tempfile instead of --out")

    # ---------- fit ----------
    fit_defaults = fit_model.FitConfig()
    fit_p = sub.add_parser("fit", help="Posterior samples of beta and gamma by MCMC")
    add_model_args(fit_p, fit_defaults)
    fit_p.add_argument("--data", dest="data_path", default=None, metavar="PATH",
                       help="Observed csv with incidence,removals columns (default: simulate)")
    fit_p.add_argument("--sim-id", type=int, default=None,
                       help="Run to fit when --data is a multi-run simulate csv")
    fit_p.add_argument("--true-beta", type=float, default=fit_defaults.true_beta)
    fit_p.add_argument("--true-gamma", type=float, default=fit_defaults.true_gamma)
    fit_p.add_argument("--data-seed", type=int, default=fit_defaults.data_seed)
    fit_p.add_argument("--iter", dest="n_iter", type=int, default=fit_defaults.n_iter)
    fit_p.add_argument("--chains", dest="n_chains", type=int, default=fit_defaults.n_chains)
    fit_p.add_argument("--burn-in", type=int, default=fit_defaults.burn_in)
    fit_p.add_argument("--seed", type=int, default=42)
    fit_p.add_argument("--init", type=parse_pair, default=fit_defaults.initial,
                       metavar="BETA,GAMMA", help="Initial values (default: %(default)s)")
    fit_p.add_argument("--proposal-scale", type=parse_pair, default=fit_defaults.proposal_scale,
                       metavar="SD_BETA,SD_GAMMA")
    fit_p.add_argument("--out", default=None, metavar="PATH",
                       help="Write post burn-in samples to this csv")
    return p

def main(argv=None):
    p = build_parser()
    args = p.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    t0 = time.perf_counter()

    try:
        if args.cmd == "simulate":
            cfg = sim.SimConfig(
                N=args.N, I0=args.I0, R0=args.R0, tau=args.tau,
                beta=args.beta, gamma=args.gamma,
                prior_beta=args.prior_beta, prior_gamma=args.prior_gamma,
                n_runs=args.n_runs, seed=args.seed,
                out_path=args.out, use_tempfile=args.use_tempfile,
            )
            _, csv_path = sim.simulate_batch(cfg)
            print("Simulation done ->", csv_path)

        elif args.cmd == "fit":
            cfg = fit_model.FitConfig(
                N=args.N, I0=args.I0, R0=args.R0, tau=args.tau,
                prior_beta=args.prior_beta, prior_gamma=args.prior_gamma,
                data_path=args.data_path, sim_id=args.sim_id,
                true_beta=args.true_beta, true_gamma=args.true_gamma,
                data_seed=args.data_seed,
                n_iter=args.n_iter, n_chains=args.n_chains, burn_in=args.burn_in,
                seed=args.seed, initial=args.init, proposal_scale=args.proposal_scale,
                out_path=args.out,
            )
            samples, summary = fit_model.fit(cfg)
            print(f"Posterior summary ({len(samples)} samples after burn-in):")
            print(summary.round(4).to_string())

    except (ValueError, FileNotFoundError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    print(f"Done in {time.perf_counter() - t0:.2f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
