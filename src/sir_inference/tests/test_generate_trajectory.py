import numpy as np
import pandas as pd
import pytest

from sir_inference.errors import InvalidParameterError
from sir_inference.inference.priors import GammaPrior, PriorSpecification
from sir_inference.simulate.generate_trajectory import (
    EpidemicConstants,
    ObservedData,
    simulate,
    simulate_data,
    simulate_epidemic,
    simulate_from_prior,
)
from sir_inference.simulate.random_source import RandomVariateSource
from sir_inference.simulate.transition import EpidemicParameters, EpidemicState

CONSTANTS = EpidemicConstants(N=10000, I0=5, R0=0, tau=100)
TRUTH = EpidemicParameters(beta=0.6, gamma=0.2)


def test_shapes_and_initial_state():
    traj = simulate_epidemic(TRUTH, CONSTANTS, RandomVariateSource(1))
    assert traj.S.shape == traj.I.shape == traj.R.shape == (CONSTANTS.tau + 1,)
    assert traj.incidence.shape == traj.removals.shape == (CONSTANTS.tau,)
    assert (traj.S[0], traj.I[0], traj.R[0]) == (9995, 5, 0)
    assert traj.params == TRUTH


def test_invariants_hold_on_every_step():
    """S+I+R = N, and the counts obey the difference equations and pool bounds."""
    for seed in range(5):
        traj = simulate_epidemic(TRUTH, CONSTANTS, RandomVariateSource(seed))
        assert np.all(traj.S + traj.I + traj.R == CONSTANTS.N)
        assert np.all(traj.incidence <= traj.S[:-1])
        assert np.all(traj.removals <= traj.I[:-1])
        assert np.array_equal(traj.S[1:], traj.S[:-1] - traj.incidence)
        assert np.array_equal(traj.I[1:], traj.I[:-1] + traj.incidence - traj.removals)
        assert np.array_equal(traj.R[1:], traj.R[:-1] + traj.removals)


def test_same_seed_is_bit_identical():
    a = simulate_epidemic(TRUTH, CONSTANTS, 1)
    b = simulate_epidemic(TRUTH, CONSTANTS, 1)
    for name in ("S", "I", "R", "incidence", "removals"):
        assert np.array_equal(getattr(a, name), getattr(b, name))


def test_different_seed_differs():
    a = simulate_epidemic(TRUTH, CONSTANTS, 1)
    b = simulate_epidemic(TRUTH, CONSTANTS, 2)
    assert not np.array_equal(a.incidence, b.incidence)


def test_zero_beta_no_transmission():
    traj = simulate_epidemic(EpidemicParameters(0.0, 0.2), CONSTANTS, 4)
    assert np.all(traj.incidence == 0)
    assert np.all(traj.S == traj.S[0])


def test_no_initial_infectious_never_grows():
    constants = EpidemicConstants(N=1000, I0=0, R0=0, tau=30)
    traj = simulate_epidemic(EpidemicParameters(2.0, 0.2), constants, 8)
    assert np.all(traj.incidence == 0)
    assert np.all(traj.removals == 0)
    assert np.all(traj.I == 0)


def test_no_early_stop_after_extinction():
    """A run that dies out still has tau + 1 states, padded with zero counts."""
    constants = EpidemicConstants(N=100, I0=1, R0=0, tau=50)
    traj = simulate_epidemic(EpidemicParameters(0.0, 1e6), constants, 0)
    assert traj.I[1] == 0
    assert traj.S.shape == (51,)
    assert np.all(traj.incidence == 0)
    assert np.all(traj.removals[1:] == 0)


def test_trajectory_is_read_only():
    traj = simulate_epidemic(TRUTH, CONSTANTS, 1)
    with pytest.raises(ValueError):
        traj.S[0] = 0
    with pytest.raises(AttributeError):
        traj.S = np.zeros(3)


def test_runs_do_not_share_state():
    """Each call returns a fresh Trajectory; a later run leaves earlier output untouched."""
    rng = RandomVariateSource(5)
    first = simulate_epidemic(TRUTH, CONSTANTS, rng)
    snapshot = first.incidence.copy()
    second = simulate_epidemic(TRUTH, CONSTANTS, rng)
    assert first is not second
    assert np.array_equal(first.incidence, snapshot)


def test_initial_state_must_sum_to_N():
    with pytest.raises(InvalidParameterError):
        simulate(EpidemicState(10, 1, 0), 0.5, 0.2, CONSTANTS, RandomVariateSource(0))


def test_include_data_false_keeps_observed_prefix():
    original = simulate_epidemic(TRUTH, CONSTANTS, 1)
    observed = original.observed(20)

    conditioned = simulate_epidemic(
        TRUTH, CONSTANTS, RandomVariateSource(99), observed=observed, include_data=False
    )
    assert np.array_equal(conditioned.incidence[:20], observed.incidence)
    assert np.array_equal(conditioned.removals[:20], observed.removals)
    assert np.array_equal(conditioned.S[:21], original.S[:21])
    assert np.all(conditioned.S + conditioned.I + conditioned.R == CONSTANTS.N)


def test_include_data_true_overwrites_observed():
    """With include_data=True the observed values are ignored and every step is drawn."""
    original = simulate_epidemic(TRUTH, CONSTANTS, 1)
    fake = ObservedData(np.zeros(20, dtype=int), np.zeros(20, dtype=int))
    redrawn = simulate_epidemic(TRUTH, CONSTANTS, 1, observed=fake, include_data=True)
    assert np.array_equal(redrawn.incidence, original.incidence)


def test_infeasible_fixed_observation_raises():
    observed = ObservedData([CONSTANTS.N], [0])
    with pytest.raises(InvalidParameterError):
        simulate_epidemic(TRUTH, CONSTANTS, 0, observed=observed, include_data=False)


def test_observed_longer_than_tau_raises():
    constants = EpidemicConstants(N=100, I0=1, tau=3)
    observed = ObservedData([0, 0, 0, 0], [0, 0, 0, 0])
    with pytest.raises(InvalidParameterError):
        simulate_epidemic(TRUTH, constants, 0, observed=observed, include_data=False)


def test_first_step_incidence_near_expected_mean():
    """Binomial(9995, 1 - exp(-0.6 * 5 / 10000)) has mean ~3."""
    sources = RandomVariateSource(2024).spawn(2000)
    constants = EpidemicConstants(N=10000, I0=5, R0=0, tau=1)
    first = [simulate_epidemic(TRUTH, constants, s).incidence[0] for s in sources]
    expected = 9995 * (1 - np.exp(-0.6 * 5 / 10000))
    assert np.mean(first) == pytest.approx(expected, abs=0.2)


def test_simulate_from_prior_draws_parameters():
    prior = PriorSpecification(GammaPrior(6.0, 10.0), GammaPrior(0.2 * 348, 348))
    params, traj = simulate_from_prior(prior, CONSTANTS, 3)
    assert params.beta > 0 and params.gamma > 0
    assert traj.params == params
    again, _ = simulate_from_prior(prior, CONSTANTS, 3)
    assert again == params


def test_simulate_data_returns_prefix():
    traj, data = simulate_data(TRUTH, CONSTANTS, seed=1, n_observed=30)
    assert len(data) == 30
    assert np.array_equal(data.incidence, traj.incidence[:30])
    _, full = simulate_data(TRUTH, CONSTANTS, seed=1)
    assert len(full) == CONSTANTS.tau


def test_to_frame():
    traj = simulate_epidemic(TRUTH, EpidemicConstants(N=50, I0=2, tau=4), 0)
    df = traj.to_frame()
    assert list(df.columns) == ["t", "S", "I", "R", "incidence", "removals"]
    assert len(df) == 5
    assert pd.isna(df.loc[0, "incidence"])
    assert df["incidence"].iloc[1:].tolist() == traj.incidence.tolist()


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(N=0, I0=0, tau=10),
        dict(N=10, I0=-1, tau=10),
        dict(N=10, I0=5, R0=6, tau=10),
        dict(N=10, I0=1, tau=0),
        dict(N=10.5, I0=1, tau=5),
        dict(N=float("inf"), I0=1, tau=5),
        dict(N=100, I0=1, tau=float("nan")),
        dict(N=100, I0="1", tau=5),
    ],
)
def test_invalid_constants(kwargs):
    with pytest.raises(InvalidParameterError):
        EpidemicConstants(**kwargs)


def test_observed_data_validation():
    with pytest.raises(InvalidParameterError):
        ObservedData([1, 2, 3], [1, 2])
    with pytest.raises(InvalidParameterError):
        ObservedData([1, -2], [0, 0])
    with pytest.raises(InvalidParameterError):
        ObservedData([1.5], [0])
    data = ObservedData([1, 2], [0, 1])
    assert len(data) == 2
