"""
Tests for the convergence controller and fit entry point.
"""

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from sq_fitting.derivatives import SuperquadricDerivatives
from sq_fitting.minimizer import FitStatus, Minimizer, MinimizerConfig, minimize
from sq_fitting.params import NUM_PARAMS, SQParams, params_to_vector
from sq_fitting.sampling import sample_superquadric

from conftest import AllNaNProvider, BowlProvider, SingularProvider


def _bowl_minimizer(center, num_points=10, **config):
    minimizer = Minimizer(BowlProvider(center), MinimizerConfig(**config))
    minimizer.load_points(np.zeros((num_points, 3)))
    return minimizer


def test_converges_to_bowl_center(initial_params):
    center = np.linspace(-1.0, 1.0, NUM_PARAMS)
    result = _bowl_minimizer(center).minimize(initial_params)

    assert result.converged
    assert result.status is FitStatus.CONVERGED
    assert result.error <= 0.005
    assert result.iterations < 1000
    assert len(result.errors) == result.iterations
    np.testing.assert_allclose(params_to_vector(result.fitted), center, atol=0.005)


def test_result_unpacks_as_fitted_and_converged(initial_params):
    fitted, converged = _bowl_minimizer(np.zeros(NUM_PARAMS)).minimize(initial_params)
    assert isinstance(fitted, SQParams)
    assert converged is True


def test_empty_points_converge_after_one_iteration(initial_params):
    provider = BowlProvider(np.zeros(NUM_PARAMS))
    minimizer = Minimizer(provider)
    minimizer.load_points([])

    result = minimizer.minimize(initial_params)

    assert result.converged
    assert result.iterations == 1
    assert result.error == 0.0
    assert result.fitted == initial_params
    assert provider.calls == 0


def test_zero_budget_returns_initial_guess(initial_params):
    minimizer = _bowl_minimizer(np.zeros(NUM_PARAMS), max_iterations=0)
    result = minimizer.minimize(initial_params)

    assert not result.converged
    assert result.status is FitStatus.EXHAUSTED
    assert result.iterations == 0
    assert result.fitted == initial_params
    assert minimizer.provider.calls == 0


def test_exhausted_budget_keeps_best_estimate(initial_params):
    center = np.zeros(NUM_PARAMS)
    result = _bowl_minimizer(center, max_iterations=2).minimize(initial_params)

    assert not result.converged
    assert result.status is FitStatus.EXHAUSTED
    assert result.iterations == 2
    assert result.error > 0.005
    start = np.linalg.norm(params_to_vector(initial_params) - center)
    assert np.linalg.norm(params_to_vector(result.fitted) - center) < 0.1 * start


def test_damped_contraction_rate(initial_params):
    # One step on the bowl leaves damping / (1 + damping) of the distance
    center = np.zeros(NUM_PARAMS)
    result = _bowl_minimizer(center, damping_coefficient=0.1, max_iterations=1).minimize(initial_params)

    np.testing.assert_allclose(
        params_to_vector(result.fitted),
        params_to_vector(initial_params) * 0.1 / 1.1,
    )


def test_extreme_damping_still_converges(initial_params):
    result = _bowl_minimizer(np.zeros(NUM_PARAMS), damping_coefficient=1e6).minimize(initial_params)
    assert result.converged
    assert np.all(np.isfinite(params_to_vector(result.fitted)))


def test_heavier_damping_takes_more_iterations(initial_params):
    center = np.zeros(NUM_PARAMS)
    light = _bowl_minimizer(center, damping_coefficient=0.1).minimize(initial_params)
    heavy = _bowl_minimizer(center, damping_coefficient=10.0).minimize(initial_params)

    assert light.converged and heavy.converged
    assert heavy.iterations > light.iterations


def test_singular_system_stops_in_strict_mode(initial_params):
    minimizer = Minimizer(SingularProvider())
    minimizer.load_points(np.zeros((3, 3)))

    result = minimizer.minimize(initial_params)

    assert not result.converged
    assert result.status is FitStatus.SINGULAR
    assert result.iterations == 0
    assert result.fitted == initial_params


def test_singular_system_propagates_until_budget(initial_params):
    config = MinimizerConfig(max_iterations=4, fail_on_singular=False)
    minimizer = Minimizer(SingularProvider(), config)
    minimizer.load_points(np.zeros((3, 3)))

    result = minimizer.minimize(initial_params)

    assert not result.converged
    assert result.status is FitStatus.EXHAUSTED
    assert result.iterations == 4
    assert np.all(np.isnan(params_to_vector(result.fitted)))


@pytest.mark.parametrize("kwargs", [
    {"damping_coefficient": -0.1},
    {"max_iterations": -1},
    {"convergence_threshold": -1e-3},
])
def test_invalid_config_rejected(kwargs):
    with pytest.raises(ValueError):
        MinimizerConfig(**kwargs)


@given(
    offset=st.floats(min_value=-5.0, max_value=5.0, allow_nan=False),
    damping=st.floats(min_value=0.0, max_value=5.0, allow_nan=False),
    max_iterations=st.integers(min_value=1, max_value=20),
)
@settings(max_examples=50, deadline=None)
def test_termination_condition_holds(offset, damping, max_iterations):
    """
    Property: A Finished Fit Either Met the Threshold or Spent the Budget

    converged implies error <= threshold; not converged implies the
    iteration count equals max_iterations.
    """
    center = np.full(NUM_PARAMS, offset)
    minimizer = _bowl_minimizer(
        center,
        damping_coefficient=damping,
        max_iterations=max_iterations,
    )
    result = minimizer.minimize(SQParams(*np.zeros(NUM_PARAMS)))

    if result.converged:
        assert result.error <= 0.005
        assert result.iterations < max_iterations
    else:
        assert result.iterations == max_iterations


def test_superquadric_scenario(true_params):
    rng = np.random.default_rng(0)
    points = sample_superquadric(true_params, 100, rng)
    initial = SQParams(*(params_to_vector(true_params) + np.array([
        0.004, -0.003, 0.002, 0.003, -0.003, 0.002, -0.002, 0.003, 0.004, -0.004, 0.003,
    ])))

    result = minimize(points, initial, config=MinimizerConfig(max_iterations=1000, convergence_threshold=0.005))

    assert result.converged
    assert result.status is FitStatus.CONVERGED
    assert result.num_skipped == 0
    np.testing.assert_allclose(
        params_to_vector(result.fitted),
        params_to_vector(true_params),
        atol=0.01,
    )
    final_error = SuperquadricDerivatives.total_error(params_to_vector(result.fitted), points)
    assert np.isfinite(final_error)


def test_load_points_from_file(tmp_path):
    path = tmp_path / "cloud.xyz"
    np.savetxt(path, np.array([[0.0, 0.0, 0.0], [1.0, 2.0, 3.0]]))

    minimizer = Minimizer(BowlProvider(np.zeros(NUM_PARAMS)))
    points = minimizer.load_points(path)

    assert points.shape == (2, 3)


def test_all_skipped_contributions_stop_in_strict_mode(initial_params):
    minimizer = Minimizer(AllNaNProvider())
    minimizer.load_points(np.zeros((5, 3)))

    result = minimizer.minimize(initial_params)

    assert not result.converged
    assert result.status is FitStatus.SINGULAR
    assert result.iterations == 0
    assert result.fitted == initial_params


def test_all_skipped_contributions_propagate_until_budget(initial_params):
    config = MinimizerConfig(max_iterations=3, fail_on_singular=False)
    minimizer = Minimizer(AllNaNProvider(), config)
    minimizer.load_points(np.zeros((5, 3)))

    result = minimizer.minimize(initial_params)

    assert not result.converged
    assert result.status is FitStatus.EXHAUSTED
    assert result.iterations == 3
    assert result.num_skipped == 3 * 5 * (NUM_PARAMS + NUM_PARAMS * NUM_PARAMS)
    assert np.all(np.isnan(params_to_vector(result.fitted)))


def test_negative_size_is_not_reported_as_converged(true_params):
    points = sample_superquadric(true_params, 20, np.random.default_rng(0))
    vector = params_to_vector(true_params)
    vector[0] = -0.3
    initial = SQParams(*vector)

    result = minimize(points, initial)

    assert not result.converged
    assert result.status is FitStatus.SINGULAR
    assert result.fitted == initial


def test_threshold_met_on_last_iteration_is_exhausted(initial_params):
    provider = BowlProvider(np.zeros(NUM_PARAMS))
    minimizer = Minimizer(provider, MinimizerConfig(max_iterations=1))
    minimizer.load_points([])

    result = minimizer.minimize(initial_params)

    assert not result.converged
    assert result.status is FitStatus.EXHAUSTED
    assert result.iterations == 1
    assert result.error == 0.0
    assert result.fitted == initial_params


def test_threshold_met_before_last_iteration_converges(initial_params):
    # The bowl needs 4 steps from this start at the default damping
    center = np.zeros(NUM_PARAMS)
    assert not _bowl_minimizer(center, max_iterations=4).minimize(initial_params).converged
    assert _bowl_minimizer(center, max_iterations=5).minimize(initial_params).converged
