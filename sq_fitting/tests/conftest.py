"""
Synthetic derivative providers shared by the tests.
"""

import numpy as np
import pytest

from sq_fitting.params import NUM_PARAMS, SQParams


class BowlProvider:
    """Quadratic bowl 0.5 * sum_k w_k (p_k - c_k)^2 per point.

    Every point contributes the same bowl, so the summed minimum is ``center``
    and one damped step shrinks the distance to it by damping / (1 + damping).
    """

    def __init__(self, center, weights=None):
        self.center = np.asarray(center, dtype=np.float64)
        self.weights = np.ones(NUM_PARAMS) if weights is None else np.asarray(weights, dtype=np.float64)
        self.calls = 0

    def __call__(self, params, point):
        self.calls += 1
        return self.weights * (params - self.center), np.diag(self.weights)


class PointValueProvider:
    """Gradient entries equal to point[0], Hessian entries equal to point[1].

    Points whose x coordinate equals ``bad_x`` get NaN at ``bad_grad_index``
    and ``bad_value`` at ``bad_hess_index``.
    """

    def __init__(self, bad_x=None, bad_grad_index=None, bad_hess_index=None, bad_value=np.nan):
        self.bad_x = bad_x
        self.bad_grad_index = bad_grad_index
        self.bad_hess_index = bad_hess_index
        self.bad_value = bad_value

    def __call__(self, params, point):
        grad = np.full(NUM_PARAMS, point[0])
        hess = np.full((NUM_PARAMS, NUM_PARAMS), point[1])
        if self.bad_x is not None and point[0] == self.bad_x:
            if self.bad_grad_index is not None:
                grad[self.bad_grad_index] = np.nan
            if self.bad_hess_index is not None:
                hess[self.bad_hess_index] = self.bad_value
        return grad, hess


class SingularProvider:
    """Non-zero gradient with an all-zero Hessian."""

    def __call__(self, params, point):
        return np.ones(NUM_PARAMS), np.zeros((NUM_PARAMS, NUM_PARAMS))


class AllNaNProvider:
    """Every gradient and Hessian entry is NaN."""

    def __call__(self, params, point):
        return np.full(NUM_PARAMS, np.nan), np.full((NUM_PARAMS, NUM_PARAMS), np.nan)


@pytest.fixture
def true_params():
    return SQParams(0.3, 0.2, 0.1, 1.0, 1.0, 0.05, -0.02, 0.1, 0.1, -0.05, 0.2)


@pytest.fixture
def initial_params():
    return SQParams(1.0, -2.0, 0.5, 1.5, 0.0, 3.0, -1.0, 0.25, 0.0, 0.7, -0.3)


@pytest.fixture
def cloud():
    rng = np.random.default_rng(7)
    return rng.uniform(-1.0, 1.0, size=(20, 3))
