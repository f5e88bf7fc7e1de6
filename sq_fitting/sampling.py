"""
Synthetic superquadric point clouds and starting guesses.
"""

from typing import Optional, Sequence
import numpy as np

from .derivatives import SuperquadricDerivatives
from .params import SQParams, params_to_vector, vector_to_params, NUM_PARAMS

# Default range for random initial guesses, one (low, high) per parameter
DEFAULT_GUESS_LOW = (0.05, 0.05, 0.05, 0.1, 0.1, -0.5, -0.5, -0.5, -np.pi, -np.pi / 2, -np.pi)
DEFAULT_GUESS_HIGH = (1.0, 1.0, 1.0, 1.9, 1.9, 0.5, 0.5, 0.5, np.pi, np.pi / 2, np.pi)


def _signed_power(values, exponent):
    return np.sign(values) * np.abs(values) ** exponent


def sample_superquadric(
    params: SQParams,
    num_points: int,
    rng: Optional[np.random.Generator] = None,
    noise: float = 0.0,
) -> np.ndarray:
    """
    Sample points on a superquadric surface.

    Args:
        params: shape to sample
        num_points: number of points
        rng: random generator (defaults to a fresh one)
        noise: standard deviation of Gaussian noise added to every coordinate

    Returns:
        points: (num_points, 3) array in world coordinates
    """
    rng = rng or np.random.default_rng()

    # Latitude away from the poles keeps the samples spread over the surface
    eta = rng.uniform(-np.pi / 2 + 0.05, np.pi / 2 - 0.05, num_points)
    omega = rng.uniform(-np.pi, np.pi, num_points)

    ce = _signed_power(np.cos(eta), params.e1)
    local = np.column_stack([
        params.a1 * ce * _signed_power(np.cos(omega), params.e2),
        params.a2 * ce * _signed_power(np.sin(omega), params.e2),
        params.a3 * _signed_power(np.sin(eta), params.e1),
    ])

    R = SuperquadricDerivatives.rotation(params.ra, params.pa, params.ya)
    points = local @ R.T + np.array([params.px, params.py, params.pz])

    if noise > 0:
        points = points + rng.normal(0.0, noise, points.shape)
    return points


def random_initial_guess(
    rng: Optional[np.random.Generator] = None,
    low: Sequence[float] = DEFAULT_GUESS_LOW,
    high: Sequence[float] = DEFAULT_GUESS_HIGH,
) -> SQParams:
    """Uniformly random parameters within [low, high] per field."""
    rng = rng or np.random.default_rng()
    return vector_to_params(rng.uniform(np.asarray(low), np.asarray(high), NUM_PARAMS))


def perturb(
    params: SQParams,
    scale: float,
    rng: Optional[np.random.Generator] = None,
) -> SQParams:
    """Add uniform noise in [-scale, scale] to every field."""
    rng = rng or np.random.default_rng()
    vector = params_to_vector(params)
    return vector_to_params(vector + rng.uniform(-scale, scale, NUM_PARAMS))
