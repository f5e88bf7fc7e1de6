"""
Superquadric error functional and its exact per-point derivatives.

For parameters p = [a1, a2, a3, e1, e2, px, py, pz, ra, pa, ya] a world point x
is moved into the shape frame, q = R(ra, pa, ya)^T (x - t), and scored with
the inside-outside function

    F(q) = (|qx/a1|^(2/e2) + |qy/a2|^(2/e2))^(e2/e1) + |qz/a3|^(2/e1)

The per-point error is (sqrt(a1 a2 a3) * (F^e1 - 1))^2. The volume factor
favours the smallest shape explaining the points and F^e1 keeps the error
well behaved for both small and large exponents.
"""

import jax
import jax.numpy as jnp
import numpy as np
from typing import Tuple

try:
    from jax import enable_x64
except ImportError:
    # older releases only ship the experimental context manager
    from jax.experimental import enable_x64


def rotation_matrix(ra, pa, ya):
    """ZYX (yaw-pitch-roll) rotation, R = Rz(ya) @ Ry(pa) @ Rx(ra)."""
    cr, sr = jnp.cos(ra), jnp.sin(ra)
    cp, sp = jnp.cos(pa), jnp.sin(pa)
    cy, sy = jnp.cos(ya), jnp.sin(ya)
    return jnp.array([
        [cy * cp, cy * sp * sr - sy * cr, cy * sp * cr + sy * sr],
        [sy * cp, sy * sp * sr + cy * cr, sy * sp * cr - cy * sr],
        [-sp, cp * sr, cp * cr],
    ])


def _inside_outside(params, point):
    a1, a2, a3, e1, e2, px, py, pz, ra, pa, ya = params
    R = rotation_matrix(ra, pa, ya)
    q = R.T @ (point - jnp.array([px, py, pz]))

    xy = jnp.abs(q[0] / a1) ** (2.0 / e2) + jnp.abs(q[1] / a2) ** (2.0 / e2)
    return xy ** (e2 / e1) + jnp.abs(q[2] / a3) ** (2.0 / e1)


def point_error(params, point):
    """Squared, volume-weighted inside-outside error of one point."""
    a1, a2, a3, e1 = params[0], params[1], params[2], params[3]
    F = _inside_outside(params, point)
    residual = jnp.sqrt(a1 * a2 * a3) * (F ** e1 - 1.0)
    return residual ** 2


@jax.jit
def _point_derivatives(params, point):
    return jax.grad(point_error)(params, point), jax.hessian(point_error)(params, point)


_batch_inside_outside = jax.jit(jax.vmap(_inside_outside, in_axes=(None, 0)))
_batch_error = jax.jit(jax.vmap(point_error, in_axes=(None, 0)))


class SuperquadricDerivatives:
    """Derivative provider for the superquadric error functional.

    Instances are callables with the provider signature
    ``(params (11,), point (3,)) -> (gradient (11,), hessian (11, 11))``.
    Entries can be NaN when the point sits on a local coordinate plane and
    an exponent makes the power non-differentiable there.
    """

    def __call__(self, params: np.ndarray, point: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        # Newton steps need float64 Hessians, scoped to this call
        with enable_x64(True):
            grad, hess = _point_derivatives(
                jnp.asarray(params, dtype=jnp.float64),
                jnp.asarray(point, dtype=jnp.float64),
            )
            return np.asarray(grad), np.asarray(hess)

    @staticmethod
    def error(params: np.ndarray, point: np.ndarray) -> float:
        """Error of a single point."""
        with enable_x64(True):
            return float(point_error(
                jnp.asarray(params, dtype=jnp.float64),
                jnp.asarray(point, dtype=jnp.float64),
            ))

    @staticmethod
    def rotation(ra: float, pa: float, ya: float) -> np.ndarray:
        """Shape-to-world rotation as a float64 array."""
        with enable_x64(True):
            return np.asarray(rotation_matrix(
                jnp.float64(ra), jnp.float64(pa), jnp.float64(ya)
            ))

    @staticmethod
    def inside_outside(params: np.ndarray, points: np.ndarray) -> np.ndarray:
        """F for each point: < 1 inside, 1 on the surface, > 1 outside."""
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if len(points) == 0:
            return np.zeros(0)
        with enable_x64(True):
            return np.asarray(_batch_inside_outside(
                jnp.asarray(params, dtype=jnp.float64), jnp.asarray(points)
            ))

    @staticmethod
    def total_error(params: np.ndarray, points: np.ndarray) -> float:
        """Sum of per-point errors over the collection."""
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if len(points) == 0:
            return 0.0
        with enable_x64(True):
            return float(jnp.sum(_batch_error(
                jnp.asarray(params, dtype=jnp.float64), jnp.asarray(points)
            )))
