"""
Levenberg-Marquardt style damped Newton step.
"""

import logging
import numpy as np
import scipy.linalg

from .errors import SingularSystemError

logger = logging.getLogger(__name__)


def damping_matrix(hessian: np.ndarray) -> np.ndarray:
    """Diagonal matrix holding the Hessian's diagonal."""
    return np.diag(np.diag(hessian))


def damped_newton_step(
    gradient: np.ndarray,
    hessian: np.ndarray,
    damping: float = 0.1,
    strict: bool = True,
) -> np.ndarray:
    """
    Solve (H + damping * D) @ delta = g for the parameter update.

    The caller applies the update as ``params - delta``. A zero gradient is a
    fixed point and gives a zero step without touching the solver.

    Args:
        gradient: global gradient of shape (n,)
        hessian: global Hessian of shape (n, n)
        damping: damping coefficient scaling the diagonal of H
        strict: raise on a singular system or non-finite step instead of
            returning the non-finite step

    Returns:
        delta: (n,) parameter update

    Raises:
        SingularSystemError: if strict and no finite step exists
    """
    gradient = np.asarray(gradient, dtype=np.float64)
    hessian = np.asarray(hessian, dtype=np.float64)

    if not np.any(gradient):
        return np.zeros_like(gradient)

    system = hessian + damping * damping_matrix(hessian)

    try:
        with np.errstate(all='ignore'):
            delta = scipy.linalg.solve(system, gradient, check_finite=False)
    except (np.linalg.LinAlgError, ValueError) as e:
        if strict:
            raise SingularSystemError(f"Damped Newton system is singular: {e}") from e
        logger.warning("Damped Newton system is singular, step set to NaN")
        return np.full_like(gradient, np.nan)

    if not np.all(np.isfinite(delta)):
        if strict:
            raise SingularSystemError("Damped Newton step is not finite")
        logger.warning("Damped Newton step is not finite")

    return delta
