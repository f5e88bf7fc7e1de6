"""
Damped Newton minimizer fitting a superquadric to a point collection.
"""

import enum
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union
import numpy as np

from .accumulator import DerivativeProvider, accumulate
from .derivatives import SuperquadricDerivatives
from .errors import SingularSystemError
from .newton import damped_newton_step
from .params import SQParams, params_to_vector, vector_to_params
from .point_loader import PointLoader

logger = logging.getLogger(__name__)


@dataclass
class MinimizerConfig:
    """Minimizer configuration."""
    damping_coefficient: float = 0.1
    max_iterations: int = 1000
    convergence_threshold: float = 0.005

    # Stop with SINGULAR on a singular system instead of carrying NaNs on
    fail_on_singular: bool = True

    def __post_init__(self):
        if self.damping_coefficient < 0:
            raise ValueError(f"damping_coefficient must be >= 0, got {self.damping_coefficient}")
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations must be >= 0, got {self.max_iterations}")
        if self.convergence_threshold < 0:
            raise ValueError(
                f"convergence_threshold must be >= 0, got {self.convergence_threshold}"
            )


class FitStatus(enum.Enum):
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    SINGULAR = "singular"


@dataclass
class FitResult:
    """Result of a fit. Unpacks as ``fitted, converged = result``."""
    fitted: SQParams
    converged: bool
    status: FitStatus
    iterations: int
    error: float                        # norm of the last parameter step
    errors: List[float] = field(default_factory=list)
    num_skipped: int = 0                # non-finite entries left out

    def __iter__(self):
        return iter((self.fitted, self.converged))


class Minimizer:
    """Fits superquadric parameters with damped Newton iterations."""

    def __init__(
        self,
        provider: Optional[DerivativeProvider] = None,
        config: Optional[MinimizerConfig] = None,
    ):
        """
        Args:
            provider: per-point derivative provider, defaults to the
                superquadric error functional
            config: iteration settings
        """
        self.provider = provider if provider is not None else SuperquadricDerivatives()
        self.config = config or MinimizerConfig()
        self.points = PointLoader.as_points([])

    def load_points(self, source: Union[str, os.PathLike, np.ndarray, list]) -> np.ndarray:
        """Set the point collection from a file path or (N, 3) data."""
        if isinstance(source, (str, os.PathLike)):
            self.points = PointLoader.load(os.fspath(source))
        else:
            self.points = PointLoader.as_points(source)
            logger.info("Loaded %d points", len(self.points))
        return self.points

    def step(self, params: np.ndarray) -> Tuple[np.ndarray, int]:
        """One accumulation and damped Newton update of ``params``.

        Returns:
            (new_params, num_skipped)

        Raises:
            SingularSystemError: in strict mode, when no finite step exists
                or no point produced a finite gradient entry
        """
        acc = accumulate(params, self.points, self.provider)
        if acc.degenerate:
            # An all-skipped gradient is not a fixed point
            if self.config.fail_on_singular:
                raise SingularSystemError(
                    f"No finite gradient entry from any of {acc.num_points} points"
                )
            logger.warning("No finite gradient entry from any point, step set to NaN")
            return np.full_like(params, np.nan), acc.num_skipped

        delta = damped_newton_step(
            acc.gradient,
            acc.hessian,
            damping=self.config.damping_coefficient,
            strict=self.config.fail_on_singular,
        )
        return params - delta, acc.num_skipped

    def minimize(self, initial_guess: SQParams) -> FitResult:
        """
        Refine ``initial_guess`` until the step is small or the budget runs out.

        Args:
            initial_guess: starting parameters

        Returns:
            FitResult carrying the final parameters whether or not the
            iteration converged
        """
        cfg = self.config
        params = params_to_vector(initial_guess)
        logger.info("Initial guess for coefficients: %s", params)

        iterations = 0
        error = float('inf')
        errors: List[float] = []
        num_skipped = 0
        status = FitStatus.EXHAUSTED

        while iterations < cfg.max_iterations:
            old_params = params
            try:
                params, skipped = self.step(old_params)
            except SingularSystemError as e:
                logger.warning("Stopping after %d iterations: %s", iterations, e)
                params = old_params
                status = FitStatus.SINGULAR
                break

            iterations += 1
            num_skipped += skipped
            error = float(np.linalg.norm(params - old_params))
            errors.append(error)
            logger.debug("Iter: %d with error: %g", iterations, error)

            if error <= cfg.convergence_threshold:
                # Meeting the threshold on the last allowed iteration still
                # counts as an exhausted budget
                if iterations < cfg.max_iterations:
                    status = FitStatus.CONVERGED
                break

        converged = status is FitStatus.CONVERGED
        if converged:
            logger.info("Converged in %d iterations", iterations)
        else:
            logger.warning(
                "Did not converge after %d iterations (%s)", iterations, status.value
            )
        logger.info("Final coefficients: %s", params)

        return FitResult(
            fitted=vector_to_params(params),
            converged=converged,
            status=status,
            iterations=iterations,
            error=error,
            errors=errors,
            num_skipped=num_skipped,
        )


def minimize(
    points,
    initial_guess: SQParams,
    provider: Optional[DerivativeProvider] = None,
    config: Optional[MinimizerConfig] = None,
) -> FitResult:
    """Fit ``initial_guess`` to ``points`` with a one-off Minimizer."""
    minimizer = Minimizer(provider=provider, config=config)
    minimizer.load_points(points)
    return minimizer.minimize(initial_guess)
