"""
Accumulation of per-point derivative contributions into a global gradient
and Hessian.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Tuple
import numpy as np

from .params import NUM_PARAMS

logger = logging.getLogger(__name__)

# (params (11,), point (3,)) -> (gradient (11,), hessian (11, 11))
DerivativeProvider = Callable[[np.ndarray, np.ndarray], Tuple[np.ndarray, np.ndarray]]


@dataclass(frozen=True)
class NonFiniteContribution:
    """A single skipped entry of one point's contribution."""
    source: str         # 'gradient' or 'hessian'
    index: tuple        # (n,) for the gradient, (m, n) for the Hessian
    point_index: int


@dataclass
class Accumulation:
    """Global gradient and Hessian for one parameter vector."""
    gradient: np.ndarray                # (11,)
    hessian: np.ndarray                 # (11, 11)
    diagnostics: List[NonFiniteContribution] = field(default_factory=list)
    num_points: int = 0

    @property
    def num_skipped(self) -> int:
        return len(self.diagnostics)

    def skipped(self, source: str) -> int:
        return sum(1 for d in self.diagnostics if d.source == source)

    @property
    def degenerate(self) -> bool:
        """Points were given but none of their gradient entries was finite."""
        return self.num_points > 0 and self.skipped("gradient") == self.num_points * NUM_PARAMS


def _add_finite(total, contribution, source, point_index, diagnostics):
    """Add finite entries of contribution into total, record the rest."""
    finite = np.isfinite(contribution)
    if finite.all():
        total += contribution
        return

    total += np.where(finite, contribution, 0.0)
    for idx in zip(*np.nonzero(~finite)):
        idx = tuple(int(i) for i in idx)
        logger.debug(
            "Non-finite %s value %s at %s for point %d, skipped",
            source, contribution[idx], idx, point_index,
        )
        diagnostics.append(NonFiniteContribution(source, idx, point_index))


def accumulate(
    params: np.ndarray,
    points: np.ndarray,
    provider: DerivativeProvider,
) -> Accumulation:
    """Sum per-point gradient and Hessian contributions over all points.

    Args:
        params: Current parameter vector of shape (11,).
        points: Point collection of shape (N, 3). Not modified.
        provider: Derivative provider called once per point.

    Returns:
        Accumulation with the global gradient, Hessian and one diagnostic for
        every non-finite entry that was left out.
    """
    gradient = np.zeros(NUM_PARAMS)
    hessian = np.zeros((NUM_PARAMS, NUM_PARAMS))
    diagnostics: List[NonFiniteContribution] = []

    for i, point in enumerate(points):
        grad_i, hess_i = provider(params, point)
        grad_i = np.asarray(grad_i, dtype=np.float64).reshape(NUM_PARAMS)
        hess_i = np.asarray(hess_i, dtype=np.float64).reshape(NUM_PARAMS, NUM_PARAMS)

        _add_finite(gradient, grad_i, "gradient", i, diagnostics)
        _add_finite(hessian, hess_i, "hessian", i, diagnostics)

    acc = Accumulation(
        gradient=gradient,
        hessian=hessian,
        diagnostics=diagnostics,
        num_points=len(points),
    )
    for source in ("gradient", "hessian"):
        count = acc.skipped(source)
        if count:
            logger.warning(
                "Skipped %d non-finite %s entries over %d points",
                count, source, acc.num_points,
            )
    return acc
