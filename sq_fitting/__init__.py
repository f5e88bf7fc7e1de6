"""
Superquadric Fitting Module

Fits an 11-parameter superquadric (size, shape exponents, position,
orientation) to a 3D point collection with damped Newton iterations.
"""

from .params import SQParams, PARAM_NAMES, NUM_PARAMS, params_to_vector, vector_to_params
from .accumulator import Accumulation, NonFiniteContribution, accumulate
from .newton import damped_newton_step, damping_matrix
from .derivatives import SuperquadricDerivatives
from .errors import SQFittingError, SingularSystemError
from .minimizer import Minimizer, MinimizerConfig, FitResult, FitStatus, minimize
from .point_loader import PointLoader
from .sampling import sample_superquadric, random_initial_guess, perturb

__all__ = [
    "SQParams",
    "PARAM_NAMES",
    "NUM_PARAMS",
    "params_to_vector",
    "vector_to_params",
    "Accumulation",
    "NonFiniteContribution",
    "accumulate",
    "damped_newton_step",
    "damping_matrix",
    "SuperquadricDerivatives",
    "SQFittingError",
    "SingularSystemError",
    "Minimizer",
    "MinimizerConfig",
    "FitResult",
    "FitStatus",
    "minimize",
    "PointLoader",
    "sample_superquadric",
    "random_initial_guess",
    "perturb",
]
