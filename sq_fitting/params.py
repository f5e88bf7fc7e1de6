"""
Superquadric parameters and their flat-vector encoding.
"""

from dataclasses import dataclass, fields
from typing import Dict, Sequence
import numpy as np


PARAM_NAMES = ("a1", "a2", "a3", "e1", "e2", "px", "py", "pz", "ra", "pa", "ya")
NUM_PARAMS = len(PARAM_NAMES)


@dataclass(frozen=True)
class SQParams:
    """Superquadric size, shape and pose."""
    a1: float   # size along local x
    a2: float   # size along local y
    a3: float   # size along local z
    e1: float   # north-south shape exponent
    e2: float   # east-west shape exponent
    px: float
    py: float
    pz: float
    ra: float   # roll (rad)
    pa: float   # pitch (rad)
    ya: float   # yaw (rad)

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "SQParams":
        return vector_to_params(values)

    def to_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def params_to_vector(params: SQParams) -> np.ndarray:
    """Encode parameters as a float64 vector of length 11."""
    return np.array([getattr(params, name) for name in PARAM_NAMES], dtype=np.float64)


def vector_to_params(vector: Sequence[float]) -> SQParams:
    """Decode a length-11 vector into SQParams.

    Raises:
        ValueError: If the vector does not hold exactly 11 values.
    """
    values = np.asarray(vector, dtype=np.float64).ravel()
    if values.shape[0] != NUM_PARAMS:
        raise ValueError(
            f"Expected {NUM_PARAMS} superquadric parameters, got {values.shape[0]}"
        )
    return SQParams(*(float(v) for v in values))
