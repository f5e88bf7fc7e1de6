"""
Exceptions raised by the superquadric fitter.
"""


class SQFittingError(Exception):
    """Base class for fitting errors."""


class SingularSystemError(SQFittingError):
    """The damped Newton system could not be solved to a finite step."""
