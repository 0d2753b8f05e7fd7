"""Exception types raised by the package.

Each one subclasses the built-in exception that would otherwise be raised, so
callers catching :class:`ValueError`, :class:`IndexError` or
:class:`RuntimeError` keep working.
"""


class ConfigurationError(ValueError):
    """Mesh, basis, or solver was configured with invalid parameters."""


class IndexOutOfRangeError(IndexError):
    """An element, side, or basis element index was outside of its valid range."""


class SolverError(RuntimeError):
    """Linear solver reported a failure.

    Parameters
    ----------
    message : str
        Description of the failure.

    status : int
        Status code of the failure. Negative values follow the convention of
        direct sparse solvers: ``-1`` for inconsistent input, ``-2`` for
        mismatched dimensions and ``-4`` for a zero pivot.
    """

    status: int

    def __init__(self, message: str, status: int) -> None:
        super().__init__(f"{message} (status {status})")
        self.status = status


STATUS_INCONSISTENT_INPUT = -1
STATUS_SHAPE_MISMATCH = -2
STATUS_ZERO_PIVOT = -4
