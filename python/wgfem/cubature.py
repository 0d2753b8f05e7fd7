"""Numerical integration of functions over axis aligned boxes."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
from scipy.integrate import nquad

from wgfem.errors import ConfigurationError

DEFAULT_INTEGRATION_REL_ERR = 1e-12
DEFAULT_INTEGRATION_ABS_ERR = 1e-12


@dataclass(frozen=True)
class IntegrationSettings:
    """Error tolerances passed to the cubature routine.

    Parameters
    ----------
    rel_err : float, default: 1e-12
        Relative error tolerance.

    abs_err : float, default: 1e-12
        Absolute error tolerance.
    """

    rel_err: float = DEFAULT_INTEGRATION_REL_ERR
    abs_err: float = DEFAULT_INTEGRATION_ABS_ERR

    def __post_init__(self) -> None:
        """Check tolerances are positive."""
        if not (self.rel_err > 0 and self.abs_err > 0):
            raise ConfigurationError(
                "Integration tolerances must be positive, but got"
                f" rel_err={self.rel_err} and abs_err={self.abs_err}."
            )


def cubature(
    f: Callable[[npt.NDArray[np.float64]], float],
    box_min: Sequence[float] | npt.ArrayLike,
    box_max: Sequence[float] | npt.ArrayLike,
    rel_err: float,
    abs_err: float,
) -> float:
    """Integrate a function over an axis aligned box.

    Parameters
    ----------
    f : (array) -> float
        Function to integrate. It receives a single point as a (d,) array.

    box_min : (d,) array_like
        Corner of the box with minimum coordinates.

    box_max : (d,) array_like
        Corner of the box with maximum coordinates.

    rel_err : float
        Relative error tolerance.

    abs_err : float
        Absolute error tolerance.

    Returns
    -------
    float
        Value of the integral. For a zero dimensional box, this is just the value
        of the function at the (empty) point.
    """
    lo = np.asarray(box_min, np.float64)
    hi = np.asarray(box_max, np.float64)
    if lo.shape != hi.shape or lo.ndim != 1:
        raise ValueError(
            f"Box corners must be 1D arrays of the same size, but had shapes {lo.shape}"
            f" and {hi.shape}."
        )

    if lo.size == 0:
        return float(f(lo))

    def integrand(*x: float) -> float:
        return float(f(np.array(x, np.float64)))

    value, _ = nquad(
        integrand,
        [(float(a), float(b)) for a, b in zip(lo, hi)],
        opts={"epsrel": rel_err, "epsabs": abs_err},
    )
    return float(value)
