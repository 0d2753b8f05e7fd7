"""Polynomials formed by pairing coefficients with a monomial sequence."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Generic

import numpy as np
import numpy.typing as npt

from wgfem.monomial import M


@dataclass(frozen=True)
class Polynomial(Generic[M]):
    """Polynomial given by coefficients of a monomial sequence.

    No data is copied, so the coefficients may be a view into a larger array,
    such as the coefficients of the full solution. The polynomial should be
    treated as read-only.

    Parameters
    ----------
    coefs : (N,) array
        Coefficients of the monomials.

    mons : Sequence of N monomials
        Monomials which the coefficients multiply.
    """

    coefs: npt.NDArray[np.float64]
    mons: Sequence[M]

    def __post_init__(self) -> None:
        """Check that the coefficients match the monomials."""
        if self.coefs.ndim != 1 or self.coefs.size != len(self.mons):
            raise ValueError(
                f"Polynomial with {len(self.mons)} monomials can not have coefficients"
                f" with shape {self.coefs.shape}."
            )

    def __len__(self) -> int:
        """Return the number of terms."""
        return len(self.mons)

    def terms(self) -> Iterator[tuple[float, M]]:
        """Iterate over the coefficients and their monomials."""
        for c, mon in zip(self.coefs, self.mons):
            yield float(c), mon

    def __call__(self, x: npt.ArrayLike, /) -> npt.NDArray[np.float64]:
        """Evaluate the polynomial at (..., d) positions."""
        pts = np.asarray(x, np.float64)
        out = np.zeros(pts.shape[:-1], np.float64)
        for c, mon in self.terms():
            out += c * mon(pts)
        return out
