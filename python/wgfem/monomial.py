"""Monomials, vector monomials, and degree limits.

Monomials are identified by their exponent sequence. They are ordered by that
sequence with exponents of lower dimension variables being more significant,
so in two dimensions :math:`x^0 y^2` precedes :math:`x^1 y^1`. All monomials
of a given domain dimension share a type, which is what allows the mesh to
check its dimension against the monomials it is meant to be used with.
"""

from __future__ import annotations

import operator
from collections.abc import Sequence
from dataclasses import dataclass
from functools import cache
from itertools import product
from typing import ClassVar, Protocol, Self, SupportsIndex, TypeAlias, TypeVar

import numpy as np
import numpy.typing as npt

from wgfem.errors import ConfigurationError


@dataclass(frozen=True)
class MaxMonDeg:
    """Limit on the total degree of monomials.

    Parameters
    ----------
    k : int
        Maximum sum of all exponents of a monomial.
    """

    k: int

    def __post_init__(self) -> None:
        """Check the limit is valid."""
        if self.k < 0:
            raise ConfigurationError(f"Degree limit can not be negative ({self.k}).")


@dataclass(frozen=True)
class MaxMonFactorDeg:
    """Limit on the degree of each factor of monomials.

    Parameters
    ----------
    k : int
        Maximum value of any single exponent of a monomial.
    """

    k: int

    def __post_init__(self) -> None:
        """Check the limit is valid."""
        if self.k < 0:
            raise ConfigurationError(f"Degree limit can not be negative ({self.k}).")


DegLim: TypeAlias = MaxMonDeg | MaxMonFactorDeg


class SupportsMonomial(Protocol):
    """Capabilities of a monomial required by the mesh and the basis."""

    domain_dim: ClassVar[int]

    @property
    def exps(self) -> tuple[int, ...]:
        """Exponents of the monomial factors."""
        ...

    def exp(self, r: SupportsIndex, /) -> int:
        """Exponent of the factor for axis ``r``."""
        ...

    def __lt__(self, other: Self, /) -> bool:
        """Canonical monomial ordering."""
        ...

    def __mul__(self, other: Self, /) -> Self:
        """Product of two monomials."""
        ...

    def __call__(self, x: npt.ArrayLike, /) -> npt.NDArray[np.float64]:
        """Evaluate the monomial."""
        ...

    def partial(self, r: SupportsIndex, /) -> tuple[int, Self]:
        """Partial derivative with respect to axis ``r``."""
        ...

    @classmethod
    def one(cls) -> Self:
        """Constantly one monomial."""
        ...

    @classmethod
    def mons_with_deg_lim_asc(cls, deg_lim: DegLim, /) -> tuple[Self, ...]:
        """All monomials satisfying the degree limit in ascending order."""
        ...


M = TypeVar("M", bound=SupportsMonomial)


@dataclass(frozen=True, order=True)
class Monomial:
    """Monomial with unit coefficient.

    This type is not used directly, instead the dimension specific subtypes,
    such as :class:`Mon2d`, or the ones returned by :func:`monomial_type`
    should be used.

    Parameters
    ----------
    exps : Sequence of int
        Exponents of the factors, one for each coordinate axis.
    """

    exps: tuple[int, ...]

    domain_dim: ClassVar[int] = 0

    def __post_init__(self) -> None:
        """Check the exponents are valid for the type."""
        exps = tuple(operator.index(e) for e in self.exps)
        object.__setattr__(self, "exps", exps)
        if type(self).domain_dim < 1:
            raise TypeError(
                "Monomial must be created from a dimension specific type, such as"
                " the one returned by monomial_type()."
            )
        if len(exps) != self.domain_dim:
            raise ValueError(
                f"{type(self).__name__} requires {self.domain_dim} exponents, but"
                f" {len(exps)} were given."
            )
        if any(e < 0 for e in exps):
            raise ValueError(f"Exponents can not be negative, but got {exps}.")

    @classmethod
    def one(cls) -> Self:
        """Return the constantly one monomial."""
        return cls((0,) * cls.domain_dim)

    def exp(self, r: SupportsIndex, /) -> int:
        """Return exponent of the factor for axis ``r``."""
        return self.exps[operator.index(r)]

    @property
    def degree(self) -> int:
        """Total degree of the monomial."""
        return sum(self.exps)

    def __call__(self, x: npt.ArrayLike, /) -> npt.NDArray[np.float64]:
        """Evaluate the monomial.

        Parameters
        ----------
        x : (..., d) array_like
            Coordinates at which to evaluate the monomial. The last axis must
            have the same size as the domain dimension.

        Returns
        -------
        (...) array
            Values of the monomial at the given positions.
        """
        pts = np.asarray(x, np.float64)
        if pts.shape[-1:] != (self.domain_dim,):
            raise ValueError(
                f"Last axis of the positions must have size {self.domain_dim}, but"
                f" the array has shape {pts.shape}."
            )
        return np.prod(pts ** np.array(self.exps, np.float64), axis=-1)

    def __mul__(self, other: Self, /) -> Self:
        """Multiply two monomials together."""
        if type(other) is not type(self):
            return NotImplemented
        return type(self)(tuple(e1 + e2 for e1, e2 in zip(self.exps, other.exps)))

    def partial(self, r: SupportsIndex, /) -> tuple[int, Self]:
        """Compute the partial derivative with respect to axis ``r``.

        Returns
        -------
        int
            Coefficient of the derivative. Zero if the monomial is constant along
            the axis.

        Self
            Monomial of the derivative. When the coefficient is zero, this is
            just the monomial itself.
        """
        r = operator.index(r)
        e = self.exps[r]
        if e == 0:
            return 0, self
        return e, type(self)(self.exps[:r] + (e - 1,) + self.exps[r + 1 :])

    @classmethod
    def mons_with_deg_lim_asc(cls, deg_lim: DegLim, /) -> tuple[Self, ...]:
        """Return all monomials which satisfy the degree limit in ascending order."""
        if isinstance(deg_lim, MaxMonFactorDeg):
            # Product already iterates lexicographically.
            return tuple(
                cls(exps) for exps in product(range(deg_lim.k + 1), repeat=cls.domain_dim)
            )
        if isinstance(deg_lim, MaxMonDeg):
            return tuple(
                cls(exps)
                for exps in product(range(deg_lim.k + 1), repeat=cls.domain_dim)
                if sum(exps) <= deg_lim.k
            )
        raise TypeError(f"Unknown degree limit {deg_lim!r}.")

    def __str__(self) -> str:
        """Return print-friendly representation of the monomial."""
        if self.domain_dim <= 3:
            names: Sequence[str] = "xyz"[: self.domain_dim]
        else:
            names = tuple(f"x{r}" for r in range(self.domain_dim))
        factors = [
            name if e == 1 else f"{name}^{e}"
            for name, e in zip(names, self.exps)
            if e != 0
        ]
        return " ".join(factors) if factors else "1"


class Mon1d(Monomial):
    """Monomial in one dimension."""

    domain_dim = 1


class Mon2d(Monomial):
    """Monomial in two dimensions."""

    domain_dim = 2


class Mon3d(Monomial):
    """Monomial in three dimensions."""

    domain_dim = 3


class Mon4d(Monomial):
    """Monomial in four dimensions."""

    domain_dim = 4


_PREDEFINED_TYPES: dict[int, type[Monomial]] = {1: Mon1d, 2: Mon2d, 3: Mon3d, 4: Mon4d}


@cache
def monomial_type(dim: int) -> type[Monomial]:
    """Return the monomial type for the given domain dimension."""
    if dim < 1:
        raise ValueError(f"Domain dimension must be at least 1, but {dim} was given.")
    if dim in _PREDEFINED_TYPES:
        return _PREDEFINED_TYPES[dim]
    return type(f"Mon{dim}d", (Monomial,), {"domain_dim": dim})


@dataclass(frozen=True, order=True)
class VectorMonomial:
    """Vector with a single non-zero component, which is a monomial.

    Parameters
    ----------
    component : int
        Index of the non-zero component.

    mon : Monomial
        Monomial in that component.
    """

    component: int
    mon: Monomial

    def __post_init__(self) -> None:
        """Check the component is within the domain."""
        if not (0 <= self.component < self.mon.domain_dim):
            raise ValueError(
                f"Component {self.component} is not valid for a vector in"
                f" {self.mon.domain_dim} dimensions."
            )

    def __call__(self, x: npt.ArrayLike, /) -> npt.NDArray[np.float64]:
        """Evaluate the vector monomial at (..., d) positions, giving (..., d) array."""
        vals = self.mon(x)
        out = np.zeros(vals.shape + (self.mon.domain_dim,), np.float64)
        out[..., self.component] = vals
        return out

    def divergence(self) -> tuple[int, Monomial]:
        """Return the divergence as a coefficient and a monomial."""
        return self.mon.partial(self.component)


def vector_monomials_with_deg_lim_asc(
    mon_type: type[Monomial], deg_lim: DegLim
) -> tuple[VectorMonomial, ...]:
    """Return all vector monomials satisfying the degree limit.

    These are ordered by the component first, then by the monomial order.
    """
    mons = mon_type.mons_with_deg_lim_asc(deg_lim)
    return tuple(
        VectorMonomial(r, mon) for r in range(mon_type.domain_dim) for mon in mons
    )
