r"""Computation of weak gradients of Weak Galerkin basis functions.

A Weak Galerkin function :math:`v = \left(v_0, v_b\right)` on an element
:math:`T` consists of its value :math:`v_0` in the interior and its value
:math:`v_b` on the boundary :math:`\partial T`. Its weak gradient
:math:`\nabla_w v` is the vector polynomial which satisfies

.. math::

    \left(\nabla_w v, \vec{q}\right)_T = -\left(v_0, \nabla \cdot \vec{q}\right)_T
    + \left<v_b, \vec{q} \cdot \vec{n}\right>_{\partial T}

for all :math:`\vec{q}` in the space of vector polynomials. Basis functions are
either non-zero only in the interior or only on a single side, so only one of the
two terms on the right is ever present.

Since all elements with the same oriented shape are translations of one another,
the weak gradients are computed once per oriented shape in interior relative
coordinates.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeAlias

import numpy as np
import numpy.typing as npt
from scipy import linalg as la

from wgfem.errors import STATUS_ZERO_PIVOT, SolverError
from wgfem.indices import OShape, SideFace
from wgfem.mesh import INTERIOR, Mesh
from wgfem.monomial import DegLim, M, VectorMonomial, vector_monomials_with_deg_lim_asc

_Factorization: TypeAlias = tuple[npt.NDArray[np.float64], bool]


@dataclass(frozen=True)
class WeakGrad:
    """Weak gradient given as coefficients of vector monomials.

    Parameters
    ----------
    vmons : tuple of VectorMonomial
        Vector monomials spanning the weak gradient space.

    coefs : (N,) array
        Coefficients of the vector monomials.
    """

    vmons: tuple[VectorMonomial, ...]
    coefs: npt.NDArray[np.float64]

    def __call__(self, x: npt.ArrayLike, /) -> npt.NDArray[np.float64]:
        """Evaluate the weak gradient at (..., d) interior relative positions."""
        pts = np.asarray(x, np.float64)
        out = np.zeros(pts.shape, np.float64)
        for c, q in zip(self.coefs, self.vmons):
            out[..., q.component] += c * q.mon(pts)
        return out


class WeakGradSolver(Generic[M]):
    """Computes weak gradients of basis functions on oriented shapes of a mesh.

    Parameters
    ----------
    deg_lim : DegLim
        Degree limit of the vector monomials spanning the weak gradient space.

    mesh : Mesh
        Mesh on whose oriented shapes weak gradients are computed.
    """

    deg_lim: DegLim

    def __init__(self, deg_lim: DegLim, mesh: Mesh[M]) -> None:
        self.deg_lim = deg_lim
        self._mesh = mesh
        self._factorizations: dict[
            OShape, tuple[tuple[VectorMonomial, ...], _Factorization]
        ] = dict()

    def _gram_factorization(
        self, mon_type: type[M], oshape: OShape
    ) -> tuple[tuple[VectorMonomial, ...], _Factorization]:
        """Return vector monomials and Cholesky factorization of their Gram matrix."""
        if oshape in self._factorizations:
            return self._factorizations[oshape]

        vmons = vector_monomials_with_deg_lim_asc(mon_type, self.deg_lim)
        n = len(vmons)
        gram = np.zeros((n, n), np.float64)
        for i, qi in enumerate(vmons):
            for j in range(i, n):
                qj = vmons[j]
                if qi.component != qj.component:
                    continue
                v = self._mesh.intg_facerel_mon_x_facerel_mon_on_oshape_face(
                    qi.mon, qj.mon, oshape, INTERIOR
                )
                gram[i, j] = v
                gram[j, i] = v

        try:
            factorization = la.cho_factor(gram)
        except la.LinAlgError as e:
            raise SolverError(
                f"Gram matrix of weak gradient space on shape {oshape} is singular",
                STATUS_ZERO_PIVOT,
            ) from e

        self._factorizations[oshape] = (vmons, factorization)
        return self._factorizations[oshape]

    def wgrads_on_oshape(
        self,
        int_mons: Sequence[M],
        side_mons_by_side_face: Sequence[Sequence[M]],
        oshape: OShape,
        mesh: Mesh[M] | None = None,
    ) -> tuple[tuple[WeakGrad, ...], tuple[tuple[WeakGrad, ...], ...]]:
        """Compute weak gradients of basis functions on an oriented shape.

        Parameters
        ----------
        int_mons : Sequence of monomials
            Monomials defining interior supported basis functions.

        side_mons_by_side_face : Sequence of Sequence of monomials
            For each side face of the shape, the monomials defining the basis
            functions supported on that side face.

        oshape : OShape
            Oriented shape on which to compute the weak gradients.

        mesh : Mesh, optional
            Mesh to use. Must be the same as the one given to the constructor,
            which is used if not given.

        Returns
        -------
        tuple of WeakGrad
            Weak gradients of interior supported basis functions, one per monomial.

        tuple of tuple of WeakGrad
            Weak gradients of side supported basis functions, by side face and then
            by monomial.
        """
        if mesh is not None and mesh is not self._mesh:
            raise ValueError("Weak gradient solver was created for a different mesh.")
        if not int_mons:
            raise ValueError("At least one interior monomial must be given.")
        mesh = self._mesh

        vmons, factorization = self._gram_factorization(type(int_mons[0]), oshape)

        int_rhs = np.zeros((len(vmons), len(int_mons)), np.float64)
        for i, q in enumerate(vmons):
            div_coef, div_mon = q.divergence()
            if div_coef == 0:
                continue
            for j, mon in enumerate(int_mons):
                v = mesh.intg_facerel_mon_x_facerel_mon_on_oshape_face(
                    mon, div_mon, oshape, INTERIOR
                )
                int_rhs[i, j] = -div_coef * v
        int_wgrads = self._wgrads_from_rhs(vmons, factorization, int_rhs)

        side_wgrads: list[tuple[WeakGrad, ...]] = list()
        for sf, side_mons in enumerate(side_mons_by_side_face):
            side_face = SideFace(sf)
            side_rhs = np.zeros((len(vmons), len(side_mons)), np.float64)
            for i, q in enumerate(vmons):
                for j, mon in enumerate(side_mons):
                    side_rhs[i, j] = (
                        mesh.intg_siderel_mon_x_intrel_vmon_dot_normal_on_oshape_side(
                            mon, q, oshape, side_face
                        )
                    )
            side_wgrads.append(self._wgrads_from_rhs(vmons, factorization, side_rhs))

        return int_wgrads, tuple(side_wgrads)

    @staticmethod
    def _wgrads_from_rhs(
        vmons: tuple[VectorMonomial, ...],
        factorization: _Factorization,
        rhs: npt.NDArray[np.float64],
    ) -> tuple[WeakGrad, ...]:
        if rhs.shape[1] == 0:
            return tuple()
        coefs = la.cho_solve(factorization, rhs)
        out: list[WeakGrad] = list()
        for j in range(rhs.shape[1]):
            c = np.array(coefs[:, j], np.float64)
            c.flags.writeable = False
            out.append(WeakGrad(vmons, c))
        return tuple(out)
