"""Global enumeration of the Weak Galerkin basis on a mesh.

Basis elements are functions which are a degree limit compliant monomial on
exactly one element interior or non-boundary side of the mesh, and zero on all
other parts of the mesh. Monomials are taken in face relative coordinates.

Side Monomials and Dependent Dimensions
---------------------------------------
Not all degree limit compliant monomials can be used on a side, since some of
them would make the basis elements supported on that side linearly dependent. A
side has a dependent dimension ``r`` if coordinate ``r`` is an affine function of
the other coordinates on the side. Basis elements on such a side only use the
monomials which have zero exponent for that coordinate. The dependent dimension
of each side is chosen by the mesh.

Basis Layout and Enumeration
----------------------------
Basis elements are ordered such that:

- All interior supported basis elements precede those supported on non-boundary
  sides.
- Within these two groups, basis elements are grouped by the interior or side
  they are supported on, in ascending order of the mesh's element or non-boundary
  side numbers.
- Within the block of a single interior or side, basis elements follow the order
  of their monomials, with exponents of lower dimension variables being more
  significant.
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, SupportsIndex

import numpy as np
import numpy.typing as npt

from wgfem.errors import IndexOutOfRangeError
from wgfem.indices import BasisElNum, FaceMonNum, FENum, NBSideNum, OShape, SideFace
from wgfem.mesh import INTERIOR, MeshT, NBSideInclusions
from wgfem.monomial import DegLim, M, MaxMonDeg
from wgfem.polynomial import Polynomial
from wgfem.weak_gradient import WeakGrad, WeakGradSolver


@dataclass(frozen=True)
class BasisStatistics:
    """Counts describing the basis enumeration."""

    num_fes: int
    num_nb_sides: int
    mons_per_fe_int: int
    mons_per_fe_side: int
    num_int_els: int
    total_els: int
    ub_num_bel_bel_common_support_fe_triplets: int


def _gram_matrix(
    mons: Sequence[M], ip: Callable[[M, M], float]
) -> npt.NDArray[np.float64]:
    """Compute the symmetric matrix of inner products of monomials."""
    n = len(mons)
    out = np.zeros((n, n), np.float64)
    for i in range(n):
        for j in range(i, n):
            out[i, j] = out[j, i] = ip(mons[i], mons[j])
    out.flags.writeable = False
    return out


class WgBasis(Generic[M, MeshT]):
    """Basis for Weak Galerkin approximating polynomials on a mesh.

    Parameters
    ----------
    mesh : Mesh
        Mesh on which the basis is defined. The basis takes over the mesh, which
        must not be modified afterwards.

    int_polys_deg_lim : DegLim
        Degree limit of polynomials on element interiors.

    side_polys_deg_lim : DegLim
        Degree limit of polynomials on sides.

    verbose : bool, default: False
        Print a summary of the enumeration after it is constructed.
    """

    int_polys_deg_lim: DegLim
    side_polys_deg_lim: DegLim
    mons_per_fe_int: int
    mons_per_fe_side: int
    num_int_els: int
    total_els: int
    first_nb_side_beln: BasisElNum

    def __init__(
        self,
        mesh: MeshT,
        int_polys_deg_lim: DegLim,
        side_polys_deg_lim: DegLim,
        *,
        verbose: bool = False,
    ) -> None:
        mon_type = mesh.mon_type
        space_dim = mon_type.domain_dim

        int_mons = mon_type.mons_with_deg_lim_asc(int_polys_deg_lim)
        side_mons = mon_type.mons_with_deg_lim_asc(side_polys_deg_lim)
        side_mons_by_dep_dim = tuple(
            tuple(mon for mon in side_mons if mon.exp(r) == 0) for r in range(space_dim)
        )

        self._mesh = mesh
        self.int_polys_deg_lim = int_polys_deg_lim
        self.side_polys_deg_lim = side_polys_deg_lim
        self._int_mons: tuple[M, ...] = int_mons
        self._side_mons_by_dep_dim: tuple[tuple[M, ...], ...] = side_mons_by_dep_dim

        self.mons_per_fe_int = len(int_mons)
        # All dependent dimensions give the same count by symmetry.
        self.mons_per_fe_side = len(side_mons_by_dep_dim[0])

        self.num_int_els = mesh.num_fes() * self.mons_per_fe_int
        self.total_els = self.num_int_els + mesh.num_nb_sides() * self.mons_per_fe_side
        self.first_nb_side_beln = BasisElNum(self.num_int_els)

        self._weak_grad_solver = WeakGradSolver(
            MaxMonDeg(max(int_polys_deg_lim.k - 1, 0)), mesh
        )

        int_mon_wgrads: list[tuple[WeakGrad, ...]] = list()
        side_mon_wgrads: list[tuple[tuple[WeakGrad, ...], ...]] = list()
        ips_int_mons: list[npt.NDArray[np.float64]] = list()
        ips_side_mons: list[tuple[npt.NDArray[np.float64], ...]] = list()
        for os in range(mesh.num_oriented_element_shapes()):
            oshape = OShape(os)
            side_mons_by_side = tuple(
                self.side_mons_for_oshape_side(oshape, SideFace(sf))
                for sf in range(mesh.num_side_faces_for_shape(oshape))
            )

            int_wgrads, side_wgrads = self._weak_grad_solver.wgrads_on_oshape(
                int_mons, side_mons_by_side, oshape, mesh
            )
            int_mon_wgrads.append(int_wgrads)
            side_mon_wgrads.append(side_wgrads)

            ips_int_mons.append(
                _gram_matrix(
                    int_mons,
                    lambda m1, m2: mesh.intg_facerel_mon_x_facerel_mon_on_oshape_face(
                        m1, m2, oshape, INTERIOR
                    ),
                )
            )
            ips_side_mons.append(
                tuple(
                    _gram_matrix(
                        mons,
                        lambda m1, m2, sf=sf: (
                            mesh.intg_facerel_mon_x_facerel_mon_on_oshape_face(
                                m1, m2, oshape, SideFace(sf)
                            )
                        ),
                    )
                    for sf, mons in enumerate(side_mons_by_side)
                )
            )

        self._int_mon_wgrads = tuple(int_mon_wgrads)
        self._side_mon_wgrads = tuple(side_mon_wgrads)
        self._ips_int_mons = tuple(ips_int_mons)
        self._ips_side_mons = tuple(ips_side_mons)

        if verbose:
            print(self.summary())

    @property
    def mesh(self) -> MeshT:
        """Mesh over which the basis is formed."""
        return self._mesh

    def statistics(self) -> BasisStatistics:
        """Return counts describing the basis."""
        return BasisStatistics(
            num_fes=self._mesh.num_fes(),
            num_nb_sides=self._mesh.num_nb_sides(),
            mons_per_fe_int=self.mons_per_fe_int,
            mons_per_fe_side=self.mons_per_fe_side,
            num_int_els=self.num_int_els,
            total_els=self.total_els,
            ub_num_bel_bel_common_support_fe_triplets=(
                self.ub_estimate_num_bel_bel_common_support_fe_triplets()
            ),
        )

    def summary(self) -> str:
        """Return a printable summary of the basis enumeration."""
        stats = self.statistics()
        width = 60
        lines = (
            "Weak Galerkin basis\n" + "=" * width,
            f"{'Elements':<40}{stats.num_fes:>20}",
            f"{'Non-boundary sides':<40}{stats.num_nb_sides:>20}",
            f"{'Monomials per interior':<40}{stats.mons_per_fe_int:>20}",
            f"{'Monomials per side':<40}{stats.mons_per_fe_side:>20}",
            f"{'Interior supported basis elements':<40}{stats.num_int_els:>20}",
            f"{'Total basis elements':<40}{stats.total_els:>20}",
            f"{'Common support triplets (upper bound)':<40}"
            f"{stats.ub_num_bel_bel_common_support_fe_triplets:>20}",
            "=" * width,
        )
        return "\n".join(lines)

    def ub_estimate_num_bel_bel_common_support_fe_triplets(self) -> int:
        """Estimate an upper bound of basis element pairs supported on an element.

        Counts the ordered triplets ``(bel1, bel2, fe)``, where both basis elements
        are supported on the element ``fe``. This is intended to help with
        allocating storage for sparse matrices before assembly. Pairs of side
        supported elements on a side shared by two elements are counted for both
        of them.
        """
        mesh = self._mesh
        num_fes = mesh.num_fes()
        total = num_fes * self.mons_per_fe_int**2
        for fe in range(num_fes):
            nb_sides = mesh.num_non_boundary_sides_for_fe(FENum(fe))
            int_side_and_side_int = (
                2 * self.mons_per_fe_int * nb_sides * self.mons_per_fe_side
            )
            side_side = (nb_sides * self.mons_per_fe_side) ** 2
            total += int_side_and_side_int + side_side
        return total

    # range checks

    def _check_beln(self, i: SupportsIndex) -> BasisElNum:
        v = operator.index(i)
        if not (0 <= v < self.total_els):
            raise IndexOutOfRangeError(
                f"Basis element {v} is out of range for a basis with {self.total_els}"
                " elements."
            )
        return BasisElNum(v)

    def _check_int_beln(self, i: SupportsIndex) -> BasisElNum:
        i = self._check_beln(i)
        if not self.is_int_supported(i):
            raise IndexOutOfRangeError(f"Basis element {int(i)} is not interior supported.")
        return i

    def _check_side_beln(self, i: SupportsIndex) -> BasisElNum:
        i = self._check_beln(i)
        if not self.is_side_supported(i):
            raise IndexOutOfRangeError(f"Basis element {int(i)} is not side supported.")
        return i

    def _check_fe(self, fe: SupportsIndex) -> FENum:
        v = operator.index(fe)
        if not (0 <= v < self._mesh.num_fes()):
            raise IndexOutOfRangeError(
                f"Element {v} is out of range for a mesh with {self._mesh.num_fes()}"
                " elements."
            )
        return FENum(v)

    def _check_monn(self, monn: SupportsIndex, count: int) -> FaceMonNum:
        v = operator.index(monn)
        if not (0 <= v < count):
            raise IndexOutOfRangeError(
                f"Face monomial number {v} is out of range for a face with {count}"
                " monomials."
            )
        return FaceMonNum(v)

    def _check_oshape(self, oshape: SupportsIndex) -> OShape:
        v = operator.index(oshape)
        if not (0 <= v < len(self._int_mon_wgrads)):
            raise IndexOutOfRangeError(f"Oriented shape {v} does not exist.")
        return OShape(v)

    # support

    def is_int_supported(self, i: SupportsIndex) -> bool:
        """Check if the basis element is supported on an interior."""
        return self._check_beln(i) < self.num_int_els

    def is_side_supported(self, i: SupportsIndex) -> bool:
        """Check if the basis element is supported on a side."""
        return self._check_beln(i) >= self.num_int_els

    def support_int_fe_num(self, i: SupportsIndex) -> FENum:
        """Return the element whose interior supports the basis element."""
        i = self._check_int_beln(i)
        return FENum(i // self.mons_per_fe_int)

    def support_nb_side_num(self, i: SupportsIndex) -> NBSideNum:
        """Return the non-boundary side supporting the basis element."""
        i = self._check_side_beln(i)
        return NBSideNum((i - self.first_nb_side_beln) // self.mons_per_fe_side)

    def fe_inclusions_of_side_support(self, i: SupportsIndex) -> NBSideInclusions:
        """Return the two elements including the side supporting the basis element."""
        return self._mesh.fe_inclusions_of_nb_side(self.support_nb_side_num(i))

    # monomials

    def ref_int_mons(self) -> tuple[M, ...]:
        """Return monomials defining basis elements on any interior."""
        return self._int_mons

    def side_mons_for_fe_side(
        self, fe: SupportsIndex, side_face: SupportsIndex
    ) -> tuple[M, ...]:
        """Return monomials defining basis elements on the element's side face."""
        oshape = self._mesh.oriented_shape_for_fe(self._check_fe(fe))
        return self.side_mons_for_oshape_side(oshape, side_face)

    def side_mons_for_oshape_side(
        self, oshape: SupportsIndex, side_face: SupportsIndex
    ) -> tuple[M, ...]:
        """Return monomials defining basis elements on a side face of a shape."""
        dep_dim = self._mesh.dependent_dim_for_oshape_side(oshape, side_face)
        return self._side_mons_by_dep_dim[dep_dim]

    def int_rel_mon_num(self, i: SupportsIndex) -> FaceMonNum:
        """Return the interior relative monomial number of the basis element."""
        i = self._check_int_beln(i)
        return FaceMonNum(i % self.mons_per_fe_int)

    def side_rel_mon_num(self, i: SupportsIndex) -> FaceMonNum:
        """Return the side relative monomial number of the basis element."""
        i = self._check_side_beln(i)
        return FaceMonNum((i - self.first_nb_side_beln) % self.mons_per_fe_side)

    def int_mon(self, i: SupportsIndex) -> M:
        """Return the monomial defining an interior supported basis element."""
        return self._int_mons[self.int_rel_mon_num(i)]

    def side_mon(self, i: SupportsIndex) -> M:
        """Return the monomial defining a side supported basis element."""
        incl = self.fe_inclusions_of_side_support(i)
        mons = self.side_mons_for_fe_side(incl.fe1, incl.sideface_in_fe1)
        return mons[self.side_rel_mon_num(i)]

    # basis element numbers

    def int_mon_el_num(self, fe: SupportsIndex, monn: SupportsIndex) -> BasisElNum:
        """Return the basis element for an interior monomial on an element."""
        fe = self._check_fe(fe)
        monn = self._check_monn(monn, self.mons_per_fe_int)
        return BasisElNum(fe * self.mons_per_fe_int + monn)

    def side_mon_el_num(
        self, fe: SupportsIndex, side_face: SupportsIndex, monn: SupportsIndex
    ) -> BasisElNum:
        """Return the basis element for a side monomial on an element's side face."""
        nb_side_num = self._mesh.nb_side_num_for_fe_side(self._check_fe(fe), side_face)
        monn = self._check_monn(monn, self.mons_per_fe_side)
        return BasisElNum(
            self.first_nb_side_beln + nb_side_num * self.mons_per_fe_side + monn
        )

    # restrictions of solutions

    def _check_coefs(self, sol_basis_coefs: npt.ArrayLike) -> npt.NDArray[np.float64]:
        coefs = np.asarray(sol_basis_coefs, np.float64)
        if coefs.shape != (self.total_els,):
            raise ValueError(
                f"Solution coefficients must have shape ({self.total_els},), but have"
                f" shape {coefs.shape}."
            )
        return coefs

    def fe_int_poly(
        self, fe: SupportsIndex, sol_basis_coefs: npt.ArrayLike
    ) -> Polynomial[M]:
        """Return the solution restricted to an element's interior.

        Parameters
        ----------
        fe : FENum
            Element whose interior to take.

        sol_basis_coefs : (N,) array_like
            Coefficients of all basis elements.

        Returns
        -------
        Polynomial
            Polynomial in interior relative coordinates. If the coefficients were
            given as an array of :class:`numpy.float64`, its coefficients are a
            view into that array.
        """
        coefs = self._check_coefs(sol_basis_coefs)
        first = self.int_mon_el_num(fe, 0)
        return Polynomial(coefs[first : first + self.mons_per_fe_int], self._int_mons)

    def fe_side_poly(
        self,
        fe: SupportsIndex,
        side_face: SupportsIndex,
        sol_basis_coefs: npt.ArrayLike,
    ) -> Polynomial[M]:
        """Return the solution restricted to an element's non-boundary side face.

        Parameters
        ----------
        fe : FENum
            Element whose side face to take.

        side_face : SideFace
            Side face of the element. It must not be on the boundary.

        sol_basis_coefs : (N,) array_like
            Coefficients of all basis elements.

        Returns
        -------
        Polynomial
            Polynomial in side relative coordinates.
        """
        coefs = self._check_coefs(sol_basis_coefs)
        mons = self.side_mons_for_fe_side(fe, side_face)
        first = self.side_mon_el_num(fe, side_face, 0)
        return Polynomial(coefs[first : first + len(mons)], mons)

    # weak gradients and inner products

    def wgrad_int_mon(self, monn: SupportsIndex, oshape: SupportsIndex) -> WeakGrad:
        """Return the weak gradient of an interior monomial on an oriented shape."""
        oshape = self._check_oshape(oshape)
        monn = self._check_monn(monn, self.mons_per_fe_int)
        return self._int_mon_wgrads[oshape][monn]

    def wgrad_side_mon(
        self, monn: SupportsIndex, oshape: SupportsIndex, side_face: SupportsIndex
    ) -> WeakGrad:
        """Return the weak gradient of a side monomial on an oriented shape's side."""
        oshape = self._check_oshape(oshape)
        side_wgrads = self._side_mon_wgrads[oshape]
        sf = operator.index(side_face)
        if not (0 <= sf < len(side_wgrads)):
            raise IndexOutOfRangeError(f"Side face {sf} does not exist on the shape.")
        monn = self._check_monn(monn, len(side_wgrads[sf]))
        return side_wgrads[sf][monn]

    def ips_int_mons_for_oshape(self, oshape: SupportsIndex) -> npt.NDArray[np.float64]:
        """Return inner products of interior monomials on an oriented shape."""
        return self._ips_int_mons[self._check_oshape(oshape)]

    def ips_side_mons_for_oshape_side(
        self, oshape: SupportsIndex, side_face: SupportsIndex
    ) -> npt.NDArray[np.float64]:
        """Return inner products of side monomials on an oriented shape's side face."""
        side_ips = self._ips_side_mons[self._check_oshape(oshape)]
        sf = operator.index(side_face)
        if not (0 <= sf < len(side_ips)):
            raise IndexOutOfRangeError(f"Side face {sf} does not exist on the shape.")
        return side_ips[sf]
