r"""Structured mesh of axis aligned rectangular elements in any dimension.

Elements and non-boundary sides are enumerated using mixed-radix encodings of
their integer mesh coordinates, with axis 0 being the least significant. For
element mesh coordinates :math:`(c_0, \dots, c_{d-1})` in a mesh with logical
dimensions :math:`(k_0, \dots, k_{d-1})` the element number is

.. math::

    i(c_0, \dots, c_{d-1}) = c_0 + \sum\limits_{r=1}^{d-1} c_r \prod\limits_{l=0}^{r-1}
    k_l

and the inverse is :math:`c_r = (i \bmod K_r) \div K_{r-1}`, where :math:`K_r` is
the cumulative product of logical dimensions up to and including :math:`r`, and
:math:`K_{-1} = 1`.

Non-boundary sides are grouped by the axis to which they are perpendicular, with
all sides perpendicular to axis 0 first, then those perpendicular to axis 1 and so
on. Within each group, sides are enumerated the same way as elements, but in the
mesh of sides perpendicular to that axis. This mesh has the same logical
dimensions as the element mesh, except along the perpendicular axis, where there
is one fewer, since only separating positions between elements are counted.
A side with coordinates :math:`(c_0, \dots, c_{d-1})` in that mesh separates the
element with the same coordinates from the one with the perpendicular coordinate
greater by one.
"""

from __future__ import annotations

import math
import operator
from collections.abc import Sequence
from itertools import accumulate
from typing import Generic, SupportsIndex

import numpy as np
import numpy.typing as npt

from wgfem.cubature import IntegrationSettings, cubature
from wgfem.errors import IndexOutOfRangeError, ConfigurationError
from wgfem.indices import (
    Dim,
    FENum,
    MeshCoord,
    NBSideNum,
    OShape,
    SideFace,
    greater_side_face_perp_to_axis,
    lesser_side_face_perp_to_axis,
)
from wgfem.mesh import (
    Face,
    GlobalFunction,
    Interior,
    NBSideGeom,
    NBSideInclusions,
)
from wgfem.monomial import M, VectorMonomial
from wgfem.polynomial import Polynomial


def _read_only(a: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Return a copy of the array which can not be written to."""
    out = np.array(a, np.float64)
    out.flags.writeable = False
    return out


class RectMesh(Generic[M]):
    """Mesh of identical axis aligned boxes covering a box shaped domain.

    Parameters
    ----------
    min_bounds : Sequence of float
        Corner of the domain with minimum coordinates.

    max_bounds : Sequence of float
        Corner of the domain with maximum coordinates.

    mesh_ldims : Sequence of int
        Number of elements along each axis.

    mon_type : type
        Monomial type, which the mesh will be used with. Its domain dimension
        determines the dimension of the mesh.

    integration : IntegrationSettings, optional
        Tolerances used when integrating functions numerically. If not given,
        default tolerances are used.
    """

    space_dim: int
    mon_type: type[M]
    one_mon: M
    min_bounds: npt.NDArray[np.float64]
    max_bounds: npt.NDArray[np.float64]
    mesh_ldims: tuple[MeshCoord, ...]
    fe_dims: npt.NDArray[np.float64]
    integration: IntegrationSettings

    def __init__(
        self,
        min_bounds: Sequence[float] | npt.ArrayLike,
        max_bounds: Sequence[float] | npt.ArrayLike,
        mesh_ldims: Sequence[SupportsIndex],
        mon_type: type[M],
        integration: IntegrationSettings | None = None,
    ) -> None:
        space_dim = mon_type.domain_dim
        lo = np.array(min_bounds, np.float64).ravel()
        hi = np.array(max_bounds, np.float64).ravel()
        if lo.size != space_dim or hi.size != space_dim or len(mesh_ldims) != space_dim:
            raise ConfigurationError(
                f"Monomial type {mon_type.__name__} has domain dimension {space_dim},"
                f" but bounds have lengths {lo.size} and {hi.size} and logical"
                f" dimensions have length {len(mesh_ldims)}."
            )

        ldims: list[int] = list()
        for r, ld in enumerate(mesh_ldims):
            try:
                v = operator.index(ld)
            except TypeError:
                raise ConfigurationError(
                    f"Logical dimension {r} must be an integer, not {ld!r}."
                ) from None
            if v <= 0:
                raise ConfigurationError(
                    f"Logical dimension {r} must be positive, but is {v}."
                )
            ldims.append(v)

        spans = hi - lo
        for r in range(space_dim):
            # Written to also reject NaN
            if not (spans[r] > 0):
                raise ConfigurationError(
                    f"Bounds along axis {r} must satisfy max > min, but are"
                    f" [{lo[r]}, {hi[r]}]."
                )

        self.space_dim = space_dim
        self.mon_type = mon_type
        self.one_mon = mon_type.one()
        self.min_bounds = _read_only(lo)
        self.max_bounds = _read_only(hi)
        self.mesh_ldims = tuple(MeshCoord(v) for v in ldims)
        self.integration = integration if integration is not None else IntegrationSettings()

        self.fe_dims = _read_only(spans / np.array(ldims, np.float64))
        self._fe_dims_wo_dim = tuple(
            _read_only(np.delete(self.fe_dims, r)) for r in range(space_dim)
        )

        self._cumprods_mesh_ldims = tuple(accumulate(ldims, operator.mul))

        self._nb_side_mesh_ldims_by_perp_axis = tuple(
            tuple(ldims[r] - 1 if r == a else ldims[r] for r in range(space_dim))
            for a in range(space_dim)
        )
        self._cumprods_nb_side_mesh_ldims_by_perp_axis = tuple(
            tuple(accumulate(side_ldims, operator.mul))
            for side_ldims in self._nb_side_mesh_ldims_by_perp_axis
        )

        self._num_fes = self._cumprods_mesh_ldims[-1]
        nb_side_counts = tuple(
            cumprods[-1] for cumprods in self._cumprods_nb_side_mesh_ldims_by_perp_axis
        )
        self._num_nb_sides = sum(nb_side_counts)
        self._first_nb_side_nums_by_perp_axis = tuple(
            NBSideNum(v) for v in accumulate(nb_side_counts[:-1], initial=0)
        )

        self._num_side_faces_per_fe = 2 * space_dim
        self._rect_diameter = float(np.linalg.norm(self.fe_dims))
        self._rect_diameter_inv = 1.0 / self._rect_diameter

    def __repr__(self) -> str:
        """Return the representation of the mesh."""
        return (
            f"RectMesh({self.min_bounds.tolist()}, {self.max_bounds.tolist()},"
            f" {[int(v) for v in self.mesh_ldims]}, {self.mon_type.__name__})"
        )

    # range checks

    def _check_fe(self, fe: SupportsIndex) -> FENum:
        v = operator.index(fe)
        if not (0 <= v < self._num_fes):
            raise IndexOutOfRangeError(
                f"Element {v} is out of range for a mesh with {self._num_fes} elements."
            )
        return FENum(v)

    def _check_nb_side(self, n: SupportsIndex) -> NBSideNum:
        v = operator.index(n)
        if not (0 <= v < self._num_nb_sides):
            raise IndexOutOfRangeError(
                f"Non-boundary side {v} is out of range for a mesh with"
                f" {self._num_nb_sides} non-boundary sides."
            )
        return NBSideNum(v)

    def _check_axis(self, r: SupportsIndex) -> Dim:
        v = operator.index(r)
        if not (0 <= v < self.space_dim):
            raise IndexOutOfRangeError(
                f"Axis {v} is out of range for a mesh of dimension {self.space_dim}."
            )
        return Dim(v)

    def _check_side_face(self, side_face: SupportsIndex) -> SideFace:
        v = operator.index(side_face)
        if not (0 <= v < self._num_side_faces_per_fe):
            raise IndexOutOfRangeError(
                f"Side face {v} is out of range for elements with"
                f" {self._num_side_faces_per_fe} side faces."
            )
        return SideFace(v)

    def _check_oshape(self, oshape: SupportsIndex) -> OShape:
        v = operator.index(oshape)
        if v != 0:
            raise IndexOutOfRangeError(
                f"Oriented shape {v} does not exist, rectangular meshes have only one."
            )
        return OShape(v)

    def _check_coords(
        self, coords: Sequence[SupportsIndex], ldims: Sequence[int]
    ) -> tuple[int, ...]:
        if len(coords) != self.space_dim:
            raise IndexOutOfRangeError(
                f"Mesh coordinates must have {self.space_dim} components, but"
                f" {len(coords)} were given."
            )
        values = tuple(operator.index(c) for c in coords)
        for r, (c, ld) in enumerate(zip(values, ldims)):
            if not (0 <= c < ld):
                raise IndexOutOfRangeError(
                    f"Mesh coordinate {c} along axis {r} is outside of [0, {ld})."
                )
        return values

    # element coordinates

    def fe_with_mesh_coords(self, coords: Sequence[SupportsIndex]) -> FENum:
        """Return the number of the element with the given mesh coordinates."""
        c = self._check_coords(coords, self.mesh_ldims)
        coord_contrs = c[0]
        for r in range(1, self.space_dim):
            coord_contrs += c[r] * self._cumprods_mesh_ldims[r - 1]
        return FENum(coord_contrs)

    def fe_mesh_coords(self, fe: SupportsIndex) -> tuple[MeshCoord, ...]:
        """Return the mesh coordinates of an element."""
        fe = self._check_fe(fe)
        return tuple(self._fe_mesh_coord(r, fe) for r in range(self.space_dim))

    def fe_mesh_coord(self, r: SupportsIndex, fe: SupportsIndex) -> MeshCoord:
        """Return the mesh coordinate of an element along axis ``r``."""
        return self._fe_mesh_coord(self._check_axis(r), self._check_fe(fe))

    def _fe_mesh_coord(self, r: int, fe: int) -> MeshCoord:
        cumprods_preceding_ldims = 1 if r == 0 else self._cumprods_mesh_ldims[r - 1]
        return MeshCoord((fe % self._cumprods_mesh_ldims[r]) // cumprods_preceding_ldims)

    # non-boundary side coordinates

    def perp_axis_for_nb_side(self, n: SupportsIndex) -> Dim:
        """Return the axis to which the non-boundary side is perpendicular."""
        n = self._check_nb_side(n)
        return self._perp_axis_for_nb_side(n)

    def _perp_axis_for_nb_side(self, n: int) -> Dim:
        for r in reversed(range(self.space_dim)):
            if self._first_nb_side_nums_by_perp_axis[r] <= n:
                return Dim(r)
        assert False, "Can not find perpendicular axis for non-boundary side."

    def nb_side_geom(self, n: SupportsIndex) -> NBSideGeom:
        """Return the perpendicular axis and side mesh coordinates of a side."""
        n = self._check_nb_side(n)
        a = self._perp_axis_for_nb_side(n)
        orientation_rel_side_num = n - self._first_nb_side_nums_by_perp_axis[a]
        cumprods = self._cumprods_nb_side_mesh_ldims_by_perp_axis[a]
        side_mesh_coords = tuple(
            MeshCoord(
                (orientation_rel_side_num % cumprods[r])
                // (1 if r == 0 else cumprods[r - 1])
            )
            for r in range(self.space_dim)
        )
        return NBSideGeom(a, side_mesh_coords)

    def nb_side_with_mesh_coords(
        self, coords: Sequence[SupportsIndex], perp_axis: SupportsIndex
    ) -> NBSideNum:
        """Return the number of the side with the given side mesh coordinates.

        Parameters
        ----------
        coords : Sequence of int
            Coordinates of the side in the mesh of sides perpendicular to
            ``perp_axis``.

        perp_axis : int
            Axis to which the side is perpendicular.

        Returns
        -------
        NBSideNum
            Number of the non-boundary side.
        """
        a = self._check_axis(perp_axis)
        c = self._check_coords(coords, self._nb_side_mesh_ldims_by_perp_axis[a])
        cumprods = self._cumprods_nb_side_mesh_ldims_by_perp_axis[a]
        total = self._first_nb_side_nums_by_perp_axis[a] + c[0]
        for r in range(1, self.space_dim):
            total += c[r] * cumprods[r - 1]
        return NBSideNum(total)

    # counts and shapes

    def num_fes(self) -> int:
        """Return the number of elements."""
        return self._num_fes

    def num_nb_sides(self) -> int:
        """Return the number of non-boundary sides."""
        return self._num_nb_sides

    def num_nb_sides_perp_to_axis(self, a: SupportsIndex) -> int:
        """Return the number of non-boundary sides perpendicular to an axis."""
        a = self._check_axis(a)
        return self._cumprods_nb_side_mesh_ldims_by_perp_axis[a][-1]

    def first_nb_side_num_perp_to_axis(self, a: SupportsIndex) -> NBSideNum:
        """Return the first number assigned to sides perpendicular to an axis."""
        return self._first_nb_side_nums_by_perp_axis[self._check_axis(a)]

    def num_oriented_element_shapes(self) -> int:
        """Return the number of oriented shapes, which is always one."""
        return 1

    def oriented_shape_for_fe(self, fe: SupportsIndex) -> OShape:
        """Return the oriented shape of an element."""
        self._check_fe(fe)
        return OShape(0)

    def num_side_faces_for_fe(self, fe: SupportsIndex) -> int:
        """Return the number of side faces of an element."""
        self._check_fe(fe)
        return self._num_side_faces_per_fe

    def num_side_faces_for_shape(self, oshape: SupportsIndex) -> int:
        """Return the number of side faces of the oriented shape."""
        self._check_oshape(oshape)
        return self._num_side_faces_per_fe

    def max_num_shape_sides(self) -> int:
        """Return the maximum number of side faces of any shape."""
        return self._num_side_faces_per_fe

    def dependent_dim_for_oshape_side(
        self, oshape: SupportsIndex, side_face: SupportsIndex
    ) -> Dim:
        """Return the dependent dimension of a side, which is its perpendicular axis."""
        self._check_oshape(oshape)
        return self._check_side_face(side_face).perp_axis

    def shape_diameter_inv(self, oshape: SupportsIndex) -> float:
        """Return inverse of the element diameter."""
        self._check_oshape(oshape)
        return self._rect_diameter_inv

    def max_fe_diameter(self) -> float:
        """Return the diameter of elements."""
        return self._rect_diameter

    # topology

    def fe_inclusions_of_nb_side(self, n: SupportsIndex) -> NBSideInclusions:
        """Return the two elements which share a non-boundary side."""
        n = self._check_nb_side(n)
        side_geom = self.nb_side_geom(n)
        a = side_geom.perp_axis
        lesser_fe = self.fe_with_mesh_coords(side_geom.mesh_coords)
        greater_fe = FENum(
            lesser_fe + (1 if a == 0 else self._cumprods_mesh_ldims[a - 1])
        )
        return NBSideInclusions(
            nb_side_num=n,
            fe1=lesser_fe,
            sideface_in_fe1=greater_side_face_perp_to_axis(a),
            fe2=greater_fe,
            sideface_in_fe2=lesser_side_face_perp_to_axis(a),
        )

    def nb_side_num_for_fe_side(
        self, fe: SupportsIndex, side_face: SupportsIndex
    ) -> NBSideNum:
        """Return the non-boundary side number of an element's side face."""
        fe = self._check_fe(fe)
        side_face = self._check_side_face(side_face)
        if self.is_boundary_side(fe, side_face):
            raise IndexOutOfRangeError(
                f"Side face {int(side_face)} of element {int(fe)} is on the boundary,"
                " so it has no non-boundary side number."
            )
        a = side_face.perp_axis
        coords = list(self.fe_mesh_coords(fe))
        if side_face.is_lesser:
            # Side below the element is the greater side of its neighbour.
            coords[a] = MeshCoord(coords[a] - 1)
        return self.nb_side_with_mesh_coords(coords, a)

    def is_boundary_side(self, fe: SupportsIndex, side_face: SupportsIndex) -> bool:
        """Check if an element's side face is on the boundary of the mesh."""
        side_face = self._check_side_face(side_face)
        a = side_face.perp_axis
        coord_a = self.fe_mesh_coord(a, fe)
        if side_face.is_lesser:
            return coord_a == 0
        return coord_a == self.mesh_ldims[a] - 1

    def num_boundary_sides(self) -> int:
        """Return the number of sides on the boundary of the mesh."""
        return sum(
            2 * math.prod(ld for r, ld in enumerate(self.mesh_ldims) if r != a)
            for a in range(self.space_dim)
        )

    def num_non_boundary_sides_for_fe(self, fe: SupportsIndex) -> int:
        """Return the number of side faces of an element not on the boundary."""
        fe = self._check_fe(fe)
        return sum(
            not self.is_boundary_side(fe, sf)
            for sf in range(self._num_side_faces_per_fe)
        )

    def fe_interior_origin(self, fe: SupportsIndex) -> npt.NDArray[np.float64]:
        """Return the corner of an element with minimum coordinates."""
        coords = np.array(self.fe_mesh_coords(fe), np.float64)
        return self.min_bounds + coords * self.fe_dims

    def fe_face_origin(self, fe: SupportsIndex, face: Face) -> npt.NDArray[np.float64]:
        """Return the origin of face relative coordinates of an element's face."""
        origin = self.fe_interior_origin(fe)
        if isinstance(face, Interior):
            return origin
        side_face = self._check_side_face(face)
        if not side_face.is_lesser:
            a = side_face.perp_axis
            origin[a] += self.fe_dims[a]
        return origin

    # integration of global functions

    def intg_global_fn_on_fe_face(
        self, f: GlobalFunction, fe: SupportsIndex, face: Face
    ) -> float:
        """Integrate a function given in global coordinates over an element's face.

        Parameters
        ----------
        f : (array) -> float
            Function to integrate. It receives a single point in global coordinates
            as a (d,) array.

        fe : FENum
            Element over which to integrate.

        face : Face
            Interior or the side face to integrate over.

        Returns
        -------
        float
            Value of the integral.
        """
        fe_int_origin = self.fe_interior_origin(fe)
        rel_err = self.integration.rel_err
        abs_err = self.integration.abs_err

        if isinstance(face, Interior):
            return cubature(
                f, fe_int_origin, fe_int_origin + self.fe_dims, rel_err, abs_err
            )

        side_face = self._check_side_face(face)
        a = side_face.perp_axis
        side_a_coord = fe_int_origin[a] + (0.0 if side_face.is_lesser else self.fe_dims[a])
        origin_wo_a = np.delete(fe_int_origin, a)

        def side_space_integrand(x_side_space: npt.NDArray[np.float64]) -> float:
            return f(np.insert(origin_wo_a + x_side_space, a, side_a_coord))

        side_dims = self._fe_dims_wo_dim[a]
        return cubature(
            side_space_integrand, np.zeros_like(side_dims), side_dims, rel_err, abs_err
        )

    def intg_global_fn_x_facerel_mon_on_fe_face(
        self, g: GlobalFunction, mon: M, fe: SupportsIndex, face: Face
    ) -> float:
        """Integrate a global function times a face relative monomial over a face."""
        face_origin = self.fe_face_origin(fe, face)

        def integrand(x: npt.NDArray[np.float64]) -> float:
            return g(x) * float(mon(x - face_origin))

        return self.intg_global_fn_on_fe_face(integrand, fe, face)

    # exact integration on the reference shape

    def _intg_exps_on_box(self, exps: Sequence[int], skip_axis: int | None) -> float:
        """Integrate monomial given by exponents over [0, fe_dims], skipping an axis."""
        total = 1.0
        for r, (e, h) in enumerate(zip(exps, self.fe_dims)):
            if r == skip_axis:
                continue
            total *= h ** (e + 1) / (e + 1)
        return total

    def _intg_facerel_mon_on_face(self, mon: M, face: Face) -> float:
        if isinstance(face, Interior):
            return self._intg_exps_on_box(mon.exps, None)
        a = self._check_side_face(face).perp_axis
        # Face relative perpendicular coordinate is zero everywhere on the side.
        if mon.exp(a) != 0:
            return 0.0
        return self._intg_exps_on_box(mon.exps, a)

    def intg_facerel_poly_on_oshape_face(
        self, p: Polynomial[M], oshape: SupportsIndex, face: Face
    ) -> float:
        """Integrate a face relative polynomial over the face of the oriented shape."""
        self._check_oshape(oshape)
        return sum(c * self._intg_facerel_mon_on_face(mon, face) for c, mon in p.terms())

    def intg_facerel_mon_x_facerel_mon_on_oshape_face(
        self, mon1: M, mon2: M, oshape: SupportsIndex, face: Face
    ) -> float:
        """Integrate a product of face relative monomials over the face."""
        self._check_oshape(oshape)
        return self._intg_facerel_mon_on_face(mon1 * mon2, face)

    def intg_facerel_mon_x_facerel_poly_on_oshape_face(
        self, mon: M, p: Polynomial[M], oshape: SupportsIndex, face: Face
    ) -> float:
        """Integrate a face relative monomial times a polynomial over the face."""
        self._check_oshape(oshape)
        return sum(
            c * self._intg_facerel_mon_on_face(mon * pmon, face) for c, pmon in p.terms()
        )

    def intg_facerel_poly_x_facerel_poly_on_oshape_face(
        self, p1: Polynomial[M], p2: Polynomial[M], oshape: SupportsIndex, face: Face
    ) -> float:
        """Integrate a product of two face relative polynomials over the face."""
        self._check_oshape(oshape)
        return sum(
            c1 * c2 * self._intg_facerel_mon_on_face(mon1 * mon2, face)
            for c1, mon1 in p1.terms()
            for c2, mon2 in p2.terms()
        )

    def intg_intrel_mon_x_siderel_mon_on_oshape_side(
        self,
        int_mon: M,
        side_mon: M,
        oshape: SupportsIndex,
        side_face: SupportsIndex,
    ) -> float:
        """Integrate an interior relative monomial times a side relative one on a side.

        Both coordinate systems agree on all axes except the perpendicular one. There
        the side relative coordinate is zero on the side, while the interior relative
        one is either zero or the element width.
        """
        self._check_oshape(oshape)
        side_face = self._check_side_face(side_face)
        a = side_face.perp_axis
        if side_mon.exp(a) != 0:
            return 0.0
        perp_coord = 0.0 if side_face.is_lesser else float(self.fe_dims[a])
        perp_factor = perp_coord ** int_mon.exp(a)
        if perp_factor == 0.0:
            return 0.0
        return perp_factor * self._intg_exps_on_box((int_mon * side_mon).exps, a)

    def intg_siderel_mon_x_intrel_vmon_dot_normal_on_oshape_side(
        self,
        mon: M,
        q: VectorMonomial,
        oshape: SupportsIndex,
        side_face: SupportsIndex,
    ) -> float:
        """Integrate side relative monomial times normal component of a vector monomial.

        The normal is the outward unit normal of the side face.
        """
        side_face = self._check_side_face(side_face)
        a = side_face.perp_axis
        if q.component != a:
            return 0.0
        sign = -1.0 if side_face.is_lesser else +1.0
        return sign * self.intg_intrel_mon_x_siderel_mon_on_oshape_side(
            q.mon, mon, oshape, side_face
        )

    def intg_siderel_poly_x_intrel_vmon_dot_normal_on_oshape_side(
        self,
        p: Polynomial[M],
        q: VectorMonomial,
        oshape: SupportsIndex,
        side_face: SupportsIndex,
    ) -> float:
        """Integrate side relative polynomial times normal component of a vector monomial."""
        return sum(
            c
            * self.intg_siderel_mon_x_intrel_vmon_dot_normal_on_oshape_side(
                mon, q, oshape, side_face
            )
            for c, mon in p.terms()
        )
