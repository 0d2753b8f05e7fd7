"""Interface which meshes must provide to be used with the Weak Galerkin basis.

The basis itself does not need to know anything about the shape of the mesh.
It only relies on the topology queries and integration functions declared by
:class:`Mesh`, which are implemented by :class:`wgfem.rect_mesh.RectMesh`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Final, Protocol, SupportsIndex, TypeAlias, TypeVar

import numpy as np
import numpy.typing as npt

from wgfem.indices import Dim, FENum, MeshCoord, NBSideNum, OShape, SideFace
from wgfem.monomial import M, VectorMonomial
from wgfem.polynomial import Polynomial


@dataclass(frozen=True)
class Interior:
    """Marker for the interior face of an element."""

    def __repr__(self) -> str:
        """Return the representation of the marker."""
        return "INTERIOR"


INTERIOR: Final = Interior()

Face: TypeAlias = Interior | SideFace
"""Either the interior of an element or one of its side faces."""


@dataclass(frozen=True)
class NBSideGeom:
    """Geometric information of a non-boundary side.

    Parameters
    ----------
    perp_axis : Dim
        Axis to which the side is perpendicular.

    mesh_coords : tuple of MeshCoord
        Coordinates of the side in the mesh of sides with the same perpendicular
        axis.
    """

    perp_axis: Dim
    mesh_coords: tuple[MeshCoord, ...]


@dataclass(frozen=True)
class NBSideInclusions:
    """The two elements which include a non-boundary side.

    Parameters
    ----------
    nb_side_num : NBSideNum
        Number of the side.

    fe1 : FENum
        Element with lesser coordinate along the side's perpendicular axis.

    sideface_in_fe1 : SideFace
        Side face of the first element which is the side.

    fe2 : FENum
        Element with greater coordinate along the side's perpendicular axis.

    sideface_in_fe2 : SideFace
        Side face of the second element which is the side.
    """

    nb_side_num: NBSideNum
    fe1: FENum
    sideface_in_fe1: SideFace
    fe2: FENum
    sideface_in_fe2: SideFace


GlobalFunction: TypeAlias = Callable[[npt.NDArray[np.float64]], float]
"""Function of a single point in the global coordinates, given as (d,) array."""


class Mesh(Protocol[M]):
    """Topology and integration capabilities needed by the basis."""

    mon_type: type[M]
    """Type of monomials the mesh is used with."""

    def num_fes(self) -> int:
        """Number of finite elements."""
        ...

    def num_nb_sides(self) -> int:
        """Number of non-boundary sides."""
        ...

    def num_oriented_element_shapes(self) -> int:
        """Number of distinct oriented element shapes."""
        ...

    def oriented_shape_for_fe(self, fe: FENum) -> OShape:
        """Oriented shape of the element."""
        ...

    def num_side_faces_for_fe(self, fe: FENum) -> int:
        """Number of side faces of the element."""
        ...

    def num_side_faces_for_shape(self, oshape: OShape) -> int:
        """Number of side faces of the oriented shape."""
        ...

    def max_num_shape_sides(self) -> int:
        """Largest number of side faces of any shape."""
        ...

    def dependent_dim_for_oshape_side(
        self, oshape: SupportsIndex, side_face: SupportsIndex
    ) -> Dim:
        """Dimension whose coordinate is affinely dependent on the others on the side."""
        ...

    def fe_inclusions_of_nb_side(self, n: NBSideNum) -> NBSideInclusions:
        """Elements which include the non-boundary side."""
        ...

    def nb_side_num_for_fe_side(self, fe: FENum, side_face: SupportsIndex) -> NBSideNum:
        """Non-boundary side number of the element's side face."""
        ...

    def is_boundary_side(self, fe: FENum, side_face: SideFace) -> bool:
        """Check if the element's side face lies on the boundary."""
        ...

    def num_boundary_sides(self) -> int:
        """Number of sides on the boundary."""
        ...

    def num_non_boundary_sides_for_fe(self, fe: FENum) -> int:
        """Number of side faces of the element which are not on the boundary."""
        ...

    def shape_diameter_inv(self, oshape: OShape) -> float:
        """Inverse of the diameter of the oriented shape."""
        ...

    def max_fe_diameter(self) -> float:
        """Largest diameter of any element."""
        ...

    def fe_interior_origin(self, fe: FENum) -> npt.NDArray[np.float64]:
        """Origin of the interior relative coordinates of the element."""
        ...

    def intg_global_fn_on_fe_face(self, f: GlobalFunction, fe: FENum, face: Face) -> float:
        """Integrate a global function on a face of an element."""
        ...

    def intg_global_fn_x_facerel_mon_on_fe_face(
        self, g: GlobalFunction, mon: M, fe: FENum, face: Face
    ) -> float:
        """Integrate a global function times a face relative monomial."""
        ...

    def intg_facerel_poly_on_oshape_face(
        self, p: Polynomial[M], oshape: OShape, face: Face
    ) -> float:
        """Integrate a face relative polynomial on the face of an oriented shape."""
        ...

    def intg_facerel_mon_x_facerel_mon_on_oshape_face(
        self, mon1: M, mon2: M, oshape: OShape, face: Face
    ) -> float:
        """Integrate a product of two face relative monomials."""
        ...

    def intg_facerel_mon_x_facerel_poly_on_oshape_face(
        self, mon: M, p: Polynomial[M], oshape: OShape, face: Face
    ) -> float:
        """Integrate a product of face relative monomial and polynomial."""
        ...

    def intg_facerel_poly_x_facerel_poly_on_oshape_face(
        self, p1: Polynomial[M], p2: Polynomial[M], oshape: OShape, face: Face
    ) -> float:
        """Integrate a product of two face relative polynomials."""
        ...

    def intg_intrel_mon_x_siderel_mon_on_oshape_side(
        self, int_mon: M, side_mon: M, oshape: OShape, side_face: SideFace
    ) -> float:
        """Integrate interior relative monomial times side relative one on a side."""
        ...

    def intg_siderel_mon_x_intrel_vmon_dot_normal_on_oshape_side(
        self, mon: M, q: VectorMonomial, oshape: OShape, side_face: SideFace
    ) -> float:
        """Integrate side relative monomial times normal component of a vector monomial."""
        ...

    def intg_siderel_poly_x_intrel_vmon_dot_normal_on_oshape_side(
        self, p: Polynomial[M], q: VectorMonomial, oshape: OShape, side_face: SideFace
    ) -> float:
        """Integrate side relative polynomial times normal component of a vector monomial."""
        ...


MeshT = TypeVar("MeshT", bound=Mesh)
