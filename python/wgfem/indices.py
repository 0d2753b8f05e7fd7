"""Integer handle types used to index the mesh and the basis.

All of these are plain integers at runtime, so they can be used for array
indexing and arithmetic directly. Keeping them as separate types makes it
possible for type checkers to catch an element number being passed where a
side number is expected. Results of arithmetic are plain :class:`int` and have
to be wrapped again explicitly.
"""

from __future__ import annotations

import operator
from typing import Self, SupportsIndex


class _IndexHandle(int):
    """Non-negative integer handle."""

    __slots__ = ()

    def __new__(cls, value: SupportsIndex) -> Self:
        """Create a new handle, checking it is not negative."""
        v = operator.index(value)
        if v < 0:
            raise ValueError(f"{cls.__name__} can not be negative (got {v}).")
        return super().__new__(cls, v)

    def __repr__(self) -> str:
        """Return the representation of the handle."""
        return f"{type(self).__name__}({int(self)})"

    __str__ = __repr__


class MeshCoord(_IndexHandle):
    """Single integer mesh coordinate component (column, row, stack, ...)."""

    __slots__ = ()


class Dim(_IndexHandle):
    """Index of a coordinate axis."""

    __slots__ = ()


class FENum(_IndexHandle):
    """Number of a finite element (interior) in the mesh."""

    __slots__ = ()


class NBSideNum(_IndexHandle):
    """Number of a non-boundary side in the mesh."""

    __slots__ = ()


class OShape(_IndexHandle):
    """Identifier of an oriented element shape."""

    __slots__ = ()


class SideFace(_IndexHandle):
    """One of the ``2 * d`` side faces of an element.

    Even values are the faces with the lesser coordinate value along axis
    ``value // 2``, odd values are those with the greater one.
    """

    __slots__ = ()

    @property
    def perp_axis(self) -> Dim:
        """Axis perpendicular to the side face."""
        return Dim(self // 2)

    @property
    def is_lesser(self) -> bool:
        """Check if this is the face with lesser coordinate on its perpendicular axis."""
        return self % 2 == 0


class BasisElNum(_IndexHandle):
    """Number of a basis element in the global enumeration."""

    __slots__ = ()


class FaceMonNum(_IndexHandle):
    """Index into the monomial sequence of a single face."""

    __slots__ = ()


def lesser_side_face_perp_to_axis(a: SupportsIndex) -> SideFace:
    """Return the side face with lesser coordinate along the axis."""
    return SideFace(2 * operator.index(a))


def greater_side_face_perp_to_axis(a: SupportsIndex) -> SideFace:
    """Return the side face with greater coordinate along the axis."""
    return SideFace(2 * operator.index(a) + 1)
