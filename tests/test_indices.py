"""Check that index handle types behave as integers with extra checks."""

import pytest
from wgfem.indices import (
    BasisElNum,
    Dim,
    FENum,
    NBSideNum,
    SideFace,
    greater_side_face_perp_to_axis,
    lesser_side_face_perp_to_axis,
)


def test_negative_rejected() -> None:
    """Check that handles can not be negative."""
    with pytest.raises(ValueError):
        FENum(-1)
    with pytest.raises(ValueError):
        NBSideNum(-3)


def test_integer_behaviour() -> None:
    """Check handles can be used as plain integers."""
    fe = FENum(4)
    assert fe == 4
    assert fe + 1 == 5
    assert [10, 20, 30, 40, 50][fe] == 50
    assert repr(fe) == "FENum(4)"
    assert repr(BasisElNum(0)) == "BasisElNum(0)"


def test_non_integer_rejected() -> None:
    """Check that floats are not silently truncated."""
    with pytest.raises(TypeError):
        FENum(1.5)  # type: ignore


@pytest.mark.parametrize("a", (0, 1, 2, 3))
def test_side_faces(a: int) -> None:
    """Check side face orientation helpers agree with each other."""
    lesser = lesser_side_face_perp_to_axis(a)
    greater = greater_side_face_perp_to_axis(Dim(a))
    assert lesser == 2 * a and greater == 2 * a + 1
    assert lesser.perp_axis == a and greater.perp_axis == a
    assert lesser.is_lesser and not greater.is_lesser
    assert isinstance(lesser.perp_axis, Dim)
    assert SideFace(greater) == greater
