"""Check enumeration of the Weak Galerkin basis."""

import numpy as np
import pytest
from wgfem.errors import IndexOutOfRangeError
from wgfem.monomial import MaxMonDeg, MaxMonFactorDeg, Mon2d, Mon3d
from wgfem.rect_mesh import RectMesh
from wgfem.wg_basis import WgBasis


@pytest.fixture
def basis() -> WgBasis:
    """Linear basis on a 2 by 3 mesh of unit squares."""
    mesh = RectMesh((0, 0), (2, 3), (2, 3), Mon2d)
    return WgBasis(mesh, MaxMonDeg(1), MaxMonDeg(1))


def test_counts(basis: WgBasis) -> None:
    """Check the number of basis elements."""
    assert basis.mons_per_fe_int == 3
    assert basis.mons_per_fe_side == 2
    assert basis.num_int_els == 18
    assert basis.first_nb_side_beln == 18
    assert basis.total_els == 32
    assert basis.ub_estimate_num_bel_bel_common_support_fe_triplets() == 358

    stats = basis.statistics()
    assert stats.num_fes == 6
    assert stats.num_nb_sides == 7
    assert stats.total_els == 32


def test_summary(capsys: pytest.CaptureFixture[str]) -> None:
    """Check the summary is printed when verbose."""
    mesh = RectMesh((0, 0), (2, 3), (2, 3), Mon2d)
    WgBasis(mesh, MaxMonDeg(1), MaxMonDeg(1), verbose=True)
    out = capsys.readouterr().out
    assert "Weak Galerkin basis" in out
    line = next(ln for ln in out.splitlines() if ln.startswith("Total basis elements"))
    assert line.split()[-1] == "32"


def test_interior_enumeration(basis: WgBasis) -> None:
    """Check interior supported elements are blocks ordered by element."""
    int_mons = basis.ref_int_mons()
    assert int_mons == (Mon2d((0, 0)), Mon2d((0, 1)), Mon2d((1, 0)))
    for fe in range(basis.mesh.num_fes()):
        for m in range(basis.mons_per_fe_int):
            i = basis.int_mon_el_num(fe, m)
            assert i == 3 * fe + m
            assert basis.is_int_supported(i)
            assert not basis.is_side_supported(i)
            assert basis.support_int_fe_num(i) == fe
            assert basis.int_rel_mon_num(i) == m
            assert basis.int_mon(i) == int_mons[m]


def test_side_enumeration(basis: WgBasis) -> None:
    """Check side supported elements are the same from both including elements."""
    mesh = basis.mesh
    for n in range(mesh.num_nb_sides()):
        incl = mesh.fe_inclusions_of_nb_side(n)
        for m in range(basis.mons_per_fe_side):
            i = basis.side_mon_el_num(incl.fe1, incl.sideface_in_fe1, m)
            assert i == 18 + 2 * n + m
            assert i == basis.side_mon_el_num(incl.fe2, incl.sideface_in_fe2, m)
            assert basis.is_side_supported(i)
            assert not basis.is_int_supported(i)
            assert basis.support_nb_side_num(i) == n
            assert basis.side_rel_mon_num(i) == m
            assert basis.fe_inclusions_of_side_support(i) == incl


def test_side_monomials(basis: WgBasis) -> None:
    """Check side monomials exclude the dependent dimension."""
    assert basis.side_mons_for_fe_side(0, 1) == (Mon2d((0, 0)), Mon2d((0, 1)))
    assert basis.side_mons_for_fe_side(0, 3) == (Mon2d((0, 0)), Mon2d((1, 0)))
    assert basis.side_mons_for_oshape_side(0, 0) == basis.side_mons_for_fe_side(3, 1)
    # First side perpendicular to axis 1 is number 3.
    i = basis.side_mon_el_num(0, 3, 1)
    assert basis.support_nb_side_num(i) == 3
    assert basis.side_mon(i) == Mon2d((1, 0))


def test_partition(basis: WgBasis) -> None:
    """Check every basis element is reached exactly once."""
    mesh = basis.mesh
    seen = set()
    for fe in range(mesh.num_fes()):
        seen.update(basis.int_mon_el_num(fe, m) for m in range(basis.mons_per_fe_int))
    for fe in range(mesh.num_fes()):
        for sf in range(mesh.num_side_faces_for_fe(fe)):
            if mesh.is_boundary_side(fe, sf):
                continue
            seen.update(
                basis.side_mon_el_num(fe, sf, m) for m in range(basis.mons_per_fe_side)
            )
    assert seen == set(range(basis.total_els))


def test_out_of_range(basis: WgBasis) -> None:
    """Check out of range queries fail."""
    with pytest.raises(IndexOutOfRangeError):
        basis.support_int_fe_num(18)
    with pytest.raises(IndexOutOfRangeError):
        basis.support_nb_side_num(5)
    with pytest.raises(IndexOutOfRangeError):
        basis.int_mon(32)
    with pytest.raises(IndexOutOfRangeError):
        basis.side_mon_el_num(0, 0, 0)
    with pytest.raises(IndexOutOfRangeError):
        basis.int_mon_el_num(0, 3)
    with pytest.raises(IndexOutOfRangeError):
        basis.int_mon_el_num(6, 0)
    with pytest.raises(IndexOutOfRangeError):
        basis.wgrad_int_mon(0, 1)
    with pytest.raises(IndexOutOfRangeError):
        basis.ips_side_mons_for_oshape_side(0, 4)


def test_polynomial_views(basis: WgBasis) -> None:
    """Check solution restrictions are views into the coefficients."""
    coefs = np.arange(basis.total_els, dtype=np.float64)
    p = basis.fe_int_poly(2, coefs)
    assert np.shares_memory(p.coefs, coefs)
    assert p.coefs == pytest.approx([6, 7, 8])
    assert p.mons == basis.ref_int_mons()

    q = basis.fe_side_poly(0, 1, coefs)
    assert np.shares_memory(q.coefs, coefs)
    assert q.coefs == pytest.approx([18, 19])
    assert q.mons == (Mon2d((0, 0)), Mon2d((0, 1)))
    # Same side seen from the other element.
    r = basis.fe_side_poly(1, 0, coefs)
    assert r.coefs == pytest.approx(q.coefs)

    with pytest.raises(ValueError):
        basis.fe_int_poly(0, coefs[:-1])
    with pytest.raises(IndexOutOfRangeError):
        basis.fe_side_poly(0, 0, coefs)


def test_inner_products(basis: WgBasis) -> None:
    """Check Gram matrices of monomials on the reference shape."""
    assert basis.ips_int_mons_for_oshape(0) == pytest.approx(
        np.array([[1, 1 / 2, 1 / 2], [1 / 2, 1 / 3, 1 / 4], [1 / 2, 1 / 4, 1 / 3]])
    )
    assert basis.ips_side_mons_for_oshape_side(0, 0) == pytest.approx(
        np.array([[1, 1 / 2], [1 / 2, 1 / 3]])
    )
    assert not basis.ips_int_mons_for_oshape(0).flags.writeable


def test_weak_gradients(basis: WgBasis) -> None:
    """Check weak gradients of basis monomials."""
    # Constant interior functions have zero weak gradient.
    assert basis.wgrad_int_mon(0, 0).coefs == pytest.approx([0, 0])
    # Unit squares, so constant on the greater x side gives the unit x vector.
    assert basis.wgrad_side_mon(0, 0, 1).coefs == pytest.approx([1, 0])
    assert basis.wgrad_side_mon(0, 0, 2).coefs == pytest.approx([0, -1])
    wx = (
        basis.wgrad_int_mon(2, 0).coefs
        + basis.wgrad_side_mon(0, 0, 1).coefs
        + basis.wgrad_side_mon(1, 0, 2).coefs
        + basis.wgrad_side_mon(1, 0, 3).coefs
    )
    assert wx == pytest.approx([1, 0])


def test_factor_degree_basis() -> None:
    """Check a basis with limits on factor degrees in 3D."""
    mesh = RectMesh((0, 0, 0), (1, 1, 1), (2, 1, 1), Mon3d)
    basis = WgBasis(mesh, MaxMonFactorDeg(1), MaxMonFactorDeg(1))
    assert basis.mons_per_fe_int == 8
    assert basis.mons_per_fe_side == 4
    assert basis.total_els == 2 * 8 + 1 * 4
    i = basis.side_mon_el_num(1, 0, 3)
    assert i == 19
    assert basis.side_mon(i) == Mon3d((0, 1, 1))


@pytest.mark.parametrize("i", (-1, 32, 100))
def test_support_checks_range(basis: WgBasis, i: int) -> None:
    """Check support classification rejects numbers outside of the basis."""
    with pytest.raises(IndexOutOfRangeError):
        basis.is_int_supported(i)
    with pytest.raises(IndexOutOfRangeError):
        basis.is_side_supported(i)


def test_support_classification(basis: WgBasis) -> None:
    """Check every basis element is exactly one of interior or side supported."""
    for i in range(basis.total_els):
        assert basis.is_int_supported(i) != basis.is_side_supported(i)
    assert basis.is_int_supported(17)
    assert basis.is_side_supported(18)
    assert basis.is_side_supported(31)


@pytest.mark.parametrize("side_face", (-1, 4))
def test_invalid_side_face(basis: WgBasis, side_face: int) -> None:
    """Check invalid side faces give the same error on every accessor."""
    with pytest.raises(IndexOutOfRangeError):
        basis.side_mons_for_oshape_side(0, side_face)
    with pytest.raises(IndexOutOfRangeError):
        basis.side_mons_for_fe_side(0, side_face)
    with pytest.raises(IndexOutOfRangeError):
        basis.side_mon_el_num(3, side_face, 0)
    with pytest.raises(IndexOutOfRangeError):
        basis.wgrad_side_mon(0, 0, side_face)
    with pytest.raises(IndexOutOfRangeError):
        basis.side_mons_for_oshape_side(-1, 0)
