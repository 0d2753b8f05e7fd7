"""Check sparse and dense linear solvers."""

import numpy as np
import pytest
from wgfem.errors import (
    STATUS_INCONSISTENT_INPUT,
    STATUS_SHAPE_MISMATCH,
    STATUS_ZERO_PIVOT,
    ConfigurationError,
    SolverError,
)
from wgfem.linear_algebra import (
    MatrixType,
    SolverSettings,
    SparseMatrix,
    SparseSolver,
    solve_dense_symmetric,
    solve_sparse,
)


def matrix_from_dense(a, matrix_type: MatrixType, upper_only: bool) -> SparseMatrix:
    """Create a sparse matrix from non-zero entries of a dense one."""
    a = np.asarray(a, np.float64)
    mat = SparseMatrix(a.shape[0], matrix_type)
    for r, c in zip(*np.nonzero(a)):
        if upper_only and c < r:
            continue
        mat.push(r, c, a[r, c])
    return mat


def test_diagonal() -> None:
    """Check a diagonal system."""
    mat = SparseMatrix(3, MatrixType.SYMMETRIC, 3)
    for i, v in enumerate((1.0, 2.0, 3.0)):
        mat.push(i, i, v)
    x = solve_sparse(mat, [3.0, 2.0, 1.0])
    assert x == pytest.approx([3, 1, 1 / 3], abs=1e-15)


def test_symmetric_upper() -> None:
    """Check a symmetric system given by its upper triangle."""
    a = [[1, 2, 3], [2, 2, 0], [3, 0, 3]]
    mat = matrix_from_dense(a, MatrixType.SYMMETRIC, upper_only=True)
    assert mat.nnz == 5
    x = solve_sparse(mat, [3.0, 2.0, 1.0])
    assert x == pytest.approx([0, 1, 1 / 3], abs=1e-15)


def test_structurally_symmetric() -> None:
    """Check a system with symmetric pattern but non-symmetric values."""
    a = [[1, 2, 3], [2, 1, 0], [3, 0, 3]]
    mat = matrix_from_dense(a, MatrixType.STRUCTURALLY_SYMMETRIC, upper_only=False)
    x = solve_sparse(mat, [3.0, 2.0, 1.0])
    assert x == pytest.approx([1 / 3, 4 / 3, 0], abs=1e-15)


def test_lower_entry_in_symmetric() -> None:
    """Check an entry below the diagonal of a symmetric matrix is rejected."""
    mat = SparseMatrix(3, MatrixType.SYMMETRIC)
    for i in range(3):
        mat.push(i, i, 1.0)
    mat.push(2, 0, 1.0)
    with pytest.raises(SolverError) as exc_info:
        solve_sparse(mat, [1.0, 1.0, 1.0])
    assert exc_info.value.status == STATUS_INCONSISTENT_INPUT


def test_not_structurally_symmetric() -> None:
    """Check a non-symmetric pattern is rejected."""
    mat = SparseMatrix(2, MatrixType.STRUCTURALLY_SYMMETRIC)
    mat.push(0, 0, 1.0)
    mat.push(1, 1, 1.0)
    mat.push(0, 1, 1.0)
    with pytest.raises(SolverError) as exc_info:
        solve_sparse(mat, [1.0, 1.0])
    assert exc_info.value.status == STATUS_INCONSISTENT_INPUT


def test_general_not_supported() -> None:
    """Check general matrices can not be solved."""
    mat = SparseMatrix(1, MatrixType.GENERAL)
    mat.push(0, 0, 1.0)
    with pytest.raises(NotImplementedError):
        solve_sparse(mat, [1.0])


def test_singular() -> None:
    """Check a singular system reports a zero pivot."""
    mat = SparseMatrix(2, MatrixType.SYMMETRIC)
    mat.push(0, 0, 1.0)
    mat.push(0, 1, 1.0)
    mat.push(1, 1, 1.0)
    with pytest.raises(SolverError) as exc_info:
        solve_sparse(mat, [1.0, 2.0])
    assert exc_info.value.status == STATUS_ZERO_PIVOT


def test_shape_mismatch() -> None:
    """Check a right side of the wrong size is rejected."""
    mat = SparseMatrix(2, MatrixType.SYMMETRIC)
    mat.push(0, 0, 1.0)
    mat.push(1, 1, 1.0)
    with pytest.raises(SolverError) as exc_info:
        solve_sparse(mat, [1.0, 2.0, 3.0])
    assert exc_info.value.status == STATUS_SHAPE_MISMATCH


@pytest.mark.parametrize("num_threads", (1, 2, 3))
def test_multiple_right_sides(num_threads: int) -> None:
    """Check solving for many right sides at once."""
    rng = np.random.default_rng(0)
    n = 20
    a = 4 * np.eye(n) - np.eye(n, k=1) - np.eye(n, k=-1)
    a[0, n - 1] = a[n - 1, 0] = 0.5
    mat = matrix_from_dense(a, MatrixType.SYMMETRIC, upper_only=True)
    rhs = rng.random((n, 5))
    solver = SparseSolver(SolverSettings(num_threads=num_threads))
    assert solver.num_threads == num_threads
    x = solver.solve(mat, rhs)
    assert x.shape == rhs.shape
    assert a @ x == pytest.approx(rhs)
    assert x == pytest.approx(np.linalg.solve(a, rhs))


def test_duplicates_summed() -> None:
    """Check entries pushed to the same position are summed."""
    mat = SparseMatrix(2, MatrixType.SYMMETRIC, 1)
    mat.push(0, 0, 1.0)
    mat.push(0, 0, 1.0)
    mat.push(1, 1, 4.0)
    assert mat.nnz == 3
    values, indptr, indices = mat.csr3_arrays()
    assert values == pytest.approx([2.0, 4.0])
    assert list(indptr) == [0, 1, 2]
    assert list(indices) == [0, 1]
    assert solve_sparse(mat, [2.0, 4.0]) == pytest.approx([1.0, 1.0])


def test_from_csr3() -> None:
    """Check a matrix created from compressed sparse row arrays."""
    mat = SparseMatrix.from_csr3(
        [1.0, 2.0, 3.0, 2.0, 3.0], [0, 3, 4, 5], [0, 1, 2, 1, 2], MatrixType.SYMMETRIC
    )
    assert mat.num_rows == 3
    values, indptr, indices = mat.csr3_arrays()
    assert values == pytest.approx([1.0, 2.0, 3.0, 2.0, 3.0])
    assert list(indptr) == [0, 3, 4, 5]
    assert list(indices) == [0, 1, 2, 1, 2]
    assert solve_sparse(mat, [3.0, 2.0, 1.0]) == pytest.approx([0, 1, 1 / 3])

    with pytest.raises(ValueError):
        SparseMatrix.from_csr3([1.0], [0, 2], [0], MatrixType.SYMMETRIC)
    with pytest.raises(ValueError):
        SparseMatrix.from_csr3([1.0, 1.0], [0, 2, 1], [0, 1], MatrixType.SYMMETRIC)
    with pytest.raises(ValueError):
        SparseMatrix.from_csr3([1.0], [1, 1, 1], [0], MatrixType.SYMMETRIC)
    with pytest.raises(IndexError):
        SparseMatrix.from_csr3([1.0, 1.0], [0, 1, 2], [0, 2], MatrixType.SYMMETRIC)


def test_from_csr3_then_push() -> None:
    """Check entries can be added to a matrix created from CSR arrays."""
    mat = SparseMatrix.from_csr3([1.0, 5.0], [0, 1, 1, 2], [0, 2], MatrixType.SYMMETRIC)
    assert mat.nnz == 2
    mat.push(1, 1, 2.0)
    mat.push(0, 2, 1.0)
    mat.push(2, 2, -2.0)
    assert mat.nnz == 5
    values, indptr, indices = mat.csr3_arrays()
    assert values == pytest.approx([1.0, 1.0, 2.0, 3.0])
    assert list(indptr) == [0, 2, 3, 4]
    assert list(indices) == [0, 2, 1, 2]


def test_out_of_range_entry() -> None:
    """Check entries outside of the matrix are rejected."""
    mat = SparseMatrix(2, MatrixType.SYMMETRIC)
    with pytest.raises(IndexError):
        mat.push(2, 0, 1.0)
    with pytest.raises(IndexError):
        mat.push(0, -1, 1.0)
    with pytest.raises(ValueError):
        SparseMatrix(0, MatrixType.SYMMETRIC)


@pytest.mark.parametrize("kwargs", ({"num_threads": 0}, {"refinement_steps": -1}))
def test_invalid_settings(kwargs) -> None:
    """Check invalid solver settings are rejected."""
    with pytest.raises(ConfigurationError):
        SolverSettings(**kwargs)


def test_dense_symmetric() -> None:
    """Check the dense solver only reads the upper triangle."""
    a = np.array([[1.0, 2.0, 3.0], [-100.0, 2.0, 0.0], [7.0, 50.0, 3.0]])
    x = solve_dense_symmetric(a, [3.0, 2.0, 1.0])
    assert x == pytest.approx([0, 1, 1 / 3])
    with pytest.raises(SolverError) as exc_info:
        solve_dense_symmetric(np.ones((2, 3)), [1.0, 2.0])
    assert exc_info.value.status == STATUS_SHAPE_MISMATCH
