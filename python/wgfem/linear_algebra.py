"""Solving sparse and dense linear systems.

Only symmetric and structurally symmetric systems are supported. Symmetric
matrices are given by their upper triangle only, which is how they are usually
assembled, since it halves the storage needed.

Before any solve, a :class:`SparseSolver` must be created. This is where
settings of the solver, such as the number of threads it may use, are given.
"""

from __future__ import annotations

import operator
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import IntEnum
from typing import Self, SupportsIndex

import numpy as np
import numpy.typing as npt
from scipy import linalg as la
from scipy import sparse as sp
from scipy.sparse import linalg as sla

from wgfem.errors import (
    STATUS_INCONSISTENT_INPUT,
    STATUS_SHAPE_MISMATCH,
    STATUS_ZERO_PIVOT,
    ConfigurationError,
    SolverError,
)


class MatrixType(IntEnum):
    """Structure of a sparse matrix."""

    SYMMETRIC = 1
    """Symmetric matrix, given by entries of its upper triangle only."""

    STRUCTURALLY_SYMMETRIC = 2
    """Matrix with symmetric sparsity pattern, but not necessarily values."""

    GENERAL = 3
    """Matrix with no particular structure."""


@dataclass(frozen=True)
class SolverSettings:
    """Settings of the sparse solver.

    Parameters
    ----------
    num_threads : int, optional
        Number of threads the solver may use. If not given, all available CPU
        cores are used.

    refinement_steps : int, default: 2
        Maximum number of iterative refinement steps applied to the solution.
    """

    num_threads: int | None = None
    refinement_steps: int = 2

    def __post_init__(self) -> None:
        """Check the settings are valid."""
        if self.num_threads is not None and self.num_threads < 1:
            raise ConfigurationError(
                f"Number of threads must be positive, but is {self.num_threads}."
            )
        if self.refinement_steps < 0:
            raise ConfigurationError(
                "Number of refinement steps can not be negative, but is"
                f" {self.refinement_steps}."
            )


class SparseMatrix:
    """Square sparse matrix built from individual entries.

    Parameters
    ----------
    num_rows : int
        Number of rows (and columns) of the matrix.

    matrix_type : MatrixType
        Structure of the matrix.

    capacity : int, default: 0
        Number of entries expected to be pushed.
    """

    matrix_type: MatrixType

    def __init__(
        self, num_rows: SupportsIndex, matrix_type: MatrixType, capacity: int = 0
    ) -> None:
        n = operator.index(num_rows)
        if n < 1:
            raise ValueError(f"Matrix must have at least one row, but {n} were given.")
        self._num_rows = n
        self.matrix_type = MatrixType(matrix_type)
        self._rows = np.empty(max(capacity, 1), np.intc)
        self._cols = np.empty(max(capacity, 1), np.intc)
        self._vals = np.empty(max(capacity, 1), np.float64)
        self._count = 0

    @classmethod
    def from_csr3(
        cls,
        values: npt.ArrayLike,
        row_ptrs: npt.ArrayLike,
        col_indices: npt.ArrayLike,
        matrix_type: MatrixType,
    ) -> Self:
        """Create the matrix from compressed sparse row arrays.

        Parameters
        ----------
        values : (K,) array_like
            Values of the entries.

        row_ptrs : (N + 1,) array_like
            Offsets of the first entry of each row, with the last one being the
            total number of entries.

        col_indices : (K,) array_like
            Column indices of the entries.

        matrix_type : MatrixType
            Structure of the matrix.

        Returns
        -------
        Self
            Newly created matrix.
        """
        vals = np.asarray(values, np.float64)
        ptrs = np.asarray(row_ptrs, np.intc)
        cols = np.asarray(col_indices, np.intc)
        if ptrs.ndim != 1 or ptrs.size < 2:
            raise ValueError("Row pointers must be a 1D array with at least 2 entries.")
        if vals.shape != cols.shape or vals.ndim != 1 or ptrs[-1] != vals.size:
            raise ValueError(
                f"Values with shape {vals.shape} and column indices with shape"
                f" {cols.shape} do not match row pointers ending at {ptrs[-1]}."
            )
        if ptrs[0] != 0 or np.any(np.diff(ptrs) < 0):
            raise ValueError("Row pointers must start at zero and not be decreasing.")

        n = ptrs.size - 1
        if np.any((cols < 0) | (cols >= n)):
            raise IndexError(f"Column indices must be in [0, {n}).")

        mat = cls(n, matrix_type, vals.size)
        k = vals.size
        if k:
            mat._rows[:k] = np.repeat(np.arange(n, dtype=np.intc), np.diff(ptrs))
            mat._cols[:k] = cols
            mat._vals[:k] = vals
        mat._count = k
        return mat

    @property
    def num_rows(self) -> int:
        """Number of rows of the matrix."""
        return self._num_rows

    @property
    def nnz(self) -> int:
        """Number of entries pushed so far, including duplicates."""
        return self._count

    def push(self, r: SupportsIndex, c: SupportsIndex, v: float) -> None:
        """Add an entry to the matrix. Entries at the same position are summed."""
        r = operator.index(r)
        c = operator.index(c)
        n = self._num_rows
        if not (0 <= r < n and 0 <= c < n):
            raise IndexError(f"Entry ({r}, {c}) is outside of a ({n}, {n}) matrix.")
        if self._count == self._vals.size:
            new_size = 2 * self._vals.size
            self._rows = np.resize(self._rows, new_size)
            self._cols = np.resize(self._cols, new_size)
            self._vals = np.resize(self._vals, new_size)
        self._rows[self._count] = r
        self._cols[self._count] = c
        self._vals[self._count] = v
        self._count += 1

    def to_scipy(self) -> sp.csr_array:
        """Convert the matrix into a SciPy CSR array, as it is stored."""
        n = self._num_rows
        k = self._count
        mat = sp.csr_array(
            (self._vals[:k], (self._rows[:k], self._cols[:k])), shape=(n, n)
        )
        mat.sum_duplicates()
        mat.sort_indices()
        return mat

    def csr3_arrays(
        self,
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.intc], npt.NDArray[np.intc]]:
        """Return the matrix in compressed sparse row format.

        Returns
        -------
        (K,) array
            Values of the entries.

        (N + 1,) array
            Offsets of the first entry of each row.

        (K,) array
            Column indices of entries.
        """
        mat = self.to_scipy()
        return (
            np.array(mat.data, np.float64),
            np.array(mat.indptr, np.intc),
            np.array(mat.indices, np.intc),
        )


def _check_upper_triangular(mat: sp.csr_array) -> None:
    """Check the matrix has no entries below the diagonal."""
    rows = np.repeat(np.arange(mat.shape[0]), np.diff(mat.indptr))
    bad = np.flatnonzero(rows > mat.indices)
    if bad.size:
        raise SolverError(
            "Symmetric matrix must only have upper triangular entries, but entry"
            f" ({rows[bad[0]]}, {mat.indices[bad[0]]}) is below the diagonal",
            STATUS_INCONSISTENT_INPUT,
        )


def _check_structurally_symmetric(mat: sp.csr_array) -> None:
    """Check the sparsity pattern of the matrix is symmetric."""
    pattern = sp.csr_array(
        (np.ones_like(mat.data), mat.indices, mat.indptr), shape=mat.shape
    )
    if (pattern != pattern.T).nnz:
        raise SolverError(
            "Matrix was declared structurally symmetric, but its sparsity pattern is"
            " not symmetric",
            STATUS_INCONSISTENT_INPUT,
        )


class SparseSolver:
    """Direct solver for sparse linear systems.

    Creating the solver is the initialization step which must be done before any
    solves take place. The solver holds no state between solves, so it may be
    shared between threads.

    Parameters
    ----------
    settings : SolverSettings, optional
        Settings of the solver. If not given, default settings are used.
    """

    settings: SolverSettings
    num_threads: int

    def __init__(self, settings: SolverSettings | None = None) -> None:
        self.settings = settings if settings is not None else SolverSettings()
        if self.settings.num_threads is not None:
            self.num_threads = self.settings.num_threads
        else:
            self.num_threads = os.cpu_count() or 1

    def solve(self, sys: SparseMatrix, rhs: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """Solve the linear system.

        Parameters
        ----------
        sys : SparseMatrix
            Matrix of the system. It must be symmetric or structurally symmetric.

        rhs : (N,) or (N, M) array_like
            Right side of the system. Each column is solved for separately.

        Returns
        -------
        (N,) or (N, M) array
            Solution of the system with the same shape as ``rhs``.
        """
        n = sys.num_rows
        b = np.asarray(rhs, np.float64)
        if b.ndim not in (1, 2) or b.shape[0] != n:
            raise SolverError(
                f"Right side with shape {b.shape} does not match a system with {n}"
                " rows",
                STATUS_SHAPE_MISMATCH,
            )

        mat = sys.to_scipy()
        if sys.matrix_type == MatrixType.SYMMETRIC:
            _check_upper_triangular(mat)
            full = mat + sp.triu(mat, k=1, format="csr").T
        elif sys.matrix_type == MatrixType.STRUCTURALLY_SYMMETRIC:
            _check_structurally_symmetric(mat)
            full = mat
        else:
            raise NotImplementedError(
                "Only (structurally) symmetric systems can be solved."
            )

        full = sp.csc_array(full)
        try:
            decomp = sla.splu(full)
        except RuntimeError as e:
            raise SolverError(f"Factorization failed: {e}", STATUS_ZERO_PIVOT) from e

        columns = b.reshape(n, -1)
        n_cols = columns.shape[1]
        n_workers = min(self.num_threads, n_cols)
        if n_workers <= 1:
            x = self._solve_columns(decomp, full, columns)
        else:
            chunks = np.array_split(np.arange(n_cols), n_workers)
            with ThreadPoolExecutor(max_workers=n_workers) as executor:
                parts = executor.map(
                    lambda idx: self._solve_columns(decomp, full, columns[:, idx]),
                    chunks,
                )
                x = np.concatenate(tuple(parts), axis=1)

        if not np.all(np.isfinite(x)):
            raise SolverError(
                "Solution is not finite, matrix is singular", STATUS_ZERO_PIVOT
            )

        return x.reshape(b.shape)

    def _solve_columns(
        self,
        decomp: sla.SuperLU,
        full: sp.csc_array,
        columns: npt.NDArray[np.float64],
    ) -> npt.NDArray[np.float64]:
        """Solve for columns, then refine the solution iteratively."""
        x = decomp.solve(np.ascontiguousarray(columns))
        for _ in range(self.settings.refinement_steps):
            residual = columns - full @ x
            if not np.any(residual):
                break
            x = x + decomp.solve(residual)
        return x


def solve_sparse(
    sys: SparseMatrix, rhs: npt.ArrayLike, settings: SolverSettings | None = None
) -> npt.NDArray[np.float64]:
    """Solve the sparse system with a newly created :class:`SparseSolver`."""
    return SparseSolver(settings).solve(sys, rhs)


def solve_dense_symmetric(
    ut_matrix: npt.ArrayLike, rhs: npt.ArrayLike
) -> npt.NDArray[np.float64]:
    """Solve a dense symmetric system given by its upper triangle.

    Parameters
    ----------
    ut_matrix : (N, N) array_like
        Matrix of the system. Only entries on and above the diagonal are used.

    rhs : (N,) or (N, M) array_like
        Right side of the system.

    Returns
    -------
    (N,) or (N, M) array
        Solution of the system.
    """
    a = np.asarray(ut_matrix, np.float64)
    b = np.asarray(rhs, np.float64)
    if a.ndim != 2 or a.shape[0] != a.shape[1] or b.shape[:1] != a.shape[:1]:
        raise SolverError(
            f"Matrix with shape {a.shape} and right side with shape {b.shape} do not"
            " form a square system",
            STATUS_SHAPE_MISMATCH,
        )
    try:
        return la.solve(a, b, assume_a="sym", lower=False)
    except la.LinAlgError as e:
        raise SolverError(f"Dense solve failed: {e}", STATUS_ZERO_PIVOT) from e
