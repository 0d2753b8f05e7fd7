"""Index arithmetic for Weak Galerkin finite elements on rectangular meshes.

This file includes re-exports types and functions that are expected to be used
by users, either for directly creating them, or to just use them for type-hinting.
"""

# Cubature
from wgfem.cubature import IntegrationSettings as IntegrationSettings
from wgfem.cubature import cubature as cubature

# Errors
from wgfem.errors import ConfigurationError as ConfigurationError
from wgfem.errors import IndexOutOfRangeError as IndexOutOfRangeError
from wgfem.errors import SolverError as SolverError

# Indices
from wgfem.indices import BasisElNum as BasisElNum
from wgfem.indices import Dim as Dim
from wgfem.indices import FaceMonNum as FaceMonNum
from wgfem.indices import FENum as FENum
from wgfem.indices import MeshCoord as MeshCoord
from wgfem.indices import NBSideNum as NBSideNum
from wgfem.indices import OShape as OShape
from wgfem.indices import SideFace as SideFace

# Linear algebra
from wgfem.linear_algebra import MatrixType as MatrixType
from wgfem.linear_algebra import SolverSettings as SolverSettings
from wgfem.linear_algebra import SparseMatrix as SparseMatrix
from wgfem.linear_algebra import SparseSolver as SparseSolver
from wgfem.linear_algebra import solve_dense_symmetric as solve_dense_symmetric
from wgfem.linear_algebra import solve_sparse as solve_sparse

# Mesh
from wgfem.mesh import INTERIOR as INTERIOR
from wgfem.mesh import Face as Face
from wgfem.mesh import Mesh as Mesh
from wgfem.mesh import NBSideGeom as NBSideGeom
from wgfem.mesh import NBSideInclusions as NBSideInclusions

# Monomials
from wgfem.monomial import MaxMonDeg as MaxMonDeg
from wgfem.monomial import MaxMonFactorDeg as MaxMonFactorDeg
from wgfem.monomial import Mon1d as Mon1d
from wgfem.monomial import Mon2d as Mon2d
from wgfem.monomial import Mon3d as Mon3d
from wgfem.monomial import Monomial as Monomial
from wgfem.monomial import VectorMonomial as VectorMonomial
from wgfem.monomial import monomial_type as monomial_type
from wgfem.polynomial import Polynomial as Polynomial

# Rectangular mesh
from wgfem.rect_mesh import RectMesh as RectMesh

# Basis
from wgfem.weak_gradient import WeakGrad as WeakGrad
from wgfem.weak_gradient import WeakGradSolver as WeakGradSolver
from wgfem.wg_basis import BasisStatistics as BasisStatistics
from wgfem.wg_basis import WgBasis as WgBasis
