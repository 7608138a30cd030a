"""
Public decomposition API.

Each function validates and converts its input at the boundary, selects a
backend, runs the decomposition and wraps the Result in its solution type.
Inputs are never modified: the routines factorize copies.

Accepted inputs are NDArrays or anything numpy.asarray accepts. Integer
matrices are converted to DOUBLE; boolean and GENERIC arrays are rejected.
"""

from __future__ import annotations

from typing import Any

from pystrided.array._kinds import ElementKind
from pystrided.array.ndarray import NDArray
from pystrided.core.backends.precision import default_rcond
from pystrided.core.exceptions import ValidationError
from pystrided.core.protocols import Backend
from pystrided.linalg.routines import LinearAlgebraRoutines
from pystrided.linalg.solution import (
    EigenDecomposition,
    LeastSquaresSolution,
    LuDecomposition,
    QrDecomposition,
    SingularValueDecomposition,
    SolveSolution,
    SymmetricEigenDecomposition,
)

BackendChoice = str | Backend


def _get_backend(choice: BackendChoice) -> Backend:
    """
    Resolve a backend choice through the default registry.

    Args:
        choice: 'auto', a registered backend name, or a Backend instance

    Raises:
        BackendUnavailableError: If the named backend is not available
        ValidationError: If no backend is registered under the name
    """
    # Deferred: the backends import the routines in this package
    from pystrided.backends.registry import default_registry
    return default_registry().resolve(choice)


def _routines(choice: BackendChoice) -> tuple[Backend, LinearAlgebraRoutines]:
    backend = _get_backend(choice)
    return backend, backend.linear_algebra_routines()


def _as_array(x: Any, backend: Backend, name: str) -> NDArray:
    """Convert `x` to a floating NDArray, keeping NDArrays on their device."""
    if not isinstance(x, NDArray):
        x = backend.element_factory().array(x)
    if x.kind.is_floating:
        return x
    if not x.kind.is_numeric:
        raise ValidationError(f"{name}: expected numeric data, got {x.kind.value} elements")
    return x.astype(ElementKind.DOUBLE)


# ═════════════════════════════════════════════════════════════════════════
# Decompositions
# ═════════════════════════════════════════════════════════════════════════

def lu(a: Any, *, backend: BackendChoice = 'auto') -> LuDecomposition:
    """
    LU factorization with partial pivoting, P A = L U.

    An exactly singular U does not raise here: the factorization is still
    returned (with a RuntimeWarning), and is_non_singular() reports False.

    Example:
        >>> from pystrided.linalg import lu
        >>> decomposition = lu([[4.0, 3.0], [6.0, 3.0]])
        >>> decomposition.get_determinant()
        -6.0
    """
    impl, routines = _routines(backend)
    a = _as_array(a, impl, 'a')
    return LuDecomposition(routines.lu(a), routines)


def svd(
    a: Any,
    *,
    full_matrices: bool = True,
    driver: str = 'gesdd',
    compute_uv: bool = True,
    backend: BackendChoice = 'auto',
) -> SingularValueDecomposition:
    """
    Singular value decomposition A = U diag(S) Vt.

    Args:
        full_matrices: Full U (m x m) and Vt (n x n); otherwise economy size
        driver: 'gesdd' (divide and conquer, default) or 'gesvd'
        compute_uv: If False, only singular values are computed

    Raises:
        NumericKernelError: If the SVD did not converge
    """
    impl, routines = _routines(backend)
    a = _as_array(a, impl, 'a')
    return SingularValueDecomposition(
        routines.svd(a, full_matrices=full_matrices, driver=driver, compute_uv=compute_uv)
    )


def qr(a: Any, *, mode: str = 'reduced', backend: BackendChoice = 'auto') -> QrDecomposition:
    """QR factorization A = Q R ('reduced' or 'complete')."""
    impl, routines = _routines(backend)
    a = _as_array(a, impl, 'a')
    return QrDecomposition(routines.qr(a, mode=mode))


def eigh(
    a: Any,
    *,
    uplo: str = 'u',
    compute_vectors: bool = True,
    backend: BackendChoice = 'auto',
) -> SymmetricEigenDecomposition:
    """
    Eigenvalues (ascending) and eigenvectors of a real symmetric matrix.

    Only the `uplo` triangle is read; symmetry is not checked.
    """
    impl, routines = _routines(backend)
    a = _as_array(a, impl, 'a')
    return SymmetricEigenDecomposition(
        routines.eigh(a, uplo=uplo, compute_vectors=compute_vectors)
    )


def eigh_range(
    a: Any,
    *,
    by: str = 'index',
    lower: float = 1,
    upper: float | None = None,
    uplo: str = 'u',
    compute_vectors: bool = True,
    abstol: float = 0.0,
    backend: BackendChoice = 'auto',
) -> SymmetricEigenDecomposition:
    """
    Selected eigenpairs of a real symmetric matrix.

    Args:
        by: 'index' for the lower-th..upper-th smallest eigenvalues
            (1-based, inclusive) or 'value' for those in (lower, upper]

    Example:
        >>> result = eigh_range(a, by='index', lower=1, upper=3)
        >>> result.count
        3
    """
    impl, routines = _routines(backend)
    a = _as_array(a, impl, 'a')
    return SymmetricEigenDecomposition(
        routines.eigh_range(
            a, by=by, lower=lower, upper=upper, uplo=uplo,
            compute_vectors=compute_vectors, abstol=abstol,
        )
    )


def eig(
    a: Any,
    *,
    left: bool = False,
    right: bool = True,
    backend: BackendChoice = 'auto',
) -> EigenDecomposition:
    """Eigenvalues and eigenvectors of a general square matrix."""
    impl, routines = _routines(backend)
    a = _as_array(a, impl, 'a')
    return EigenDecomposition(routines.eig(a, left=left, right=right))


# ═════════════════════════════════════════════════════════════════════════
# Linear systems
# ═════════════════════════════════════════════════════════════════════════

def solve(a: Any, b: Any, *, backend: BackendChoice = 'auto') -> SolveSolution:
    """
    Solve A X = B for square A.

    Raises:
        SingularMatrixError: If A is exactly singular
        ShapeMismatchError: If A is not square or B has the wrong row count
    """
    impl, routines = _routines(backend)
    a = _as_array(a, impl, 'a')
    b = _as_array(b, impl, 'b')
    return SolveSolution(routines.solve(a, b))


def lstsq(
    a: Any,
    b: Any,
    *,
    rcond: float | None = None,
    backend: BackendChoice = 'auto',
) -> LeastSquaresSolution:
    """
    Minimum-norm least-squares solution of A X = B.

    Rank-deficient A is handled (the solution is the minimum-norm one)
    and reported with a RuntimeWarning and is_rank_deficient.
    """
    impl, routines = _routines(backend)
    a = _as_array(a, impl, 'a')
    b = _as_array(b, impl, 'b')
    return LeastSquaresSolution(routines.lstsq(a, b, rcond=rcond))


# ═════════════════════════════════════════════════════════════════════════
# Derived quantities
# ═════════════════════════════════════════════════════════════════════════

def inv(a: Any, *, backend: BackendChoice = 'auto') -> NDArray:
    """
    Inverse of a square matrix (getrf + getri).

    Raises:
        SingularMatrixError: If A is exactly singular
    """
    return lu(a, backend=backend).inverse()


def det(a: Any, *, backend: BackendChoice = 'auto') -> Any:
    """Determinant of a square matrix from its LU factorization."""
    return lu(a, backend=backend).get_determinant()


def pinv(a: Any, *, rcond: float | None = None, backend: BackendChoice = 'auto') -> NDArray:
    """
    Moore-Penrose pseudo-inverse V diag(1/S) U^H.

    Singular values at or below rcond * s[0] are treated as zero.
    """
    impl, routines = _routines(backend)
    a = _as_array(a, impl, 'a')
    m, n = a.shape if a.ndim == 2 else (0, 0)
    decomposition = SingularValueDecomposition(routines.svd(a, full_matrices=False))
    s = decomposition.singular_values
    if rcond is None:
        rcond = default_rcond(m, n, a.dtype)
    cutoff = rcond * s[0] if s.size else 0.0

    scaled = decomposition.vt.copy()
    for i, value in enumerate(s):
        routines.scal(1.0 / value if value > cutoff else 0.0, scaled.row(i))

    result = a._allocate((n, m))
    return routines.gemm('c', 'c', 1.0, scaled, decomposition.u, 0.0, result)


def rank(a: Any, *, tol: float | None = None, backend: BackendChoice = 'auto') -> int:
    """
    Numerical rank: singular values above tol * s[0].

    tol defaults to the registry's configured rank tolerance, else
    max(m, n) * eps.
    """
    impl, routines = _routines(backend)
    a = _as_array(a, impl, 'a')
    decomposition = SingularValueDecomposition(routines.svd(a, compute_uv=False))
    return decomposition.rank(tol if tol is not None else routines.rank_rtol)


def cond(a: Any, *, backend: BackendChoice = 'auto') -> float:
    """2-norm condition number s[0] / s[-1]."""
    impl, routines = _routines(backend)
    a = _as_array(a, impl, 'a')
    return SingularValueDecomposition(routines.svd(a, compute_uv=False)).condition_number()


def norm(a: Any, *, backend: BackendChoice = 'auto') -> float:
    """Frobenius norm of a matrix, Euclidean norm of a vector."""
    impl, routines = _routines(backend)
    return routines.norm2(_as_array(a, impl, 'a'))


def matmul(a: Any, b: Any, *, backend: BackendChoice = 'auto') -> NDArray | Any:
    """Matrix product through the backend's gemm/gemv."""
    impl, routines = _routines(backend)
    return routines.matmul(_as_array(a, impl, 'a'), _as_array(b, impl, 'b'))


__all__ = [
    'lu',
    'svd',
    'qr',
    'eigh',
    'eigh_range',
    'eig',
    'solve',
    'lstsq',
    'inv',
    'det',
    'pinv',
    'rank',
    'cond',
    'norm',
    'matmul',
]
