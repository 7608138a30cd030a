"""
Decomposition solution types.

Each decomposition has a frozen parameter payload (what the kernel computed)
and a user-facing solution that wraps the Result envelope and derives
further quantities on demand. Derived quantities are computed once, on
first access, and cached in Memo cells.

Every array exposed here is read-only: a solution never hands out a
mutable alias to its factors, and never aliases the caller's input (the
entry points copy before factorizing).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from pystrided.array._kinds import ElementKind
from pystrided.array.ndarray import NDArray
from pystrided.core.backends.precision import default_rcond, numerical_rank
from pystrided.core.exceptions import SingularMatrixError, ValidationError
from pystrided.core.memo import Memo
from pystrided.core.result import Result
from pystrided.core.validation import check_square

if TYPE_CHECKING:
    from pystrided.linalg.routines import LinearAlgebraRoutines


def upper_triangle(src: NDArray, rows: int) -> NDArray:
    """rows x n array holding the upper triangle (with diagonal) of `src`'s first rows."""
    n = src.shape[1]
    out = src._allocate((rows, n))
    for i in range(min(rows, n)):
        out.row(i)[i:].assign(src.row(i)[i:])
    return out


def unit_lower_triangle(src: NDArray, cols: int) -> NDArray:
    """m x cols unit lower triangular array from the strict lower part of `src`."""
    m = src.shape[0]
    out = src._allocate((m, cols))
    for i in range(m):
        width = min(i, cols)
        if width:
            out.row(i)[:width].assign(src.row(i)[:width])
        if i < cols:
            out.set(i, i, 1)
    return out


class _SolutionBase:
    """Shared accessors over the Result envelope."""

    def __init__(self, result: Result[Any]):
        self._result = result

    @property
    def result(self) -> Result[Any]:
        return self._result

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings


# ═════════════════════════════════════════════════════════════════════════
# LU
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LuParams:
    """
    Parameter payload for an LU factorization (getrf).

    Attributes:
        lu: Packed factors: U on and above the diagonal, the multipliers of
            the unit lower L below it
        pivots: 1-based row interchanges: row i was swapped with pivots[i]
        status: getrf status (0, or i > 0 when U(i, i) is exactly zero)
    """
    lu: NDArray
    pivots: NDArray
    status: int


class LuDecomposition(_SolutionBase):
    """
    P A = L U for a (possibly rectangular) matrix A.

    Properties that need a square operand (is_non_singular,
    get_determinant, inverse) raise ShapeMismatchError otherwise.
    """

    def __init__(self, result: Result[LuParams], routines: LinearAlgebraRoutines):
        super().__init__(result)
        self._routines = routines
        self._non_singular = Memo(self._compute_non_singular)
        self._determinant = Memo(self._compute_determinant)
        self._inverse = Memo(self._compute_inverse)
        self._upper = Memo(self._compute_upper)
        self._lower = Memo(self._compute_lower)
        self._permutation = Memo(self._compute_permutation)

    @property
    def lu(self) -> NDArray:
        return self._result.params.lu

    @property
    def pivots(self) -> NDArray:
        return self._result.params.pivots

    @property
    def status(self) -> int:
        return self._result.params.status

    @property
    def shape(self) -> tuple[int, ...]:
        return self.lu.shape

    def is_non_singular(self) -> bool:
        """True iff no diagonal entry of U is zero."""
        return self._non_singular.get()

    def get_determinant(self) -> Any:
        """det(A): product of diag(U), negated once per row interchange."""
        return self._determinant.get()

    def inverse(self) -> NDArray:
        """
        A^-1 computed with getri from the stored factors.

        Raises:
            ShapeMismatchError: If A is not square
            SingularMatrixError: If U has a zero on its diagonal
        """
        return self._inverse.get()

    def get_upper(self) -> NDArray:
        """U, shape (min(m, n), n)."""
        return self._upper.get()

    def get_lower(self) -> NDArray:
        """L with unit diagonal, shape (m, min(m, n))."""
        return self._lower.get()

    def get_permutation(self) -> NDArray:
        """Permutation matrix P (m x m) with P @ A = L @ U."""
        return self._permutation.get()

    def _diagonal(self) -> np.ndarray:
        return self.lu.diagonal().to_numpy()

    def _compute_non_singular(self) -> bool:
        check_square(self.lu, 'lu')
        return not bool(np.any(self._diagonal() == 0))

    def _compute_determinant(self) -> Any:
        check_square(self.lu, 'lu')
        pivots = self.pivots.to_numpy()
        swaps = int(np.count_nonzero(pivots != np.arange(1, pivots.shape[0] + 1)))
        det = np.prod(self._diagonal())
        return (-det if swaps % 2 else det).item()

    def _compute_inverse(self) -> NDArray:
        check_square(self.lu, 'lu')
        if not self.is_non_singular():
            pivot = int(np.flatnonzero(self._diagonal() == 0)[0]) + 1
            raise SingularMatrixError(
                f"matrix is singular: U({pivot},{pivot}) is exactly zero",
                matrix_name='a',
                pivot_index=pivot,
                routine='getrf',
                code=self.status,
            )
        inv = self.lu.copy()
        self._routines.getri(inv, self.pivots.copy())
        return inv.as_read_only()

    def _compute_upper(self) -> NDArray:
        m, n = self.lu.shape
        return upper_triangle(self.lu, min(m, n)).as_read_only()

    def _compute_lower(self) -> NDArray:
        m, n = self.lu.shape
        return unit_lower_triangle(self.lu, min(m, n)).as_read_only()

    def _compute_permutation(self) -> NDArray:
        m = self.lu.shape[0]
        order = np.arange(m)
        for i, p in enumerate(self.pivots.to_numpy()):
            order[[i, p - 1]] = order[[p - 1, i]]
        perm = self.lu._allocate((m, m), ElementKind.DOUBLE)
        for i, j in enumerate(order):
            perm.set(i, int(j), 1)
        return perm.as_read_only()

    def __repr__(self) -> str:
        return f"LuDecomposition(shape={self.shape}, status={self.status}, backend={self.backend_name!r})"


# ═════════════════════════════════════════════════════════════════════════
# SVD
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SvdParams:
    """
    Parameter payload for A = U diag(S) Vt.

    Attributes:
        u: Left singular vectors (m x m full, m x k economy), or None when
            only singular values were computed
        s: Singular values, non-negative and non-increasing, length k
        vt: Right singular vectors transposed (n x n full, k x n economy)
        full_matrices: Whether the full factors were computed
    """
    u: NDArray | None
    s: NDArray
    vt: NDArray | None
    full_matrices: bool


class SingularValueDecomposition(_SolutionBase):
    """Singular value decomposition with derived rank and conditioning."""

    def __init__(self, result: Result[SvdParams]):
        super().__init__(result)
        self._diagonal = Memo(self._compute_diagonal)
        self._condition = Memo(self._compute_condition)

    @property
    def u(self) -> NDArray | None:
        return self._result.params.u

    @property
    def s(self) -> NDArray:
        return self._result.params.s

    @property
    def vt(self) -> NDArray | None:
        return self._result.params.vt

    @property
    def singular_values(self) -> np.ndarray:
        return self.s.to_numpy()

    def get_diagonal(self) -> NDArray:
        """diag(S) shaped so that U @ diag(S) @ Vt reconstructs A."""
        return self._diagonal.get()

    def rank(self, tol: float | None = None) -> int:
        """
        Number of singular values above ``tol * s[0]``.

        Args:
            tol: Relative tolerance; defaults to max(m, n) * eps
        """
        if tol is None:
            m, n = self._result.info['shape']
            tol = default_rcond(m, n, self.s.dtype)
        return numerical_rank(self.singular_values, tol)

    def condition_number(self) -> float:
        """s[0] / s[-1] (inf when the smallest singular value is zero)."""
        return self._condition.get()

    def _compute_diagonal(self) -> NDArray:
        if self.u is None or self.vt is None:
            raise ValidationError("singular vectors were not computed")
        rows = self.u.shape[1]
        cols = self.vt.shape[0]
        diag = self.s._allocate((rows, cols))
        for i, value in enumerate(self.singular_values):
            diag.set(i, i, value)
        return diag.as_read_only()

    def _compute_condition(self) -> float:
        s = self.singular_values
        if s.size == 0:
            return float('nan')
        if s[-1] == 0:
            return float('inf')
        return float(s[0] / s[-1])

    def __repr__(self) -> str:
        return (
            f"SingularValueDecomposition(shape={self._result.info['shape']}, "
            f"k={self.s.shape[0]}, backend={self.backend_name!r})"
        )


# ═════════════════════════════════════════════════════════════════════════
# QR
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class QrParams:
    """
    Parameter payload for A = Q R.

    Attributes:
        q: Orthonormal columns (m x k reduced, m x m complete)
        r: Upper triangular (k x n reduced, m x n complete)
        tau: Householder scalars from geqrf
        rank: Numerical rank from |diag(R)|
    """
    q: NDArray
    r: NDArray
    tau: NDArray
    rank: int


class QrDecomposition(_SolutionBase):
    """QR factorization with numerical rank."""

    @property
    def q(self) -> NDArray:
        return self._result.params.q

    @property
    def r(self) -> NDArray:
        return self._result.params.r

    @property
    def tau(self) -> NDArray:
        return self._result.params.tau

    @property
    def rank(self) -> int:
        return self._result.params.rank

    def __repr__(self) -> str:
        return f"QrDecomposition(q={self.q.shape}, r={self.r.shape}, rank={self.rank})"


# ═════════════════════════════════════════════════════════════════════════
# Eigen
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SymmetricEigenParams:
    """
    Parameter payload for a symmetric eigendecomposition (syev / syevr).

    Attributes:
        values: Eigenvalues in ascending order
        vectors: Orthonormal eigenvectors as columns, or None
        count: Number of eigenvalues found (all n for syev)
    """
    values: NDArray
    vectors: NDArray | None
    count: int


class SymmetricEigenDecomposition(_SolutionBase):
    """Eigenvalues (ascending) and optional eigenvectors of a symmetric matrix."""

    @property
    def eigenvalues(self) -> NDArray:
        return self._result.params.values

    @property
    def eigenvectors(self) -> NDArray | None:
        return self._result.params.vectors

    @property
    def count(self) -> int:
        return self._result.params.count

    def __repr__(self) -> str:
        return f"SymmetricEigenDecomposition(count={self.count}, backend={self.backend_name!r})"


@dataclass(frozen=True)
class EigenParams:
    """
    Parameter payload for a general eigendecomposition (geev).

    Attributes:
        real_parts, imaginary_parts: Eigenvalue components
        right_vectors: Right eigenvectors in LAPACK layout, or None
        left_vectors: Left eigenvectors in LAPACK layout, or None

    For real input, a complex pair (j, j+1) is stored as columns
    v[:, j] + i v[:, j+1] and v[:, j] - i v[:, j+1].
    """
    real_parts: NDArray
    imaginary_parts: NDArray
    right_vectors: NDArray | None
    left_vectors: NDArray | None


class EigenDecomposition(_SolutionBase):
    """General (non-symmetric) eigendecomposition."""

    def __init__(self, result: Result[EigenParams]):
        super().__init__(result)
        self._eigenvalues = Memo(self._compute_eigenvalues)
        self._vectors = Memo(self._compute_vectors)

    @property
    def real_parts(self) -> NDArray:
        return self._result.params.real_parts

    @property
    def imaginary_parts(self) -> NDArray:
        return self._result.params.imaginary_parts

    @property
    def right_vectors(self) -> NDArray | None:
        return self._result.params.right_vectors

    @property
    def left_vectors(self) -> NDArray | None:
        return self._result.params.left_vectors

    def eigenvalues(self) -> np.ndarray:
        """Eigenvalues as a complex numpy array."""
        return self._eigenvalues.get()

    def eigenvectors(self) -> np.ndarray | None:
        """Right eigenvectors as complex columns (unpacked from LAPACK layout)."""
        return self._vectors.get()

    def _compute_eigenvalues(self) -> np.ndarray:
        return self.real_parts.to_numpy() + 1j * self.imaginary_parts.to_numpy()

    def _compute_vectors(self) -> np.ndarray | None:
        if self.right_vectors is None:
            return None
        packed = self.right_vectors.to_numpy()
        if np.iscomplexobj(packed):
            return packed
        wi = self.imaginary_parts.to_numpy()
        vectors = packed.astype(np.complex128)
        j = 0
        while j < wi.shape[0]:
            if wi[j] != 0 and j + 1 < wi.shape[0]:
                vectors[:, j] = packed[:, j] + 1j * packed[:, j + 1]
                vectors[:, j + 1] = packed[:, j] - 1j * packed[:, j + 1]
                j += 2
            else:
                j += 1
        return vectors

    def __repr__(self) -> str:
        return f"EigenDecomposition(n={self.real_parts.shape[0]}, backend={self.backend_name!r})"


# ═════════════════════════════════════════════════════════════════════════
# Linear systems
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SolveParams:
    """
    Parameter payload for A X = B (gesv).

    Attributes:
        x: Solution, shaped like B
        lu: LU factors of A
        pivots: 1-based row interchanges
    """
    x: NDArray
    lu: NDArray
    pivots: NDArray


class SolveSolution(_SolutionBase):
    """Solution of a square linear system."""

    @property
    def x(self) -> NDArray:
        return self._result.params.x

    @property
    def lu(self) -> NDArray:
        return self._result.params.lu

    @property
    def pivots(self) -> NDArray:
        return self._result.params.pivots

    def __repr__(self) -> str:
        return f"SolveSolution(x={self.x.shape}, backend={self.backend_name!r})"


@dataclass(frozen=True)
class LeastSquaresParams:
    """
    Parameter payload for min ||A X - B|| (gelsy).

    Attributes:
        x: Minimum-norm solution (n rows)
        rank: Effective rank of A given rcond
        jpvt: Column permutation of the complete orthogonal factorization
        rcond: Tolerance used for the rank decision
    """
    x: NDArray
    rank: int
    jpvt: NDArray
    rcond: float


class LeastSquaresSolution(_SolutionBase):
    """Least-squares solution with the effective rank of A."""

    @property
    def x(self) -> NDArray:
        return self._result.params.x

    @property
    def rank(self) -> int:
        return self._result.params.rank

    @property
    def jpvt(self) -> NDArray:
        return self._result.params.jpvt

    @property
    def rcond(self) -> float:
        return self._result.params.rcond

    @property
    def is_rank_deficient(self) -> bool:
        return self.rank < min(self._result.info['shape'])

    def __repr__(self) -> str:
        return f"LeastSquaresSolution(x={self.x.shape}, rank={self.rank}, backend={self.backend_name!r})"
