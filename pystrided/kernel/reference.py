"""
Pure NumPy reference kernel.

Unblocked textbook algorithms for the BLAS products and the LU family
(getrf / getri / gesv). It exists so the array and LU layers work, and can be
cross-checked, without LAPACK. The spectral and orthogonal routines are not
provided: supports() reports them as unavailable and calling them raises
UnsupportedBackendOperationError.
"""

from typing import Any

import numpy as np

from pystrided.array._kinds import ElementKind
from pystrided.core.capabilities import (
    ROUTINE_GEMM,
    ROUTINE_GEMV,
    ROUTINE_GESV,
    ROUTINE_GETRF,
    ROUTINE_GETRI,
)
from pystrided.core.exceptions import UnsupportedBackendOperationError
from pystrided.kernel._common import trans_flag

_SUPPORTED = frozenset({
    ROUTINE_GEMM,
    ROUTINE_GEMV,
    ROUTINE_GETRF,
    ROUTINE_GETRI,
    ROUTINE_GESV,
})


def _op(x: np.ndarray, flag: int) -> np.ndarray:
    if flag == 2:
        return x.conj().T
    return x.T if flag else x


def _dtype(*arrays: np.ndarray) -> np.dtype:
    if any(np.iscomplexobj(x) for x in arrays):
        return np.dtype(np.complex128)
    return np.dtype(np.float64)


def _lu_solve(lu: np.ndarray, ipiv: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Solve A x = b given getrf output (1-based ipiv); b is 2-D and overwritten."""
    n = lu.shape[0]
    for i, p in enumerate(ipiv):
        p -= 1
        if p != i:
            b[[i, p]] = b[[p, i]]
    # L y = P b (unit lower)
    for i in range(n):
        b[i] -= lu[i, :i] @ b[:i]
    # U x = y
    for i in range(n - 1, -1, -1):
        b[i] -= lu[i, i + 1:] @ b[i + 1:]
        b[i] /= lu[i, i]
    return b


class ReferenceKernel:
    """Unblocked NumPy kernel covering gemm, gemv, getrf, getri and gesv."""

    @property
    def name(self) -> str:
        return 'reference'

    def supports(self, routine: str, kind: Any) -> bool:
        return routine in _SUPPORTED and ElementKind.parse(kind).is_floating

    def __repr__(self) -> str:
        return "ReferenceKernel()"

    def _unsupported(self, routine: str) -> UnsupportedBackendOperationError:
        return UnsupportedBackendOperationError(
            f"reference kernel does not implement {routine}",
            backend=self.name,
            routine=routine,
        )

    # ═════════════════════════════════════════════════════════════════════
    # BLAS
    # ═════════════════════════════════════════════════════════════════════

    def gemm(self, transa: str, transb: str, alpha: Any, a: Any, b: Any, beta: Any, c: Any) -> np.ndarray:
        a, b, c = np.asarray(a), np.asarray(b), np.asarray(c)
        op_a = _op(a, trans_flag(transa, 'transa'))
        op_b = _op(b, trans_flag(transb, 'transb'))
        result = alpha * (op_a @ op_b)
        if beta != 0:
            result = result + beta * c
        return result.astype(_dtype(a, b, c), copy=False)

    def gemv(self, trans: str, alpha: Any, a: Any, x: Any, beta: Any, y: Any) -> np.ndarray:
        a, x, y = np.asarray(a), np.asarray(x), np.asarray(y)
        result = alpha * (_op(a, trans_flag(trans)) @ x)
        if beta != 0:
            result = result + beta * y
        return result.astype(_dtype(a, x, y), copy=False)

    # ═════════════════════════════════════════════════════════════════════
    # LU family
    # ═════════════════════════════════════════════════════════════════════

    def getrf(self, a: Any) -> tuple[np.ndarray, np.ndarray, int]:
        """
        LU with partial (row) pivoting, right-looking and unblocked.

        Returns the packed factors, 1-based pivots and info: 0 on success,
        i > 0 if U(i, i) is exactly zero (the factorization is still
        completed).
        """
        lu = np.array(a, dtype=_dtype(np.asarray(a)))
        m, n = lu.shape
        k = min(m, n)
        ipiv = np.zeros(k, dtype=np.int32)
        info = 0
        for j in range(k):
            p = j + int(np.argmax(np.abs(lu[j:, j])))
            ipiv[j] = p + 1
            if lu[p, j] != 0:
                if p != j:
                    lu[[j, p]] = lu[[p, j]]
                lu[j + 1:, j] /= lu[j, j]
            elif info == 0:
                info = j + 1
            lu[j + 1:, j + 1:] -= np.outer(lu[j + 1:, j], lu[j, j + 1:])
        return lu, ipiv, info

    def getri(self, lu: Any, ipiv: Any) -> tuple[np.ndarray, int]:
        lu = np.asarray(lu)
        diag = np.diag(lu)
        zeros = np.flatnonzero(diag == 0)
        if zeros.size:
            return np.array(lu, copy=True), int(zeros[0]) + 1
        n = lu.shape[0]
        identity = np.eye(n, dtype=_dtype(lu))
        return _lu_solve(lu, np.asarray(ipiv), identity), 0

    def gesv(self, a: Any, b: Any) -> tuple[np.ndarray, np.ndarray, np.ndarray, int]:
        lu, ipiv, info = self.getrf(a)
        b = np.asarray(b)
        x = np.array(b, dtype=_dtype(lu, b))
        if info > 0:
            return lu, ipiv, x, info
        columns = x[:, None] if x.ndim == 1 else x
        _lu_solve(lu, ipiv, columns)
        return lu, ipiv, x, 0

    # ═════════════════════════════════════════════════════════════════════
    # Not provided
    # ═════════════════════════════════════════════════════════════════════

    def gelsy(self, a: Any, b: Any, rcond: float) -> Any:
        raise self._unsupported('gelsy')

    def gesvd(self, jobu: str, jobvt: str, a: Any) -> Any:
        raise self._unsupported('gesvd')

    def gesdd(self, jobz: str, a: Any) -> Any:
        raise self._unsupported('gesdd')

    def syev(self, jobz: str, uplo: str, a: Any) -> Any:
        raise self._unsupported('syev')

    def syevr(self, jobz: str, range: str, uplo: str, a: Any, vl: float, vu: float,
              il: int, iu: int, abstol: float) -> Any:
        raise self._unsupported('syevr')

    def geev(self, jobvl: str, jobvr: str, a: Any) -> Any:
        raise self._unsupported('geev')

    def geqrf(self, a: Any) -> Any:
        raise self._unsupported('geqrf')

    def orgqr(self, qr: Any, tau: Any) -> Any:
        raise self._unsupported('orgqr')
