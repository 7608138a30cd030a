"""
NumericKernel over LAPACK/BLAS via scipy.linalg.lapack and scipy.linalg.blas.

The routine prefix (d/z) is chosen from the operand dtype with
get_lapack_funcs / get_blas_funcs, exactly like scipy.linalg does
internally. Inputs are never overwritten (overwrite_* flags stay off).

Pivot conventions: SciPy's getrf/gesv/getri wrappers use 0-based pivots;
this kernel exposes LAPACK's 1-based convention and converts at the call.
"""

from typing import Any

import numpy as np
from scipy.linalg.blas import get_blas_funcs
from scipy.linalg.lapack import _compute_lwork, get_lapack_funcs

from pystrided.array._kinds import ElementKind
from pystrided.core.capabilities import (
    ALL_ROUTINES,
    ROUTINE_SYEV,
    ROUTINE_SYEVR,
)
from pystrided.core.exceptions import ShapeMismatchError
from pystrided.kernel._common import check_info, trans_flag

_REAL_ONLY = frozenset({ROUTINE_SYEV, ROUTINE_SYEVR})


def _as_float(a: Any) -> np.ndarray:
    """`a` as float64 or complex128, copied only when the dtype differs."""
    a = np.asarray(a)
    if np.issubdtype(a.dtype, np.complexfloating):
        return a.astype(np.complex128, copy=False)
    return a.astype(np.float64, copy=False)


def _op(x: np.ndarray, flag: int) -> np.ndarray:
    if flag == 2:
        return x.conj().T
    return x.T if flag else x


def _as_columns(b: np.ndarray) -> tuple[np.ndarray, bool]:
    if b.ndim == 1:
        return b[:, None], True
    return b, False


def _svd_flags(job: str) -> tuple[int, int]:
    """(compute_uv, full_matrices) for a LAPACK job character."""
    return {'a': (1, 1), 's': (1, 0), 'n': (0, 0)}[job]


class LapackKernel:
    """
    LAPACK/BLAS kernel for DOUBLE and COMPLEX arrays.

    syev and syevr are provided for real symmetric (DOUBLE) matrices only.
    """

    @property
    def name(self) -> str:
        return 'lapack'

    def supports(self, routine: str, kind: Any) -> bool:
        if routine not in ALL_ROUTINES:
            return False
        kind = ElementKind.parse(kind)
        if routine in _REAL_ONLY:
            return kind is ElementKind.DOUBLE
        return kind.is_floating

    def __repr__(self) -> str:
        return "LapackKernel()"

    # ═════════════════════════════════════════════════════════════════════
    # BLAS
    # ═════════════════════════════════════════════════════════════════════

    def gemm(self, transa: str, transb: str, alpha: Any, a: Any, b: Any, beta: Any, c: Any) -> np.ndarray:
        a, b, c = _as_float(a), _as_float(b), _as_float(c)
        ta, tb = trans_flag(transa, 'transa'), trans_flag(transb, 'transb')
        if min(a.size, b.size, c.size) == 0:
            # BLAS wrappers reject zero-sized operands
            return alpha * (_op(a, ta) @ _op(b, tb)) + beta * c
        fn = get_blas_funcs('gemm', (a, b, c))
        return fn(alpha, a, b, beta=beta, c=c, trans_a=ta, trans_b=tb)

    def gemv(self, trans: str, alpha: Any, a: Any, x: Any, beta: Any, y: Any) -> np.ndarray:
        a, x, y = _as_float(a), _as_float(x), _as_float(y)
        fn = get_blas_funcs('gemv', (a, x, y))
        return fn(alpha, a, x, beta=beta, y=y, trans=trans_flag(trans))

    # ═════════════════════════════════════════════════════════════════════
    # LU, inverse, solve
    # ═════════════════════════════════════════════════════════════════════

    def getrf(self, a: Any) -> tuple[np.ndarray, np.ndarray, int]:
        a = _as_float(a)
        getrf, = get_lapack_funcs(('getrf',), (a,))
        lu, piv, info = getrf(a)
        return lu, piv.astype(np.int32) + 1, int(info)

    def getri(self, lu: Any, ipiv: Any) -> tuple[np.ndarray, int]:
        lu = _as_float(lu)
        getri, getri_lwork = get_lapack_funcs(('getri', 'getri_lwork'), (lu,))
        lwork = _compute_lwork(getri_lwork, lu.shape[0])
        inv, info = getri(lu, np.asarray(ipiv, dtype=np.int32) - 1, lwork=lwork)
        return inv, int(info)

    def gesv(self, a: Any, b: Any) -> tuple[np.ndarray, np.ndarray, np.ndarray, int]:
        a = _as_float(a)
        b, was_vector = _as_columns(_as_float(b))
        gesv, = get_lapack_funcs(('gesv',), (a, b))
        lu, piv, x, info = gesv(a, b)
        if was_vector:
            x = x[:, 0]
        return lu, piv.astype(np.int32) + 1, x, int(info)

    # ═════════════════════════════════════════════════════════════════════
    # Least squares
    # ═════════════════════════════════════════════════════════════════════

    def gelsy(self, a: Any, b: Any, rcond: float) -> tuple[np.ndarray, np.ndarray, int, int]:
        a = _as_float(a)
        b, was_vector = _as_columns(_as_float(b))
        m, n = a.shape
        if b.shape[0] != m:
            raise ShapeMismatchError(
                f"gelsy: b has {b.shape[0]} rows, a has {m}",
                expected=(m,),
                actual=(b.shape[0],),
                operation='gelsy',
            )
        nrhs = b.shape[1]
        if m < n:
            padded = np.zeros((n, nrhs), dtype=np.result_type(a, b))
            padded[:m] = b
            b = padded
        gelsy, gelsy_lwork = get_lapack_funcs(('gelsy', 'gelsy_lwork'), (a, b))
        lwork = _compute_lwork(gelsy_lwork, m, n, nrhs, rcond)
        jptv = np.zeros((n, 1), dtype=np.int32)
        _, x, jpvt, rank, info = gelsy(a, b, jptv, rcond, lwork, False, False)
        x = x[:n]
        if was_vector:
            x = x[:, 0]
        return x, np.asarray(jpvt).ravel().astype(np.int32), int(rank), int(info)

    # ═════════════════════════════════════════════════════════════════════
    # SVD
    # ═════════════════════════════════════════════════════════════════════

    def _svd(self, driver: str, jobu: str, jobvt: str, a: Any) -> tuple[np.ndarray, np.ndarray, np.ndarray, int]:
        a = _as_float(a)
        m, n = a.shape
        k = min(m, n)
        # LAPACK wrappers take one job for both factors; compute the wider
        # one and narrow or drop the other.
        jobu, jobvt = jobu.lower(), jobvt.lower()
        jobs = {jobu, jobvt}
        job = 'a' if 'a' in jobs else ('s' if 's' in jobs else 'n')
        compute_uv, full_matrices = _svd_flags(job)
        fn, fn_lwork = get_lapack_funcs((driver, f'{driver}_lwork'), (a,))
        lwork = _compute_lwork(fn_lwork, m, n, compute_uv=compute_uv, full_matrices=full_matrices)
        u, s, vt, info = fn(a, compute_uv=compute_uv, full_matrices=full_matrices, lwork=lwork)
        empty = np.empty((0, 0), dtype=a.dtype)
        if jobu == 'n':
            u = empty
        elif jobu == 's' and job == 'a':
            u = u[:, :k]
        if jobvt == 'n':
            vt = empty
        elif jobvt == 's' and job == 'a':
            vt = vt[:k, :]
        return u, s, vt, int(info)

    def gesvd(self, jobu: str, jobvt: str, a: Any) -> tuple[np.ndarray, np.ndarray, np.ndarray, int]:
        return self._svd('gesvd', jobu, jobvt, a)

    def gesdd(self, jobz: str, a: Any) -> tuple[np.ndarray, np.ndarray, np.ndarray, int]:
        return self._svd('gesdd', jobz, jobz, a)

    # ═════════════════════════════════════════════════════════════════════
    # Eigen
    # ═════════════════════════════════════════════════════════════════════

    def syev(self, jobz: str, uplo: str, a: Any) -> tuple[np.ndarray, np.ndarray, int]:
        a = _as_float(a)
        syev, = get_lapack_funcs(('syev',), (a,))
        w, v, info = syev(a, compute_v=int(jobz.lower() == 'v'), lower=int(uplo.lower() == 'l'))
        return w, v, int(info)

    def syevr(
        self,
        jobz: str,
        range: str,
        uplo: str,
        a: Any,
        vl: float,
        vu: float,
        il: int,
        iu: int,
        abstol: float,
    ) -> tuple[np.ndarray, np.ndarray, int, np.ndarray, int]:
        a = _as_float(a)
        n = a.shape[0]
        syevr, = get_lapack_funcs(('syevr',), (a,))
        kwargs: dict[str, Any] = {
            'compute_v': int(jobz.lower() == 'v'),
            'range': range.upper(),
            'lower': int(uplo.lower() == 'l'),
            'abstol': abstol,
        }
        if range.lower() == 'v':
            kwargs.update(vl=vl, vu=vu)
        elif range.lower() == 'i':
            kwargs.update(il=il, iu=iu)
        else:
            kwargs.update(il=1, iu=max(n, 1))
        w, z, m, isuppz, info = syevr(a, **kwargs)
        return w, z, int(m), isuppz, int(info)

    def geev(self, jobvl: str, jobvr: str, a: Any) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, int]:
        a = _as_float(a)
        geev, = get_lapack_funcs(('geev',), (a,))
        flags = {'compute_vl': int(jobvl.lower() == 'v'), 'compute_vr': int(jobvr.lower() == 'v')}
        if np.iscomplexobj(a):
            w, vl, vr, info = geev(a, **flags)
            wr, wi = w.real.copy(), w.imag.copy()
        else:
            wr, wi, vl, vr, info = geev(a, **flags)
        return wr, wi, vl, vr, int(info)

    # ═════════════════════════════════════════════════════════════════════
    # QR
    # ═════════════════════════════════════════════════════════════════════

    def geqrf(self, a: Any) -> tuple[np.ndarray, np.ndarray, int]:
        a = _as_float(a)
        geqrf, = get_lapack_funcs(('geqrf',), (a,))
        qr, tau, work, info = geqrf(a, lwork=-1)
        check_info('geqrf', info)
        qr, tau, _, info = geqrf(a, lwork=max(int(np.real(work[0])), 1))
        return qr, tau, int(info)

    def orgqr(self, qr: Any, tau: Any) -> tuple[np.ndarray, int]:
        qr = _as_float(qr)
        tau = _as_float(tau)
        name = 'ungqr' if np.iscomplexobj(qr) else 'orgqr'
        orgqr, = get_lapack_funcs((name,), (qr,))
        q, work, info = orgqr(qr, tau, lwork=-1)
        check_info(name, info)
        q, _, info = orgqr(qr, tau, lwork=max(int(np.real(work[0])), 1))
        return q, int(info)
