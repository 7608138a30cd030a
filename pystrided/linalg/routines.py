"""
LAPACK-style routines over NDArrays.

LinearAlgebraRoutines extends ArrayRoutines (gemm, gemv, ...) with two
layers:

    In-place routines (getrf, gesv, gesdd, syevr, ...) follow LAPACK's
    calling contract: the caller supplies every output array, and the
    routine overwrites them. Job and range characters are validated
    case-insensitively before the kernel runs. Status codes are interpreted
    here: getrf returns a positive status to the caller; getri and gesv raise
    SingularMatrixError; any other nonzero status raises NumericKernelError.

    Decompositions (lu, svd, qr, eigh, eigh_range, eig, solve, lstsq) copy
    their inputs, allocate workspaces on the operand's device, call the
    in-place routines and return a Result envelope with a timing breakdown
    and read-only factors.

Contents of output arrays after a routine raises are undefined.
"""

from __future__ import annotations

import warnings
from typing import Any

import numpy as np

from pystrided.array._kinds import ElementKind
from pystrided.array.ndarray import NDArray
from pystrided.array.routines import ArrayRoutines
from pystrided.core.backends.precision import default_rcond, machine_epsilon
from pystrided.core.capabilities import (
    ROUTINE_GEEV,
    ROUTINE_GELSY,
    ROUTINE_GEQRF,
    ROUTINE_GESDD,
    ROUTINE_GESV,
    ROUTINE_GESVD,
    ROUTINE_GETRF,
    ROUTINE_GETRI,
    ROUTINE_ORGQR,
    ROUTINE_SYEV,
    ROUTINE_SYEVR,
)
from pystrided.core.compute.timing import Timer
from pystrided.core.exceptions import ShapeMismatchError, ValidationError
from pystrided.core.result import Result
from pystrided.core.validation import (
    check_2d,
    check_choice,
    check_min_length,
    check_ndim,
    check_non_negative,
    check_shape,
    check_square,
)
from pystrided.kernel._common import check_illegal_argument, check_info, check_singular
from pystrided.linalg.solution import (
    EigenParams,
    LeastSquaresParams,
    LuParams,
    QrParams,
    SolveParams,
    SvdParams,
    SymmetricEigenParams,
    upper_triangle,
)

_SVD_JOBS = ('a', 's', 'n')
_EIGEN_JOBS = ('n', 'v')
_UPLO = ('u', 'l')
_RANGES = ('a', 'v', 'i')
_INDEX_KINDS = (ElementKind.INT, ElementKind.LONG)


def _check_index_array(array: NDArray, min_length: int, name: str) -> None:
    check_min_length(array, min_length, name)
    if array.kind not in _INDEX_KINDS:
        raise ValidationError(
            f"{name}: expected an INT or LONG array, got {array.kind.value}"
        )


def _check_rhs(b: NDArray, rows: int, name: str) -> None:
    if b.ndim not in (1, 2) or b.shape[0] != rows:
        raise ShapeMismatchError(
            f"{name}: expected {rows} rows (1-D or 2-D), got shape {b.shape}",
            expected=(rows,),
            actual=b.shape,
            operation=name,
        )


def _solution_kind(a: NDArray, b: NDArray) -> ElementKind:
    if ElementKind.COMPLEX in (a.kind, b.kind):
        return ElementKind.COMPLEX
    return ElementKind.DOUBLE


def _writable(*arrays: NDArray | None) -> None:
    for array in arrays:
        if array is not None:
            array._check_writable()


class LinearAlgebraRoutines(ArrayRoutines):
    """
    Decomposition routines bound to a kernel and a device.

    Args:
        kernel: NumericKernel providing the LAPACK routines
        device: Device the backend's arrays live on
        mixed_operand_policy: 'fail' or 'copy'
        backend_name: Name reported in results and errors
        rank_rtol: Relative tolerance for rank decisions (None: max(m, n) * eps)
    """

    def __init__(
        self,
        kernel: Any,
        device: str = 'cpu',
        mixed_operand_policy: str = 'fail',
        backend_name: str | None = None,
        rank_rtol: float | None = None,
    ):
        super().__init__(kernel, device, mixed_operand_policy, backend_name)
        self.rank_rtol = rank_rtol

    def __repr__(self) -> str:
        return f"LinearAlgebraRoutines(kernel={self.kernel.name!r}, device={self.device!r})"

    def _timer(self) -> Timer:
        return Timer(sync_device=None if self.device == 'cpu' else self.device)

    # ═════════════════════════════════════════════════════════════════════
    # In-place routines: LU, inverse, solve
    # ═════════════════════════════════════════════════════════════════════

    def getrf(self, a: NDArray, ipiv: NDArray) -> int:
        """
        LU-factorize `a` (m x n) in place with partial pivoting.

        On return `a` holds L (unit diagonal, not stored) and U, and
        ipiv[:min(m, n)] holds the 1-based row interchanges.

        Returns:
            0, or i > 0 when U(i, i) is exactly zero (the factorization is
            complete but U is singular)
        """
        self.require_local(a, ipiv, operation='getrf')
        check_2d(a, 'getrf a')
        k = min(a.shape)
        _check_index_array(ipiv, k, 'getrf ipiv')
        _writable(a, ipiv)
        self._require(ROUTINE_GETRF, a.kind)
        if k == 0:
            return 0

        lu, pivots, info = self.kernel.getrf(a.values())
        info = check_illegal_argument(ROUTINE_GETRF, info)
        a.assign(lu)
        ipiv[:k].assign(pivots)
        return info

    def getri(self, a: NDArray, ipiv: NDArray) -> None:
        """
        Overwrite the LU factors in `a` with the inverse of the original matrix.

        Raises:
            SingularMatrixError: If U has an exactly zero diagonal entry
        """
        (ipiv,) = self.prepare(ipiv, operation='getri')
        self.require_local(a, operation='getri')
        n = check_square(a, 'getri a')
        _check_index_array(ipiv, n, 'getri ipiv')
        _writable(a)
        self._require(ROUTINE_GETRI, a.kind)
        if n == 0:
            return

        inverse, info = self.kernel.getri(a.values(), ipiv[:n].values())
        check_singular(ROUTINE_GETRI, info)
        a.assign(inverse)

    def gesv(self, a: NDArray, ipiv: NDArray, b: NDArray) -> None:
        """
        Solve A X = B in place.

        On return `a` holds the LU factors, ipiv[:n] the pivots and `b` the
        solution X.

        Raises:
            SingularMatrixError: If A is exactly singular; `a` and `ipiv`
                still hold the factorization
        """
        self.require_local(a, ipiv, b, operation='gesv')
        n = check_square(a, 'gesv a')
        _check_index_array(ipiv, n, 'gesv ipiv')
        _check_rhs(b, n, 'gesv b')
        _writable(a, ipiv, b)
        self._require(ROUTINE_GESV, a.kind)
        if n == 0:
            return

        lu, pivots, x, info = self.kernel.gesv(a.values(), b.values())
        info = check_illegal_argument(ROUTINE_GESV, info)
        a.assign(lu)
        ipiv[:n].assign(pivots)
        check_singular(ROUTINE_GESV, info)
        b.assign(x)

    # ═════════════════════════════════════════════════════════════════════
    # In-place routines: least squares
    # ═════════════════════════════════════════════════════════════════════

    def gelsy(self, a: NDArray, b: NDArray, jpvt: NDArray, rcond: float) -> int:
        """
        Minimum-norm least-squares solution of A X = B (a is m x n).

        `b` must have max(m, n) rows: its first m rows hold B on entry and
        its first n rows hold X on return. jpvt[:n] receives the column
        permutation of the complete orthogonal factorization.

        Returns:
            The effective rank of A given rcond
        """
        (a,) = self.prepare(a, operation='gelsy')
        self.require_local(b, jpvt, operation='gelsy')
        check_2d(a, 'gelsy a')
        m, n = a.shape
        _check_rhs(b, max(m, n), 'gelsy b')
        _check_index_array(jpvt, n, 'gelsy jpvt')
        check_non_negative(rcond, 'rcond')
        _writable(b, jpvt)
        self._require(ROUTINE_GELSY, a.kind)
        if min(m, n) == 0:
            # X = 0 is the minimum-norm solution when A has no rows or columns
            if n:
                b[:n].assign(0)
                jpvt[:n].assign(np.arange(1, n + 1))
            return 0

        x, permutation, rank, info = self.kernel.gelsy(a.values(), b[:m].values(), rcond)
        check_info(ROUTINE_GELSY, info)
        b[:n].assign(x)
        jpvt[:n].assign(permutation)
        return rank

    # ═════════════════════════════════════════════════════════════════════
    # In-place routines: SVD
    # ═════════════════════════════════════════════════════════════════════

    @staticmethod
    def _check_singular_vectors(
        job: str, target: NDArray | None, full: tuple[int, int], economy: tuple[int, int], name: str,
    ) -> None:
        if job == 'n':
            return
        if target is None:
            raise ValidationError(f"{name}: required when its job is {job!r}")
        check_shape(target, full if job == 'a' else economy, name)

    def _svd_into(
        self,
        routine: str,
        jobu: str,
        jobvt: str,
        a: NDArray,
        s: NDArray,
        u: NDArray | None,
        vt: NDArray | None,
    ) -> None:
        (a,) = self.prepare(a, operation=routine)
        self.require_local(s, u, vt, operation=routine)
        check_2d(a, f'{routine} a')
        m, n = a.shape
        k = min(m, n)
        check_min_length(s, k, f'{routine} s')
        self._check_singular_vectors(jobu, u, (m, m), (m, k), f'{routine} u')
        self._check_singular_vectors(jobvt, vt, (n, n), (k, n), f'{routine} vt')
        _writable(s, u if jobu != 'n' else None, vt if jobvt != 'n' else None)
        self._require(routine, a.kind)
        if k == 0:
            if jobu == 'a':
                u.assign(np.eye(m))
            if jobvt == 'a':
                vt.assign(np.eye(n))
            return

        if routine == ROUTINE_GESDD:
            u_out, s_out, vt_out, info = self.kernel.gesdd(jobu, a.values())
        else:
            u_out, s_out, vt_out, info = self.kernel.gesvd(jobu, jobvt, a.values())
        check_info(routine, info)
        s[:k].assign(s_out)
        if jobu != 'n':
            u.assign(u_out)
        if jobvt != 'n':
            vt.assign(vt_out)

    def gesvd(
        self,
        jobu: str,
        jobvt: str,
        a: NDArray,
        s: NDArray,
        u: NDArray | None = None,
        vt: NDArray | None = None,
    ) -> None:
        """
        Singular value decomposition A = U diag(S) Vt (QR iteration driver).

        Args:
            jobu, jobvt: 'A' (full), 'S' (first min(m, n)) or 'N' (none)
            a: m x n input (not modified)
            s: Receives the min(m, n) singular values in descending order
            u: m x m ('A') or m x min(m, n) ('S'); ignored for 'N'
            vt: n x n ('A') or min(m, n) x n ('S'); ignored for 'N'

        Raises:
            ValidationError: On an unknown job character
            NumericKernelError: If the iteration did not converge
        """
        jobu = check_choice(jobu, _SVD_JOBS, 'jobu')
        jobvt = check_choice(jobvt, _SVD_JOBS, 'jobvt')
        self._svd_into(ROUTINE_GESVD, jobu, jobvt, a, s, u, vt)

    def gesdd(
        self,
        jobz: str,
        a: NDArray,
        s: NDArray,
        u: NDArray | None = None,
        vt: NDArray | None = None,
    ) -> None:
        """Divide-and-conquer SVD; `jobz` applies to both U and Vt."""
        jobz = check_choice(jobz, _SVD_JOBS, 'jobz')
        self._svd_into(ROUTINE_GESDD, jobz, jobz, a, s, u, vt)

    # ═════════════════════════════════════════════════════════════════════
    # In-place routines: eigen
    # ═════════════════════════════════════════════════════════════════════

    def syev(self, jobz: str, uplo: str, a: NDArray, w: NDArray) -> None:
        """
        Eigenvalues (ascending) of a real symmetric matrix.

        Only the `uplo` triangle of `a` is read. With jobz 'V', `a` is
        overwritten with the orthonormal eigenvectors (as columns).
        """
        jobz = check_choice(jobz, _EIGEN_JOBS, 'jobz')
        uplo = check_choice(uplo, _UPLO, 'uplo')
        self.require_local(a, w, operation='syev')
        n = check_square(a, 'syev a')
        check_min_length(w, n, 'syev w')
        _writable(w, a if jobz == 'v' else None)
        self._require(ROUTINE_SYEV, a.kind)

        values, vectors, info = self.kernel.syev(jobz, uplo, a.values())
        check_info(ROUTINE_SYEV, info)
        w[:n].assign(values)
        if jobz == 'v':
            a.assign(vectors)

    def syevr(
        self,
        jobz: str,
        range: str,
        uplo: str,
        a: NDArray,
        vl: float,
        vu: float,
        il: int,
        iu: int,
        abstol: float,
        w: NDArray,
        z: NDArray | None = None,
        isuppz: NDArray | None = None,
    ) -> int:
        """
        Selected eigenvalues of a real symmetric matrix (MRRR driver).

        Args:
            jobz: 'N' values only, 'V' values and vectors
            range: 'A' all, 'V' those in (vl, vu], 'I' the il-th through
                iu-th (1-based, ascending)
            uplo: Triangle of `a` to read
            a: n x n symmetric input (not modified)
            abstol: Absolute tolerance for the eigenvalues (0 selects the
                LAPACK default)
            w: Receives the eigenvalues in w[:m]
            z: n x ncols, receives the eigenvectors in z[:, :m] ('V' only)
            isuppz: Optional; receives the support of the eigenvectors

        Returns:
            m, the number of eigenvalues found
        """
        jobz = check_choice(jobz, _EIGEN_JOBS, 'jobz')
        range_ = check_choice(range, _RANGES, 'range')
        uplo = check_choice(uplo, _UPLO, 'uplo')
        (a,) = self.prepare(a, operation='syevr')
        self.require_local(w, z, isuppz, operation='syevr')
        n = check_square(a, 'syevr a')
        check_min_length(w, n, 'syevr w')
        check_non_negative(abstol, 'abstol')

        if range_ == 'i':
            if n and not 1 <= il <= iu <= n:
                raise ValidationError(
                    f"syevr: index range requires 1 <= il <= iu <= {n}, got il={il}, iu={iu}"
                )
            wanted = max(iu - il + 1, 0) if n else 0
        elif range_ == 'v':
            if not vl < vu:
                raise ValidationError(f"syevr: value range requires vl < vu, got ({vl}, {vu})")
            wanted = n
        else:
            wanted = n

        if jobz == 'v':
            if z is None:
                raise ValidationError("syevr z: required when jobz is 'v'")
            check_ndim(z, 2, 'syevr z')
            if z.shape[0] != n or z.shape[1] < wanted:
                raise ShapeMismatchError(
                    f"syevr z: expected ({n}, >={wanted}), got {z.shape}",
                    expected=(n, wanted),
                    actual=z.shape,
                    operation='syevr',
                )
        if isuppz is not None:
            _check_index_array(isuppz, 2 * max(1, wanted), 'syevr isuppz')
        _writable(w, z if jobz == 'v' else None, isuppz)
        self._require(ROUTINE_SYEVR, a.kind)
        if n == 0:
            return 0

        values, vectors, m, support, info = self.kernel.syevr(
            jobz, range_, uplo, a.values(), vl, vu, il, iu, abstol,
        )
        check_info(ROUTINE_SYEVR, info)
        w[:m].assign(values[:m])
        if jobz == 'v' and m:
            z[:, :m].assign(vectors[:, :m])
        if isuppz is not None:
            count = min(isuppz.shape[0], support.shape[0], 2 * m)
            isuppz[:count].assign(support[:count])
        return m

    def geev(
        self,
        jobvl: str,
        jobvr: str,
        a: NDArray,
        wr: NDArray,
        wi: NDArray,
        vl: NDArray | None = None,
        vr: NDArray | None = None,
    ) -> None:
        """
        Eigenvalues and optionally left/right eigenvectors of a general matrix.

        wr and wi receive the real and imaginary parts of the eigenvalues.
        For a real matrix, the vectors of a complex pair (j, j+1) are stored
        as the real and imaginary parts in columns j and j+1.
        """
        jobvl = check_choice(jobvl, _EIGEN_JOBS, 'jobvl')
        jobvr = check_choice(jobvr, _EIGEN_JOBS, 'jobvr')
        (a,) = self.prepare(a, operation='geev')
        self.require_local(wr, wi, vl, vr, operation='geev')
        n = check_square(a, 'geev a')
        check_min_length(wr, n, 'geev wr')
        check_min_length(wi, n, 'geev wi')
        for job, target, name in ((jobvl, vl, 'geev vl'), (jobvr, vr, 'geev vr')):
            if job == 'v':
                if target is None:
                    raise ValidationError(f"{name}: required when its job is 'v'")
                check_shape(target, (n, n), name)
        _writable(wr, wi, vl if jobvl == 'v' else None, vr if jobvr == 'v' else None)
        self._require(ROUTINE_GEEV, a.kind)
        if n == 0:
            return

        real, imag, left, right, info = self.kernel.geev(jobvl, jobvr, a.values())
        check_info(ROUTINE_GEEV, info)
        wr[:n].assign(real)
        wi[:n].assign(imag)
        if jobvl == 'v':
            vl.assign(left)
        if jobvr == 'v':
            vr.assign(right)

    # ═════════════════════════════════════════════════════════════════════
    # In-place routines: QR
    # ═════════════════════════════════════════════════════════════════════

    def geqrf(self, a: NDArray, tau: NDArray) -> None:
        """
        Householder QR of `a` in place.

        R ends up on and above the diagonal, the Householder vectors below
        it, and tau[:min(m, n)] receives their scalars.
        """
        self.require_local(a, tau, operation='geqrf')
        check_2d(a, 'geqrf a')
        k = min(a.shape)
        check_min_length(tau, k, 'geqrf tau')
        _writable(a, tau)
        self._require(ROUTINE_GEQRF, a.kind)

        qr, scalars, info = self.kernel.geqrf(a.values())
        check_info(ROUTINE_GEQRF, info)
        a.assign(qr)
        tau[:k].assign(scalars)

    def orgqr(self, a: NDArray, tau: NDArray) -> None:
        """
        Overwrite Householder vectors (m x n, m >= n) with the explicit Q columns.

        Uses the first len(tau) reflectors; len(tau) must not exceed n.
        """
        (tau,) = self.prepare(tau, operation='orgqr')
        self.require_local(a, operation='orgqr')
        check_2d(a, 'orgqr a')
        check_ndim(tau, 1, 'orgqr tau')
        m, n = a.shape
        if m < n or tau.shape[0] > n:
            raise ShapeMismatchError(
                f"orgqr: requires m >= n >= len(tau), got a {a.shape} and tau {tau.shape}",
                actual=a.shape,
                operation='orgqr',
            )
        _writable(a)
        self._require(ROUTINE_ORGQR, a.kind)

        q, info = self.kernel.orgqr(a.values(), tau.values())
        check_info(ROUTINE_ORGQR, info)
        a.assign(q)

    # ═════════════════════════════════════════════════════════════════════
    # Decompositions
    # ═════════════════════════════════════════════════════════════════════

    def _result(self, params: Any, info: dict[str, Any], timer: Timer, notes: list[str]) -> Result[Any]:
        timer.stop()
        for note in notes:
            warnings.warn(note, RuntimeWarning, stacklevel=3)
        return Result(
            params=params,
            info={**info, 'kernel': self.kernel.name},
            timing=timer.result(),
            backend_name=self.backend_name,
            warnings=tuple(notes),
        )

    def lu(self, a: NDArray) -> Result[LuParams]:
        """LU factorization P A = L U of a copy of `a`."""
        (a,) = self.prepare(a, operation='lu')
        check_2d(a, 'lu a')
        timer = self._timer()
        timer.start()

        with timer.section('copy'):
            factors = a.copy()
            pivots = a._allocate((min(a.shape),), ElementKind.INT)

        with timer.section('getrf'):
            status = self.getrf(factors, pivots)

        notes = []
        if status > 0:
            notes.append(f"U({status},{status}) is exactly zero; the factor U is singular")

        params = LuParams(lu=factors.as_read_only(), pivots=pivots.as_read_only(), status=status)
        info = {'routine': ROUTINE_GETRF, 'status': status, 'shape': a.shape}
        return self._result(params, info, timer, notes)

    def svd(
        self,
        a: NDArray,
        full_matrices: bool = True,
        driver: str = 'gesdd',
        compute_uv: bool = True,
    ) -> Result[SvdParams]:
        """
        Singular value decomposition of `a`.

        Args:
            full_matrices: U is m x m and Vt is n x n; otherwise economy size
            driver: 'gesdd' (divide and conquer) or 'gesvd' (QR iteration)
            compute_uv: If False, only singular values are computed
        """
        driver = check_choice(driver, (ROUTINE_GESDD, ROUTINE_GESVD), 'driver')
        (a,) = self.prepare(a, operation='svd')
        check_2d(a, 'svd a')
        m, n = a.shape
        k = min(m, n)
        job = ('a' if full_matrices else 's') if compute_uv else 'n'
        timer = self._timer()
        timer.start()

        with timer.section('allocate'):
            s = a._allocate((k,), ElementKind.DOUBLE)
            u = vt = None
            if compute_uv:
                u = a._allocate((m, m) if full_matrices else (m, k))
                vt = a._allocate((n, n) if full_matrices else (k, n))

        with timer.section(driver):
            if driver == ROUTINE_GESDD:
                self.gesdd(job, a, s, u, vt)
            else:
                self.gesvd(job, job, a, s, u, vt)

        params = SvdParams(
            u=None if u is None else u.as_read_only(),
            s=s.as_read_only(),
            vt=None if vt is None else vt.as_read_only(),
            full_matrices=full_matrices,
        )
        info = {'routine': driver, 'job': job, 'shape': a.shape}
        return self._result(params, info, timer, [])

    def qr(self, a: NDArray, mode: str = 'reduced') -> Result[QrParams]:
        """
        QR factorization A = Q R.

        Args:
            mode: 'reduced' (Q m x k, R k x n) or 'complete' (Q m x m, R m x n)
        """
        mode = check_choice(mode, ('reduced', 'complete'), 'mode')
        (a,) = self.prepare(a, operation='qr')
        check_2d(a, 'qr a')
        m, n = a.shape
        k = min(m, n)
        timer = self._timer()
        timer.start()

        with timer.section('copy'):
            factors = a.copy()
            tau = a._allocate((k,))

        with timer.section(ROUTINE_GEQRF):
            self.geqrf(factors, tau)

        with timer.section(ROUTINE_ORGQR):
            q_cols = m if mode == 'complete' else k
            q = a._allocate((m, q_cols))
            shared = min(q_cols, n)
            if shared:
                q[:, :shared].assign(factors[:, :shared])
            self.orgqr(q, tau)

        r = upper_triangle(factors, m if mode == 'complete' else k)

        # Rank from |diag(R)| relative to its first entry
        diag_r = np.abs(r.diagonal().to_numpy())
        if diag_r.size and diag_r[0] > 0:
            rtol = self.rank_rtol if self.rank_rtol is not None else max(m, n) * machine_epsilon(a.dtype)
            rank = int(np.sum(diag_r > rtol * diag_r[0]))
        else:
            rank = 0

        notes = []
        if rank < k:
            notes.append(f"matrix is rank-deficient: rank={rank} < min(m, n)={k}")

        params = QrParams(q=q.as_read_only(), r=r.as_read_only(), tau=tau.as_read_only(), rank=rank)
        info = {'routine': ROUTINE_GEQRF, 'mode': mode, 'rank': rank, 'shape': a.shape}
        return self._result(params, info, timer, notes)

    def eigh(self, a: NDArray, uplo: str = 'u', compute_vectors: bool = True) -> Result[SymmetricEigenParams]:
        """Full eigendecomposition of a symmetric matrix (syev)."""
        (a,) = self.prepare(a, operation='eigh')
        n = check_square(a, 'eigh a')
        jobz = 'v' if compute_vectors else 'n'
        timer = self._timer()
        timer.start()

        with timer.section('copy'):
            vectors = a.copy()
            w = a._allocate((n,))

        with timer.section(ROUTINE_SYEV):
            self.syev(jobz, uplo, vectors, w)

        params = SymmetricEigenParams(
            values=w.as_read_only(),
            vectors=vectors.as_read_only() if compute_vectors else None,
            count=n,
        )
        info = {'routine': ROUTINE_SYEV, 'uplo': uplo.lower(), 'shape': a.shape}
        return self._result(params, info, timer, [])

    def eigh_range(
        self,
        a: NDArray,
        by: str = 'index',
        lower: float = 1,
        upper: float | None = None,
        uplo: str = 'u',
        compute_vectors: bool = True,
        abstol: float = 0.0,
    ) -> Result[SymmetricEigenParams]:
        """
        Selected eigenpairs of a symmetric matrix (syevr).

        Args:
            by: 'index' selects the lower-th through upper-th eigenvalues
                (1-based, inclusive); 'value' selects those in (lower, upper]
            lower, upper: Bounds of the selection; upper defaults to n for
                'index'
        """
        by = check_choice(by, ('index', 'value'), 'by')
        (a,) = self.prepare(a, operation='eigh_range')
        n = check_square(a, 'eigh_range a')
        jobz = 'v' if compute_vectors else 'n'
        if by == 'index':
            il, iu = int(lower), int(n if upper is None else upper)
            vl = vu = 0.0
            range_ = 'i'
        else:
            if upper is None:
                raise ValidationError("eigh_range: upper is required when by='value'")
            vl, vu = float(lower), float(upper)
            il = iu = 0
            range_ = 'v'
        timer = self._timer()
        timer.start()

        with timer.section('allocate'):
            w = a._allocate((n,))
            z = a._allocate((n, n)) if compute_vectors else None
            isuppz = a._allocate((2 * max(1, n),), ElementKind.INT)

        with timer.section(ROUTINE_SYEVR):
            m = self.syevr(jobz, range_, uplo, a, vl, vu, il, iu, abstol, w, z, isuppz)

        params = SymmetricEigenParams(
            values=w[:m].as_read_only(),
            vectors=z[:, :m].as_read_only() if z is not None else None,
            count=m,
        )
        info = {'routine': ROUTINE_SYEVR, 'range': range_, 'count': m, 'shape': a.shape}
        return self._result(params, info, timer, [])

    def eig(self, a: NDArray, left: bool = False, right: bool = True) -> Result[EigenParams]:
        """General eigendecomposition (geev)."""
        (a,) = self.prepare(a, operation='eig')
        n = check_square(a, 'eig a')
        timer = self._timer()
        timer.start()

        with timer.section('allocate'):
            wr = a._allocate((n,), ElementKind.DOUBLE)
            wi = a._allocate((n,), ElementKind.DOUBLE)
            vector_kind = ElementKind.COMPLEX if a.kind is ElementKind.COMPLEX else ElementKind.DOUBLE
            vl = a._allocate((n, n), vector_kind) if left else None
            vr = a._allocate((n, n), vector_kind) if right else None

        with timer.section(ROUTINE_GEEV):
            self.geev('v' if left else 'n', 'v' if right else 'n', a, wr, wi, vl, vr)

        params = EigenParams(
            real_parts=wr.as_read_only(),
            imaginary_parts=wi.as_read_only(),
            right_vectors=None if vr is None else vr.as_read_only(),
            left_vectors=None if vl is None else vl.as_read_only(),
        )
        info = {'routine': ROUTINE_GEEV, 'shape': a.shape}
        return self._result(params, info, timer, [])

    def solve(self, a: NDArray, b: NDArray) -> Result[SolveParams]:
        """Solve the square system A X = B (gesv) without touching a or b."""
        a, b = self.prepare(a, b, operation='solve')
        n = check_square(a, 'solve a')
        _check_rhs(b, n, 'solve b')
        timer = self._timer()
        timer.start()

        with timer.section('copy'):
            kind = _solution_kind(a, b)
            factors = a.astype(kind)
            x = b.astype(kind)
            pivots = a._allocate((n,), ElementKind.INT)

        with timer.section(ROUTINE_GESV):
            self.gesv(factors, pivots, x)

        params = SolveParams(
            x=x.as_read_only(),
            lu=factors.as_read_only(),
            pivots=pivots.as_read_only(),
        )
        info = {'routine': ROUTINE_GESV, 'shape': a.shape}
        return self._result(params, info, timer, [])

    def lstsq(self, a: NDArray, b: NDArray, rcond: float | None = None) -> Result[LeastSquaresParams]:
        """
        Minimum-norm least-squares solution (gelsy).

        Args:
            rcond: Relative tolerance for the effective rank; defaults to the
                configured rank tolerance, else max(m, n) * eps
        """
        a, b = self.prepare(a, b, operation='lstsq')
        check_2d(a, 'lstsq a')
        m, n = a.shape
        _check_rhs(b, m, 'lstsq b')
        if rcond is None:
            rcond = self.rank_rtol if self.rank_rtol is not None else default_rcond(m, n, a.dtype)
        timer = self._timer()
        timer.start()

        with timer.section('copy'):
            rows = max(m, n)
            work = a._allocate((rows,) + b.shape[1:], _solution_kind(a, b))
            work[:m].assign(b)
            jpvt = a._allocate((n,), ElementKind.INT)

        with timer.section(ROUTINE_GELSY):
            rank = self.gelsy(a, work, jpvt, rcond)

        notes = []
        if rank < min(m, n):
            notes.append(f"matrix is rank-deficient: rank={rank} < min(m, n)={min(m, n)}")

        params = LeastSquaresParams(
            x=work[:n].as_read_only(),
            rank=rank,
            jpvt=jpvt.as_read_only(),
            rcond=float(rcond),
        )
        info = {'routine': ROUTINE_GELSY, 'rank': rank, 'shape': a.shape}
        return self._result(params, info, timer, notes)
