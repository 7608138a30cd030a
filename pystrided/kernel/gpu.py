"""
NumericKernel on a GPU using PyTorch.

Supports CUDA (Linux/Windows) and MPS (macOS Apple Silicon). MPS has no
float64, so DOUBLE data is computed in float32 there and results fall in
the GPU_FP32 tolerance tier.

torch.linalg raises instead of reporting a status code; failures are mapped
back to LAPACK-style ``info`` values so callers interpret every kernel the
same way. getrf's pivots from torch.linalg.lu_factor_ex are already 1-based.

syevr, gelsy and geev have no torch counterpart with the same contract and
are reported as unsupported.
"""

from typing import Any

from pystrided.array._kinds import ElementKind
from pystrided.core.capabilities import (
    ROUTINE_GEMM,
    ROUTINE_GEMV,
    ROUTINE_GEQRF,
    ROUTINE_GESDD,
    ROUTINE_GESV,
    ROUTINE_GESVD,
    ROUTINE_GETRF,
    ROUTINE_GETRI,
    ROUTINE_ORGQR,
    ROUTINE_SYEV,
)
from pystrided.core.exceptions import UnsupportedBackendOperationError
from pystrided.kernel._common import trans_flag

_SUPPORTED = frozenset({
    ROUTINE_GEMM,
    ROUTINE_GEMV,
    ROUTINE_GETRF,
    ROUTINE_GETRI,
    ROUTINE_GESV,
    ROUTINE_GESVD,
    ROUTINE_GESDD,
    ROUTINE_SYEV,
    ROUTINE_GEQRF,
    ROUTINE_ORGQR,
})


class TorchKernel:
    """
    PyTorch kernel bound to one device.

    Args:
        device: torch device string ('cuda', 'cuda:0', 'mps')
    """

    def __init__(self, device: str = 'cuda'):
        import torch

        self.device = torch.device(device)
        self.use_fp64 = self.device.type != 'mps'
        self.dtype = torch.float64 if self.use_fp64 else torch.float32
        self.complex_dtype = torch.complex128 if self.use_fp64 else torch.complex64

    @property
    def name(self) -> str:
        precision = "fp64" if self.use_fp64 else "fp32"
        return f'torch_{precision}'

    def supports(self, routine: str, kind: Any) -> bool:
        if routine not in _SUPPORTED:
            return False
        kind = ElementKind.parse(kind)
        if routine == ROUTINE_SYEV:
            return kind is ElementKind.DOUBLE
        return kind.is_floating

    def __repr__(self) -> str:
        return f"TorchKernel(device={str(self.device)!r})"

    def _unsupported(self, routine: str) -> UnsupportedBackendOperationError:
        return UnsupportedBackendOperationError(
            f"torch kernel does not implement {routine}",
            backend=self.name,
            routine=routine,
        )

    def _tensor(self, x: Any) -> Any:
        """Move `x` to this kernel's device in its working precision."""
        import torch

        if not isinstance(x, torch.Tensor):
            x = torch.as_tensor(x)
        dtype = self.complex_dtype if x.is_complex() else self.dtype
        return x.to(device=self.device, dtype=dtype)

    @staticmethod
    def _op(x: Any, flag: int) -> Any:
        if flag == 2:
            return x.mH
        return x.mT if flag else x

    # ═════════════════════════════════════════════════════════════════════
    # BLAS
    # ═════════════════════════════════════════════════════════════════════

    def gemm(self, transa: str, transb: str, alpha: Any, a: Any, b: Any, beta: Any, c: Any) -> Any:
        a, b, c = self._tensor(a), self._tensor(b), self._tensor(c)
        product = self._op(a, trans_flag(transa, 'transa')) @ self._op(b, trans_flag(transb, 'transb'))
        result = alpha * product
        if beta != 0:
            result = result + beta * c
        return result

    def gemv(self, trans: str, alpha: Any, a: Any, x: Any, beta: Any, y: Any) -> Any:
        a, x, y = self._tensor(a), self._tensor(x), self._tensor(y)
        result = alpha * (self._op(a, trans_flag(trans)) @ x)
        if beta != 0:
            result = result + beta * y
        return result

    # ═════════════════════════════════════════════════════════════════════
    # LU family
    # ═════════════════════════════════════════════════════════════════════

    def getrf(self, a: Any) -> tuple[Any, Any, int]:
        import torch

        lu, pivots, info = torch.linalg.lu_factor_ex(self._tensor(a))
        return lu, pivots.to(torch.int32), int(info.item())

    def getri(self, lu: Any, ipiv: Any) -> tuple[Any, int]:
        import torch

        lu = self._tensor(lu)
        zeros = torch.nonzero(torch.diagonal(lu) == 0)
        if zeros.numel():
            return lu.clone(), int(zeros[0, 0].item()) + 1
        pivots = torch.as_tensor(ipiv, device=self.device).to(torch.int32)
        identity = torch.eye(lu.shape[0], dtype=lu.dtype, device=self.device)
        return torch.linalg.lu_solve(lu, pivots, identity), 0

    def gesv(self, a: Any, b: Any) -> tuple[Any, Any, Any, int]:
        import torch

        lu, pivots, info = self.getrf(a)
        b = self._tensor(b)
        if info > 0:
            return lu, pivots, b.clone(), info
        columns = b.unsqueeze(1) if b.dim() == 1 else b
        x = torch.linalg.lu_solve(lu, pivots, columns)
        return lu, pivots, x.squeeze(1) if b.dim() == 1 else x, 0

    # ═════════════════════════════════════════════════════════════════════
    # SVD and symmetric eigen
    # ═════════════════════════════════════════════════════════════════════

    def _svd(self, jobu: str, jobvt: str, a: Any) -> tuple[Any, Any, Any, int]:
        import torch

        a = self._tensor(a)
        k = min(a.shape)
        jobu, jobvt = jobu.lower(), jobvt.lower()
        empty = a.new_empty((0, 0))
        try:
            if jobu == 'n' and jobvt == 'n':
                return empty, torch.linalg.svdvals(a), empty, 0
            u, s, vt = torch.linalg.svd(a, full_matrices='a' in (jobu, jobvt))
        except torch.linalg.LinAlgError:
            return empty, a.new_empty((0,)), empty, 1
        u = empty if jobu == 'n' else (u[:, :k] if jobu == 's' else u)
        vt = empty if jobvt == 'n' else (vt[:k, :] if jobvt == 's' else vt)
        return u, s, vt, 0

    def gesvd(self, jobu: str, jobvt: str, a: Any) -> tuple[Any, Any, Any, int]:
        return self._svd(jobu, jobvt, a)

    def gesdd(self, jobz: str, a: Any) -> tuple[Any, Any, Any, int]:
        return self._svd(jobz, jobz, a)

    def syev(self, jobz: str, uplo: str, a: Any) -> tuple[Any, Any, int]:
        import torch

        a = self._tensor(a)
        try:
            if jobz.lower() == 'v':
                w, v = torch.linalg.eigh(a, UPLO=uplo.upper())
            else:
                w, v = torch.linalg.eigvalsh(a, UPLO=uplo.upper()), a.new_empty((0, 0))
        except torch.linalg.LinAlgError:
            return a.new_empty((0,)), a.new_empty((0, 0)), 1
        return w, v, 0

    def syevr(self, jobz: str, range: str, uplo: str, a: Any, vl: float, vu: float,
              il: int, iu: int, abstol: float) -> Any:
        raise self._unsupported('syevr')

    def gelsy(self, a: Any, b: Any, rcond: float) -> Any:
        raise self._unsupported('gelsy')

    def geev(self, jobvl: str, jobvr: str, a: Any) -> Any:
        raise self._unsupported('geev')

    # ═════════════════════════════════════════════════════════════════════
    # QR
    # ═════════════════════════════════════════════════════════════════════

    def geqrf(self, a: Any) -> tuple[Any, Any, int]:
        import torch

        qr, tau = torch.geqrf(self._tensor(a))
        return qr, tau, 0

    def orgqr(self, qr: Any, tau: Any) -> tuple[Any, int]:
        import torch

        return torch.linalg.householder_product(self._tensor(qr), self._tensor(tau)), 0
