"""
Elementwise and BLAS-level routines over NDArrays.

ArrayRoutines is bound to one backend: its NumericKernel for gemm/gemv,
its device, and the configured mixed-operand policy. Elementwise arithmetic
and reductions run on the operands' native arrays (numpy on the host,
torch on a device), so results stay where the inputs live.

Mixed operands:
    Operands not on the backend's device are handled by the policy:
    'fail' raises UnsupportedBackendOperationError; 'copy' transfers them
    (with a warning). There is no silent fallback.
"""

from __future__ import annotations

import math
import warnings
from typing import Any

from pystrided.array._kinds import ElementKind
from pystrided.array.ndarray import NDArray
from pystrided.array.vectors import VectorIterator
from pystrided.core.capabilities import ROUTINE_GEMM, ROUTINE_GEMV
from pystrided.core.exceptions import (
    ShapeMismatchError,
    UnsupportedBackendOperationError,
    ValidationError,
)
from pystrided.core.protocols import NumericKernel
from pystrided.core.validation import check_1d, check_2d, check_same_shape
from pystrided.kernel._common import trans_flag


class ArrayRoutines:
    """
    Routines bound to a kernel and a device.

    Args:
        kernel: NumericKernel used for gemm and gemv
        device: Device the backend's arrays live on ('cpu', 'cuda:0', ...)
        mixed_operand_policy: 'fail' or 'copy'
        backend_name: Name reported in errors
    """

    def __init__(
        self,
        kernel: NumericKernel,
        device: str = 'cpu',
        mixed_operand_policy: str = 'fail',
        backend_name: str | None = None,
    ):
        if mixed_operand_policy not in ('fail', 'copy'):
            raise ValidationError(
                f"mixed_operand_policy: expected 'fail' or 'copy', got {mixed_operand_policy!r}"
            )
        self.kernel = kernel
        self.device = device
        self.mixed_operand_policy = mixed_operand_policy
        self.backend_name = backend_name or kernel.name

    def __repr__(self) -> str:
        return f"ArrayRoutines(kernel={self.kernel.name!r}, device={self.device!r})"

    # ═════════════════════════════════════════════════════════════════════
    # Operand checks
    # ═════════════════════════════════════════════════════════════════════

    def prepare(self, *arrays: NDArray, operation: str = 'operation') -> tuple[NDArray, ...]:
        """
        Apply the mixed-operand policy to `arrays`.

        Returns:
            The operands, each on this routine's device

        Raises:
            UnsupportedBackendOperationError: If an operand is on another
                device and the policy is 'fail'
        """
        foreign = [a.device for a in arrays if a.device != self.device]
        if not foreign:
            return arrays
        if self.mixed_operand_policy == 'fail':
            raise UnsupportedBackendOperationError(
                f"{operation}: operands on {sorted(set(foreign))} cannot be used by the "
                f"'{self.backend_name}' backend on {self.device}; transfer them with "
                f"to_device() or configure mixed_operand_policy='copy'",
                backend=self.backend_name,
                routine=operation,
            )
        warnings.warn(
            f"{operation}: copying operands from {sorted(set(foreign))} to {self.device}",
            RuntimeWarning,
            stacklevel=3,
        )
        return tuple(a if a.device == self.device else a.to_device(self.device) for a in arrays)

    def require_local(self, *arrays: NDArray | None, operation: str = 'operation') -> None:
        """
        Outputs of in-place routines must already live on this device.

        A transferred copy would receive the result instead of the caller's
        array, so the mixed-operand policy does not apply here.
        """
        foreign = sorted({a.device for a in arrays if a is not None and a.device != self.device})
        if foreign:
            raise UnsupportedBackendOperationError(
                f"{operation}: output operands on {foreign} cannot be written by the "
                f"'{self.backend_name}' backend on {self.device}",
                backend=self.backend_name,
                routine=operation,
            )

    def _require(self, routine: str, kind: ElementKind) -> None:
        if not self.kernel.supports(routine, kind):
            raise UnsupportedBackendOperationError(
                f"{routine} is not available for {kind.value} arrays on the "
                f"'{self.backend_name}' backend",
                backend=self.backend_name,
                routine=routine,
                kind=kind.value,
            )

    # ═════════════════════════════════════════════════════════════════════
    # BLAS
    # ═════════════════════════════════════════════════════════════════════

    def gemm(
        self,
        transa: str,
        transb: str,
        alpha: Any,
        a: NDArray,
        b: NDArray,
        beta: Any,
        c: NDArray,
    ) -> NDArray:
        """
        c <- alpha * op(a) @ op(b) + beta * c, in place.

        op(x) is x, x.T or x.conj().T for trans 'n', 't', 'c'.

        Raises:
            ShapeMismatchError: If the operand shapes are incompatible
        """
        a, b = self.prepare(a, b, operation='gemm')
        self.require_local(c, operation='gemm')
        for name, x in (('a', a), ('b', b), ('c', c)):
            check_2d(x, f"gemm {name}")
        ta, tb = trans_flag(transa, 'transa'), trans_flag(transb, 'transb')
        m, k = a.shape if ta == 0 else a.shape[::-1]
        k2, n = b.shape if tb == 0 else b.shape[::-1]
        if k != k2 or c.shape != (m, n):
            raise ShapeMismatchError(
                f"gemm: op(a) is ({m}, {k}), op(b) is ({k2}, {n}), c is {c.shape}",
                expected=(m, n),
                actual=c.shape,
                operation='gemm',
            )
        self._require(ROUTINE_GEMM, c.kind)
        result = self.kernel.gemm(transa, transb, alpha, a.values(), b.values(), beta, c.values())
        c.assign(result)
        return c

    def gemv(
        self,
        trans: str,
        alpha: Any,
        a: NDArray,
        x: NDArray,
        beta: Any,
        y: NDArray,
    ) -> NDArray:
        """y <- alpha * op(a) @ x + beta * y, in place."""
        a, x = self.prepare(a, x, operation='gemv')
        self.require_local(y, operation='gemv')
        check_2d(a, 'gemv a')
        check_1d(x, 'gemv x')
        check_1d(y, 'gemv y')
        m, n = a.shape if trans_flag(trans) == 0 else a.shape[::-1]
        if x.shape != (n,) or y.shape != (m,):
            raise ShapeMismatchError(
                f"gemv: op(a) is ({m}, {n}), x is {x.shape}, y is {y.shape}",
                expected=(m,),
                actual=y.shape,
                operation='gemv',
            )
        self._require(ROUTINE_GEMV, y.kind)
        y.assign(self.kernel.gemv(trans, alpha, a.values(), x.values(), beta, y.values()))
        return y

    def matmul(self, a: NDArray, b: NDArray) -> NDArray | Any:
        """
        Matrix product.

        matrix @ matrix and matrix @ vector go through gemm/gemv; vector @
        vector is the dot product.
        """
        a, b = self.prepare(a, b, operation='matmul')
        if a.ndim == 1 and b.ndim == 1:
            return self.dot(a, b)
        check_2d(a, 'matmul a')
        kind = ElementKind.COMPLEX if ElementKind.COMPLEX in (a.kind, b.kind) else ElementKind.DOUBLE
        if b.ndim == 1:
            y = a._allocate((a.shape[0],), kind)
            return self.gemv('n', 1.0, a, b, 0.0, y)
        check_2d(b, 'matmul b')
        c = a._allocate((a.shape[0], b.shape[1]), kind)
        return self.gemm('n', 'n', 1.0, a, b, 0.0, c)

    def dot(self, x: NDArray, y: NDArray) -> Any:
        """Unconjugated inner product of two vectors."""
        x, y = self.prepare(x, y, operation='dot')
        check_1d(x, 'dot x')
        check_same_shape(x, y, 'dot')
        return (x.values() * y.values()).sum().item()

    def scal(self, alpha: Any, x: NDArray) -> NDArray:
        """x <- alpha * x, in place."""
        self.require_local(x, operation='scal')
        return x.assign(alpha * x.values())

    def axpy(self, alpha: Any, x: NDArray, y: NDArray) -> NDArray:
        """y <- alpha * x + y, in place."""
        (x,) = self.prepare(x, operation='axpy')
        self.require_local(y, operation='axpy')
        check_same_shape(x, y, 'axpy')
        return y.assign(alpha * x.values() + y.values())

    def norm2(self, x: NDArray) -> float:
        """Euclidean (Frobenius for matrices) norm."""
        (x,) = self.prepare(x, operation='norm2')
        values = x.values()
        return math.sqrt(float((abs(values) ** 2).sum().item()))

    # ═════════════════════════════════════════════════════════════════════
    # Elementwise arithmetic
    # ═════════════════════════════════════════════════════════════════════

    def _binary(self, a: NDArray, b: NDArray | Any, operation: str, op: Any) -> NDArray:
        if isinstance(b, NDArray):
            a, b = self.prepare(a, b, operation=operation)
            check_same_shape(a, b, operation)
            other = b.values()
        else:
            (a,) = self.prepare(a, operation=operation)
            other = b
        return NDArray.from_native(op(a.values(), other), like=a)

    def add(self, a: NDArray, b: NDArray | Any) -> NDArray:
        return self._binary(a, b, 'add', lambda x, y: x + y)

    def subtract(self, a: NDArray, b: NDArray | Any) -> NDArray:
        return self._binary(a, b, 'subtract', lambda x, y: x - y)

    def multiply(self, a: NDArray, b: NDArray | Any) -> NDArray:
        return self._binary(a, b, 'multiply', lambda x, y: x * y)

    def divide(self, a: NDArray, b: NDArray | Any) -> NDArray:
        return self._binary(a, b, 'divide', lambda x, y: x / y)

    # ═════════════════════════════════════════════════════════════════════
    # Reductions
    # ═════════════════════════════════════════════════════════════════════

    def _reduce(
        self, a: NDArray, dim: int | None, operation: str, fold: Any, kind: ElementKind, initial: Any = None,
    ) -> Any:
        (a,) = self.prepare(a, operation=operation)
        if dim is None:
            return fold(a)
        return VectorIterator(a, dim).reduce(fold, initial, kind=kind)

    def sum(self, a: NDArray, dim: int | None = None) -> Any:
        """Sum of all elements, or an array of sums along `dim`."""
        kind = a.kind if a.kind.is_numeric else ElementKind.LONG
        return self._reduce(a, dim, 'sum', _sum, kind, initial=0)

    def mean(self, a: NDArray, dim: int | None = None) -> Any:
        kind = ElementKind.COMPLEX if a.kind is ElementKind.COMPLEX else ElementKind.DOUBLE
        return self._reduce(a, dim, 'mean', _mean, kind)

    def min(self, a: NDArray, dim: int | None = None) -> Any:
        return self._reduce(a, dim, 'min', _extreme('min'), a.kind)

    def max(self, a: NDArray, dim: int | None = None) -> Any:
        return self._reduce(a, dim, 'max', _extreme('max'), a.kind)


def _sum(x: NDArray) -> Any:
    return x.values().sum().item()


def _mean(x: NDArray) -> Any:
    if x.size == 0:
        raise ValidationError("mean: array is empty")
    return x.values().sum().item() / x.size


def _extreme(name: str) -> Any:
    def fold(x: NDArray) -> Any:
        if x.size == 0:
            raise ValidationError(f"{name}: array is empty")
        return getattr(x.values(), name)().item()
    return fold
