"""
Host backends.

LapackBackend is the default: LAPACK/BLAS through SciPy, every routine,
DOUBLE and COMPLEX arrays. ReferenceBackend runs the unblocked NumPy kernel
and is kept as an always-available baseline for validation; it offers the
BLAS products and the LU family only.
"""

from pystrided.backends._common import KernelBackend
from pystrided.core.config import ArrayConfig
from pystrided.kernel.lapack import LapackKernel
from pystrided.kernel.reference import ReferenceKernel


class LapackBackend(KernelBackend):
    """Host arrays, SciPy LAPACK/BLAS kernel."""

    name = 'lapack'
    priority = 50

    def __init__(self, config: ArrayConfig | None = None):
        super().__init__('cpu', config)

    def _create_kernel(self) -> LapackKernel:
        return LapackKernel()


class ReferenceBackend(KernelBackend):
    """Host arrays, pure NumPy kernel."""

    name = 'reference'
    priority = 10

    def __init__(self, config: ArrayConfig | None = None):
        super().__init__('cpu', config)

    def _create_kernel(self) -> ReferenceKernel:
        return ReferenceKernel()
