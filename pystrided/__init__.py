"""
pystrided: dense N-dimensional strided arrays with LAPACK-backed decompositions.

An NDArray is a (buffer, offset, shape, stride) window onto flat storage.
Views never copy; decompositions copy their input, delegate to a
NumericKernel (SciPy LAPACK/BLAS, pure NumPy, or PyTorch on a GPU) and
return immutable results.

Submodules:
    array: NDArray, views, vectors, factories and elementwise routines
    linalg: LU, QR, SVD, eigen, solve and least squares
    backends: Backend registry and the shipped backends
    kernel: NumericKernel implementations
    core: Exceptions, configuration, result envelope, timing, precision
"""

__version__ = "0.1.0"

from pystrided import array
from pystrided import linalg
from pystrided import backends
from pystrided.array import NDArray, ElementKind, Range
from pystrided.core.config import ArrayConfig

__all__ = [
    "__version__",
    "array",
    "linalg",
    "backends",
    "NDArray",
    "ElementKind",
    "Range",
    "ArrayConfig",
]
