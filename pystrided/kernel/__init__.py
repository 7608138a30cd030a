"""
NumericKernel implementations.

Every foreign numeric call in pystrided lives behind one of these kernels:

    LapackKernel: LAPACK/BLAS through scipy.linalg (full routine set)
    ReferenceKernel: unblocked NumPy (BLAS products and the LU family)
    TorchKernel: PyTorch on CUDA/MPS (imported lazily; needs torch)

Kernels return raw LAPACK status codes. The helpers in
pystrided.kernel._common convert them to exceptions at the routine layer.
"""

from pystrided.kernel.lapack import LapackKernel
from pystrided.kernel.reference import ReferenceKernel

__all__ = [
    "LapackKernel",
    "ReferenceKernel",
]
