"""
Backends: where arrays live and which kernel computes on them.

Available backends:
    ReferenceBackend ('reference', priority 10): pure NumPy kernel
    LapackBackend ('lapack', priority 50): SciPy LAPACK/BLAS
    TorchBackend ('gpu', priority 100): PyTorch on CUDA/MPS, when detected

BackendRegistry resolves 'auto' to the highest-priority available backend
and pins it; default_registry() is the process-wide instance.
"""

from pystrided.backends.cpu import LapackBackend, ReferenceBackend
from pystrided.backends.gpu import TorchBackend
from pystrided.backends.registry import (
    BackendRegistry,
    default_registry,
    set_default_registry,
)

__all__ = [
    "LapackBackend",
    "ReferenceBackend",
    "TorchBackend",
    "BackendRegistry",
    "default_registry",
    "set_default_registry",
]
