"""
Core infrastructure for pystrided.

Shared abstractions used by the array, kernel, backend and linalg layers.

Key components:
    protocols: NumericKernel, Backend protocols
    result: Generic Result[P] envelope
    memo: Compute-once cell for derived quantities
    exceptions: Exception hierarchy
    validation: Input validators
    config: Immutable ArrayConfig
    capabilities: Routine name constants
    backends: Hardware detection and precision constants
    compute: Timing and tolerance tiers
"""

from pystrided.core.protocols import NumericKernel, Backend
from pystrided.core.result import Result
from pystrided.core.memo import Memo
from pystrided.core.config import ArrayConfig
from pystrided.core.exceptions import (
    PyStridedError,
    ValidationError,
    ShapeMismatchError,
    IndexOutOfBoundsError,
    IllegalReshapeError,
    ReadOnlyArrayError,
    BufferReleasedError,
    NumericalError,
    SingularMatrixError,
    NumericKernelError,
    UnsupportedBackendOperationError,
    BackendUnavailableError,
)

__all__ = [
    # Protocols
    "NumericKernel",
    "Backend",
    # Result
    "Result",
    "Memo",
    # Configuration
    "ArrayConfig",
    # Exceptions
    "PyStridedError",
    "ValidationError",
    "ShapeMismatchError",
    "IndexOutOfBoundsError",
    "IllegalReshapeError",
    "ReadOnlyArrayError",
    "BufferReleasedError",
    "NumericalError",
    "SingularMatrixError",
    "NumericKernelError",
    "UnsupportedBackendOperationError",
    "BackendUnavailableError",
]
