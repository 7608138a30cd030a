"""
Numerical precision constants and utilities.

Provides machine epsilon and the default rank-determination tolerance
used by the decomposition layer.
"""

import numpy as np
from numpy.typing import NDArray
from typing import Any


# Machine epsilon for float64
EPSILON_64: float = np.finfo(np.float64).eps  # ~2.22e-16

# Machine epsilon for float32
EPSILON_32: float = np.finfo(np.float32).eps  # ~1.19e-7


def machine_epsilon(dtype: np.dtype | type = np.float64) -> float:
    """
    Get machine epsilon for a given dtype.

    Complex dtypes report the epsilon of their real component.

    Args:
        dtype: NumPy dtype or type

    Returns:
        Machine epsilon for the dtype
    """
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.complexfloating):
        dtype = np.empty(0, dtype=dtype).real.dtype
    if not np.issubdtype(dtype, np.floating):
        dtype = np.dtype(np.float64)
    return float(np.finfo(dtype).eps)


def default_rcond(m: int, n: int, dtype: np.dtype | type = np.float64) -> float:
    """
    Default relative tolerance for numerical rank decisions.

    Uses the LAPACK/NumPy convention ``max(m, n) * eps``.

    Args:
        m: Number of rows
        n: Number of columns
        dtype: Element dtype

    Returns:
        Relative tolerance
    """
    return max(m, n, 1) * machine_epsilon(dtype)


def numerical_rank(
    values: NDArray[np.floating[Any]],
    rtol: float,
) -> int:
    """
    Count values above ``rtol * max(|values|)``.

    Args:
        values: Singular values or |diag(R)|, any order
        rtol: Relative tolerance

    Returns:
        Numerical rank (0 for an empty or all-zero input)
    """
    values = np.abs(np.asarray(values))
    if values.size == 0:
        return 0
    largest = float(values.max())
    if largest == 0.0:
        return 0
    return int(np.sum(values > rtol * largest))
