"""
Dense linear algebra over NDArrays.

Public API:
    lu, qr, svd, eigh, eigh_range, eig: decompositions returning immutable
        solution objects with memoized derived quantities
    solve, lstsq: linear systems
    inv, det, pinv, rank, cond, norm, matmul: derived quantities

Every function accepts backend='auto' | '<name>' | <Backend>.

Example:
    >>> from pystrided.linalg import svd
    >>> result = svd([[3.0, 0.0], [0.0, 4.0]])
    >>> result.singular_values
    array([4., 3.])
"""

from pystrided.linalg.routines import LinearAlgebraRoutines
from pystrided.linalg.solution import (
    EigenDecomposition,
    LeastSquaresSolution,
    LuDecomposition,
    QrDecomposition,
    SingularValueDecomposition,
    SolveSolution,
    SymmetricEigenDecomposition,
)
from pystrided.linalg.solvers import (
    cond,
    det,
    eig,
    eigh,
    eigh_range,
    inv,
    lstsq,
    lu,
    matmul,
    norm,
    pinv,
    qr,
    rank,
    solve,
    svd,
)

__all__ = [
    # Entry points
    "lu",
    "qr",
    "svd",
    "eigh",
    "eigh_range",
    "eig",
    "solve",
    "lstsq",
    "inv",
    "det",
    "pinv",
    "rank",
    "cond",
    "norm",
    "matmul",
    # Solutions
    "LuDecomposition",
    "QrDecomposition",
    "SingularValueDecomposition",
    "SymmetricEigenDecomposition",
    "EigenDecomposition",
    "SolveSolution",
    "LeastSquaresSolution",
    # Routines
    "LinearAlgebraRoutines",
]
