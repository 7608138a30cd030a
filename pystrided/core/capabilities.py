"""
Routine name constants for pystrided kernels.

This module is the SINGLE SOURCE OF TRUTH for routine strings used by
NumericKernel.supports(). Import from here, never use raw strings.

Usage:
    from pystrided.core.capabilities import ROUTINE_GETRF

    if kernel.supports(ROUTINE_GETRF, ElementKind.DOUBLE):
        ...
"""

# BLAS-level products
ROUTINE_GEMM = 'gemm'
ROUTINE_GEMV = 'gemv'

# LU factorization, inverse and solve
ROUTINE_GETRF = 'getrf'
ROUTINE_GETRI = 'getri'
ROUTINE_GESV = 'gesv'

# Least squares with complete orthogonal factorization
ROUTINE_GELSY = 'gelsy'

# Singular value decomposition
ROUTINE_GESVD = 'gesvd'
ROUTINE_GESDD = 'gesdd'

# Symmetric eigendecomposition (full spectrum / selected range)
ROUTINE_SYEV = 'syev'
ROUTINE_SYEVR = 'syevr'

# General (non-symmetric) eigendecomposition
ROUTINE_GEEV = 'geev'

# QR factorization and explicit Q
ROUTINE_GEQRF = 'geqrf'
ROUTINE_ORGQR = 'orgqr'

# All routines as a frozenset for validation
ALL_ROUTINES = frozenset({
    ROUTINE_GEMM,
    ROUTINE_GEMV,
    ROUTINE_GETRF,
    ROUTINE_GETRI,
    ROUTINE_GESV,
    ROUTINE_GELSY,
    ROUTINE_GESVD,
    ROUTINE_GESDD,
    ROUTINE_SYEV,
    ROUTINE_SYEVR,
    ROUTINE_GEEV,
    ROUTINE_GEQRF,
    ROUTINE_ORGQR,
})

__all__ = [
    'ROUTINE_GEMM',
    'ROUTINE_GEMV',
    'ROUTINE_GETRF',
    'ROUTINE_GETRI',
    'ROUTINE_GESV',
    'ROUTINE_GELSY',
    'ROUTINE_GESVD',
    'ROUTINE_GESDD',
    'ROUTINE_SYEV',
    'ROUTINE_SYEVR',
    'ROUTINE_GEEV',
    'ROUTINE_GEQRF',
    'ROUTINE_ORGQR',
    'ALL_ROUTINES',
]
