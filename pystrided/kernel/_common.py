"""
Status-code interpretation shared by every kernel consumer.

Kernels return LAPACK ``info`` values untouched; these helpers turn them
into exceptions at the routine boundary. Nothing is ever converted into a
NaN or default value.
"""

from pystrided.core.exceptions import NumericKernelError, SingularMatrixError, ValidationError

TRANS_CHARS = ('n', 't', 'c')


def check_info(routine: str, info: int) -> int:
    """
    Raise NumericKernelError for any nonzero status.

    Used for routines where a positive status means non-convergence
    (gesvd, gesdd, syev, syevr, geev) or cannot occur (geqrf, orgqr, gelsy).
    """
    info = int(info)
    if info != 0:
        raise NumericKernelError(routine, info)
    return info


def check_illegal_argument(routine: str, info: int) -> int:
    """
    Raise only for a negative status; positive values are returned.

    getrf reports an exactly singular U with info > 0 while still producing
    a valid factorization, so the caller decides what to do with it.
    """
    info = int(info)
    if info < 0:
        raise NumericKernelError(routine, info)
    return info


def check_singular(routine: str, info: int, matrix_name: str = 'a') -> int:
    """
    Negative status raises NumericKernelError; positive status raises
    SingularMatrixError carrying the 1-based index of the zero pivot.
    """
    info = check_illegal_argument(routine, info)
    if info > 0:
        raise SingularMatrixError(
            f"{routine}: U({info},{info}) is exactly zero; "
            f"the matrix is singular and cannot be inverted or solved",
            matrix_name=matrix_name,
            pivot_index=info,
            routine=routine,
            code=info,
        )
    return info


def trans_flag(trans: str, name: str = 'trans') -> int:
    """BLAS transpose option: 'n' -> 0, 't' -> 1, 'c' -> 2 (case-insensitive)."""
    if not isinstance(trans, str) or trans.lower() not in TRANS_CHARS:
        raise ValidationError(
            f"{name}: expected one of {TRANS_CHARS} (case-insensitive), got {trans!r}"
        )
    return TRANS_CHARS.index(trans.lower())
