"""
Exception hierarchy for pystrided.

All exceptions inherit from PyStridedError to allow catching any
library-specific error. Structural errors (shapes, indices, reshapes) are
ValidationErrors; numeric failures reported by a kernel are NumericalErrors.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
    - Kernel status codes are never converted into sentinel values
"""


class PyStridedError(Exception):
    """Base exception for all pystrided errors."""
    pass


class ValidationError(PyStridedError, ValueError):
    """
    Input validation failed.

    Raised when user-provided arguments fail validation checks, e.g. an
    unknown job character for a LAPACK routine or a non-positive step.
    """
    pass


class ShapeMismatchError(ValidationError):
    """
    Operand shapes are incompatible for the requested operation.

    Also raised when an operation requires a square operand and gets a
    non-square one.

    Attributes:
        expected: Expected shape (or description), if known
        actual: Actual shape, if known
        operation: Name of the operation that failed
    """

    def __init__(
        self,
        message: str,
        expected: tuple[int, ...] | None = None,
        actual: tuple[int, ...] | None = None,
        operation: str | None = None,
    ):
        super().__init__(message)
        self.expected = expected
        self.actual = actual
        self.operation = operation


class IndexOutOfBoundsError(ValidationError, IndexError):
    """
    A multi-index or range lies outside the declared shape.

    Attributes:
        index: The offending index value
        bound: The exclusive upper bound it was checked against
        dim: Dimension being indexed, if applicable
    """

    def __init__(
        self,
        message: str,
        index: int | None = None,
        bound: int | None = None,
        dim: int | None = None,
    ):
        super().__init__(message)
        self.index = index
        self.bound = bound
        self.dim = dim


class IllegalReshapeError(ValidationError):
    """
    Reshape requested on a non-contiguous view without an explicit copy.

    Attributes:
        shape: Shape of the array being reshaped
        new_shape: Requested shape
    """

    def __init__(
        self,
        message: str,
        shape: tuple[int, ...] | None = None,
        new_shape: tuple[int, ...] | None = None,
    ):
        super().__init__(message)
        self.shape = shape
        self.new_shape = new_shape


class ReadOnlyArrayError(PyStridedError):
    """Attempt to write into an array flagged read-only."""
    pass


class BufferReleasedError(PyStridedError):
    """Access to a device buffer after its memory has been released."""
    pass


class NumericalError(PyStridedError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is exactly singular.

    Raised when an inverse or solve is attempted on an operand whose LU
    factor U has a zero on its diagonal.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        pivot_index: 1-based index of the first zero pivot, if known
        routine: Kernel routine that detected the singularity, if any
        code: Kernel status code, if any
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        pivot_index: int | None = None,
        routine: str | None = None,
        code: int | None = None,
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.pivot_index = pivot_index
        self.routine = routine
        self.code = code


class NumericKernelError(NumericalError):
    """
    The underlying numeric kernel returned a nonzero status.

    Negative codes follow the LAPACK convention: argument ``-code`` had an
    illegal value. Positive codes are routine specific (typically a
    failure to converge).

    Attributes:
        routine: Kernel routine name (e.g. 'gesdd')
        code: Status code returned by the kernel
    """

    def __init__(self, routine: str, code: int, message: str | None = None):
        if message is None:
            if code < 0:
                message = f"{routine}: argument {-code} had an illegal value (info={code})"
            else:
                message = f"{routine}: kernel failed with info={code}"
        super().__init__(message)
        self.routine = routine
        self.code = code


class UnsupportedBackendOperationError(PyStridedError, NotImplementedError):
    """
    The selected backend/element-kind combination lacks the requested routine.

    Attributes:
        backend: Backend (or kernel) name
        routine: Requested routine
        kind: Element kind name, if the limitation is kind specific
    """

    def __init__(
        self,
        message: str,
        backend: str | None = None,
        routine: str | None = None,
        kind: str | None = None,
    ):
        super().__init__(message)
        self.backend = backend
        self.routine = routine
        self.kind = kind


class BackendUnavailableError(PyStridedError, RuntimeError):
    """
    A backend was requested explicitly but is not available on this machine.

    Attributes:
        backend: Name of the unavailable backend
    """

    def __init__(self, message: str, backend: str | None = None):
        super().__init__(message)
        self.backend = backend
