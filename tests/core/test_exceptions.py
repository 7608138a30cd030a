"""
Tests for the pystrided exception hierarchy.

Validates:
    - Inheritance chain (all exceptions catchable via PyStridedError)
    - Builtin bases (ValueError, IndexError, RuntimeError, NotImplementedError)
    - Diagnostic attributes on the structured exceptions
    - Default messages for NumericKernelError
"""

import pytest

from pystrided.core.exceptions import (
    BackendUnavailableError,
    BufferReleasedError,
    IllegalReshapeError,
    IndexOutOfBoundsError,
    NumericalError,
    NumericKernelError,
    PyStridedError,
    ReadOnlyArrayError,
    ShapeMismatchError,
    SingularMatrixError,
    UnsupportedBackendOperationError,
    ValidationError,
)


# ═══════════════════════════════════════════════════════════════════════
# Inheritance hierarchy
# ═══════════════════════════════════════════════════════════════════════


class TestInheritance:
    """Every exception is catchable via PyStridedError."""

    @pytest.mark.parametrize("exc", [
        ValidationError("x"),
        ShapeMismatchError("x"),
        IndexOutOfBoundsError("x"),
        IllegalReshapeError("x"),
        ReadOnlyArrayError("x"),
        BufferReleasedError("x"),
        SingularMatrixError("x"),
        NumericKernelError("getrf", -1),
        UnsupportedBackendOperationError("x"),
        BackendUnavailableError("x"),
    ])
    def test_all_are_pystrided_errors(self, exc):
        assert isinstance(exc, PyStridedError)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            raise ValidationError("bad input")

    def test_structural_errors_are_validation_errors(self):
        assert isinstance(ShapeMismatchError("x"), ValidationError)
        assert isinstance(IllegalReshapeError("x"), ValidationError)
        assert isinstance(IndexOutOfBoundsError("x"), ValidationError)

    def test_index_error_catchable_as_builtin(self):
        with pytest.raises(IndexError):
            raise IndexOutOfBoundsError("out of range", index=5, bound=3)

    def test_kernel_errors_are_numerical(self):
        assert isinstance(SingularMatrixError("x"), NumericalError)
        assert isinstance(NumericKernelError("gesdd", 1), NumericalError)

    def test_unsupported_is_not_implemented(self):
        assert isinstance(UnsupportedBackendOperationError("x"), NotImplementedError)

    def test_unavailable_is_runtime_error(self):
        assert isinstance(BackendUnavailableError("x"), RuntimeError)

    def test_read_only_is_not_validation(self):
        """Writing to a read-only array is not an input-validation failure."""
        assert not isinstance(ReadOnlyArrayError("x"), ValidationError)


# ═══════════════════════════════════════════════════════════════════════
# Diagnostic attributes
# ═══════════════════════════════════════════════════════════════════════


class TestAttributes:
    """Structured exceptions carry their diagnostics."""

    def test_shape_mismatch_attributes(self):
        err = ShapeMismatchError("bad", expected=(2, 2), actual=(2, 3), operation="gemm")
        assert err.expected == (2, 2)
        assert err.actual == (2, 3)
        assert err.operation == "gemm"

    def test_shape_mismatch_defaults(self):
        err = ShapeMismatchError("bad")
        assert err.expected is None
        assert err.actual is None
        assert err.operation is None

    def test_index_out_of_bounds_attributes(self):
        err = IndexOutOfBoundsError("bad", index=7, bound=4, dim=1)
        assert (err.index, err.bound, err.dim) == (7, 4, 1)

    def test_illegal_reshape_attributes(self):
        err = IllegalReshapeError("bad", shape=(3, 4), new_shape=(12,))
        assert err.shape == (3, 4)
        assert err.new_shape == (12,)

    def test_singular_matrix_attributes(self):
        err = SingularMatrixError("singular", pivot_index=3, routine="getrf", code=3)
        assert err.pivot_index == 3
        assert err.routine == "getrf"
        assert err.code == 3
        assert err.matrix_name is None
        assert str(err) == "singular"

    def test_unsupported_attributes(self):
        err = UnsupportedBackendOperationError("no", backend="reference", routine="gesdd")
        assert err.backend == "reference"
        assert err.routine == "gesdd"
        assert err.kind is None

    def test_unavailable_attributes(self):
        err = BackendUnavailableError("no gpu", backend="gpu")
        assert err.backend == "gpu"


# ═══════════════════════════════════════════════════════════════════════
# NumericKernelError messages
# ═══════════════════════════════════════════════════════════════════════


class TestNumericKernelError:
    """Kernel status codes produce actionable default messages."""

    def test_negative_code_names_argument(self):
        err = NumericKernelError("getrf", -4)
        assert err.routine == "getrf"
        assert err.code == -4
        assert "argument 4" in str(err)

    def test_positive_code_message(self):
        err = NumericKernelError("gesdd", 2)
        assert "info=2" in str(err)
        assert str(err).startswith("gesdd")

    def test_explicit_message_wins(self):
        err = NumericKernelError("geev", 1, "QR algorithm failed")
        assert str(err) == "QR algorithm failed"
        assert err.code == 1
