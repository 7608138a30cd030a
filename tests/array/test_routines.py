"""
Tests for elementwise and BLAS-level routines.

Validates:
    - gemm/gemv honour transpose flags and accumulate into the output in place
    - Shape mismatches raise before the kernel runs
    - Elementwise arithmetic and reductions (whole array and along a dimension)
    - Mixed-device operands follow the configured policy
"""

import numpy as np
import pytest

from pystrided.array.routines import ArrayRoutines
from pystrided.core.exceptions import (
    ShapeMismatchError,
    UnsupportedBackendOperationError,
    ValidationError,
)
from pystrided.kernel.lapack import LapackKernel
from pystrided.kernel.reference import ReferenceKernel


@pytest.fixture(params=['lapack', 'reference'])
def routines(request):
    kernel = LapackKernel() if request.param == 'lapack' else ReferenceKernel()
    return ArrayRoutines(kernel)


class _ForeignArray:
    """Stand-in for an operand on another device; only `device` is consulted."""

    def __init__(self, device):
        self.device = device


# ═══════════════════════════════════════════════════════════════════════
# gemm / gemv
# ═══════════════════════════════════════════════════════════════════════


class TestGemm:

    def test_plain_product(self, routines, factory, rng):
        a_np, b_np = rng.standard_normal((3, 4)), rng.standard_normal((4, 2))
        c = factory.zeros((3, 2))
        result = routines.gemm('n', 'n', 1.0, factory.array(a_np), factory.array(b_np), 0.0, c)
        assert result is c
        np.testing.assert_allclose(c.to_numpy(), a_np @ b_np, rtol=1e-12)

    def test_transposed_operands(self, routines, factory, rng):
        a_np, b_np = rng.standard_normal((4, 3)), rng.standard_normal((2, 4))
        c = factory.zeros((3, 2))
        routines.gemm('T', 'T', 2.0, factory.array(a_np), factory.array(b_np), 0.0, c)
        np.testing.assert_allclose(c.to_numpy(), 2.0 * a_np.T @ b_np.T, rtol=1e-12)

    def test_accumulates(self, routines, factory):
        a = factory.eye(2)
        c = factory.ones((2, 2))
        routines.gemm('n', 'n', 1.0, a, a, 3.0, c)
        np.testing.assert_array_equal(c.to_numpy(), [[4, 3], [3, 4]])

    def test_output_is_view(self, routines, factory):
        """gemm writes through a strided view of a larger array."""
        big = factory.zeros((4, 4))
        target = big.get_view(slice(0, 4, 2), slice(1, 3))
        routines.gemm('n', 'n', 1.0, factory.eye(2), factory.ones((2, 2)), 0.0, target)
        np.testing.assert_array_equal(big.to_numpy()[::2, 1:3], np.ones((2, 2)))
        assert big.to_numpy().sum() == 4.0

    def test_conjugate_transpose(self, factory):
        routines = ArrayRoutines(LapackKernel())
        a = factory.array([[1 + 1j, 2], [0, 1j]])
        c = factory.zeros((2, 2), 'complex')
        routines.gemm('c', 'n', 1.0, a, factory.eye(2, kind='complex'), 0.0, c)
        np.testing.assert_allclose(c.to_numpy(), a.to_numpy().conj().T)

    def test_shape_mismatch(self, routines, factory):
        with pytest.raises(ShapeMismatchError, match="gemm"):
            routines.gemm('n', 'n', 1.0, factory.zeros((2, 3)), factory.zeros((2, 3)), 0.0, factory.zeros((2, 3)))

    def test_bad_trans(self, routines, factory):
        a = factory.zeros((2, 2))
        with pytest.raises(ValidationError, match="transa"):
            routines.gemm('x', 'n', 1.0, a, a, 0.0, a.copy())


class TestGemv:

    def test_product(self, routines, factory, rng):
        a_np, x_np = rng.standard_normal((3, 2)), rng.standard_normal(2)
        y = factory.zeros(3)
        routines.gemv('n', 1.0, factory.array(a_np), factory.array(x_np), 0.0, y)
        np.testing.assert_allclose(y.to_numpy(), a_np @ x_np, rtol=1e-12)

    def test_transposed(self, routines, factory, rng):
        a_np, x_np = rng.standard_normal((3, 2)), rng.standard_normal(3)
        y = factory.ones(2)
        routines.gemv('t', 1.0, factory.array(a_np), factory.array(x_np), 1.0, y)
        np.testing.assert_allclose(y.to_numpy(), a_np.T @ x_np + 1.0, rtol=1e-12)

    def test_shape_mismatch(self, routines, factory):
        with pytest.raises(ShapeMismatchError):
            routines.gemv('n', 1.0, factory.zeros((3, 2)), factory.zeros(3), 0.0, factory.zeros(3))


class TestMatmul:

    def test_matrix_matrix(self, routines, factory):
        a = factory.array([[1.0, 2.0], [3.0, 4.0]])
        np.testing.assert_array_equal(routines.matmul(a, a).to_numpy(), [[7, 10], [15, 22]])

    def test_integer_operands_give_double(self, routines, factory):
        a = factory.array([[1, 2], [3, 4]])
        result = routines.matmul(a, a)
        assert result.kind.value == 'double'

    def test_matrix_vector(self, routines, factory):
        a = factory.array([[1.0, 2.0], [3.0, 4.0]])
        assert routines.matmul(a, factory.array([1.0, 1.0])).tolist() == [3.0, 7.0]

    def test_vector_vector_is_dot(self, routines, factory):
        assert routines.matmul(factory.array([1.0, 2.0]), factory.array([3.0, 4.0])) == 11.0


# ═══════════════════════════════════════════════════════════════════════
# Level-1 and elementwise
# ═══════════════════════════════════════════════════════════════════════


class TestLevelOne:

    def test_scal_in_place(self, routines, factory):
        x = factory.array([1.0, 2.0])
        routines.scal(3.0, x)
        assert x.tolist() == [3.0, 6.0]

    def test_scal_row_view(self, routines, factory):
        m = factory.ones((2, 2))
        routines.scal(2.0, m.row(1))
        np.testing.assert_array_equal(m.to_numpy(), [[1, 1], [2, 2]])

    def test_axpy(self, routines, factory):
        y = factory.array([1.0, 1.0])
        routines.axpy(2.0, factory.array([1.0, 2.0]), y)
        assert y.tolist() == [3.0, 5.0]

    def test_axpy_shape_mismatch(self, routines, factory):
        with pytest.raises(ShapeMismatchError):
            routines.axpy(1.0, factory.zeros(2), factory.zeros(3))

    def test_norm2(self, routines, factory):
        assert routines.norm2(factory.array([3.0, 4.0])) == pytest.approx(5.0)
        assert routines.norm2(factory.array([[1.0, 1.0], [1.0, 1.0]])) == pytest.approx(2.0)

    def test_arithmetic_returns_new_arrays(self, routines, factory):
        a = factory.array([1.0, 2.0])
        b = factory.array([4.0, 8.0])
        assert routines.add(a, b).tolist() == [5.0, 10.0]
        assert routines.subtract(b, a).tolist() == [3.0, 6.0]
        assert routines.multiply(a, 2.0).tolist() == [2.0, 4.0]
        assert routines.divide(b, a).tolist() == [4.0, 4.0]
        assert a.tolist() == [1.0, 2.0]

    def test_arithmetic_shape_mismatch(self, routines, factory):
        with pytest.raises(ShapeMismatchError):
            routines.add(factory.zeros(2), factory.zeros(3))


class TestReductions:

    def test_whole_array(self, routines, factory):
        m = factory.array([[1.0, 2.0], [3.0, 4.0]])
        assert routines.sum(m) == 10.0
        assert routines.mean(m) == 2.5
        assert routines.min(m) == 1.0
        assert routines.max(m) == 4.0

    def test_along_dimension(self, routines, factory):
        m = factory.array([[1.0, 2.0], [3.0, 4.0]])
        assert routines.sum(m, 0).tolist() == [4.0, 6.0]
        assert routines.max(m, 1).tolist() == [2.0, 4.0]
        assert routines.mean(m, 1).tolist() == [1.5, 3.5]

    def test_empty_mean(self, routines, factory):
        with pytest.raises(ValidationError, match="empty"):
            routines.mean(factory.zeros(0))

    def test_sum_of_empty_vectors_is_zero(self, routines, factory):
        assert routines.sum(factory.zeros((0, 3)), 0).tolist() == [0.0, 0.0, 0.0]

    def test_max_of_empty_vectors(self, routines, factory):
        with pytest.raises(ValidationError, match="no initial value"):
            routines.max(factory.zeros((0, 3)), 0)


# ═══════════════════════════════════════════════════════════════════════
# Mixed operands
# ═══════════════════════════════════════════════════════════════════════


class TestMixedOperands:

    def test_foreign_operand_fails(self):
        routines = ArrayRoutines(LapackKernel(), mixed_operand_policy='fail')
        with pytest.raises(UnsupportedBackendOperationError, match="mixed_operand_policy"):
            routines.prepare(_ForeignArray('cuda:0'), operation='gemm')

    def test_foreign_output_always_fails(self):
        routines = ArrayRoutines(LapackKernel(), mixed_operand_policy='copy')
        with pytest.raises(UnsupportedBackendOperationError, match="output"):
            routines.require_local(_ForeignArray('cuda:0'), None, operation='scal')

    def test_local_operands_pass(self, factory):
        routines = ArrayRoutines(LapackKernel())
        a = factory.zeros(2)
        assert routines.prepare(a) == (a,)
        routines.require_local(a, None)

    def test_unknown_policy(self):
        with pytest.raises(ValidationError, match="mixed_operand_policy"):
            ArrayRoutines(LapackKernel(), mixed_operand_policy='ignore')
