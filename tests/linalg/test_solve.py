"""
Tests for square solves and least squares.

Validates:
    - solve against reference solution, factors and pivots
    - Singular systems raise SingularMatrixError
    - lstsq for overdetermined, underdetermined and rank-deficient systems
    - Inputs are not modified
"""

import numpy as np
import pytest

from pystrided.core.exceptions import ShapeMismatchError, SingularMatrixError
from pystrided.linalg import LeastSquaresSolution, SolveSolution, lstsq, matmul, norm, solve


# ═══════════════════════════════════════════════════════════════════════
# Square systems
# ═══════════════════════════════════════════════════════════════════════


class TestSolve:

    def test_reference_system(self, gesv_system):
        a, b, x, pivots, lu = gesv_system
        result = solve(a, b)
        assert isinstance(result, SolveSolution)
        np.testing.assert_allclose(result.x.to_numpy(), x, atol=0.01)
        np.testing.assert_allclose(result.lu.to_numpy(), lu, atol=0.01)
        np.testing.assert_array_equal(result.pivots.to_numpy(), pivots)

    def test_vector_rhs(self, gesv_system):
        a, b, *_ = gesv_system
        result = solve(a, b[:, 0])
        assert result.x.shape == (5,)
        np.testing.assert_allclose(a @ result.x.to_numpy(), b[:, 0], atol=1e-12)

    def test_inputs_not_modified(self, factory, gesv_system):
        a_np, b_np, *_ = gesv_system
        a, b = factory.array(a_np), factory.array(b_np)
        solve(a, b)
        np.testing.assert_array_equal(a.to_numpy(), a_np)
        np.testing.assert_array_equal(b.to_numpy(), b_np)

    def test_singular(self):
        with pytest.raises(SingularMatrixError) as info:
            solve([[1.0, 2.0], [2.0, 4.0]], [1.0, 1.0])
        assert info.value.routine == 'gesv'

    def test_row_mismatch(self):
        with pytest.raises(ShapeMismatchError, match="rows"):
            solve(np.eye(3), np.ones(2))

    def test_not_square(self):
        with pytest.raises(ShapeMismatchError, match="square"):
            solve(np.ones((3, 2)), np.ones(3))


# ═══════════════════════════════════════════════════════════════════════
# Least squares
# ═══════════════════════════════════════════════════════════════════════


class TestLstsq:

    def test_overdetermined(self, rng):
        a = rng.standard_normal((20, 3))
        b = rng.standard_normal(20)
        result = lstsq(a, b)
        assert isinstance(result, LeastSquaresSolution)
        expected, *_ = np.linalg.lstsq(a, b, rcond=None)
        np.testing.assert_allclose(result.x.to_numpy(), expected, rtol=1e-10)
        assert result.rank == 3
        assert not result.is_rank_deficient

    def test_multiple_rhs(self, rng):
        a = rng.standard_normal((8, 3))
        b = rng.standard_normal((8, 2))
        result = lstsq(a, b)
        assert result.x.shape == (3, 2)
        expected, *_ = np.linalg.lstsq(a, b, rcond=None)
        np.testing.assert_allclose(result.x.to_numpy(), expected, rtol=1e-10)

    def test_underdetermined_minimum_norm(self):
        result = lstsq([[1.0, 1.0, 0.0], [0.0, 1.0, 1.0]], [1.0, 1.0])
        expected = np.linalg.pinv(np.array([[1.0, 1.0, 0.0], [0.0, 1.0, 1.0]])) @ [1.0, 1.0]
        np.testing.assert_allclose(result.x.to_numpy(), expected, atol=1e-12)

    def test_rank_deficient(self, rng):
        x = rng.standard_normal((10, 2))
        a = np.column_stack([x, 2.0 * x[:, 0]])
        b = rng.standard_normal(10)
        with pytest.warns(RuntimeWarning, match="rank-deficient"):
            result = lstsq(a, b)
        assert result.rank == 2
        assert result.is_rank_deficient
        np.testing.assert_allclose(result.x.to_numpy(), np.linalg.pinv(a) @ b, atol=1e-10)

    def test_explicit_rcond(self):
        a = np.diag([1.0, 1e-6])
        with pytest.warns(RuntimeWarning):
            result = lstsq(a, [1.0, 1.0], rcond=1e-3)
        assert result.rank == 1
        assert result.rcond == 1e-3

    def test_no_columns(self):
        result = lstsq(np.zeros((3, 0)), np.ones(3))
        assert result.x.shape == (0,)
        assert result.rank == 0

    def test_no_rows_gives_zero_solution(self):
        result = lstsq(np.zeros((0, 2)), np.zeros(0))
        np.testing.assert_array_equal(result.x.to_numpy(), [0.0, 0.0])
        np.testing.assert_array_equal(result.jpvt.to_numpy(), [1, 2])


# ═══════════════════════════════════════════════════════════════════════
# Products and norms
# ═══════════════════════════════════════════════════════════════════════


class TestProducts:

    def test_matmul(self, rng):
        a = rng.standard_normal((3, 4))
        b = rng.standard_normal((4, 2))
        np.testing.assert_allclose(matmul(a, b).to_numpy(), a @ b, atol=1e-12)

    def test_norm(self):
        assert norm([[3.0, 0.0], [0.0, 4.0]]) == pytest.approx(5.0)
