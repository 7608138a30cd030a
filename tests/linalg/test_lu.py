"""
Tests for LU factorization and its derived quantities.

Validates:
    - Packed factors and 1-based pivots against reference values
    - P @ A == L @ U for square and rectangular inputs
    - Determinant sign from row interchanges
    - Singular U: warning on factorization, SingularMatrixError on inverse
    - Factors are read-only and the input is never modified
"""

import numpy as np
import pytest

from pystrided.core.exceptions import ReadOnlyArrayError, ShapeMismatchError, SingularMatrixError
from pystrided.linalg import LuDecomposition, det, inv, lu


# ═══════════════════════════════════════════════════════════════════════
# Factorization
# ═══════════════════════════════════════════════════════════════════════


class TestLuFactors:

    def test_returns_decomposition(self, lu_matrix):
        a, _ = lu_matrix
        result = lu(a)
        assert isinstance(result, LuDecomposition)
        assert result.backend_name == 'lapack'
        assert result.status == 0
        assert result.info['routine'] == 'getrf'

    def test_reference_pivots(self, lu_matrix):
        a, pivots = lu_matrix
        np.testing.assert_array_equal(lu(a).pivots.to_numpy(), pivots)

    def test_reconstruction(self, lu_matrix):
        a, _ = lu_matrix
        result = lu(a)
        p = result.get_permutation().to_numpy()
        l = result.get_lower().to_numpy()
        u = result.get_upper().to_numpy()
        np.testing.assert_allclose(p @ a, l @ u, atol=1e-12)
        assert np.allclose(np.diag(l), 1.0)
        assert np.allclose(np.tril(u, -1), 0.0)

    @pytest.mark.parametrize("shape", [(5, 3), (3, 5)])
    def test_rectangular(self, rng, shape):
        a = rng.standard_normal(shape)
        result = lu(a)
        k = min(shape)
        assert result.get_lower().shape == (shape[0], k)
        assert result.get_upper().shape == (k, shape[1])
        p = result.get_permutation().to_numpy()
        np.testing.assert_allclose(
            p @ a, result.get_lower().to_numpy() @ result.get_upper().to_numpy(), atol=1e-12,
        )

    def test_timing_sections(self, lu_matrix):
        timing = lu(lu_matrix[0]).timing
        assert 'total_seconds' in timing
        assert 'getrf' in timing

    def test_integer_input_converted(self):
        result = lu([[4, 3], [6, 3]])
        assert result.lu.kind.is_floating


# ═══════════════════════════════════════════════════════════════════════
# Derived quantities
# ═══════════════════════════════════════════════════════════════════════


class TestLuDerived:

    def test_determinant(self, lu_matrix):
        a, _ = lu_matrix
        assert lu(a).get_determinant() == pytest.approx(np.linalg.det(a), rel=1e-12)

    def test_determinant_sign_from_swap(self):
        assert det([[4.0, 3.0], [6.0, 3.0]]) == pytest.approx(-6.0)

    def test_inverse(self, lu_matrix):
        a, _ = lu_matrix
        np.testing.assert_allclose(inv(a).to_numpy() @ a, np.eye(4), atol=1e-12)

    def test_inverse_of_inverse(self, lu_matrix):
        a, _ = lu_matrix
        np.testing.assert_allclose(inv(inv(a)).to_numpy(), a, rtol=1e-10)

    def test_derived_values_are_memoized(self, lu_matrix):
        result = lu(lu_matrix[0])
        assert result.inverse() is result.inverse()
        assert result.get_upper() is result.get_upper()

    def test_rectangular_has_no_determinant(self, rng):
        result = lu(rng.standard_normal((3, 2)))
        with pytest.raises(ShapeMismatchError, match="square"):
            result.get_determinant()


# ═══════════════════════════════════════════════════════════════════════
# Singular matrices
# ═══════════════════════════════════════════════════════════════════════


class TestLuSingular:

    def test_factorization_warns(self):
        with pytest.warns(RuntimeWarning, match="exactly zero"):
            result = lu([[1.0, 2.0], [2.0, 4.0]])
        assert result.status == 2
        assert not result.is_non_singular()
        assert result.result.has_warning("singular")
        assert result.get_determinant() == 0.0

    def test_inverse_raises(self):
        with pytest.warns(RuntimeWarning):
            result = lu([[1.0, 2.0], [2.0, 4.0]])
        with pytest.raises(SingularMatrixError) as info:
            result.inverse()
        assert info.value.pivot_index == 2

    def test_inv_raises(self):
        with pytest.warns(RuntimeWarning):
            with pytest.raises(SingularMatrixError):
                inv(np.zeros((3, 3)))


# ═══════════════════════════════════════════════════════════════════════
# Ownership
# ═══════════════════════════════════════════════════════════════════════


class TestLuOwnership:

    def test_factors_read_only(self, lu_matrix):
        result = lu(lu_matrix[0])
        with pytest.raises(ReadOnlyArrayError):
            result.lu.set(0, 0, 1.0)
        with pytest.raises(ReadOnlyArrayError):
            result.get_upper().set(0, 0, 1.0)

    def test_input_not_modified(self, factory, lu_matrix):
        a_np, _ = lu_matrix
        a = factory.array(a_np)
        lu(a)
        np.testing.assert_array_equal(a.to_numpy(), a_np)

    def test_view_input(self, factory, lu_matrix):
        """A strided view is factorized as the matrix it presents."""
        a_np, pivots = lu_matrix
        big = factory.zeros((8, 8))
        view = big[::2, ::2]
        view.assign(a_np)
        result = lu(view)
        np.testing.assert_array_equal(result.pivots.to_numpy(), pivots)
        assert big.get(1, 1) == 0.0


class TestLuEmpty:
    """A 0 x 0 matrix factorizes to empty factors with determinant 1."""

    def test_empty_factors(self):
        result = lu(np.zeros((0, 0)))
        assert result.status == 0
        assert result.lu.shape == (0, 0)
        assert result.pivots.shape == (0,)
        assert result.is_non_singular()

    def test_empty_determinant(self):
        assert det(np.zeros((0, 0))) == 1.0

    def test_empty_inverse(self):
        assert inv(np.zeros((0, 0))).shape == (0, 0)

    def test_no_rows(self):
        result = lu(np.zeros((0, 3)))
        assert result.get_upper().shape == (0, 3)
        assert result.get_lower().shape == (0, 0)
