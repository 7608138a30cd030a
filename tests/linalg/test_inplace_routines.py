"""
Tests for the in-place LAPACK-style routines on NDArrays.

Validates the calling contract:
    - Outputs are caller-supplied and overwritten (including strided views)
    - Job/range/uplo characters are validated case-insensitively
    - getrf returns a positive status for singular U; getri and gesv raise
      SingularMatrixError; other nonzero statuses raise NumericKernelError
    - Workspace sizes and index array kinds are checked before the kernel runs
"""

import numpy as np
import pytest

from pystrided.array._kinds import ElementKind
from pystrided.core.exceptions import (
    NumericKernelError,
    ReadOnlyArrayError,
    ShapeMismatchError,
    SingularMatrixError,
    UnsupportedBackendOperationError,
    ValidationError,
)
from pystrided.kernel.lapack import LapackKernel
from pystrided.kernel.reference import ReferenceKernel
from pystrided.linalg.routines import LinearAlgebraRoutines


@pytest.fixture
def routines():
    return LinearAlgebraRoutines(LapackKernel())


class FailingKernel(LapackKernel):
    """LAPACK kernel whose SVD reports non-convergence."""

    def gesdd(self, jobz, a):
        u, s, vt, _ = super().gesdd(jobz, a)
        return u, s, vt, 3


# ═══════════════════════════════════════════════════════════════════════
# LU family
# ═══════════════════════════════════════════════════════════════════════


class TestGetrf:

    def test_overwrites_operands(self, routines, factory, lu_matrix):
        a_np, pivots = lu_matrix
        a = factory.array(a_np)
        ipiv = factory.zeros(4, ElementKind.INT)
        info = routines.getrf(a, ipiv)
        assert info == 0
        assert ipiv.tolist() == pivots.tolist()
        assert a.get(0, 0) == pytest.approx(5.25)

    def test_singular_returns_status(self, routines, factory):
        a = factory.array([[1.0, 2.0], [2.0, 4.0]])
        ipiv = factory.zeros(2, ElementKind.INT)
        assert routines.getrf(a, ipiv) == 2

    def test_pivot_array_too_short(self, routines, factory):
        with pytest.raises(ShapeMismatchError, match="at least 3"):
            routines.getrf(factory.eye(3), factory.zeros(2, ElementKind.INT))

    def test_pivot_array_must_be_integer(self, routines, factory):
        with pytest.raises(ValidationError, match="INT or LONG"):
            routines.getrf(factory.eye(2), factory.zeros(2))

    def test_read_only_rejected(self, routines, factory):
        with pytest.raises(ReadOnlyArrayError):
            routines.getrf(factory.eye(2).as_read_only(), factory.zeros(2, ElementKind.INT))

    def test_strided_view(self, routines, factory, lu_matrix):
        """A transposed view is factorized as the matrix it presents."""
        a_np, pivots = lu_matrix
        a = factory.array(a_np.T.copy()).T
        assert not a.is_contiguous('C')
        ipiv = factory.zeros(4, ElementKind.LONG)
        routines.getrf(a, ipiv)
        assert ipiv.tolist() == pivots.tolist()


class TestGetri:

    def test_inverse_in_place(self, routines, factory, lu_matrix):
        a_np, _ = lu_matrix
        a = factory.array(a_np)
        ipiv = factory.zeros(4, ElementKind.INT)
        routines.getrf(a, ipiv)
        routines.getri(a, ipiv)
        np.testing.assert_allclose(a.to_numpy() @ a_np, np.eye(4), atol=1e-12)

    def test_singular_raises(self, routines, factory):
        a = factory.array([[1.0, 2.0], [2.0, 4.0]])
        ipiv = factory.zeros(2, ElementKind.INT)
        routines.getrf(a, ipiv)
        with pytest.raises(SingularMatrixError) as info:
            routines.getri(a, ipiv)
        assert info.value.routine == 'getri'
        assert info.value.pivot_index == 2

    def test_requires_square(self, routines, factory):
        with pytest.raises(ShapeMismatchError, match="square"):
            routines.getri(factory.zeros((2, 3)), factory.zeros(2, ElementKind.INT))


class TestGesv:

    @pytest.mark.parametrize("kernel", [LapackKernel(), ReferenceKernel()])
    def test_reference_system(self, kernel, factory, gesv_system):
        routines = LinearAlgebraRoutines(kernel)
        a_np, b_np, x_np, pivots, lu_np = gesv_system
        a, b = factory.array(a_np), factory.array(b_np)
        ipiv = factory.zeros(5, ElementKind.INT)
        routines.gesv(a, ipiv, b)
        assert ipiv.tolist() == pivots.tolist()
        np.testing.assert_allclose(b.to_numpy(), x_np, atol=0.01)
        np.testing.assert_allclose(a.to_numpy(), lu_np, atol=0.01)

    def test_singular_keeps_factorization(self, routines, factory):
        a = factory.array([[1.0, 2.0], [2.0, 4.0]])
        ipiv = factory.zeros(2, ElementKind.INT)
        with pytest.raises(SingularMatrixError) as info:
            routines.gesv(a, ipiv, factory.ones(2))
        assert info.value.code == 2
        assert ipiv.tolist() == [2, 2]
        assert a.get(0, 0) == 2.0

    def test_rhs_rows(self, routines, factory):
        with pytest.raises(ShapeMismatchError, match="rows"):
            routines.gesv(factory.eye(3), factory.zeros(3, ElementKind.INT), factory.zeros((2, 1)))

    def test_reference_kernel_lacks_spectral_routines(self, factory):
        routines = LinearAlgebraRoutines(ReferenceKernel())
        with pytest.raises(UnsupportedBackendOperationError, match="gesdd"):
            routines.gesdd('a', factory.eye(2), factory.zeros(2), factory.zeros((2, 2)), factory.zeros((2, 2)))


# ═══════════════════════════════════════════════════════════════════════
# Least squares
# ═══════════════════════════════════════════════════════════════════════


class TestGelsy:

    def test_overdetermined(self, routines, factory, rng):
        a_np = rng.standard_normal((6, 3))
        b_np = rng.standard_normal(6)
        b = factory.array(b_np)
        jpvt = factory.zeros(3, ElementKind.INT)
        rank = routines.gelsy(factory.array(a_np), b, jpvt, 1e-10)
        assert rank == 3
        expected, *_ = np.linalg.lstsq(a_np, b_np, rcond=None)
        np.testing.assert_allclose(b.to_numpy()[:3], expected, rtol=1e-10)
        assert sorted(jpvt.tolist()) == [1, 2, 3]

    def test_underdetermined_needs_n_rows(self, routines, factory):
        a = factory.array([[1.0, 1.0, 0.0]])
        with pytest.raises(ShapeMismatchError):
            routines.gelsy(a, factory.zeros(1), factory.zeros(3, ElementKind.INT), 1e-10)

    def test_underdetermined_minimum_norm(self, routines, factory):
        a = factory.array([[1.0, 1.0]])
        b = factory.array([2.0, 0.0])
        rank = routines.gelsy(a, b, factory.zeros(2, ElementKind.INT), 1e-10)
        assert rank == 1
        np.testing.assert_allclose(b.to_numpy(), [1.0, 1.0], rtol=1e-12)

    def test_negative_rcond(self, routines, factory):
        with pytest.raises(ValidationError, match="rcond"):
            routines.gelsy(factory.eye(2), factory.zeros(2), factory.zeros(2, ElementKind.INT), -1.0)


# ═══════════════════════════════════════════════════════════════════════
# SVD
# ═══════════════════════════════════════════════════════════════════════


class TestSvdRoutines:

    def test_gesvd_full(self, routines, factory, rng):
        a_np = rng.standard_normal((4, 3))
        s, u, vt = factory.zeros(3), factory.zeros((4, 4)), factory.zeros((3, 3))
        routines.gesvd('A', 'A', factory.array(a_np), s, u, vt)
        np.testing.assert_allclose(s.to_numpy(), np.linalg.svd(a_np, compute_uv=False), rtol=1e-12)
        np.testing.assert_allclose(u.to_numpy()[:, :3] * s.to_numpy() @ vt.to_numpy(), a_np, atol=1e-12)

    def test_gesdd_economy_into_views(self, routines, factory, rng):
        a_np = rng.standard_normal((4, 3))
        s = factory.zeros(5)
        u_big = factory.zeros((4, 6))
        vt = factory.zeros((3, 3))
        routines.gesdd('s', factory.array(a_np), s, u_big[:, 3:], vt)
        np.testing.assert_array_equal(u_big.to_numpy()[:, :3], np.zeros((4, 3)))
        assert s.to_numpy()[3:].tolist() == [0.0, 0.0]

    def test_values_only_ignores_vectors(self, routines, factory):
        s = factory.zeros(2)
        routines.gesdd('N', factory.array([[3.0, 0.0], [0.0, 4.0]]), s)
        assert s.tolist() == [4.0, 3.0]

    def test_unknown_job(self, routines, factory):
        with pytest.raises(ValidationError, match="jobz"):
            routines.gesdd('x', factory.eye(2), factory.zeros(2))

    def test_vector_shape_checked(self, routines, factory):
        with pytest.raises(ShapeMismatchError):
            routines.gesvd('a', 'a', factory.eye(3), factory.zeros(3), factory.zeros((3, 2)), factory.zeros((3, 3)))

    def test_missing_vectors(self, routines, factory):
        with pytest.raises(ValidationError, match="required"):
            routines.gesvd('a', 'n', factory.eye(2), factory.zeros(2))

    def test_non_convergence_raises(self, factory):
        routines = LinearAlgebraRoutines(FailingKernel())
        with pytest.raises(NumericKernelError) as info:
            routines.gesdd('n', factory.eye(2), factory.zeros(2))
        assert info.value.routine == 'gesdd'
        assert info.value.code == 3


# ═══════════════════════════════════════════════════════════════════════
# Eigen
# ═══════════════════════════════════════════════════════════════════════


class TestEigenRoutines:

    def test_syevr_index_range(self, routines, factory, symmetric_matrix):
        a = factory.array(np.triu(symmetric_matrix))
        n = a.shape[0]
        w = factory.zeros(n)
        z = factory.zeros((n, 3))
        isuppz = factory.zeros(2 * 3, ElementKind.INT)
        m = routines.syevr('V', 'I', 'U', a, 0.0, 0.0, 1, 3, 0.0, w, z, isuppz)
        assert m == 3
        np.testing.assert_allclose(w.to_numpy()[:3], [0.433, 2.145, 3.368], atol=1e-3)
        vectors = z.to_numpy()
        np.testing.assert_allclose(symmetric_matrix @ vectors, vectors * w.to_numpy()[:3], atol=1e-10)

    def test_syevr_value_range(self, routines, factory, symmetric_matrix):
        n = symmetric_matrix.shape[0]
        w = factory.zeros(n)
        m = routines.syevr('n', 'v', 'l', factory.array(symmetric_matrix), 0.0, 3.0, 0, 0, 0.0, w)
        assert m == 2
        np.testing.assert_allclose(w.to_numpy()[:2], [0.433, 2.145], atol=1e-3)

    def test_syevr_bad_index_range(self, routines, factory, symmetric_matrix):
        w = factory.zeros(5)
        with pytest.raises(ValidationError, match="il"):
            routines.syevr('n', 'i', 'u', factory.array(symmetric_matrix), 0, 0, 4, 2, 0.0, w)

    def test_syevr_z_too_narrow(self, routines, factory, symmetric_matrix):
        with pytest.raises(ShapeMismatchError):
            routines.syevr('v', 'i', 'u', factory.array(symmetric_matrix), 0, 0, 1, 3, 0.0,
                           factory.zeros(5), factory.zeros((5, 2)))

    def test_syev_overwrites_with_vectors(self, routines, factory, symmetric_matrix):
        a = factory.array(symmetric_matrix)
        w = factory.zeros(5)
        routines.syev('v', 'u', a, w)
        vectors = a.to_numpy()
        np.testing.assert_allclose(vectors.T @ vectors, np.eye(5), atol=1e-12)
        assert np.all(np.diff(w.to_numpy()) >= 0)

    def test_geev(self, routines, factory, general_matrix):
        n = 5
        wr, wi = factory.zeros(n), factory.zeros(n)
        vr = factory.zeros((n, n))
        routines.geev('n', 'v', factory.array(general_matrix), wr, wi, None, vr)
        values = np.sort_complex(wr.to_numpy() + 1j * wi.to_numpy())
        np.testing.assert_allclose(values.real.min(), -10.463, atol=1e-3)
        assert np.count_nonzero(wi.to_numpy()) == 4

    def test_uplo_validated(self, routines, factory):
        with pytest.raises(ValidationError, match="uplo"):
            routines.syev('n', 'x', factory.eye(2), factory.zeros(2))


# ═══════════════════════════════════════════════════════════════════════
# QR
# ═══════════════════════════════════════════════════════════════════════


class TestQrRoutines:

    def test_geqrf_reference_values(self, routines, factory, tall_matrix):
        a = factory.array(tall_matrix)
        tau = factory.zeros(2)
        routines.geqrf(a, tau)
        np.testing.assert_allclose(tau.to_numpy(), [1.0, 1.4], atol=0.01)
        np.testing.assert_allclose(a.to_numpy()[:2], [[-4.0, 2.0], [0.5, 2.5]], atol=0.01)

    def test_orgqr_shape_rules(self, routines, factory):
        with pytest.raises(ShapeMismatchError, match="orgqr"):
            routines.orgqr(factory.zeros((2, 3)), factory.zeros(2))
