"""
Tests for array construction.

Validates:
    - Kind inference from literal data
    - Filled, identity, diagonal and function-built arrays
    - Column-major factories
    - Ranges and reproducible random sampling
    - Module-level constructors use the default registry
"""

import numpy as np
import pytest

import pystrided.array as pa
from pystrided.array._kinds import ElementKind
from pystrided.array.factory import ArrayFactory, NormalDistribution, UniformDistribution
from pystrided.core.exceptions import ValidationError


class TestFromData:

    def test_float_literal(self, factory):
        a = factory.array([[1.0, 2.0], [3.0, 4.0]])
        assert a.kind is ElementKind.DOUBLE
        assert a.shape == (2, 2)

    def test_int_literal_is_long(self, factory):
        assert factory.array([1, 2, 3]).kind is ElementKind.LONG

    def test_explicit_kind(self, factory):
        a = factory.array([1, 2, 3], kind='int')
        assert a.kind is ElementKind.INT
        assert a.dtype == np.int32

    def test_complex_and_boolean(self, factory):
        assert factory.array([1 + 2j]).kind is ElementKind.COMPLEX
        assert factory.array([True, False]).kind is ElementKind.BOOLEAN

    def test_strings_are_generic(self, factory):
        a = factory.array(['a', 'b'], kind=ElementKind.GENERIC)
        assert a.kind is ElementKind.GENERIC
        assert a.get(1) == 'b'

    def test_ragged_rejected(self, factory):
        with pytest.raises(ValidationError, match="cannot convert"):
            factory.array([[1.0, 2.0], [3.0]])

    def test_from_numpy_shares_memory(self, factory):
        data = np.arange(6.0).reshape(2, 3)
        a = factory.from_numpy(data, copy=False)
        data[0, 0] = 9.0
        assert a.get(0, 0) == 9.0

    def test_from_numpy_copies_by_default(self, factory):
        data = np.arange(6.0)
        a = factory.from_numpy(data)
        data[0] = 9.0
        assert a.get(0) == 0.0


class TestFilled:

    def test_zeros(self, factory):
        a = factory.zeros((2, 3))
        assert a.to_numpy().sum() == 0.0
        assert a.kind is ElementKind.DOUBLE

    def test_empty_generic_is_none(self, factory):
        a = factory.empty(2, ElementKind.GENERIC)
        assert a.get(0) is None

    def test_ones_and_full(self, factory):
        assert factory.ones(3).tolist() == [1.0, 1.0, 1.0]
        full = factory.full((2, 2), 7)
        assert full.kind is ElementKind.LONG
        assert full.get(1, 1) == 7

    def test_eye(self, factory):
        np.testing.assert_array_equal(factory.eye(2, 3).to_numpy(), np.eye(2, 3))

    def test_diag(self, factory):
        np.testing.assert_array_equal(factory.diag([1.0, 2.0]).to_numpy(), [[1, 0], [0, 2]])

    def test_diag_requires_vector(self, factory):
        with pytest.raises(ValidationError):
            factory.diag([[1.0]])

    def test_from_function(self, factory):
        a = factory.from_function((2, 3), lambda i, j: 10 * i + j)
        assert a.get(1, 2) == 12.0

    def test_column_major_factory(self):
        a = ArrayFactory('cpu', 'F').array([[1.0, 2.0], [3.0, 4.0]])
        assert a.stride == (1, 2)
        assert a.get(0, 1) == 2.0

    def test_bad_order(self):
        with pytest.raises(ValidationError):
            ArrayFactory('cpu', 'X')


class TestRanges:

    def test_arange_int(self, factory):
        a = factory.arange(5)
        assert a.kind is ElementKind.LONG
        assert a.tolist() == [0, 1, 2, 3, 4]

    def test_arange_float_step(self, factory):
        assert factory.arange(0.0, 1.0, 0.25).tolist() == [0.0, 0.25, 0.5, 0.75]

    def test_arange_zero_step(self, factory):
        with pytest.raises(ValidationError, match="step"):
            factory.arange(0, 5, 0)

    def test_linspace(self, factory):
        np.testing.assert_allclose(factory.linspace(0.0, 1.0, 5).to_numpy(), [0, 0.25, 0.5, 0.75, 1])


class TestRandom:

    def test_reproducible(self, factory):
        a = factory.randn((3, 3), rng=np.random.default_rng(7))
        b = factory.randn((3, 3), rng=np.random.default_rng(7))
        assert a.equals(b)

    def test_uniform_bounds(self, factory, rng):
        a = factory.rand(1000, UniformDistribution(2.0, 3.0), rng).to_numpy()
        assert a.min() >= 2.0
        assert a.max() < 3.0

    def test_normal_moments(self, factory, rng):
        a = factory.rand(20000, NormalDistribution(1.0, 2.0), rng).to_numpy()
        assert abs(a.mean() - 1.0) < 0.05
        assert abs(a.std() - 2.0) < 0.05

    def test_randi_inclusive(self, factory, rng):
        a = factory.randi(500, 0, 2, rng)
        assert a.kind is ElementKind.LONG
        assert set(a.tolist()) == {0, 1, 2}

    def test_bad_distribution_parameters(self):
        with pytest.raises(ValidationError):
            NormalDistribution(0.0, -1.0)
        with pytest.raises(ValidationError):
            UniformDistribution(1.0, 0.0)


class TestModuleConstructors:
    """Module-level helpers go through the default registry's backend."""

    def test_array_on_host(self):
        a = pa.array([[1.0, 2.0], [3.0, 4.0]])
        assert a.device == 'cpu'
        assert a.T.get(0, 1) == 3.0

    def test_zeros_and_eye(self):
        assert pa.zeros((2, 2)).to_numpy().sum() == 0.0
        assert pa.eye(3).diagonal().tolist() == [1.0, 1.0, 1.0]
