"""
pytest configuration and shared fixtures.
"""

import numpy as np
import pytest

from pystrided.array.factory import ArrayFactory
from pystrided.backends.registry import BackendRegistry, set_default_registry
from pystrided.core.config import ArrayConfig


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture(autouse=True)
def host_registry():
    """
    Default registry pinned to the LAPACK backend for every test.

    GPU tests ask for backend='gpu' explicitly, so results elsewhere do not
    depend on the machine the suite runs on.
    """
    registry = BackendRegistry(ArrayConfig(backend='lapack'))
    previous = set_default_registry(registry)
    yield registry
    set_default_registry(previous)


@pytest.fixture
def factory():
    """Host array factory in row-major order."""
    return ArrayFactory('cpu', 'C')


@pytest.fixture
def lu_matrix():
    """4x4 general matrix with known LU pivots [2, 2, 3, 4]."""
    a = np.array([
        [1.80, 2.88, 2.05, -0.89],
        [5.25, -2.95, -0.95, -3.80],
        [1.58, -2.69, -2.90, -1.04],
        [-1.11, -0.66, -0.59, 0.80],
    ])
    return a, np.array([2, 2, 3, 4])


@pytest.fixture
def gesv_system():
    """
    5x5 system with two right-hand sides.

    Returns (A, B, X, pivots, LU) where X is the solution to 2 decimals,
    pivots are 1-based and LU the packed factors to 2 decimals.
    """
    a = np.array([
        [6.80, -6.05, -0.45, 8.32, -9.67],
        [-2.11, -3.30, 2.58, 2.71, -5.14],
        [5.66, 5.36, -2.70, 4.35, -7.26],
        [5.97, -4.44, 0.27, -7.17, 6.08],
        [8.23, 1.08, 9.04, 2.14, -6.87],
    ])
    b = np.array([
        [4.02, -1.56],
        [6.19, 4.00],
        [-8.22, -8.67],
        [-7.57, 1.75],
        [-3.03, 2.86],
    ])
    x = np.array([
        [-0.80, -0.39],
        [-0.70, -0.55],
        [0.59, 0.84],
        [1.32, -0.10],
        [0.57, 0.11],
    ])
    pivots = np.array([5, 5, 3, 4, 5])
    lu = np.array([
        [8.23, 1.08, 9.04, 2.14, -6.87],
        [0.83, -6.94, -7.92, 6.55, -3.99],
        [0.69, -0.67, -14.18, 7.24, -5.19],
        [0.73, 0.75, 0.02, -13.82, 14.19],
        [-0.26, 0.44, -0.59, -0.34, -3.43],
    ])
    return a, b, x, pivots, lu


@pytest.fixture
def symmetric_matrix():
    """
    5x5 symmetric matrix; its three smallest eigenvalues are approximately
    0.433, 2.145 and 3.368.
    """
    upper = np.array([
        [0.67, -0.20, 0.19, -1.06, 0.46],
        [0.00, 3.82, -0.13, 1.06, -0.48],
        [0.00, 0.00, 3.27, 0.11, 1.10],
        [0.00, 0.00, 0.00, 5.86, -0.98],
        [0.00, 0.00, 0.00, 0.00, 3.54],
    ])
    return upper + np.triu(upper, 1).T


@pytest.fixture
def general_matrix():
    """
    5x5 non-symmetric matrix with eigenvalues 2.858 +- 10.763i,
    -0.687 +- 4.704i and -10.463.
    """
    return np.array([
        [-1.01, 0.86, -4.60, 3.31, -4.81],
        [3.98, 0.53, -7.04, 5.29, 3.55],
        [3.30, 8.26, -3.89, 8.20, -1.51],
        [4.43, 4.96, -7.66, -7.33, 6.18],
        [7.31, -6.43, -6.16, 2.47, 5.58],
    ])


@pytest.fixture
def tall_matrix():
    """6x2 matrix whose Householder QR has tau [1, 1.4] and R [[-4, 2], [0, 2.5]]."""
    return np.array([
        [0.0, 2.0],
        [2.0, -1.0],
        [2.0, -1.0],
        [0.0, 1.5],
        [2.0, -1.0],
        [2.0, -1.0],
    ])
