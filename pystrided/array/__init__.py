"""
N-dimensional strided arrays.

Public API:
    NDArray: the array type (one type for every ElementKind)
    ElementKind: closed set of element kinds
    Range: index range for get_view
    VectorIterator: vectors of an array along one dimension
    ArrayFactory, ArrayRoutines: per-backend construction and routines
    HostBuffer, DeviceBuffer, DeviceScope: storage

Module-level constructors (array, zeros, ones, ...) use the element factory
of the default registry's 'auto' backend.

Example:
    >>> from pystrided.array import array
    >>> a = array([[1.0, 2.0], [3.0, 4.0]])
    >>> a.T.get(0, 1)
    3.0
"""

from typing import Any, Callable, Sequence

from pystrided.array._kinds import ElementKind
from pystrided.array.buffer import Buffer, DeviceBuffer, DeviceScope, HostBuffer
from pystrided.array.factory import (
    ArrayFactory,
    Distribution,
    NormalDistribution,
    UniformDistribution,
)
from pystrided.array.ndarray import NDArray
from pystrided.array.routines import ArrayRoutines
from pystrided.array.vectors import VectorIterator
from pystrided.array.views import Range


def _factory() -> ArrayFactory:
    # Deferred: the registry imports this package
    from pystrided.backends.registry import default_registry
    return default_registry().resolve('auto').element_factory()


def array(data: Any, kind: ElementKind | str | None = None) -> NDArray:
    return _factory().array(data, kind)


def from_numpy(data: Any, copy: bool = True) -> NDArray:
    return _factory().from_numpy(data, copy)


def empty(shape: int | Sequence[int], kind: ElementKind | str = ElementKind.DOUBLE) -> NDArray:
    return _factory().empty(shape, kind)


def zeros(shape: int | Sequence[int], kind: ElementKind | str = ElementKind.DOUBLE) -> NDArray:
    return _factory().zeros(shape, kind)


def ones(shape: int | Sequence[int], kind: ElementKind | str = ElementKind.DOUBLE) -> NDArray:
    return _factory().ones(shape, kind)


def full(shape: int | Sequence[int], value: Any, kind: ElementKind | str | None = None) -> NDArray:
    return _factory().full(shape, value, kind)


def from_function(
    shape: int | Sequence[int],
    fn: Callable[..., Any],
    kind: ElementKind | str = ElementKind.DOUBLE,
) -> NDArray:
    return _factory().from_function(shape, fn, kind)


def eye(n: int, m: int | None = None, kind: ElementKind | str = ElementKind.DOUBLE) -> NDArray:
    return _factory().eye(n, m, kind)


def diag(vector: Any) -> NDArray:
    return _factory().diag(vector)


def arange(start: float, stop: float | None = None, step: float = 1) -> NDArray:
    return _factory().arange(start, stop, step)


def linspace(start: float, stop: float, num: int = 50) -> NDArray:
    return _factory().linspace(start, stop, num)


def rand(shape: int | Sequence[int], distribution: Distribution | None = None, rng: Any = None) -> NDArray:
    return _factory().rand(shape, distribution, rng)


def randn(shape: int | Sequence[int], rng: Any = None) -> NDArray:
    return _factory().randn(shape, rng)


__all__ = [
    # Types
    "NDArray",
    "ElementKind",
    "Range",
    "VectorIterator",
    "ArrayFactory",
    "ArrayRoutines",
    "Buffer",
    "HostBuffer",
    "DeviceBuffer",
    "DeviceScope",
    "Distribution",
    "NormalDistribution",
    "UniformDistribution",
    # Constructors
    "array",
    "from_numpy",
    "empty",
    "zeros",
    "ones",
    "full",
    "from_function",
    "eye",
    "diag",
    "arange",
    "linspace",
    "rand",
    "randn",
]
