"""
Array construction.

An ArrayFactory creates arrays on one device in one memory order. Each
backend owns a factory (Backend.element_factory()); the module-level helpers
in pystrided.array forward to the default backend's factory.

Random sampling takes any distribution object with a
``sample(size, rng) -> numpy.ndarray`` method and an optional
numpy.random.Generator, so results are reproducible under a fixed seed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol, Sequence

import numpy as np

from pystrided.array import _stride
from pystrided.array._kinds import ElementKind
from pystrided.array.buffer import Buffer, DeviceBuffer, HostBuffer, is_tensor
from pystrided.array.ndarray import NDArray
from pystrided.core.exceptions import ValidationError
from pystrided.core.validation import check_1d, check_non_negative


class Distribution(Protocol):
    """Anything that can draw `size` samples from a numpy Generator."""

    def sample(self, size: int, rng: np.random.Generator) -> np.ndarray:
        ...


@dataclass(frozen=True)
class NormalDistribution:
    """Gaussian with the given mean and standard deviation."""
    mean: float = 0.0
    std: float = 1.0

    def __post_init__(self) -> None:
        check_non_negative(self.std, 'std')

    def sample(self, size: int, rng: np.random.Generator) -> np.ndarray:
        return rng.normal(self.mean, self.std, size)


@dataclass(frozen=True)
class UniformDistribution:
    """Uniform on [low, high)."""
    low: float = 0.0
    high: float = 1.0

    def __post_init__(self) -> None:
        if self.high < self.low:
            raise ValidationError(
                f"high: must be >= low ({self.low}), got {self.high}"
            )

    def sample(self, size: int, rng: np.random.Generator) -> np.ndarray:
        return rng.uniform(self.low, self.high, size)


class ArrayFactory:
    """
    Creates arrays on a fixed device in a fixed memory order.

    Args:
        device: 'cpu' for host buffers, or a torch device string
        order: Memory order of new arrays ('C' or 'F')
    """

    def __init__(self, device: str = 'cpu', order: str = 'C'):
        if order not in ('C', 'F'):
            raise ValidationError(f"order: expected 'C' or 'F', got {order!r}")
        self.device = device
        self.order = order

    def __repr__(self) -> str:
        return f"ArrayFactory(device={self.device!r}, order={self.order!r})"

    def _buffer(self, host: np.ndarray, kind: ElementKind) -> Buffer:
        flat = np.asarray(host).ravel(order=self.order)
        if self.device == 'cpu':
            return HostBuffer(flat.copy(), kind)
        return DeviceBuffer.from_numpy(flat, self.device, kind)

    def _wrap(self, host: np.ndarray, kind: ElementKind) -> NDArray:
        return NDArray(self._buffer(host, kind), host.shape, order=self.order)

    # ═════════════════════════════════════════════════════════════════════
    # From data
    # ═════════════════════════════════════════════════════════════════════

    def array(self, data: Any, kind: ElementKind | str | None = None) -> NDArray:
        """
        Array from nested literal data (lists, tuples, scalars, numpy arrays).

        The element kind is inferred from the data unless given.

        Raises:
            ValidationError: If the data is ragged or cannot be converted
        """
        if isinstance(data, NDArray):
            data = data.to_numpy()
        elif is_tensor(data):
            data = data.detach().cpu().numpy()
        try:
            host = np.array(data)
        except (ValueError, TypeError) as e:
            raise ValidationError(f"data: cannot convert to array: {e}") from e
        kind = ElementKind.from_dtype(host.dtype) if kind is None else ElementKind.parse(kind)
        return self._wrap(host.astype(kind.dtype), kind)

    def from_numpy(self, array: np.ndarray, copy: bool = True) -> NDArray:
        """
        Wrap a numpy array.

        With copy=False on a host factory, a 1-D contiguous source (or any
        array contiguous in this factory's order) shares memory with the
        result; otherwise the data is copied.
        """
        array = np.asarray(array)
        kind = ElementKind.from_dtype(array.dtype)
        if (
            not copy
            and self.device == 'cpu'
            and array.dtype == kind.dtype
            and array.flags['C_CONTIGUOUS' if self.order == 'C' else 'F_CONTIGUOUS']
        ):
            flat = array.reshape(-1, order=self.order)
            return NDArray(HostBuffer(flat, kind), array.shape, order=self.order)
        return self._wrap(array.astype(kind.dtype), kind)

    # ═════════════════════════════════════════════════════════════════════
    # Filled
    # ═════════════════════════════════════════════════════════════════════

    def empty(self, shape: int | Sequence[int], kind: ElementKind | str = ElementKind.DOUBLE) -> NDArray:
        """New array with every element set to the kind's zero value."""
        shape = _stride.normalize_shape(shape)
        kind = ElementKind.parse(kind)
        size = _stride.size_of(shape)
        if self.device == 'cpu':
            buffer: Buffer = HostBuffer.allocate_new(size, kind)
        else:
            buffer = DeviceBuffer.allocate_new(size, kind, self.device)
        return NDArray(buffer, shape, order=self.order)

    def zeros(self, shape: int | Sequence[int], kind: ElementKind | str = ElementKind.DOUBLE) -> NDArray:
        return self.empty(shape, kind)

    def ones(self, shape: int | Sequence[int], kind: ElementKind | str = ElementKind.DOUBLE) -> NDArray:
        return self.full(shape, 1, kind)

    def full(
        self,
        shape: int | Sequence[int],
        value: Any,
        kind: ElementKind | str | None = None,
    ) -> NDArray:
        """Array with every element equal to `value` (kind inferred from it)."""
        shape = _stride.normalize_shape(shape)
        kind = ElementKind.from_dtype(np.asarray(value).dtype) if kind is None else ElementKind.parse(kind)
        host = np.empty(shape, dtype=kind.dtype)
        host[...] = value
        return self._wrap(host, kind)

    def from_function(
        self,
        shape: int | Sequence[int],
        fn: Callable[..., Any],
        kind: ElementKind | str = ElementKind.DOUBLE,
    ) -> NDArray:
        """Array whose element at (i, j, ...) is fn(i, j, ...)."""
        shape = _stride.normalize_shape(shape)
        kind = ElementKind.parse(kind)
        host = np.empty(shape, dtype=kind.dtype)
        for index in np.ndindex(*shape):
            host[index] = fn(*index)
        return self._wrap(host, kind)

    def eye(self, n: int, m: int | None = None, kind: ElementKind | str = ElementKind.DOUBLE) -> NDArray:
        """n x m identity matrix (square when m is None)."""
        kind = ElementKind.parse(kind)
        return self._wrap(np.eye(n, n if m is None else m, dtype=kind.dtype), kind)

    def diag(self, vector: NDArray | Sequence[Any]) -> NDArray:
        """Square matrix with `vector` on its diagonal."""
        values = vector.to_numpy() if isinstance(vector, NDArray) else np.asarray(vector)
        check_1d(values, 'vector')
        return self._wrap(np.diag(values), ElementKind.from_dtype(values.dtype))

    # ═════════════════════════════════════════════════════════════════════
    # Ranges
    # ═════════════════════════════════════════════════════════════════════

    def arange(self, start: float, stop: float | None = None, step: float = 1) -> NDArray:
        """
        Evenly spaced values in [start, stop).

        Integer arguments give a LONG array, anything else a DOUBLE array.
        A single argument is the stop value.
        """
        if stop is None:
            start, stop = 0, start
        if step == 0:
            raise ValidationError("step: must be non-zero")
        host = np.arange(start, stop, step)
        kind = ElementKind.from_dtype(host.dtype)
        return self._wrap(host.astype(kind.dtype), kind)

    def linspace(self, start: float, stop: float, num: int = 50) -> NDArray:
        """`num` evenly spaced doubles from start to stop inclusive."""
        check_non_negative(num, 'num')
        return self._wrap(np.linspace(start, stop, num), ElementKind.DOUBLE)

    # ═════════════════════════════════════════════════════════════════════
    # Random
    # ═════════════════════════════════════════════════════════════════════

    def rand(
        self,
        shape: int | Sequence[int],
        distribution: Distribution | None = None,
        rng: np.random.Generator | None = None,
    ) -> NDArray:
        """
        Array of samples from `distribution` (uniform on [0, 1) by default).

        Args:
            shape: Output shape
            distribution: Object with sample(size, rng)
            rng: numpy Generator; a fresh unseeded one when None
        """
        shape = _stride.normalize_shape(shape)
        distribution = UniformDistribution() if distribution is None else distribution
        rng = np.random.default_rng() if rng is None else rng
        samples = np.asarray(distribution.sample(_stride.size_of(shape), rng), dtype=np.float64)
        return self._wrap(samples.reshape(shape), ElementKind.DOUBLE)

    def randn(self, shape: int | Sequence[int], rng: np.random.Generator | None = None) -> NDArray:
        """Standard normal samples."""
        return self.rand(shape, NormalDistribution(), rng)

    def randi(
        self,
        shape: int | Sequence[int],
        low: int,
        high: int,
        rng: np.random.Generator | None = None,
    ) -> NDArray:
        """Integers drawn uniformly from [low, high] inclusive (LONG kind)."""
        shape = _stride.normalize_shape(shape)
        rng = np.random.default_rng() if rng is None else rng
        host = rng.integers(low, high, size=shape, endpoint=True).astype(np.int64)
        return self._wrap(host, ElementKind.LONG)
