"""
The N-dimensional strided array.

An NDArray is (buffer, offset, shape, stride): a window onto flat storage.
Element (i0, ..., ik) lives at buffer position offset + sum(i_d * stride_d).
Views share the buffer, so a write through one view is visible through all
of them; copy() is the only operation that breaks aliasing.

Design principles:
    - One array type for every element kind (see ElementKind)
    - Every index is bounds-checked; negative indices are NOT wrapped
    - Shape changes are explicit: reshape of a non-contiguous view raises
      unless the caller opts into a copy
    - Bulk element access is vectorized through buffer positions, so the
      same code serves numpy host buffers and torch device buffers
"""

from __future__ import annotations

from typing import Any, Callable, Iterator, Sequence

import numpy as np

from pystrided.array import _stride, views
from pystrided.array._kinds import ElementKind
from pystrided.array.buffer import Buffer, DeviceBuffer, HostBuffer, is_tensor
from pystrided.array.vectors import VectorIterator
from pystrided.core.exceptions import (
    IndexOutOfBoundsError,
    ReadOnlyArrayError,
    ShapeMismatchError,
    ValidationError,
)


class NDArray:
    """
    Dense N-dimensional array over a shared flat buffer.

    Args:
        buffer: Flat storage (HostBuffer or DeviceBuffer)
        shape: Extent of each dimension
        stride: Element step of each dimension; defaults to the contiguous
            stride in `order`
        offset: Buffer position of element (0, ..., 0)
        read_only: Reject writes through this array and its views
        order: Layout used when `stride` is None

    Raises:
        IndexOutOfBoundsError: If some valid index would address a position
            outside the buffer
    """

    __slots__ = ('_buffer', '_shape', '_stride', '_offset', '_read_only')

    def __init__(
        self,
        buffer: Buffer,
        shape: int | Sequence[int],
        stride: Sequence[int] | None = None,
        offset: int = 0,
        read_only: bool = False,
        order: str = 'C',
    ):
        shape = _stride.normalize_shape(shape)
        stride = _stride.default_stride(shape, order) if stride is None else tuple(int(s) for s in stride)
        if len(stride) != len(shape):
            raise ShapeMismatchError(
                f"stride {stride} does not match rank of shape {shape}",
                expected=shape,
                actual=stride,
                operation='NDArray',
            )
        extent = _stride.position_extent(offset, shape, stride)
        if extent is not None and (extent[0] < 0 or extent[1] >= len(buffer)):
            raise IndexOutOfBoundsError(
                f"view (offset={offset}, shape={shape}, stride={stride}) addresses "
                f"positions {extent[0]}..{extent[1]} outside buffer of length {len(buffer)}",
                index=extent[1] if extent[0] >= 0 else extent[0],
                bound=len(buffer),
            )
        self._buffer = buffer
        self._shape = shape
        self._stride = stride
        self._offset = int(offset)
        self._read_only = bool(read_only)

    # ═════════════════════════════════════════════════════════════════════
    # Construction helpers
    # ═════════════════════════════════════════════════════════════════════

    @classmethod
    def from_native(cls, values: Any, like: NDArray | None = None, order: str = 'C') -> NDArray:
        """
        Wrap a dense numpy array or torch tensor in a fresh buffer.

        When `like` is given, the new buffer lives on the same device as
        `like`'s buffer.
        """
        if like is not None:
            buffer = like._buffer.from_native(values, order)
        elif is_tensor(values) and values.device.type != 'cpu':
            flat = values if order == 'C' else values.permute(*reversed(range(values.dim())))
            buffer = DeviceBuffer(flat.reshape(-1).clone())
        else:
            values = _host(values)
            buffer = HostBuffer(values.ravel(order=order).copy())
        return cls(buffer, tuple(values.shape), order=order)

    def _derive(
        self,
        shape: Sequence[int],
        stride: Sequence[int],
        offset: int,
        read_only: bool | None = None,
    ) -> NDArray:
        """New view over the same buffer; read-only status is inherited."""
        return NDArray(
            self._buffer, shape, stride, offset,
            read_only=self._read_only or bool(read_only),
        )

    def _allocate(self, shape: Sequence[int], kind: ElementKind | None = None, order: str = 'C') -> NDArray:
        """Zero-filled array on the same device as this one."""
        shape = _stride.normalize_shape(shape)
        buffer = self._buffer.allocate(_stride.size_of(shape), kind or self.kind)
        return NDArray(buffer, shape, order=order)

    # ═════════════════════════════════════════════════════════════════════
    # Introspection
    # ═════════════════════════════════════════════════════════════════════

    @property
    def shape(self) -> tuple[int, ...]:
        return self._shape

    @property
    def stride(self) -> tuple[int, ...]:
        return self._stride

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def ndim(self) -> int:
        return len(self._shape)

    @property
    def size(self) -> int:
        return _stride.size_of(self._shape)

    @property
    def kind(self) -> ElementKind:
        return self._buffer.kind

    @property
    def dtype(self) -> np.dtype:
        return self._buffer.kind.dtype

    @property
    def buffer(self) -> Buffer:
        return self._buffer

    @property
    def device(self) -> str:
        return self._buffer.device

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def is_view(self) -> bool:
        """True unless this array covers its whole buffer in contiguous order."""
        return not (
            self._offset == 0
            and self.size == len(self._buffer)
            and _stride.is_contiguous(self._shape, self._stride)
        )

    @property
    def is_matrix(self) -> bool:
        return self.ndim == 2

    @property
    def is_vector(self) -> bool:
        return self.ndim == 1

    @property
    def is_square(self) -> bool:
        return self.ndim == 2 and self._shape[0] == self._shape[1]

    def is_contiguous(self, order: str | None = None) -> bool:
        """Whether the stride is the default stride in `order` (either order if None)."""
        return _stride.is_contiguous(self._shape, self._stride, order)

    def shares_buffer(self, other: NDArray) -> bool:
        return self._buffer is other._buffer

    # ═════════════════════════════════════════════════════════════════════
    # Element access
    # ═════════════════════════════════════════════════════════════════════

    def _positions(self) -> np.ndarray:
        """Buffer position of every element, shaped like the array."""
        positions = np.full(self._shape, self._offset, dtype=np.int64)
        ndim = self.ndim
        for d, (extent, step) in enumerate(zip(self._shape, self._stride)):
            axis_shape = [1] * ndim
            axis_shape[d] = extent
            positions = positions + (np.arange(extent, dtype=np.int64) * step).reshape(axis_shape)
        return positions

    def _check_writable(self) -> None:
        if self._read_only:
            raise ReadOnlyArrayError(
                f"array of shape {self._shape} is read-only"
            )

    @staticmethod
    def _unpack_index(index: tuple) -> tuple[int, ...]:
        if len(index) == 1 and isinstance(index[0], (tuple, list)):
            index = tuple(index[0])
        return tuple(_as_index(i) for i in index)

    def get(self, *index: int) -> Any:
        """
        Element at a full multi-index.

        Raises:
            IndexOutOfBoundsError: If the index has the wrong length or any
                component lies outside its dimension
        """
        index = self._unpack_index(index)
        return self._buffer.read(
            _stride.linear_offset(self._offset, self._stride, index, self._shape)
        )

    def set(self, *args: Any) -> None:
        """
        Store a value at a full multi-index: ``a.set(i, j, value)``.

        Raises:
            ReadOnlyArrayError: If the array is read-only
            IndexOutOfBoundsError: If the index is out of bounds
        """
        if not args:
            raise ValidationError("set: expected an index and a value")
        *index, value = args
        index = self._unpack_index(tuple(index))
        self._check_writable()
        self._buffer.write(
            _stride.linear_offset(self._offset, self._stride, index, self._shape), value
        )

    def item(self, i: int = 0) -> Any:
        """Element at flat index `i` in row-major logical order."""
        return self.get(*_stride.unravel_index(_as_index(i), self._shape))

    def set_item(self, i: int, value: Any) -> None:
        self.set(*_stride.unravel_index(_as_index(i), self._shape), value)

    def values(self) -> Any:
        """
        Dense copy of the elements as the buffer's native array type.

        Returns a numpy.ndarray for host arrays and a torch.Tensor for device
        arrays, shaped like this array.
        """
        return self._buffer.gather(self._positions())

    def to_numpy(self, copy: bool = True) -> np.ndarray:
        """
        Elements as a numpy array.

        With copy=False a zero-copy numpy view is returned when the array is
        on the host; device arrays are always copied.
        """
        if not copy and isinstance(self._buffer, HostBuffer):
            itemsize = self.dtype.itemsize
            data = self._buffer.data
            base = data[self._offset:] if self.size else data[:0]
            view = np.lib.stride_tricks.as_strided(
                base,
                shape=self._shape,
                strides=tuple(s * itemsize for s in self._stride),
                writeable=not self._read_only,
            )
            return view
        return np.array(self._buffer.to_host(self.values()))

    def __array__(self, dtype: Any = None, copy: bool | None = None) -> np.ndarray:
        result = self.to_numpy()
        return result if dtype is None else result.astype(dtype)

    def tolist(self) -> Any:
        return self.to_numpy().tolist()

    def __getitem__(self, key: Any) -> Any:
        if not isinstance(key, tuple):
            key = (key,)
        if len(key) > self.ndim:
            raise IndexOutOfBoundsError(
                f"too many indices: {len(key)} for array of rank {self.ndim}",
                index=len(key),
                bound=self.ndim,
            )
        if len(key) == self.ndim and all(_is_int(k) for k in key):
            return self.get(*key)

        shape, stride, offset = self._shape, self._stride, self._offset
        dim = 0
        for k in key:
            if _is_int(k):
                shape, stride, offset = _stride.slice_dim(shape, stride, offset, dim, _as_index(k))
            elif isinstance(k, (slice, views.Range)):
                start, length, step = views.Range.coerce(k, shape[dim], dim).resolve(shape[dim], dim)
                shape, stride, offset = _stride.select_range(
                    shape, stride, offset, dim, start, length, step
                )
                dim += 1
            else:
                raise ValidationError(
                    f"index: expected int, slice or Range, got {type(k).__name__}"
                )
        return self._derive(shape, stride, offset)

    def __setitem__(self, key: Any, value: Any) -> None:
        target = self[key]
        if isinstance(target, NDArray):
            target.assign(value)
        else:
            self.set(*(key if isinstance(key, tuple) else (key,)), value)

    def __len__(self) -> int:
        if not self._shape:
            raise TypeError("len() of a rank-0 array")
        return self._shape[0]

    def __iter__(self) -> Iterator[Any]:
        for i in range(len(self)):
            yield self[i]

    # ═════════════════════════════════════════════════════════════════════
    # Views
    # ═════════════════════════════════════════════════════════════════════

    def get_view(self, *ranges: views.Range | slice) -> NDArray:
        return views.get_view(self, *ranges)

    def select(self, dim: int, index: int) -> NDArray:
        return views.slice_dim(self, dim, index)

    def select_range(self, dim: int, start: int, length: int, step: int = 1) -> NDArray:
        return views.select_range(self, dim, start, length, step)

    def row(self, i: int) -> NDArray:
        return views.row(self, i)

    def column(self, j: int) -> NDArray:
        return views.column(self, j)

    def diagonal(self) -> NDArray:
        return views.diagonal(self)

    def transpose(self, *permutation: int) -> NDArray:
        if len(permutation) == 1 and isinstance(permutation[0], (tuple, list)):
            permutation = tuple(permutation[0])
        return views.transpose(self, permutation or None)

    @property
    def T(self) -> NDArray:
        return views.transpose(self)

    def reshape(self, *shape: int, copy: bool = False, order: str = 'C') -> NDArray:
        """
        Array with the same elements under a new shape.

        Zero-copy when this array is contiguous in `order`. Otherwise raises
        IllegalReshapeError unless copy=True, in which case the elements are
        first copied into a fresh buffer.
        """
        if len(shape) == 1 and isinstance(shape[0], (tuple, list)):
            shape = tuple(shape[0])
        return views.reshape(self, shape, order=order, copy=copy)

    def ravel(self, copy: bool = True) -> NDArray:
        """Flatten to 1-D in row-major order."""
        return self.reshape(-1, copy=copy)

    def broadcast_to(self, shape: Sequence[int]) -> NDArray:
        return views.broadcast_to(self, shape)

    def as_read_only(self) -> NDArray:
        """Read-only view of the same elements."""
        return self._derive(self._shape, self._stride, self._offset, read_only=True)

    # ═════════════════════════════════════════════════════════════════════
    # Vectors
    # ═════════════════════════════════════════════════════════════════════

    def vectors(self, dim: int) -> int:
        """Number of 1-D vectors along `dim`: size / shape[dim] (0 if empty)."""
        _stride.check_dim(dim, self.ndim)
        extent = self._shape[dim]
        return self.size // extent if extent else 0

    def get_vector(self, dim: int, i: int) -> NDArray:
        """
        The i-th 1-D view along `dim`.

        The other dimensions are fixed at the row-major multi-index `i` of
        the remaining shape, so i in [0, vectors(dim)) visits every element
        exactly once.
        """
        _stride.check_dim(dim, self.ndim)
        count = self.vectors(dim)
        _stride.check_index(i, count, dim)
        rest_shape = _stride.remove_dim(self._shape, dim)
        rest_stride = _stride.remove_dim(self._stride, dim)
        offset = self._offset
        for idx, step in zip(_stride.unravel_index(i, rest_shape), rest_stride):
            offset += idx * step
        return self._derive((self._shape[dim],), (self._stride[dim],), offset)

    def iter_vectors(self, dim: int) -> VectorIterator:
        return VectorIterator(self, dim)

    def reduce_vectors(
        self,
        dim: int,
        reducer: Callable[[NDArray], Any],
        initial: Any = None,
        kind: ElementKind | str | None = None,
    ) -> NDArray:
        """Reduce every vector along `dim` to one element of a rank-reduced array."""
        return VectorIterator(self, dim).reduce(reducer, initial, kind)

    # ═════════════════════════════════════════════════════════════════════
    # Copy, assign and map
    # ═════════════════════════════════════════════════════════════════════

    def copy(self, order: str = 'C') -> NDArray:
        """Independent contiguous copy in `order` on the same device."""
        buffer = self._buffer.from_native(self.values(), order)
        return NDArray(buffer, self._shape, order=order)

    def assign(self, other: Any, fn: Callable[[Any], Any] | None = None) -> NDArray:
        """
        Overwrite every element from `other`, optionally transformed by `fn`.

        Args:
            other: NDArray, dense numpy/torch array or nested sequence of
                identical shape, or a scalar broadcast to every element
            fn: Elementwise transform applied to the source values

        Returns:
            self

        Raises:
            ReadOnlyArrayError: If this array is read-only
            ShapeMismatchError: If `other` is an array of a different shape
        """
        self._check_writable()
        if not isinstance(other, NDArray) and not hasattr(other, 'shape') and np.ndim(other) > 0:
            other = np.asarray(other, dtype=self.dtype)
        if isinstance(other, NDArray):
            if other._shape != self._shape:
                raise ShapeMismatchError(
                    f"assign: source shape {other._shape} does not match {self._shape}",
                    expected=self._shape,
                    actual=other._shape,
                    operation='assign',
                )
            # gather() copies, so overlapping views are read before writing
            values = other.values()
            if other.device != self.device:
                values = other._buffer.to_host(values)
        elif hasattr(other, 'shape') and tuple(other.shape) != ():
            if tuple(other.shape) != self._shape:
                raise ShapeMismatchError(
                    f"assign: source shape {tuple(other.shape)} does not match {self._shape}",
                    expected=self._shape,
                    actual=tuple(other.shape),
                    operation='assign',
                )
            values = other
        else:
            values = other.item() if hasattr(other, 'item') else other
            if fn is not None:
                values = fn(values)
            self._buffer.scatter(self._positions(), values)
            return self

        if fn is not None:
            values = _apply(fn, _host(values), self.dtype)
        self._buffer.scatter(self._positions(), self._buffer.native(values))
        return self

    def map(self, fn: Callable[[Any], Any], kind: ElementKind | str | None = None) -> NDArray:
        """New array (same device) with `fn` applied to every element."""
        kind = self.kind if kind is None else ElementKind.parse(kind)
        host = self._buffer.to_host(self.values())
        result = self._allocate(self._shape, kind)
        result._buffer.scatter(result._positions(), result._buffer.native(_apply(fn, host, kind.dtype)))
        return result

    def astype(self, kind: ElementKind | str) -> NDArray:
        """Copy converted to another element kind."""
        kind = ElementKind.parse(kind)
        host = self._buffer.to_host(self.values())
        result = self._allocate(self._shape, kind)
        result._buffer.scatter(result._positions(), result._buffer.native(host.astype(kind.dtype)))
        return result

    def to_device(self, device: str) -> NDArray:
        """Copy onto another device ('cpu', 'cuda:N', 'mps:0')."""
        host = self.to_numpy()
        if device == 'cpu':
            buffer: Buffer = HostBuffer(host.reshape(-1), self.kind)
        else:
            buffer = DeviceBuffer.from_numpy(host, device, self.kind)
        return NDArray(buffer, self._shape)

    def fill(self, value: Any) -> NDArray:
        return self.assign(value)

    def equals(self, other: Any) -> bool:
        """Same shape and equal elements (devices may differ)."""
        if not isinstance(other, NDArray) or other._shape != self._shape:
            return False
        return bool(np.array_equal(self.to_numpy(), other.to_numpy()))

    def __repr__(self) -> str:
        body = np.array2string(self.to_numpy(), separator=', ', prefix='       ')
        return f"NDArray({body}, kind={self.kind.value}, device={self.device})"


def _is_int(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


def _as_index(value: Any) -> int:
    if not _is_int(value):
        raise ValidationError(f"index: expected an integer, got {value!r}")
    return int(value)


def _host(values: Any) -> np.ndarray:
    if is_tensor(values):
        return values.detach().cpu().numpy()
    return np.asarray(values)


def _apply(fn: Callable[[Any], Any], values: np.ndarray, dtype: np.dtype) -> np.ndarray:
    out = np.frompyfunc(fn, 1, 1)(values)
    return np.asarray(out, dtype=object).astype(dtype)
