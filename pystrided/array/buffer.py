"""
Flat element storage shared by arrays and their views.

A Buffer is a 1-D contiguous store of one element kind. Arrays never own
elements directly; they hold a buffer plus (offset, shape, stride), and every
view of an array holds the same buffer object.

Two implementations:
    HostBuffer: wraps a 1-D numpy.ndarray, reclaimed by garbage collection
    DeviceBuffer: wraps a 1-D torch.Tensor on a CUDA/MPS device and is
        released explicitly (release(), ``with buffer:`` or a DeviceScope)

Element access is vectorized: callers pass an integer array of buffer
positions (shaped like the view) and receive a dense array of the same shape
in the buffer's native array type (numpy or torch).
"""

from __future__ import annotations

import threading
import weakref
from typing import Any

import numpy as np

from pystrided.array._kinds import ElementKind
from pystrided.core.exceptions import (
    BufferReleasedError,
    UnsupportedBackendOperationError,
    ValidationError,
)


class Buffer:
    """
    Base class for flat storage.

    Subclasses implement the native-array hooks; everything an NDArray needs
    is expressed through gather/scatter on integer position arrays.
    """

    kind: ElementKind

    @property
    def device(self) -> str:
        """Device string: 'cpu', 'cuda:N' or 'mps'."""
        raise NotImplementedError

    @property
    def is_host(self) -> bool:
        return self.device == 'cpu'

    @property
    def released(self) -> bool:
        return False

    def __len__(self) -> int:
        raise NotImplementedError

    def gather(self, positions: np.ndarray) -> Any:
        """Read the elements at `positions`; result has positions.shape."""
        raise NotImplementedError

    def scatter(self, positions: np.ndarray, values: Any) -> None:
        """Write `values` (native array or scalar) to `positions`."""
        raise NotImplementedError

    def read(self, position: int) -> Any:
        """Read one element as a Python/NumPy scalar."""
        raise NotImplementedError

    def write(self, position: int, value: Any) -> None:
        raise NotImplementedError

    def native(self, values: Any) -> Any:
        """Convert array-like `values` to this buffer's native array type and dtype."""
        raise NotImplementedError

    def to_host(self, values: Any) -> np.ndarray:
        """Convert a native array produced by gather() to a numpy array."""
        raise NotImplementedError

    def from_native(self, values: Any, order: str = 'C') -> Buffer:
        """New buffer on the same device holding `values` flattened in `order`."""
        raise NotImplementedError

    def allocate(self, size: int, kind: ElementKind | None = None) -> Buffer:
        """New zero-filled buffer on the same device."""
        raise NotImplementedError

    def to_numpy(self) -> np.ndarray:
        """The whole buffer as a 1-D numpy array (a view for host buffers)."""
        raise NotImplementedError


class HostBuffer(Buffer):
    """
    Host storage backed by a 1-D numpy array.

    Args:
        data: 1-D array-like
        kind: Element kind; inferred from data's dtype when None
    """

    def __init__(self, data: Any, kind: ElementKind | str | None = None):
        data = np.asarray(data)
        if data.ndim != 1:
            raise ValidationError(
                f"data: buffer storage must be 1-D, got shape {data.shape}"
            )
        self.kind = ElementKind.from_dtype(data.dtype) if kind is None else ElementKind.parse(kind)
        self._data = data.astype(self.kind.dtype, copy=False)

    @classmethod
    def allocate_new(cls, size: int, kind: ElementKind | str = ElementKind.DOUBLE) -> HostBuffer:
        kind = ElementKind.parse(kind)
        data = np.empty(size, dtype=kind.dtype)
        data[...] = kind.zero()
        return cls(data, kind)

    @property
    def device(self) -> str:
        return 'cpu'

    @property
    def data(self) -> np.ndarray:
        """The underlying numpy storage."""
        return self._data

    def __len__(self) -> int:
        return self._data.shape[0]

    def gather(self, positions: np.ndarray) -> np.ndarray:
        return self._data[positions]

    def scatter(self, positions: np.ndarray, values: Any) -> None:
        self._data[positions] = values

    def read(self, position: int) -> Any:
        return self._data[position]

    def write(self, position: int, value: Any) -> None:
        self._data[position] = value

    def native(self, values: Any) -> np.ndarray:
        if is_tensor(values):
            values = values.detach().cpu().numpy()
        return np.asarray(values).astype(self.kind.dtype, copy=False)

    def to_host(self, values: Any) -> np.ndarray:
        return np.asarray(values)

    def from_native(self, values: Any, order: str = 'C') -> HostBuffer:
        return HostBuffer(np.asarray(values).ravel(order=order).copy())

    def allocate(self, size: int, kind: ElementKind | None = None) -> HostBuffer:
        return HostBuffer.allocate_new(size, kind or self.kind)

    def to_numpy(self) -> np.ndarray:
        return self._data

    def __repr__(self) -> str:
        return f"HostBuffer(kind={self.kind.value}, size={len(self)})"


class DeviceBuffer(Buffer):
    """
    Device storage backed by a 1-D torch tensor.

    The memory is released exactly once: by release(), by leaving a
    ``with`` block or an enclosing DeviceScope, or by garbage collection as a
    last resort. Any access after release raises BufferReleasedError.

    Args:
        tensor: 1-D torch tensor (already on the target device)
        kind: Element kind; inferred from the tensor dtype when None
    """

    def __init__(self, tensor: Any, kind: ElementKind | str | None = None):
        if tensor.dim() != 1:
            raise ValidationError(
                f"tensor: buffer storage must be 1-D, got shape {tuple(tensor.shape)}"
            )
        if kind is None:
            kind = ElementKind.from_dtype(_numpy_dtype_of(tensor))
        self.kind = ElementKind.parse(kind)
        self._tensor = tensor
        self._device = str(tensor.device)
        self._size = int(tensor.shape[0])
        self._lock = threading.Lock()
        self._finalizer = weakref.finalize(self, _drop_cache, self._device)

    @classmethod
    def from_numpy(cls, data: Any, device: str, kind: ElementKind | str | None = None) -> DeviceBuffer:
        """Copy host data into a new buffer on `device`."""
        import torch

        data = np.asarray(data)
        kind = ElementKind.from_dtype(data.dtype) if kind is None else ElementKind.parse(kind)
        dtype = torch_dtype(kind, device)
        tensor = torch.as_tensor(data.reshape(-1).astype(kind.dtype), device=device).to(dtype)
        return cls(tensor, kind)

    @classmethod
    def allocate_new(cls, size: int, kind: ElementKind | str, device: str) -> DeviceBuffer:
        import torch

        kind = ElementKind.parse(kind)
        return cls(torch.zeros(size, dtype=torch_dtype(kind, device), device=device), kind)

    @property
    def device(self) -> str:
        return self._device

    @property
    def released(self) -> bool:
        return self._tensor is None

    @property
    def tensor(self) -> Any:
        """The underlying torch storage."""
        return self._live()

    def _live(self) -> Any:
        tensor = self._tensor
        if tensor is None:
            raise BufferReleasedError(
                f"device buffer on {self._device} was released and cannot be accessed"
            )
        return tensor

    def release(self) -> None:
        """Free the device memory. Idempotent."""
        with self._lock:
            if self._tensor is None:
                return
            self._tensor = None
        self._finalizer()

    def __enter__(self) -> DeviceBuffer:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __len__(self) -> int:
        return self._size

    def _index(self, positions: np.ndarray) -> Any:
        import torch
        return torch.as_tensor(np.asarray(positions, dtype=np.int64), device=self._device)

    def gather(self, positions: np.ndarray) -> Any:
        tensor = self._live()
        return tensor[self._index(positions)]

    def scatter(self, positions: np.ndarray, values: Any) -> None:
        tensor = self._live()
        if is_tensor(values):
            values = values.to(device=tensor.device, dtype=tensor.dtype)
        elif not np.isscalar(values):
            values = self.native(values)
        tensor[self._index(positions)] = values

    def read(self, position: int) -> Any:
        return self._live()[position].item()

    def write(self, position: int, value: Any) -> None:
        self._live()[position] = value

    def native(self, values: Any) -> Any:
        import torch

        tensor = self._live()
        if is_tensor(values):
            return values.to(device=tensor.device, dtype=tensor.dtype)
        values = np.asarray(values).astype(self.kind.dtype, copy=False)
        return torch.as_tensor(values, device=tensor.device).to(tensor.dtype)

    def to_host(self, values: Any) -> np.ndarray:
        return values.detach().cpu().numpy()

    def from_native(self, values: Any, order: str = 'C') -> DeviceBuffer:
        self._live()
        values = values.to(self._device) if is_tensor(values) else self.native(values)
        if order == 'F':
            values = values.permute(*reversed(range(values.dim())))
        return DeviceBuffer(values.reshape(-1).clone())

    def allocate(self, size: int, kind: ElementKind | None = None) -> DeviceBuffer:
        self._live()
        return DeviceBuffer.allocate_new(size, kind or self.kind, self._device)

    def to_numpy(self) -> np.ndarray:
        return self._live().detach().cpu().numpy()

    def __repr__(self) -> str:
        state = 'released' if self.released else f"size={self._size}"
        return f"DeviceBuffer(kind={self.kind.value}, device={self._device}, {state})"


class DeviceScope:
    """
    Scoped acquisition of device buffers.

    Every buffer allocated through (or adopted by) the scope is released when
    the ``with`` block exits, whether normally or by an exception.

    Usage:
        with DeviceScope('cuda:0') as scope:
            buf = scope.allocate(1024, ElementKind.DOUBLE)
            ...
        buf.released  # True
    """

    def __init__(self, device: str):
        self.device = device
        self._buffers: list[DeviceBuffer] = []
        self._closed = False

    def allocate(self, size: int, kind: ElementKind | str = ElementKind.DOUBLE) -> DeviceBuffer:
        return self.adopt(DeviceBuffer.allocate_new(size, kind, self.device))

    def from_numpy(self, data: Any, kind: ElementKind | str | None = None) -> DeviceBuffer:
        return self.adopt(DeviceBuffer.from_numpy(data, self.device, kind))

    def adopt(self, buffer: DeviceBuffer) -> DeviceBuffer:
        """Register an existing buffer for release at scope exit."""
        if self._closed:
            raise BufferReleasedError("device scope is already closed")
        self._buffers.append(buffer)
        return buffer

    def release_all(self) -> None:
        buffers, self._buffers = self._buffers, []
        for buffer in buffers:
            buffer.release()
        self._closed = True

    def __len__(self) -> int:
        return len(self._buffers)

    def __enter__(self) -> DeviceScope:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release_all()


def torch_dtype(kind: ElementKind, device: str) -> Any:
    """Torch dtype used for `kind` on `device` (MPS has no double precision)."""
    import torch

    if kind is ElementKind.GENERIC:
        raise UnsupportedBackendOperationError(
            "generic (object) elements cannot live on a device",
            backend=device,
            kind=kind.value,
        )
    single = device.startswith('mps')
    return {
        ElementKind.DOUBLE: torch.float32 if single else torch.float64,
        ElementKind.INT: torch.int32,
        ElementKind.LONG: torch.int64,
        ElementKind.BOOLEAN: torch.bool,
        ElementKind.COMPLEX: torch.complex64 if single else torch.complex128,
    }[kind]


def is_tensor(value: Any) -> bool:
    return type(value).__module__.startswith('torch') and hasattr(value, 'detach')


def _numpy_dtype_of(tensor: Any) -> np.dtype:
    import torch
    return torch.empty(0, dtype=tensor.dtype).numpy().dtype


def _drop_cache(device: str) -> None:
    # Runs from a finalizer: a missing torch or a torn-down CUDA context is
    # not an error here.
    try:
        import torch
        if device.startswith('cuda') and torch.cuda.is_available():
            torch.cuda.empty_cache()
    except (ImportError, RuntimeError):
        pass
