"""
View engine: zero-copy derivation of arrays from arrays.

Every function here computes a new (shape, stride, offset) with the pure
arithmetic in pystrided.array._stride and binds it to the SAME buffer as
its input. Writes through any view are visible through every other view of
that buffer. The only exception is reshape(..., copy=True) on a
non-contiguous input, which is an explicit request to allocate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from pystrided.array import _stride
from pystrided.core.exceptions import IndexOutOfBoundsError, ValidationError
from pystrided.core.validation import check_2d

if TYPE_CHECKING:
    from pystrided.array.ndarray import NDArray


@dataclass(frozen=True)
class Range:
    """
    Half-open index range [start, stop) with a positive step.

    A stop of None means "to the end of the dimension".
    """
    start: int = 0
    stop: int | None = None
    step: int = 1

    @classmethod
    def from_slice(cls, s: slice, extent: int, dim: int = 0) -> Range:
        """
        Convert a Python slice. Bounds past the end are clamped to `extent`;
        negative bounds are rejected, as for element indices.

        Raises:
            ValidationError: If the slice has a non-positive step
            IndexOutOfBoundsError: If start or stop is negative
        """
        if s.step is not None and s.step <= 0:
            raise ValidationError(f"step: must be positive, got {s.step}")
        for bound in (s.start, s.stop):
            if bound is not None and bound < 0:
                raise IndexOutOfBoundsError(
                    f"slice bound {bound} is out of bounds for dimension {dim} "
                    f"with size {extent}; negative indices are not wrapped",
                    index=bound,
                    bound=extent,
                    dim=dim,
                )
        start, stop, step = s.indices(extent)
        return cls(start, max(stop, start), step)

    @classmethod
    def coerce(cls, value: Range | slice, extent: int, dim: int = 0) -> Range:
        if isinstance(value, Range):
            return value
        if isinstance(value, slice):
            return cls.from_slice(value, extent, dim)
        raise ValidationError(
            f"range: expected Range or slice, got {type(value).__name__}"
        )

    def resolve(self, extent: int, dim: int = 0) -> tuple[int, int, int]:
        """
        (start, length, step) of this range within a dimension of `extent`.

        Raises:
            ValidationError: For a non-positive step
            IndexOutOfBoundsError: If the range leaves [0, extent]
        """
        if self.step <= 0:
            raise ValidationError(f"step: must be positive, got {self.step}")
        stop = extent if self.stop is None else self.stop
        if self.start < 0 or stop > extent or stop < self.start:
            raise IndexOutOfBoundsError(
                f"range [{self.start}:{stop}] is out of bounds for dimension {dim} "
                f"with size {extent}",
                index=self.start if self.start < 0 else stop,
                bound=extent,
                dim=dim,
            )
        length = -(-(stop - self.start) // self.step)
        return self.start, length, self.step


def transpose(array: NDArray, permutation: Sequence[int] | None = None) -> NDArray:
    """Permute dimensions (reverse them when no permutation is given)."""
    shape, stride = _stride.transpose(array.shape, array.stride, permutation)
    return array._derive(shape, stride, array.offset)


def slice_dim(array: NDArray, dim: int, index: int) -> NDArray:
    """Fix `dim` at `index`; the result has rank one lower."""
    shape, stride, offset = _stride.slice_dim(
        array.shape, array.stride, array.offset, dim, index
    )
    return array._derive(shape, stride, offset)


def select_range(
    array: NDArray,
    dim: int,
    start: int,
    length: int,
    step: int = 1,
) -> NDArray:
    """Restrict `dim` to `length` elements from `start` every `step`."""
    shape, stride, offset = _stride.select_range(
        array.shape, array.stride, array.offset, dim, start, length, step
    )
    return array._derive(shape, stride, offset)


def get_view(array: NDArray, *ranges: Range | slice) -> NDArray:
    """
    Apply one range per leading dimension; trailing dimensions are kept whole.

    Raises:
        IndexOutOfBoundsError: If more ranges than dimensions are given
    """
    if len(ranges) > array.ndim:
        raise IndexOutOfBoundsError(
            f"too many ranges: {len(ranges)} for array of rank {array.ndim}",
            index=len(ranges),
            bound=array.ndim,
        )
    shape, stride, offset = array.shape, array.stride, array.offset
    for dim, value in enumerate(ranges):
        start, length, step = Range.coerce(value, shape[dim], dim).resolve(shape[dim], dim)
        shape, stride, offset = _stride.select_range(
            shape, stride, offset, dim, start, length, step
        )
    return array._derive(shape, stride, offset)


def reshape(
    array: NDArray,
    new_shape: Sequence[int],
    order: str = 'C',
    copy: bool = False,
) -> NDArray:
    """
    View `array` under a new shape.

    Args:
        array: Source array
        new_shape: Target shape; one entry may be -1
        order: Element order used to read and place elements ('C' or 'F')
        copy: Allow a copy when the source is not contiguous in `order`

    Raises:
        ShapeMismatchError: If the sizes differ
        IllegalReshapeError: If a copy would be needed and copy is False
    """
    source = array
    if copy and not _stride.is_contiguous(array.shape, array.stride, order):
        source = array.copy(order=order)
    shape, stride = _stride.reshape(source.shape, source.stride, new_shape, order)
    return source._derive(shape, stride, source.offset)


def diagonal(array: NDArray) -> NDArray:
    """Main diagonal of a matrix as a 1-D view."""
    check_2d(array, 'diagonal')
    m, n = array.shape
    return array._derive((min(m, n),), (array.stride[0] + array.stride[1],), array.offset)


def row(array: NDArray, i: int) -> NDArray:
    check_2d(array, 'row')
    return slice_dim(array, 0, i)


def column(array: NDArray, j: int) -> NDArray:
    check_2d(array, 'column')
    return slice_dim(array, 1, j)


def broadcast_to(array: NDArray, shape: Sequence[int]) -> NDArray:
    """
    Read-only view repeating extent-1 dimensions to `shape`.

    Broadcast dimensions have stride 0, so several indices address one
    element; the view is therefore never writable.
    """
    shape = _stride.normalize_shape(shape)
    stride = _stride.broadcast_stride(array.shape, array.stride, shape)
    return array._derive(shape, stride, array.offset, read_only=True)
