"""
Shape and stride arithmetic.

Pure functions over (offset, shape, stride) tuples. Nothing here touches a
buffer: every view operation in pystrided is first computed here and then
bound to the shared buffer by the view engine.

Conventions:
    - Shapes and strides are tuples of Python ints
    - Strides are in elements, not bytes
    - Indices are never wrapped: a negative index is out of bounds
"""

from __future__ import annotations

from typing import Sequence

from pystrided.core.exceptions import (
    IllegalReshapeError,
    IndexOutOfBoundsError,
    ShapeMismatchError,
    ValidationError,
)

Shape = tuple[int, ...]
Stride = tuple[int, ...]


def normalize_shape(shape: int | Sequence[int]) -> Shape:
    """Coerce an int or sequence of ints into a shape tuple."""
    if isinstance(shape, int):
        shape = (shape,)
    result = tuple(int(s) for s in shape)
    for d, extent in enumerate(result):
        if extent < 0:
            raise ValidationError(f"shape: negative extent {extent} in dimension {d}")
    return result


def size_of(shape: Sequence[int]) -> int:
    """Number of elements of an array with the given shape (1 for rank 0)."""
    size = 1
    for extent in shape:
        size *= extent
    return size


def default_stride(shape: Sequence[int], order: str = 'C') -> Stride:
    """
    Stride of a freshly allocated contiguous buffer.

    Args:
        shape: Array shape
        order: 'C' (row-major, last index fastest) or
               'F' (column-major, first index fastest)

    Returns:
        Stride tuple in elements
    """
    rank = len(shape)
    stride = [0] * rank
    step = 1
    if order == 'C':
        for d in range(rank - 1, -1, -1):
            stride[d] = step
            step *= max(shape[d], 1)
    elif order == 'F':
        for d in range(rank):
            stride[d] = step
            step *= max(shape[d], 1)
    else:
        raise ValidationError(f"order: expected 'C' or 'F', got {order!r}")
    return tuple(stride)


def check_dim(dim: int, rank: int) -> int:
    """Validate a dimension number against a rank."""
    if not 0 <= dim < rank:
        raise IndexOutOfBoundsError(
            f"dimension {dim} out of bounds for array of rank {rank}",
            index=dim,
            bound=rank,
        )
    return dim


def check_index(index: int, extent: int, dim: int) -> int:
    """Validate a single index against the extent of dimension `dim`."""
    if not 0 <= index < extent:
        raise IndexOutOfBoundsError(
            f"index {index} is out of bounds for dimension {dim} with size {extent}",
            index=index,
            bound=extent,
            dim=dim,
        )
    return index


def linear_offset(
    offset: int,
    stride: Sequence[int],
    index: Sequence[int],
    shape: Sequence[int],
) -> int:
    """
    Buffer position of a multi-index: offset + sum(index[d] * stride[d]).

    Raises:
        IndexOutOfBoundsError: If the index has the wrong length or any
            component lies outside [0, shape[d])
    """
    if len(index) != len(shape):
        raise IndexOutOfBoundsError(
            f"expected {len(shape)} indices, got {len(index)}",
            index=len(index),
            bound=len(shape),
        )
    position = offset
    for d, (i, extent) in enumerate(zip(index, shape)):
        check_index(i, extent, d)
        position += i * stride[d]
    return position


def is_contiguous(
    shape: Sequence[int],
    stride: Sequence[int],
    order: str | None = None,
) -> bool:
    """
    True iff stride equals default_stride(shape, order).

    With order=None, either layout qualifies. Dimensions of extent 1 never
    contribute an element step, so their stride is ignored; empty arrays are
    trivially contiguous.
    """
    if size_of(shape) == 0:
        return True
    orders = ('C', 'F') if order is None else (order,)
    for candidate in orders:
        expected = default_stride(shape, candidate)
        if all(extent == 1 or s == e for extent, s, e in zip(shape, stride, expected)):
            return True
    return False


def invert_permutation(permutation: Sequence[int]) -> tuple[int, ...]:
    """Inverse permutation: inv[p[d]] = d."""
    inverse = [0] * len(permutation)
    for d, p in enumerate(permutation):
        inverse[p] = d
    return tuple(inverse)


def transpose(
    shape: Sequence[int],
    stride: Sequence[int],
    permutation: Sequence[int] | None = None,
) -> tuple[Shape, Stride]:
    """
    Permute shape and stride. Reverses all dimensions by default.

    Raises:
        ValidationError: If permutation is not a permutation of range(rank)
    """
    rank = len(shape)
    if permutation is None:
        permutation = tuple(range(rank - 1, -1, -1))
    permutation = tuple(int(p) for p in permutation)
    if sorted(permutation) != list(range(rank)):
        raise ValidationError(
            f"permutation: {permutation} is not a permutation of {tuple(range(rank))}"
        )
    return (
        tuple(shape[p] for p in permutation),
        tuple(stride[p] for p in permutation),
    )


def remove_dim(values: Sequence[int], dim: int) -> tuple[int, ...]:
    """Drop entry `dim` from a shape or stride."""
    return tuple(values[:dim]) + tuple(values[dim + 1:])


def slice_dim(
    shape: Sequence[int],
    stride: Sequence[int],
    offset: int,
    dim: int,
    index: int,
) -> tuple[Shape, Stride, int]:
    """
    Fix dimension `dim` at `index`, reducing the rank by one.

    Returns:
        (shape, stride, offset) of the rank-reduced view
    """
    check_dim(dim, len(shape))
    check_index(index, shape[dim], dim)
    return (
        remove_dim(shape, dim),
        remove_dim(stride, dim),
        offset + index * stride[dim],
    )


def select_range(
    shape: Sequence[int],
    stride: Sequence[int],
    offset: int,
    dim: int,
    start: int,
    length: int,
    step: int = 1,
) -> tuple[Shape, Stride, int]:
    """
    Restrict dimension `dim` to `length` elements starting at `start`.

    Returns:
        (shape, stride, offset) of the view

    Raises:
        ValidationError: For a non-positive step or negative length
        IndexOutOfBoundsError: If the selected range exceeds the dimension
    """
    check_dim(dim, len(shape))
    if step <= 0:
        raise ValidationError(f"step: must be positive, got {step}")
    if length < 0:
        raise ValidationError(f"length: must be non-negative, got {length}")
    extent = shape[dim]
    if length > 0:
        last = start + (length - 1) * step
        if start < 0 or last >= extent:
            raise IndexOutOfBoundsError(
                f"range [{start}:{last + 1}:{step}] exceeds dimension {dim} with size {extent}",
                index=last if start >= 0 else start,
                bound=extent,
                dim=dim,
            )
    elif not 0 <= start <= extent:
        raise IndexOutOfBoundsError(
            f"range start {start} exceeds dimension {dim} with size {extent}",
            index=start,
            bound=extent,
            dim=dim,
        )
    new_shape = list(shape)
    new_stride = list(stride)
    new_shape[dim] = length
    new_stride[dim] = stride[dim] * step
    return tuple(new_shape), tuple(new_stride), offset + start * stride[dim]


def infer_shape(size: int, new_shape: Sequence[int]) -> Shape:
    """
    Resolve at most one -1 entry in `new_shape` so that it holds `size` elements.

    Raises:
        ShapeMismatchError: If the sizes cannot match
    """
    new_shape = tuple(int(s) for s in new_shape)
    unknown = [d for d, s in enumerate(new_shape) if s == -1]
    if len(unknown) > 1:
        raise ValidationError(f"shape: only one dimension can be -1, got {new_shape}")
    if any(s < -1 for s in new_shape):
        raise ValidationError(f"shape: negative extent in {new_shape}")
    if unknown:
        known = size_of(s for s in new_shape if s != -1)
        if known == 0 or size % known != 0:
            raise ShapeMismatchError(
                f"cannot reshape array of size {size} into shape {new_shape}",
                actual=new_shape,
                operation='reshape',
            )
        resolved = list(new_shape)
        resolved[unknown[0]] = size // known
        new_shape = tuple(resolved)
    if size_of(new_shape) != size:
        raise ShapeMismatchError(
            f"total size of new array must be unchanged ({size} != {size_of(new_shape)})",
            actual=new_shape,
            operation='reshape',
        )
    return new_shape


def reshape(
    shape: Sequence[int],
    stride: Sequence[int],
    new_shape: Sequence[int],
    order: str = 'C',
) -> tuple[Shape, Stride]:
    """
    Stride for viewing a contiguous array under a new shape.

    Elements are read in `order` on both sides, so the reshape is zero-copy
    exactly when the source is contiguous in that order.

    Returns:
        (new_shape, new_stride) with -1 resolved

    Raises:
        ShapeMismatchError: If the sizes differ
        IllegalReshapeError: If the source is not contiguous in `order`
    """
    resolved = infer_shape(size_of(shape), new_shape)
    if not is_contiguous(shape, stride, order):
        raise IllegalReshapeError(
            f"cannot reshape non-contiguous view of shape {tuple(shape)} "
            f"(stride {tuple(stride)}) to {resolved} without a copy",
            shape=tuple(shape),
            new_shape=resolved,
        )
    return resolved, default_stride(resolved, order)


def broadcast_stride(
    shape: Sequence[int],
    stride: Sequence[int],
    new_shape: Sequence[int],
) -> Stride:
    """
    Stride that presents `shape` as `new_shape` by repeating extent-1 dimensions.

    Shapes are aligned on their trailing dimensions; broadcast dimensions get
    stride 0.

    Raises:
        ShapeMismatchError: If the shapes are not broadcast compatible
    """
    if len(new_shape) < len(shape):
        raise ShapeMismatchError(
            f"cannot broadcast shape {tuple(shape)} to lower rank {tuple(new_shape)}",
            expected=tuple(new_shape),
            actual=tuple(shape),
            operation='broadcast',
        )
    lead = len(new_shape) - len(shape)
    new_stride = [0] * len(new_shape)
    for d in range(len(shape)):
        extent = shape[d]
        target = new_shape[lead + d]
        if extent == target:
            new_stride[lead + d] = stride[d]
        elif extent != 1:
            raise ShapeMismatchError(
                f"cannot broadcast shape {tuple(shape)} to {tuple(new_shape)}",
                expected=tuple(new_shape),
                actual=tuple(shape),
                operation='broadcast',
            )
    return tuple(new_stride)


def unravel_index(index: int, shape: Sequence[int]) -> tuple[int, ...]:
    """Row-major multi-index of the `index`-th element of `shape`."""
    if not 0 <= index < size_of(shape):
        raise IndexOutOfBoundsError(
            f"flat index {index} is out of bounds for shape {tuple(shape)}",
            index=index,
            bound=size_of(shape),
        )
    coords = [0] * len(shape)
    for d in range(len(shape) - 1, -1, -1):
        extent = shape[d]
        coords[d] = index % extent
        index //= extent
    return tuple(coords)


def position_extent(
    offset: int,
    shape: Sequence[int],
    stride: Sequence[int],
) -> tuple[int, int] | None:
    """
    Smallest and largest buffer positions touched by a view.

    Returns:
        (low, high) inclusive, or None for an empty view
    """
    if size_of(shape) == 0:
        return None
    low = high = offset
    for extent, s in zip(shape, stride):
        span = (extent - 1) * s
        if span < 0:
            low += span
        else:
            high += span
    return low, high
