"""
Iteration over the 1-D vectors of an array along one dimension.

A VectorIterator is a finite, restartable sequence: len(), indexing and
repeated iteration all walk views of the same array, so a reduction can be
evaluated any number of times.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterator

from pystrided.array import _stride
from pystrided.array._kinds import ElementKind
from pystrided.core.exceptions import ValidationError

if TYPE_CHECKING:
    from pystrided.array.ndarray import NDArray


class VectorIterator:
    """
    The vectors of `array` along `dim`.

    Vector i fixes every other dimension at the row-major multi-index i of
    the remaining shape (see NDArray.get_vector).

    Usage:
        rows = VectorIterator(a, 1)   # each item is a row of a matrix
        sums = rows.reduce(lambda v: sum(v.tolist()))
    """

    def __init__(self, array: NDArray, dim: int):
        _stride.check_dim(dim, array.ndim)
        self._array = array
        self._dim = dim

    @property
    def array(self) -> NDArray:
        return self._array

    @property
    def dim(self) -> int:
        return self._dim

    def __len__(self) -> int:
        return self._array.vectors(self._dim)

    def __getitem__(self, i: int) -> NDArray:
        return self._array.get_vector(self._dim, i)

    def __iter__(self) -> Iterator[NDArray]:
        for i in range(len(self)):
            yield self._array.get_vector(self._dim, i)

    def reduce(
        self,
        reducer: Callable[[NDArray], Any],
        initial: Any = None,
        kind: ElementKind | str | None = None,
    ) -> NDArray:
        """
        Reduce each vector to one element of a rank-reduced array.

        Args:
            reducer: f(vector) -> value, called once per vector
            initial: Value of every output element when the vectors are
                empty (shape[dim] == 0)
            kind: Element kind of the result (defaults to the source kind)

        Returns:
            Array of shape ``shape`` with ``dim`` removed, on the same device

        Raises:
            ValidationError: If the vectors are empty, the result is not,
                and no initial value was given
        """
        out_shape = _stride.remove_dim(self._array.shape, self._dim)
        kind = self._array.kind if kind is None else ElementKind.parse(kind)
        result = self._array._allocate(out_shape, kind)
        if len(self) == 0:
            if result.size:
                if initial is None:
                    raise ValidationError(
                        f"reduce: vectors along dimension {self._dim} are empty "
                        f"and no initial value was given"
                    )
                result.fill(initial)
            return result
        for i, vector in enumerate(self):
            result.set_item(i, reducer(vector))
        return result

    def __repr__(self) -> str:
        return f"VectorIterator(shape={self._array.shape}, dim={self._dim}, count={len(self)})"
