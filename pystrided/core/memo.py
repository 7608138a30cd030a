"""
Explicit memoization cell for lazily derived quantities.

Decomposition results expose derived values (determinant, inverse,
triangular factors) that are computed on first access and cached. A
sentinel such as NaN or None cannot tell "not computed yet" apart from a
legitimate value, so the cell carries its own computed flag.
"""

from typing import Callable, Generic, TypeVar

T = TypeVar('T')


class Memo(Generic[T]):
    """
    Compute-once cell.

    Usage:
        det = Memo(self._compute_determinant)
        det.get()       # computes
        det.get()       # cached
        det.computed    # True

    If the compute function raises, nothing is cached and the exception
    propagates; the next get() retries the computation.
    """

    __slots__ = ('_compute', '_computed', '_value')

    def __init__(self, compute: Callable[[], T]):
        self._compute = compute
        self._computed = False
        self._value: T | None = None

    @property
    def computed(self) -> bool:
        """True once a value has been computed and cached."""
        return self._computed

    def get(self) -> T:
        if not self._computed:
            self._value = self._compute()
            self._computed = True
        return self._value  # type: ignore[return-value]

    def __repr__(self) -> str:
        if self._computed:
            return f"Memo({self._value!r})"
        return "Memo(<not computed>)"
