"""
Generic result container for all pystrided decompositions.

The Result class provides a standardized envelope that every decomposition
uses. This enables shared tooling for timing, diagnostics and backend
provenance while allowing each decomposition to define its own payload.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (routine, kernel status, rank)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True): a result never changes after construction
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for kernel computations.

    Type Parameters:
        P: The decomposition-specific payload type

    Attributes:
        params: Decomposition payload (factors, pivots, singular values, ...)
        info: Structured metadata (routine, kernel status, rank, ...)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=LuParams(lu=lu, pivots=pivots, status=0),
        ...     info={'routine': 'getrf'},
        ...     timing={'total_seconds': 0.001},
        ...     backend_name='lapack'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
