"""
Process-wide configuration for pystrided.

ArrayConfig is an immutable value passed to a BackendRegistry at
construction time. There is no global mutable state here: the default
registry (see pystrided.backends.registry) owns the default config, and
tests or applications that need different settings construct their own
registry with their own ArrayConfig.
"""

from dataclasses import dataclass, replace
from typing import Literal

from pystrided.core.exceptions import ValidationError

Order = Literal['C', 'F']
MixedOperandPolicy = Literal['fail', 'copy']

_ORDERS = ('C', 'F')
_POLICIES = ('fail', 'copy')


@dataclass(frozen=True)
class ArrayConfig:
    """
    Immutable library configuration.

    Attributes:
        order: Memory layout of freshly allocated arrays ('C' row-major,
            'F' column-major)
        backend: Backend choice used when callers pass backend='auto'
            ('auto' probes registered backends by priority, or a backend name)
        mixed_operand_policy: What to do when operands of one operation live
            on different devices:
            - 'fail': raise UnsupportedBackendOperationError
            - 'copy': transfer host operands to the device first
        rank_rtol: Relative tolerance for numerical rank decisions; None uses
            max(m, n) * eps
    """
    order: Order = 'C'
    backend: str = 'auto'
    mixed_operand_policy: MixedOperandPolicy = 'fail'
    rank_rtol: float | None = None

    def __post_init__(self) -> None:
        if self.order not in _ORDERS:
            raise ValidationError(
                f"order: expected one of {_ORDERS}, got {self.order!r}"
            )
        if self.mixed_operand_policy not in _POLICIES:
            raise ValidationError(
                f"mixed_operand_policy: expected one of {_POLICIES}, "
                f"got {self.mixed_operand_policy!r}"
            )
        if self.rank_rtol is not None and self.rank_rtol < 0:
            raise ValidationError(
                f"rank_rtol: must be non-negative, got {self.rank_rtol}"
            )

    def with_options(self, **changes) -> 'ArrayConfig':
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
