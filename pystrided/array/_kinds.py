"""
Element kinds.

A closed set of element kinds parameterizes the single NDArray type.
Each kind maps to exactly one NumPy dtype used for host buffers.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import numpy as np

from pystrided.core.exceptions import ValidationError


class ElementKind(Enum):
    """Element kind of an array buffer."""

    DOUBLE = 'double'
    INT = 'int'
    LONG = 'long'
    BOOLEAN = 'boolean'
    COMPLEX = 'complex'
    GENERIC = 'generic'

    @property
    def dtype(self) -> np.dtype:
        """NumPy dtype of host buffers of this kind."""
        return _DTYPES[self]

    @property
    def is_numeric(self) -> bool:
        """True for kinds that support arithmetic."""
        return self in (ElementKind.DOUBLE, ElementKind.INT, ElementKind.LONG,
                        ElementKind.COMPLEX)

    @property
    def is_floating(self) -> bool:
        """True for kinds accepted by factorization kernels."""
        return self in (ElementKind.DOUBLE, ElementKind.COMPLEX)

    def zero(self) -> Any:
        """Default fill value for freshly allocated buffers."""
        if self is ElementKind.GENERIC:
            return None
        return self.dtype.type(0)

    @classmethod
    def from_dtype(cls, dtype: np.dtype | type) -> ElementKind:
        """
        Map a NumPy dtype to the closest element kind.

        Floating dtypes map to DOUBLE, complex dtypes to COMPLEX, integers of
        at most 32 bits to INT and wider integers to LONG. Anything else
        (strings, objects, datetimes) is GENERIC.
        """
        dtype = np.dtype(dtype)
        if dtype == np.bool_:
            return cls.BOOLEAN
        if np.issubdtype(dtype, np.complexfloating):
            return cls.COMPLEX
        if np.issubdtype(dtype, np.floating):
            return cls.DOUBLE
        if np.issubdtype(dtype, np.integer):
            return cls.INT if dtype.itemsize <= 4 else cls.LONG
        return cls.GENERIC

    @classmethod
    def parse(cls, kind: ElementKind | str | np.dtype | type) -> ElementKind:
        """Accept an ElementKind, its name/value, or a dtype."""
        if isinstance(kind, ElementKind):
            return kind
        if isinstance(kind, str):
            key = kind.lower()
            for member in cls:
                if member.value == key or member.name.lower() == key:
                    return member
        try:
            return cls.from_dtype(kind)
        except TypeError as e:
            raise ValidationError(f"kind: cannot interpret {kind!r} as an element kind") from e


_DTYPES = {
    ElementKind.DOUBLE: np.dtype(np.float64),
    ElementKind.INT: np.dtype(np.int32),
    ElementKind.LONG: np.dtype(np.int64),
    ElementKind.BOOLEAN: np.dtype(np.bool_),
    ElementKind.COMPLEX: np.dtype(np.complex128),
    ElementKind.GENERIC: np.dtype(object),
}
