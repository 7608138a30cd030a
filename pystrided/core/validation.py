"""
Input validation utilities for pystrided.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No default handling of edge cases
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages

Validators are written against anything with a ``shape`` attribute so they
apply equally to NDArray, numpy arrays and torch tensors.
"""

from typing import Any, Iterable

from pystrided.core.exceptions import ShapeMismatchError, ValidationError


def check_choice(value: str, allowed: Iterable[str], name: str) -> str:
    """
    Validate a LAPACK-style option character, case-insensitively.

    Args:
        value: The option supplied by the caller (e.g. 'A', 's', 'V')
        allowed: Allowed values (lowercase)
        name: Parameter name for error messages

    Returns:
        The normalized lowercase option

    Raises:
        ValidationError: If value is not one of the allowed options
    """
    allowed = tuple(allowed)
    if not isinstance(value, str) or value.lower() not in allowed:
        raise ValidationError(
            f"{name}: expected one of {allowed} (case-insensitive), got {value!r}"
        )
    return value.lower()


def check_ndim(array: Any, ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.

    Raises:
        ShapeMismatchError: If array has wrong number of dimensions
    """
    shape = tuple(array.shape)
    if len(shape) != ndim:
        raise ShapeMismatchError(
            f"{name}: expected {ndim}D array, got {len(shape)}D with shape {shape}",
            actual=shape,
            operation=name,
        )


def check_1d(array: Any, name: str) -> None:
    """Verify array is 1-dimensional."""
    check_ndim(array, 1, name)


def check_2d(array: Any, name: str) -> None:
    """Verify array is 2-dimensional."""
    check_ndim(array, 2, name)


def check_square(array: Any, name: str) -> int:
    """
    Verify array is a square matrix.

    Returns:
        The order n of the n x n matrix

    Raises:
        ShapeMismatchError: If array is not 2D or not square
    """
    check_2d(array, name)
    m, n = tuple(array.shape)
    if m != n:
        raise ShapeMismatchError(
            f"{name}: expected a square matrix, got shape ({m}, {n})",
            expected=(m, m),
            actual=(m, n),
            operation=name,
        )
    return n


def check_shape(array: Any, expected: tuple[int, ...], name: str) -> None:
    """
    Verify array has exactly the expected shape.

    Raises:
        ShapeMismatchError: If the shapes differ
    """
    actual = tuple(array.shape)
    if actual != tuple(expected):
        raise ShapeMismatchError(
            f"{name}: expected shape {tuple(expected)}, got {actual}",
            expected=tuple(expected),
            actual=actual,
            operation=name,
        )


def check_min_length(array: Any, min_length: int, name: str) -> None:
    """
    Verify a 1-D workspace array holds at least ``min_length`` elements.

    Raises:
        ShapeMismatchError: If the array is shorter
    """
    check_1d(array, name)
    length = tuple(array.shape)[0]
    if length < min_length:
        raise ShapeMismatchError(
            f"{name}: requires at least {min_length} elements, got {length}",
            expected=(min_length,),
            actual=(length,),
            operation=name,
        )


def check_same_shape(a: Any, b: Any, operation: str) -> None:
    """
    Verify two operands have identical shapes.

    Raises:
        ShapeMismatchError: If the shapes differ
    """
    shape_a = tuple(a.shape)
    shape_b = tuple(b.shape)
    if shape_a != shape_b:
        raise ShapeMismatchError(
            f"{operation}: operand shapes differ: {shape_a} vs {shape_b}",
            expected=shape_a,
            actual=shape_b,
            operation=operation,
        )


def check_positive(value: int, name: str) -> None:
    """Verify an integer parameter is strictly positive."""
    if value <= 0:
        raise ValidationError(f"{name}: must be positive, got {value}")


def check_non_negative(value: float, name: str) -> None:
    """Verify a numeric parameter is non-negative."""
    if value < 0:
        raise ValidationError(f"{name}: must be non-negative, got {value}")
