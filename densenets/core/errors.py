"""Exception taxonomy for network construction and shape checks."""

from __future__ import annotations


class DenseNetError(Exception):
    """Base class for errors raised by the DenseNets engine."""


class ConstructionOrderError(DenseNetError, RuntimeError):
    """Raised when a network is built or driven out of order.

    Examples are adding a hidden layer after the output stage is attached or
    running a forward pass before it is.
    """


class ShapeMismatchError(DenseNetError, ValueError):
    """Raised when a vector length disagrees with a declared layer width."""

    def __init__(self, what: str, expected: int, actual: int) -> None:
        super().__init__(f"{what} has length {actual}, expected {expected}")
        self.what = what
        self.expected = expected
        self.actual = actual


__all__ = ["DenseNetError", "ConstructionOrderError", "ShapeMismatchError"]
