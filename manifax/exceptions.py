"""Exceptions raised by manifax.

Geometric failures are never recovered inside the library: any of these aborts
the running solver and propagates to the caller.
"""

from typing import Any


class ManifaxError(Exception):
    """Base exception for all manifax errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotImplementedContractError(ManifaxError, NotImplementedError):
    """A manifold does not provide an operation for the given types.

    Attributes:
        operation: Name of the contract operation, e.g. ``"log"``.
        types: Names of the concrete types the operation was called with.
    """

    def __init__(self, operation: str, *objects: object):
        types = tuple(type(o).__name__ for o in objects)
        message = f"{operation} not implemented for types {', '.join(types)}."
        super().__init__(message, {"operation": operation, "types": types})
        self.operation = operation
        self.types = types


class BaseMismatchError(ManifaxError, ValueError):
    """Two tangent vectors (or a point and a tangent vector) have different bases."""

    def __init__(self, operation: str):
        super().__init__(
            f"Can't {operation} tangent vectors belonging to different tangent spaces.",
            {"operation": operation},
        )
        self.operation = operation


class ShapeMismatchError(ManifaxError, ValueError):
    """Array-valued operation called on coordinates of different shapes."""

    def __init__(self, operation: str, *shapes: tuple[int, ...]):
        super().__init__(
            f"{operation} expects matching shapes. Got {', '.join(str(s) for s in shapes)}.",
            {"operation": operation, "shapes": shapes},
        )
        self.operation = operation
        self.shapes = shapes
