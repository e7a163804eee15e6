from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import reduce
from typing import Any, ClassVar, Sequence
import operator

import jax
import jax.numpy as jnp

from manifax.config import get_config
from manifax.exceptions import (
    BaseMismatchError,
    NotImplementedContractError,
    ShapeMismatchError,
)


def _as_inexact(value: Any) -> jax.Array:
    """Coordinates as an array, integer input promoted to the default float dtype."""
    value = jnp.asarray(value)
    if not jnp.issubdtype(value.dtype, jnp.inexact):
        value = value.astype(jnp.result_type(float))
    return value


@dataclass(frozen=True, eq=False)
class MPoint:
    """A point on a manifold, stored as its coordinate array.

    Points are immutable; algorithms replace them rather than mutating them.
    A point may carry leading batch axes, in which case every manifold
    operation acts on each entry independently.
    """

    value: jax.Array

    coordinate_ndim: ClassVar[int] = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _as_inexact(self.value))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MPoint):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.value.shape == other.value.shape
            and bool(jnp.array_equal(self.value, other.value))
        )

    def manifold_dimension(self) -> int:
        raise NotImplementedContractError("manifold_dimension", self)


@dataclass(frozen=True, eq=False)
class TVector:
    """A tangent vector, optionally tagged with the point it is attached to.

    A missing ``base`` means the caller asserts the tangent space is the right
    one, so it combines with any other vector. Two vectors that both carry a base
    may only be combined when the bases are equal.
    """

    value: jax.Array
    base: MPoint | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _as_inexact(self.value))

    def _new(self, value: jax.Array, base: MPoint | None) -> TVector:
        return type(self)(value, base)

    def _scale(self, s: Any) -> jax.Array:
        s = jnp.asarray(s)
        # a batched factor scales each entry's coordinates
        if s.ndim:
            s = s.reshape(s.shape + (1,) * (self.value.ndim - s.ndim))
        return s * self.value

    def __add__(self, other: object) -> TVector:
        if not isinstance(other, TVector):
            return NotImplemented
        check_base(self, other, "add")
        check_shapes("add", self.value, other.value)
        base = self.base if self.base is not None else other.base
        return self._new(self.value + other.value, base)

    def __sub__(self, other: object) -> TVector:
        if not isinstance(other, TVector):
            return NotImplemented
        return self + (-other)

    def __neg__(self) -> TVector:
        return self._new(-self.value, self.base)

    def __mul__(self, s: Any) -> TVector:
        if isinstance(s, TVector):
            return NotImplemented
        return self._new(self._scale(s), self.base)

    __rmul__ = __mul__

    def __truediv__(self, s: Any) -> TVector:
        if isinstance(s, TVector):
            return NotImplemented
        return self._new(self._scale(1.0 / jnp.asarray(s)), self.base)


def _base_of(x: MPoint | TVector) -> MPoint | None:
    return x if isinstance(x, MPoint) else x.base


def check_base(a: MPoint | TVector, b: MPoint | TVector, operation: str = "combine") -> None:
    """Raise :class:`BaseMismatchError` if ``a`` and ``b`` live in different tangent spaces."""
    base_a, base_b = _base_of(a), _base_of(b)
    if base_a is None or base_b is None:
        return
    if base_a != base_b:
        raise BaseMismatchError(operation)


def check_shapes(operation: str, *arrays: jax.Array) -> None:
    shapes = [a.shape for a in arrays]
    if any(s != shapes[0] for s in shapes[1:]):
        raise ShapeMismatchError(operation, *shapes)


def tolerance(dtype: Any) -> float:
    """Length below which a tangent vector counts as zero."""
    configured = get_config().tolerance
    if configured is not None:
        return configured
    return float(jnp.finfo(dtype).eps)


class Manifold(ABC):
    """Base class for the manifolds the solvers are written against.

    Subclasses must implement every abstract operation, otherwise they cannot be
    instantiated. ``parallel_transport`` is optional and raises
    :class:`NotImplementedContractError` unless overridden.
    """

    point_type: ClassVar[type[MPoint]] = MPoint
    tangent_type: ClassVar[type[TVector]] = TVector

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def abbreviation(self) -> str: ...

    @abstractmethod
    def distance(self, p: MPoint, q: MPoint) -> jax.Array:
        """Geodesic distance between ``p`` and ``q``."""

    @abstractmethod
    def exp(self, p: MPoint, xi: TVector, t: float = 1.0) -> MPoint:
        """Follow the geodesic from ``p`` in direction ``xi`` for time ``t``."""

    @abstractmethod
    def log(self, p: MPoint, q: MPoint, include_base: bool = False) -> TVector:
        """Tangent vector at ``p`` whose exponential reaches ``q``."""

    @abstractmethod
    def dot(self, p: MPoint | None, xi: TVector, nu: TVector) -> jax.Array:
        """Riemannian inner product of two tangent vectors at ``p``."""

    @abstractmethod
    def manifold_dimension(self) -> int: ...

    @abstractmethod
    def random_point(self, key: jax.Array, shape: tuple[int, ...] = ()) -> MPoint:
        """Sample a point, or a batch of points with leading axes ``shape``."""

    def norm(self, xi: TVector) -> jax.Array:
        return jnp.sqrt(self.dot(xi.base, xi, xi))

    def retract(self, p: MPoint, xi: TVector, t: float = 1.0) -> MPoint:
        return self.exp(p, xi, t)

    def inverse_retract(self, p: MPoint, q: MPoint) -> TVector:
        return self.log(p, q)

    def parallel_transport(self, p: MPoint, q: MPoint, xi: TVector) -> TVector:
        raise NotImplementedContractError("parallel_transport", self, p, q, xi)

    def __str__(self) -> str:
        return f"The Manifold {self.name}."


def _check_types(operation: str, M: Manifold, *args: MPoint | TVector | None) -> None:
    if not isinstance(M, Manifold):
        raise NotImplementedContractError(operation, M, *args)
    for arg in args:
        if arg is None:
            continue
        if not isinstance(arg, (M.point_type, M.tangent_type)):
            raise NotImplementedContractError(operation, M, *args)


def distance(M: Manifold, p: MPoint, q: MPoint) -> jax.Array:
    _check_types("distance", M, p, q)
    return M.distance(p, q)


def exp(M: Manifold, p: MPoint, xi: TVector, t: float = 1.0) -> MPoint:
    _check_types("exp", M, p, xi)
    return M.exp(p, xi, t)


def log(M: Manifold, p: MPoint, q: MPoint, include_base: bool = False) -> TVector:
    _check_types("log", M, p, q)
    return M.log(p, q, include_base)


def dot(M: Manifold, p: MPoint | None, xi: TVector, nu: TVector) -> jax.Array:
    _check_types("dot", M, p, xi, nu)
    return M.dot(p, xi, nu)


def norm(M: Manifold, xi: TVector) -> jax.Array:
    _check_types("norm", M, xi)
    return M.norm(xi)


def retract(M: Manifold, p: MPoint, xi: TVector, t: float = 1.0) -> MPoint:
    _check_types("retract", M, p, xi)
    return M.retract(p, xi, t)


def inverse_retract(M: Manifold, p: MPoint, q: MPoint) -> TVector:
    _check_types("inverse_retract", M, p, q)
    return M.inverse_retract(p, q)


def parallel_transport(M: Manifold, p: MPoint, q: MPoint, xi: TVector) -> TVector:
    _check_types("parallel_transport", M, p, q, xi)
    return M.parallel_transport(p, q, xi)


def manifold_dimension(x: Manifold | MPoint) -> int:
    """Intrinsic dimension of a manifold, or of the manifold a point lives on."""
    if isinstance(x, (Manifold, MPoint)):
        return x.manifold_dimension()
    raise NotImplementedContractError("manifold_dimension", x)


def geodesic(M: Manifold, p: MPoint, q: MPoint, t: float) -> MPoint:
    """Point at time ``t`` on the shortest geodesic from ``p`` (t=0) to ``q`` (t=1)."""
    return M.exp(p, M.log(p, q), t)


def mid_point(M: Manifold, p: MPoint, q: MPoint) -> MPoint:
    return geodesic(M, p, q, 0.5)


def mean(
    M: Manifold,
    points: Sequence[MPoint],
    *,
    initial_value: MPoint | None = None,
    weights: Sequence[float] | None = None,
    max_iterations: int = 50,
    min_change: float = 5e-7,
) -> MPoint:
    """
    Weighted Riemannian (Karcher) mean by gradient descent.

    Iterates x <- exp(x, sum_i w_i log(x, f_i)) until the update moves x by at most
    ``min_change`` or ``max_iterations`` steps were taken. At least one step is
    always performed.

    Reference: B. Afsari, Riemannian Lp center of mass: existence, uniqueness, and
    convexity, Proc. AMS 139(2), 2011.

    Args:
        M: Manifold the points live on.
        points: Points to average.
        initial_value: Starting point, defaults to ``points[0]``.
        weights: One weight per point, defaults to ``1/n`` each.
        max_iterations: Maximal number of gradient steps.
        min_change: Stop once a step moves the iterate by at most this distance.

    Returns:
        The mean as a point on ``M``.
    """
    if len(points) == 0:
        raise ValueError("Cannot compute the mean of an empty set of points.")
    n = len(points)
    if weights is None:
        weights = [1.0 / n] * n
    elif len(weights) != n:
        raise ValueError(f"Expected {n} weights, got {len(weights)}.")

    x = points[0] if initial_value is None else initial_value
    for _ in range(max_iterations):
        x_old = x
        direction = reduce(operator.add, (w * M.log(x, f) for w, f in zip(weights, points)))
        x = M.exp(x, direction)
        if float(M.distance(x, x_old)) <= min_change:
            break
    return x
