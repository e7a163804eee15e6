from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence
import math

import jax
import jax.numpy as jnp

from manifax.exceptions import NotImplementedContractError, ShapeMismatchError
from manifax.manifolds.manifold_types import (
    Manifold,
    MPoint,
    TVector,
    check_base,
)


@dataclass(frozen=True, eq=False)
class PowPoint(MPoint):
    """A point on N^dims, stored as the stacked base coordinates, shape dims + point shape.

    ``base_type`` is the point type of N. Points created by :class:`PowerManifold`
    carry it, which lets them report their own dimension.
    """

    base_type: type[MPoint] | None = None

    def manifold_dimension(self) -> int:
        if self.base_type is None:
            raise NotImplementedContractError("manifold_dimension", self)
        grid_ndim = self.value.ndim - self.base_type.coordinate_ndim
        entry = self.base_type(self.value[(0,) * grid_ndim])
        return math.prod(self.value.shape[:grid_ndim]) * entry.manifold_dimension()

    def __str__(self) -> str:
        return f"PowM({self.value})"


@dataclass(frozen=True, eq=False)
class PowTVector(TVector):
    """A tangent vector on N^dims, stored as stacked base tangent coordinates."""

    def __str__(self) -> str:
        return f"PowMT({self.value})"


@dataclass(frozen=True)
class PowerManifold(Manifold):
    """The power manifold N^dims of an array of points on one base manifold N.

    Every operation is the base manifold's operation applied to all entries at
    once, which requires the base manifold to act on leading batch axes.
    Distances combine as sqrt(sum_i d_i^2) and inner products as sum_i <., .>_i.
    """

    manifold: Manifold
    dims: tuple[int, ...]

    point_type = PowPoint
    tangent_type = PowTVector

    def __post_init__(self) -> None:
        dims = (self.dims,) if isinstance(self.dims, int) else tuple(int(d) for d in self.dims)
        if len(dims) == 0 or any(d < 1 for d in dims):
            raise ValueError(f"Power manifold dims must be positive integers. Got {self.dims}.")
        object.__setattr__(self, "dims", dims)

    @property
    def name(self) -> str:
        return f"A Power Manifold of {self.manifold.name}."

    @property
    def abbreviation(self) -> str:
        return f"Pow({self.manifold.abbreviation},{list(self.dims)})"

    def __str__(self) -> str:
        return f"The Power Manifold of {self.manifold} of size {list(self.dims)}."

    def check_grid(self, operation: str, *values: jax.Array) -> None:
        shapes = [v.shape for v in values]
        ndim = len(self.dims)
        if any(s[:ndim] != self.dims or s != shapes[0] for s in shapes):
            raise ShapeMismatchError(operation, *shapes)

    def _wrap(self, value: jax.Array) -> PowPoint:
        return PowPoint(value, self.manifold.point_type)

    def _point(self, x: PowPoint | None) -> MPoint | None:
        return None if x is None else self.manifold.point_type(x.value)

    def _tangent(self, xi: PowTVector) -> TVector:
        # bases are checked on the power level, the stacked vector is base-free
        return self.manifold.tangent_type(xi.value)

    def distance(self, x: PowPoint, y: PowPoint) -> jax.Array:
        self.check_grid("distance", x.value, y.value)
        d = self.manifold.distance(self._point(x), self._point(y))
        return jnp.sqrt(jnp.sum(d**2))

    def dot(self, x: PowPoint | None, xi: PowTVector, nu: PowTVector) -> jax.Array:
        check_base(xi, nu, "dot")
        if x is not None:
            check_base(x, xi, "dot")
        self.check_grid("dot", xi.value, nu.value)
        return jnp.sum(self.manifold.dot(self._point(x), self._tangent(xi), self._tangent(nu)))

    def exp(self, x: PowPoint, xi: PowTVector, t: float = 1.0) -> PowPoint:
        check_base(x, xi, "exp")
        self.check_grid("exp", x.value, xi.value)
        return self._wrap(self.manifold.exp(self._point(x), self._tangent(xi), t).value)

    def log(self, x: PowPoint, y: PowPoint, include_base: bool = False) -> PowTVector:
        self.check_grid("log", x.value, y.value)
        value = self.manifold.log(self._point(x), self._point(y)).value
        return PowTVector(value, x if include_base else None)

    def parallel_transport(self, x: PowPoint, y: PowPoint, xi: PowTVector) -> PowTVector:
        check_base(x, xi, "transport")
        self.check_grid("parallel_transport", x.value, y.value, xi.value)
        value = self.manifold.parallel_transport(
            self._point(x), self._point(y), self._tangent(xi)
        ).value
        return PowTVector(value, y if xi.base is not None else None)

    def manifold_dimension(self) -> int:
        return math.prod(self.dims) * self.manifold.manifold_dimension()

    def random_point(self, key: jax.Array, shape: tuple[int, ...] = ()) -> PowPoint:
        if shape:
            raise ValueError("Batches of power manifold points are not supported.")
        return self._wrap(self.manifold.random_point(key, self.dims).value)

    def point_from_points(self, points: Sequence[MPoint]) -> PowPoint:
        """Stack base points, given in row-major order over ``dims``, into a power point."""
        if len(points) != math.prod(self.dims):
            raise ValueError(
                f"{self.abbreviation} needs {math.prod(self.dims)} points, got {len(points)}."
            )
        stacked = jnp.stack([p.value for p in points])
        return self._wrap(stacked.reshape(self.dims + stacked.shape[1:]))

    def element(self, x: PowPoint, index: int | tuple[int, ...]) -> MPoint:
        """The base manifold point stored at grid position ``index``."""
        index = (index,) if isinstance(index, int) else tuple(index)
        if len(index) != len(self.dims):
            raise ValueError(f"Index {index} does not address a grid of shape {self.dims}.")
        return self.manifold.point_type(x.value[index])
