from __future__ import annotations

from dataclasses import dataclass
from functools import partial

import jax
import jax.numpy as jnp

from manifax.manifolds.manifold_types import (
    Manifold,
    MPoint,
    TVector,
    check_base,
    check_shapes,
    tolerance,
)


@dataclass(frozen=True, eq=False)
class SnPoint(MPoint):
    """A unit vector in R^(n+1), shape (..., n+1)."""

    def manifold_dimension(self) -> int:
        return self.value.shape[-1] - 1

    def __str__(self) -> str:
        return f"Sn({self.value})"


@dataclass(frozen=True, eq=False)
class SnTVector(TVector):
    """A vector orthogonal to its base point, shape (..., n+1)."""

    def __str__(self) -> str:
        return f"SnT({self.value})"


def _inner(x: jax.Array, y: jax.Array) -> jax.Array:
    return jnp.sum(x * y, axis=-1, keepdims=True)


@jax.jit
def sphere_distance(p: jax.Array, q: jax.Array) -> jax.Array:
    """
    The angle between p and q, 2 atan2(|p - q|, |p + q|).

    Equal to arccos(<p, q>) for unit vectors, exactly 0 for p == q and accurate
    for nearby and nearly antipodal points.
    """
    chord = jnp.linalg.norm(p - q, axis=-1)
    return 2.0 * jnp.arctan2(chord, jnp.linalg.norm(p + q, axis=-1))


@partial(jax.jit, static_argnames=["tol"])
def sphere_exp(p: jax.Array, xi: jax.Array, t: jax.Array | float, tol: float) -> jax.Array:
    """cos(t|xi|) p + sin(t|xi|)/|xi| xi, or p itself when |xi| < tol."""
    length = jnp.linalg.norm(xi, axis=-1, keepdims=True)
    small = length < tol
    safe_length = jnp.where(small, 1.0, length)
    moved = jnp.cos(t * length) * p + jnp.sin(t * length) / safe_length * xi
    return jnp.where(small, p, moved)


@partial(jax.jit, static_argnames=["tol"])
def sphere_log(p: jax.Array, q: jax.Array, tol: float) -> jax.Array:
    """Project q onto the tangent space at p and rescale to length d(p, q)."""
    xi = q - _inner(p, q) * p
    xi_norm = jnp.linalg.norm(xi, axis=-1, keepdims=True)
    large = xi_norm > tol
    safe_norm = jnp.where(large, xi_norm, 1.0)
    scaled = xi * sphere_distance(p, q)[..., None] / safe_norm
    return jnp.where(large, scaled, jnp.zeros_like(p))


@partial(jax.jit, static_argnames=["tol"])
def sphere_parallel_transport(p: jax.Array, q: jax.Array, xi: jax.Array, tol: float) -> jax.Array:
    """
    Transport xi from T_p to T_q along the geodesic.

    With nu the unit direction from p to q and w the unit direction from q back to p,
    the nu-component of xi is removed and re-added along -w.
    """
    nu = sphere_log(p, q, tol)
    nu_len = jnp.linalg.norm(nu, axis=-1, keepdims=True)
    moved = nu_len > 0
    safe_len = jnp.where(moved, nu_len, 1.0)
    direction = nu / safe_len
    back = sphere_log(q, p, tol) / safe_len
    transported = xi - _inner(direction, xi) * (direction + back)
    return jnp.where(moved, transported, xi)


@dataclass(frozen=True)
class Sphere(Manifold):
    """Unit sphere S^n embedded in R^(n+1).

    Points satisfy ||p|| = 1. The tangent space at p consists of all vectors
    orthogonal to p. Every operation accepts coordinates with leading batch
    axes, shape (..., n+1), and acts on each entry independently.
    """

    dimension: int = 2

    point_type = SnPoint
    tangent_type = SnTVector

    def __post_init__(self) -> None:
        if self.dimension < 1:
            raise ValueError(f"Sphere dimension must be >= 1. Got {self.dimension}.")

    @property
    def name(self) -> str:
        return f"{self.dimension}-Sphere"

    @property
    def abbreviation(self) -> str:
        return f"S{self.dimension}"

    def distance(self, p: SnPoint, q: SnPoint) -> jax.Array:
        check_shapes("distance", p.value, q.value)
        return sphere_distance(p.value, q.value)

    def dot(self, p: SnPoint | None, xi: SnTVector, nu: SnTVector) -> jax.Array:
        check_base(xi, nu, "dot")
        if p is not None:
            check_base(p, xi, "dot")
        check_shapes("dot", xi.value, nu.value)
        return jnp.sum(xi.value * nu.value, axis=-1)

    def exp(self, p: SnPoint, xi: SnTVector, t: float = 1.0) -> SnPoint:
        check_base(p, xi, "exp")
        check_shapes("exp", p.value, xi.value)
        return SnPoint(sphere_exp(p.value, xi.value, t, tolerance(p.value.dtype)))

    def log(self, p: SnPoint, q: SnPoint, include_base: bool = False) -> SnTVector:
        check_shapes("log", p.value, q.value)
        value = sphere_log(p.value, q.value, tolerance(p.value.dtype))
        return SnTVector(value, p if include_base else None)

    def parallel_transport(self, p: SnPoint, q: SnPoint, xi: SnTVector) -> SnTVector:
        check_base(p, xi, "transport")
        check_shapes("parallel_transport", p.value, q.value, xi.value)
        value = sphere_parallel_transport(p.value, q.value, xi.value, tolerance(p.value.dtype))
        return SnTVector(value, q if xi.base is not None else None)

    def manifold_dimension(self) -> int:
        return self.dimension

    def random_point(self, key: jax.Array, shape: tuple[int, ...] = ()) -> SnPoint:
        x = jax.random.normal(key, tuple(shape) + (self.dimension + 1,))
        return self.project(x)

    def random_tangent(self, key: jax.Array, p: SnPoint, scale: float = 1.0) -> SnTVector:
        """Gaussian tangent vector at ``p`` with standard deviation ``scale``."""
        v = jax.random.normal(key, p.value.shape, dtype=p.value.dtype)
        return scale * self.project_to_tangent(p, v)

    def project(self, x: jax.Array) -> SnPoint:
        """Normalize an ambient vector to unit length.

        Args:
            x: Point in ambient space, shape (..., n+1).

        Returns:
            Normalized point on the unit sphere.
        """
        x = jnp.asarray(x)
        if x.shape[-1] != self.dimension + 1:
            raise ValueError(f"{self.name} expects (..., {self.dimension + 1}), got {x.shape}.")
        norm = jnp.linalg.norm(x, axis=-1, keepdims=True)
        norm = jnp.maximum(norm, 1e-12)
        return SnPoint(x / norm)

    def project_to_tangent(self, p: SnPoint, v: jax.Array) -> SnTVector:
        """Project vector onto tangent space orthogonal to p.

        For the sphere, the tangent space at p is the orthogonal complement
        of p. We remove the component of v along p: v_tangent = v - <v,p>p.

        Args:
            p: Point on the sphere, shape (..., n+1).
            v: Vector in ambient space, shape (..., n+1).

        Returns:
            Tangent vector at p, tagged with p as its base.
        """
        v = jnp.asarray(v)
        check_shapes("project_to_tangent", p.value, v)
        return SnTVector(v - _inner(v, p.value) * p.value, p)
