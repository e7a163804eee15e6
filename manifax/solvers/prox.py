"""Closed-form proximal maps on manifolds.

All maps accept single points or batches of points (leading axes), in which case
each entry or pair of entries is handled independently.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

from manifax.manifolds.manifold_types import Manifold, MPoint


def prox_distance_squared(M: Manifold, f: MPoint, lam: float, x: MPoint) -> MPoint:
    """
    Proximal map of x -> d(f, x)^2 / 2 with parameter ``lam``.

    Moves ``x`` a fraction lam / (1 + lam) along the geodesic towards ``f``.
    """
    return M.exp(x, lam / (1 + lam) * M.log(x, f))


def _tv_step(lam: float, d: jax.Array) -> jax.Array:
    """min(1/2, lam / d), and 0 for coinciding points."""
    positive = d > 0
    safe_d = jnp.where(positive, d, 1.0)
    return jnp.where(positive, jnp.minimum(0.5, lam / safe_d), 0.0)


def prox_tv(M: Manifold, lam: float, points: tuple[MPoint, MPoint]) -> tuple[MPoint, MPoint]:
    """
    Proximal map of (x, y) -> d(x, y) with parameter ``lam``.

    Both points move towards each other by lam, but never past their midpoint.

    Args:
        M: Manifold of the two points.
        lam: Parameter of the proximal map.
        points: The pair (x, y).

    Returns:
        The pair of moved points.
    """
    x, y = points
    step = _tv_step(lam, M.distance(x, y))
    return (
        M.exp(x, M.log(x, y) * step),
        M.exp(y, M.log(y, x) * step),
    )


def prox_tv_squared(
    M: Manifold, lam: float, points: tuple[MPoint, MPoint]
) -> tuple[MPoint, MPoint]:
    """
    Proximal map of (x, y) -> d(x, y)^2 with parameter ``lam``.

    Both points move along their connecting geodesic with the scaling
    lam / (1 + 2 lam) * d(x, y).
    """
    x, y = points
    step = lam / (1 + 2 * lam) * M.distance(x, y)
    return (
        M.exp(x, M.log(x, y) * step),
        M.exp(y, M.log(y, x) * step),
    )
