import jax
import jax.numpy as jnp
import pytest
from typing import Callable
from pytest_benchmark.fixture import BenchmarkFixture

from manifax.manifolds import PowerManifold, PowPoint, Sphere, SnPoint

jax.config.update("jax_enable_x64", True)

_test_key = jax.random.PRNGKey(42)


def _block(x):
    return jax.tree_util.tree_map(
        lambda y: y.block_until_ready() if isinstance(y, jax.Array) else y, x
    )


def benchmark_wrapper(
    benchmark: BenchmarkFixture,
    func: Callable,
    *args,
    **kwargs,
):
    # Warm-up: compiles the geometric kernels once
    warmed = func(*args, **kwargs)
    _block(getattr(warmed, "value", warmed))

    def run():
        result = func(*args, **kwargs)
        _block(getattr(result, "value", result))

    benchmark(run)
    return warmed


@pytest.fixture
def key() -> jax.Array:
    global _test_key
    _test_key, subkey = jax.random.split(_test_key)
    return subkey


@pytest.fixture
def s2() -> Sphere:
    return Sphere(2)


def sn_point(*coords: float) -> SnPoint:
    """Unit vector along the given (not necessarily normalised) coordinates."""
    x = jnp.asarray(coords, dtype=jnp.float64)
    return SnPoint(x / jnp.linalg.norm(x))


def polar_point(theta: float, phi: float) -> SnPoint:
    """Point on S^2 at polar angle theta from the north pole and azimuth phi."""
    return SnPoint(
        jnp.array(
            [
                jnp.sin(theta) * jnp.cos(phi),
                jnp.sin(theta) * jnp.sin(phi),
                jnp.cos(theta),
            ],
            dtype=jnp.float64,
        )
    )


def signal_with_outlier(n: int = 4, outlier: int = 2) -> tuple[PowerManifold, PowPoint]:
    """A 1 x n row of points near the north pole with one point far away."""
    M = PowerManifold(Sphere(2), (1, n))
    points = [polar_point(0.1 * i, 0.0) for i in range(n)]
    points[outlier] = polar_point(1.2, jnp.pi / 2)
    return M, M.point_from_points(points)
