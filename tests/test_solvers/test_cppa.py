import jax
import jax.numpy as jnp
import pytest

from manifax.exceptions import NotImplementedContractError, ShapeMismatchError
from manifax.manifolds import PowerManifold, PowPoint, Sphere
from manifax.solvers import CPPAOptions, CPPAState, tv_regularization_cppa
from manifax.solvers.cppa import _tv_sweep
from tests.conftest import polar_point, signal_with_outlier


def _close(a: jax.Array, b: jax.Array, atol: float = 1e-10) -> bool:
    return bool(jnp.allclose(a, b, rtol=1e-10, atol=atol).item())


def _total_variation(M: PowerManifold, x: PowPoint) -> float:
    base = M.manifold
    tv = 0.0
    for axis in range(len(M.dims)):
        n = x.value.shape[axis]
        a = base.point_type(jnp.take(x.value, jnp.arange(n - 1), axis=axis))
        b = base.point_type(jnp.take(x.value, jnp.arange(1, n), axis=axis))
        tv += float(jnp.sum(base.distance(a, b)))
    return tv


def _outlier_gap(M: PowerManifold, x: PowPoint, outlier: int) -> float:
    """Distance between the outlier and its nearest neighbour."""
    o = M.element(x, (0, outlier))
    return min(
        float(M.manifold.distance(o, M.element(x, (0, j)))) for j in (outlier - 1, outlier + 1)
    )


def test_outlier_is_pulled_towards_neighbours() -> None:
    M, f = signal_with_outlier(4, outlier=2)
    x = tv_regularization_cppa(M, f, 0.5, 1.0, max_iterations=50, min_change=0.0)
    assert isinstance(x, PowPoint)
    assert x.value.shape == f.value.shape
    assert _outlier_gap(M, x, 2) < _outlier_gap(M, f, 2)
    assert _close(jnp.linalg.norm(x.value, axis=-1), jnp.ones((1, 4)), atol=1e-10)


def test_without_tv_term_data_is_kept() -> None:
    M, f = signal_with_outlier(4, outlier=1)
    x = tv_regularization_cppa(M, f, 0.0, 1.0)
    assert x == f


def test_constant_data_is_a_fixed_point() -> None:
    M = PowerManifold(Sphere(2), (2, 3))
    f = M.point_from_points([polar_point(0.0, 0.0)] * 6)
    x = tv_regularization_cppa(M, f, 1.0, 1.0, max_iterations=5)
    assert _close(x.value, f.value)


def test_total_variation_decreases_on_a_grid(key: jax.Array) -> None:
    M = PowerManifold(Sphere(2), (3, 3))
    base = M.manifold
    centre = polar_point(0.3, 0.4)
    noise = jax.random.normal(key, (3, 3, 3)) * 0.2
    f = PowPoint(base.project(centre.value + noise).value)
    x = tv_regularization_cppa(M, f, 0.5, 0.5, max_iterations=100)
    assert _total_variation(M, x) < _total_variation(M, f)


def test_single_iteration_already_regularises() -> None:
    M, f = signal_with_outlier(4, outlier=2)
    x = tv_regularization_cppa(M, f, 1.0, 1.0, options=CPPAOptions(max_iterations=1))
    assert _outlier_gap(M, x, 2) < _outlier_gap(M, f, 2)


def test_tv_sweep_handles_every_pair_once() -> None:
    base = Sphere(2)
    points = jnp.stack([polar_point(0.0, 0.0).value, polar_point(1.0, 0.0).value])[None]
    swept = _tv_sweep(base, points, 1, 5.0)
    midpoint = polar_point(0.5, 0.0).value
    assert _close(swept[0, 0], midpoint)
    assert _close(swept[0, 1], midpoint)
    # a dimension of size one has no neighbour pairs
    assert _close(_tv_sweep(base, points, 0, 5.0), points)


def _meridian(thetas: tuple[float, ...], phi: float = 0.0) -> jax.Array:
    return jnp.stack([polar_point(t, phi).value for t in thetas])


def test_tv_sweep_follows_pair_order() -> None:
    swept = _tv_sweep(Sphere(2), _meridian((0.0, 0.1, 0.2, 0.3)), 0, 5.0)
    # every pair meets at its midpoint, and pair i sees entry i as moved by pair i - 1
    assert _close(swept, _meridian((0.05, 0.125, 0.2125, 0.2125)))


def test_tv_sweep_rows_are_independent() -> None:
    grid = jnp.stack([_meridian((0.0, 0.1, 0.2, 0.3)), _meridian((0.3, 0.2, 0.1, 0.0), 1.0)])
    swept = _tv_sweep(Sphere(2), grid, 1, 5.0)
    assert _close(swept[0], _meridian((0.05, 0.125, 0.2125, 0.2125)))
    assert _close(swept[1], _meridian((0.25, 0.175, 0.0875, 0.0875), 1.0))


def test_one_iteration_is_fidelity_then_ordered_sweep() -> None:
    M = PowerManifold(Sphere(2), (1, 4))
    f = PowPoint(_meridian((0.0, 0.1, 0.2, 0.3))[None])
    x = tv_regularization_cppa(M, f, 1.0, 1.0, max_iterations=1)
    assert _close(x.value[0], _meridian((0.05, 0.125, 0.2125, 0.2125)))


def _float32_signal(n: int, sigma: float) -> tuple[PowerManifold, PowPoint]:
    M = PowerManifold(Sphere(2), (1, n))
    centre = jnp.array([0.3, -0.2, 0.9], dtype=jnp.float32)
    noise = sigma * jax.random.normal(jax.random.PRNGKey(7), (1, n, 3), dtype=jnp.float32)
    return M, PowPoint(M.manifold.project(centre + noise).value)


def test_float32_constant_data_stops_after_one_iteration() -> None:
    M, f = _float32_signal(8, 0.0)
    state = tv_regularization_cppa(M, f, 1.0, 1.0, return_state=True)
    assert isinstance(state, CPPAState)
    assert state.iteration == 1
    assert state.change == 0.0
    assert state.x.value.dtype == jnp.float32


def test_float32_near_converged_data_stops_early() -> None:
    M, f = _float32_signal(8, 1e-5)
    state = tv_regularization_cppa(M, f, 1.0, 1.0, return_state=True)
    assert state.iteration < CPPAOptions().max_iterations
    assert state.change <= CPPAOptions().min_change
    assert bool(jnp.all(jnp.isfinite(state.x.value)))



def test_rejects_non_power_data(s2: Sphere) -> None:
    with pytest.raises(NotImplementedContractError, match="tv_regularization_cppa"):
        tv_regularization_cppa(s2, polar_point(0.0, 0.0), 1.0, 1.0)


def test_rejects_mismatched_grid() -> None:
    M = PowerManifold(Sphere(2), (1, 4))
    f = PowPoint(jnp.tile(polar_point(0.0, 0.0).value, (1, 3, 1)))
    with pytest.raises(ShapeMismatchError):
        tv_regularization_cppa(M, f, 1.0, 1.0)


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"min_change": -1.0}, "min_change"),
        ({"max_iterations": 0}, "max_iterations"),
        ({"log_every": -1}, "log_every"),
    ],
)
def test_options_validation(kwargs: dict, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        CPPAOptions(**kwargs)
