import jax
import jax.random as jrandom
import pytest
from pytest_benchmark.fixture import BenchmarkFixture

from manifax.manifolds import PowerManifold, Sphere
from tests.conftest import benchmark_wrapper


SPHERE_BENCH_CASES: list = [
    pytest.param(64, id="batch-64"),
]


@pytest.mark.benchmark(group="sphere_exp_log")
@pytest.mark.parametrize("batch_size", SPHERE_BENCH_CASES)
def test_sphere_exp_log_benchmark(benchmark: BenchmarkFixture, batch_size: int) -> None:
    """Benchmark a log followed by exp over a batch of point pairs."""
    M = Sphere(2)
    k1, k2 = jrandom.split(jrandom.PRNGKey(0))
    p = M.random_point(k1, (batch_size,))
    q = M.random_point(k2, (batch_size,))

    def log_exp():
        return M.exp(p, M.log(p, q))

    result = benchmark_wrapper(benchmark, log_exp)
    assert result.value.shape == (batch_size, 3)


@pytest.mark.benchmark(group="power_distance")
@pytest.mark.parametrize("dims", [pytest.param((16, 16), id="grid-16x16")])
def test_power_distance_benchmark(benchmark: BenchmarkFixture, dims: tuple[int, ...]) -> None:
    M = PowerManifold(Sphere(2), dims)
    k1, k2 = jrandom.split(jrandom.PRNGKey(1))
    x, y = M.random_point(k1), M.random_point(k2)
    result = benchmark_wrapper(benchmark, M.distance, x, y)
    assert isinstance(result, jax.Array)
