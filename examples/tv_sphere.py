import jax
import jax.numpy as jnp

from manifax.logging import set_log_level
from manifax.manifolds import PowerManifold, PowPoint, Sphere
from manifax.solvers import tv_regularization_cppa


def _noisy_signal(key: jax.Array, n: int, sigma: float) -> jax.Array:
    # Great circle through the poles, perturbed in the ambient space
    t = jnp.linspace(0.0, jnp.pi, n)
    clean = jnp.stack([jnp.sin(t), jnp.zeros_like(t), jnp.cos(t)], axis=-1)
    return clean + sigma * jax.random.normal(key, clean.shape)


def main() -> None:
    # Configuration
    key = jax.random.PRNGKey(0)
    n = 64
    alpha = 0.5
    lam = 1.0

    set_log_level("INFO")
    M = PowerManifold(Sphere(2), (1, n))
    f = PowPoint(M.manifold.project(_noisy_signal(key, n, 0.1)).value[None])

    x = tv_regularization_cppa(M, f, alpha, lam, max_iterations=200)

    base = M.manifold
    jumps_f = base.distance(base.point_type(f.value[0, :-1]), base.point_type(f.value[0, 1:]))
    jumps_x = base.distance(base.point_type(x.value[0, :-1]), base.point_type(x.value[0, 1:]))
    print(f"{M.abbreviation}: total variation {float(jnp.sum(jumps_f)):.4f} -> {float(jnp.sum(jumps_x)):.4f}")
    print(f"distance to data: {float(M.distance(x, f)):.4f}")


if __name__ == "__main__":
    main()
