import jax
import jax.numpy as jnp

from manifax.logging import set_log_level
from manifax.manifolds import Sphere, SnPoint
from manifax.solvers import StopAfterIteration, StopWhenAny, StopWhenPopulationConcentrated, nelder_mead


def main() -> None:
    key = jax.random.PRNGKey(3)
    M = Sphere(2)
    target = SnPoint(jnp.array([0.0, 0.0, 1.0]))

    def cost(x: SnPoint) -> float:
        return float(M.distance(x, target) ** 2)

    set_log_level("INFO")
    state = nelder_mead(
        M,
        cost,
        key=key,
        stopping_criterion=StopWhenAny(StopWhenPopulationConcentrated(), StopAfterIteration(2000)),
        return_state=True,
    )
    print(state.stop_reason)
    print(f"best point {state.x.value} at distance {float(M.distance(state.x, target)):.4f}")


if __name__ == "__main__":
    main()
