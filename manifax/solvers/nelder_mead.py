from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Sequence
import time

import jax
import numpy as np

from manifax.logging import get_logger
from manifax.manifolds.manifold_types import Manifold, MPoint, mean
from manifax.solvers.stopping import StopAfterIteration, StoppingCriterion

logger = get_logger(__name__)

CostFunction = Callable[[MPoint], float]


@dataclass(frozen=True)
class NelderMeadOptions:
    """Settings of :func:`nelder_mead`.

    Attributes:
        alpha: Reflection parameter, alpha > 0.
        gamma: Expansion parameter.
        rho: Contraction parameter, 0 < rho <= 1/2.
        sigma: Shrink coefficient, 0 < sigma <= 1.
        stopping_criterion: Evaluated after every iteration.
        log_every: Log progress every this many iterations, 0 disables it.
    """

    alpha: float = 1.0
    gamma: float = 2.0
    rho: float = 0.5
    sigma: float = 0.5
    stopping_criterion: StoppingCriterion = field(
        default_factory=lambda: StopAfterIteration(200000)
    )
    log_every: int = 100

    def __post_init__(self) -> None:
        if self.alpha <= 0:
            raise ValueError(f"alpha must be > 0. Got {self.alpha}")
        if not 0 < self.rho <= 0.5:
            raise ValueError(f"rho must be in (0, 1/2]. Got {self.rho}")
        if not 0 < self.sigma <= 1:
            raise ValueError(f"sigma must be in (0, 1]. Got {self.sigma}")
        if self.log_every < 0:
            raise ValueError(f"log_every must be >= 0. Got {self.log_every}")


@dataclass
class NelderMeadState:
    """Working state of the solver.

    ``costs[i]`` is always the cost of ``population[i]`` and ``x`` the population
    entry of minimal cost.
    """

    manifold: Manifold
    population: list[MPoint]
    costs: np.ndarray
    x: MPoint
    iteration: int = 0
    stop_reason: str = ""

    def replace_entry(self, i: int, point: MPoint, cost: float) -> None:
        self.population[i] = point
        self.costs[i] = cost


def _initialize(M: Manifold, cost: CostFunction, population: list[MPoint]) -> NelderMeadState:
    costs = np.array([float(cost(p)) for p in population], dtype=np.float64)
    return NelderMeadState(M, population, costs, population[int(np.argmin(costs))])


def _step(cost: CostFunction, state: NelderMeadState, o: NelderMeadOptions) -> None:
    M = state.manifold
    m = mean(M, state.population)
    ind = np.argsort(state.costs, kind="stable")
    best, second_worst, worst = int(ind[0]), int(ind[-2]), int(ind[-1])
    xi = M.log(m, state.population[worst])

    # reflect the worst point at the mean
    xr = M.exp(m, -o.alpha * xi)
    cost_r = float(cost(xr))
    if state.costs[best] <= cost_r < state.costs[worst]:
        state.replace_entry(worst, xr, cost_r)

    # expansion
    if cost_r < state.costs[best]:
        xe = M.retract(m, -o.gamma * o.alpha * xi)
        cost_e = float(cost(xe))
        if cost_e < cost_r:
            state.replace_entry(worst, xe, cost_e)
        else:
            state.replace_entry(worst, xr, cost_r)

    # contraction, the reflected point is kept whenever the contracted one passes
    if cost_r > state.costs[second_worst]:
        if cost_r < state.costs[worst]:
            xc = M.exp(m, -o.rho * xi)
            if float(cost(xc)) < cost_r:
                state.replace_entry(worst, xr, cost_r)
        else:
            xc = M.exp(m, o.rho * xi)
            if float(cost(xc)) < state.costs[worst]:
                state.replace_entry(worst, xr, cost_r)

    # shrink towards the best point
    x_best = state.population[best]
    for i in ind[1:]:
        i = int(i)
        p = M.retract(x_best, M.inverse_retract(x_best, state.population[i]), o.sigma)
        state.replace_entry(i, p, float(cost(p)))

    state.x = state.population[int(np.argmin(state.costs))]


def nelder_mead(
    M: Manifold,
    cost: CostFunction,
    population: Sequence[MPoint] | None = None,
    *,
    key: jax.Array | None = None,
    options: NelderMeadOptions | None = None,
    return_state: bool = False,
    **overrides,
) -> MPoint | NelderMeadState:
    """
    Nelder-Mead minimisation of ``cost`` on the manifold ``M``.

    The Euclidean simplex method with vector averages, differences and sums
    replaced by the Riemannian mean, ``log`` and ``exp``. See
    https://en.wikipedia.org/wiki/Nelder–Mead_method and
    http://www.optimization-online.org/DB_FILE/2007/08/1742.pdf.

    Args:
        M: Manifold to optimise on.
        cost: Function from points of ``M`` to real numbers.
        population: n + 1 initial points, n the dimension of ``M``. Drawn with
            ``M.random_point`` from ``key`` when omitted.
        key: PRNG key used when no population is given.
        options: Solver settings, defaults to :class:`NelderMeadOptions`.
        return_state: Return the full :class:`NelderMeadState` instead of the minimiser.
        **overrides: Fields of :class:`NelderMeadOptions` to replace.

    Returns:
        The best point found, or the solver state if ``return_state`` is set.
    """
    options = replace(options or NelderMeadOptions(), **overrides)
    n = M.manifold_dimension()
    if population is None:
        if key is None:
            raise ValueError("nelder_mead needs either an initial population or a PRNG key.")
        population = [M.random_point(k) for k in jax.random.split(key, n + 1)]
    population = list(population)
    if len(population) != n + 1:
        raise ValueError(
            f"Population on {M.name} must have {n + 1} points. Got {len(population)}."
        )

    state = _initialize(M, cost, population)
    criterion = options.stopping_criterion
    start = time.perf_counter()
    while True:
        _step(cost, state, options)
        state.iteration += 1
        if options.log_every and state.iteration % options.log_every == 0:
            logger.debug(
                "Nelder-Mead iteration %d: best cost %.6e", state.iteration, state.costs.min()
            )
        if criterion(state, state.iteration):
            state.stop_reason = criterion.reason
            break

    logger.info(
        "Nelder-Mead on %s stopped after %d iterations in %.3fs: %s",
        M.name,
        state.iteration,
        time.perf_counter() - start,
        state.stop_reason,
    )
    return state if return_state else state.x
