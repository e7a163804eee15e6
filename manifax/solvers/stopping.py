"""Stopping criteria for iterative solvers.

A criterion is called once per completed iteration with the solver state and
the iteration count, and returns True when the solver should stop. After it
fired, ``reason`` describes why.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class StoppingCriterion(ABC):
    def __init__(self) -> None:
        self.reason = ""

    @abstractmethod
    def __call__(self, state: Any, iteration: int) -> bool: ...


class StopAfterIteration(StoppingCriterion):
    def __init__(self, max_iterations: int):
        super().__init__()
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1. Got {max_iterations}.")
        self.max_iterations = max_iterations

    def __call__(self, state: Any, iteration: int) -> bool:
        if iteration >= self.max_iterations:
            self.reason = f"The algorithm reached its maximal number of iterations ({self.max_iterations})."
            return True
        return False

    def __repr__(self) -> str:
        return f"StopAfterIteration({self.max_iterations})"


class StopWhenPopulationConcentrated(StoppingCriterion):
    """Stop once a population has collapsed in both cost and position.

    Expects a state with ``manifold``, ``population``, ``costs`` and ``x``.
    """

    def __init__(self, tol_f: float = 1e-8, tol_x: float = 1e-8):
        super().__init__()
        self.tol_f = tol_f
        self.tol_x = tol_x

    def __call__(self, state: Any, iteration: int) -> bool:
        spread_f = float(max(state.costs) - min(state.costs))
        spread_x = max(float(state.manifold.distance(state.x, p)) for p in state.population)
        if spread_f < self.tol_f and spread_x < self.tol_x:
            self.reason = (
                f"After {iteration} iterations the population is concentrated: cost spread "
                f"{spread_f:.3e} < {self.tol_f:.1e} and distance spread {spread_x:.3e} < {self.tol_x:.1e}."
            )
            return True
        return False

    def __repr__(self) -> str:
        return f"StopWhenPopulationConcentrated({self.tol_f}, {self.tol_x})"


class StopWhenAny(StoppingCriterion):
    def __init__(self, *criteria: StoppingCriterion):
        super().__init__()
        if not criteria:
            raise ValueError("StopWhenAny needs at least one criterion.")
        self.criteria = criteria

    def __call__(self, state: Any, iteration: int) -> bool:
        for criterion in self.criteria:
            if criterion(state, iteration):
                self.reason = criterion.reason
                return True
        return False

    def __repr__(self) -> str:
        return f"StopWhenAny({', '.join(repr(c) for c in self.criteria)})"
