"""Top level types for manifax.

Public API:
- Contract: Manifold, MPoint, TVector
- Manifolds: Sphere, PowerManifold
- Solver configuration: NelderMeadOptions, CPPAOptions, StoppingCriterion
- Errors: ManifaxError, NotImplementedContractError, BaseMismatchError, ShapeMismatchError
"""

from manifax.manifolds.manifold_types import Manifold, MPoint, TVector
from manifax.manifolds.sphere import Sphere
from manifax.manifolds.power import PowerManifold
from manifax.solvers.nelder_mead import NelderMeadOptions
from manifax.solvers.cppa import CPPAOptions
from manifax.solvers.stopping import StoppingCriterion
from manifax.exceptions import (
    ManifaxError,
    NotImplementedContractError,
    BaseMismatchError,
    ShapeMismatchError,
)

__all__ = [
    # Contract
    "Manifold",
    "MPoint",
    "TVector",
    # Manifolds
    "Sphere",
    "PowerManifold",
    # Solver configuration
    "NelderMeadOptions",
    "CPPAOptions",
    "StoppingCriterion",
    # Errors
    "ManifaxError",
    "NotImplementedContractError",
    "BaseMismatchError",
    "ShapeMismatchError",
]
