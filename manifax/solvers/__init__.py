from .prox import prox_distance_squared, prox_tv, prox_tv_squared
from .cppa import CPPAOptions, CPPAState, tv_regularization_cppa
from .nelder_mead import NelderMeadOptions, NelderMeadState, nelder_mead
from .stopping import (
    StoppingCriterion,
    StopAfterIteration,
    StopWhenAny,
    StopWhenPopulationConcentrated,
)


__all__ = [
    "prox_distance_squared",
    "prox_tv",
    "prox_tv_squared",
    "CPPAOptions",
    "CPPAState",
    "tv_regularization_cppa",
    "NelderMeadOptions",
    "NelderMeadState",
    "nelder_mead",
    "StoppingCriterion",
    "StopAfterIteration",
    "StopWhenAny",
    "StopWhenPopulationConcentrated",
]
