from .manifold_types import (
    Manifold,
    MPoint,
    TVector,
    check_base,
    distance,
    dot,
    exp,
    geodesic,
    inverse_retract,
    log,
    manifold_dimension,
    mean,
    mid_point,
    norm,
    parallel_transport,
    retract,
)
from .sphere import Sphere, SnPoint, SnTVector
from .power import PowerManifold, PowPoint, PowTVector


__all__ = [
    "Manifold",
    "MPoint",
    "TVector",
    "Sphere",
    "SnPoint",
    "SnTVector",
    "PowerManifold",
    "PowPoint",
    "PowTVector",
    "check_base",
    "distance",
    "dot",
    "exp",
    "geodesic",
    "inverse_retract",
    "log",
    "manifold_dimension",
    "mean",
    "mid_point",
    "norm",
    "parallel_transport",
    "retract",
]
