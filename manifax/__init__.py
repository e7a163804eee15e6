"""manifax: A Jax library for optimisation on Riemannian manifolds.

## Features

### Manifolds
- Contract of points, tangent vectors and the maps distance, exp, log, dot
- Sphere
- Power manifolds of any base manifold
- Riemannian (Karcher) mean, geodesics, mid points

### Solvers
- Nelder-Mead on manifolds
- Proximal maps of squared distance and total variation
- Cyclic proximal point algorithm for TV regularisation of manifold-valued data
"""

__version__ = "0.1.0"
__license__ = "MIT"
