import numpy as np

from .data import Predictors, RawData, Response
from .ops import calc_preds


def simulate_bilinear(n, m, p, q, *, density=0.3, noise=0.5, seed=0):
    """Sparse bilinear data ``Y = X B Zᵗ + E``; returns ``(RawData, B)``."""
    rng = np.random.default_rng(seed)
    X = rng.standard_normal((n, p))
    Z = rng.standard_normal((m, q))
    B = rng.standard_normal((p, q)) * (rng.random((p, q)) < density)
    Y = calc_preds(X, Z, B) + noise * rng.standard_normal((n, m))
    return RawData(Response(Y), Predictors(X, Z)), B
