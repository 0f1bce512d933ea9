from __future__ import annotations

import numpy as np


def mse(Y: np.ndarray, Yhat: np.ndarray) -> float:
    """Mean squared error between two matrices."""
    return float(np.mean((Y - Yhat) ** 2))


def prop_zero(B: np.ndarray, reg: np.ndarray, dig: int = 12) -> float:
    """
    Fraction of penalized coefficients that are zero at ``dig`` decimals.

    Parameters
    ----------
    B : (p × q) array
        Coefficient matrix.
    reg : (p × q) bool array
        Mask of penalized coefficients; only these are counted.
    dig : int
        Rounding precision used to decide that a coefficient is zero.

    Returns
    -------
    float
        Proportion in [0, 1]; ``nan`` when nothing is penalized.
    """
    penalized = B[reg]
    if penalized.size == 0:
        return float("nan")
    return float(np.mean(np.round(penalized, dig) == 0.0))
