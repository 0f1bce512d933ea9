from __future__ import annotations

import numpy as np


def calc_preds(X: np.ndarray, Z: np.ndarray, B: np.ndarray) -> np.ndarray:
    """Return the n × m matrix of predictions ``X B Zᵗ``."""
    return X @ B @ Z.T


def calc_resid(X: np.ndarray, Y: np.ndarray, Z: np.ndarray, B: np.ndarray) -> np.ndarray:
    """Return residuals ``Y - X B Zᵗ``."""
    return Y - calc_preds(X, Z, B)


def soft_threshold(a: np.ndarray | float, thresh: float) -> np.ndarray | float:
    """Proximal operator for the L1 norm."""
    return np.sign(a) * np.maximum(np.abs(a) - thresh, 0.0)


def coef_norms(X: np.ndarray, Z: np.ndarray) -> np.ndarray:
    """
    p × q matrix of per-coefficient norms.

    Entry (j, k) is ``||X[:, j]||² · ||Z[:, k]||²``, the curvature of the
    squared-error loss along coefficient B[j, k].
    """
    return np.outer(np.sum(X * X, axis=0), np.sum(Z * Z, axis=0))


def criterion(B: np.ndarray, resid: np.ndarray, lam: float, reg: np.ndarray) -> float:
    """
    Penalized objective ``0.5 * ||resid||_F² + lam * sum(|B[reg]|)``.

    Parameters
    ----------
    B : (p × q) array
        Coefficients.
    resid : (n × m) array
        Residuals ``Y - X B Zᵗ`` for the same ``B``.
    lam : float
        L1 penalty.
    reg : (p × q) bool array
        Which coefficients are penalized.
    """
    return float(0.5 * np.sum(resid * resid) + lam * np.sum(np.abs(B[reg])))
