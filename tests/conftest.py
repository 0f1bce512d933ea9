import numpy as np
import pytest

from matrixlmnet import Predictors, RawData, Response


def least_squares_update(X, Y, Z, lam, B, reg_x_idx, reg_z_idx, reg, norms, *, config=None, verbose=False):
    """Closed-form unpenalized solution; ignores ``lam``."""
    return np.linalg.pinv(X) @ Y @ np.linalg.pinv(Z).T


def ridge_update(X, Y, Z, lam, B, reg_x_idx, reg_z_idx, reg, norms, *, config=None, verbose=False):
    """One-shot ridge-like estimate used as a deterministic solver."""
    p, q = B.shape
    left = np.linalg.solve(X.T @ X + lam * np.eye(p), X.T)
    right = np.linalg.solve(Z.T @ Z + lam * np.eye(q), Z.T)
    return left @ Y @ right.T


def make_data(n=20, m=15, p=3, q=2, seed=0, noise=0.3):
    rng = np.random.default_rng(seed)
    X = rng.standard_normal((n, p))
    Z = rng.standard_normal((m, q))
    B = rng.standard_normal((p, q))
    Y = X @ B @ Z.T + noise * rng.standard_normal((n, m))
    return RawData(Response(Y), Predictors(X, Z))


@pytest.fixture
def data():
    return make_data()
