import numpy as np

from matrixlmnet.metrics import mse, prop_zero
from matrixlmnet.ops import calc_preds, calc_resid, coef_norms, criterion, soft_threshold


def test_soft_threshold_shrinks_towards_zero():
    a = np.array([-3.0, -0.5, 0.0, 0.5, 3.0])
    assert np.allclose(soft_threshold(a, 1.0), [-2.0, 0.0, 0.0, 0.0, 2.0])
    assert soft_threshold(2.5, 0.5) == 2.0


def test_preds_and_resid_match_dense_products():
    rng = np.random.default_rng(0)
    X = rng.standard_normal((7, 3))
    Z = rng.standard_normal((5, 2))
    B = rng.standard_normal((3, 2))
    Y = rng.standard_normal((7, 5))

    P = calc_preds(X, Z, B)
    assert P.shape == (7, 5)
    assert np.allclose(P, X @ B @ Z.T)
    assert np.allclose(calc_resid(X, Y, Z, B), Y - P)


def test_coef_norms_is_outer_of_column_sums_of_squares():
    rng = np.random.default_rng(1)
    X = rng.standard_normal((6, 3))
    Z = rng.standard_normal((4, 2))
    N = coef_norms(X, Z)
    for j in range(3):
        for k in range(2):
            assert np.isclose(N[j, k], np.sum(X[:, j] ** 2) * np.sum(Z[:, k] ** 2))


def test_criterion_only_penalizes_masked_entries():
    B = np.array([[1.0, -2.0], [3.0, 0.0]])
    R = np.ones((2, 2))
    reg = np.array([[False, True], [True, True]])
    assert np.isclose(criterion(B, R, 0.5, reg), 0.5 * 4 + 0.5 * 5)


def test_prop_zero_rounds_at_requested_precision():
    B = np.array([[0.0, 1e-13], [2.0, 0.0]])
    reg = np.ones((2, 2), dtype=bool)
    assert prop_zero(B, reg) == 0.75
    assert prop_zero(B, reg, dig=14) == 0.5

    reg[1, 0] = False
    assert np.isclose(prop_zero(B, reg), 1.0)
    assert np.isnan(prop_zero(B, np.zeros((2, 2), dtype=bool)))


def test_mse_is_mean_of_squared_differences():
    Y = np.array([[1.0, 2.0], [3.0, 4.0]])
    assert mse(Y, Y) == 0.0
    assert np.isclose(mse(Y, np.zeros_like(Y)), 7.5)
