import logging

import numpy as np

from conftest import least_squares_update, make_data
from matrixlmnet import Solver, SolverKind, add_intercept, mlmnet
from matrixlmnet.standardize import backtransform, standardize


def test_standardize_centers_and_scales_non_intercept_columns():
    rng = np.random.default_rng(0)
    A = add_intercept(3.0 + 2.0 * rng.standard_normal((25, 3)))
    orig = A.copy()

    means, scales = standardize(A, intercept=True)

    assert means[0] == 0.0 and scales[0] == 1.0
    assert np.all(A[:, 0] == 1.0)
    assert np.allclose(means[1:], orig[:, 1:].mean(axis=0))
    assert np.allclose(scales[1:], orig[:, 1:].std(axis=0, ddof=1))
    assert np.allclose(A[:, 1:].mean(axis=0), 0.0)
    assert np.allclose(A[:, 1:].std(axis=0, ddof=1), 1.0)


def test_standardize_without_intercept_touches_every_column():
    rng = np.random.default_rng(1)
    A = 1.0 + rng.standard_normal((10, 2))
    means, scales = standardize(A, intercept=False)
    assert np.all(means != 0.0)
    assert np.allclose(A.std(axis=0, ddof=1), 1.0)


def test_zero_variance_column_is_centered_not_scaled(caplog):
    caplog.set_level(logging.INFO, logger="matrixlmnet")
    A = np.column_stack([np.linspace(0, 1, 6), np.full(6, 5.0)])

    means, scales = standardize(A, intercept=False, verbose=True)

    assert scales[1] == 0.0
    assert means[1] == 5.0
    assert np.all(A[:, 1] == 0.0)
    assert np.all(np.isfinite(A))
    assert "zero variance" in caplog.text


def test_backtransform_preserves_fitted_values():
    rng = np.random.default_rng(2)
    X = add_intercept(rng.standard_normal((12, 3)) * 4.0 + 1.0)
    Z = add_intercept(rng.standard_normal((9, 2)) * 0.5 - 2.0)
    Xs, Zs = X.copy(), Z.copy()
    mx, sx = standardize(Xs, True)
    mz, sz = standardize(Zs, True)

    Bs = rng.standard_normal((2, 4, 3))
    B = backtransform(Bs.copy(), mx, mz, sx, sz, x_intercept=True, z_intercept=True)

    for i in range(2):
        assert np.allclose(X @ B[i] @ Z.T, Xs @ Bs[i] @ Zs.T)


def test_backtransform_without_both_intercepts_only_rescales():
    coeffs = np.ones((1, 2, 2))
    out = backtransform(
        coeffs,
        np.array([0.0, 3.0]), np.array([1.0, 2.0]),
        np.array([1.0, 2.0]), np.array([4.0, 0.5]),
        x_intercept=True, z_intercept=False,
    )
    assert np.allclose(out[0], 1.0 / np.outer([1.0, 2.0], [4.0, 0.5]))


def test_standardized_fit_round_trips_to_raw_fit():
    solver = Solver(SolverKind.CUSTOM, least_squares_update)
    raw = mlmnet(solver, make_data(n=30, m=12, seed=3), [0.0], standardize=False, verbose=False)
    std = mlmnet(solver, make_data(n=30, m=12, seed=3), [0.0], standardize=True, verbose=False)

    assert raw.B.shape == std.B.shape == (1, 4, 3)
    assert np.allclose(raw.B, std.B, atol=1e-8)


def test_constant_covariate_gets_zero_coefficients():
    data = make_data(n=20, m=10, p=3, q=2, seed=4)
    data.predictors.X[:, 1] = 5.0

    fit = mlmnet("cd", data, [1.0, 0.1], verbose=False)

    assert np.all(np.isfinite(fit.B))
    # column 1 of X is column 2 once the intercept is prepended
    assert np.all(fit.B[:, 2, :] == 0.0)
