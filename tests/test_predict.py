import logging

import numpy as np
import pytest

from conftest import make_data
from matrixlmnet import (
    Predictors,
    RawData,
    Response,
    add_intercept,
    coef,
    coef_2d,
    fitted,
    mlmnet,
    predict,
    resid,
)

LAMBDAS = [1.0, 0.1, 0.01]


@pytest.fixture
def fit():
    return mlmnet("cd", make_data(seed=10), LAMBDAS, verbose=False)


def test_coef_returns_tensor_or_matching_slice(fit):
    assert coef(fit) is fit.B
    assert np.array_equal(coef(fit, 0.1), fit.B[1])
    assert np.array_equal(coef(fit, 0.1 + 1e-12), fit.B[1])


def test_coef_distinguishes_tiny_penalties_from_zero():
    fit = mlmnet("cd", make_data(seed=1), [1e-3, 1e-9, 0.0], verbose=False)

    assert np.array_equal(coef(fit, 0.0), fit.B[2])
    assert np.array_equal(coef(fit, 1e-9), fit.B[1])
    with pytest.raises(ValueError, match="not used"):
        coef(fit, 1e-10)


def test_coef_unknown_lambda_fails(fit):
    with pytest.raises(ValueError, match="not used"):
        coef(fit, 0.5)


def test_coef_2d_has_one_column_per_lambda(fit):
    C = coef_2d(fit)
    assert C.shape == (4 * 3, 3)
    for i in range(3):
        assert np.array_equal(C[:, i], fit.B[i].ravel())


def test_predict_adds_missing_intercepts(fit, caplog):
    caplog.set_level(logging.INFO, logger="matrixlmnet")
    rng = np.random.default_rng(0)
    X_new = rng.standard_normal((5, 3))
    Z_new = rng.standard_normal((4, 2))
    new = Predictors(X_new, Z_new)

    P = predict(fit, 0.1, new)

    assert new.x_intercept and new.z_intercept
    assert "Adding X intercept to new_predictors." in caplog.text
    assert "Adding Z intercept to new_predictors." in caplog.text
    assert np.allclose(P, add_intercept(X_new) @ fit.B[1] @ add_intercept(Z_new).T)


def test_predict_removes_surplus_intercepts():
    data = make_data(seed=11)
    fit = mlmnet("cd", data, LAMBDAS, x_intercept=False, z_intercept=False, verbose=False)
    rng = np.random.default_rng(1)
    X_new = rng.standard_normal((5, 3))
    new = Predictors(add_intercept(X_new), rng.standard_normal((4, 2)), x_intercept=True)

    P = predict(fit, 1.0, new, verbose=False)

    assert not new.x_intercept
    assert P.shape == (5, 4)
    assert np.allclose(P, X_new @ fit.B[0] @ new.Z.T)


def test_predict_over_whole_path(fit):
    P = predict(fit)
    assert P.shape == (3, fit.data.n, fit.data.m)
    assert np.allclose(P[2], fitted(fit, 0.01))
    assert np.allclose(fitted(fit), P)


def test_resid_plus_fitted_is_response(fit):
    R = resid(fit, 0.01)
    assert np.allclose(R + fitted(fit, 0.01), fit.data.Y)
    assert resid(fit).shape == (3, fit.data.n, fit.data.m)


def test_resid_on_new_data_reconciles_intercepts(fit, caplog):
    caplog.set_level(logging.INFO, logger="matrixlmnet")
    rng = np.random.default_rng(2)
    X, Z = rng.standard_normal((6, 3)), rng.standard_normal((5, 2))
    Y = rng.standard_normal((6, 5))
    new = RawData(Response(Y), Predictors(X, Z))

    R = resid(fit, 1.0, new)

    assert new.p == 4 and new.q == 3
    assert "Adding X intercept to new_data." in caplog.text
    assert "Adding Z intercept to new_data." in caplog.text
    assert np.allclose(R, Y - add_intercept(X) @ fit.B[0] @ add_intercept(Z).T)
